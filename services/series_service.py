from __future__ import annotations

import logging
from dataclasses import dataclass, field

import psycopg2

from database import is_missing_column_error, managed_cursor, transaction
from services.genres import DEFAULT_GENRE, genre_hindi, genre_label, is_valid_genre

logger = logging.getLogger(__name__)

SERIES_STATUSES = ("coming_soon", "draft", "uploading", "completed", "failed")
PUBLISHED_STATUS = "active"
COMING_SOON_STATUS = "coming_soon"
DEFAULT_CATEGORY = "latest"

_SERIES_COLUMNS = "id, title, genre, description, status, episodes, created_at, image_url, is_featured"


class SeriesValidationError(ValueError):
    pass


class SeriesNotFoundError(Exception):
    pass


class SchemaOutdatedError(Exception):
    pass


@dataclass(frozen=True)
class VideoUrlCheck:
    is_valid: bool
    message: str
    kind: str


@dataclass(frozen=True)
class EpisodeInput:
    title: str = ""
    video_url: str = ""
    thumbnail_url: str = ""


@dataclass(frozen=True)
class SeriesInput:
    title: str = ""
    genre: str = ""
    description: str = ""
    poster_url: str = ""
    is_featured: bool = False
    episodes: tuple = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, data) -> "SeriesInput":
        data = data or {}
        episodes = []
        for raw in data.get("episodes") or []:
            if not isinstance(raw, dict):
                raise SeriesValidationError("Each episode must be an object")
            episodes.append(
                EpisodeInput(
                    title=str(raw.get("title") or "").strip(),
                    video_url=str(raw.get("video_url") or "").strip(),
                    thumbnail_url=str(raw.get("thumbnail_url") or "").strip(),
                )
            )
        return cls(
            title=str(data.get("title") or "").strip(),
            genre=str(data.get("genre") or DEFAULT_GENRE).strip(),
            description=str(data.get("description") or "").strip(),
            poster_url=str(data.get("poster_url") or "").strip(),
            is_featured=data.get("is_featured") is True,
            episodes=tuple(episodes),
        )


def validate_video_url(url) -> VideoUrlCheck:
    """Classify an episode URL by whether the mobile player can stream it."""
    url = (url or "").strip()
    if not url:
        return VideoUrlCheck(False, "Video URL is required", "empty")
    if "iframe.mediadelivery.net" in url or "/embed/" in url:
        return VideoUrlCheck(
            False,
            "Iframe URL detected. This won't play in the mobile app; use the direct play URL instead.",
            "iframe",
        )
    if ".b-cdn.net" in url and "/playlist.m3u8" in url:
        return VideoUrlCheck(True, "Valid HLS streaming URL", "hls")
    if ".b-cdn.net" in url and (".mp4" in url or "play_" in url):
        return VideoUrlCheck(True, "Valid MP4 direct URL", "mp4")
    if ".mp4" in url or ".m3u8" in url:
        return VideoUrlCheck(True, "Valid video URL format", "other")
    return VideoUrlCheck(
        False,
        "URL format may not work in the mobile app. Please use Bunny.net direct play URLs.",
        "unknown",
    )


def validate_series_input(series_input: SeriesInput, require_episodes=True) -> None:
    if not series_input.title:
        raise SeriesValidationError("Please enter series title")
    if not series_input.poster_url:
        raise SeriesValidationError("Please enter a poster URL")
    if series_input.genre and not is_valid_genre(series_input.genre):
        raise SeriesValidationError(f"Unknown genre: {series_input.genre}")
    if not require_episodes:
        return
    if not series_input.episodes:
        raise SeriesValidationError("At least one episode is required")
    for number, episode in enumerate(series_input.episodes, start=1):
        if not episode.video_url:
            raise SeriesValidationError(f"Episode {number}: Video URL is required")
        check = validate_video_url(episode.video_url)
        if not check.is_valid:
            raise SeriesValidationError(
                f"Episode {number}: {check.message} Use Bunny.net direct play URLs (HLS or MP4)."
            )


def normalize_series_status(raw):
    """Map a stored status onto SERIES_STATUSES; `active`, missing and unknown read as completed."""
    if raw in SERIES_STATUSES:
        return raw
    if raw is not None and raw != PUBLISHED_STATUS:
        logger.warning("unknown series status %r; reading it as completed", raw)
    return "completed"


def serialize_series(row, episodes=None):
    genre = row.get("genre") or ""
    episode_count = row.get("episodes") or 0
    return {
        "id": row.get("id"),
        "title": row.get("title"),
        "genre": genre,
        "genre_label": genre_label(genre) if genre else "",
        "genre_hindi": genre_hindi(genre) if genre else "",
        "description": row.get("description") or "",
        "poster_url": row.get("image_url") or "",
        "status": normalize_series_status(row.get("status")),
        "total_episodes": episode_count,
        "uploaded_episodes": episode_count,
        "is_featured": bool(row.get("is_featured")),
        "visible": row.get("visible", True) is not False,
        "upload_date": row.get("created_at"),
        "episodes": episodes if episodes is not None else [],
    }


def _serialize_episodes(series_input: SeriesInput):
    return [
        {
            "title": episode.title or f"Episode {number}",
            "episode_number": number,
            "video_url": episode.video_url,
            "thumbnail_url": episode.thumbnail_url,
        }
        for number, episode in enumerate(series_input.episodes, start=1)
    ]


def _insert_episodes(cursor, series_id, episodes):
    for episode in episodes:
        cursor.execute(
            """
            INSERT INTO episodes (series_id, title, episode_number, video_url, thumbnail_url)
            VALUES (%s, %s, %s, %s, %s);
            """,
            (
                series_id,
                episode["title"],
                episode["episode_number"],
                episode["video_url"],
                episode["thumbnail_url"],
            ),
        )


def _clear_featured(cursor):
    cursor.execute("UPDATE series_meta SET is_featured = FALSE WHERE is_featured = TRUE;")


def _insert_series(conn, series_input: SeriesInput, *, status, episodes):
    with transaction(conn) as cursor:
        if series_input.is_featured:
            _clear_featured(cursor)
        cursor.execute(
            f"""
            INSERT INTO series_meta (
                title,
                description,
                genre,
                category,
                is_featured,
                episodes,
                status,
                image_url,
                visible
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, TRUE)
            RETURNING {_SERIES_COLUMNS}, visible;
            """,
            (
                series_input.title,
                series_input.description,
                series_input.genre,
                DEFAULT_CATEGORY,
                series_input.is_featured,
                len(episodes),
                status,
                series_input.poster_url,
            ),
        )
        row = cursor.fetchone()
        _insert_episodes(cursor, row["id"], episodes)
    return row


def publish_series(conn, series_input: SeriesInput):
    """Insert the series and all of its episodes in one transaction."""
    validate_series_input(series_input)
    episodes = _serialize_episodes(series_input)
    row = _insert_series(conn, series_input, status=PUBLISHED_STATUS, episodes=episodes)
    logger.info("series published id=%s episodes=%s", row["id"], len(episodes))
    return serialize_series(row, episodes)


def save_coming_soon(conn, series_input: SeriesInput):
    validate_series_input(series_input, require_episodes=False)
    row = _insert_series(conn, series_input, status=COMING_SOON_STATUS, episodes=[])
    logger.info("series saved as coming soon id=%s", row["id"])
    return serialize_series(row, [])


def update_series(conn, series_id, series_input: SeriesInput):
    """Update metadata and replace the episode list wholesale."""
    validate_series_input(series_input)
    episodes = _serialize_episodes(series_input)
    with transaction(conn) as cursor:
        if series_input.is_featured:
            _clear_featured(cursor)
        cursor.execute(
            f"""
            UPDATE series_meta
            SET title = %s,
                description = %s,
                genre = %s,
                image_url = %s,
                is_featured = %s,
                episodes = %s,
                visible = TRUE
            WHERE id = %s
            RETURNING {_SERIES_COLUMNS}, visible;
            """,
            (
                series_input.title,
                series_input.description,
                series_input.genre,
                series_input.poster_url,
                series_input.is_featured,
                len(episodes),
                series_id,
            ),
        )
        row = cursor.fetchone()
        if row is None:
            raise SeriesNotFoundError(series_id)
        cursor.execute("DELETE FROM episodes WHERE series_id = %s;", (series_id,))
        _insert_episodes(cursor, series_id, episodes)
    logger.info("series updated id=%s episodes=%s", series_id, len(episodes))
    return serialize_series(row, episodes)


def delete_series(conn, series_id):
    with transaction(conn) as cursor:
        cursor.execute("DELETE FROM episodes WHERE series_id = %s;", (series_id,))
        cursor.execute("DELETE FROM series_meta WHERE id = %s RETURNING id;", (series_id,))
        if cursor.fetchone() is None:
            raise SeriesNotFoundError(series_id)
    logger.info("series deleted id=%s", series_id)


def set_featured(conn, target_id=None):
    """Make `target_id` the only featured series, or unfeature everything when None."""
    with transaction(conn) as cursor:
        if target_id is not None:
            cursor.execute("SELECT id FROM series_meta WHERE id = %s;", (target_id,))
            if cursor.fetchone() is None:
                raise SeriesNotFoundError(target_id)
        _clear_featured(cursor)
        if target_id is not None:
            cursor.execute(
                "UPDATE series_meta SET is_featured = TRUE WHERE id = %s;",
                (target_id,),
            )
    logger.info("featured series set to %s", target_id)
    return target_id


def set_visibility(conn, series_id, visible):
    try:
        with transaction(conn) as cursor:
            cursor.execute(
                "UPDATE series_meta SET visible = %s WHERE id = %s RETURNING id;",
                (bool(visible), series_id),
            )
            if cursor.fetchone() is None:
                raise SeriesNotFoundError(series_id)
    except psycopg2.Error as exc:
        if is_missing_column_error(exc, "visible"):
            raise SchemaOutdatedError(
                "series_meta has no visible column; run the visibility migration first."
            ) from exc
        raise
    logger.info("series visibility id=%s visible=%s", series_id, bool(visible))
    return bool(visible)


def list_series(conn):
    try:
        with managed_cursor(conn) as cursor:
            cursor.execute(
                f"SELECT {_SERIES_COLUMNS}, visible FROM series_meta ORDER BY created_at DESC;"
            )
            rows = cursor.fetchall()
    except psycopg2.Error as exc:
        if not is_missing_column_error(exc, "visible"):
            raise
        conn.rollback()
        logger.warning("series_meta.visible missing; treating every series as visible")
        with managed_cursor(conn) as cursor:
            cursor.execute(f"SELECT {_SERIES_COLUMNS} FROM series_meta ORDER BY created_at DESC;")
            rows = cursor.fetchall()
    return [serialize_series(row) for row in rows]


def list_episodes(conn, series_id):
    with managed_cursor(conn) as cursor:
        cursor.execute(
            """
            SELECT title, episode_number, video_url, thumbnail_url
            FROM episodes
            WHERE series_id = %s
            ORDER BY episode_number ASC;
            """,
            (series_id,),
        )
        return cursor.fetchall()


def count_series(conn):
    with managed_cursor(conn) as cursor:
        cursor.execute("SELECT COUNT(*) AS count FROM series_meta;")
        return cursor.fetchone()["count"]
