import pytest

from services import genres
from services.series_service import (
    EpisodeInput,
    SeriesInput,
    SeriesValidationError,
    normalize_series_status,
    serialize_series,
    validate_series_input,
    validate_video_url,
)

HLS_URL = "https://vz-1234.b-cdn.net/video-id/playlist.m3u8"
MP4_URL = "https://vz-1234.b-cdn.net/video-id/play_720p.mp4"


def _series(**overrides):
    values = {
        "title": "Chakravyuh",
        "genre": "thriller",
        "description": "A city under siege.",
        "poster_url": "https://cdn.example.com/posters/chakravyuh.jpg",
        "episodes": (EpisodeInput(title="Pilot", video_url=HLS_URL),),
    }
    values.update(overrides)
    return SeriesInput(**values)


@pytest.mark.parametrize(
    "url, kind, is_valid",
    [
        ("", "empty", False),
        ("   ", "empty", False),
        ("https://iframe.mediadelivery.net/play/1/abc", "iframe", False),
        ("https://video.example.com/embed/abc", "iframe", False),
        (HLS_URL, "hls", True),
        (MP4_URL, "mp4", True),
        ("https://vz-1234.b-cdn.net/video-id/play_480p", "mp4", True),
        ("https://cdn.example.com/clip.mp4", "other", True),
        ("https://cdn.example.com/stream.m3u8", "other", True),
        ("https://youtube.com/watch?v=abc", "unknown", False),
    ],
)
def test_validate_video_url(url, kind, is_valid):
    check = validate_video_url(url)
    assert check.kind == kind
    assert check.is_valid is is_valid


def test_valid_series_passes():
    validate_series_input(_series())


def test_missing_title_is_rejected():
    with pytest.raises(SeriesValidationError, match="title"):
        validate_series_input(_series(title=""))


def test_missing_poster_is_rejected():
    with pytest.raises(SeriesValidationError, match="poster"):
        validate_series_input(_series(poster_url=""))


def test_unknown_genre_is_rejected():
    with pytest.raises(SeriesValidationError, match="genre"):
        validate_series_input(_series(genre="telenovela"))


def test_episode_errors_name_the_episode():
    episodes = (
        EpisodeInput(video_url=HLS_URL),
        EpisodeInput(video_url="https://iframe.mediadelivery.net/embed/1/abc"),
    )
    with pytest.raises(SeriesValidationError, match="^Episode 2: Iframe"):
        validate_series_input(_series(episodes=episodes))

    with pytest.raises(SeriesValidationError, match="^Episode 1: Video URL is required"):
        validate_series_input(_series(episodes=(EpisodeInput(title="Pilot"),)))


def test_coming_soon_does_not_need_episodes():
    validate_series_input(_series(episodes=()), require_episodes=False)
    with pytest.raises(SeriesValidationError):
        validate_series_input(_series(episodes=()))


def test_series_input_from_payload_trims_fields():
    series_input = SeriesInput.from_payload(
        {
            "title": "  Chakravyuh ",
            "poster_url": " https://cdn.example.com/p.jpg ",
            "is_featured": True,
            "episodes": [{"video_url": f" {HLS_URL} ", "thumbnail_url": None}],
        }
    )
    assert series_input.title == "Chakravyuh"
    assert series_input.poster_url == "https://cdn.example.com/p.jpg"
    assert series_input.is_featured is True
    assert series_input.episodes[0].video_url == HLS_URL
    assert series_input.episodes[0].thumbnail_url == ""


def test_series_input_from_payload_rejects_bad_episodes():
    with pytest.raises(SeriesValidationError):
        SeriesInput.from_payload({"episodes": ["not-an-object"]})


def test_is_featured_requires_a_real_boolean():
    assert SeriesInput.from_payload({"is_featured": "yes"}).is_featured is False


def test_serialize_series_normalizes_status_and_visibility():
    published = serialize_series({"id": "s1", "title": "A", "status": "active", "episodes": 3})
    assert published["status"] == "completed"
    assert published["total_episodes"] == 3
    assert published["visible"] is True

    hidden = serialize_series({"id": "s2", "title": "B", "status": "coming_soon", "visible": False})
    assert hidden["status"] == "coming_soon"
    assert hidden["visible"] is False

    assert serialize_series({"id": "s3", "title": "C", "status": None})["status"] == "completed"


def test_genre_helpers():
    assert len(genres.genre_options()) == 20
    assert genres.is_valid_genre("sci-fi") is True
    assert genres.is_valid_genre("telenovela") is False
    assert genres.genre_label("drama") == "🎭 Drama"
    assert genres.genre_label("telenovela") == "telenovela"
    assert genres.genre_hindi("comedy") == "कॉमेडी"
    assert genres.DEFAULT_GENRE == "drama"
    assert genres.POPULAR_GENRES[0] == "drama"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("coming_soon", "coming_soon"),
        ("draft", "draft"),
        ("uploading", "uploading"),
        ("failed", "failed"),
        ("completed", "completed"),
        ("active", "completed"),
        (None, "completed"),
        ("archived", "completed"),
    ],
)
def test_normalize_series_status(raw, expected):
    assert normalize_series_status(raw) == expected


def test_serialized_series_carries_genre_labels():
    series = serialize_series({"id": "s1", "title": "A", "genre": "comedy"})
    assert series["genre_label"] == genres.genre_label("comedy")
    assert series["genre_hindi"] == "कॉमेडी"

    untagged = serialize_series({"id": "s2", "title": "B", "genre": None})
    assert untagged["genre"] == ""
    assert untagged["genre_label"] == ""
    assert untagged["genre_hindi"] == ""


def test_genre_options_include_hindi_label():
    options = {option["value"]: option for option in genres.genre_options()}
    assert options["comedy"]["hindi"] == "कॉमेडी"
    assert all(option["hindi"] for option in options.values())
