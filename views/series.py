from flask import Blueprint, jsonify, request

from database import get_db
from services import series_service
from services.genres import DEFAULT_GENRE, POPULAR_GENRES, genre_options
from services.series_service import (
    SchemaOutdatedError,
    SeriesInput,
    SeriesNotFoundError,
    SeriesValidationError,
)
from utils.auth import require_admin
from utils.dates import isoformat_all

series_bp = Blueprint("series", __name__, url_prefix="/api/admin")


def _series_input():
    try:
        return SeriesInput.from_payload(request.get_json(silent=True)), None
    except SeriesValidationError as exc:
        return None, (jsonify({"error": str(exc)}), 400)


def _not_found():
    return jsonify({"error": "Series not found"}), 404


@series_bp.get("/genres")
@require_admin
def list_genres(payload):
    _ = payload
    return jsonify(
        {
            "genres": genre_options(),
            "default": DEFAULT_GENRE,
            "popular": POPULAR_GENRES,
        }
    )


@series_bp.get("/series")
@require_admin
def list_series(payload):
    _ = payload
    return jsonify(isoformat_all({"series": series_service.list_series(get_db())}))


@series_bp.get("/series/<series_id>/episodes")
@require_admin
def list_episodes(payload, series_id):
    _ = payload
    episodes = series_service.list_episodes(get_db(), series_id)
    return jsonify(isoformat_all({"episodes": episodes}))


@series_bp.post("/series")
@require_admin
def publish_series(payload):
    _ = payload
    series_input, error = _series_input()
    if error:
        return error
    try:
        series = series_service.publish_series(get_db(), series_input)
    except SeriesValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(isoformat_all({"series": series})), 201


@series_bp.post("/series/coming-soon")
@require_admin
def save_coming_soon(payload):
    _ = payload
    series_input, error = _series_input()
    if error:
        return error
    try:
        series = series_service.save_coming_soon(get_db(), series_input)
    except SeriesValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(isoformat_all({"series": series})), 201


@series_bp.put("/series/<series_id>")
@require_admin
def update_series(payload, series_id):
    _ = payload
    series_input, error = _series_input()
    if error:
        return error
    try:
        series = series_service.update_series(get_db(), series_id, series_input)
    except SeriesValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except SeriesNotFoundError:
        return _not_found()
    return jsonify(isoformat_all({"series": series}))


@series_bp.delete("/series/<series_id>")
@require_admin
def delete_series(payload, series_id):
    _ = payload
    try:
        series_service.delete_series(get_db(), series_id)
    except SeriesNotFoundError:
        return _not_found()
    return jsonify({"ok": True})


@series_bp.put("/series/featured")
@require_admin
def set_featured(payload):
    _ = payload
    data = request.get_json(silent=True) or {}
    if "series_id" not in data:
        return jsonify({"error": "series_id required"}), 400
    target_id = data.get("series_id")
    if target_id is not None and not isinstance(target_id, str):
        target_id = str(target_id)
    try:
        featured_id = series_service.set_featured(get_db(), target_id or None)
    except SeriesNotFoundError:
        return _not_found()
    return jsonify({"ok": True, "featured_id": featured_id})


@series_bp.put("/series/<series_id>/visibility")
@require_admin
def set_visibility(payload, series_id):
    _ = payload
    data = request.get_json(silent=True) or {}
    visible = data.get("visible")
    if not isinstance(visible, bool):
        return jsonify({"error": "invalid_boolean", "field": "visible"}), 400
    try:
        series_service.set_visibility(get_db(), series_id, visible)
    except SeriesNotFoundError:
        return _not_found()
    except SchemaOutdatedError as exc:
        return jsonify({"error": str(exc)}), 409
    return jsonify({"ok": True, "id": series_id, "visible": visible})
