from flask import Blueprint, jsonify, request

from database import get_db
from services import subscriber_service
from services.subscription_view import ALL, matches_search
from utils.auth import require_admin
from utils.dates import isoformat_all

users_bp = Blueprint("users", __name__, url_prefix="/api/admin")

ALLOWED_AUTH_METHODS = {"otp", "google"}


@users_bp.get("/users")
@require_admin
def list_users(payload):
    _ = payload
    q = (request.args.get("q") or "").strip()
    auth_method = (request.args.get("auth_method") or ALL).strip().lower()
    if auth_method != ALL and auth_method not in ALLOWED_AUTH_METHODS:
        return jsonify({"error": "invalid_auth_method"}), 400

    subscribers = subscriber_service.fetch_subscribers(get_db())
    users = [
        user
        for user in subscribers
        if matches_search(user, [], q) and (auth_method == ALL or user["auth_method"] == auth_method)
    ]
    return jsonify(
        isoformat_all(
            {
                "users": users,
                "stats": subscriber_service.subscriber_stats(subscribers),
                "q": q,
                "auth_method": auth_method,
                "total": len(users),
            }
        )
    )


def _set_status(user_id, status):
    try:
        user = subscriber_service.set_subscription_status(get_db(), user_id, status)
    except subscriber_service.UserNotFoundError:
        return jsonify({"error": "User not found"}), 404
    return jsonify(isoformat_all({"ok": True, "user": user}))


@users_bp.post("/users/<user_id>/activate")
@require_admin
def activate_user(payload, user_id):
    _ = payload
    return _set_status(user_id, "active")


@users_bp.post("/users/<user_id>/deactivate")
@require_admin
def deactivate_user(payload, user_id):
    _ = payload
    return _set_status(user_id, "inactive")


@users_bp.get("/auth-logs")
@require_admin
def list_auth_logs(payload):
    _ = payload
    logs = subscriber_service.fetch_auth_logs(get_db())
    return jsonify(isoformat_all({"auth_logs": logs}))
