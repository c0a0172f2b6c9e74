import json
import os

from dotenv import load_dotenv

load_dotenv()


def _parse_cors_allow_origins(raw_value):
    if raw_value is None:
        return None
    stripped = raw_value.strip()
    if not stripped:
        return None
    try:
        parsed = json.loads(stripped)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, list):
        return [item.strip() for item in parsed if isinstance(item, str) and item.strip()]
    return [item.strip() for item in stripped.split(",") if item.strip()]


def _env_int(name, default, allow_negative=False):
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0 and not allow_negative:
        return default
    return value


def _parse_email_set(raw_value):
    if raw_value is None:
        return set()
    return {
        item.strip().lower()
        for item in raw_value.split(",")
        if isinstance(item, str) and item.strip()
    }


CORS_ALLOW_ORIGINS = _parse_cors_allow_origins(os.getenv("CORS_ALLOW_ORIGINS"))
CORS_SUPPORTS_CREDENTIALS = os.getenv("CORS_SUPPORTS_CREDENTIALS", "0") == "1"

# Tokens are issued by the backing store's auth service and signed with its JWT secret.
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE") or None

ADMIN_EMAILS = _parse_email_set(os.getenv("ADMIN_EMAILS"))

# IST, applied as a fixed offset.
REVENUE_UTC_OFFSET_MINUTES = _env_int("REVENUE_UTC_OFFSET_MINUTES", 330, allow_negative=True)

AUTH_LOGS_LIMIT = _env_int("AUTH_LOGS_LIMIT", 100)

USER_CHANGES_CHANNEL = os.getenv("USER_CHANGES_CHANNEL", "users_changes")
USER_CHANGES_POLL_SECONDS = _env_int("USER_CHANGES_POLL_SECONDS", 5)
