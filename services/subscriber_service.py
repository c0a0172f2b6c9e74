import logging
from datetime import datetime, timedelta, timezone

import psycopg2

import config
from database import get_cursor, is_missing_table_error
from utils.dates import local_date, shift_to_offset

logger = logging.getLogger(__name__)

SUBSCRIPTION_TERM_DAYS = 30
ALLOWED_SUBSCRIPTION_STATUSES = {"active", "inactive"}

_SUBSCRIBER_COLUMNS = """
    id,
    email,
    name,
    phone,
    avatar_url,
    subscription_status,
    created_at,
    updated_at
"""


class UserNotFoundError(Exception):
    pass


def derive_auth_method(user):
    return "otp" if (user or {}).get("phone") else "google"


def derive_subscriber(row, now=None):
    """Copy a `users` row and add the fields the dashboard derives from it."""
    now = now or datetime.now(timezone.utc)
    subscriber = dict(row)
    is_active = subscriber.get("subscription_status") == "active"
    subscriber["auth_method"] = derive_auth_method(subscriber)
    subscriber["subscription_tier"] = "Premium" if is_active else "Free"
    subscriber["is_active"] = is_active
    # Placeholder term; the users table carries no real end date.
    subscriber["subscription_end"] = (
        now + timedelta(days=SUBSCRIPTION_TERM_DAYS) if is_active else None
    )
    return subscriber


def subscriber_stats(subscribers, now=None, offset_minutes=None):
    if offset_minutes is None:
        offset_minutes = config.REVENUE_UTC_OFFSET_MINUTES
    now = now or datetime.now(timezone.utc)
    today = shift_to_offset(now, offset_minutes).date()

    this_month = 0
    for subscriber in subscribers:
        created = local_date(subscriber.get("created_at"), offset_minutes)
        if created and created.year == today.year and created.month == today.month:
            this_month += 1

    return {
        "total": len(subscribers),
        "active": sum(1 for s in subscribers if s.get("is_active")),
        "otp": sum(1 for s in subscribers if s.get("auth_method") == "otp"),
        "google": sum(1 for s in subscribers if s.get("auth_method") == "google"),
        "this_month": this_month,
    }


def fetch_subscribers(conn, now=None):
    cursor = get_cursor(conn)
    try:
        cursor.execute(
            f"SELECT {_SUBSCRIBER_COLUMNS} FROM users ORDER BY created_at DESC;"
        )
        rows = cursor.fetchall()
    finally:
        cursor.close()
    return [derive_subscriber(row, now=now) for row in rows]


def fetch_auth_logs(conn, limit=None):
    limit = limit or config.AUTH_LOGS_LIMIT
    cursor = get_cursor(conn)
    try:
        cursor.execute(
            "SELECT * FROM auth_logs ORDER BY created_at DESC LIMIT %s;",
            (limit,),
        )
        return cursor.fetchall()
    except psycopg2.Error as exc:
        if not is_missing_table_error(exc):
            raise
        conn.rollback()
        logger.info("auth_logs table not available")
        return []
    finally:
        cursor.close()


def set_subscription_status(conn, user_id, status):
    if status not in ALLOWED_SUBSCRIPTION_STATUSES:
        raise ValueError(f"Unsupported subscription status: {status}")

    cursor = get_cursor(conn)
    try:
        cursor.execute(
            f"""
            UPDATE users
            SET subscription_status = %s,
                updated_at = NOW()
            WHERE id = %s
            RETURNING {_SUBSCRIBER_COLUMNS};
            """,
            (status, user_id),
        )
        row = cursor.fetchone()
        if row is None:
            conn.rollback()
            raise UserNotFoundError(user_id)
        conn.commit()
    finally:
        cursor.close()

    logger.info("subscription status user_id=%s status=%s", user_id, status)
    return derive_subscriber(row)
