from database import managed_cursor


def _as_number(value):
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    return float(value)


def _plan_from_row(row):
    if row.get("plan_name") is None and row.get("plan_tier") is None:
        return None
    return {
        "name": row.get("plan_name"),
        "price": _as_number(row.get("plan_price")),
        "duration_days": row.get("plan_duration_days"),
        "tier": row.get("plan_tier"),
    }


def fetch_subscriptions(conn):
    with managed_cursor(conn) as cursor:
        cursor.execute(
            """
            SELECT
                s.id,
                s.user_id,
                s.plan_id,
                s.status,
                s.start_date,
                s.end_date,
                s.created_at,
                p.name AS plan_name,
                p.price AS plan_price,
                p.duration_days AS plan_duration_days,
                p.tier AS plan_tier
            FROM user_subscriptions s
            LEFT JOIN subscription_plans p ON p.id = s.plan_id
            ORDER BY s.created_at DESC;
            """
        )
        rows = cursor.fetchall()

    subscriptions = []
    for row in rows:
        subscription = {
            key: row[key]
            for key in ("id", "user_id", "plan_id", "status", "start_date", "end_date", "created_at")
        }
        subscription["plan"] = _plan_from_row(row)
        subscriptions.append(subscription)
    return subscriptions


def fetch_payments(conn):
    with managed_cursor(conn) as cursor:
        cursor.execute(
            """
            SELECT
                id,
                user_id,
                user_email,
                plan_id,
                amount,
                status,
                razorpay_payment_id,
                razorpay_order_id,
                created_at,
                completed_at
            FROM payments
            ORDER BY created_at DESC;
            """
        )
        return cursor.fetchall()
