from datetime import datetime, timezone

from flask import Blueprint, jsonify

import config
from database import get_db
from services import series_service, subscriber_service, subscription_service
from services.revenue_service import revenue_buckets
from utils.auth import require_admin

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/admin")


@dashboard_bp.get("/overview")
@require_admin
def admin_overview(payload):
    db = get_db()
    subscribers = subscriber_service.fetch_subscribers(db)
    payments = subscription_service.fetch_payments(db)
    stats = subscriber_service.subscriber_stats(subscribers)

    return jsonify(
        {
            "admin_email": payload.get("email"),
            "users_total": stats["total"],
            "active_users": stats["active"],
            "series_total": series_service.count_series(db),
            "revenue": revenue_buckets(payments),
            "utc_offset_minutes": config.REVENUE_UTC_OFFSET_MINUTES,
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }
    )
