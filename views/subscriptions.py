from flask import Blueprint, Response, jsonify, request

from database import get_db
from services import subscriber_service, subscription_service
from services.csv_export import build_subscribers_csv, export_filename
from services.revenue_service import monthly_revenue
from services.subscription_view import (
    QueryParams,
    build_subscriber_view,
    build_subscription_view,
)
from utils.auth import require_admin
from utils.dates import isoformat_all

subscriptions_bp = Blueprint("subscriptions", __name__, url_prefix="/api/admin")


def _subscriber_rows(params):
    db = get_db()
    subscribers = subscriber_service.fetch_subscribers(db)
    payments = subscription_service.fetch_payments(db)
    return subscribers, payments, build_subscriber_view(subscribers, payments, params)


@subscriptions_bp.get("/subscriptions")
@require_admin
def list_subscriptions(payload):
    _ = payload
    params = QueryParams.from_args(request.args)
    db = get_db()
    subscribers = subscriber_service.fetch_subscribers(db)
    subscriptions = subscription_service.fetch_subscriptions(db)
    payments = subscription_service.fetch_payments(db)

    rows = build_subscription_view(subscriptions, subscribers, payments, params)
    return jsonify(
        isoformat_all(
            {
                "subscriptions": rows,
                "filters": params.to_dict(),
                "filtered": not params.is_default(),
                "total": len(rows),
            }
        )
    )


@subscriptions_bp.get("/subscribers")
@require_admin
def list_subscribers(payload):
    _ = payload
    params = QueryParams.from_args(request.args)
    subscribers, payments, rows = _subscriber_rows(params)
    stats = subscriber_service.subscriber_stats(subscribers)
    return jsonify(
        isoformat_all(
            {
                "subscribers": rows,
                "filters": params.to_dict(),
                "filtered": not params.is_default(),
                "total": len(rows),
                "total_subscriptions": stats["total"],
                "active_subscriptions": stats["active"],
                "monthly_revenue": monthly_revenue(payments),
            }
        )
    )


@subscriptions_bp.get("/subscribers/export.csv")
@require_admin
def export_subscribers(payload):
    _ = payload
    params = QueryParams.from_args(request.args)
    _, _, rows = _subscriber_rows(params)
    return Response(
        build_subscribers_csv(rows),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={export_filename()}"},
    )
