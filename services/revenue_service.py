from datetime import datetime, timedelta, timezone

import config
from utils.dates import parse_timestamp, shift_to_offset

REVENUE_PAYMENT_STATUSES = ("paid", "captured")
MONTHLY_REVENUE_STATUSES = ("paid",)

# date.weekday(): Saturday=5, Sunday=6
_WEEKEND_DAYS = {5, 6}


def _payment_moment(payment):
    return parse_timestamp(payment.get("completed_at") or payment.get("created_at"))


def revenue_buckets(payments, now=None, offset_minutes=None):
    """Sum paid/captured amounts per calendar day in the business zone.

    Amounts come in minor units and go out in major units. Returns today,
    yesterday, weekend (Saturday or Sunday, any week) and total.
    """
    if offset_minutes is None:
        offset_minutes = config.REVENUE_UTC_OFFSET_MINUTES
    now = now or datetime.now(timezone.utc)
    today = shift_to_offset(now, offset_minutes).date()
    yesterday = today - timedelta(days=1)

    totals = {"today": 0, "yesterday": 0, "weekend": 0, "total": 0}
    for payment in payments:
        if payment.get("status") not in REVENUE_PAYMENT_STATUSES:
            continue
        moment = _payment_moment(payment)
        if moment is None:
            continue
        amount = payment.get("amount") or 0
        day = shift_to_offset(moment, offset_minutes).date()
        totals["total"] += amount
        if day == today:
            totals["today"] += amount
        if day == yesterday:
            totals["yesterday"] += amount
        if day.weekday() in _WEEKEND_DAYS:
            totals["weekend"] += amount

    return {key: value / 100 for key, value in totals.items()}


def monthly_revenue(payments, now=None, offset_minutes=None):
    if offset_minutes is None:
        offset_minutes = config.REVENUE_UTC_OFFSET_MINUTES
    now = now or datetime.now(timezone.utc)
    current = shift_to_offset(now, offset_minutes).date()

    total = 0
    for payment in payments:
        if payment.get("status") not in MONTHLY_REVENUE_STATUSES:
            continue
        moment = parse_timestamp(payment.get("created_at"))
        if moment is None:
            continue
        day = shift_to_offset(moment, offset_minutes).date()
        if day.year == current.year and day.month == current.month:
            total += payment.get("amount") or 0
    return total / 100
