import csv
import io
from datetime import date

import config
from utils.dates import local_date

CSV_HEADERS = [
    "User Email",
    "Name",
    "Phone",
    "Plan",
    "Status",
    "Auth Method",
    "Subscription End",
    "Total Payments",
    "Total Amount (₹)",
    "Latest Payment ID",
    "Latest Payment Status",
    "Created Date",
]


def _day(value):
    day = local_date(value, config.REVENUE_UTC_OFFSET_MINUTES)
    return day.isoformat() if day else ""


def _amount(value):
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def subscriber_csv_row(row):
    latest = row.get("latest_payment") or {}
    return [
        row.get("email") or "",
        row.get("name") or "",
        row.get("phone") or "",
        row.get("subscription_tier") or "",
        "Active" if row.get("is_active") else "Inactive",
        row.get("auth_method") or "",
        _day(row.get("subscription_end")),
        str(row.get("total_payments") or 0),
        _amount(row.get("total_amount") or 0),
        latest.get("razorpay_payment_id") or "",
        latest.get("status") or "",
        _day(row.get("created_at")),
    ]


def build_subscribers_csv(rows):
    """Every field quoted; embedded quotes doubled."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for row in rows:
        writer.writerow(subscriber_csv_row(row))
    return buffer.getvalue()


def export_filename(today=None):
    today = today or date.today()
    return f"subscriptions_{today.isoformat()}.csv"
