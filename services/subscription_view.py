"""Joins subscribers, subscriptions and payments into the rows the dashboard lists.

Everything here is pure: callers fetch the three collections, hand them in together
with a ``QueryParams`` and get back plain dicts. The whole view is rebuilt on every
call; the collections are dashboard-sized.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone

import config
from utils.dates import local_date, parse_date, parse_timestamp

ALL = "all"
NO_PAYMENTS = "none"
QUALIFYING_PAYMENT_STATUSES = ("paid", "captured")
PAYMENT_METHOD = "Razorpay"
SUBSCRIPTION_STATUSES = {"active", "inactive"}
PLAN_TIERS = {"premium", "free"}

_USER_SEARCH_FIELDS = ("email", "name", "phone", "id")
_PAYMENT_SEARCH_FIELDS = ("razorpay_payment_id", "razorpay_order_id", "plan_id", "status")
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class QueryParams:
    q: str = ""
    status: str = ALL
    plan: str = ALL
    auth_method: str = ALL
    payment_status: str = ALL
    date_from: date | None = None
    date_to: date | None = None

    @classmethod
    def from_args(cls, args) -> "QueryParams":
        def _choice(key):
            value = (args.get(key) or "").strip().lower()
            return value or ALL

        return cls(
            q=(args.get("q") or "").strip(),
            status=_choice("status"),
            plan=_choice("plan"),
            auth_method=_choice("auth_method"),
            payment_status=_choice("payment_status"),
            date_from=parse_date(args.get("from")),
            date_to=parse_date(args.get("to")),
        )

    def to_dict(self) -> dict:
        return {
            "q": self.q,
            "status": self.status,
            "plan": self.plan,
            "auth_method": self.auth_method,
            "payment_status": self.payment_status,
            "from": self.date_from.isoformat() if self.date_from else None,
            "to": self.date_to.isoformat() if self.date_to else None,
        }

    def is_default(self) -> bool:
        return self == QueryParams()

    @property
    def has_date_range(self) -> bool:
        return self.date_from is not None and self.date_to is not None


class PaymentIndex:
    """Payments grouped by owner, looked up by user id or (case-insensitive) email."""

    def __init__(self, payments):
        self._by_user_id = defaultdict(list)
        self._by_email = defaultdict(list)
        for payment in payments:
            if payment.get("user_id") is not None:
                self._by_user_id[payment["user_id"]].append(payment)
            email = _normalize_email(payment.get("user_email"))
            if email:
                self._by_email[email].append(payment)

    def for_user(self, user_id, email=None):
        seen = set()
        matched = []
        candidates = self._by_user_id.get(user_id, []) + self._by_email.get(
            _normalize_email(email), []
        )
        for payment in candidates:
            if id(payment) in seen:
                continue
            seen.add(id(payment))
            matched.append(payment)
        return matched


def _normalize_email(value):
    return (value or "").strip().lower()


def _recency_key(payment, *fields):
    moment = None
    for field in fields:
        moment = parse_timestamp(payment.get(field))
        if moment is not None:
            break
    # Ties on timestamp go to the larger id so the choice never depends on fetch order.
    return (moment or _OLDEST, str(payment.get("id") or ""))


def select_verifying_payment(subscription, payments):
    """Most recent paid/captured payment for the subscription's user and plan."""
    candidates = [
        payment
        for payment in payments
        if payment.get("user_id") == subscription.get("user_id")
        and payment.get("plan_id") == subscription.get("plan_id")
        and payment.get("status") in QUALIFYING_PAYMENT_STATUSES
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda payment: _recency_key(payment, "completed_at", "created_at"))


def latest_payment(payments):
    if not payments:
        return None
    return max(payments, key=lambda payment: _recency_key(payment, "created_at"))


def enrich_subscription(subscription, user, payments):
    payment = select_verifying_payment(subscription, payments)
    plan = subscription.get("plan") or {}

    enriched = dict(subscription)
    enriched["user"] = user or {}
    enriched["payment"] = payment
    enriched["is_verified"] = payment is not None
    if payment is not None:
        enriched["amount"] = (payment.get("amount") or 0) / 100
        enriched["payment_status"] = payment.get("status")
    else:
        enriched["amount"] = plan.get("price") or 0
        enriched["payment_status"] = "Active" if subscription.get("status") == "active" else "Inactive"
    enriched["payment_method"] = PAYMENT_METHOD
    return enriched


def enrich_subscriptions(subscriptions, subscribers, payments):
    users_by_id = {user.get("id"): user for user in subscribers}
    return [
        enrich_subscription(subscription, users_by_id.get(subscription.get("user_id")), payments)
        for subscription in subscriptions
    ]


def matches_search(user, user_payments, query):
    needle = (query or "").strip().lower()
    if not needle:
        return True
    user = user or {}
    for field in _USER_SEARCH_FIELDS:
        value = user.get(field)
        if value is not None and needle in str(value).lower():
            return True
    for payment in user_payments:
        for field in _PAYMENT_SEARCH_FIELDS:
            value = payment.get(field)
            if value is not None and needle in str(value).lower():
                return True
    return False


def matches_payment_status(user_payments, wanted):
    if wanted == ALL:
        return True
    if not user_payments:
        return wanted == NO_PAYMENTS
    return any(payment.get("status") == wanted for payment in user_payments)


def within_date_range(value, date_from, date_to, offset_minutes):
    day = local_date(value, offset_minutes)
    if day is None:
        return False
    return date_from <= day <= date_to


def _passes(params, *, user, user_payments, status, tier):
    if not matches_search(user, user_payments, params.q):
        return False
    if params.status in SUBSCRIPTION_STATUSES and status != params.status:
        return False
    if params.plan in PLAN_TIERS and (tier or "").lower() != params.plan:
        return False
    if params.auth_method != ALL and (user or {}).get("auth_method") != params.auth_method:
        return False
    return matches_payment_status(user_payments, params.payment_status)


def filter_subscriptions(enriched, payment_index, params, offset_minutes=None):
    if offset_minutes is None:
        offset_minutes = config.REVENUE_UTC_OFFSET_MINUTES

    result = []
    for row in enriched:
        user = row.get("user") or {}
        user_payments = payment_index.for_user(row.get("user_id"), user.get("email"))
        tier = (row.get("plan") or {}).get("tier")
        if not _passes(params, user=user, user_payments=user_payments, status=row.get("status"), tier=tier):
            continue
        if params.has_date_range and not within_date_range(
            row.get("start_date"), params.date_from, params.date_to, offset_minutes
        ):
            continue
        result.append(row)
    return result


def build_subscription_view(subscriptions, subscribers, payments, params, offset_minutes=None):
    enriched = enrich_subscriptions(subscriptions, subscribers, payments)
    return filter_subscriptions(enriched, PaymentIndex(payments), params, offset_minutes)


def rollup_subscriber(subscriber, user_payments):
    row = dict(subscriber)
    row["total_payments"] = len(user_payments)
    row["total_amount"] = sum(payment.get("amount") or 0 for payment in user_payments) / 100
    row["latest_payment"] = latest_payment(user_payments)
    return row


def build_subscriber_view(subscribers, payments, params):
    """Subscriber listing with payment totals; status and plan read the derived user fields."""
    payment_index = PaymentIndex(payments)
    result = []
    for subscriber in subscribers:
        user_payments = payment_index.for_user(subscriber.get("id"), subscriber.get("email"))
        status = "active" if subscriber.get("is_active") else "inactive"
        if not _passes(
            params,
            user=subscriber,
            user_payments=user_payments,
            status=status,
            tier=subscriber.get("subscription_tier"),
        ):
            continue
        result.append(rollup_subscriber(subscriber, user_payments))
    return result
