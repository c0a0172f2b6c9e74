import csv
import io

import psycopg2

from services import series_service, subscriber_service, subscription_service

USERS = [
    subscriber_service.derive_subscriber(
        {
            "id": "user-a",
            "email": "asha@example.com",
            "name": "Asha",
            "phone": "+91-9000000001",
            "subscription_status": "active",
            "created_at": "2026-01-05T10:00:00+00:00",
        }
    ),
    subscriber_service.derive_subscriber(
        {
            "id": "user-b",
            "email": "bharat@example.com",
            "name": "Bharat",
            "phone": None,
            "subscription_status": "inactive",
            "created_at": "2026-02-01T10:00:00+00:00",
        }
    ),
]

SUBSCRIPTIONS = [
    {
        "id": "sub-a",
        "user_id": "user-a",
        "plan_id": "monthly",
        "status": "active",
        "start_date": "2026-03-10T08:00:00+00:00",
        "end_date": None,
        "created_at": "2026-03-10T08:00:00+00:00",
        "plan": {"name": "Monthly Plan", "price": 199, "duration_days": 30, "tier": "premium"},
    },
    {
        "id": "sub-b",
        "user_id": "user-b",
        "plan_id": "mini",
        "status": "inactive",
        "start_date": "2026-03-15T08:00:00+00:00",
        "end_date": None,
        "created_at": "2026-03-15T08:00:00+00:00",
        "plan": {"name": "Mini Plan", "price": 49, "duration_days": 7, "tier": "free"},
    },
]

PAYMENTS = [
    {
        "id": "1",
        "user_id": "user-a",
        "user_email": "asha@example.com",
        "plan_id": "monthly",
        "amount": 9900,
        "status": "paid",
        "razorpay_payment_id": "pay_AAA",
        "razorpay_order_id": "order_AAA",
        "created_at": "2026-03-10T08:05:00+00:00",
        "completed_at": None,
    }
]


def _stub_fetchers(monkeypatch):
    monkeypatch.setattr(subscriber_service, "fetch_subscribers", lambda db: [dict(u) for u in USERS])
    monkeypatch.setattr(subscription_service, "fetch_subscriptions", lambda db: SUBSCRIPTIONS)
    monkeypatch.setattr(subscription_service, "fetch_payments", lambda db: PAYMENTS)


def test_subscriptions_endpoint_applies_filters(client, admin_headers, fake_db, monkeypatch):
    _stub_fetchers(monkeypatch)

    resp = client.get("/api/admin/subscriptions?q=9000000001", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert [row["id"] for row in body["subscriptions"]] == ["sub-a"]
    assert body["subscriptions"][0]["is_verified"] is True
    assert body["subscriptions"][0]["amount"] == 99
    assert body["filters"]["q"] == "9000000001"
    assert body["filtered"] is True

    resp = client.get(
        "/api/admin/subscriptions?q=9000000001&auth_method=google",
        headers=admin_headers,
    )
    assert resp.get_json()["subscriptions"] == []


def test_subscriptions_endpoint_date_range(client, admin_headers, fake_db, monkeypatch):
    _stub_fetchers(monkeypatch)

    resp = client.get(
        "/api/admin/subscriptions?from=2026-03-15&to=2026-03-15",
        headers=admin_headers,
    )
    assert [row["id"] for row in resp.get_json()["subscriptions"]] == ["sub-b"]


def test_subscribers_endpoint_rolls_up_payments(client, admin_headers, fake_db, monkeypatch):
    _stub_fetchers(monkeypatch)

    resp = client.get("/api/admin/subscribers?payment_status=none", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert [row["id"] for row in body["subscribers"]] == ["user-b"]
    assert body["total_subscriptions"] == 2
    assert body["active_subscriptions"] == 1


def test_export_csv(client, admin_headers, fake_db, monkeypatch):
    _stub_fetchers(monkeypatch)

    resp = client.get("/api/admin/subscribers/export.csv?status=active", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "subscriptions_" in resp.headers["Content-Disposition"]

    rows = list(csv.reader(io.StringIO(resp.get_data(as_text=True))))
    assert len(rows) == 2
    assert rows[1][0] == "asha@example.com"
    assert rows[1][8] == "99"


def test_users_endpoint_filters_and_reports_stats(client, admin_headers, fake_db, monkeypatch):
    _stub_fetchers(monkeypatch)

    resp = client.get("/api/admin/users?auth_method=google", headers=admin_headers)
    body = resp.get_json()
    assert [user["id"] for user in body["users"]] == ["user-b"]
    assert body["stats"]["total"] == 2
    assert body["stats"]["otp"] == 1

    resp = client.get("/api/admin/users?auth_method=sms", headers=admin_headers)
    assert resp.status_code == 400


def test_activate_unknown_user_returns_404(client, admin_headers, fake_db, monkeypatch):
    def fake_set_status(db, user_id, status):
        raise subscriber_service.UserNotFoundError(user_id)

    monkeypatch.setattr(subscriber_service, "set_subscription_status", fake_set_status)

    resp = client.post("/api/admin/users/ghost/activate", headers=admin_headers)
    assert resp.status_code == 404


def test_deactivate_user(client, admin_headers, fake_db, monkeypatch):
    calls = []

    def fake_set_status(db, user_id, status):
        calls.append((user_id, status))
        return subscriber_service.derive_subscriber({"id": user_id, "subscription_status": status})

    monkeypatch.setattr(subscriber_service, "set_subscription_status", fake_set_status)

    resp = client.post("/api/admin/users/user-a/deactivate", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["user"]["is_active"] is False
    assert calls == [("user-a", "inactive")]


def test_overview_reports_revenue(client, admin_headers, fake_db, monkeypatch):
    _stub_fetchers(monkeypatch)
    monkeypatch.setattr(series_service, "count_series", lambda db: 4)

    resp = client.get("/api/admin/overview", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["users_total"] == 2
    assert body["series_total"] == 4
    assert body["revenue"]["total"] == 99
    assert body["utc_offset_minutes"] == 330


def test_publish_validation_fails_before_touching_the_store(client, admin_headers, fake_db):
    resp = client.post(
        "/api/admin/series",
        headers=admin_headers,
        json={"title": "", "poster_url": "https://cdn.example.com/p.jpg", "episodes": []},
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Please enter series title"

    resp = client.post(
        "/api/admin/series",
        headers=admin_headers,
        json={
            "title": "Chakravyuh",
            "poster_url": "https://cdn.example.com/p.jpg",
            "episodes": [{"video_url": "https://iframe.mediadelivery.net/embed/1/abc"}],
        },
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"].startswith("Episode 1:")


def test_featured_requires_series_id_key(client, admin_headers, fake_db):
    resp = client.put("/api/admin/series/featured", headers=admin_headers, json={})
    assert resp.status_code == 400


def test_unfeature_passes_none(client, admin_headers, fake_db, monkeypatch):
    calls = []
    monkeypatch.setattr(series_service, "set_featured", lambda db, target_id: calls.append(target_id) or target_id)

    resp = client.put("/api/admin/series/featured", headers=admin_headers, json={"series_id": None})
    assert resp.status_code == 200
    assert resp.get_json()["featured_id"] is None
    assert calls == [None]


def test_visibility_requires_boolean(client, admin_headers, fake_db):
    resp = client.put(
        "/api/admin/series/s1/visibility",
        headers=admin_headers,
        json={"visible": "yes"},
    )
    assert resp.status_code == 400


def test_visibility_missing_column_returns_conflict(client, admin_headers, fake_db, monkeypatch):
    def fake_set_visibility(db, series_id, visible):
        raise series_service.SchemaOutdatedError("series_meta has no visible column")

    monkeypatch.setattr(series_service, "set_visibility", fake_set_visibility)

    resp = client.put(
        "/api/admin/series/s1/visibility",
        headers=admin_headers,
        json={"visible": False},
    )
    assert resp.status_code == 409


def test_database_errors_roll_back_and_surface_message(client, admin_headers, fake_db, monkeypatch):
    def failing_fetch(db):
        raise psycopg2.OperationalError("connection reset")

    monkeypatch.setattr(subscriber_service, "fetch_subscribers", failing_fetch)

    resp = client.get("/api/admin/users", headers=admin_headers)
    assert resp.status_code == 500
    assert resp.get_json()["detail"] == "connection reset"
    assert fake_db.rollbacks == 1
