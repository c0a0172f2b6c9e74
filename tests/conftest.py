import os
import sys
from pathlib import Path

import pytest
from flask import g

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

import config
import init_db
from app import app as flask_app
from database import create_standalone_connection, get_cursor
from services import auth_service
from views import dashboard as dashboard_views
from views import series as series_views
from views import subscriptions as subscriptions_views
from views import users as users_views

ADMIN_EMAIL = "admin@example.com"


class FakeConnection:
    def __init__(self):
        self.closed = False
        self.rollbacks = 0

    def rollback(self):
        self.rollbacks += 1

    def commit(self):
        pass

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def admin_config(monkeypatch):
    monkeypatch.setattr(config, "JWT_SECRET", "test-secret")
    monkeypatch.setattr(config, "JWT_AUDIENCE", None)
    monkeypatch.setattr(config, "ADMIN_EMAILS", {ADMIN_EMAIL})
    monkeypatch.setattr(config, "REVENUE_UTC_OFFSET_MINUTES", 330)


@pytest.fixture()
def admin_headers():
    token = auth_service.generate_token("admin-1", ADMIN_EMAIL)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def fake_db(monkeypatch):
    conn = FakeConnection()

    def fake_get_db():
        g.db = conn
        return conn

    for module in (dashboard_views, series_views, subscriptions_views, users_views):
        monkeypatch.setattr(module, "get_db", fake_get_db)
    return conn


@pytest.fixture(scope="session")
def db_conn():
    if not os.environ.get("DATABASE_URL") and not all(
        os.environ.get(var) for var in ["DB_NAME", "DB_USER", "DB_PASSWORD", "DB_HOST", "DB_PORT"]
    ):
        pytest.skip("Database environment variables not set.")
    init_db.init_db()
    conn = create_standalone_connection()
    yield conn
    conn.close()


@pytest.fixture()
def clean_db(db_conn):
    cursor = get_cursor(db_conn)
    cursor.execute("DELETE FROM episodes;")
    cursor.execute("DELETE FROM series_meta;")
    cursor.execute("DELETE FROM payments;")
    cursor.execute("DELETE FROM user_subscriptions;")
    cursor.execute("DELETE FROM subscription_plans;")
    cursor.execute("DELETE FROM auth_logs;")
    cursor.execute("DELETE FROM users;")
    db_conn.commit()
    cursor.close()
    return db_conn


@pytest.fixture()
def client():
    flask_app.config.update({"TESTING": True})
    with flask_app.test_client() as client:
        yield client
