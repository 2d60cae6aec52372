"""
Shared fixtures.

Route tests run against `FakeDB`, an in-memory stand-in for a psycopg
AsyncConnection: each test registers canned rows for SQL fragments, and
every executed statement is recorded for assertions.
"""
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from db import getDB
from main import app
from routes.auth import get_current_admin_user

ADMIN = {"id": 1, "username": "admin", "email": "admin@example.com", "full_name": "Admin User"}


def normalize(sql: str) -> str:
    return " ".join(sql.split())


class FakeCursor:
    def __init__(self, db: "FakeDB"):
        self.db = db
        self._rows = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def execute(self, sql, params=None):
        sql = normalize(sql)
        self.db.executed.append((sql, params))
        self._rows = self.db.respond(sql, params)

    async def fetchone(self):
        return self._rows[0] if self._rows else None

    async def fetchall(self):
        return list(self._rows)


class FakeDB:
    def __init__(self):
        self.rules = []
        self.executed = []

    def on(self, fragment: str, rows):
        """
        Rows returned for statements containing `fragment`. `rows` may be a
        callable taking the params. The first matching rule wins.
        """
        self.rules.append((fragment, rows))
        return self

    def respond(self, sql, params):
        for fragment, rows in self.rules:
            if fragment in sql:
                result = rows(params) if callable(rows) else rows
                return [dict(r) for r in result]
        return []

    def cursor(self):
        return FakeCursor(self)

    def queries(self, fragment: str) -> list[tuple]:
        return [(sql, params) for sql, params in self.executed if fragment in sql]


def insert_values(sql: str, params) -> dict:
    """Maps the column list of an `INSERT INTO t (a, b) VALUES (...)` to its params."""
    columns = sql.split("(", 1)[1].split(")", 1)[0].split(", ")
    return dict(zip(columns, params))


def make_project_row(**overrides) -> dict:
    row = {
        "id": 10,
        "name": "Landing page",
        "client_id": 3,
        "client_name": "Acme",
        "project_type": "frontend",
        "status": "in-progress",
        "total_pages": 10,
        "completed_pages": 4,
        "price_per_page": Decimal("150.00"),
        "fixed_price": None,
        "completion_percentage": None,
        "extra_hours": Decimal("2.00"),
        "extra_hour_rate": Decimal("50.00"),
        "notes": None,
        "share_token": "a" * 32,
        "total_amount": Decimal("700.00"),
        "paid_amount": Decimal("200.00"),
        "payment_status": "partial",
        "start_date": date(2026, 1, 5),
        "deadline": None,
        "category": "web",
        "priority": "medium",
        "estimated_hours": None,
        "actual_hours": Decimal("0"),
        "created_at": datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 1, 6, 9, 0, tzinfo=timezone.utc),
    }
    row.update(overrides)
    return row


def make_client_row(**overrides) -> dict:
    row = {
        "id": 3,
        "name": "Acme",
        "type": "corporate",
        "email": "hello@acme.test",
        "phone": None,
        "company": "Acme Ltd.",
        "notes": None,
        "tags": '["web"]',
        "share_token": "c" * 32,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
    }
    row.update(overrides)
    return row


@pytest.fixture
def fake_db():
    return FakeDB()


@pytest.fixture
def client(fake_db):
    """Unauthenticated client; the database is the fake one."""
    async def override_get_db():
        yield fake_db

    app.dependency_overrides[getDB] = override_get_db
    # no `with`: the lifespan (schema migration) does not run against the fake
    yield TestClient(app, follow_redirects=False)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    app.dependency_overrides[get_current_admin_user] = lambda: ADMIN
    return client
