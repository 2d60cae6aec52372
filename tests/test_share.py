from datetime import timedelta
from decimal import Decimal

from pricing import utc_today
from routes.share import summarize_client_projects
from tests.conftest import make_client_row, make_project_row


def test_shared_project_page_needs_no_login(client, fake_db):
    fake_db.on("WHERE p.share_token = %s",
               [make_project_row(client_company="Acme Ltd.", notes="Hero section done")])
    resp = client.get("/share/" + "a" * 32)
    assert resp.status_code == 200
    assert "Landing page" in resp.text
    assert "4 of 10 pages completed" in resp.text
    assert "500.00 TRY" in resp.text  # remaining
    assert "Hero section done" in resp.text
    # management navigation is not shown
    assert "/logout" not in resp.text


def test_unknown_share_token(client, fake_db):
    resp = client.get("/share/nope")
    assert resp.status_code == 404
    assert "Link not found" in resp.text


def test_unknown_portal_token(client, fake_db):
    resp = client.get("/portal/nope")
    assert resp.status_code == 404
    assert "Link not found" in resp.text


def test_client_portal_groups_projects(client, fake_db):
    fake_db.on("SELECT * FROM clients WHERE share_token = %s", [make_client_row()])
    fake_db.on("SELECT * FROM projects WHERE client_id = %s", [
        make_project_row(id=1, name="Shop", status="in-progress"),
        make_project_row(id=2, name="Blog", status="completed", total_amount=Decimal("300"),
                         paid_amount=Decimal("300"), payment_status="paid"),
        make_project_row(id=3, name="Paused app", status="on-hold"),
    ])
    resp = client.get("/portal/" + "c" * 32)
    assert resp.status_code == 200
    for name in ("Shop", "Blog", "Paused app"):
        assert name in resp.text
    assert "On hold" in resp.text

    [(sql, params)] = fake_db.queries("FROM projects WHERE client_id")
    assert params == (3,)


def test_summarize_client_projects():
    projects = [
        make_project_row(status="pending", total_amount=Decimal("1000"), paid_amount=Decimal("0")),
        make_project_row(status="in-progress", total_amount=Decimal("500"), paid_amount=Decimal("250")),
        make_project_row(status="completed", total_amount=Decimal("500"), paid_amount=Decimal("500")),
        make_project_row(status="on-hold", total_amount=Decimal("0"), paid_amount=Decimal("0")),
    ]
    stats = summarize_client_projects(projects)

    assert stats["total_projects"] == 4
    assert stats["active_projects"] == 2
    assert stats["completed_projects"] == 1
    assert stats["total_amount"] == Decimal("2000")
    assert stats["paid_amount"] == Decimal("750")
    assert stats["pending_amount"] == Decimal("1250")
    assert stats["paid_ratio"] == 37.5


def test_summarize_without_projects():
    stats = summarize_client_projects([])
    assert stats["total_projects"] == 0
    assert stats["paid_ratio"] == 0.0


def test_deadline_within_a_week_is_highlighted(client, fake_db):
    fake_db.on("WHERE p.share_token = %s",
               [make_project_row(deadline=utc_today() + timedelta(days=5))])
    resp = client.get("/share/" + "a" * 32)
    assert '<span class="text-orange">5 days left</span>' in resp.text


def test_deadline_a_week_away_is_not_highlighted(client, fake_db):
    fake_db.on("WHERE p.share_token = %s",
               [make_project_row(deadline=utc_today() + timedelta(days=7))])
    resp = client.get("/share/" + "a" * 32)
    assert '<span class="muted">7 days left</span>' in resp.text
