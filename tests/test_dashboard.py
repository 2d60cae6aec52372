import asyncio
from datetime import timedelta
from decimal import Decimal

from pricing import utc_today
from routes.dashboard import get_dashboard_stats
from tests.conftest import make_project_row

TOTALS = {
    "total_projects": 3,
    "active_projects": 2,
    "completed_projects": 1,
    "total_revenue": Decimal("1250.00"),
    "pending_payments": Decimal("800.00"),
    "this_month_revenue": Decimal("300.00"),
}


def test_dashboard(admin_client, fake_db):
    due = utc_today() + timedelta(days=2)
    fake_db.on("COUNT(*) AS total_projects", [TOTALS])
    fake_db.on("GROUP BY status", [{"status": "pending", "count": 2}, {"status": "completed", "count": 1}])
    fake_db.on("GROUP BY project_type", [{"project_type": "backend", "count": 3}])
    fake_db.on("AND p.deadline < %s", [make_project_row(name="Due soon", deadline=due)])
    fake_db.on("LIMIT %s", [make_project_row(name="Newest")])

    resp = admin_client.get("/")
    assert resp.status_code == 200
    assert "1,250.00 TRY" in resp.text
    assert "Due soon" in resp.text
    assert '<span class="text-orange">2 days left</span>' in resp.text
    assert "Newest" in resp.text

    [(_, params)] = fake_db.queries("AND p.deadline < %s")
    assert params == ("pending", "in-progress", utc_today() + timedelta(days=7))


def test_dashboard_counts_include_every_key(fake_db):
    fake_db.on("COUNT(*) AS total_projects", [TOTALS])
    fake_db.on("GROUP BY status", [{"status": "on-hold", "count": 1}])

    stats = asyncio.run(get_dashboard_stats(fake_db))
    assert stats["projects_by_status"] == {"pending": 0, "in-progress": 0, "completed": 0, "on-hold": 1}
    assert stats["projects_by_type"] == {"frontend": 0, "backend": 0, "fullstack": 0}
    assert stats["recent_projects"] == []
    assert stats["upcoming_deadlines"] == []
