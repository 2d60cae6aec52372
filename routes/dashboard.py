from datetime import timedelta

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from psycopg import AsyncConnection

from db import getDB
from models.project import ACTIVE_STATUSES, ProjectStatus, ProjectType
from pricing import utc_today, with_display_metrics
from routes.auth import get_current_admin_user
from routes.settings import load_settings
from utils import DEADLINE_WARNING_DAYS, templates

router = APIRouter()

RECENT_LIMIT = 5


async def get_dashboard_stats(conn: AsyncConnection) -> dict:
    """
    Numbers shown on the home page.
    Revenue is what was actually paid; pending is what is still owed on
    projects that are not fully paid.
    """
    today = utc_today()
    stats = {}

    async with conn.cursor() as cur:
        await cur.execute(
            """
            SELECT
                COUNT(*) AS total_projects,
                COUNT(*) FILTER (WHERE status IN (%s, %s)) AS active_projects,
                COUNT(*) FILTER (WHERE status = 'completed') AS completed_projects,
                COALESCE(SUM(paid_amount), 0) AS total_revenue,
                COALESCE(SUM(total_amount - paid_amount) FILTER (WHERE payment_status != 'paid'), 0)
                    AS pending_payments,
                COALESCE(SUM(paid_amount) FILTER (
                    WHERE date_trunc('month', updated_at) = date_trunc('month', NOW())
                ), 0) AS this_month_revenue
            FROM projects
            """,
            ACTIVE_STATUSES
        )
        stats.update(await cur.fetchone())

        # Every status / type is present, even with a count of zero
        await cur.execute("SELECT status, COUNT(*) AS count FROM projects GROUP BY status")
        by_status = {s.value: 0 for s in ProjectStatus}
        by_status.update({r["status"]: r["count"] for r in await cur.fetchall()})
        stats["projects_by_status"] = by_status

        await cur.execute("SELECT project_type, COUNT(*) AS count FROM projects GROUP BY project_type")
        by_type = {t.value: 0 for t in ProjectType}
        by_type.update({r["project_type"]: r["count"] for r in await cur.fetchall()})
        stats["projects_by_type"] = by_type

        await cur.execute(
            """
            SELECT p.*, c.name AS client_name
            FROM projects p
            JOIN clients c ON p.client_id = c.id
            ORDER BY p.created_at DESC
            LIMIT %s
            """,
            (RECENT_LIMIT,)
        )
        stats["recent_projects"] = [with_display_metrics(r, today) for r in await cur.fetchall()]

        # Overdue ones are included; the bound matches the deadline highlight in _macros.html
        await cur.execute(
            """
            SELECT p.*, c.name AS client_name
            FROM projects p
            JOIN clients c ON p.client_id = c.id
            WHERE p.status IN (%s, %s)
              AND p.deadline IS NOT NULL
              AND p.deadline < %s
            ORDER BY p.deadline ASC
            """,
            ACTIVE_STATUSES + (today + timedelta(days=DEADLINE_WARNING_DAYS),)
        )
        stats["upcoming_deadlines"] = [with_display_metrics(r, today) for r in await cur.fetchall()]

    return stats


@router.get("/", response_class=HTMLResponse)
async def get_dashboard(
    request: Request,
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    return templates.TemplateResponse(request, "dashboard.html", {
        "request": request,
        "user": user,
        "stats": await get_dashboard_stats(conn),
        "settings": await load_settings(conn),
    })
