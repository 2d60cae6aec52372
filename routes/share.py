from decimal import Decimal

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from psycopg import AsyncConnection

from db import getDB
from models.client import client_from_row
from models.project import ACTIVE_STATUSES, ProjectStatus
from pricing import utc_today, with_display_metrics
from routes.settings import load_settings
from utils import templates, paid_ratio

# Public, read-only pages. No login: the token in the URL is the access key.
router = APIRouter()


def summarize_client_projects(projects: list[dict]) -> dict:
    total = sum((p["total_amount"] for p in projects), Decimal("0"))
    paid = sum((p["paid_amount"] for p in projects), Decimal("0"))
    return {
        "total_projects": len(projects),
        "active_projects": sum(1 for p in projects if p["status"] in ACTIVE_STATUSES),
        "completed_projects": sum(1 for p in projects if p["status"] == ProjectStatus.COMPLETED.value),
        "total_amount": total,
        "paid_amount": paid,
        "pending_amount": total - paid,
        "paid_ratio": paid_ratio(paid, total),
    }


def not_found(request: Request):
    return templates.TemplateResponse(request, "share_not_found.html", {"request": request}, status_code=404)


# 1. One project, looked up by its own token
@router.get("/share/{token}", response_class=HTMLResponse)
async def view_shared_project(
    request: Request,
    token: str,
    conn: AsyncConnection = Depends(getDB),
):
    async with conn.cursor() as cur:
        await cur.execute(
            """
            SELECT p.*, c.name AS client_name, c.company AS client_company
            FROM projects p
            JOIN clients c ON p.client_id = c.id
            WHERE p.share_token = %s
            """,
            (token,)
        )
        project = await cur.fetchone()

    if not project:
        return not_found(request)

    return templates.TemplateResponse(request, "share_project.html", {
        "request": request,
        "project": with_display_metrics(project),
        "settings": await load_settings(conn),
    })


# 2. Client portal: every project of the client behind the token
@router.get("/portal/{token}", response_class=HTMLResponse)
async def view_client_portal(
    request: Request,
    token: str,
    conn: AsyncConnection = Depends(getDB),
):
    async with conn.cursor() as cur:
        # Step A: the token identifies the client
        await cur.execute("SELECT * FROM clients WHERE share_token = %s", (token,))
        client = await cur.fetchone()
        if not client:
            return not_found(request)

        # Step B: all of their projects, newest first
        await cur.execute(
            "SELECT * FROM projects WHERE client_id = %s ORDER BY created_at DESC",
            (client["id"],)
        )
        rows = await cur.fetchall()

    # Step C: one "today" for every row, then group by status
    today = utc_today()
    projects = [with_display_metrics(r, today) for r in rows]

    return templates.TemplateResponse(request, "client_portal.html", {
        "request": request,
        "client": client_from_row(client),
        "stats": summarize_client_projects(projects),
        "active_projects": [p for p in projects if p["status"] in ACTIVE_STATUSES],
        "completed_projects": [p for p in projects if p["status"] == ProjectStatus.COMPLETED.value],
        "other_projects": [p for p in projects if p["status"] == ProjectStatus.ON_HOLD.value],
        "settings": await load_settings(conn),
    })
