from fastapi import APIRouter, Depends, Request, Form, HTTPException, Query, status
from fastapi.responses import HTMLResponse, RedirectResponse
from psycopg import AsyncConnection

from db import getDB
from models.project import PaymentStatus, Priority, ProjectInputs, ProjectStatus, ProjectType
from pricing import derive_pricing, with_display_metrics
from routes.auth import get_current_admin_user
from routes.settings import load_settings
from utils import (
    MAX_AMOUNT,
    MAX_HOURS,
    templates,
    blank_to_none,
    generate_share_token,
    parse_date,
    parse_decimal,
    parse_int,
)

router = APIRouter()


# ---------------------------------------------------------
# Form handling
# total_amount and payment_status are never read from the form;
# they are derived from the pricing inputs on every save.
# ---------------------------------------------------------
async def project_form(
    name: str = Form(""),
    client_id: str = Form(""),
    project_type: str = Form(ProjectType.FRONTEND.value),
    status: str = Form(ProjectStatus.PENDING.value),
    priority: str = Form(Priority.MEDIUM.value),
    category: str = Form(""),
    notes: str = Form(""),
    total_pages: str = Form(""),
    completed_pages: str = Form(""),
    price_per_page: str = Form(""),
    fixed_price: str = Form(""),
    completion_percentage: str = Form(""),
    extra_hours: str = Form(""),
    extra_hour_rate: str = Form(""),
    paid_amount: str = Form(""),
    start_date: str = Form(""),
    deadline: str = Form(""),
    estimated_hours: str = Form(""),
    actual_hours: str = Form(""),
) -> dict:
    """Raw form values (all text), shared by the create and edit handlers."""
    return {
        "name": name, "client_id": client_id, "project_type": project_type,
        "status": status, "priority": priority, "category": category, "notes": notes,
        "total_pages": total_pages, "completed_pages": completed_pages,
        "price_per_page": price_per_page, "fixed_price": fixed_price,
        "completion_percentage": completion_percentage,
        "extra_hours": extra_hours, "extra_hour_rate": extra_hour_rate,
        "paid_amount": paid_amount, "start_date": start_date, "deadline": deadline,
        "estimated_hours": estimated_hours, "actual_hours": actual_hours,
    }


def _enum_value(enum_cls, raw: str, field: str) -> str:
    try:
        return enum_cls(raw).value
    except ValueError:
        raise ValueError(f"Unknown {field}: {raw}")


def parse_pricing_inputs(form: dict) -> ProjectInputs:
    """Only the fields of the selected mode are range-checked against each other."""
    project_type = ProjectType(_enum_value(ProjectType, form["project_type"], "project type"))

    total_pages = parse_int(form["total_pages"], "Total pages")
    completed_pages = parse_int(form["completed_pages"], "Completed pages")
    completion = parse_int(form["completion_percentage"], "Completion percentage")

    if project_type == ProjectType.FRONTEND:
        if completed_pages is not None and completed_pages > (total_pages or 0):
            raise ValueError("Completed pages cannot exceed total pages.")
    elif completion is not None and completion > 100:
        raise ValueError("Completion percentage must be between 0 and 100.")

    return ProjectInputs(
        project_type=project_type,
        total_pages=total_pages,
        completed_pages=completed_pages,
        price_per_page=parse_decimal(form["price_per_page"], "Price per page"),
        fixed_price=parse_decimal(form["fixed_price"], "Fixed price"),
        completion_percentage=completion,
        extra_hours=parse_decimal(form["extra_hours"], "Extra hours", max_value=MAX_HOURS),
        extra_hour_rate=parse_decimal(form["extra_hour_rate"], "Extra hour rate"),
    )


def build_project_values(form: dict) -> dict:
    """
    Validates the raw form and returns every column to write, including the
    derived total_amount / payment_status. Raises ValueError on bad input.
    """
    if not form["name"].strip():
        raise ValueError("Project name is required.")
    try:
        client_id = int(form["client_id"])
    except ValueError:
        raise ValueError("Please choose a client.")

    # Step A: raw pricing inputs, already at the stored scale (two decimals)
    inputs = parse_pricing_inputs(form)
    paid_amount = parse_decimal(form["paid_amount"], "Paid amount", default=0)

    # Step B: derived fields, from the same values that will be written
    pricing = derive_pricing(inputs, paid_amount)
    if pricing.total_amount > MAX_AMOUNT:
        raise ValueError("Total amount is too large.")

    # Step C: every column of the row
    values = {
        "name": form["name"].strip(),
        "client_id": client_id,
        "status": _enum_value(ProjectStatus, form["status"], "status"),
        "priority": _enum_value(Priority, form["priority"], "priority"),
        "category": blank_to_none(form["category"]),
        "notes": blank_to_none(form["notes"]),
        "start_date": parse_date(form["start_date"], "Start date"),
        "deadline": parse_date(form["deadline"], "Deadline"),
        "estimated_hours": parse_decimal(form["estimated_hours"], "Estimated hours", max_value=MAX_HOURS),
        "actual_hours": parse_decimal(form["actual_hours"], "Actual hours", default=0, max_value=MAX_HOURS),
        "paid_amount": paid_amount,
        "total_amount": pricing.total_amount,
        "payment_status": pricing.payment_status.value,
    }
    values.update(inputs.as_columns())
    return values


async def client_exists(conn: AsyncConnection, client_id: int) -> bool:
    async with conn.cursor() as cur:
        await cur.execute("SELECT id FROM clients WHERE id = %s", (client_id,))
        return await cur.fetchone() is not None


async def list_client_options(conn: AsyncConnection) -> list[dict]:
    async with conn.cursor() as cur:
        await cur.execute("SELECT id, name FROM clients ORDER BY name ASC")
        return await cur.fetchall()


async def render_form(request: Request, conn: AsyncConnection, user: dict, project: dict,
                      is_edit: bool, error: str | None = None, message: str | None = None):
    return templates.TemplateResponse(request, "project_form.html", {
        "request": request,
        "user": user,
        "project": project,
        "is_edit": is_edit,
        "clients": await list_client_options(conn),
        "settings": await load_settings(conn),
        "error": error,
        "message": message,
    }, status_code=400 if error else 200)


# =========================================================
# 1. Project list (with filters)
# =========================================================
# 1-1. List page; every filter is optional and they combine with AND
@router.get("", response_class=HTMLResponse)
async def list_projects(
    request: Request,
    status_filter: str | None = Query(None, alias="status"),
    type_filter: str | None = Query(None, alias="type"),
    payment_filter: str | None = Query(None, alias="payment"),
    client_filter: str | None = Query(None, alias="client_id"),
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    # Step A: base query, conditions are appended below
    sql = """
        SELECT p.*, c.name AS client_name
        FROM projects p
        JOIN clients c ON p.client_id = c.id
        WHERE TRUE
    """
    params = []

    # Step B: only known enum values reach the query; anything else means "all"
    if status_filter in {s.value for s in ProjectStatus}:
        sql += " AND p.status = %s"
        params.append(status_filter)
    if type_filter in {t.value for t in ProjectType}:
        sql += " AND p.project_type = %s"
        params.append(type_filter)
    if payment_filter in {s.value for s in PaymentStatus}:
        sql += " AND p.payment_status = %s"
        params.append(payment_filter)
    if client_filter and client_filter.isdigit():
        sql += " AND p.client_id = %s"
        params.append(int(client_filter))

    sql += " ORDER BY p.created_at DESC"

    async with conn.cursor() as cur:
        await cur.execute(sql, tuple(params))
        rows = await cur.fetchall()

    # Step C: progress / days left are computed per row, never stored
    return templates.TemplateResponse(request, "projects.html", {
        "request": request,
        "user": user,
        "projects": [with_display_metrics(r) for r in rows],
        "clients": await list_client_options(conn),
        "settings": await load_settings(conn),
        "filters": {
            "status": status_filter or "",
            "type": type_filter or "",
            "payment": payment_filter or "",
            "client_id": client_filter or "",
        },
        "message": request.query_params.get("message"),
        "error": request.query_params.get("error"),
    })


# =========================================================
# 2. Create
# =========================================================
# 2-1. Empty form (GET); ?client_id=... preselects the client
@router.get("/new", response_class=HTMLResponse)
async def get_create_project_page(
    request: Request,
    client_id: int | None = None,
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    # New projects start from the configured prices
    settings = await load_settings(conn)
    defaults = {
        "client_id": client_id,
        "project_type": ProjectType.FRONTEND.value,
        "status": ProjectStatus.PENDING.value,
        "priority": Priority.MEDIUM.value,
        "price_per_page": settings.default_price_per_page,
        "fixed_price": settings.default_fixed_price,
        "extra_hour_rate": settings.default_extra_hour_rate,
        "extra_hours": 0,
        "paid_amount": 0,
        "total_amount": 0,
        "payment_status": PaymentStatus.UNPAID.value,
    }
    return await render_form(request, conn, user, defaults, is_edit=False)


# 2-2. Form submit (POST)
@router.post("/new")
async def handle_create_project(
    request: Request,
    form: dict = Depends(project_form),
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    # Step A: validate and derive; any problem re-renders the form with a 400
    try:
        values = build_project_values(form)
        if not await client_exists(conn, values["client_id"]):
            raise ValueError("Selected client does not exist.")
    except ValueError as e:
        return await render_form(request, conn, user, form, is_edit=False, error=str(e))

    # Step B: the share token is created once, here
    values["share_token"] = generate_share_token()
    columns = list(values)

    # Step C: insert
    async with conn.cursor() as cur:
        await cur.execute(
            f"""
            INSERT INTO projects ({", ".join(columns)})
            VALUES ({", ".join(["%s"] * len(columns))})
            RETURNING id
            """,
            tuple(values[c] for c in columns)
        )
        project_id = (await cur.fetchone())["id"]

    print(f"Project {project_id} created: total={values['total_amount']} status={values['payment_status']}")
    return RedirectResponse(url="/projects?message=Project+created", status_code=status.HTTP_303_SEE_OTHER)


# =========================================================
# 3. Edit
# =========================================================
async def get_project_or_404(conn: AsyncConnection, project_id: int) -> dict:
    async with conn.cursor() as cur:
        await cur.execute("SELECT * FROM projects WHERE id = %s", (project_id,))
        project = await cur.fetchone()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


# 3-1. Edit form (GET)
@router.get("/{project_id}/edit", response_class=HTMLResponse)
async def get_edit_project_page(
    request: Request,
    project_id: int,
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    project = await get_project_or_404(conn, project_id)
    return await render_form(request, conn, user, project, is_edit=True,
                             message=request.query_params.get("message"))


# 3-2. Edit submit (POST); total and payment status are derived again
@router.post("/{project_id}/edit")
async def handle_edit_project(
    request: Request,
    project_id: int,
    form: dict = Depends(project_form),
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    # Step A: the project must exist before anything is validated
    existing = await get_project_or_404(conn, project_id)

    # Step B: validate and derive exactly as on create
    try:
        values = build_project_values(form)
        if not await client_exists(conn, values["client_id"]):
            raise ValueError("Selected client does not exist.")
    except ValueError as e:
        # keep id / share_token so the page still shows the share link
        submitted = {**form, "id": existing["id"], "share_token": existing["share_token"]}
        return await render_form(request, conn, user, submitted, is_edit=True, error=str(e))

    # Step C: write every column; share_token is left untouched
    columns = list(values)
    async with conn.cursor() as cur:
        await cur.execute(
            f"UPDATE projects SET {', '.join(f'{c} = %s' for c in columns)} WHERE id = %s",
            tuple(values[c] for c in columns) + (project_id,)
        )

    return RedirectResponse(url="/projects?message=Project+updated", status_code=status.HTTP_303_SEE_OTHER)


# =========================================================
# 4. Delete / share link
# =========================================================
# 4-1. Delete (POST); RETURNING tells a missing id apart from a deleted one
@router.post("/{project_id}/delete")
async def handle_delete_project(
    project_id: int,
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    async with conn.cursor() as cur:
        await cur.execute("DELETE FROM projects WHERE id = %s RETURNING id", (project_id,))
        if not await cur.fetchone():
            raise HTTPException(status_code=404, detail="Project not found")

    return RedirectResponse(url="/projects?message=Project+deleted", status_code=status.HTTP_303_SEE_OTHER)


# 4-2. New share link; the old one stops working at once
@router.post("/{project_id}/regenerate-token")
async def handle_regenerate_project_token(
    project_id: int,
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    async with conn.cursor() as cur:
        await cur.execute(
            "UPDATE projects SET share_token = %s WHERE id = %s RETURNING id",
            (generate_share_token(), project_id)
        )
        if not await cur.fetchone():
            raise HTTPException(status_code=404, detail="Project not found")

    return RedirectResponse(url=f"/projects/{project_id}/edit?message=Share+link+renewed",
                            status_code=status.HTTP_303_SEE_OTHER)
