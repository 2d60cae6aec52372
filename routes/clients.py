from fastapi import APIRouter, Depends, Request, Form, HTTPException, status
from fastapi.responses import HTMLResponse, RedirectResponse
from psycopg import AsyncConnection

from db import getDB
from models.client import ClientType, client_from_row, dump_tags, parse_tags
from routes.auth import get_current_admin_user
from utils import templates, blank_to_none, generate_share_token

router = APIRouter()


def validate_client_form(name: str, client_type: str, email: str, phone: str,
                         company: str, notes: str, tags: str) -> dict:
    """Returns the cleaned column values or raises ValueError with a user-facing message."""
    if not name.strip():
        raise ValueError("Client name is required.")
    try:
        ctype = ClientType(client_type)
    except ValueError:
        raise ValueError("Unknown client type.")
    email = blank_to_none(email)
    if email and "@" not in email:
        raise ValueError("E-mail address is not valid.")
    return {
        "name": name.strip(),
        "type": ctype.value,
        "email": email,
        "phone": blank_to_none(phone),
        "company": blank_to_none(company),
        "notes": blank_to_none(notes),
        "tags": parse_tags(tags),
    }


async def get_client_or_404(conn: AsyncConnection, client_id: int) -> dict:
    async with conn.cursor() as cur:
        await cur.execute("SELECT * FROM clients WHERE id = %s", (client_id,))
        client = await cur.fetchone()
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client_from_row(client)


# =========================================================
# 1. Client list
# =========================================================
# 1-1. All clients, newest first, each with its number of projects
@router.get("", response_class=HTMLResponse)
async def list_clients(
    request: Request,
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    # LEFT JOIN so clients without projects are listed with 0
    async with conn.cursor() as cur:
        await cur.execute(
            """
            SELECT c.*, COUNT(p.id) AS project_count
            FROM clients c
            LEFT JOIN projects p ON p.client_id = c.id
            GROUP BY c.id
            ORDER BY c.created_at DESC
            """
        )
        rows = await cur.fetchall()

    return templates.TemplateResponse(request, "clients.html", {
        "request": request,
        "user": user,
        "clients": [client_from_row(r) for r in rows],  # tags decoded to lists
        "message": request.query_params.get("message"),
        "error": request.query_params.get("error"),
    })


# =========================================================
# 2. Create
# =========================================================
# 2-1. Empty form (GET)
@router.get("/new", response_class=HTMLResponse)
async def get_create_client_page(request: Request, user: dict = Depends(get_current_admin_user)):
    return templates.TemplateResponse(request, "client_form.html", {
        "request": request, "user": user, "client": None
    })


# 2-2. Form submit (POST)
@router.post("/new")
async def handle_create_client(
    request: Request,
    name: str = Form(""),
    type: str = Form(ClientType.INDIVIDUAL.value),
    email: str = Form(""),
    phone: str = Form(""),
    company: str = Form(""),
    notes: str = Form(""),
    tags: str = Form(""),
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    # Step A: validate; the submitted values are shown again on error
    try:
        data = validate_client_form(name, type, email, phone, company, notes, tags)
    except ValueError as e:
        return templates.TemplateResponse(request, "client_form.html", {
            "request": request, "user": user, "client": None, "error": str(e),
            "form": {"name": name, "type": type, "email": email, "phone": phone,
                     "company": company, "notes": notes, "tags": tags},
        }, status_code=400)

    # Step B: insert; tags as JSON text, a fresh portal token
    async with conn.cursor() as cur:
        await cur.execute(
            """
            INSERT INTO clients (name, type, email, phone, company, notes, tags, share_token)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id
            """,
            (data["name"], data["type"], data["email"], data["phone"], data["company"],
             data["notes"], dump_tags(data["tags"]), generate_share_token())
        )

    return RedirectResponse(url="/clients?message=Client+created", status_code=status.HTTP_303_SEE_OTHER)


# =========================================================
# 3. Edit
# =========================================================
# 3-1. Edit form (GET), with the portal link
@router.get("/{client_id}/edit", response_class=HTMLResponse)
async def get_edit_client_page(
    request: Request,
    client_id: int,
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    client = await get_client_or_404(conn, client_id)
    return templates.TemplateResponse(request, "client_form.html", {
        "request": request, "user": user, "client": client,
        "message": request.query_params.get("message"),
    })


# 3-2. Edit submit (POST)
@router.post("/{client_id}/edit")
async def handle_edit_client(
    request: Request,
    client_id: int,
    name: str = Form(""),
    type: str = Form(ClientType.INDIVIDUAL.value),
    email: str = Form(""),
    phone: str = Form(""),
    company: str = Form(""),
    notes: str = Form(""),
    tags: str = Form(""),
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    # Step A: 404 for unknown ids, then the same validation as on create
    client = await get_client_or_404(conn, client_id)
    try:
        data = validate_client_form(name, type, email, phone, company, notes, tags)
    except ValueError as e:
        return templates.TemplateResponse(request, "client_form.html", {
            "request": request, "user": user, "client": client, "error": str(e),
            "form": {"name": name, "type": type, "email": email, "phone": phone,
                     "company": company, "notes": notes, "tags": tags},
        }, status_code=400)

    # Step B: update; share_token is left untouched
    async with conn.cursor() as cur:
        await cur.execute(
            """
            UPDATE clients
            SET name = %s, type = %s, email = %s, phone = %s, company = %s, notes = %s, tags = %s
            WHERE id = %s
            """,
            (data["name"], data["type"], data["email"], data["phone"], data["company"],
             data["notes"], dump_tags(data["tags"]), client_id)
        )

    return RedirectResponse(url="/clients?message=Client+updated", status_code=status.HTTP_303_SEE_OTHER)


# =========================================================
# 4. Delete / share link
# =========================================================
# 4-1. Delete (POST)
@router.post("/{client_id}/delete")
async def handle_delete_client(
    client_id: int,
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    """A client that still owns projects cannot be deleted."""
    async with conn.cursor() as cur:
        # Step A: refuse while projects still point at this client
        await cur.execute("SELECT COUNT(*) AS count FROM projects WHERE client_id = %s", (client_id,))
        if (await cur.fetchone())["count"] > 0:
            return RedirectResponse(
                url="/clients?error=Client+has+projects+and+cannot+be+deleted",
                status_code=status.HTTP_303_SEE_OTHER,
            )

        # Step B: delete; no row back means the id did not exist
        await cur.execute("DELETE FROM clients WHERE id = %s RETURNING id", (client_id,))
        if not await cur.fetchone():
            raise HTTPException(status_code=404, detail="Client not found")

    return RedirectResponse(url="/clients?message=Client+deleted", status_code=status.HTTP_303_SEE_OTHER)


# 4-2. New portal link (POST)
@router.post("/{client_id}/regenerate-token")
async def handle_regenerate_client_token(
    client_id: int,
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    """Old portal links stop working immediately."""
    async with conn.cursor() as cur:
        await cur.execute(
            "UPDATE clients SET share_token = %s WHERE id = %s RETURNING id",
            (generate_share_token(), client_id)
        )
        if not await cur.fetchone():
            raise HTTPException(status_code=404, detail="Client not found")

    return RedirectResponse(url=f"/clients/{client_id}/edit?message=Share+link+renewed",
                            status_code=status.HTTP_303_SEE_OTHER)
