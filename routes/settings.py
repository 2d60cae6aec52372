from fastapi import APIRouter, Depends, Request, Form, status
from fastapi.responses import HTMLResponse, RedirectResponse
from psycopg import AsyncConnection

from db import getDB
from models.settings import DEFAULT_SETTINGS, NUMERIC_KEYS, Settings
from routes.auth import get_current_admin_user
from utils import templates, parse_decimal

router = APIRouter()

# form field -> label used in validation messages
NUMERIC_LABELS = {
    "default_price_per_page": "Default price per page",
    "default_extra_hour_rate": "Default extra hour rate",
    "default_fixed_price": "Default fixed price",
    "tax_rate": "Tax rate",
}


async def load_settings(conn: AsyncConnection) -> Settings:
    async with conn.cursor() as cur:
        await cur.execute("SELECT key, value FROM settings")
        rows = await cur.fetchall()
    return Settings.from_rows(rows)


# 1. Settings page (GET)
@router.get("", response_class=HTMLResponse)
async def get_settings_page(
    request: Request,
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    settings = await load_settings(conn)
    return templates.TemplateResponse(request, "settings.html", {
        "request": request,
        "user": user,
        "settings": settings,
        "message": request.query_params.get("message"),
        "error": request.query_params.get("error"),
    })


# 2. Save (POST); every key is written, missing rows are created
@router.post("")
async def handle_update_settings(
    request: Request,
    default_price_per_page: str = Form("0"),
    default_extra_hour_rate: str = Form("0"),
    default_fixed_price: str = Form("0"),
    company_name: str = Form(""),
    company_email: str = Form(""),
    company_phone: str = Form(""),
    company_address: str = Form(""),
    company_website: str = Form(""),
    tax_rate: str = Form("0"),
    currency: str = Form("TRY"),
    language: str = Form("tr"),
    user: dict = Depends(get_current_admin_user),
    conn: AsyncConnection = Depends(getDB),
):
    submitted = {
        "default_price_per_page": default_price_per_page,
        "default_extra_hour_rate": default_extra_hour_rate,
        "default_fixed_price": default_fixed_price,
        "company_name": company_name.strip(),
        "company_email": company_email.strip(),
        "company_phone": company_phone.strip(),
        "company_address": company_address.strip(),
        "company_website": company_website.strip(),
        "tax_rate": tax_rate,
        "currency": currency.strip().upper() or DEFAULT_SETTINGS["currency"],
        "language": language.strip() or DEFAULT_SETTINGS["language"],
    }

    # Numbers are validated here and stored back as plain text
    try:
        for key in NUMERIC_KEYS:
            value = parse_decimal(submitted[key], NUMERIC_LABELS[key], default=0)
            submitted[key] = str(value)
    except ValueError as e:
        return templates.TemplateResponse(request, "settings.html", {
            "request": request,
            "user": user,
            "settings": Settings.from_rows([{"key": k, "value": v} for k, v in submitted.items()]),
            "error": str(e),
        }, status_code=400)

    # Upsert one row per key
    async with conn.cursor() as cur:
        for key, value in submitted.items():
            await cur.execute(
                """
                INSERT INTO settings (key, value) VALUES (%s, %s)
                ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
                """,
                (key, value)
            )

    return RedirectResponse(url="/settings?message=Settings+saved", status_code=status.HTTP_303_SEE_OTHER)
