import secrets
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from fastapi.templating import Jinja2Templates

from pricing import CENT, to_decimal

# --- 1. Paths ---
BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

# --- 2. Display labels and badge colours ---
STATUS_LABELS = {
    "pending": "Pending",
    "in-progress": "In progress",
    "completed": "Completed",
    "on-hold": "On hold",
}
STATUS_COLORS = {
    "pending": "bg-yellow",
    "in-progress": "bg-blue",
    "completed": "bg-green",
    "on-hold": "bg-gray",
}
PROJECT_TYPE_LABELS = {
    "frontend": "Frontend",
    "backend": "Backend",
    "fullstack": "Full-Stack",
}
PROJECT_TYPE_COLORS = {
    "frontend": "bg-purple",
    "backend": "bg-orange",
    "fullstack": "bg-indigo",
}
PRIORITY_LABELS = {"low": "Low", "medium": "Medium", "high": "High"}
PRIORITY_COLORS = {"low": "bg-green", "medium": "bg-yellow", "high": "bg-red"}
PAYMENT_STATUS_LABELS = {"unpaid": "Unpaid", "partial": "Partially paid", "paid": "Paid"}
PAYMENT_STATUS_COLORS = {"unpaid": "bg-red", "partial": "bg-yellow", "paid": "bg-green"}
CLIENT_TYPE_LABELS = {"individual": "Individual", "corporate": "Corporate"}

# fewer days left than this: highlighted, and listed as upcoming on the dashboard
DEADLINE_WARNING_DAYS = 7


def generate_share_token() -> str:
    """32 hex chars, used for /share/... and /portal/... links"""
    return secrets.token_hex(16)


# --- 3. Formatting (registered as Jinja filters below) ---
def format_currency(amount, currency: str = "TRY") -> str:
    value = to_decimal(amount).quantize(Decimal("0.01"))
    return f"{value:,.2f} {currency}"


def format_date(value) -> str:
    if not value:
        return "-"
    if isinstance(value, datetime):
        return value.strftime("%d.%m.%Y %H:%M")
    if isinstance(value, date):
        return value.strftime("%d.%m.%Y")
    try:
        return date.fromisoformat(str(value)[:10]).strftime("%d.%m.%Y")
    except ValueError:
        return str(value)


def format_percent(value) -> str:
    return f"{round(float(value or 0))}%"


def days_remaining_text(days: int | None) -> str:
    if days is None:
        return "No deadline"
    if days == 0:
        return "Due today"
    if days < 0:
        return f"{abs(days)} days overdue"
    return f"{days} days left"


def paid_ratio(paid, total) -> float:
    """Share of `total` already paid, 0..100 (capped) for progress bars."""
    total = to_decimal(total)
    if total <= 0:
        return 0.0
    return min(float(to_decimal(paid) / total * 100), 100.0)


# --- 4. Form parsing ---
# HTML forms send every field as text; an empty field means "not filled in".
# Bounds follow the column types in init_db.py so nothing is rounded or
# overflows on write: NUMERIC(12, 2) money, NUMERIC(8, 2) hours, INT counts.
MAX_AMOUNT = Decimal("9999999999.99")
MAX_HOURS = Decimal("999999.99")
MAX_INT = 2_147_483_647


def parse_decimal(raw: str | None, field: str, default: Decimal | None = None,
                  max_value: Decimal = MAX_AMOUNT) -> Decimal | None:
    """
    Text -> Decimal with two decimal places.
    1. Empty -> `default`.
    2. "12,5" is read as 12.5.
    3. Rejects non-numbers, negatives, values above `max_value` and more
       than two decimal places.
    """
    if raw is None or raw.strip() == "":
        return default
    try:
        value = Decimal(raw.strip().replace(",", "."))
    except InvalidOperation:
        raise ValueError(f"{field} must be a number")
    if not value.is_finite():
        raise ValueError(f"{field} must be a number")
    if value < 0:
        raise ValueError(f"{field} cannot be negative")
    if value > max_value:
        raise ValueError(f"{field} is too large")
    if value != value.quantize(CENT):
        raise ValueError(f"{field} can have at most 2 decimal places")
    return value.quantize(CENT)


def parse_int(raw: str | None, field: str, default: int | None = None,
              max_value: int = MAX_INT) -> int | None:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{field} must be a whole number")
    if value < 0:
        raise ValueError(f"{field} cannot be negative")
    if value > max_value:
        raise ValueError(f"{field} is too large")
    return value


def parse_date(raw: str | None, field: str) -> date | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        raise ValueError(f"{field} must be a date (YYYY-MM-DD)")


def blank_to_none(raw: str | None) -> str | None:
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


# --- 5. Template engine ---
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters.update({
    "currency": format_currency,
    "date": format_date,
    "percent": format_percent,
    "days_text": days_remaining_text,
})
templates.env.globals.update({
    "STATUS_LABELS": STATUS_LABELS,
    "STATUS_COLORS": STATUS_COLORS,
    "PROJECT_TYPE_LABELS": PROJECT_TYPE_LABELS,
    "PROJECT_TYPE_COLORS": PROJECT_TYPE_COLORS,
    "PRIORITY_LABELS": PRIORITY_LABELS,
    "PRIORITY_COLORS": PRIORITY_COLORS,
    "PAYMENT_STATUS_LABELS": PAYMENT_STATUS_LABELS,
    "PAYMENT_STATUS_COLORS": PAYMENT_STATUS_COLORS,
    "CLIENT_TYPE_LABELS": CLIENT_TYPE_LABELS,
    "DEADLINE_WARNING_DAYS": DEADLINE_WARNING_DAYS,
    "paid_ratio": paid_ratio,
})
