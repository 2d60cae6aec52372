# pricing.py
"""
Derived project numbers: total amount, payment status, progress and
days left until the deadline.

Every function here is pure. The routes call them on each create/edit so
that `total_amount` and `payment_status` are always recomputed from the raw
inputs and never taken from the submitted form.
"""
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from models.project import PaymentStatus, PricingResult, ProjectInputs

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """None -> 0. Floats go through str() so 0.1 stays 0.1."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def calculate_total_amount(inputs: ProjectInputs) -> Decimal:
    if inputs.is_page_priced:
        base = to_decimal(inputs.completed_pages) * to_decimal(inputs.price_per_page)
    else:
        completion_rate = to_decimal(inputs.completion_percentage) / HUNDRED
        base = to_decimal(inputs.fixed_price) * completion_rate

    extra = to_decimal(inputs.extra_hours) * to_decimal(inputs.extra_hour_rate)
    return base + extra


def derive_payment_status(paid_amount, total_amount) -> PaymentStatus:
    paid = to_decimal(paid_amount)
    total = to_decimal(total_amount)

    # nothing paid wins over "paid >= total", so 0 of 0 is still unpaid
    if paid <= ZERO:
        return PaymentStatus.UNPAID
    if paid >= total:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


def round_money(value) -> Decimal:
    """Half-up to cents, the scale money columns are stored at."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def derive_pricing(inputs: ProjectInputs, paid_amount) -> PricingResult:
    """
    Total and payment status as they are persisted. The total is rounded to
    cents first so the status is derived from the value that is stored
    (extra_hours * extra_hour_rate can carry four decimals).
    """
    total = round_money(calculate_total_amount(inputs))
    return PricingResult(total_amount=total, payment_status=derive_payment_status(paid_amount, total))


def calculate_progress(inputs: ProjectInputs) -> float:
    if inputs.is_page_priced:
        total_pages = inputs.total_pages or 0
        if total_pages <= 0:
            return 0.0
        return (inputs.completed_pages or 0) / total_pages * 100
    return float(inputs.completion_percentage or 0)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _as_date(value) -> date:
    if isinstance(value, datetime):
        # aware datetimes are moved to UTC first, naive ones are taken as-is
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def calculate_days_remaining(deadline, today: date | None = None) -> int | None:
    """
    Calendar days from `today` (UTC date) to `deadline`.
    0 = due today, negative = overdue by that many days, None = no deadline.
    """
    if not deadline:
        return None
    if today is None:
        today = utc_today()
    return (_as_date(deadline) - today).days


def with_display_metrics(row: dict, today: date | None = None) -> dict:
    """Copy of a project row with `progress`, `days_remaining` and `remaining_amount` added."""
    project = dict(row)
    inputs = ProjectInputs.from_row(row)
    project["progress"] = calculate_progress(inputs)
    project["days_remaining"] = calculate_days_remaining(row.get("deadline"), today)
    project["remaining_amount"] = to_decimal(row.get("total_amount")) - to_decimal(row.get("paid_amount"))
    return project
