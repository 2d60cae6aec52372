from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from models.project import ProjectInputs, ProjectType
from pricing import calculate_days_remaining, calculate_progress, derive_pricing, to_decimal
from routes.auth import get_current_admin_user
from utils import MAX_AMOUNT, MAX_HOURS, MAX_INT

router = APIRouter()


# Body sent by static/project_form.js whenever a pricing field changes.
# Same bounds and two-decimal scale as the form parsers in utils.py.
class PricingPreviewRequest(BaseModel):
    project_type: ProjectType = ProjectType.FRONTEND
    total_pages: int | None = Field(None, ge=0, le=MAX_INT)
    completed_pages: int | None = Field(None, ge=0, le=MAX_INT)
    price_per_page: Decimal | None = Field(None, ge=0, le=MAX_AMOUNT, decimal_places=2)
    fixed_price: Decimal | None = Field(None, ge=0, le=MAX_AMOUNT, decimal_places=2)
    completion_percentage: int | None = Field(None, ge=0, le=100)
    extra_hours: Decimal | None = Field(None, ge=0, le=MAX_HOURS, decimal_places=2)
    extra_hour_rate: Decimal | None = Field(None, ge=0, le=MAX_AMOUNT, decimal_places=2)
    paid_amount: Decimal | None = Field(None, ge=0, le=MAX_AMOUNT, decimal_places=2)
    deadline: date | None = None


class PricingPreviewResponse(BaseModel):
    total_amount: Decimal
    payment_status: str
    progress: float
    remaining_amount: Decimal
    days_remaining: int | None = None


@router.post("/pricing/preview", response_model=PricingPreviewResponse)
async def preview_pricing(
    body: PricingPreviewRequest,
    user: dict = Depends(get_current_admin_user),
):
    """
    Same derivation the save handlers use, so the form shows exactly
    what will be stored.
    """
    inputs = ProjectInputs(
        project_type=body.project_type,
        total_pages=body.total_pages,
        completed_pages=body.completed_pages,
        price_per_page=body.price_per_page,
        fixed_price=body.fixed_price,
        completion_percentage=body.completion_percentage,
        extra_hours=body.extra_hours,
        extra_hour_rate=body.extra_hour_rate,
    )
    pricing = derive_pricing(inputs, body.paid_amount)

    return PricingPreviewResponse(
        total_amount=pricing.total_amount,
        payment_status=pricing.payment_status.value,
        progress=calculate_progress(inputs),
        remaining_amount=pricing.total_amount - to_decimal(body.paid_amount),
        days_remaining=calculate_days_remaining(body.deadline),
    )
