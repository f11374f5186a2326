import uuid
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import month_start, today
from libs.db.session import get_async_db
from services.dues_service.schemas import (
    DuesStatus,
    DuesToggle,
    PaidRegistrations,
    YearPaymentIn,
    YearPaymentResponse,
)
from services.dues_service.services.dues import (
    paid_registration_ids,
    pay_whole_year,
    set_month_paid,
)

router = APIRouter(prefix="/admin/dues", tags=["admin-dues"])


@router.get("/", response_model=PaidRegistrations)
async def list_paid_registrations(
    month: date,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Registrants who paid for the month containing ``month`` (Admin only)."""
    ids = await paid_registration_ids(db, month)
    return PaidRegistrations(month=month_start(month), registration_ids=sorted(ids, key=str))


@router.put("/{registration_id}/{month}", response_model=DuesStatus)
async def toggle_month_paid(
    registration_id: uuid.UUID,
    month: date,
    toggle: DuesToggle,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings),
):
    """Mark the month paid (insert) or unpaid (delete)."""
    paid = await set_month_paid(
        db,
        registration_id=registration_id,
        month=month,
        paid=toggle.paid,
        amount=settings.MONTHLY_DUES_AMOUNT,
    )
    return DuesStatus(registration_id=registration_id, month=month_start(month), paid=paid)


@router.post("/{registration_id}/year", response_model=YearPaymentResponse)
async def pay_year(
    registration_id: uuid.UUID,
    payment_in: YearPaymentIn,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings),
):
    """Mark all twelve months of a year paid. Idempotent."""
    year = payment_in.year or today().year
    months = await pay_whole_year(
        db,
        registration_id=registration_id,
        amount=settings.MONTHLY_DUES_AMOUNT,
        year=year,
    )
    return YearPaymentResponse(
        registration_id=registration_id,
        year=year,
        months=months,
        amount=settings.MONTHLY_DUES_AMOUNT,
    )
