"""Monthly dues: paid means a row exists for (registrant, first-of-month)."""

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.datetime_utils import month_start, today, utc_now, year_months
from libs.common.logging import get_logger
from libs.db.upsert import conflict_insert
from services.attendance_service.services.marks import ensure_registration_exists
from services.dues_service.models import MonthlyDue

logger = get_logger(__name__)


async def set_month_paid(
    db: AsyncSession,
    *,
    registration_id: uuid.UUID,
    month: date,
    paid: bool,
    amount: int,
) -> bool:
    """Turn payment for the month containing ``month`` on or off.

    On inserts a row with ``amount``; a row that already exists is left alone.
    Off deletes the (registrant, month) row.
    """
    month = month_start(month)

    if paid:
        await ensure_registration_exists(db, registration_id)
        stmt = conflict_insert(db, MonthlyDue.__table__).values(
            id=uuid.uuid4(),
            registration_id=registration_id,
            month=month,
            amount=amount,
            created_at=utc_now(),
        )
        await db.execute(
            stmt.on_conflict_do_nothing(index_elements=["registration_id", "month"])
        )
    else:
        await db.execute(
            delete(MonthlyDue).where(
                MonthlyDue.registration_id == registration_id,
                MonthlyDue.month == month,
            )
        )
    await db.commit()

    logger.info(
        "Dues updated",
        extra={
            "extra_fields": {
                "registration_id": str(registration_id),
                "month": month.isoformat(),
                "paid": paid,
            }
        },
    )
    return paid


async def pay_whole_year(
    db: AsyncSession,
    *,
    registration_id: uuid.UUID,
    amount: int,
    year: Optional[int] = None,
) -> list[date]:
    """Mark every month of ``year`` (default: this year) paid in one batch.

    Upserts on (registration_id, month), so repeating it never adds rows.
    """
    await ensure_registration_exists(db, registration_id)
    year = year or today().year
    months = year_months(year)
    now = utc_now()

    stmt = conflict_insert(db, MonthlyDue.__table__).values(
        [
            {
                "id": uuid.uuid4(),
                "registration_id": registration_id,
                "month": month,
                "amount": amount,
                "created_at": now,
            }
            for month in months
        ]
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["registration_id", "month"],
        set_={"amount": stmt.excluded.amount},
    )
    await db.execute(stmt)
    await db.commit()

    logger.info(
        "Whole year paid",
        extra={"extra_fields": {"registration_id": str(registration_id), "year": year}},
    )
    return months


def paid_ids_query(month: date) -> Select:
    return select(MonthlyDue.registration_id).where(MonthlyDue.month == month_start(month))


async def paid_registration_ids(db: AsyncSession, month: date) -> set[uuid.UUID]:
    result = await db.execute(paid_ids_query(month))
    return set(result.scalars().all())
