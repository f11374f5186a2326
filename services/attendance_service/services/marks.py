"""Attendance marks: one status per registrant per calendar date."""

import uuid
from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.db.upsert import conflict_insert
from services.attendance_service.models import AttendanceMark, AttendanceStatus
from services.registrations_service.models import Registration

logger = get_logger(__name__)


async def ensure_registration_exists(db: AsyncSession, registration_id: uuid.UUID) -> None:
    result = await db.execute(
        select(Registration.id).where(Registration.id == registration_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found"
        )


async def mark_attendance(
    db: AsyncSession,
    *,
    registration_id: uuid.UUID,
    on_date: date,
    attendance_status: AttendanceStatus,
) -> AttendanceStatus:
    """Record ``attendance_status`` for the registrant on ``on_date``.

    Upsert keyed by (registration_id, date): marking again overwrites the
    status instead of adding a row, also when two admins race.
    """
    await ensure_registration_exists(db, registration_id)

    now = utc_now()
    stmt = conflict_insert(db, AttendanceMark.__table__).values(
        id=uuid.uuid4(),
        registration_id=registration_id,
        date=on_date,
        status=attendance_status,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["registration_id", "date"],
        set_={"status": stmt.excluded.status, "updated_at": stmt.excluded.updated_at},
    )
    await db.execute(stmt)
    await db.commit()

    logger.info(
        "Attendance marked",
        extra={
            "extra_fields": {
                "registration_id": str(registration_id),
                "date": on_date.isoformat(),
                "status": attendance_status.value,
            }
        },
    )
    return attendance_status


async def unmark_attendance(
    db: AsyncSession, *, registration_id: uuid.UUID, on_date: date
) -> bool:
    """Delete the mark. Returns False if there was none."""
    result = await db.execute(
        delete(AttendanceMark).where(
            AttendanceMark.registration_id == registration_id,
            AttendanceMark.date == on_date,
        )
    )
    await db.commit()
    return result.rowcount > 0


async def get_attendance_map(
    db: AsyncSession, on_date: date
) -> dict[uuid.UUID, AttendanceStatus]:
    result = await db.execute(
        select(AttendanceMark.registration_id, AttendanceMark.status).where(
            AttendanceMark.date == on_date
        )
    )
    return {registration_id: mark for registration_id, mark in result.all()}


async def get_attendance_stats(db: AsyncSession, on_date: date) -> dict[str, int]:
    """Present/Absent totals for the date across every registrant."""
    result = await db.execute(
        select(AttendanceMark.status, func.count())
        .where(AttendanceMark.date == on_date)
        .group_by(AttendanceMark.status)
    )
    counts = {mark: total for mark, total in result.all()}
    return {
        "present": counts.get(AttendanceStatus.PRESENT, 0),
        "absent": counts.get(AttendanceStatus.ABSENT, 0),
    }


def marked_ids_query(
    on_date: date, attendance_status: Optional[AttendanceStatus] = None
) -> Select:
    """Registrant ids marked on ``on_date``, optionally only with one status."""
    query = select(AttendanceMark.registration_id).where(AttendanceMark.date == on_date)
    if attendance_status is not None:
        query = query.where(AttendanceMark.status == attendance_status)
    return query

