import uuid
from datetime import date

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.attendance_service.schemas import (
    AttendanceMarkIn,
    AttendanceMarkResponse,
    AttendanceSheet,
    AttendanceStats,
)
from services.attendance_service.services.marks import (
    get_attendance_map,
    get_attendance_stats,
    mark_attendance,
    unmark_attendance,
)

router = APIRouter(prefix="/admin/attendance", tags=["admin-attendance"])


@router.get("/", response_model=AttendanceSheet)
async def get_attendance_sheet(
    date: date,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Every attendance mark for a date (Admin only)."""
    return AttendanceSheet(date=date, marks=await get_attendance_map(db, date))


@router.get("/stats", response_model=AttendanceStats)
async def get_attendance_summary(
    date: date,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Present/Absent totals for a date, ignoring any directory filter."""
    counts = await get_attendance_stats(db, date)
    return AttendanceStats(date=date, **counts)


@router.put("/{registration_id}/{on_date}", response_model=AttendanceMarkResponse)
async def put_attendance_mark(
    registration_id: uuid.UUID,
    on_date: date,
    mark_in: AttendanceMarkIn,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Mark a registrant present or absent. Idempotent upsert.
    """
    recorded = await mark_attendance(
        db,
        registration_id=registration_id,
        on_date=on_date,
        attendance_status=mark_in.status,
    )
    return AttendanceMarkResponse(
        registration_id=registration_id, date=on_date, status=recorded
    )


@router.delete("/{registration_id}/{on_date}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance_mark(
    registration_id: uuid.UUID,
    on_date: date,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Remove the mark so the registrant shows as unmarked."""
    await unmark_attendance(db, registration_id=registration_id, on_date=on_date)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
