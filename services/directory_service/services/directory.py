"""Admin directory: paginated fetch, edit and delete of registrants."""

import uuid
from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.logging import get_logger
from services.attendance_service.models import AttendanceMark
from services.directory_service.filters import DirectoryFilter, filter_clause
from services.dues_service.models import MonthlyDue
from services.registrations_service.models import Registration
from services.registrations_service.profiles import DeploymentProfile
from services.registrations_service.schemas import RegistrationUpdate
from services.registrations_service.services.intake import (
    DUPLICATE_EMAIL_MESSAGE,
    classify_integrity_error,
)

logger = get_logger(__name__)


async def fetch_page(
    db: AsyncSession,
    *,
    page: int,
    page_size: int,
    on_date: date,
    directory_filter: Optional[DirectoryFilter] = None,
) -> tuple[list[Registration], int]:
    """Return one page of registrants, newest first, and the exact total.

    The total counts every row matching the filter, so a page past the end
    comes back empty with the right total.
    """
    clause = filter_clause(directory_filter, on_date)

    count_query = select(func.count()).select_from(Registration)
    query = select(Registration)
    if clause is not None:
        count_query = count_query.where(clause)
        query = query.where(clause)

    total = (await db.execute(count_query)).scalar_one()

    query = (
        query.order_by(Registration.created_at.desc(), Registration.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def get_registration_or_404(
    db: AsyncSession, registration_id: uuid.UUID
) -> Registration:
    result = await db.execute(
        select(Registration).where(Registration.id == registration_id)
    )
    registration = result.scalar_one_or_none()
    if registration is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found"
        )
    return registration


async def update_registration(
    db: AsyncSession,
    registration_id: uuid.UUID,
    registration_in: RegistrationUpdate,
    *,
    profile: DeploymentProfile,
) -> Registration:
    """Persist an edit draft. Fields the profile does not let admins edit are refused."""
    update_data = registration_in.model_dump(exclude_unset=True)

    locked = sorted(set(update_data) - set(profile.editable_fields))
    if locked:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Fields not editable: {', '.join(locked)}",
        )
    errors = profile.invalid_choices(update_data)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors
        )

    registration = await get_registration_or_404(db, registration_id)
    merged = {spec.name: getattr(registration, spec.name) for spec in profile.fields}
    merged.update(update_data)
    missing = profile.missing_fields(merged)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Required fields cannot be blank: {', '.join(missing)}",
        )

    for field, value in update_data.items():
        setattr(registration, field, value)

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if classify_integrity_error(exc) == "unique":
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_EMAIL_MESSAGE
            ) from exc
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Registration update rejected",
        ) from exc

    await db.refresh(registration)
    logger.info(
        "Registration updated",
        extra={
            "extra_fields": {
                "registration_id": str(registration_id),
                "fields": sorted(update_data),
            }
        },
    )
    return registration


async def delete_registration(db: AsyncSession, registration_id: uuid.UUID) -> None:
    """Delete a registrant with its attendance marks and dues rows."""
    await get_registration_or_404(db, registration_id)

    await db.execute(
        delete(AttendanceMark).where(AttendanceMark.registration_id == registration_id)
    )
    await db.execute(
        delete(MonthlyDue).where(MonthlyDue.registration_id == registration_id)
    )
    await db.execute(delete(Registration).where(Registration.id == registration_id))
    await db.commit()

    logger.info(
        "Registration deleted",
        extra={"extra_fields": {"registration_id": str(registration_id)}},
    )
