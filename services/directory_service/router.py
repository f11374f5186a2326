"""Admin directory router."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.config import Settings, get_settings
from libs.common.datetime_utils import nearest_sunday
from libs.db.session import get_async_db
from services.directory_service.filters import parse_filter_or_422
from services.directory_service.schemas import RegistrationPage
from services.directory_service.services.directory import (
    delete_registration,
    fetch_page,
    update_registration,
)
from services.registrations_service.profiles import DeploymentProfile, get_profile
from services.registrations_service.schemas import (
    RegistrationResponse,
    RegistrationUpdate,
)

router = APIRouter(prefix="/admin", tags=["admin-directory"])


@router.get("/profile")
async def get_admin_profile(
    current_user: AuthUser = Depends(require_admin),
    profile: DeploymentProfile = Depends(get_profile),
):
    """Fields shown, editable and filterable in this deployment."""
    return profile.describe()


@router.get("/registrations", response_model=RegistrationPage)
async def list_registrations(
    page: int = Query(1, ge=1),
    filter: Optional[str] = None,
    date: Optional[date] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    profile: DeploymentProfile = Depends(get_profile),
    settings: Settings = Depends(get_settings),
):
    """
    List registrants, newest first, one page at a time.
    ``date`` scopes attendance and payment filters; it defaults to the nearest Sunday.
    """
    on_date = date or nearest_sunday()
    directory_filter = parse_filter_or_422(filter, profile)
    items, total = await fetch_page(
        db,
        page=page,
        page_size=settings.DIRECTORY_PAGE_SIZE,
        on_date=on_date,
        directory_filter=directory_filter,
    )
    return RegistrationPage(
        items=[RegistrationResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=settings.DIRECTORY_PAGE_SIZE,
        filter=str(directory_filter) if directory_filter else None,
        date=on_date,
    )


@router.patch("/registrations/{registration_id}", response_model=RegistrationResponse)
async def patch_registration(
    registration_id: uuid.UUID,
    registration_in: RegistrationUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    profile: DeploymentProfile = Depends(get_profile),
):
    """Save an admin's edit draft."""
    return await update_registration(db, registration_id, registration_in, profile=profile)


@router.delete(
    "/registrations/{registration_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def remove_registration(
    registration_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a registrant and everything recorded against them."""
    await delete_registration(db, registration_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
