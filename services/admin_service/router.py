"""Admin identity router: login, logout and session check."""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.dependencies import get_access_token, get_current_user, require_admin
from libs.auth.models import AuthUser
from libs.common.rate_limit import auth_limit
from libs.common.supabase import AuthGateway, get_auth_gateway
from libs.db.session import get_async_db
from services.admin_service.schemas import (
    AdminIdentity,
    AdminLogin,
    AdminSessionResponse,
)
from services.admin_service.services.identity import login_admin, logout_admin

router = APIRouter(prefix="/admin", tags=["admin-auth"])


@router.post("/login", response_model=AdminSessionResponse)
@auth_limit
async def login(
    request: Request,
    credentials: AdminLogin,
    db: AsyncSession = Depends(get_async_db),
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    """
    Sign in with email and password.
    Only accounts in the admin registry receive a session.
    """
    session = await login_admin(
        db, gateway, email=credentials.email, password=credentials.password
    )
    return AdminSessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
        user_id=session.user_id,
        email=session.email,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    current_user: AuthUser = Depends(get_current_user),
    access_token: str = Depends(get_access_token),
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    """End the caller's session."""
    await logout_admin(gateway, access_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/session", response_model=AdminIdentity)
async def get_session(current_user: AuthUser = Depends(require_admin)):
    """Return the signed-in admin; 401/403 when there is none."""
    return AdminIdentity(user_id=current_user.user_id, email=current_user.email)
