from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.models import Admin, AuthUser
from libs.common.config import get_settings
from libs.db.session import get_async_db

settings = get_settings()
security = HTTPBearer(auto_error=False)


def verify_project_token(token: str) -> dict:
    """
    Check a Supabase JWT (HS256) was issued for this project and return its
    claims. Any role passes, including the public anon key.
    """
    return jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=["HS256"],
        options={"verify_aud": False},  # Supabase tokens vary in aud
    )


def decode_access_token(token: str) -> AuthUser:
    """Validate a Supabase JWT and return its user claims."""
    return AuthUser(**verify_project_token(token))


async def get_access_token(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(security)
    ],
) -> str:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_user(
    token: Annotated[str, Depends(get_access_token)],
) -> AuthUser:
    """
    Validate the bearer token and return the authenticated user.
    """
    try:
        return decode_access_token(token)
    except (JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def is_registered_admin(db: AsyncSession, user_id: str) -> bool:
    result = await db.execute(select(Admin.id).where(Admin.id == user_id))
    return result.scalar_one_or_none() is not None


async def require_admin(
    current_user: Annotated[AuthUser, Depends(get_current_user)],
    db: AsyncSession = Depends(get_async_db),
) -> AuthUser:
    """
    Ensure the authenticated user is in the admin registry.

    Checked on every request; nothing about the session is cached.
    """
    if not await is_registered_admin(db, current_user.user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized as admin",
        )
    return current_user
