"""Admin sign-in, sign-out and code-gated self-registration."""

import secrets
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.dependencies import is_registered_admin
from libs.auth.models import Admin
from libs.common.logging import get_logger
from libs.common.supabase import (
    AccountExistsError,
    AuthAccount,
    AuthGateway,
    AuthGatewayError,
    AuthSession,
    InvalidCredentialsError,
)

logger = get_logger(__name__)

NOT_AUTHORIZED_MESSAGE = "Not authorized as admin"
INVALID_CODE_MESSAGE = "Invalid registration code"


class AdminRegistrationError(Exception):
    """Self-registration failed; ``status_code`` is what the caller should answer."""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


async def login_admin(
    db: AsyncSession, gateway: AuthGateway, *, email: str, password: str
) -> AuthSession:
    """Sign in and confirm the account is in the admin registry.

    A valid account that is not an admin is signed straight back out, so it
    never holds a usable session.
    """
    try:
        session = await gateway.sign_in_with_password(email, password)
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        ) from exc
    except AuthGatewayError as exc:
        logger.error("Admin sign-in failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Authentication service unavailable",
        ) from exc

    if not await is_registered_admin(db, session.user_id):
        try:
            await gateway.sign_out(session.access_token)
        except AuthGatewayError as exc:
            logger.warning(
                "Could not sign out non-admin session for %s: %s", session.user_id, exc
            )
        logger.warning(
            "Non-admin sign-in rejected",
            extra={"extra_fields": {"user_id": session.user_id, "email": session.email}},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail=NOT_AUTHORIZED_MESSAGE
        )

    logger.info(
        "Admin signed in",
        extra={"extra_fields": {"user_id": session.user_id}},
    )
    return session


async def logout_admin(gateway: AuthGateway, access_token: str) -> None:
    try:
        await gateway.sign_out(access_token)
    except AuthGatewayError as exc:
        logger.error("Admin sign-out failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Authentication service unavailable",
        ) from exc


async def grant_admin(db: AsyncSession, account: AuthAccount) -> Admin:
    """Add ``account`` to the admin registry."""
    admin = Admin(id=account.user_id, email=account.email.lower())
    db.add(admin)
    await db.commit()
    return admin


async def register_admin(
    db: AsyncSession,
    gateway: AuthGateway,
    *,
    email: Optional[str],
    password: Optional[str],
    registration_code: Optional[str],
    expected_code: str,
) -> Admin:
    """Create an admin account.

    The code is checked before anything else, so a wrong code never creates an
    account. Account creation and the registry insert are two separate steps:
    if the insert fails the auth account stays behind without admin rights.
    """
    if not registration_code or not secrets.compare_digest(
        registration_code.encode(), expected_code.encode()
    ):
        logger.warning(
            "Admin registration with invalid code",
            extra={"extra_fields": {"email": email}},
        )
        raise AdminRegistrationError(
            INVALID_CODE_MESSAGE, status_code=status.HTTP_403_FORBIDDEN
        )

    if not email or not password:
        raise AdminRegistrationError("Email and password are required")

    try:
        account = await gateway.create_user(email, password)
    except AccountExistsError as exc:
        raise AdminRegistrationError(
            "A user with this email address has already been registered"
        ) from exc
    except AuthGatewayError as exc:
        raise AdminRegistrationError(str(exc)) from exc

    try:
        admin = await grant_admin(db, account)
    except SQLAlchemyError as exc:
        await db.rollback()
        # TODO: delete the orphaned auth account once the gateway exposes user deletion
        logger.error(
            "Admin registry insert failed; auth account left without admin rights",
            extra={
                "extra_fields": {
                    "user_id": account.user_id,
                    "email": account.email,
                    "error": str(exc),
                }
            },
        )
        raise AdminRegistrationError("Failed to grant admin privileges") from exc

    logger.info(
        "Admin registered",
        extra={"extra_fields": {"user_id": admin.id, "email": admin.email}},
    )
    return admin
