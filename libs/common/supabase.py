"""Supabase Auth access behind an explicitly constructed gateway handle.

The gateway is created once per application (see ``create_app``) and handed to
routers through the ``get_auth_gateway`` dependency, so tests can swap it for a
fake without touching module globals.

The supabase client is synchronous; every call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

from libs.common.config import Settings
from libs.common.logging import get_logger
from supabase import AuthApiError, AuthError, Client, ClientOptions, create_client

logger = get_logger(__name__)


class AuthGatewayError(Exception):
    """The auth provider failed or rejected the request."""


class InvalidCredentialsError(AuthGatewayError):
    """Email/password pair was rejected."""


class AccountExistsError(AuthGatewayError):
    """An auth account with this email already exists."""


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    refresh_token: Optional[str]
    expires_at: Optional[int]
    user_id: str
    email: str


@dataclass(frozen=True)
class AuthAccount:
    user_id: str
    email: str


def _is_already_registered_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return (
        "already registered" in message
        or "already been registered" in message
        or "already exists" in message
        or getattr(exc, "code", None) == "email_exists"
    )


class AuthGateway:
    """Password sign-in, sign-out and account creation against Supabase Auth."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._admin_client: Optional[Client] = None

    def _session_client(self) -> Client:
        # A fresh client per sign-in keeps sessions from leaking between users.
        return create_client(
            self.settings.SUPABASE_URL,
            self.settings.SUPABASE_ANON_KEY,
            options=ClientOptions(persist_session=False, auto_refresh_token=False),
        )

    @property
    def admin_client(self) -> Client:
        if self._admin_client is None:
            self._admin_client = create_client(
                self.settings.SUPABASE_URL,
                self.settings.SUPABASE_SERVICE_ROLE_KEY,
                options=ClientOptions(persist_session=False, auto_refresh_token=False),
            )
        return self._admin_client

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        client = self._session_client()
        try:
            response = await asyncio.to_thread(
                client.auth.sign_in_with_password,
                {"email": email, "password": password},
            )
        except AuthApiError as exc:
            if exc.status in (400, 401):
                raise InvalidCredentialsError(str(exc)) from exc
            raise AuthGatewayError(str(exc)) from exc
        except (AuthError, httpx.HTTPError) as exc:
            raise AuthGatewayError(str(exc)) from exc

        session = response.session
        user = response.user
        if session is None or user is None:
            raise InvalidCredentialsError("Sign-in did not return a session")

        return AuthSession(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_at=session.expires_at,
            user_id=str(user.id),
            email=user.email or email,
        )

    async def sign_out(self, access_token: str) -> None:
        """Revoke every refresh token of the session's user."""
        try:
            await asyncio.to_thread(self.admin_client.auth.admin.sign_out, access_token)
        except (AuthError, httpx.HTTPError) as exc:
            raise AuthGatewayError(str(exc)) from exc

    async def create_user(self, email: str, password: str) -> AuthAccount:
        """Create a confirmed account with the service role."""
        try:
            response = await asyncio.to_thread(
                self.admin_client.auth.admin.create_user,
                {"email": email, "password": password, "email_confirm": True},
            )
        except (AuthError, httpx.HTTPError) as exc:
            if _is_already_registered_error(exc):
                raise AccountExistsError(str(exc)) from exc
            raise AuthGatewayError(str(exc)) from exc

        user = response.user
        logger.info(
            "Created Supabase auth user",
            extra={"extra_fields": {"user_id": str(user.id), "email": email}},
        )
        return AuthAccount(user_id=str(user.id), email=user.email or email)


def get_auth_gateway(request: Request) -> AuthGateway:
    """FastAPI dependency returning the application's auth gateway."""
    return request.app.state.auth_gateway
