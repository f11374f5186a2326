"""Gate for the admin dashboard."""

import enum
from typing import Any, Callable, Optional

import httpx

from libs.common.logging import get_logger
from services.admin_console.client import AdminSession, ApiClient, ApiError

logger = get_logger(__name__)

LOGIN_PATH = "/admin/login"


class GuardState(str, enum.Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    REDIRECT = "redirect"


class SessionGuard:
    """Shows protected content only while the API accepts the admin session.

    Starts in LOADING, checks the session once on mount and again on every
    session change until unmounted.
    """

    def __init__(self, api: ApiClient):
        self.api = api
        self.state = GuardState.LOADING
        self.redirect_to: Optional[str] = None
        self.admin: Optional[dict[str, Any]] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    async def mount(self) -> GuardState:
        self._unsubscribe = self.api.on_session_change(self._on_session_change)
        return await self.evaluate()

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def evaluate(self) -> GuardState:
        if self.api.access_token is None:
            return self._redirect()
        try:
            self.admin = await self.api.get_session()
        except (ApiError, httpx.HTTPError) as exc:
            logger.info("Session check failed: %s", exc)
            return self._redirect()
        self.state = GuardState.AUTHENTICATED
        self.redirect_to = None
        return self.state

    async def _on_session_change(self, session: Optional[AdminSession]) -> None:
        if session is None:
            self._redirect()
        else:
            await self.evaluate()

    def _redirect(self) -> GuardState:
        self.admin = None
        self.state = GuardState.REDIRECT
        self.redirect_to = LOGIN_PATH
        return self.state
