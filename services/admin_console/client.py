"""Async client for the registration API, used by the console screens.

Holds the admin session (access token) and tells subscribers whenever it
changes: after login, after logout and when the API rejects the token.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from libs.common.logging import get_logger

logger = get_logger(__name__)

API_PREFIX = "/api/v1"

SessionListener = Callable[[Optional["AdminSession"]], Union[Awaitable[None], None]]


class ApiError(Exception):
    """Non-2xx answer from the API."""

    def __init__(self, status_code: int, detail: str, payload: Any = None):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.payload = payload


@dataclass(frozen=True)
class AdminSession:
    access_token: str
    user_id: str
    email: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


def _error_detail(response: httpx.Response) -> tuple[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase, None

    if isinstance(payload, dict):
        detail = payload.get("detail", payload.get("error"))
        if isinstance(detail, list):
            detail = "; ".join(
                item.get("msg", str(item)) if isinstance(item, dict) else str(item)
                for item in detail
            )
        if detail:
            return str(detail), payload
    return response.reason_phrase, payload


class ApiClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        prefix: str = API_PREFIX,
        anon_key: Optional[str] = None,
    ):
        self.http = http
        self.prefix = prefix
        # Public project key, sent where no admin session exists yet
        self.anon_key = anon_key
        self.session: Optional[AdminSession] = None
        self._listeners: list[SessionListener] = []

    @property
    def access_token(self) -> Optional[str]:
        return self.session.access_token if self.session else None

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to session changes. Returns the unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def set_session(self, session: Optional[AdminSession]) -> None:
        self.session = session
        for listener in list(self._listeners):
            result = listener(session)
            if inspect.isawaitable(result):
                await result

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Any:
        headers = {}
        token = token or self.access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        response = await self.http.request(
            method, f"{self.prefix}{path}", json=json, params=params, headers=headers
        )

        if response.status_code >= 400:
            detail, payload = _error_detail(response)
            if response.status_code == 401 and token and token == self.access_token:
                logger.info("Session rejected by the API; clearing it")
                await self.set_session(None)
            raise ApiError(response.status_code, detail, payload)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Public
    async def get_profile(self) -> dict[str, Any]:
        return await self.request("GET", "/registrations/profile")

    async def get_count(self) -> int:
        return (await self.request("GET", "/registrations/count"))["count"]

    async def submit_registration(self, data: dict[str, Any]) -> dict[str, Any]:
        return await self.request("POST", "/registrations/", json=data)

    # Identity
    async def login(self, email: str, password: str) -> AdminSession:
        data = await self.request(
            "POST", "/admin/login", json={"email": email, "password": password}
        )
        session = AdminSession(
            access_token=data["access_token"],
            user_id=data["user_id"],
            email=data["email"],
            refresh_token=data.get("refresh_token"),
            expires_at=data.get("expires_at"),
        )
        await self.set_session(session)
        return session

    async def logout(self) -> None:
        try:
            if self.session is not None:
                await self.request("POST", "/admin/logout")
        finally:
            await self.set_session(None)

    async def get_session(self) -> dict[str, Any]:
        return await self.request("GET", "/admin/session")

    async def register_admin(
        self, email: str, password: str, registration_code: str
    ) -> dict[str, Any]:
        return await self.request(
            "POST",
            "/functions/register-admin",
            json={
                "email": email,
                "password": password,
                "registrationCode": registration_code,
            },
            token=self.anon_key,
        )

    # Directory
    async def get_admin_profile(self) -> dict[str, Any]:
        return await self.request("GET", "/admin/profile")

    async def list_registrations(
        self, *, page: int, on_date: date, filter: Optional[str] = None
    ) -> dict[str, Any]:
        return await self.request(
            "GET",
            "/admin/registrations",
            params={"page": page, "filter": filter, "date": on_date.isoformat()},
        )

    async def update_registration(
        self, registration_id: str, draft: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.request(
            "PATCH", f"/admin/registrations/{registration_id}", json=draft
        )

    async def delete_registration(self, registration_id: str) -> None:
        await self.request("DELETE", f"/admin/registrations/{registration_id}")

    async def get_attendance(self, on_date: date) -> dict[str, str]:
        data = await self.request(
            "GET", "/admin/attendance/", params={"date": on_date.isoformat()}
        )
        return data["marks"]

    async def get_attendance_stats(self, on_date: date) -> dict[str, int]:
        data = await self.request(
            "GET", "/admin/attendance/stats", params={"date": on_date.isoformat()}
        )
        return {"present": data["present"], "absent": data["absent"]}

    async def mark_attendance(
        self, registration_id: str, on_date: date, status: str
    ) -> None:
        await self.request(
            "PUT",
            f"/admin/attendance/{registration_id}/{on_date.isoformat()}",
            json={"status": status},
        )

    async def unmark_attendance(self, registration_id: str, on_date: date) -> None:
        await self.request(
            "DELETE", f"/admin/attendance/{registration_id}/{on_date.isoformat()}"
        )

    async def get_paid(self, month: date) -> set[str]:
        data = await self.request(
            "GET", "/admin/dues/", params={"month": month.isoformat()}
        )
        return set(data["registration_ids"])

    async def set_paid(self, registration_id: str, month: date, paid: bool) -> None:
        await self.request(
            "PUT",
            f"/admin/dues/{registration_id}/{month.isoformat()}",
            json={"paid": paid},
        )

    async def pay_year(
        self, registration_id: str, year: Optional[int] = None
    ) -> dict[str, Any]:
        return await self.request(
            "POST", f"/admin/dues/{registration_id}/year", json={"year": year}
        )
