"""Admin directory dashboard state.

Every API call is caught at the call site and turned into a notification, so
a failed action leaves the view usable and can simply be retried.
"""

import math
from datetime import date
from typing import Any, Optional

import httpx

from libs.common.datetime_utils import month_start, nearest_sunday
from libs.common.logging import get_logger
from services.admin_console.client import ApiClient, ApiError
from services.admin_console.notifications import Notifications

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 10
_FAILURES = (ApiError, httpx.HTTPError)


class DirectoryView:
    def __init__(self, api: ApiClient, on_date: Optional[date] = None):
        self.api = api
        self.page = 1
        self.page_size = DEFAULT_PAGE_SIZE
        self.filter: Optional[str] = None
        self.date = on_date or nearest_sunday()

        self.profile: Optional[dict[str, Any]] = None
        self.registrants: list[dict[str, Any]] = []
        self.total = 0
        self.attendance: dict[str, str] = {}
        self.paid: set[str] = set()
        self.stats = {"present": 0, "absent": 0}

        self.loading = False
        self.pending: set[tuple[str, str]] = set()
        self.editing_id: Optional[str] = None
        self.draft: Optional[dict[str, Any]] = None
        self.notifications = Notifications()

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def editable_fields(self) -> list[str]:
        return self.profile["editable_fields"] if self.profile else []

    # Loading

    async def load(self) -> None:
        """Fetch the page, attendance, dues and stats for the current state."""
        if self.profile is None:
            try:
                self.profile = await self.api.get_admin_profile()
            except _FAILURES as exc:
                self._fail("Failed to load profile", exc)
        await self.refresh_page()
        await self.load_attendance()
        await self.load_paid()
        await self.refresh_stats()

    async def refresh_page(self) -> None:
        self.loading = True
        try:
            data = await self.api.list_registrations(
                page=self.page, on_date=self.date, filter=self.filter
            )
        except _FAILURES as exc:
            self._fail("Failed to fetch registrations", exc)
            return
        finally:
            self.loading = False

        self.registrants = data["items"]
        self.total = data["total"]
        self.page_size = data["page_size"]

        # The row being edited may have been filtered or paged away
        if self.editing_id is not None and self.editing_id not in {
            r["id"] for r in self.registrants
        }:
            self.cancel_edit()

    async def load_attendance(self) -> None:
        try:
            self.attendance = await self.api.get_attendance(self.date)
        except _FAILURES as exc:
            self._fail("Failed to fetch attendance", exc)

    async def load_paid(self) -> None:
        try:
            self.paid = await self.api.get_paid(month_start(self.date))
        except _FAILURES as exc:
            self._fail("Failed to fetch payment status", exc)

    async def refresh_stats(self) -> None:
        try:
            self.stats = await self.api.get_attendance_stats(self.date)
        except _FAILURES as exc:
            logger.warning("Could not refresh attendance stats: %s", exc)

    # Navigation

    async def set_page(self, page: int) -> None:
        self.page = max(1, page)
        await self.load()

    async def next_page(self) -> None:
        if self.page < self.total_pages:
            await self.set_page(self.page + 1)

    async def previous_page(self) -> None:
        if self.page > 1:
            await self.set_page(self.page - 1)

    async def set_filter(self, value: Optional[str]) -> None:
        self.filter = value or None
        self.page = 1
        await self.load()

    async def set_date(self, value: date) -> None:
        self.date = value
        await self.load()

    # Attendance

    async def mark(self, registration_id: str, status: str) -> bool:
        """Optimistically mark attendance; reload the date's marks on failure."""
        key = ("attendance", registration_id)
        self.attendance[registration_id] = status
        self.pending.add(key)
        try:
            await self.api.mark_attendance(registration_id, self.date, status)
        except _FAILURES as exc:
            self._fail("Failed to update attendance", exc)
            await self.load_attendance()
            return False
        finally:
            self.pending.discard(key)
            await self.refresh_stats()

        self.notifications.success(f"Marked as {status}")
        return True

    async def unmark(self, registration_id: str) -> bool:
        key = ("attendance", registration_id)
        self.pending.add(key)
        try:
            await self.api.unmark_attendance(registration_id, self.date)
        except _FAILURES as exc:
            self._fail("Failed to update attendance", exc)
            return False
        finally:
            self.pending.discard(key)

        self.attendance.pop(registration_id, None)
        await self.refresh_stats()
        return True

    # Dues

    async def toggle_paid(self, registration_id: str) -> bool:
        key = ("dues", registration_id)
        paid = registration_id not in self.paid
        self.pending.add(key)
        try:
            await self.api.set_paid(registration_id, month_start(self.date), paid)
        except _FAILURES as exc:
            self._fail("Failed to update payment status", exc)
            await self.load_paid()
            return False
        finally:
            self.pending.discard(key)

        if paid:
            self.paid.add(registration_id)
        else:
            self.paid.discard(registration_id)
        self.notifications.success("Payment status updated")
        return True

    async def pay_year(self, registration_id: str) -> bool:
        key = ("dues", registration_id)
        self.pending.add(key)
        try:
            result = await self.api.pay_year(registration_id)
        except _FAILURES as exc:
            self._fail("Failed to record yearly payment", exc)
            return False
        finally:
            self.pending.discard(key)

        self.notifications.success(f"Marked paid for {result['year']}")
        await self.load_paid()
        return True

    # Editing

    def begin_edit(self, registrant: dict[str, Any]) -> None:
        self.editing_id = registrant["id"]
        self.draft = {name: registrant.get(name) for name in self.editable_fields}

    def change_field(self, name: str, value: Any) -> None:
        if self.draft is None or name not in self.editable_fields:
            return
        self.draft[name] = value

    def cancel_edit(self) -> None:
        self.editing_id = None
        self.draft = None

    async def save(self) -> bool:
        if self.editing_id is None or self.draft is None:
            return False
        try:
            await self.api.update_registration(self.editing_id, self.draft)
        except _FAILURES as exc:
            self._fail("Failed to update registration", exc)
            return False

        self.notifications.success("Registration updated successfully")
        self.cancel_edit()
        await self.refresh_page()
        return True

    # Deletion

    async def delete(self, registration_id: str) -> bool:
        try:
            await self.api.delete_registration(registration_id)
        except _FAILURES as exc:
            self._fail("Failed to delete registration", exc)
            return False

        self.notifications.success("Registration deleted")
        if len(self.registrants) == 1 and self.page > 1:
            await self.set_page(self.page - 1)
        else:
            await self.load()
        return True

    def _fail(self, message: str, exc: Exception) -> None:
        logger.warning("%s: %s", message, exc)
        self.notifications.error(message)
