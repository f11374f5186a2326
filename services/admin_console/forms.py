"""Public registration form."""

from typing import Any, AsyncIterable, Optional

import httpx
from email_validator import EmailNotValidError, validate_email

from libs.common.logging import get_logger
from services.admin_console.client import ApiClient, ApiError
from services.admin_console.notifications import Notifications

logger = get_logger(__name__)

DUPLICATE_EMAIL_MESSAGE = "This email address has already been registered."
GENERIC_FAILURE_MESSAGE = "Registration failed. Please try again."


class RegistrationForm:
    """Form state for the fields the deployment profile collects.

    ``profile`` is the description served by ``GET /registrations/profile``.
    """

    def __init__(self, api: ApiClient, profile: Optional[dict[str, Any]] = None):
        self.api = api
        self.profile = profile
        self.values: dict[str, Any] = {}
        self.errors: dict[str, str] = {}
        self.count: Optional[int] = None
        self.submitting = False
        self.notifications = Notifications()

    async def load(self) -> None:
        if self.profile is None:
            self.profile = await self.api.get_profile()
        await self.refresh_count()

    @property
    def fields(self) -> list[dict[str, Any]]:
        return self.profile["fields"] if self.profile else []

    def set_field(self, name: str, value: Any) -> None:
        self.values[name] = value
        self.errors.pop(name, None)

    def validate(self) -> dict[str, str]:
        errors = {}
        for spec in self.fields:
            name = spec["name"]
            value = self.values.get(name)
            blank = value is None or (isinstance(value, str) and not value.strip())
            if blank:
                if spec["required"]:
                    errors[name] = f"{spec['label']} is required"
                continue
            if spec["choices"] and value not in spec["choices"]:
                errors[name] = f"{spec['label']} must be one of: {', '.join(spec['choices'])}"

        email = self.values.get("email")
        if "email" not in errors and email:
            try:
                validate_email(str(email).strip(), check_deliverability=False)
            except EmailNotValidError:
                errors["email"] = "Invalid email address"
        return errors

    def payload(self) -> dict[str, Any]:
        data = {}
        for spec in self.fields:
            value = self.values.get(spec["name"])
            if isinstance(value, str):
                value = value.strip() or None
            data[spec["name"]] = value
        return data

    def reset(self) -> None:
        self.values = {}
        self.errors = {}

    async def submit(self) -> bool:
        """Send the form. A submit while one is in flight is ignored."""
        if self.submitting:
            return False

        self.errors = self.validate()
        if self.errors:
            return False

        self.submitting = True
        self.notifications.info("Submitting registration...")
        try:
            await self.api.submit_registration(self.payload())
        except ApiError as exc:
            if exc.status_code == 409:
                self.notifications.error(DUPLICATE_EMAIL_MESSAGE)
            elif exc.status_code == 422:
                self.notifications.error(exc.detail or GENERIC_FAILURE_MESSAGE)
            else:
                self.notifications.error(GENERIC_FAILURE_MESSAGE)
            return False
        except httpx.HTTPError as exc:
            logger.warning("Registration request failed: %s", exc)
            self.notifications.error(GENERIC_FAILURE_MESSAGE)
            return False
        finally:
            self.submitting = False

        self.notifications.success("Registration successful!")
        self.reset()
        await self.refresh_count()
        return True

    async def refresh_count(self) -> Optional[int]:
        try:
            self.count = await self.api.get_count()
        except (ApiError, httpx.HTTPError) as exc:
            logger.warning("Could not fetch registration count: %s", exc)
        return self.count

    def apply_live_count(self, count: int) -> None:
        """Take a count pushed by the live counter feed."""
        self.count = count

    async def follow_live_count(self, messages: AsyncIterable[dict[str, Any]]) -> None:
        """Apply every ``{"count": n}`` pushed by the live counter socket.

        Runs until the socket closes; the caller cancels it when the form is
        torn down.
        """
        async for message in messages:
            if "count" in message:
                self.apply_live_count(int(message["count"]))
