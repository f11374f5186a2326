"""Login and admin self-registration screens."""

from typing import Optional

import httpx
from email_validator import EmailNotValidError, validate_email

from services.admin_console.client import ApiClient, ApiError
from services.admin_console.guard import LOGIN_PATH
from services.admin_console.notifications import Notifications

DASHBOARD_PATH = "/admin/dashboard"
MIN_PASSWORD_LENGTH = 8


def _email_error(email: str) -> Optional[str]:
    if not email.strip():
        return "Email is required"
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return "Invalid email address"
    return None


class _Screen:
    def __init__(self, api: ApiClient):
        self.api = api
        self.redirect_to: Optional[str] = None
        self.loading = False
        self.errors: dict[str, str] = {}
        self.notifications = Notifications()

    async def mount(self) -> None:
        """Send an already signed-in admin straight to the dashboard."""
        if self.api.access_token is None:
            return
        try:
            await self.api.get_session()
        except (ApiError, httpx.HTTPError):
            return
        self.redirect_to = DASHBOARD_PATH


class LoginScreen(_Screen):
    def validate(self, email: str, password: str) -> dict[str, str]:
        errors = {}
        email_error = _email_error(email)
        if email_error:
            errors["email"] = email_error
        if not password:
            errors["password"] = "Password is required"
        return errors

    async def submit(self, email: str, password: str) -> bool:
        self.errors = self.validate(email, password)
        if self.errors or self.loading:
            return False

        self.loading = True
        try:
            await self.api.login(email.strip(), password)
        except ApiError as exc:
            self.notifications.error(exc.detail or "Failed to login")
            return False
        except httpx.HTTPError:
            self.notifications.error("Failed to login")
            return False
        finally:
            self.loading = False

        self.notifications.success("Login successful!")
        self.redirect_to = DASHBOARD_PATH
        return True


class AdminRegistrationScreen(_Screen):
    def validate(self, email: str, password: str, registration_code: str) -> dict[str, str]:
        errors = {}
        email_error = _email_error(email)
        if email_error:
            errors["email"] = email_error
        if not password:
            errors["password"] = "Password is required"
        elif len(password) < MIN_PASSWORD_LENGTH:
            errors["password"] = (
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if not registration_code.strip():
            errors["registration_code"] = "Registration code is required"
        return errors

    async def submit(self, email: str, password: str, registration_code: str) -> bool:
        self.errors = self.validate(email, password, registration_code)
        if self.errors or self.loading:
            return False

        self.loading = True
        try:
            await self.api.register_admin(
                email.strip(), password, registration_code.strip()
            )
        except ApiError as exc:
            self.notifications.error(
                exc.detail or "Registration failed. Please try again."
            )
            return False
        except httpx.HTTPError:
            self.notifications.error("Registration failed. Please try again.")
            return False
        finally:
            self.loading = False

        self.notifications.success("Admin registered successfully")
        self.redirect_to = LOGIN_PATH
        return True
