from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from libs.auth.models import Admin
from libs.common.supabase import get_auth_gateway
from libs.common.webhook import get_webhook_notifier
from libs.db.session import get_async_db, get_session_factory
from services.admin_console.client import ApiClient
from services.gateway_service.app.main import app
from services.registrations_service.events import RegistrationFeed
from tests.factories import AdminFactory
from tests.fakes import (
    ADMIN_PASSWORD,
    FakeAccount,
    FakeAuthGateway,
    RecordingNotifier,
    make_anon_key,
    make_token,
)


@pytest.fixture
def auth_gateway() -> FakeAuthGateway:
    return FakeAuthGateway()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def registration_feed() -> RegistrationFeed:
    return RegistrationFeed()


@pytest_asyncio.fixture
async def client(
    db_session, session_factory, auth_gateway, notifier, registration_feed
) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient with the app and overridden DB, auth and webhook dependencies.
    """
    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_auth_gateway] = lambda: auth_gateway
    app.dependency_overrides[get_webhook_notifier] = lambda: notifier
    app.state.registration_feed = registration_feed

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_account(db_session, auth_gateway) -> FakeAccount:
    """An auth account that is also in the admin registry."""
    account = auth_gateway.add_account("admin@iyc.org", ADMIN_PASSWORD)
    admin: Admin = AdminFactory.create(id=account.user_id, email=account.email)
    db_session.add(admin)
    await db_session.commit()
    return account


@pytest.fixture
def admin_headers(admin_account) -> dict:
    return {
        "Authorization": f"Bearer {make_token(admin_account.user_id, admin_account.email)}"
    }


@pytest.fixture
def member_account(auth_gateway) -> FakeAccount:
    """An auth account with valid credentials but no admin rights."""
    return auth_gateway.add_account("member@iyc.org", "member-password")


@pytest.fixture
def api(client) -> ApiClient:
    """Console API client driving the in-process app."""
    return ApiClient(client, anon_key=make_anon_key())
