"""Tests for the console screens, driven against the in-process API."""

import asyncio
from datetime import date

import pytest
from sqlalchemy import select

from libs.common.datetime_utils import today
from services.admin_console.client import AdminSession, ApiError
from services.admin_console.directory import DirectoryView
from services.admin_console.forms import DUPLICATE_EMAIL_MESSAGE, RegistrationForm
from services.admin_console.guard import LOGIN_PATH, GuardState, SessionGuard
from services.admin_console.identity import (
    DASHBOARD_PATH,
    AdminRegistrationScreen,
    LoginScreen,
)
from services.dues_service.models import MonthlyDue
from services.gateway_service.app.main import app
from tests.asgi import AsgiWebSocket
from tests.factories import RegistrationFactory, registration_payload
from tests.fakes import ADMIN_PASSWORD, make_token

SUNDAY = date(2025, 3, 2)


# ---------------------------------------------------------------------------
# Session guard
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_guard_redirects_without_session(api):
    guard = SessionGuard(api)
    assert guard.state == GuardState.LOADING

    assert await guard.mount() == GuardState.REDIRECT
    assert guard.redirect_to == LOGIN_PATH


@pytest.mark.asyncio
@pytest.mark.integration
async def test_guard_follows_session_changes(api, admin_account):
    guard = SessionGuard(api)
    await guard.mount()
    assert guard.state == GuardState.REDIRECT

    await api.login(admin_account.email, ADMIN_PASSWORD)
    assert guard.state == GuardState.AUTHENTICATED
    assert guard.admin["user_id"] == admin_account.user_id

    await api.logout()
    assert guard.state == GuardState.REDIRECT

    guard.unmount()
    await api.login(admin_account.email, ADMIN_PASSWORD)
    assert guard.state == GuardState.REDIRECT


@pytest.mark.asyncio
@pytest.mark.integration
async def test_rejected_token_clears_session(api, admin_account):
    await api.set_session(
        AdminSession(
            access_token=make_token(admin_account.user_id, admin_account.email, expires_in=-1),
            user_id=admin_account.user_id,
            email=admin_account.email,
        )
    )
    guard = SessionGuard(api)

    assert await guard.mount() == GuardState.REDIRECT
    assert api.session is None


# ---------------------------------------------------------------------------
# Login and registration screens
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_non_admin_never_reaches_dashboard(api, auth_gateway, member_account):
    screen = LoginScreen(api)

    assert await screen.submit(member_account.email, "member-password") is False
    assert screen.notifications.errors == ["Not authorized as admin"]
    assert screen.redirect_to is None
    assert api.session is None
    assert len(auth_gateway.signed_out) == 1

    guard = SessionGuard(api)
    assert await guard.mount() == GuardState.REDIRECT


@pytest.mark.asyncio
@pytest.mark.integration
async def test_login_screen(api, admin_account):
    screen = LoginScreen(api)
    assert screen.validate("", "") == {
        "email": "Email is required",
        "password": "Password is required",
    }

    assert await screen.submit(admin_account.email, ADMIN_PASSWORD) is True
    assert screen.redirect_to == DASHBOARD_PATH

    # An already signed-in admin skips the form
    again = LoginScreen(api)
    await again.mount()
    assert again.redirect_to == DASHBOARD_PATH


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_registration_screen(api, auth_gateway):
    screen = AdminRegistrationScreen(api)

    assert await screen.submit("new@iyc.org", "short", "") is False
    assert screen.errors == {
        "password": "Password must be at least 8 characters",
        "registration_code": "Registration code is required",
    }
    assert auth_gateway.created == []

    assert await screen.submit("new@iyc.org", "longenough", "WRONG") is False
    assert screen.notifications.errors == ["Invalid registration code"]

    assert await screen.submit("new@iyc.org", "longenough", "IYC2025-ADMIN") is True
    assert screen.redirect_to == LOGIN_PATH
    assert auth_gateway.created == ["new@iyc.org"]


# ---------------------------------------------------------------------------
# Registration form
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_registration_form(api):
    form = RegistrationForm(api)
    await form.load()
    assert form.count == 0

    assert await form.submit() is False
    assert form.errors["full_name"] == "Full name is required"
    assert form.errors["shirt_size"] == "Shirt size is required"

    payload = registration_payload(email="form@example.com")
    for name, value in payload.items():
        form.set_field(name, value)
    assert await form.submit() is True
    assert form.count == 1
    assert form.values == {}
    assert form.notifications.last.message == "Registration successful!"

    for name, value in payload.items():
        form.set_field(name, value)
    assert await form.submit() is False
    assert form.notifications.errors == [DUPLICATE_EMAIL_MESSAGE]
    assert form.count == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_registration_form_ignores_submit_in_flight(api):
    form = RegistrationForm(api)
    await form.load()
    for name, value in registration_payload().items():
        form.set_field(name, value)

    form.submitting = True
    assert await form.submit() is False
    assert await api.get_count() == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_registration_form_follows_live_count(api, client, db_session):
    form = RegistrationForm(api)
    await form.load()

    async with AsgiWebSocket(app, "/api/v1/registrations/count/live") as websocket:
        assert await websocket.receive_json() == {"count": 0}
        follower = asyncio.create_task(form.follow_live_count(websocket.messages()))
        try:
            # Someone else registers; this form never submits
            response = await client.post(
                "/api/v1/registrations/", json=registration_payload()
            )
            assert response.status_code == 201

            await asyncio.wait_for(_until(lambda: form.count == 1), 1)
        finally:
            follower.cancel()
            await asyncio.gather(follower, return_exceptions=True)


async def _until(predicate) -> None:
    while not predicate():
        await asyncio.sleep(0.01)


# ---------------------------------------------------------------------------
# Directory view
# ---------------------------------------------------------------------------


async def _signed_in_view(api, admin_account) -> DirectoryView:
    await api.login(admin_account.email, ADMIN_PASSWORD)
    view = DirectoryView(api, on_date=SUNDAY)
    await view.load()
    return view


@pytest.mark.asyncio
@pytest.mark.integration
async def test_deleting_last_row_moves_to_previous_page(api, db_session, admin_account):
    registrants = RegistrationFactory.create_batch(21)
    db_session.add_all(registrants)
    await db_session.commit()

    view = await _signed_in_view(api, admin_account)
    assert view.total_pages == 3
    await view.set_page(3)
    assert len(view.registrants) == 1

    assert await view.delete(view.registrants[0]["id"]) is True
    assert view.page == 2
    assert view.total == 20
    assert len(view.registrants) == 10


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_refreshes_in_place(api, db_session, admin_account):
    db_session.add_all(RegistrationFactory.create_batch(3))
    await db_session.commit()

    view = await _signed_in_view(api, admin_account)
    assert await view.delete(view.registrants[1]["id"]) is True
    assert view.page == 1
    assert len(view.registrants) == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_mark_is_optimistic_and_reconciled(api, db_session, admin_account):
    registration = RegistrationFactory.create()
    db_session.add(registration)
    await db_session.commit()
    view = await _signed_in_view(api, admin_account)
    registration_id = str(registration.id)

    assert await view.mark(registration_id, "Present") is True
    assert view.attendance == {registration_id: "Present"}
    assert view.stats == {"present": 1, "absent": 0}
    assert view.pending == set()

    assert await view.unmark(registration_id) is True
    assert view.attendance == {}
    assert view.stats == {"present": 0, "absent": 0}

    # A failed write reloads the authoritative map for the date
    assert await view.mark("00000000-0000-0000-0000-000000000000", "Absent") is False
    assert view.attendance == {}
    assert view.notifications.errors == ["Failed to update attendance"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_dues_actions(api, db_session, admin_account):
    registration = RegistrationFactory.create()
    db_session.add(registration)
    await db_session.commit()
    view = await _signed_in_view(api, admin_account)
    registration_id = str(registration.id)

    assert await view.toggle_paid(registration_id) is True
    assert view.paid == {registration_id}
    assert await view.toggle_paid(registration_id) is True
    assert view.paid == set()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_pay_year_uses_current_year_not_selected_date(api, db_session, admin_account):
    registration = RegistrationFactory.create()
    db_session.add(registration)
    await db_session.commit()
    await api.login(admin_account.email, ADMIN_PASSWORD)
    this_year = today().year
    # The default Sunday can already fall in January of next year
    view = DirectoryView(api, on_date=date(this_year + 1, 1, 3))
    await view.load()

    assert await view.pay_year(str(registration.id)) is True
    assert view.notifications.last.message == f"Marked paid for {this_year}"
    assert view.paid == set()

    months = (
        await db_session.execute(
            select(MonthlyDue.month).where(MonthlyDue.registration_id == registration.id)
        )
    ).scalars().all()
    assert {month.year for month in months} == {this_year}

    await view.set_date(today())
    assert view.paid == {str(registration.id)}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_filter_change_resets_page_and_exits_edit(api, db_session, admin_account):
    db_session.add_all(
        RegistrationFactory.create_batch(15, gender="Male")
        + RegistrationFactory.create_batch(2, gender="Female")
    )
    await db_session.commit()
    view = await _signed_in_view(api, admin_account)
    await view.set_page(2)
    male = next(r for r in view.registrants if r["gender"] == "Male")

    view.begin_edit(male)
    assert "goals" not in view.draft
    view.change_field("full_name", "Edited")
    view.change_field("goals", "ignored")
    assert view.draft["full_name"] == "Edited"
    assert "goals" not in view.draft

    await view.set_filter("gender:Female")
    assert view.page == 1
    assert view.total == 2
    assert view.editing_id is None
    assert view.draft is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_save_edit(api, db_session, admin_account):
    registration = RegistrationFactory.create(full_name="Before")
    db_session.add(registration)
    await db_session.commit()
    view = await _signed_in_view(api, admin_account)

    view.begin_edit(view.registrants[0])
    view.change_field("full_name", "After")
    assert await view.save() is True
    assert view.editing_id is None
    assert view.registrants[0]["full_name"] == "After"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_failures_become_notifications(api, db_session, admin_account):
    view = await _signed_in_view(api, admin_account)

    await view.set_filter("goals:anything")
    assert view.notifications.errors == ["Failed to fetch registrations"]

    with pytest.raises(ApiError):
        await api.list_registrations(page=1, on_date=SUNDAY, filter="goals:anything")
