"""Integration tests for admin login, logout and self-registration."""

import pytest
from sqlalchemy import select

from libs.auth.models import Admin
from libs.common.supabase import AuthGatewayError
from tests.factories import AdminFactory
from tests.fakes import ADMIN_PASSWORD, make_anon_key, make_token

LOGIN_URL = "/api/v1/admin/login"
FUNCTION_URL = "/api/v1/functions/register-admin"
CODE = "IYC2025-ADMIN"
ANON_HEADERS = {"Authorization": f"Bearer {make_anon_key()}"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_login(client, admin_account):
    response = await client.post(
        LOGIN_URL, json={"email": admin_account.email, "password": ADMIN_PASSWORD}
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["user_id"] == admin_account.user_id
    assert data["token_type"] == "bearer"

    session = await client.get(
        "/api/v1/admin/session",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert session.status_code == 200
    assert session.json()["user_id"] == admin_account.user_id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_non_admin_is_signed_out(client, auth_gateway, member_account):
    response = await client.post(
        LOGIN_URL, json={"email": member_account.email, "password": "member-password"}
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Not authorized as admin"
    assert len(auth_gateway.signed_out) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_bad_credentials(client, auth_gateway, admin_account):
    response = await client.post(
        LOGIN_URL, json={"email": admin_account.email, "password": "wrong"}
    )

    assert response.status_code == 401
    assert auth_gateway.signed_out == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_auth_provider_down(client, auth_gateway, admin_account):
    auth_gateway.fail_with = AuthGatewayError("connection refused")

    response = await client.post(
        LOGIN_URL, json={"email": admin_account.email, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 502


@pytest.mark.asyncio
@pytest.mark.integration
async def test_session_rejects_expired_token(client, admin_account):
    token = make_token(admin_account.user_id, admin_account.email, expires_in=-60)

    response = await client.get(
        "/api/v1/admin/session", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_logout(client, auth_gateway, admin_headers):
    response = await client.post("/api/v1/admin/logout", headers=admin_headers)

    assert response.status_code == 204
    assert auth_gateway.signed_out == [admin_headers["Authorization"].split()[1]]


# ---------------------------------------------------------------------------
# register-admin function
# ---------------------------------------------------------------------------


async def _admin_ids(db_session):
    return list((await db_session.execute(select(Admin.id))).scalars().all())


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_admin(client, db_session, auth_gateway):
    response = await client.post(
        FUNCTION_URL,
        headers=ANON_HEADERS,
        json={"email": "new@iyc.org", "password": "longenough", "registrationCode": CODE},
    )

    assert response.status_code == 200, response.text
    assert response.json() == {"message": "Admin registered successfully"}
    assert response.headers["access-control-allow-origin"] == "*"
    assert auth_gateway.created == ["new@iyc.org"]

    account = auth_gateway.accounts["new@iyc.org"]
    assert await _admin_ids(db_session) == [account.user_id]

    login = await client.post(
        LOGIN_URL, json={"email": "new@iyc.org", "password": "longenough"}
    )
    assert login.status_code == 200


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "body",
    [
        {"email": "x@iyc.org", "password": "longenough", "registrationCode": "WRONG"},
        {"email": "x@iyc.org", "password": "longenough"},
        {"registrationCode": "WRONG"},
    ],
)
async def test_invalid_code_creates_nothing(client, db_session, auth_gateway, body):
    response = await client.post(FUNCTION_URL, json=body, headers=ANON_HEADERS)

    assert response.status_code == 403
    assert response.json() == {"error": "Invalid registration code"}
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
    assert auth_gateway.created == []
    assert await _admin_ids(db_session) == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_admin_requires_credentials(client, auth_gateway):
    response = await client.post(
        FUNCTION_URL, json={"registrationCode": CODE}, headers=ANON_HEADERS
    )

    assert response.status_code == 400
    assert "error" in response.json()
    assert auth_gateway.created == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_existing_account(client, auth_gateway, admin_account):
    response = await client.post(
        FUNCTION_URL,
        headers=ANON_HEADERS,
        json={"email": admin_account.email, "password": "longenough", "registrationCode": CODE},
    )

    assert response.status_code == 400
    assert "already been registered" in response.json()["error"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_registry_failure_leaves_account_without_rights(
    client, db_session, auth_gateway
):
    # An unrelated registry row already holds the email
    db_session.add(AdminFactory.create(email="orphan@iyc.org"))
    await db_session.commit()

    response = await client.post(
        FUNCTION_URL,
        headers=ANON_HEADERS,
        json={"email": "orphan@iyc.org", "password": "longenough", "registrationCode": CODE},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Failed to grant admin privileges"}
    assert auth_gateway.created == ["orphan@iyc.org"]

    login = await client.post(
        LOGIN_URL, json={"email": "orphan@iyc.org", "password": "longenough"}
    )
    assert login.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_admin_rejects_non_json(client):
    response = await client.post(
        FUNCTION_URL,
        content=b"not json",
        headers={**ANON_HEADERS, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Request body must be JSON"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_admin_preflight(client):
    response = await client.options(FUNCTION_URL)

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
    assert (
        response.headers["access-control-allow-headers"]
        == "Content-Type, Authorization"
    )


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "headers, error",
    [
        ({}, "Missing authorization header"),
        ({"Authorization": "Basic abc"}, "Missing authorization header"),
        (
            {"Authorization": f"Bearer {make_anon_key('another-project-secret')}"},
            "Invalid JWT",
        ),
    ],
)
async def test_register_admin_requires_project_token(
    client, db_session, auth_gateway, headers, error
):
    response = await client.post(
        FUNCTION_URL,
        headers=headers,
        json={"email": "x@iyc.org", "password": "longenough", "registrationCode": CODE},
    )

    assert response.status_code == 401
    assert response.json() == {"error": error}
    assert response.headers["access-control-allow-origin"] == "*"
    assert auth_gateway.created == []
    assert await _admin_ids(db_session) == []
