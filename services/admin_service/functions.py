"""``register-admin`` function endpoint.

Called cross-origin by the web client with the project's anon key as bearer
token. It answers its own CORS preflight and reports failures as
``{"error": ...}`` rather than FastAPI's ``detail``.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.dependencies import verify_project_token
from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger
from libs.common.supabase import AuthGateway, get_auth_gateway
from libs.db.session import get_async_db
from services.admin_service.schemas import AdminRegistrationRequest
from services.admin_service.services.identity import (
    AdminRegistrationError,
    register_admin,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/functions", tags=["functions"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"error": message}, headers=CORS_HEADERS
    )


@router.options("/register-admin")
async def register_admin_preflight():
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.post("/register-admin")
async def register_admin_function(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
    gateway: AuthGateway = Depends(get_auth_gateway),
    settings: Settings = Depends(get_settings),
):
    """Create an admin account when the registration code matches."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return _error("Missing authorization header", status.HTTP_401_UNAUTHORIZED)
    try:
        verify_project_token(token)
    except JWTError:
        return _error("Invalid JWT", status.HTTP_401_UNAUTHORIZED)

    try:
        body = await request.json()
    except ValueError:
        return _error("Request body must be JSON", status.HTTP_400_BAD_REQUEST)

    try:
        payload = AdminRegistrationRequest.model_validate(body)
    except ValidationError:
        return _error(
            "Email, password and registration code must be strings",
            status.HTTP_400_BAD_REQUEST,
        )

    try:
        await register_admin(
            db,
            gateway,
            email=payload.email,
            password=payload.password,
            registration_code=payload.registration_code,
            expected_code=settings.ADMIN_REGISTRATION_CODE,
        )
    except AdminRegistrationError as exc:
        return _error(exc.message, exc.status_code)

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"message": "Admin registered successfully"},
        headers=CORS_HEADERS,
    )
