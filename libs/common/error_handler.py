"""Global exception handlers for consistent error responses.

HTTPExceptions raised by routers and services keep FastAPI's default
``{"detail": ...}`` shape. Anything that escapes unhandled is logged and mapped
to a JSON body carrying a machine-readable ``code``.
"""

from fastapi import FastAPI, Request, status
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import JSONResponse

from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)


def _error_response(status_code: int, detail: str, code: str) -> JSONResponse:
    content = {"detail": detail, "code": code}
    request_id = get_request_id()
    if request_id:
        content["request_id"] = request_id
    return JSONResponse(status_code=status_code, content=content)


async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    logger.error(
        "Database error",
        exc_info=exc,
        extra={"extra_fields": {"error": str(exc), "path": request.url.path}},
    )
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "The database is unavailable right now. Please try again.",
        "DATABASE_ERROR",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        exc_info=exc,
        extra={"extra_fields": {"error": str(exc), "path": request.url.path}},
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Something went wrong. Please try again.",
        "INTERNAL_ERROR",
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register the global exception handlers on ``app``."""
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
