"""slowapi limiter shared by the public intake and admin login routes.

Storage is in-process memory unless RATE_LIMIT_STORAGE_URI points at Redis,
which is needed once the API runs with more than one worker.
"""

from functools import lru_cache
from typing import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


def client_address(request: Request) -> str:
    """Originating client IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


@lru_cache
def get_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=client_address,
        default_limits=[settings.RATE_LIMIT_DEFAULT],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Answer 429 with the window that was exceeded."""
    logger.warning(
        "Rate limit exceeded",
        extra={
            "extra_fields": {
                "client": client_address(request),
                "path": request.url.path,
                "limit": exc.detail,
            }
        },
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many requests ({exc.detail}). Please wait and try again.",
            "code": "RATE_LIMIT_EXCEEDED",
        },
        headers={"Retry-After": "60"},
    )


def intake_limit(func: Callable) -> Callable:
    """Limit anonymous registration submissions per client."""
    return limiter.limit(lambda: get_settings().RATE_LIMIT_INTAKE)(func)


def auth_limit(func: Callable) -> Callable:
    """Limit admin sign-in attempts per client."""
    return limiter.limit(lambda: get_settings().RATE_LIMIT_LOGIN)(func)
