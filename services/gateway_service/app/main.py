"""FastAPI application entrypoint for the IYC registration API.

Every service router is mounted in this one process under ``/api/v1``.
"""

from __future__ import annotations

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import configure_logging
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from libs.common.supabase import AuthGateway
from services.admin_service.functions import router as functions_router
from services.admin_service.router import router as admin_router
from services.attendance_service.router import router as attendance_router
from services.directory_service.router import router as directory_router
from services.dues_service.router import router as dues_router
from services.registrations_service.events import RegistrationFeed
from services.registrations_service.router import router as registrations_router

load_dotenv()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title="IYC Registration API",
        version="0.1.0",
        description="Public registration, live counter and admin directory.",
    )

    # Process-wide handles, set eagerly so they exist without a lifespan run
    app.state.registration_feed = RegistrationFeed()
    app.state.auth_gateway = AuthGateway(settings)

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"status": "ok", "profile": settings.DEPLOYMENT_PROFILE}

    app.include_router(registrations_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")
    app.include_router(directory_router, prefix="/api/v1")
    app.include_router(attendance_router, prefix="/api/v1")
    app.include_router(dues_router, prefix="/api/v1")
    app.include_router(functions_router, prefix="/api/v1")

    return app


app = create_app()
