import os
from typing import AsyncGenerator

# Settings are read at import time; point them at the test database first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "development"
os.environ.setdefault("DEPLOYMENT_PROFILE", "conference")
os.environ.pop("REGISTRATION_WEBHOOK_URL", None)

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.common.config import get_settings
from libs.db.base import Base

# Import all models so metadata includes every table
from libs.auth import models as _auth_models  # noqa: F401
from services.attendance_service import models as _attendance_models  # noqa: F401
from services.dues_service import models as _dues_models  # noqa: F401
from services.registrations_service import models as _registration_models  # noqa: F401

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
settings = get_settings()


@pytest_asyncio.fixture
async def test_engine():
    """
    A fresh in-memory SQLite database per test.
    StaticPool keeps the single connection alive for the engine's lifetime.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield the session shared by the test body and every request it makes.
    """
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()
