from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libs.db.config import AsyncSessionLocal


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; closed when the response is sent."""
    async with AsyncSessionLocal() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    The session factory itself, for the live-count websocket which opens a
    short session per count query instead of holding one open per socket.
    """
    return AsyncSessionLocal
