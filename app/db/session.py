"""
Engine and session factories.

API requests get a session through `get_db`; every scheduled lifecycle job
opens its own through `get_async_session_context`. Both commit on success and
roll back on any error.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    # Scheduled jobs hold no connection between runs; drop dead ones on checkout
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """One unit of work: commit when the block succeeds, roll back otherwise."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency wrapping the request in one unit of work."""
    async with get_async_session_context() as session:
        yield session
