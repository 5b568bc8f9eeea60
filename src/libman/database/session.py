"""
Engine and session-factory construction.

Nothing here runs at import time: the application factory (see `libman.main`) builds
one engine per process from `Settings` and hands the session factory to the request
dependency. Repositories only ever see an injected `AsyncSession`.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from libman.config.settings import Settings


def build_engine(settings: Settings, url: str | None = None) -> AsyncEngine:
    """
    Create the AsyncEngine (and its connection pool) for the configured store.

    Args:
        settings: Application settings (pool sizing, echo flag).
        url: Optional override of `settings.DATABASE_URL`.
    """
    return create_async_engine(
        url or settings.DATABASE_URL,
        echo=settings.SQLALCHEMY_ECHO,
        pool_pre_ping=True,              # health-check connections handed out by the pool
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: values read before commit stay usable afterwards
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency. Yields a session from the app's factory and closes it after the request.

    Usage:
        async def endpoint(db: AsyncSession = Depends(get_async_session)):
            await db.execute(...)
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        yield session
