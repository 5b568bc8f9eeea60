"""
Core pytest configuration for the entire test suite.

Only the store setup and shared utilities live here. Domain fixtures (repositories,
book factories, the HTTP client) are in:
- tests/test_fixtures/repository_fixtures.py
- tests/test_fixtures/api_fixtures.py
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import AsyncGenerator
from urllib.parse import urlparse

# -------------------------------
# Early logging tuning
# -------------------------------
# Keep this block above the libman imports so collection stays quiet.
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
    "httpx",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from libman.config import Settings, get_settings
from libman.core.logging.builder import setup_logging
from libman.database.base import Base
from libman.models import book  # noqa: F401 - registers the books table with Base.metadata

settings = get_settings()
logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """
    Install the application logging config once for the session (text format, DEBUG,
    console only) so repository trace events reach `caplog`.
    """
    setup_logging(Settings(LOG_TO_STDOUT=True, LOG_FORMAT="text", LOG_LEVEL="DEBUG"))
    yield


# ------------------------------------------------------------------------------------------------
# Test database URL
# ------------------------------------------------------------------------------------------------

def safe_log_db_url(db_url: str) -> str:
    """Return the URL without credentials (scheme, host, port and database only)."""
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname or ''}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url(tmp_path: Path) -> str:
    """
    Pick the store for a test.

    1. `TEST_DATABASE_URL` (CI override, e.g. a PostgreSQL instance);
    2. the app's DATABASE_URL when TESTING=true and TEST_POSTGRES_DB is set;
    3. a throwaway SQLite file under the test's tmp_path.
    """
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url
    if settings.TESTING and settings.TEST_POSTGRES_DB:
        return settings.DATABASE_URL
    return f"sqlite+aiosqlite:///{tmp_path / 'libman_test.db'}"


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------

@pytest.fixture()
async def async_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """
    One engine per test with freshly created tables.

    Repository code commits through its caller, and the concurrency tests need
    several sessions that see each other's commits, so isolation comes from a new
    store (or a drop_all) per test rather than from an enclosing transaction.
    """
    url = get_test_database_url(tmp_path)
    logger.debug("Using test DB: %s", safe_log_db_url(url))

    engine = create_async_engine(url, echo=False, pool_pre_ping=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


# Shared fixtures
from .test_fixtures.repository_fixtures import (  # noqa: E402
    book_repository,
    sample_book_data,
    create_book,
    created_book,
    multiple_books,
)
from .test_fixtures.api_fixtures import (  # noqa: E402
    app,
    client,
)
