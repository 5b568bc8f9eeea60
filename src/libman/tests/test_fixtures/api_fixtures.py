"""Fixtures for HTTP API tests."""

from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libman.config import Settings
from libman.main import create_app


@pytest.fixture
def app(session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """
    Application wired to the test store.

    ASGITransport does not run the lifespan, so the session factory is handed in
    directly and logging stays as configured by conftest.
    """
    settings = Settings(ENV="testing", STORE_TIMEOUT_SECONDS=5.0)
    return create_app(settings, session_factory=session_factory)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c
