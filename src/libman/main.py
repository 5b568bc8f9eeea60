"""
Application factory and process entry point.

    uvicorn --factory libman.main:create_app
    libman-api                      # same, using HTTP_HOST / HTTP_PORT from Settings
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libman.api.v1 import router as v1_router
from libman.api.v1.error_handlers import register_exception_handlers
from libman.config.settings import Settings, get_settings
from libman.core.logging import RequestIDMiddleware, setup_logging
from libman.database.base import Base
from libman.database.session import build_engine, build_session_factory
from libman.utils.project import get_project_name, get_project_version

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    setup_logging(settings)

    engine = None
    if app.state.session_factory is None:
        engine = build_engine(settings)
        app.state.session_factory = build_session_factory(engine)
        if settings.CREATE_TABLES_ON_STARTUP:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("app.startup.tables_created")

    logger.info("app.startup", extra={"env": settings.ENV})
    try:
        yield
    finally:
        if engine is not None:
            await engine.dispose()
            app.state.session_factory = None
        logger.info("app.shutdown")


def create_app(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Defaults to the cached process settings.
        session_factory: Pre-built session factory (tests). When omitted, the lifespan
            builds the engine from `settings` and disposes of it at shutdown.
    """
    app = FastAPI(title=get_project_name(), version=get_project_version(), lifespan=lifespan)
    app.state.settings = settings or get_settings()
    app.state.session_factory = session_factory

    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)
    app.include_router(v1_router)
    return app


def run() -> None:
    settings = get_settings()
    # log_config=None leaves logging to setup_logging in the lifespan
    uvicorn.run(
        "libman.main:create_app",
        factory=True,
        host=settings.HTTP_HOST,
        port=settings.HTTP_PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
