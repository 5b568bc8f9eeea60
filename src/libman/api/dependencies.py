from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from libman.config.settings import Settings
from libman.database.session import get_async_session
from libman.repositories.book_repository import BookRepository


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_book_repository(
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_app_settings),
) -> BookRepository:
    # same per-request session the route commits on (FastAPI caches dependencies per request)
    return BookRepository(db, timeout=settings.STORE_TIMEOUT_SECONDS)
