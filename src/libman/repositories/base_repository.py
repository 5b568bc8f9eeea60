"""
Base repository class providing the plumbing shared by table repositories.

A repository is built around an injected `AsyncSession` (and, through it, the engine's
connection pool). It never commits: the caller owns the transaction and decides when a
unit of work is finished. Every statement goes through `_execute`, which applies the
caller's timeout boundary.
"""

import asyncio
from typing import Any, Generic, Type, TypeVar

from sqlalchemy import Table
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from libman.database.base import Base
from libman.exceptions.mapper import store_error_handler

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)

# Marker for "use the repository default timeout"; None means "no timeout".
USE_DEFAULT_TIMEOUT: Any = object()


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository.

    Type Parameters:
        ModelType: The SQLAlchemy model class whose table this repository manages.
    """

    # name used in error messages and log events; defaults to the model class name
    entity_name: str | None = None

    def __init__(self, model: Type[ModelType], db: AsyncSession, timeout: float | None = None):
        """
        Args:
            model: The SQLAlchemy model class (not an instance), e.g. BookRecord.
            db: The async database session, injected by the caller.
            timeout: Default per-call timeout in seconds; None disables it.
        """
        self.model = model
        self.db = db
        self.timeout = timeout

    @property
    def table(self) -> Table:
        return self.model.__table__

    @property
    def model_name(self) -> str:
        return self.entity_name or self.model.__name__

    def _resolve_timeout(self, timeout: float | None) -> float | None:
        return self.timeout if timeout is USE_DEFAULT_TIMEOUT else timeout

    async def _execute(self, statement: Executable, timeout: float | None = USE_DEFAULT_TIMEOUT) -> Result:
        """
        Execute one statement under the timeout boundary.

        Raises asyncio's TimeoutError when the boundary elapses; callers run this inside
        `store_error_handler`, which turns it into StoreTimeoutError.
        """
        return await asyncio.wait_for(self.db.execute(statement), self._resolve_timeout(timeout))

    def _store_errors(self):
        return store_error_handler(self.db, self.model_name)

    def dialect_name(self) -> str:
        """Name of the dialect the session is bound to ('postgresql', 'sqlite', ...)."""
        return self.db.get_bind().dialect.name
