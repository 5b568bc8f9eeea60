"""
Book repository: optimistic-concurrency CRUD and filtered listing over `books`.

Every mutating operation is a single statement, so a failure never leaves a partial
write behind. Conflicts are detected by the store itself through the
version-conditioned UPDATE; nothing here locks rows or retries.
"""

import dataclasses
from typing import Sequence

from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from libman.exceptions.base import EditConflictError, NotFoundError
from libman.models.book import Book, BookRecord
from libman.models.pagination import Filters, Metadata, calculate_metadata
from libman.validators.book_validators import validate_filters
from .base_repository import USE_DEFAULT_TIMEOUT, BaseRepository


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BookRepository(BaseRepository[BookRecord]):
    """
    Repository for Book records.

    Usage:
        repo = BookRepository(db_session, timeout=settings.STORE_TIMEOUT_SECONDS)
        book = await repo.create(Book(title=..., authors=[...], ...))
        book = await repo.update(dataclasses.replace(book, pages=320))
        await db_session.commit()
    """

    entity_name = "Book"

    def __init__(self, db: AsyncSession, timeout: float | None = None):
        super().__init__(BookRecord, db, timeout=timeout)

    # =================================================================================================================
    # Create
    # =================================================================================================================

    async def create(self, book: Book, *, timeout: float | None = USE_DEFAULT_TIMEOUT) -> Book:
        """
        Insert a validated book.

        The store assigns id, created_at and version (1) in the same INSERT that
        returns them.

        Raises:
            StoreError: constraint violation, connectivity failure or timeout.
        """
        c = self.table.c
        stmt = (
            insert(self.table)
            .values(**book.column_values())
            .returning(c.id, c.created_at, c.version)
        )

        async with self._store_errors():
            row = (await self._execute(stmt, timeout)).one()

        return dataclasses.replace(
            book,
            authors=list(book.authors or []),
            id=row.id,
            created_at=row.created_at,
            version=row.version,
        )

    # =================================================================================================================
    # Read
    # =================================================================================================================

    async def get(self, book_id: int, *, timeout: float | None = USE_DEFAULT_TIMEOUT) -> Book:
        """
        Fetch one book by id.

        Raises:
            NotFoundError: id < 1 (no store round-trip) or no such row.
            StoreError: any other failure.
        """
        if book_id is None or book_id < 1:
            raise NotFoundError()

        stmt = select(self.table).where(self.table.c.id == book_id)

        async with self._store_errors():
            row = (await self._execute(stmt, timeout)).one_or_none()

        if row is None:
            raise NotFoundError()

        return Book.from_row(row._mapping)

    # =================================================================================================================
    # Update
    # =================================================================================================================

    async def update(self, book: Book, *, timeout: float | None = USE_DEFAULT_TIMEOUT) -> Book:
        """
        Write `book` back if, and only if, the stored version still equals `book.version`.

        One atomic statement:
            UPDATE books SET ..., version = version + 1
            WHERE id = :id AND version = :expected
            RETURNING version

        Returns:
            A copy of `book` carrying the new version.

        Raises:
            EditConflictError: no row matched id and version (deleted, or another writer won).
            StoreError: any other failure.
        """
        c = self.table.c
        stmt = (
            update(self.table)
            .where(c.id == book.id, c.version == book.version)
            .values(**book.column_values(), version=c.version + 1)
            .returning(c.version)
        )

        async with self._store_errors():
            new_version = (await self._execute(stmt, timeout)).scalar_one_or_none()

        if new_version is None:
            raise EditConflictError()

        return dataclasses.replace(book, authors=list(book.authors or []), version=new_version)

    # =================================================================================================================
    # Delete
    # =================================================================================================================

    async def delete(self, book_id: int, *, timeout: float | None = USE_DEFAULT_TIMEOUT) -> None:
        """
        Remove a book.

        Raises:
            NotFoundError: id < 1, or nothing was deleted (already absent).
            StoreError: any other failure.
        """
        if book_id is None or book_id < 1:
            raise NotFoundError()

        stmt = delete(self.table).where(self.table.c.id == book_id)

        async with self._store_errors():
            result = await self._execute(stmt, timeout)

        if result.rowcount == 0:
            raise NotFoundError()

    # =================================================================================================================
    # List
    # =================================================================================================================

    def _authors_condition(self, authors: Sequence[str]) -> ColumnElement[bool]:
        """Every requested author must appear in the book's authors."""
        column = self.table.c.authors
        if self.dialect_name() == "sqlite":
            # JSON array: one EXISTS over json_each() per requested author
            clauses = []
            for name in authors:
                each = func.json_each(column).table_valued("value").alias()
                clauses.append(select(each.c.value).where(each.c.value == name).exists())
            return and_(*clauses)
        return column.contains(list(authors))

    def _filter_conditions(
        self, title: str, authors: Sequence[str], publisher: str, language: str
    ) -> list[ColumnElement[bool]]:
        # An empty filter contributes no condition, i.e. it always matches.
        c = self.table.c
        conditions: list[ColumnElement[bool]] = []
        if title:
            conditions.append(c.title.ilike(f"%{_escape_like(title)}%", escape="\\"))
        if authors:
            conditions.append(self._authors_condition(authors))
        if publisher:
            conditions.append(func.lower(c.publisher) == publisher.lower())
        if language:
            conditions.append(func.lower(c.language) == language.lower())
        return conditions

    def _order_by(self, filters: Filters) -> list[ColumnElement]:
        # sort_column()/sort_direction() re-check the safe-list before a name is used
        column = self.table.c[filters.sort_column()]
        ordering = [column.desc() if filters.sort_direction() == "DESC" else column.asc()]
        if column.key != "id":
            # secondary key keeps pages stable when the primary key has duplicates
            ordering.append(self.table.c.id.asc())
        return ordering

    async def get_all(
        self,
        title: str = "",
        authors: Sequence[str] = (),
        publisher: str = "",
        language: str = "",
        filters: Filters = Filters(),
        *,
        timeout: float | None = USE_DEFAULT_TIMEOUT,
    ) -> tuple[list[Book], Metadata]:
        """
        Return one page of books matching the filters plus pagination metadata.

        The total number of matching rows (ignoring LIMIT/OFFSET) comes from a window
        count in the page query. A page past the end carries no rows to read it from, so
        the total is then counted separately under the same conditions. An empty page is
        a valid result.

        Raises:
            ValidationError: page, page_size or sort out of bounds; nothing is sent to the store.
            StoreError: any store failure.
        """
        validate_filters(filters).raise_if_invalid()

        conditions = self._filter_conditions(title, authors, publisher, language)
        total_records = func.count().over().label("total_records")
        stmt = (
            select(total_records, *self.table.c)
            .where(*conditions)
            .order_by(*self._order_by(filters))
            .limit(filters.limit())
            .offset(filters.offset())
        )

        async with self._store_errors():
            rows = (await self._execute(stmt, timeout)).all()
            if rows:
                total = rows[0].total_records
            elif filters.page > 1:
                count_stmt = select(func.count()).select_from(self.table).where(*conditions)
                total = (await self._execute(count_stmt, timeout)).scalar_one()
            else:
                total = 0

        books = [Book.from_row(row._mapping) for row in rows]
        return books, calculate_metadata(total, filters.page, filters.page_size)
