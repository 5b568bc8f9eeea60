"""
Book entity, its storage mapping, and the partial-update mask.

- `BookRecord` maps the `books` table (used for DDL and for building statements).
- `Book` is the value object handed to and returned by the repository. It is never
  attached to a session, so mutating it can never trigger an implicit flush that would
  bypass the version-conditioned update.
- `BookPatch` carries the fields a caller wants to change, applied before validation.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import CheckConstraint, DateTime, Integer, JSON, Text, text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from libman.database.base import Base
from libman.exceptions.base import InvalidFieldError


class BookRecord(Base):
    """
    SQLAlchemy model for the `books` table.

    `authors` is a native text[] on PostgreSQL and a JSON array on SQLite (tests),
    both preserving element order.
    """
    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("version >= 1", name="version_positive"),
    )

    # serial primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Set once by the store at insertion
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    authors: Mapped[list[str]] = mapped_column(
        ARRAY(Text).with_variant(JSON(), "sqlite"),
        nullable=False
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)
    publisher: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(Text, nullable=False)
    pages: Mapped[int] = mapped_column(Integer, nullable=False)

    # Optimistic-lock token, only ever incremented by the store
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))

    def __repr__(self) -> str:
        return f"<BookRecord(id={self.id!r}, title={self.title!r}, version={self.version!r})>"


# Core table object; repositories build statements against it.
books_table = BookRecord.__table__


@dataclass
class Book:
    """
    A catalog record.

    `id`, `created_at` and `version` are assigned by the store; callers leave them at
    their defaults when creating and must keep the fetched `version` when updating.
    Numeric fields use zero to mean "not provided".
    """
    title: str = ""
    authors: list[str] | None = None
    year: int = 0
    publisher: str = ""
    language: str = ""
    pages: int = 0
    id: int | None = None
    created_at: datetime | None = None
    version: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Book":
        """Build a Book from a result row mapping (``row._mapping``)."""
        return cls(
            id=row["id"],
            created_at=row["created_at"],
            title=row["title"],
            authors=list(row["authors"]),
            year=row["year"],
            publisher=row["publisher"],
            language=row["language"],
            pages=row["pages"],
            version=row["version"],
        )

    def column_values(self) -> dict[str, Any]:
        """Values for the caller-owned columns, as written by INSERT and UPDATE."""
        return {
            "title": self.title,
            "authors": list(self.authors or []),
            "year": self.year,
            "publisher": self.publisher,
            "language": self.language,
            "pages": self.pages,
        }


# Fields a caller may change through a patch; identity, timestamps and version are store-owned.
PATCHABLE_FIELDS: tuple[str, ...] = ("title", "authors", "year", "publisher", "language", "pages")


@dataclass(frozen=True)
class BookPatch:
    """
    Explicit update mask: every key in `changes` is "present with value", every other
    patchable field is "absent" and keeps its current value.
    """
    changes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = sorted(k for k in self.changes if k not in PATCHABLE_FIELDS)
        if unknown:
            raise InvalidFieldError(
                f"Unknown or read-only field(s) for Book: {', '.join(unknown)}",
                fields=unknown,
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BookPatch":
        return cls(changes=dict(data))

    @property
    def fields(self) -> list[str]:
        return sorted(self.changes)

    def __contains__(self, name: object) -> bool:
        return name in self.changes

    def __bool__(self) -> bool:
        return bool(self.changes)

    def apply(self, book: Book) -> Book:
        """Return a copy of `book` with the present fields replaced."""
        changes = dict(self.changes)
        if changes.get("authors") is not None:
            changes["authors"] = list(changes["authors"])
        return dataclasses.replace(book, **changes)
