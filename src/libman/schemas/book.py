"""
HTTP request/response schemas for books.

Input schemas only check JSON types; the domain rules (required fields, lengths,
author limits) belong to `validate_book`, so missing fields default to the "not
provided" values it reports on.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

from libman.models.book import Book
from libman.models.pagination import Metadata


class BookCreateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = ""
    authors: list[str] | None = None
    year: int = 0
    publisher: str = ""
    language: str = ""
    pages: int = 0

    def to_entity(self) -> Book:
        return Book(**self.model_dump())


class BookUpdateIn(BaseModel):
    """
    Partial update body. Only keys sent by the client end up in the patch; unknown keys
    are kept so the patch can reject them by name.
    """
    model_config = ConfigDict(extra="allow")

    title: str | None = None
    authors: list[str] | None = None
    year: int | None = None
    publisher: str | None = None
    language: str | None = None
    pages: int | None = None

    def changes(self) -> dict[str, Any]:
        return {**self.model_dump(exclude_unset=True), **(self.model_extra or {})}


class BookOut(BaseModel):
    id: int
    title: str
    authors: list[str]
    year: int
    publisher: str
    language: str
    pages: int
    version: int

    @classmethod
    def from_entity(cls, book: Book) -> "BookOut":
        return cls(
            id=book.id,
            title=book.title,
            authors=list(book.authors or []),
            year=book.year,
            publisher=book.publisher,
            language=book.language,
            pages=book.pages,
            version=book.version,
        )


class BookEnvelope(BaseModel):
    book: BookOut


class BookListEnvelope(BaseModel):
    books: list[BookOut]
    metadata: dict[str, int]

    @classmethod
    def build(cls, books: list[Book], metadata: Metadata) -> "BookListEnvelope":
        return cls(books=[BookOut.from_entity(b) for b in books], metadata=metadata.to_dict())


class MessageEnvelope(BaseModel):
    message: str


class HealthOut(BaseModel):
    status: str
    environment: str
    version: str
