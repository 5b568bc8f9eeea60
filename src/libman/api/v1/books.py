"""
Book routes.

Routes are thin: decode the request, run the validator, call the repository and commit.
Every failure is raised as a `RepositoryError` subclass and turned into a response by
the handlers in `error_handlers`.
"""

import logging

from fastapi import APIRouter, Depends, Header, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from libman.api.dependencies import get_book_repository
from libman.database.session import get_async_session
from libman.exceptions.base import EditConflictError, NotFoundError
from libman.exceptions.mapper import store_error_handler
from libman.models.book import BookPatch
from libman.repositories.book_repository import BookRepository
from libman.schemas.book import (
    BookCreateIn,
    BookEnvelope,
    BookListEnvelope,
    BookOut,
    BookUpdateIn,
    MessageEnvelope,
)
from libman.validators.book_validators import validate_book
from libman.validators.query_params import parse_int64, parse_list_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])


def parse_id(raw: str) -> int:
    """Path ids that are not positive 64-bit integers are reported as not found."""
    book_id = parse_int64(raw)
    if book_id is None or book_id < 1:
        raise NotFoundError()
    return book_id


async def commit(db: AsyncSession) -> None:
    async with store_error_handler(db, "Book"):
        await db.commit()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=BookEnvelope)
async def create_book(
    payload: BookCreateIn,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
    repo: BookRepository = Depends(get_book_repository),
) -> BookEnvelope:
    book = payload.to_entity()
    validate_book(book).raise_if_invalid()

    book = await repo.create(book)
    await commit(db)

    logger.info("book.created", extra={"book_id": book.id})
    response.headers["Location"] = f"/v1/books/{book.id}"
    return BookEnvelope(book=BookOut.from_entity(book))


@router.get("/{book_id}", response_model=BookEnvelope)
async def show_book(book_id: str, repo: BookRepository = Depends(get_book_repository)) -> BookEnvelope:
    book = await repo.get(parse_id(book_id))
    return BookEnvelope(book=BookOut.from_entity(book))


@router.patch("/{book_id}", response_model=BookEnvelope)
async def update_book(
    book_id: str,
    payload: BookUpdateIn,
    db: AsyncSession = Depends(get_async_session),
    repo: BookRepository = Depends(get_book_repository),
    expected_version: str | None = Header(default=None, alias="X-Expected-Version"),
) -> BookEnvelope:
    book = await repo.get(parse_id(book_id))

    # clients may pin the version they last read; a mismatch is a conflict before any write
    if expected_version and expected_version.strip() != str(book.version):
        raise EditConflictError()

    patch = BookPatch.from_mapping(payload.changes())
    book = patch.apply(book)
    validate_book(book).raise_if_invalid()

    book = await repo.update(book)
    await commit(db)

    logger.info("book.updated", extra={"book_id": book.id, "version": book.version, "fields": patch.fields})
    return BookEnvelope(book=BookOut.from_entity(book))


@router.delete("/{book_id}", response_model=MessageEnvelope)
async def delete_book(
    book_id: str,
    db: AsyncSession = Depends(get_async_session),
    repo: BookRepository = Depends(get_book_repository),
) -> MessageEnvelope:
    book_id = parse_id(book_id)
    await repo.delete(book_id)
    await commit(db)

    logger.info("book.deleted", extra={"book_id": book_id})
    return MessageEnvelope(message="book successfully deleted")


@router.get("", response_model=BookListEnvelope)
async def list_books(request: Request, repo: BookRepository = Depends(get_book_repository)) -> BookListEnvelope:
    query, errors = parse_list_query(request.query_params)
    errors.raise_if_invalid()

    books, metadata = await repo.get_all(
        title=query.title,
        authors=query.authors,
        publisher=query.publisher,
        language=query.language,
        filters=query.filters,
    )
    return BookListEnvelope.build(books, metadata)
