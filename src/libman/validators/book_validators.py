"""
Pure validation rules for books and list filters.

Errors are collected in a `FieldErrors` value that is threaded through the rule
functions and returned, never mutated in place:

    errors = validate_book(book)
    errors = validate_filters(filters, errors)
    errors.raise_if_invalid()

Every rule is evaluated, so all problems are reported together. As with a form, the
first message recorded for a field wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Iterable, Mapping

from libman.exceptions.base import ValidationError
from libman.models.book import Book
from libman.models.pagination import MAX_PAGE, MAX_PAGE_SIZE, Filters

MAX_TEXT_BYTES = 500
MAX_AUTHORS = 5


@dataclass(frozen=True)
class FieldErrors:
    errors: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", MappingProxyType(dict(self.errors)))

    @property
    def valid(self) -> bool:
        return not self.errors

    def add(self, key: str, message: str) -> "FieldErrors":
        if key in self.errors:
            return self
        return FieldErrors({**self.errors, key: message})

    def check(self, ok: bool, key: str, message: str) -> "FieldErrors":
        return self if ok else self.add(key, message)

    def as_dict(self) -> dict[str, str]:
        return dict(self.errors)

    def raise_if_invalid(self, message: str = "invalid input") -> None:
        if not self.valid:
            raise ValidationError(message, errors=self.errors)


def unique(values: Iterable[str]) -> bool:
    """True when no value appears twice (case-sensitive)."""
    seen = set()
    for value in values:
        if value in seen:
            return False
        seen.add(value)
    return True


def _byte_length(value: str | None) -> int:
    return len((value or "").encode("utf-8"))


def _check_text(errors: FieldErrors, value: str | None, key: str) -> FieldErrors:
    errors = errors.check(bool(value), key, "must be provided")
    return errors.check(
        _byte_length(value) <= MAX_TEXT_BYTES, key, f"must not be more than {MAX_TEXT_BYTES} bytes long"
    )


def validate_book(book: Book, errors: FieldErrors | None = None, *, today: date | None = None) -> FieldErrors:
    errors = errors if errors is not None else FieldErrors()
    current_year = (today or date.today()).year

    errors = _check_text(errors, book.title, "title")

    authors = book.authors
    errors = errors.check(authors is not None, "authors", "must be provided")
    authors = authors or []
    errors = errors.check(len(authors) >= 1, "authors", "must contain at least 1 author")
    errors = errors.check(len(authors) <= MAX_AUTHORS, "authors", f"must not contain more than {MAX_AUTHORS} authors")
    errors = errors.check(unique(authors), "authors", "must not contain duplicate values")

    year = book.year or 0
    errors = errors.check(year != 0, "year", "must be provided")
    errors = errors.check(year > 0, "year", "must be greater than 0")
    errors = errors.check(year <= current_year, "year", "must not be in the future")

    errors = _check_text(errors, book.publisher, "publisher")
    errors = _check_text(errors, book.language, "language")

    pages = book.pages or 0
    errors = errors.check(pages != 0, "pages", "must be provided")
    errors = errors.check(pages > 0, "pages", "must be a positive integer")

    return errors


def validate_filters(filters: Filters, errors: FieldErrors | None = None) -> FieldErrors:
    errors = errors if errors is not None else FieldErrors()

    errors = errors.check(filters.page > 0, "page", "must be greater than zero")
    errors = errors.check(filters.page <= MAX_PAGE, "page", "must be a maximum of 10 million")
    errors = errors.check(filters.page_size > 0, "page_size", "must be greater than zero")
    errors = errors.check(filters.page_size <= MAX_PAGE_SIZE, "page_size", f"must be a maximum of {MAX_PAGE_SIZE}")
    errors = errors.check(filters.sort in filters.sort_safelist, "sort", "invalid sort value")

    return errors
