"""
Resolve untrusted, string-typed list-query parameters into a `ListQuery`.

`parse_list_query` never raises for bad input; it returns the resolved query together
with the collected `FieldErrors`, and the caller decides how to surface them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping

from libman.models.pagination import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, DEFAULT_SORT, Filters
from .book_validators import FieldErrors, validate_filters

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_INT64_PATTERN = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ListQuery:
    """Everything the repository needs for a filtered, paginated list."""
    title: str = ""
    authors: tuple[str, ...] = ()
    publisher: str = ""
    language: str = ""
    filters: Filters = field(default_factory=Filters)


def read_string(params: Mapping[str, str], key: str, default: str = "") -> str:
    value = params.get(key)
    if not value:
        return default
    return value


def read_csv(params: Mapping[str, str], key: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    """Split a comma-separated value into trimmed, non-empty entries, keeping their order."""
    value = params.get(key)
    if not value:
        return default
    return tuple(part.strip() for part in value.split(",") if part.strip())


def parse_int64(raw: str) -> int | None:
    """Parse an optionally signed run of ASCII digits that fits a signed 64-bit integer."""
    if not _INT64_PATTERN.fullmatch(raw):
        return None
    value = int(raw)
    if not INT64_MIN <= value <= INT64_MAX:
        return None
    return value


def read_int(params: Mapping[str, str], key: str, default: int, errors: FieldErrors) -> tuple[int, FieldErrors]:
    value = params.get(key)
    if not value:
        return default, errors
    number = parse_int64(value.strip())
    if number is None:
        return default, errors.add(key, "must be an integer value")
    return number, errors


def parse_list_query(params: Mapping[str, str], errors: FieldErrors | None = None) -> tuple[ListQuery, FieldErrors]:
    errors = errors if errors is not None else FieldErrors()

    page, errors = read_int(params, "page", DEFAULT_PAGE, errors)
    page_size, errors = read_int(params, "page_size", DEFAULT_PAGE_SIZE, errors)
    filters = Filters(
        page=page,
        page_size=page_size,
        sort=read_string(params, "sort", DEFAULT_SORT),
    )
    errors = validate_filters(filters, errors)

    query = ListQuery(
        title=read_string(params, "title").strip(),
        authors=read_csv(params, "authors"),
        publisher=read_string(params, "publisher").strip(),
        language=read_string(params, "language").strip(),
        filters=filters,
    )
    return query, errors
