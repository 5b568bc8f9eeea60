"""
Filter Spec and pagination metadata for list queries.

The sort safe-list lives here: it is the only source of column names that may reach an
ORDER BY clause.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from libman.exceptions.base import ValidationError

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# keeps (page - 1) * page_size inside a signed 64-bit OFFSET
MAX_PAGE = 10_000_000
DEFAULT_SORT = "id"

SORTABLE_FIELDS: tuple[str, ...] = ("id", "title", "year", "pages")
SORT_SAFELIST: tuple[str, ...] = SORTABLE_FIELDS + tuple(f"-{name}" for name in SORTABLE_FIELDS)


@dataclass(frozen=True)
class Filters:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = DEFAULT_SORT
    sort_safelist: tuple[str, ...] = field(default=SORT_SAFELIST, repr=False)

    def _checked_sort(self) -> str:
        if self.sort not in self.sort_safelist:
            raise ValidationError(f"unsafe sort parameter: {self.sort!r}", errors={"sort": "invalid sort value"})
        return self.sort

    def sort_column(self) -> str:
        """Column name to order by, with the descending marker stripped."""
        return self._checked_sort().lstrip("-")

    def sort_direction(self) -> str:
        return "DESC" if self._checked_sort().startswith("-") else "ASC"

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class Metadata:
    """Pagination metadata for presentation. first_page is always 1 once computed."""
    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "current_page": self.current_page,
            "page_size": self.page_size,
            "first_page": self.first_page,
            "last_page": self.last_page,
            "total_records": self.total_records,
        }


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    # last_page is 0 when nothing matched
    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=math.ceil(total_records / page_size),
        total_records=total_records,
    )
