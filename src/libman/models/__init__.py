"""
Single import point for the catalog models.

    from libman.models import Book, BookRecord, BookPatch, Filters, Metadata
"""

from .book import Book, BookRecord, BookPatch, PATCHABLE_FIELDS, books_table
from .pagination import Filters, Metadata, SORT_SAFELIST, calculate_metadata

__all__ = [
    "Book",
    "BookRecord",
    "BookPatch",
    "PATCHABLE_FIELDS",
    "books_table",
    "Filters",
    "Metadata",
    "SORT_SAFELIST",
    "calculate_metadata",
]
