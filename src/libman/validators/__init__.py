from .book_validators import FieldErrors, validate_book, validate_filters, unique
from .query_params import ListQuery, parse_list_query, read_csv, read_int, read_string

__all__ = [
    "FieldErrors",
    "validate_book",
    "validate_filters",
    "unique",
    "ListQuery",
    "parse_list_query",
    "read_csv",
    "read_int",
    "read_string",
]
