# libman/exceptions/
# ├── base.py                    # app-level errors (ValidationError, NotFoundError, EditConflictError, StoreError, ...)
# ├── integrity_classifier.py    # classify driver-level integrity errors
# └── mapper.py                  # map store failures to StoreError (store_error_handler)

from .base import (
    RepositoryError,
    ValidationError,
    InvalidFieldError,
    NotFoundError,
    EditConflictError,
    StoreError,
    StoreTimeoutError,
)

__all__ = [
    "RepositoryError",
    "ValidationError",
    "InvalidFieldError",
    "NotFoundError",
    "EditConflictError",
    "StoreError",
    "StoreTimeoutError",
]
