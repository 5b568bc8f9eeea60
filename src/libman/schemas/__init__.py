from .book import (
    BookCreateIn,
    BookEnvelope,
    BookListEnvelope,
    BookOut,
    BookUpdateIn,
    HealthOut,
    MessageEnvelope,
)

__all__ = [
    "BookCreateIn",
    "BookUpdateIn",
    "BookOut",
    "BookEnvelope",
    "BookListEnvelope",
    "MessageEnvelope",
    "HealthOut",
]
