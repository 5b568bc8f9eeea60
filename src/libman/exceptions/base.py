"""
Error taxonomy of the catalog.

Each failure the validator or the repository can produce is a `RepositoryError`
subclass. A subclass declares its canonical `code` and the HTTP `status` it maps to;
the HTTP layer only ever calls `to_payload()` and `http_status()`.

    RepositoryError
    ├── ValidationError      invalid_input  422
    ├── InvalidFieldError    invalid_field  422
    ├── NotFoundError        not_found      404
    ├── EditConflictError    edit_conflict  409
    └── StoreError           store_error    500
        └── StoreTimeoutError store_timeout 504
"""

from typing import Iterable, Mapping


class RepositoryError(Exception):
    """
    Base class for catalog errors.

    - message: client-safe description
    - fields: names of the fields involved, when known
    - constraint: store constraint name; kept for logs, never sent to clients
    - error_code: canonical short code of the subclass
    """

    code: str | None = None
    status: int = 400
    default_message = "the request could not be processed"

    def __init__(self, message: str | None = None, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.fields = list(fields) if fields else None
        self.constraint = constraint

    @property
    def error_code(self) -> str | None:
        return self.code

    def __str__(self) -> str:
        context = [
            f"{label}: {value}"
            for label, value in (
                ("fields", ", ".join(self.fields or ())),
                ("constraint", self.constraint),
                ("code", self.code),
            )
            if value
        ]
        return f"{self.message} ({'; '.join(context)})" if context else self.message

    def to_payload(self) -> dict:
        """JSON body for HTTP responses: {"detail", "code"?, "fields"?}."""
        payload: dict = {"detail": self.message}
        if self.code:
            payload["code"] = self.code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        return self.status


class ValidationError(RepositoryError):
    """
    Field-keyed input errors. Raised before anything reaches the store; the caller
    recovers by correcting its input.
    """

    code = "invalid_input"
    status = 422
    default_message = "invalid input"

    def __init__(self, message: str | None = None, *, errors: Mapping[str, str] | None = None):
        self.errors = dict(errors or {})
        super().__init__(message, fields=sorted(self.errors))

    def to_payload(self) -> dict:
        return {**super().to_payload(), "errors": dict(self.errors)}


class InvalidFieldError(RepositoryError):
    """A patch named a field that does not exist or is owned by the store."""

    code = "invalid_field"
    status = 422

    def __init__(self, message: str | None = None, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields)


class NotFoundError(RepositoryError):
    """No matching row. Identifiers below 1 are reported the same way."""

    code = "not_found"
    status = 404
    default_message = "the requested resource could not be found"

    def __init__(self, message: str | None = None, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields)


class EditConflictError(RepositoryError):
    """
    The version-conditioned update matched no row: the record was deleted or another
    writer advanced its version first. Callers re-fetch and retry, or surface the conflict.
    """

    code = "edit_conflict"
    status = 409
    default_message = "unable to update the record due to an edit conflict, please try again"

    def __init__(self, message: str | None = None):
        super().__init__(message)


class StoreError(RepositoryError):
    """Connectivity, constraint or unexpected store failure; not recoverable by the repository."""

    code = "store_error"
    status = 500
    default_message = "the store could not complete the operation"


class StoreTimeoutError(StoreError):
    """The store call did not finish within the caller's timeout; nothing was written."""

    code = "store_timeout"
    status = 504
    default_message = "the store did not respond in time"

    def __init__(self, message: str | None = None):
        super().__init__(message)


__all__ = [
    "RepositoryError",
    "ValidationError",
    "InvalidFieldError",
    "NotFoundError",
    "EditConflictError",
    "StoreError",
    "StoreTimeoutError",
]
