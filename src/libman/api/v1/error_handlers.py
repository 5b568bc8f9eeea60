"""
FastAPI exception handlers mapping repository-level exceptions to HTTP responses.

The status code and payload come from the exception itself (`http_status()`,
`to_payload()`); the handlers only decide how loudly to log.

    - 4xx domain errors (validation, not found, conflict) are logged at INFO;
    - store failures are logged at ERROR with the traceback, but the client only
      sees the safe message.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from libman.exceptions.base import (
    EditConflictError,
    InvalidFieldError,
    NotFoundError,
    RepositoryError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _respond(exc: RepositoryError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("ValidationError for %s %s: errors=%s", request.method, request.url.path, exc.errors)
    return _respond(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Body decoding and JSON type errors reported by FastAPI, reshaped into our
    field-keyed `ValidationError` payload.
    """
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "header")]
        key = loc[0] if loc else "body"
        errors.setdefault(key, err.get("msg", "invalid value"))
    return await validation_error_handler(request, ValidationError(errors=errors))


async def invalid_field_handler(request: Request, exc: InvalidFieldError) -> JSONResponse:
    logger.info("InvalidFieldError for %s %s: fields=%s", request.method, request.url.path, exc.fields)
    return _respond(exc)


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info("NotFoundError for %s %s", request.method, request.url.path)
    return _respond(exc)


async def edit_conflict_handler(request: Request, exc: EditConflictError) -> JSONResponse:
    logger.info("EditConflictError for %s %s", request.method, request.url.path)
    return _respond(exc)


async def store_failure_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(
        "StoreError for %s %s: %s", request.method, request.url.path, str(exc),
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return _respond(exc)


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    logger.warning("RepositoryError for %s %s: %s", request.method, request.url.path, str(exc))
    return _respond(exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(InvalidFieldError, invalid_field_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(EditConflictError, edit_conflict_handler)
    app.add_exception_handler(StoreError, store_failure_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
