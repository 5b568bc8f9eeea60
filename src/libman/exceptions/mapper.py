"""
Translate store-level failures into `StoreError`.

Repositories wrap every store call in `store_error_handler(...)`:

    async with store_error_handler(self.db, "Book"):
        result = await self._execute(stmt, timeout)

Inside the block:
  - domain errors (NotFoundError, EditConflictError, ...) pass through untouched;
  - IntegrityError is classified and raised as StoreError with column/constraint context;
  - a timeout is raised as StoreTimeoutError;
  - anything else becomes a generic StoreError.
The session is rolled back on every store failure so it stays usable for the caller.
"""
import logging
import re
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .base import RepositoryError, StoreError, StoreTimeoutError
from .integrity_classifier import ConstraintKind, classify_integrity_error

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction helpers
# -----------------------

def _extract_columns_postgres(msg: str) -> list[str] | None:
    """
    Extract column names from Postgres messages such as:
      - 'null value in column "title" violates not-null constraint'
      - 'DETAIL:  Key (title, year)=(...) already exists.'
    """
    m = re.search(r'null value in column "(?P<col>[^"]+)"', msg, flags=re.IGNORECASE)
    if m:
        return [m.group("col")]

    m = re.search(r'key \((?P<cols>[^)]+)\)=', msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    return None


def _extract_columns_sqlite(msg: str) -> list[str] | None:
    # 'NOT NULL constraint failed: books.title', 'UNIQUE constraint failed: books.title, books.year'
    m = re.search(r'(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$', msg, flags=re.IGNORECASE)
    if m:
        return [c.split('.')[-1].strip() for c in re.split(r',\s*', m.group("cols"))]
    return None


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """Best-effort extraction of the involved column names (Postgres, SQLite)."""
    msg = str(exc.orig) if exc.orig is not None else str(exc)
    if not msg:
        return None
    return _extract_columns_postgres(msg) or _extract_columns_sqlite(msg)


_KIND_MESSAGES = {
    ConstraintKind.UNIQUE: "{model} already exists",
    ConstraintKind.NOT_NULL: "missing required field for {model}",
    ConstraintKind.FOREIGN_KEY: "{model} references a missing record",
    ConstraintKind.CHECK: "{model} violates a store rule",
    ConstraintKind.UNKNOWN: "{model} database integrity error",
}


def map_integrity_error(exc: IntegrityError, model_name: str | None = None) -> StoreError:
    """
    Build the StoreError for a SQLAlchemy IntegrityError.
    Populates `.fields` and `.constraint` where the driver message allows it.
    """
    kind, constraint_name = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)
    model_part = model_name or "Record"

    logger.debug(
        "mapper.integrity_violation",
        extra={"model": model_part, "kind": kind.value, "fields": columns, "constraint": constraint_name},
    )

    message = _KIND_MESSAGES[kind].format(model=model_part)
    if columns:
        message = f"{message} (field(s): {', '.join(columns)})"
    return StoreError(message, fields=columns, constraint=constraint_name)


async def _rollback_quietly(db: AsyncSession, model_name: str | None) -> None:
    try:
        await db.rollback()
    except Exception:
        # the original failure is what the caller needs; keep the rollback failure in the logs
        logger.exception("Failed to rollback session after store failure", extra={"model": model_name})


# -----------------------
# Async context manager to DRY error handling in repositories
# -----------------------
@asynccontextmanager
async def store_error_handler(db: AsyncSession, model_name: str | None = None):
    try:
        yield
    except RepositoryError:
        raise
    except IntegrityError as exc:
        await _rollback_quietly(db, model_name)
        raise map_integrity_error(exc, model_name) from exc
    except TimeoutError as exc:
        await _rollback_quietly(db, model_name)
        raise StoreTimeoutError() from exc
    except Exception as exc:
        await _rollback_quietly(db, model_name)
        raise StoreError(f"failed to operate on {model_name or 'database'}") from exc
