import logging
from enum import Enum

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class ConstraintKind(str, Enum):
    """What kind of constraint the store reported as violated."""
    UNIQUE = "unique"
    NOT_NULL = "not_null"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"
    UNKNOWN = "unknown"


# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


PGCODE_KIND_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION.value: ConstraintKind.UNIQUE,
    PostgresErrorCodes.NOT_NULL_VIOLATION.value: ConstraintKind.NOT_NULL,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION.value: ConstraintKind.FOREIGN_KEY,
    PostgresErrorCodes.CHECK_VIOLATION.value: ConstraintKind.CHECK,
}

# Message fragments used when no SQLSTATE is available (SQLite)
_MESSAGE_KEYWORDS = (
    (ConstraintKind.UNIQUE, ("unique constraint", "unique failed", "duplicate")),
    (ConstraintKind.NOT_NULL, ("not null constraint", "null value in column")),
    (ConstraintKind.FOREIGN_KEY, ("foreign key constraint", "is not present in table")),
    (ConstraintKind.CHECK, ("check constraint",)),
)


def _pgcode(orig) -> str | None:
    # psycopg exposes `pgcode`, asyncpg exposes `sqlstate` (possibly on a wrapped __cause__)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "pgcode", None) or getattr(candidate, "sqlstate", None)
        if code:
            return code
    return None


def _constraint_name(orig) -> str | None:
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        diag = getattr(candidate, "diag", None)
        name = getattr(diag, "constraint_name", None) if diag else None
        name = name or getattr(candidate, "constraint_name", None)
        if name:
            return name
    return None


def _classify_from_postgres(orig) -> tuple[ConstraintKind | None, str | None]:
    pgcode = _pgcode(orig)
    if not pgcode:
        return None, None

    constraint_name = _constraint_name(orig)
    kind = PGCODE_KIND_MAP.get(pgcode)
    if kind is None:
        logger.warning(
            "Unknown Postgres integrity error code encountered",
            extra={"pgcode": pgcode, "constraint_name": constraint_name},
        )
        return ConstraintKind.UNKNOWN, constraint_name

    logger.debug("Postgres integrity diagnostic", extra={"pgcode": pgcode, "constraint_name": constraint_name})
    return kind, constraint_name


def _classify_from_message(msg: str) -> ConstraintKind:
    normalized = (msg or "").lower()
    for kind, keywords in _MESSAGE_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return kind

    logger.debug("Unknown integrity raw message", extra={"raw": msg})
    return ConstraintKind.UNKNOWN


def classify_integrity_error(exc: IntegrityError) -> tuple[ConstraintKind, str | None]:
    """
    Classify a SQLAlchemy IntegrityError.

    Returns:
        A tuple of (ConstraintKind, constraint name if the driver reports one)
    """
    orig = exc.orig

    kind, constraint_name = _classify_from_postgres(orig)
    if kind is not None:
        return kind, constraint_name

    return _classify_from_message(str(orig) if orig is not None else str(exc)), None
