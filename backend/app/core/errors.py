"""Error taxonomy and centralized normalization for user-facing messages.

Every error surfaced to a caller must pass through this module to ensure:
- A closed set of machine-readable codes with HTTP-equivalent statuses
- No stack traces, SQL, or provider text in user-facing output
- Detailed info logged for debugging

Store errors are classified by SQLSTATE-style codes (``23505`` unique
violation, ``23503`` foreign-key violation, ``23502`` not-null violation),
read from the DBAPI exception when the driver exposes them and derived from
SQLite's constraint messages otherwise.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy.exc import DBAPIError

from backend.app.core.logging import (
    EVENT_DB_READ_FAILED,
    EVENT_DB_WRITE_FAILED,
    EVENT_UNKNOWN_ERROR,
    log_event,
)

logger = logging.getLogger(__name__)


class ErrorKind(StrEnum):
    """Closed set of error codes exposed to callers."""

    validation = "VALIDATION_ERROR"
    authentication = "AUTH_ERROR"
    authorization = "AUTHORIZATION_ERROR"
    not_found = "NOT_FOUND"
    conflict = "CONFLICT_ERROR"
    external_service = "EXTERNAL_SERVICE_ERROR"
    database = "DATABASE_ERROR"
    internal = "INTERNAL_ERROR"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.validation: 400,
    ErrorKind.authentication: 401,
    ErrorKind.authorization: 403,
    ErrorKind.not_found: 404,
    ErrorKind.conflict: 409,
    ErrorKind.external_service: 503,
    ErrorKind.database: 500,
    ErrorKind.internal: 500,
}

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."
AI_UNAVAILABLE_MESSAGE = "AI features are temporarily unavailable. Please try again later."


# ---------------------------------------------------------------------------
# Application errors
# ---------------------------------------------------------------------------


class AppError(Exception):
    """Base application error tagged with an :class:`ErrorKind`."""

    kind: ErrorKind = ErrorKind.internal

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ValidationError(AppError):
    """Malformed or out-of-range input, optionally tied to one field."""

    kind = ErrorKind.validation


class AuthenticationError(AppError):
    kind = ErrorKind.authentication

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AuthorizationError(AppError):
    kind = ErrorKind.authorization

    def __init__(
        self, message: str = "You do not have permission to perform this action",
    ) -> None:
        super().__init__(message)


class NotFoundError(AppError):
    kind = ErrorKind.not_found

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(f"{resource} not found")


class ConflictError(AppError):
    """A unique value (e.g. a slug) is already taken."""

    kind = ErrorKind.conflict


class ExternalServiceError(AppError):
    """An upstream service (AI provider, auth service) failed."""

    kind = ErrorKind.external_service

    def __init__(
        self, service: str, message: str = "Service temporarily unavailable",
    ) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service


class DatabaseError(AppError):
    kind = ErrorKind.database

    def __init__(self, message: str = "Database operation failed") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Normalized representation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NormalizedError:
    """Standardized error representation for API responses."""

    message: str
    code: str
    status_code: int = 500
    field: str | None = None
    errors: dict[str, str] | None = None

    def to_response(self) -> dict[str, object]:
        body: dict[str, object] = {"error": self.message, "code": self.code}
        if self.field:
            body["field"] = self.field
        if self.errors:
            body["errors"] = dict(self.errors)
        return body


# ---------------------------------------------------------------------------
# Store error codes
# ---------------------------------------------------------------------------

_SQLSTATE = re.compile(r"^[0-9A-Z]{5}$")

_SQLITE_MESSAGE_CODES = (
    ("unique constraint failed", UNIQUE_VIOLATION),
    ("foreign key constraint failed", FOREIGN_KEY_VIOLATION),
    ("not null constraint failed", NOT_NULL_VIOLATION),
)


def store_error_code(exc: BaseException) -> str | None:
    """Return the SQLSTATE-style code of a store error, or ``None``.

    Looks at the DBAPI error wrapped by SQLAlchemy (``pgcode`` for psycopg2,
    ``sqlstate`` for psycopg 3), then at a plain ``code`` attribute, then at
    SQLite's constraint-failure wording.
    """
    candidates: list[object] = [exc]
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        candidates.insert(0, exc.orig)

    for candidate in candidates:
        for attr in ("pgcode", "sqlstate", "code"):
            value = getattr(candidate, attr, None)
            if isinstance(value, str) and _SQLSTATE.match(value):
                return value

    msg = _driver_message(exc).lower()
    for needle, code in _SQLITE_MESSAGE_CODES:
        if needle in msg:
            return code
    return None


def _driver_message(exc: BaseException) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


def is_unique_violation_on(exc: BaseException, column: str) -> bool:
    """Return True if *exc* is a unique violation naming *column*.

    Only the driver message is inspected; the SQL statement SQLAlchemy
    appends would mention every column.
    """
    return store_error_code(exc) == UNIQUE_VIOLATION and column in _driver_message(exc)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def handle_error(exc: BaseException) -> NormalizedError:
    """Classify *exc* into the taxonomy and return a caller-safe error.

    Known :class:`AppError` instances pass through unchanged; store errors are
    mapped by code; anything else is logged with detail and reduced to a
    generic internal error.
    """
    if isinstance(exc, AppError):
        return NormalizedError(
            message=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            field=exc.field,
        )

    code = store_error_code(exc)
    if code == UNIQUE_VIOLATION:
        return NormalizedError(
            message="A record with this value already exists",
            code=ErrorKind.conflict.value,
            status_code=409,
        )
    if code == FOREIGN_KEY_VIOLATION:
        return NormalizedError(
            message="Referenced record does not exist",
            code=ErrorKind.validation.value,
            status_code=400,
        )
    if code == NOT_NULL_VIOLATION:
        return NormalizedError(
            message="Required field is missing",
            code=ErrorKind.validation.value,
            status_code=400,
        )

    return normalize_unknown_error(exc, operation="handle_error")


def format_validation_errors(errors: dict[str, str]) -> NormalizedError:
    """Wrap a field -> message map as a single validation failure."""
    return NormalizedError(
        message="Validation failed",
        code=ErrorKind.validation.value,
        status_code=400,
        errors=dict(errors),
    )


def is_error_type(exc: BaseException, error_class: type[AppError]) -> bool:
    return isinstance(exc, error_class)


def normalize_db_error(
    exc: BaseException,
    *,
    operation: str,
    message: str = "Database operation failed",
    correlation_id: str | None = None,
    read: bool = False,
) -> DatabaseError:
    """Log a store failure with detail and return a safe :class:`DatabaseError`."""
    log_event(
        logger, "error", EVENT_DB_READ_FAILED if read else EVENT_DB_WRITE_FAILED,
        operation=operation,
        error_category=ErrorKind.database.value,
        store_code=store_error_code(exc) or "N/A",
        correlation_id=correlation_id or "N/A",
        detail=str(exc),
    )
    return DatabaseError(message)


def normalize_unknown_error(
    exc: BaseException,
    *,
    operation: str,
    correlation_id: str | None = None,
) -> NormalizedError:
    """Normalize an unexpected error into a safe generic message."""
    log_event(
        logger, "exception", EVENT_UNKNOWN_ERROR,
        operation=operation,
        error_category="unknown",
        correlation_id=correlation_id or "N/A",
        detail=f"{type(exc).__name__}: {exc}",
    )
    return NormalizedError(
        message=GENERIC_ERROR_MESSAGE,
        code=ErrorKind.internal.value,
        status_code=500,
    )
