"""Classify PostgreSQL errors raised through SQLAlchemy by SQLSTATE."""

from __future__ import annotations

from fastapi import status
from sqlalchemy.exc import DBAPIError

from taskflow.core.messages import AccessMessages, DataMessages

INSUFFICIENT_PRIVILEGE = "42501"
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

_STATUS_BY_SQLSTATE: dict[str, tuple[int, str]] = {
    # Row-level security WITH CHECK failures and missing grants both land here.
    INSUFFICIENT_PRIVILEGE: (status.HTTP_403_FORBIDDEN, AccessMessages.PERMISSION_DENIED),
    UNIQUE_VIOLATION: (status.HTTP_409_CONFLICT, DataMessages.CONFLICT),
    FOREIGN_KEY_VIOLATION: (status.HTTP_409_CONFLICT, DataMessages.INVALID_REFERENCE),
}


def sqlstate_of(exc: DBAPIError) -> str | None:
    """Return the SQLSTATE carried by the driver error, if any.

    The asyncpg adapter exposes ``sqlstate`` on the wrapped error; older
    SQLAlchemy releases only keep it on the original asyncpg exception,
    reachable through ``__cause__``.
    """
    orig = getattr(exc, "orig", None)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def is_unique_violation(exc: DBAPIError) -> bool:
    return sqlstate_of(exc) == UNIQUE_VIOLATION


def is_permission_denied(exc: DBAPIError) -> bool:
    return sqlstate_of(exc) == INSUFFICIENT_PRIVILEGE


def http_error_for(exc: DBAPIError) -> tuple[int, str] | None:
    """Map a database error to ``(status_code, detail)`` or ``None`` if unexpected."""
    code = sqlstate_of(exc)
    if code is None:
        return None
    return _STATUS_BY_SQLSTATE.get(code)
