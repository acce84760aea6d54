"""Tests for SQLSTATE classification of database errors."""

import pytest
from sqlalchemy.exc import DBAPIError

from taskflow.core.messages import AccessMessages, DataMessages
from taskflow.db.errors import http_error_for, is_permission_denied, is_unique_violation, sqlstate_of


class _DriverError(Exception):
    def __init__(self, sqlstate=None):
        super().__init__("driver error")
        self.sqlstate = sqlstate


def _wrap(orig: Exception) -> DBAPIError:
    return DBAPIError("INSERT ...", {}, orig)


@pytest.mark.unit
def test_sqlstate_read_from_adapter_error():
    assert sqlstate_of(_wrap(_DriverError("42501"))) == "42501"


@pytest.mark.unit
def test_sqlstate_read_from_cause():
    adapter_error = Exception("adapter")
    adapter_error.__cause__ = _DriverError("23505")

    exc = _wrap(adapter_error)

    assert sqlstate_of(exc) == "23505"
    assert is_unique_violation(exc)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("sqlstate", "expected"),
    [
        ("42501", (403, AccessMessages.PERMISSION_DENIED)),
        ("23505", (409, DataMessages.CONFLICT)),
        ("23503", (409, DataMessages.INVALID_REFERENCE)),
        ("40001", None),
        (None, None),
    ],
)
def test_http_error_for(sqlstate, expected):
    assert http_error_for(_wrap(_DriverError(sqlstate))) == expected


@pytest.mark.unit
def test_permission_denied_detection():
    assert is_permission_denied(_wrap(_DriverError("42501")))
    assert not is_permission_denied(_wrap(_DriverError("23505")))
