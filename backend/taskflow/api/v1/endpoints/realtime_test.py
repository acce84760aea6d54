"""Tests for realtime subscription validation and the WebSocket handshake."""

import uuid

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from taskflow.api.v1.endpoints.realtime import SubscriptionError, resolve_subscription
from taskflow.core.messages import AuthMessages, RealtimeMessages
from taskflow.main import app

USER_ID = uuid.uuid4()


@pytest.mark.unit
def test_defaults_to_every_published_table():
    assert resolve_subscription(USER_ID, None, None) == ["notifications", "tasks"]


@pytest.mark.unit
def test_explicit_tables_are_deduplicated():
    assert resolve_subscription(USER_ID, str(USER_ID), "tasks, tasks,") == ["tasks"]


@pytest.mark.unit
def test_unpublished_table_is_refused():
    with pytest.raises(SubscriptionError) as exc_info:
        resolve_subscription(USER_ID, None, "tasks,categories")
    assert str(exc_info.value) == RealtimeMessages.UNKNOWN_TABLE


@pytest.mark.unit
@pytest.mark.parametrize("requested", [str(uuid.uuid4()), "not-a-uuid"])
def test_owner_filter_must_match_caller(requested):
    with pytest.raises(SubscriptionError) as exc_info:
        resolve_subscription(USER_ID, requested, "tasks")
    assert str(exc_info.value) == RealtimeMessages.OWNER_MISMATCH


@pytest.mark.unit
def test_websocket_rejects_bad_token():
    # No lifespan: the handshake fails before any database access.
    client = TestClient(app)
    with client.websocket_connect("/api/v1/realtime?token=garbage") as websocket:
        assert websocket.receive_json() == {"type": "error", "detail": AuthMessages.INVALID_TOKEN}
        with pytest.raises(WebSocketDisconnect) as exc_info:
            websocket.receive_json()
    assert exc_info.value.code == 1008
