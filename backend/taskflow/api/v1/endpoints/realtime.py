"""WebSocket endpoint for realtime row changes on tasks and notifications."""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from taskflow.core.security import decode_token_subject
from taskflow.core.messages import AuthMessages, RealtimeMessages
from taskflow.db import session as db_session
from taskflow.models.user import User
from taskflow.services.change_feed import PUBLISHED_TABLES
from taskflow.services.realtime import realtime_manager

router = APIRouter()
logger = logging.getLogger(__name__)


class SubscriptionError(ValueError):
    pass


def resolve_subscription(
    authenticated_id: uuid.UUID,
    requested_user_id: Optional[str],
    tables_param: Optional[str],
) -> List[str]:
    """Validate a subscription request and return the tables to join.

    The owner filter must name the authenticated user; realtime delivery is
    never a way to observe someone else's rows.
    """
    if requested_user_id:
        try:
            requested = uuid.UUID(requested_user_id)
        except ValueError as exc:
            raise SubscriptionError(RealtimeMessages.OWNER_MISMATCH) from exc
        if requested != authenticated_id:
            raise SubscriptionError(RealtimeMessages.OWNER_MISMATCH)

    if not tables_param:
        return sorted(PUBLISHED_TABLES)
    tables = []
    for table in tables_param.split(","):
        table = table.strip()
        if not table:
            continue
        if table not in PUBLISHED_TABLES:
            raise SubscriptionError(RealtimeMessages.UNKNOWN_TABLE)
        if table not in tables:
            tables.append(table)
    return tables or sorted(PUBLISHED_TABLES)


@router.websocket("")
async def realtime_updates(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    tables: Optional[str] = Query(default=None),
    user_id: Optional[str] = Query(default=None),
) -> None:
    """Server-to-client stream of row changes.

    Protocol:
    1. Client connects with ``?token=<bearer>&tables=tasks,notifications``
       (optionally ``&user_id=<own id>``)
    2. Server replies ``{"type": "subscribed", "tables": [...]}``
    3. Server pushes ``{"table", "type", "record", "timestamp"}`` per change
    """
    await websocket.accept()

    authenticated_id = decode_token_subject(token) if token else None
    if authenticated_id is None:
        await websocket.send_json({"type": "error", "detail": AuthMessages.INVALID_TOKEN})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    async with db_session.AsyncSessionLocal() as session:
        user = await session.get(User, authenticated_id)
    if user is None or not user.is_active:
        logger.warning("Realtime WS: auth failed for %s", authenticated_id)
        await websocket.send_json({"type": "error", "detail": AuthMessages.INVALID_TOKEN})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        subscribed = resolve_subscription(authenticated_id, user_id, tables)
    except SubscriptionError as exc:
        await websocket.send_json({"type": "error", "detail": str(exc)})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await realtime_manager.connect(authenticated_id, subscribed, websocket)
    await websocket.send_json({"type": "subscribed", "tables": subscribed})
    try:
        while True:
            # Client messages are ignored; reading keeps disconnects observable.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await realtime_manager.disconnect(authenticated_id, websocket)
