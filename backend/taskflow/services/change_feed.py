"""Relay database row changes to realtime subscribers.

The ``notify_row_change`` trigger publishes a small JSON payload
(table, action, id, user_id) on ``settings.REALTIME_CHANNEL`` for every
insert, update and delete on the published tables. A single asyncpg
connection LISTENs on that channel; each event is re-read under the owner's
RLS context and pushed to the owner's WebSocket room.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import asyncpg
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.config import settings
from taskflow.db.session import AsyncSessionLocal, set_rls_context
from taskflow.models.notification import Notification
from taskflow.models.task import Task
from taskflow.schemas.notification import NotificationRead
from taskflow.schemas.task import TaskRead
from taskflow.services.realtime import RealtimeConnectionManager, realtime_manager

logger = logging.getLogger(__name__)

PUBLISHED_TABLES: Dict[str, tuple[type, type[BaseModel]]] = {
    "tasks": (Task, TaskRead),
    "notifications": (Notification, NotificationRead),
}
ACTIONS = frozenset({"insert", "update", "delete"})

# Placed on the queue when the LISTEN connection drops.
_DISCONNECTED = object()


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    action: str
    id: uuid.UUID
    user_id: uuid.UUID


def parse_event(payload: str) -> Optional[ChangeEvent]:
    """Decode a NOTIFY payload, or return None if it is not a change event."""
    try:
        data = json.loads(payload)
        event = ChangeEvent(
            table=data["table"],
            action=data["action"],
            id=uuid.UUID(str(data["id"])),
            user_id=uuid.UUID(str(data["user_id"])),
        )
    except (ValueError, KeyError, TypeError):
        logger.warning("Ignoring malformed change payload: %r", payload)
        return None
    if event.table not in PUBLISHED_TABLES or event.action not in ACTIONS:
        logger.warning("Ignoring change for unpublished table/action: %s/%s", event.table, event.action)
        return None
    return event


async def load_record(
    event: ChangeEvent,
    session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
) -> Optional[Dict[str, Any]]:
    """Read the changed row as its owner would see it."""
    if event.action == "delete":
        return {"id": str(event.id), "user_id": str(event.user_id)}

    model, schema = PUBLISHED_TABLES[event.table]
    async with session_factory() as session:
        await set_rls_context(session, user_id=event.user_id)
        row = await session.get(model, event.id)
        if row is None:
            # Deleted again before we got to it; the delete event follows.
            return None
        return schema.model_validate(row).model_dump(mode="json")


async def dispatch(
    event: ChangeEvent,
    manager: RealtimeConnectionManager = realtime_manager,
    session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
) -> int:
    if manager.room_size(event.user_id, event.table) == 0:
        return 0
    record = await load_record(event, session_factory)
    if record is None:
        return 0
    return await manager.publish(event.user_id, event.table, event.action, record)


class ChangeFeedListener:
    """Owns the LISTEN connection and reconnects with a fixed delay."""

    def __init__(
        self,
        dsn: str,
        channel: str,
        *,
        reconnect_seconds: float = 5,
        manager: RealtimeConnectionManager = realtime_manager,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
    ) -> None:
        self.dsn = dsn
        self.channel = channel
        self.reconnect_seconds = reconnect_seconds
        self.manager = manager
        self.session_factory = session_factory
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def _on_notification(self, connection, pid: int, channel: str, payload: str) -> None:
        self._queue.put_nowait(payload)

    def _on_termination(self, connection) -> None:
        self._queue.put_nowait(_DISCONNECTED)

    async def _consume(self) -> None:
        while True:
            payload = await self._queue.get()
            if payload is _DISCONNECTED:
                raise ConnectionError("change feed connection terminated")
            event = parse_event(payload)
            if event is None:
                continue
            try:
                await dispatch(event, self.manager, self.session_factory)
            except Exception:
                logger.exception("Failed to deliver %s change for %s", event.table, event.id)

    async def _listen_once(self) -> None:
        connection = await asyncpg.connect(self.dsn)
        try:
            connection.add_termination_listener(self._on_termination)
            await connection.add_listener(self.channel, self._on_notification)
            logger.info("Change feed listening on %s", self.channel)
            await self._consume()
        finally:
            connection.remove_termination_listener(self._on_termination)
            if not connection.is_closed():
                await connection.close()

    async def run(self) -> None:
        logger.info("Change feed worker started (channel=%s)", self.channel)
        try:
            while True:
                try:
                    await self._listen_once()
                except (OSError, ConnectionError, asyncpg.PostgresError):
                    logger.exception(
                        "Change feed connection lost; retrying in %ss", self.reconnect_seconds
                    )
                await asyncio.sleep(self.reconnect_seconds)
        except asyncio.CancelledError:
            logger.info("Change feed worker cancelled")
            raise


def start_change_feed() -> Optional[asyncio.Task]:
    if not settings.REALTIME_ENABLED:
        logger.info("Realtime delivery disabled")
        return None
    listener = ChangeFeedListener(
        settings.asyncpg_dsn,
        settings.REALTIME_CHANNEL,
        reconnect_seconds=settings.REALTIME_RECONNECT_SECONDS,
    )
    return asyncio.create_task(listener.run(), name="change-feed")
