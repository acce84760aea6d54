"""Room-based WebSocket manager for row-change delivery.

Server-to-client broadcast only. Rooms are keyed by (owner id, table), so a
socket only ever receives changes to rows its authenticated user owns.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Set, Tuple

from fastapi import WebSocket

logger = logging.getLogger(__name__)

RoomKey = Tuple[uuid.UUID, str]


class RealtimeConnectionManager:
    """Manages WebSocket connections grouped by owner and table."""

    def __init__(self) -> None:
        self._rooms: Dict[RoomKey, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, user_id: uuid.UUID, tables: Iterable[str], websocket: WebSocket) -> None:
        """Subscribe an accepted WebSocket to each table's room."""
        async with self._lock:
            for table in tables:
                self._rooms.setdefault((user_id, table), set()).add(websocket)

    async def disconnect(self, user_id: uuid.UUID, websocket: WebSocket) -> None:
        """Remove a WebSocket from every room of ``user_id``."""
        async with self._lock:
            for key in [key for key in self._rooms if key[0] == user_id]:
                self._rooms[key].discard(websocket)
                if not self._rooms[key]:
                    del self._rooms[key]

    async def publish(self, user_id: uuid.UUID, table: str, action: str, record: Dict[str, Any]) -> int:
        """Send a change to every socket in the room; returns the number reached."""
        async with self._lock:
            connections = list(self._rooms.get((user_id, table), set()))

        message = {
            "table": table,
            "type": action.upper(),
            "record": record,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        delivered = 0
        for websocket in connections:
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception:
                logger.debug("Dropping realtime socket for %s after failed send", user_id)
                await self.disconnect(user_id, websocket)
        return delivered

    def room_size(self, user_id: uuid.UUID, table: str) -> int:
        """Return the number of connections in a room."""
        return len(self._rooms.get((user_id, table), set()))


realtime_manager = RealtimeConnectionManager()
