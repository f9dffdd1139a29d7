"""Connection management helpers for realtime websockets."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, DefaultDict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def conversation_room(conversation_id: str) -> str:
    """Return the room key carrying the live chat of ``conversation_id``."""

    return f"chats/{conversation_id}"


def notification_room(user_id: int | str) -> str:
    """Return the room key carrying the notification feed of ``user_id``."""

    return f"notifications/{user_id}"


class RoomConnectionManager:
    """Manage active websocket connections grouped by room key."""

    def __init__(self) -> None:
        self._connections: DefaultDict[str, Set[WebSocket]] = defaultdict(set)

    async def connect(self, room_key: str, websocket: WebSocket) -> None:
        """Accept the websocket connection and subscribe it to ``room_key``."""

        await websocket.accept()
        self._connections[room_key].add(websocket)

    def disconnect(self, room_key: str, websocket: WebSocket) -> None:
        """Remove ``websocket`` from the subscribers of ``room_key``."""

        connections = self._connections.get(room_key)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(room_key, None)

    def subscriber_count(self, room_key: str) -> int:
        return len(self._connections.get(room_key, ()))

    async def publish(self, room_key: str, message: dict[str, Any]) -> int:
        """Send ``message`` to every subscriber of ``room_key``.

        Returns the number of connections that received it. Connections that
        fail are dropped from the room.
        """

        delivered = 0
        for connection in list(self._connections.get(room_key, set())):
            try:
                await connection.send_json(message)
            except Exception as exc:
                logger.info("Dropping websocket from room %s: %s", room_key, exc)
                self.disconnect(room_key, connection)
            else:
                delivered += 1
        return delivered


__all__ = ["RoomConnectionManager", "conversation_room", "notification_room"]
