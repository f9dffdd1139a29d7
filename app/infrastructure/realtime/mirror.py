"""Realtime mirror gateway backed by websocket rooms."""

from __future__ import annotations

import copy
from collections import OrderedDict
from datetime import datetime
from typing import Any, Protocol

from app.utils import now_in_app_timezone

from .manager import RoomConnectionManager


class RealtimeMirror(Protocol):
    """Keyed, low-latency store feeding live UI subscriptions."""

    async def write_keyed(self, room_key: str, item_key: str, value: dict[str, Any]) -> None:
        ...

    async def set_read_flag(self, room_key: str, item_key: str, reader_id: str) -> None:
        ...


class WebSocketRealtimeMirror:
    """Keep a bounded per-room snapshot and publish every change to subscribers.

    The snapshot is not authoritative; it lets a client that joins a room
    late catch up on recent items without a durable round trip.
    """

    def __init__(self, manager: RoomConnectionManager, *, max_items_per_room: int = 200) -> None:
        self._manager = manager
        self._max_items = max_items_per_room
        self._rooms: dict[str, OrderedDict[str, dict[str, Any]]] = {}

    async def write_keyed(self, room_key: str, item_key: str, value: dict[str, Any]) -> None:
        """Store ``value`` under ``item_key`` in ``room_key`` and broadcast it."""

        item = serialize_realtime_value(value)
        room = self._rooms.setdefault(room_key, OrderedDict())
        room[item_key] = item
        room.move_to_end(item_key)
        while len(room) > self._max_items:
            room.popitem(last=False)

        await self._manager.publish(
            room_key, {"type": "item", "room": room_key, "key": item_key, "data": item}
        )

    async def set_read_flag(self, room_key: str, item_key: str, reader_id: str) -> None:
        """Flag ``item_key`` as read by ``reader_id`` and broadcast the receipt."""

        read_at = now_in_app_timezone().isoformat()
        item = self._rooms.get(room_key, {}).get(item_key)
        if item is not None:
            if item.get("isRead"):
                return
            item.update({"isRead": True, "readAt": read_at, "deliveryStatus": "read"})

        await self._manager.publish(
            room_key,
            {
                "type": "read-receipt",
                "room": room_key,
                "key": item_key,
                "data": {"readerId": reader_id, "isRead": True, "readAt": read_at},
            },
        )

    def snapshot(self, room_key: str) -> list[dict[str, Any]]:
        """Return copies of the items currently held for ``room_key``."""

        return [
            {"key": key, "data": copy.deepcopy(value)}
            for key, value in self._rooms.get(room_key, {}).items()
        ]


def serialize_realtime_value(value: dict[str, Any]) -> dict[str, Any]:
    """Return a JSON-serializable deep copy of ``value``."""

    payload = copy.deepcopy(value)
    _normalize_datetime_values(payload)
    return payload


def _normalize_datetime_values(data: dict[str, Any] | list[Any]) -> None:
    """Convert ``datetime`` instances nested inside ``data`` into ISO strings."""

    if isinstance(data, dict):
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
            elif isinstance(value, (dict, list)):
                _normalize_datetime_values(value)
    elif isinstance(data, list):
        for index, item in enumerate(data):
            if isinstance(item, datetime):
                data[index] = item.isoformat()
            elif isinstance(item, (dict, list)):
                _normalize_datetime_values(item)


__all__ = ["RealtimeMirror", "WebSocketRealtimeMirror", "serialize_realtime_value"]
