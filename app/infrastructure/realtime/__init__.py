"""Realtime mirror helpers for the infrastructure layer."""

from .background import BestEffortRunner
from .identity import IdentityTranslator, RealtimeIdentityTranslator
from .manager import RoomConnectionManager, conversation_room, notification_room
from .mirror import RealtimeMirror, WebSocketRealtimeMirror, serialize_realtime_value

__all__ = [
    "BestEffortRunner",
    "IdentityTranslator",
    "RealtimeIdentityTranslator",
    "RoomConnectionManager",
    "conversation_room",
    "notification_room",
    "RealtimeMirror",
    "WebSocketRealtimeMirror",
    "serialize_realtime_value",
]
