"""Aggregate application use cases."""

from .messages import (
    archive_message,
    list_conversation_history,
    mark_message_read,
    mark_messages_read,
    sync_realtime_reads,
)
from .notifications import NotificationBatchQueue

__all__ = [
    "NotificationBatchQueue",
    "archive_message",
    "list_conversation_history",
    "mark_message_read",
    "mark_messages_read",
    "sync_realtime_reads",
]
