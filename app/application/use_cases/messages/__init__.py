"""Use cases for archived chat messages and their read state."""

from .archive_message import archive_message
from .list_conversation_history import list_conversation_history
from .mark_message_read import mark_message_read
from .mark_messages_read import mark_messages_read
from .sync_realtime_reads import sync_realtime_reads

__all__ = [
    "archive_message",
    "list_conversation_history",
    "mark_message_read",
    "mark_messages_read",
    "sync_realtime_reads",
]
