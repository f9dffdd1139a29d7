"""Domain entities exposed by the application."""

from .chat_message import (
    ArchiveResult,
    BulkReadResult,
    ChatMessage,
    MessageAttachment,
    ReadReceipt,
)
from .notification import (
    Notification,
    NotificationPriority,
    NotificationType,
    PendingNotification,
)
from .user import User

__all__ = [
    "ArchiveResult",
    "BulkReadResult",
    "ChatMessage",
    "MessageAttachment",
    "ReadReceipt",
    "Notification",
    "NotificationPriority",
    "NotificationType",
    "PendingNotification",
    "User",
]
