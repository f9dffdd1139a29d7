"""Repository implementations for infrastructure layer."""

from .chat_message_repository import ChatMessageRepository
from .notification_repository import NotificationRepository, SessionNotificationStore
from .user_repository import UserRepository
from .errors import translate_store_errors

__all__ = [
    "ChatMessageRepository",
    "NotificationRepository",
    "SessionNotificationStore",
    "UserRepository",
    "translate_store_errors",
]
