"""ORM models used by the application infrastructure."""

from .user import UserModel
from .chat_message import ChatMessageModel
from .notification import NotificationModel

__all__ = [
    "UserModel",
    "ChatMessageModel",
    "NotificationModel",
]
