"""Domain entities representing user notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    """Closed set of notification categories."""

    NEW_MESSAGE = "NEW_MESSAGE"
    CASE_STATUS_UPDATE = "CASE_STATUS_UPDATE"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    CASE_ASSIGNED = "CASE_ASSIGNED"
    SYSTEM_ANNOUNCEMENT = "SYSTEM_ANNOUNCEMENT"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    user_id: int
    type: NotificationType
    title: str
    message: str
    case_id: str | None = None
    action_url: str | None = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class PendingNotification:
    """Notification waiting in the process-local batch queue.

    ``enqueued_at`` is a monotonic clock reading; ``attempts`` counts the
    failed flushes the item has been part of.
    """

    user_id: int
    type: NotificationType
    title: str
    message: str
    enqueued_at: float
    case_id: str | None = None
    action_url: str | None = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    attempts: int = field(default=0)

    def to_notification(self) -> Notification:
        return Notification(
            id=None,
            user_id=self.user_id,
            type=self.type,
            title=self.title,
            message=self.message,
            case_id=self.case_id,
            action_url=self.action_url,
            priority=self.priority,
        )


__all__ = [
    "Notification",
    "NotificationPriority",
    "NotificationType",
    "PendingNotification",
]
