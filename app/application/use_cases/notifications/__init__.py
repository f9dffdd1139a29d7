"""Public helpers for queueing notifications."""

from .events import (
    notify_case_assigned,
    notify_case_update,
    notify_document_status,
    notify_new_message,
    notify_system_announcement,
)
from .queue import NotificationBatchQueue, NotificationStore, realtime_notification_payload

__all__ = [
    "NotificationBatchQueue",
    "NotificationStore",
    "realtime_notification_payload",
    "notify_new_message",
    "notify_case_update",
    "notify_case_assigned",
    "notify_document_status",
    "notify_system_announcement",
]
