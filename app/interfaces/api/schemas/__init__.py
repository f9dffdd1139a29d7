from .chat import (
    ArchiveMessageRequest,
    ArchiveMessageResponse,
    AttachmentPayload,
    BulkMarkReadRequest,
    BulkReadResponse,
    ChatMessageRead,
    ReadReceiptRead,
    RealtimeReadSyncRequest,
)
from .notification import (
    AnnouncementCreate,
    AnnouncementQueued,
    NotificationRead,
    UnreadCountRead,
)

__all__ = [
    "AnnouncementCreate",
    "AnnouncementQueued",
    "ArchiveMessageRequest",
    "ArchiveMessageResponse",
    "AttachmentPayload",
    "BulkMarkReadRequest",
    "BulkReadResponse",
    "ChatMessageRead",
    "NotificationRead",
    "ReadReceiptRead",
    "RealtimeReadSyncRequest",
    "UnreadCountRead",
]
