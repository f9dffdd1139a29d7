"""Domain entities describing archived chat messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class MessageAttachment:
    """File reference attached to a chat message."""

    id: str
    file_name: str
    file_url: str
    file_size: int
    mime_type: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "file_name": self.file_name,
            "file_url": self.file_url,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MessageAttachment":
        return cls(
            id=str(data.get("id", "")),
            file_name=str(data.get("file_name", "")),
            file_url=str(data.get("file_url", "")),
            file_size=int(data.get("file_size") or 0),
            mime_type=str(data.get("mime_type", "")),
        )


@dataclass
class ChatMessage:
    """A chat message that has crossed from the realtime store into durable storage.

    ``external_id`` is the key issued by the realtime store and is unique.
    ``conversation_id`` is the case whose chat room carried the message; it is
    ``None`` for messages exchanged outside a case conversation.
    """

    id: int | None
    external_id: str
    sender_id: int
    recipient_id: int
    content: str
    sent_at: datetime
    conversation_id: str | None = None
    subject: str | None = None
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime | None = None
    attachments: list[MessageAttachment] = field(default_factory=list)


@dataclass(frozen=True)
class ArchiveResult:
    """Outcome of archiving a realtime message."""

    message: ChatMessage
    created: bool


@dataclass(frozen=True)
class ReadReceipt:
    """Read state of a single message after a mark-read request."""

    message_id: int
    is_read: bool
    read_at: datetime | None
    already_read: bool = False


@dataclass(frozen=True)
class BulkReadResult:
    """Messages transitioned to read by a bulk or sync request."""

    count: int
    message_ids: list[int]
    read_at: datetime | None


__all__ = [
    "ArchiveResult",
    "BulkReadResult",
    "ChatMessage",
    "MessageAttachment",
    "ReadReceipt",
]
