"""Schemas for chat archival and read-receipt endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AttachmentPayload(BaseModel):
    id: str
    file_name: str
    file_url: str
    file_size: int = Field(default=0, ge=0)
    mime_type: str


class ArchiveMessageRequest(BaseModel):
    """Message copied from the realtime store.

    Required fields are validated by the archival use case so that a missing
    value is reported as a bad request.
    """

    external_id: str | None = None
    sender_id: int | None = None
    recipient_id: int | None = None
    content: str | None = None
    sent_at: datetime | None = None
    conversation_id: str | None = None
    subject: str | None = None
    attachments: list[AttachmentPayload] = Field(default_factory=list)


class ChatMessageRead(BaseModel):
    id: int
    external_id: str
    sender_id: int
    recipient_id: int
    conversation_id: str | None
    subject: str | None
    content: str
    is_read: bool
    read_at: datetime | None
    sent_at: datetime
    created_at: datetime | None
    attachments: list[AttachmentPayload] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ArchiveMessageResponse(BaseModel):
    created: bool
    message: ChatMessageRead


class ReadReceiptRead(BaseModel):
    message_id: int
    is_read: bool
    read_at: datetime | None
    already_read: bool = False


class BulkMarkReadRequest(BaseModel):
    message_ids: list[int] = Field(default_factory=list)
    conversation_id: str | None = None


class RealtimeReadSyncRequest(BaseModel):
    """Read flags a client recorded directly in the realtime store."""

    conversation_id: str | None = None
    external_ids: list[str] = Field(default_factory=list)


class BulkReadResponse(BaseModel):
    count: int
    message_ids: list[int]
    read_at: datetime | None


__all__ = [
    "ArchiveMessageRequest",
    "ArchiveMessageResponse",
    "AttachmentPayload",
    "BulkMarkReadRequest",
    "BulkReadResponse",
    "ChatMessageRead",
    "ReadReceiptRead",
    "RealtimeReadSyncRequest",
]
