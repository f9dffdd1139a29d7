"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.entities import NotificationPriority, NotificationType


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
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


class UnreadCountRead(BaseModel):
    count: int


class AnnouncementCreate(BaseModel):
    """System announcement; without ``user_ids`` every active user receives it."""

    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    user_ids: list[int] | None = None
    role: str | None = None
    action_url: str | None = Field(default=None, max_length=500)
    priority: NotificationPriority = NotificationPriority.MEDIUM


class AnnouncementQueued(BaseModel):
    queued: int


__all__ = ["AnnouncementCreate", "AnnouncementQueued", "NotificationRead", "UnreadCountRead"]
