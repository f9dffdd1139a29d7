"""Use case for archiving realtime chat messages into the durable store."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from app.domain.entities import ArchiveResult, ChatMessage, MessageAttachment
from app.domain.exceptions import (
    ForbiddenError,
    InvalidInputError,
    UniqueConstraintViolation,
)
from app.infrastructure.repositories import ChatMessageRepository
from app.utils import ensure_app_timezone

from .validators import (
    MAX_CONVERSATION_ID_LENGTH,
    MAX_EXTERNAL_ID_LENGTH,
    MAX_SUBJECT_LENGTH,
    optional_text,
    require_present,
    require_text,
)

logger = logging.getLogger(__name__)


def archive_message(
    session: Session,
    *,
    external_id: str,
    sender_id: int,
    recipient_id: int,
    content: str,
    sent_at: datetime | None,
    conversation_id: str | None = None,
    subject: str | None = None,
    attachments: Sequence[MessageAttachment] | None = None,
    requesting_user_id: int | None = None,
    repository: ChatMessageRepository | None = None,
) -> ArchiveResult:
    """Persist a message that already exists in the realtime store.

    Safe to call repeatedly for the same ``external_id``: later calls, and a
    concurrent call that loses the insert race, return the stored row.
    """

    external_id = require_text(external_id, "external_id", max_length=MAX_EXTERNAL_ID_LENGTH)
    require_present(sender_id, "sender_id")
    require_present(recipient_id, "recipient_id")
    content = require_text(content, "content")
    conversation_id = optional_text(
        conversation_id, "conversation_id", max_length=MAX_CONVERSATION_ID_LENGTH
    )
    subject = optional_text(subject, "subject", max_length=MAX_SUBJECT_LENGTH)
    if sent_at is None:
        raise InvalidInputError("Missing required field: sent_at")

    if requesting_user_id is not None and requesting_user_id not in (sender_id, recipient_id):
        logger.warning(
            "User %s attempted to archive message %s between %s and %s",
            requesting_user_id,
            external_id,
            sender_id,
            recipient_id,
        )
        raise ForbiddenError("You can only archive messages you are involved in")

    repository = repository or ChatMessageRepository(session)

    existing = repository.find_by_external_id(external_id)
    if existing is not None:
        logger.info("Message %s already archived as %s", external_id, existing.id)
        return ArchiveResult(message=existing, created=False)

    message = ChatMessage(
        id=None,
        external_id=external_id,
        sender_id=sender_id,
        recipient_id=recipient_id,
        conversation_id=conversation_id,
        subject=subject,
        content=content,
        sent_at=ensure_app_timezone(sent_at),
        attachments=list(attachments or []),
    )

    try:
        saved = repository.insert(message)
    except UniqueConstraintViolation as exc:
        existing = repository.find_by_external_id(external_id)
        if existing is None:
            # The violated constraint was not the external key.
            raise InvalidInputError(f"Message {external_id} could not be archived") from exc
        logger.info(
            "Message %s archived concurrently as %s; returning existing row",
            external_id,
            existing.id,
        )
        return ArchiveResult(message=existing, created=False)

    logger.info("Message %s archived as %s", external_id, saved.id)
    return ArchiveResult(message=saved, created=True)
