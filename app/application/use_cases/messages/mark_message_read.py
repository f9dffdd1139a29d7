"""Use case for marking a single chat message as read."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.domain.entities import ReadReceipt
from app.domain.exceptions import ForbiddenError, MessageNotFoundError
from app.infrastructure.realtime import BestEffortRunner, IdentityTranslator, RealtimeMirror
from app.infrastructure.repositories import ChatMessageRepository
from app.utils import now_in_app_timezone

from .read_mirroring import mirror_read_flags

logger = logging.getLogger(__name__)


def mark_message_read(
    session: Session,
    *,
    message_id: int,
    requesting_user_id: int,
    mirror: RealtimeMirror | None = None,
    identity: IdentityTranslator | None = None,
    runner: BestEffortRunner | None = None,
) -> ReadReceipt:
    """Record that the recipient opened ``message_id``.

    The durable row is updated first and is authoritative. The realtime
    mirror is updated afterwards on a best-effort basis and its failures
    never reach the caller.
    """

    repository = ChatMessageRepository(session)
    message = repository.get(message_id)
    if message is None:
        raise MessageNotFoundError(f"Message {message_id} not found")

    if message.recipient_id != requesting_user_id:
        logger.warning(
            "User %s attempted to mark message %s addressed to %s as read",
            requesting_user_id,
            message_id,
            message.recipient_id,
        )
        raise ForbiddenError("You can only mark messages sent to you as read")

    if message.is_read:
        logger.info("Message %s already marked as read", message_id)
        return ReadReceipt(
            message_id=message_id, is_read=True, read_at=message.read_at, already_read=True
        )

    read_at = now_in_app_timezone()
    if not repository.mark_read(message_id, read_at):
        current = repository.get(message_id)
        return ReadReceipt(
            message_id=message_id,
            is_read=True,
            read_at=current.read_at if current else None,
            already_read=True,
        )

    logger.info("Message %s marked as read by user %s", message_id, requesting_user_id)
    mirror_read_flags(
        [message],
        reader_id=requesting_user_id,
        mirror=mirror,
        identity=identity,
        runner=runner,
    )
    return ReadReceipt(message_id=message_id, is_read=True, read_at=read_at)
