"""Use case for marking several chat messages as read at once."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy.orm import Session

from app.domain.entities import BulkReadResult, ChatMessage
from app.domain.exceptions import RetryableStoreFailure
from app.infrastructure.realtime import BestEffortRunner, IdentityTranslator, RealtimeMirror
from app.infrastructure.repositories import ChatMessageRepository, NotificationRepository
from app.utils import now_in_app_timezone

from .read_mirroring import mirror_read_flags
from .validators import unique_ids

logger = logging.getLogger(__name__)


def mark_messages_read(
    session: Session,
    *,
    message_ids: Sequence[int],
    requesting_user_id: int,
    mirror: RealtimeMirror | None = None,
    identity: IdentityTranslator | None = None,
    runner: BestEffortRunner | None = None,
    conversation_id: str | None = None,
) -> BulkReadResult:
    """Mark the unread messages among ``message_ids`` addressed to the requester.

    Messages addressed to someone else or already read are ignored rather
    than rejected. ``conversation_id`` narrows the update to one room.
    """

    ids = unique_ids(message_ids, "message_ids")
    repository = ChatMessageRepository(session)
    candidates = repository.list_unread_for_recipient(
        requesting_user_id, message_ids=ids, conversation_id=conversation_id or None
    )
    if not candidates:
        return BulkReadResult(count=0, message_ids=[], read_at=None)

    read_at = now_in_app_timezone()
    updated_ids = repository.mark_many_read(
        [message.id for message in candidates],
        recipient_id=requesting_user_id,
        read_at=read_at,
    )
    updated_set = set(updated_ids)
    updated = [message for message in candidates if message.id in updated_set]

    logger.info(
        "User %s marked %s of %s requested messages as read",
        requesting_user_id,
        len(updated_ids),
        len(ids),
    )
    mark_related_notifications_read(session, requesting_user_id, updated)
    mirror_read_flags(
        updated,
        reader_id=requesting_user_id,
        mirror=mirror,
        identity=identity,
        runner=runner,
    )
    return BulkReadResult(count=len(updated_ids), message_ids=updated_ids, read_at=read_at)


def mark_related_notifications_read(
    session: Session, user_id: int, messages: Iterable[ChatMessage]
) -> int:
    """Mark unread new-message notifications for the messages' cases as read.

    Failures are logged; the messages themselves are already durable.
    """

    case_ids = {message.conversation_id for message in messages if message.conversation_id}
    if not case_ids:
        return 0
    try:
        return NotificationRepository(session).mark_related_read(
            user_id=user_id, case_ids=case_ids
        )
    except RetryableStoreFailure as exc:
        logger.warning("Failed to mark related notifications as read: %s", exc)
        return 0
