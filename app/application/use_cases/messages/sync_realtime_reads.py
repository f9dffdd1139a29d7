"""Use case for importing read flags set directly in the realtime store."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import BulkReadResult
from app.infrastructure.repositories import ChatMessageRepository
from app.utils import now_in_app_timezone

from .mark_messages_read import mark_related_notifications_read
from .validators import require_text, unique_ids

logger = logging.getLogger(__name__)


def sync_realtime_reads(
    session: Session,
    *,
    conversation_id: str,
    external_ids: Sequence[str],
    requesting_user_id: int,
) -> BulkReadResult:
    """Apply read flags that a client recorded in the realtime store.

    Only unread durable rows of ``conversation_id`` addressed to the
    requester move to read; unknown external ids are ignored.
    """

    conversation_id = require_text(conversation_id, "conversation_id")
    keys = unique_ids(
        [key.strip() for key in external_ids or () if key and key.strip()], "external_ids"
    )

    repository = ChatMessageRepository(session)
    candidates = repository.list_unread_for_recipient(
        requesting_user_id, conversation_id=conversation_id, external_ids=keys
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
    mark_related_notifications_read(
        session,
        requesting_user_id,
        [message for message in candidates if message.id in updated_set],
    )

    logger.info(
        "Synced %s realtime read flags for user %s in conversation %s",
        len(updated_ids),
        requesting_user_id,
        conversation_id,
    )
    return BulkReadResult(count=len(updated_ids), message_ids=updated_ids, read_at=read_at)
