"""Best-effort propagation of durable read receipts to the realtime mirror."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from app.domain.entities import ChatMessage
from app.infrastructure.realtime import (
    BestEffortRunner,
    IdentityTranslator,
    RealtimeMirror,
    conversation_room,
)

logger = logging.getLogger(__name__)


def mirror_read_flags(
    messages: Iterable[ChatMessage],
    *,
    reader_id: int,
    mirror: RealtimeMirror | None,
    identity: IdentityTranslator | None,
    runner: BestEffortRunner | None,
) -> int:
    """Launch one mirror update per message that belongs to a conversation.

    Must only be called once the durable write has committed. Never raises;
    returns the number of mirror tasks launched.
    """

    if mirror is None:
        return 0

    targets = [message for message in messages if message.conversation_id]
    if not targets:
        logger.info("No conversation room for read receipt of user %s; mirror skipped", reader_id)
        return 0

    try:
        realtime_uid = identity.to_realtime_identity(reader_id) if identity else None
    except Exception as exc:
        logger.warning("Realtime identity lookup for user %s failed: %s", reader_id, exc)
        return 0
    if not realtime_uid:
        logger.warning("User %s has no realtime identity; read receipt not mirrored", reader_id)
        return 0

    runner = runner or BestEffortRunner()
    for message in targets:
        runner.launch(
            mirror.set_read_flag,
            conversation_room(message.conversation_id),
            message.external_id,
            realtime_uid,
            description="read receipt mirror",
            message_id=message.id,
            external_id=message.external_id,
        )
    return len(targets)
