"""Use case for reading the archived history of a conversation."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import ChatMessage
from app.domain.exceptions import InvalidInputError
from app.infrastructure.repositories import ChatMessageRepository

from .validators import require_text


def list_conversation_history(
    session: Session,
    *,
    conversation_id: str,
    requesting_user_id: int,
    limit: int = 100,
) -> list[ChatMessage]:
    """Return the requester's archived messages in ``conversation_id``, oldest first."""

    conversation_id = require_text(conversation_id, "conversation_id")
    if not 1 <= limit <= 500:
        raise InvalidInputError("limit must be between 1 and 500")
    return ChatMessageRepository(session).list_for_conversation(
        conversation_id, participant_id=requesting_user_id, limit=limit
    )
