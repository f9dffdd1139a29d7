"""Persistence helpers for archived chat messages."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.domain.entities import ChatMessage, MessageAttachment
from app.infrastructure.models import ChatMessageModel
from app.utils import ensure_app_naive_datetime, ensure_app_timezone

from .errors import translate_store_errors


class ChatMessageRepository:
    """Durable store gateway for :class:`ChatMessage` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, message_id: int) -> ChatMessage | None:
        with translate_store_errors(self.session, "load message"):
            model = self.session.get(ChatMessageModel, message_id)
        return self._to_entity(model) if model else None

    def find_by_external_id(self, external_id: str) -> ChatMessage | None:
        with translate_store_errors(self.session, "find message by external id"):
            model = self.session.execute(
                select(ChatMessageModel).where(ChatMessageModel.external_id == external_id)
            ).scalar_one_or_none()
        return self._to_entity(model) if model else None

    def insert(self, message: ChatMessage) -> ChatMessage:
        """Insert ``message``; raises ``UniqueConstraintViolation`` on a duplicate key."""

        model = ChatMessageModel(
            external_id=message.external_id,
            sender_id=message.sender_id,
            recipient_id=message.recipient_id,
            conversation_id=message.conversation_id,
            subject=message.subject,
            content=message.content,
            is_read=False,
            read_at=None,
            sent_at=ensure_app_naive_datetime(message.sent_at),
            attachments=[attachment.to_dict() for attachment in message.attachments]
            or None,
        )
        with translate_store_errors(self.session, "insert message"):
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def mark_read(self, message_id: int, read_at: datetime) -> bool:
        """Flag the message as read unless it already is.

        Returns ``True`` when this call performed the transition.
        """

        statement = (
            update(ChatMessageModel)
            .where(ChatMessageModel.id == message_id)
            .where(ChatMessageModel.is_read.is_(False))
            .values(is_read=True, read_at=ensure_app_naive_datetime(read_at))
        )
        with translate_store_errors(self.session, "mark message read"):
            result = self.session.execute(statement)
            self.session.commit()
        return result.rowcount == 1

    def list_unread_for_recipient(
        self,
        recipient_id: int,
        *,
        message_ids: Sequence[int] | None = None,
        conversation_id: str | None = None,
        external_ids: Sequence[str] | None = None,
    ) -> list[ChatMessage]:
        query = (
            select(ChatMessageModel)
            .where(ChatMessageModel.recipient_id == recipient_id)
            .where(ChatMessageModel.is_read.is_(False))
        )
        if message_ids is not None:
            query = query.where(ChatMessageModel.id.in_(list(message_ids)))
        if conversation_id is not None:
            query = query.where(ChatMessageModel.conversation_id == conversation_id)
        if external_ids is not None:
            query = query.where(ChatMessageModel.external_id.in_(list(external_ids)))
        with translate_store_errors(self.session, "list unread messages"):
            models = self.session.execute(query.order_by(ChatMessageModel.id)).scalars().all()
        return [self._to_entity(model) for model in models]

    def mark_many_read(
        self, message_ids: Sequence[int], *, recipient_id: int, read_at: datetime
    ) -> list[int]:
        """Flag the unread messages among ``message_ids`` addressed to ``recipient_id``.

        Returns the identifiers this call transitioned to read.
        """

        ids = list(message_ids)
        if not ids:
            return []
        with translate_store_errors(self.session, "mark messages read"):
            # Candidate rows stay locked until commit, so the update touches
            # exactly these ids.
            candidates = list(
                self.session.execute(
                    select(ChatMessageModel.id)
                    .where(ChatMessageModel.id.in_(ids))
                    .where(ChatMessageModel.recipient_id == recipient_id)
                    .where(ChatMessageModel.is_read.is_(False))
                    .order_by(ChatMessageModel.id)
                    .with_for_update()
                ).scalars().all()
            )
            if not candidates:
                self.session.rollback()
                return []
            self.session.execute(
                update(ChatMessageModel)
                .where(ChatMessageModel.id.in_(candidates))
                .where(ChatMessageModel.is_read.is_(False))
                .values(is_read=True, read_at=ensure_app_naive_datetime(read_at))
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
        return candidates

    def list_for_conversation(
        self, conversation_id: str, *, participant_id: int, limit: int = 100
    ) -> list[ChatMessage]:
        query = (
            select(ChatMessageModel)
            .where(ChatMessageModel.conversation_id == conversation_id)
            .where(
                (ChatMessageModel.sender_id == participant_id)
                | (ChatMessageModel.recipient_id == participant_id)
            )
            .order_by(ChatMessageModel.sent_at.desc(), ChatMessageModel.id.desc())
            .limit(limit)
        )
        with translate_store_errors(self.session, "list conversation history"):
            models = self.session.execute(query).scalars().all()
        return [self._to_entity(model) for model in reversed(models)]

    @staticmethod
    def _to_entity(model: ChatMessageModel) -> ChatMessage:
        return ChatMessage(
            id=model.id,
            external_id=model.external_id,
            sender_id=model.sender_id,
            recipient_id=model.recipient_id,
            conversation_id=model.conversation_id,
            subject=model.subject,
            content=model.content,
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            sent_at=ensure_app_timezone(model.sent_at),
            created_at=ensure_app_timezone(model.created_at),
            attachments=[
                MessageAttachment.from_dict(item) for item in (model.attachments or [])
            ],
        )


__all__ = ["ChatMessageRepository"]
