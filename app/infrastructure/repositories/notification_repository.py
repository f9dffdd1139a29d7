"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Callable, Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.domain.entities import Notification, NotificationPriority, NotificationType
from app.infrastructure.models import NotificationModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

from .errors import translate_store_errors


class NotificationRepository:
    """Provide batch creation and read helpers for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def insert_many(self, notifications: Sequence[Notification]) -> list[Notification]:
        """Persist ``notifications`` in a single transaction.

        Either every row is committed or none is.
        """

        if not notifications:
            return []
        created_at = ensure_app_naive_datetime(now_in_app_timezone())
        models = [self._to_model(notification, created_at) for notification in notifications]
        with translate_store_errors(self.session, "insert notification batch"):
            self.session.add_all(models)
            self.session.flush()
            saved = [self._to_entity(model) for model in models]
            self.session.commit()
        return saved

    def list_for_user(
        self,
        user_id: int,
        *,
        unread_only: bool = False,
        limit: int | None = 50,
    ) -> Sequence[Notification]:
        query = select(NotificationModel).where(NotificationModel.user_id == user_id)
        if unread_only:
            query = query.where(NotificationModel.is_read.is_(False))
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        with translate_store_errors(self.session, "list notifications"):
            models = self.session.execute(query).scalars().all()
        return [self._to_entity(model) for model in models]

    def count_unread(self, user_id: int) -> int:
        query = (
            select(func.count(NotificationModel.id))
            .where(NotificationModel.user_id == user_id)
            .where(NotificationModel.is_read.is_(False))
        )
        with translate_store_errors(self.session, "count notifications"):
            return int(self.session.execute(query).scalar_one())

    def mark_related_read(
        self,
        *,
        user_id: int,
        case_ids: Iterable[str],
        notification_type: NotificationType = NotificationType.NEW_MESSAGE,
        read_at: datetime | None = None,
    ) -> int:
        """Mark the user's unread ``notification_type`` rows for ``case_ids`` as read."""

        ids = sorted({case_id for case_id in case_ids if case_id})
        if not ids:
            return 0
        statement = (
            update(NotificationModel)
            .where(NotificationModel.user_id == user_id)
            .where(NotificationModel.case_id.in_(ids))
            .where(NotificationModel.type == notification_type.value)
            .where(NotificationModel.is_read.is_(False))
            .values(
                is_read=True,
                read_at=ensure_app_naive_datetime(read_at or now_in_app_timezone()),
            )
            .execution_options(synchronize_session=False)
        )
        with translate_store_errors(self.session, "mark related notifications read"):
            result = self.session.execute(statement)
            self.session.commit()
        return result.rowcount or 0

    @staticmethod
    def _to_model(notification: Notification, created_at: datetime | None) -> NotificationModel:
        return NotificationModel(
            user_id=notification.user_id,
            case_id=notification.case_id,
            type=NotificationType(notification.type).value,
            title=notification.title,
            message=notification.message,
            action_url=notification.action_url,
            priority=NotificationPriority(notification.priority).value,
            is_read=False,
            read_at=None,
            created_at=ensure_app_naive_datetime(notification.created_at) or created_at,
        )

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            case_id=model.case_id,
            action_url=model.action_url,
            priority=NotificationPriority(model.priority or "medium"),
            is_read=bool(model.is_read),
            read_at=ensure_app_timezone(model.read_at),
            created_at=ensure_app_timezone(model.created_at),
        )


class SessionNotificationStore:
    """Batch writer that opens a fresh session for every insert.

    The notification queue flushes from a worker thread, outside any
    request-scoped session.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def insert_many(self, notifications: Sequence[Notification]) -> list[Notification]:
        session = self._session_factory()
        try:
            return NotificationRepository(session).insert_many(notifications)
        finally:
            session.close()


__all__ = ["NotificationRepository", "SessionNotificationStore"]
