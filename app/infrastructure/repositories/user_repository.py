"""Persistence layer for user data."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.entities import User
from app.infrastructure.models import UserModel

from .errors import translate_store_errors


class UserRepository:
    """Read access to the users the messaging core needs to address."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        with translate_store_errors(self.session, "load user"):
            model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def list_active_ids(self, *, role: str | None = None) -> list[int]:
        query = select(UserModel.id).where(UserModel.is_active.is_(True))
        if role:
            query = query.where(UserModel.role == role)
        with translate_store_errors(self.session, "list active users"):
            return list(self.session.execute(query.order_by(UserModel.id)).scalars().all())

    def create(self, user: User) -> User:
        model = UserModel(
            name=user.name,
            email=user.email,
            role=user.role,
            realtime_uid=user.realtime_uid,
            push_token=user.push_token,
            is_active=user.is_active,
        )
        with translate_store_errors(self.session, "create user"):
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            name=model.name,
            email=model.email,
            role=model.role,
            realtime_uid=model.realtime_uid,
            push_token=model.push_token,
            is_active=bool(model.is_active),
            created_at=model.created_at,
        )


__all__ = ["UserRepository"]
