"""Translation between durable user ids and realtime-store identities."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy.orm import Session

from app.infrastructure.repositories import UserRepository


class IdentityTranslator(Protocol):
    def to_realtime_identity(self, user_id: int) -> str | None:
        ...


class RealtimeIdentityTranslator:
    """Resolve the realtime uid recorded on the durable user row."""

    def __init__(self, session: Session) -> None:
        self._users = UserRepository(session)

    def to_realtime_identity(self, user_id: int) -> str | None:
        user = self._users.get(user_id)
        if user is None:
            return None
        return user.realtime_uid or None


__all__ = ["IdentityTranslator", "RealtimeIdentityTranslator"]
