"""Push and email fan-out for notifications."""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

import anyio
from sqlalchemy.orm import Session

from app.config import Settings
from app.domain.entities import User
from app.infrastructure.email import send_notification_email
from app.infrastructure.push import ExpoPushClient
from app.infrastructure.repositories import UserRepository

logger = logging.getLogger(__name__)


class NotificationGateway(Protocol):
    async def send(
        self, user_id: int, title: str, body: str, data: dict[str, Any] | None = None
    ) -> None:
        ...


class NotificationDispatcher:
    """Deliver a notification to a user's devices and, optionally, inbox.

    Each channel is attempted independently; a failing push does not stop
    the email and vice versa.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        push_client: ExpoPushClient | None = None,
        email_enabled: bool = False,
        email_sender: Callable[[str, str, str, str | None], bool] = send_notification_email,
    ) -> None:
        self._session_factory = session_factory
        self._push_client = push_client
        self._email_enabled = email_enabled
        self._email_sender = email_sender

    @classmethod
    def from_settings(
        cls, settings: Settings, session_factory: Callable[[], Session]
    ) -> "NotificationDispatcher":
        push_client = ExpoPushClient(
            settings.expo_push_url,
            access_token=settings.expo_access_token,
            timeout=settings.push_timeout_seconds,
        )
        return cls(
            session_factory,
            push_client=push_client,
            email_enabled=settings.notification_email_enabled,
        )

    async def send(
        self, user_id: int, title: str, body: str, data: dict[str, Any] | None = None
    ) -> None:
        payload = dict(data or {})
        user = await anyio.to_thread.run_sync(self._load_user, user_id)
        if user is None or not user.is_active:
            logger.info("Skipping notification dispatch for unknown or inactive user %s", user_id)
            return

        if self._push_client is not None and user.push_token:
            try:
                await self._push_client.send(
                    user.push_token, title=title, body=body, data=payload
                )
            except Exception as exc:
                logger.warning("Push delivery to user %s failed: %s", user_id, exc)

        if self._email_enabled and user.email:
            sent = await anyio.to_thread.run_sync(
                self._email_sender, user.email, title, body, payload.get("action_url")
            )
            if not sent:
                logger.warning("Email delivery to user %s was not accepted", user_id)

    def _load_user(self, user_id: int) -> User | None:
        session = self._session_factory()
        try:
            return UserRepository(session).get(user_id)
        finally:
            session.close()


__all__ = ["NotificationDispatcher", "NotificationGateway"]
