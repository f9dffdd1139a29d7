"""Process-local batching of notification creation with retry."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Sequence
from typing import Any, Protocol

import anyio

from app.config import Settings
from app.domain.entities import (
    Notification,
    NotificationPriority,
    NotificationType,
    PendingNotification,
)
from app.domain.exceptions import InvalidInputError
from app.infrastructure.dispatch import NotificationGateway
from app.infrastructure.realtime import BestEffortRunner, RealtimeMirror, notification_room

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_CASE_ID_LENGTH = 64
MAX_ACTION_URL_LENGTH = 500


class NotificationStore(Protocol):
    def insert_many(self, notifications: Sequence[Notification]) -> list[Notification]:
        ...


class NotificationBatchQueue:
    """Collect notifications and persist them in multi-row inserts.

    The queue state is only touched on the event loop passed to
    :meth:`start`; producers on worker threads hand their items over with
    ``call_soon_threadsafe``. Before ``start`` (and after ``stop``) items are
    only buffered and reach the store through :meth:`flush_now`.

    A flush is triggered when ``max_batch_size`` items are waiting or when
    ``flush_delay`` seconds have passed since the oldest waiting item was
    enqueued. A chunk that fails to persist returns to the front of the
    queue and is retried after ``retry_delay`` seconds; while that retry is
    pending the size trigger is ignored. Drains never overlap: timer, size
    and explicit flushes all take the same lock.
    """

    def __init__(
        self,
        store: NotificationStore,
        *,
        mirror: RealtimeMirror | None = None,
        dispatcher: NotificationGateway | None = None,
        runner: BestEffortRunner | None = None,
        max_batch_size: int = 50,
        flush_delay: float = 1.0,
        retry_delay: float = 5.0,
        max_attempts: int | None = None,
        dead_letter_limit: int = 1000,
    ) -> None:
        if max_batch_size < 1:
            raise ValueError("max_batch_size must be at least 1")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1 when set")

        self._store = store
        self._mirror = mirror
        self._dispatcher = dispatcher
        self._runner = runner or BestEffortRunner()
        self._max_batch_size = max_batch_size
        self._flush_delay = flush_delay
        self._retry_delay = retry_delay
        self._max_attempts = max_attempts
        self._items: deque[PendingNotification] = deque()
        self._dead_letters: deque[PendingNotification] = deque(maxlen=dead_letter_limit)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._retry_armed = False
        self._drain_lock = asyncio.Lock()
        self._flush_task: asyncio.Task[None] | None = None
        self._stopped = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: NotificationStore,
        *,
        mirror: RealtimeMirror | None = None,
        dispatcher: NotificationGateway | None = None,
        runner: BestEffortRunner | None = None,
    ) -> "NotificationBatchQueue":
        return cls(
            store,
            mirror=mirror,
            dispatcher=dispatcher,
            runner=runner,
            max_batch_size=settings.notification_batch_size,
            flush_delay=settings.notification_flush_delay_seconds,
            retry_delay=settings.notification_retry_delay_seconds,
            max_attempts=settings.notification_max_flush_attempts,
            dead_letter_limit=settings.notification_dead_letter_limit,
        )

    @property
    def pending_count(self) -> int:
        return len(self._items)

    @property
    def dead_letters(self) -> list[PendingNotification]:
        return list(self._dead_letters)

    @property
    def retry_pending(self) -> bool:
        return self._retry_armed

    def start(self) -> None:
        """Bind the queue to the running event loop and arm timers for buffered items."""

        self._loop = asyncio.get_running_loop()
        self._stopped = False
        if self._items:
            self._schedule()

    def enqueue(
        self,
        user_id: int,
        type: NotificationType | str,
        title: str,
        body: str,
        *,
        case_id: str | None = None,
        action_url: str | None = None,
        priority: NotificationPriority | str = NotificationPriority.MEDIUM,
    ) -> None:
        """Queue a notification; invalid input is logged and dropped."""

        try:
            item = self._build(
                user_id,
                type,
                title,
                body,
                case_id=case_id,
                action_url=action_url,
                priority=priority,
            )
        except ValueError as exc:
            logger.warning("Dropping invalid notification for user %s: %s", user_id, exc)
            return

        loop = self._loop
        if loop is None:
            if self._stopped:
                logger.warning(
                    "Notification queue is stopped; buffering notification for user %s "
                    "until the next flush",
                    user_id,
                )
            self._items.append(item)
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            self._accept(item)
            return
        try:
            loop.call_soon_threadsafe(self._accept, item)
        except RuntimeError as exc:
            logger.error("Notification for user %s lost, event loop unavailable: %s", user_id, exc)

    async def flush_now(self) -> int:
        """Persist every waiting item immediately; returns the number of rows written."""

        async with self._drain_lock:
            self._cancel_timer()
            self._retry_armed = False
            if not self._items:
                return 0
            persisted, failed = await self._drain_snapshot()
        if failed:
            self._arm_retry()
        else:
            self._schedule()
        return persisted

    async def stop(self) -> None:
        """Cancel timers, persist what can be persisted and stop retrying."""

        self._stopped = True
        persisted = await self.flush_now()
        self._cancel_timer()
        self._retry_armed = False
        self._loop = None
        if self._items:
            logger.error(
                "Notification queue stopped with %s unpersisted notifications",
                len(self._items),
            )
        logger.info("Notification queue stopped after persisting %s notifications", persisted)

    def _build(
        self,
        user_id: int,
        type: NotificationType | str,
        title: str,
        body: str,
        *,
        case_id: str | None,
        action_url: str | None,
        priority: NotificationPriority | str,
    ) -> PendingNotification:
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidInputError("user_id must be an integer")
        title = (title or "").strip()
        if not title:
            raise InvalidInputError("title is required")
        for field_name, value, limit in (
            ("title", title, MAX_TITLE_LENGTH),
            ("case_id", case_id, MAX_CASE_ID_LENGTH),
            ("action_url", action_url, MAX_ACTION_URL_LENGTH),
        ):
            if value and len(value) > limit:
                raise InvalidInputError(f"{field_name} must be at most {limit} characters")
        return PendingNotification(
            user_id=user_id,
            type=NotificationType(type),
            title=title,
            message=body or "",
            enqueued_at=time.monotonic(),
            case_id=case_id or None,
            action_url=action_url or None,
            priority=NotificationPriority(priority or NotificationPriority.MEDIUM),
        )

    def _accept(self, item: PendingNotification) -> None:
        self._items.append(item)
        self._schedule()

    def _schedule(self) -> None:
        if self._loop is None or self._stopped or not self._items:
            return
        if self._flush_in_progress() or self._retry_armed:
            return
        if len(self._items) >= self._max_batch_size:
            self._cancel_timer()
            self._start_flush()
            return
        if self._timer is None:
            delay = self._items[0].enqueued_at + self._flush_delay - time.monotonic()
            self._timer = self._loop.call_later(max(delay, 0.0), self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        self._retry_armed = False
        self._start_flush()

    def _flush_in_progress(self) -> bool:
        if self._drain_lock.locked():
            return True
        return self._flush_task is not None and not self._flush_task.done()

    def _start_flush(self) -> None:
        if self._flush_in_progress() or not self._items or self._loop is None:
            return
        self._flush_task = self._loop.create_task(self._run_flush())

    async def _run_flush(self) -> None:
        async with self._drain_lock:
            _, failed = await self._drain_snapshot()
        self._flush_task = None
        if failed:
            self._arm_retry()
        else:
            self._schedule()

    async def _drain_snapshot(self) -> tuple[int, bool]:
        """Write the items waiting when the flush started, chunk by chunk.

        Stops at the first failing chunk, which is put back at the front.
        """

        remaining = len(self._items)
        persisted = 0
        while remaining > 0 and self._items:
            size = min(remaining, self._max_batch_size, len(self._items))
            chunk = [self._items.popleft() for _ in range(size)]
            remaining -= size
            try:
                saved = await anyio.to_thread.run_sync(
                    self._store.insert_many, [item.to_notification() for item in chunk]
                )
            except Exception as exc:
                logger.error(
                    "Failed to persist batch of %s notifications: %s", len(chunk), exc
                )
                self._requeue(chunk)
                return persisted, True

            persisted += len(saved)
            logger.info("Persisted batch of %s notifications", len(saved))
            self._fan_out(saved)
        return persisted, False

    def _requeue(self, chunk: list[PendingNotification]) -> None:
        keep: list[PendingNotification] = []
        for item in chunk:
            item.attempts += 1
            if self._max_attempts is not None and item.attempts >= self._max_attempts:
                self._dead_letters.append(item)
                logger.error(
                    "Notification '%s' for user %s dead-lettered after %s failed flushes",
                    item.title,
                    item.user_id,
                    item.attempts,
                )
            else:
                keep.append(item)
        self._items.extendleft(reversed(keep))

    def _arm_retry(self) -> None:
        self._cancel_timer()
        if self._loop is None or self._stopped or not self._items:
            return
        self._retry_armed = True
        self._timer = self._loop.call_later(self._retry_delay, self._on_timer)
        logger.info(
            "Retrying %s notifications in %s seconds", len(self._items), self._retry_delay
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fan_out(self, saved: Sequence[Notification]) -> None:
        for notification in saved:
            if self._mirror is not None:
                self._runner.launch(
                    self._mirror.write_keyed,
                    notification_room(notification.user_id),
                    str(notification.id),
                    realtime_notification_payload(notification),
                    description="notification mirror",
                    notification_id=notification.id,
                    user_id=notification.user_id,
                )
            if (
                self._dispatcher is not None
                and notification.priority == NotificationPriority.HIGH
            ):
                self._runner.launch(
                    self._dispatcher.send,
                    notification.user_id,
                    notification.title,
                    notification.message,
                    {
                        "notification_id": notification.id,
                        "type": notification.type.value,
                        "case_id": notification.case_id,
                        "action_url": notification.action_url,
                    },
                    description="notification dispatch",
                    notification_id=notification.id,
                    user_id=notification.user_id,
                )


def realtime_notification_payload(notification: Notification) -> dict[str, Any]:
    """Return the realtime representation of a persisted notification."""

    return {
        "id": notification.id,
        "userId": notification.user_id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "caseId": notification.case_id,
        "actionUrl": notification.action_url,
        "priority": notification.priority.value,
        "isRead": notification.is_read,
        "createdAt": notification.created_at,
    }


__all__ = ["NotificationBatchQueue", "NotificationStore", "realtime_notification_payload"]
