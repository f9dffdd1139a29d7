"""Tests for the notification batching and retry queue."""

from __future__ import annotations

import logging
import threading
import time

import anyio
import pytest

from conftest import FakeDispatcher, FakeMirror, FakeNotificationStore
from app.application.use_cases.notifications import NotificationBatchQueue
from app.domain.entities import NotificationPriority, NotificationType
from app.infrastructure.realtime import BestEffortRunner

pytestmark = pytest.mark.anyio


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(0.01)


def _enqueue(queue: NotificationBatchQueue, title: str, *, user_id: int = 1, **kwargs) -> None:
    queue.enqueue(user_id, NotificationType.CASE_STATUS_UPDATE, title, f"body of {title}", **kwargs)


async def test_small_burst_is_written_in_one_insert_after_delay():
    store = FakeNotificationStore()
    queue = NotificationBatchQueue(store, flush_delay=0.05)
    queue.start()

    for index in range(3):
        _enqueue(queue, f"n{index}")
    assert store.calls == []

    await _wait_for(lambda: len(store.rows) == 3)
    assert len(store.calls) == 1
    await queue.stop()


async def test_large_burst_is_chunked_by_batch_size():
    store = FakeNotificationStore()
    queue = NotificationBatchQueue(store, max_batch_size=50, flush_delay=5.0)
    queue.start()

    for index in range(120):
        _enqueue(queue, f"n{index}")

    await _wait_for(lambda: len(store.rows) == 120)
    assert [len(call) for call in store.calls] == [50, 50, 20]
    assert len({row.id for row in store.rows}) == 120
    assert queue.pending_count == 0
    await queue.stop()


async def test_failed_batches_are_retried_until_persisted():
    store = FakeNotificationStore(failures=2)
    queue = NotificationBatchQueue(store, flush_delay=0.01, retry_delay=0.05)
    queue.start()

    for index in range(3):
        _enqueue(queue, f"n{index}")

    await _wait_for(lambda: len(store.rows) == 3)
    assert len(store.calls) == 3
    assert sorted(row.title for row in store.rows) == ["n0", "n1", "n2"]
    await queue.stop()


async def test_failed_chunk_returns_to_front_of_queue():
    store = FakeNotificationStore(failures=1)
    queue = NotificationBatchQueue(store, max_batch_size=2)

    for title in ("a", "b", "c"):
        _enqueue(queue, title)
    assert await queue.flush_now() == 0
    assert queue.pending_count == 3

    _enqueue(queue, "d")
    assert await queue.flush_now() == 4
    assert [row.title for row in store.rows] == ["a", "b", "c", "d"]


async def test_size_trigger_waits_for_armed_retry():
    store = FakeNotificationStore(failures=1)
    queue = NotificationBatchQueue(store, max_batch_size=2, flush_delay=5.0, retry_delay=30.0)
    queue.start()

    _enqueue(queue, "a")
    _enqueue(queue, "b")
    await _wait_for(lambda: queue.retry_pending)
    _enqueue(queue, "c")
    _enqueue(queue, "d")
    await anyio.sleep(0.05)

    assert len(store.calls) == 1
    assert queue.pending_count == 4

    await queue.stop()
    assert [row.title for row in store.rows] == ["a", "b", "c", "d"]


async def test_items_are_dead_lettered_after_max_attempts(caplog):
    store = FakeNotificationStore(failures=10)
    queue = NotificationBatchQueue(store, max_attempts=2)
    _enqueue(queue, "doomed")

    await queue.flush_now()
    assert queue.pending_count == 1
    await queue.flush_now()

    assert queue.pending_count == 0
    assert [item.title for item in queue.dead_letters] == ["doomed"]
    assert queue.dead_letters[0].attempts == 2
    assert "dead-lettered" in caplog.text


async def test_stop_drains_pending_items_and_disables_retry():
    store = FakeNotificationStore()
    queue = NotificationBatchQueue(store, flush_delay=30.0)
    queue.start()
    _enqueue(queue, "a")
    _enqueue(queue, "b")

    await queue.stop()

    assert [row.title for row in store.rows] == ["a", "b"]

    failing = NotificationBatchQueue(FakeNotificationStore(failures=1), flush_delay=30.0)
    failing.start()
    _enqueue(failing, "lost")
    await failing.stop()
    assert failing.pending_count == 1
    assert failing.retry_pending is False


async def test_invalid_notifications_are_dropped(caplog):
    queue = NotificationBatchQueue(FakeNotificationStore())

    queue.enqueue(1, NotificationType.NEW_MESSAGE, "   ", "body")
    queue.enqueue(1, "NOT_A_TYPE", "title", "body")
    queue.enqueue(1, NotificationType.NEW_MESSAGE, "title", "body", priority="urgent")

    assert queue.pending_count == 0
    assert caplog.text.count("Dropping invalid notification") == 3


async def test_enqueue_from_worker_thread_is_handed_to_loop():
    store = FakeNotificationStore()
    queue = NotificationBatchQueue(store, flush_delay=0.01)
    queue.start()

    await anyio.to_thread.run_sync(lambda: _enqueue(queue, "from-thread"))

    await _wait_for(lambda: len(store.rows) == 1)
    assert store.rows[0].title == "from-thread"
    await queue.stop()


async def test_persisted_rows_fan_out_to_mirror_and_high_priority_dispatch():
    store = FakeNotificationStore()
    mirror = FakeMirror()
    dispatcher = FakeDispatcher()
    runner = BestEffortRunner()
    queue = NotificationBatchQueue(store, mirror=mirror, dispatcher=dispatcher, runner=runner)

    queue.enqueue(
        7,
        NotificationType.NEW_MESSAGE,
        "New message from Agent",
        "hello",
        case_id="case-1",
        priority=NotificationPriority.HIGH,
    )
    queue.enqueue(8, NotificationType.CASE_STATUS_UPDATE, "Case update", "in review")
    await queue.flush_now()
    await runner.drain(timeout=1)

    assert [(room, key) for room, key, _ in mirror.writes] == [
        ("notifications/7", "1"),
        ("notifications/8", "2"),
    ]
    assert mirror.writes[0][2]["type"] == "NEW_MESSAGE"
    assert [sent[0] for sent in dispatcher.sent] == [7]
    assert dispatcher.sent[0][3]["case_id"] == "case-1"


async def test_fan_out_failures_do_not_requeue():
    store = FakeNotificationStore()
    runner = BestEffortRunner()
    queue = NotificationBatchQueue(store, mirror=FakeMirror(fail=True), runner=runner)
    _enqueue(queue, "a")

    assert await queue.flush_now() == 1
    await runner.drain(timeout=1)
    assert queue.pending_count == 0
    assert len(store.calls) == 1


class SlowNotificationStore(FakeNotificationStore):
    """Store whose inserts take a while and record how many overlap."""

    def __init__(self, delay: float = 0.05) -> None:
        super().__init__()
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def insert_many(self, notifications):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            return super().insert_many(notifications)
        finally:
            with self._lock:
                self.active -= 1


async def test_overlapping_explicit_flushes_never_write_concurrently():
    store = SlowNotificationStore()
    queue = NotificationBatchQueue(store, flush_delay=30.0)
    queue.start()
    _enqueue(queue, "a")
    results: list[int] = []

    async def flush() -> None:
        results.append(await queue.flush_now())

    async with anyio.create_task_group() as group:
        group.start_soon(flush)
        await anyio.sleep(0.02)
        _enqueue(queue, "b")
        group.start_soon(flush)

    assert store.max_active == 1
    assert sorted(results) == [1, 1]
    assert [row.title for row in store.rows] == ["a", "b"]
    await queue.stop()


async def test_stop_waits_for_in_flight_timer_flush():
    store = SlowNotificationStore()
    queue = NotificationBatchQueue(store, flush_delay=0.01)
    queue.start()
    _enqueue(queue, "a")
    await _wait_for(lambda: store.active == 1)
    _enqueue(queue, "b")

    await queue.stop()

    assert store.max_active == 1
    assert [row.title for row in store.rows] == ["a", "b"]


async def test_overlong_fields_are_dropped_before_reaching_the_store(caplog):
    store = FakeNotificationStore()
    queue = NotificationBatchQueue(store)

    _enqueue(queue, "t" * 201)
    _enqueue(queue, "ok", case_id="c" * 65)
    _enqueue(queue, "ok", action_url="https://example.com/" + "x" * 500)
    _enqueue(queue, "t" * 200)

    assert queue.pending_count == 1
    assert caplog.text.count("Dropping invalid notification") == 3
    assert await queue.flush_now() == 1


async def test_enqueue_after_stop_is_buffered_with_warning(caplog):
    store = FakeNotificationStore()
    queue = NotificationBatchQueue(store, flush_delay=0.01)
    queue.start()
    await queue.stop()

    with caplog.at_level(logging.WARNING):
        _enqueue(queue, "late")

    assert queue.pending_count == 1
    assert "queue is stopped" in caplog.text
    assert store.calls == []
    assert await queue.flush_now() == 1
