"""Shared fixtures for the messaging core test-suite."""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Sequence
from itertools import count
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(tempfile.mkdtemp(prefix="messaging-core-")) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)

from app.domain.entities import Notification, User  # noqa: E402
from app.infrastructure import database  # noqa: E402
from app.infrastructure.repositories import UserRepository  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_database():
    """Recreate every table so each test starts from an empty store."""

    from app.infrastructure import models  # noqa: F401

    database.Base.metadata.drop_all(bind=database.engine)
    database.initialize_database()
    yield
    database.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def db_session():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session):
    """Return a factory creating active users."""

    sequence = count(1)

    def factory(
        *,
        name: str | None = None,
        role: str = "client",
        realtime_uid: str | None = None,
        push_token: str | None = None,
        is_active: bool = True,
        email: str | None = None,
    ) -> User:
        number = next(sequence)
        return UserRepository(db_session).create(
            User(
                id=None,
                name=name or f"User {number}",
                email=email or f"user{number}@example.com",
                role=role,
                realtime_uid=realtime_uid,
                push_token=push_token,
                is_active=is_active,
                created_at=None,
            )
        )

    return factory


class FakeMirror:
    """Realtime mirror that records calls and can be told to fail."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.read_flags: list[tuple[str, str, str]] = []
        self.writes: list[tuple[str, str, dict[str, Any]]] = []

    async def write_keyed(self, room_key: str, item_key: str, value: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("realtime store unreachable")
        self.writes.append((room_key, item_key, value))

    async def set_read_flag(self, room_key: str, item_key: str, reader_id: str) -> None:
        if self.fail:
            raise ConnectionError("realtime store unreachable")
        self.read_flags.append((room_key, item_key, reader_id))


class FakeIdentity:
    def __init__(self, mapping: dict[int, str] | None = None, *, fail: bool = False) -> None:
        self.mapping = mapping or {}
        self.fail = fail

    def to_realtime_identity(self, user_id: int) -> str | None:
        if self.fail:
            raise RuntimeError("identity service down")
        return self.mapping.get(user_id)


class FakeNotificationStore:
    """In-memory notification store with scripted failures."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls: list[list[Notification]] = []
        self.rows: list[Notification] = []
        self._ids = count(1)

    def insert_many(self, notifications: Sequence[Notification]) -> list[Notification]:
        batch = list(notifications)
        self.calls.append(batch)
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("database unavailable")
        saved = []
        for notification in batch:
            notification.id = next(self._ids)
            saved.append(notification)
        self.rows.extend(saved)
        return saved


class FakeDispatcher:
    def __init__(self) -> None:
        self.sent: list[tuple[int, str, str, dict[str, Any] | None]] = []

    async def send(
        self, user_id: int, title: str, body: str, data: dict[str, Any] | None = None
    ) -> None:
        self.sent.append((user_id, title, body, data))


@pytest.fixture
def fake_mirror() -> FakeMirror:
    return FakeMirror()
