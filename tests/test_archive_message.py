"""Tests for idempotent archival of realtime chat messages."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.application.use_cases.messages import archive_message
from app.domain.entities import MessageAttachment
from app.domain.exceptions import ForbiddenError, InvalidInputError
from app.infrastructure.models import ChatMessageModel
from app.infrastructure.repositories import ChatMessageRepository

SENT_AT = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def _archive(session, sender, recipient, **overrides):
    values = {
        "external_id": "-NxMsg001",
        "sender_id": sender.id,
        "recipient_id": recipient.id,
        "content": "Your visa appointment is confirmed",
        "sent_at": SENT_AT,
        "conversation_id": "case-42",
    }
    values.update(overrides)
    return archive_message(session, **values)


def test_archive_creates_message_with_attachments(db_session, make_user):
    agent, client = make_user(role="agent"), make_user()
    attachment = MessageAttachment(
        id="att-1",
        file_name="passport.pdf",
        file_url="https://files.example.com/passport.pdf",
        file_size=2048,
        mime_type="application/pdf",
    )

    result = _archive(db_session, agent, client, attachments=[attachment])

    assert result.created is True
    assert result.message.id is not None
    assert result.message.is_read is False
    assert result.message.sent_at == SENT_AT
    assert result.message.attachments == [attachment]


def test_archive_is_idempotent_on_external_id(db_session, make_user):
    agent, client = make_user(role="agent"), make_user()

    first = _archive(db_session, agent, client)
    second = _archive(db_session, agent, client, content="edited later")

    assert second.created is False
    assert second.message.id == first.message.id
    assert second.message.content == first.message.content
    assert db_session.query(ChatMessageModel).count() == 1


def test_concurrent_archive_returns_existing_row(db_session, make_user):
    """An archiver that loses the insert race gets the winner's row back."""

    agent, client = make_user(role="agent"), make_user()

    class RacingRepository(ChatMessageRepository):
        def find_by_external_id(self, external_id):
            if not getattr(self, "raced", False):
                self.raced = True
                _archive(self.session, agent, client)
                return None
            return super().find_by_external_id(external_id)

    result = _archive(db_session, agent, client, repository=RacingRepository(db_session))

    assert result.created is False
    assert result.message.external_id == "-NxMsg001"
    assert db_session.query(ChatMessageModel).count() == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"external_id": "  "},
        {"content": ""},
        {"sent_at": None},
        {"sender_id": None},
    ],
)
def test_archive_rejects_missing_fields(db_session, make_user, overrides):
    agent, client = make_user(role="agent"), make_user()

    with pytest.raises(InvalidInputError):
        _archive(db_session, agent, client, **overrides)

    assert db_session.query(ChatMessageModel).count() == 0


def test_archive_requires_participant(db_session, make_user):
    agent, client, outsider = make_user(role="agent"), make_user(), make_user()

    with pytest.raises(ForbiddenError):
        _archive(db_session, agent, client, requesting_user_id=outsider.id)

    result = _archive(db_session, agent, client, requesting_user_id=client.id)
    assert result.created is True


@pytest.mark.parametrize(
    "overrides",
    [
        {"external_id": "x" * 129},
        {"conversation_id": "c" * 65},
        {"subject": "s" * 256},
    ],
    ids=["external_id", "conversation_id", "subject"],
)
def test_archive_rejects_values_longer_than_their_columns(db_session, make_user, overrides):
    agent, client = make_user(role="agent"), make_user()

    with pytest.raises(InvalidInputError, match="at most"):
        _archive(db_session, agent, client, **overrides)

    assert db_session.query(ChatMessageModel).count() == 0


def test_archive_accepts_values_at_their_column_limits(db_session, make_user):
    agent, client = make_user(role="agent"), make_user()

    result = _archive(
        db_session,
        agent,
        client,
        external_id="x" * 128,
        conversation_id="c" * 64,
        subject="  " + "s" * 255 + "  ",
    )

    assert result.created is True
    assert result.message.subject == "s" * 255
