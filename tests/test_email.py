"""Unit tests for the SendGrid email helper utilities."""

from __future__ import annotations

import json
import types

import pytest

from app.infrastructure import email as email_module


class DummySettings:
    sendgrid_api_key = "SG.fake"
    sendgrid_sender = "sender@example.com"


class RecordingClient:
    """Stand-in for ``SendGridAPIClient`` that records the last message."""

    last_message = None

    def __init__(self, api_key: str):
        self.api_key = api_key

    def send(self, message):
        RecordingClient.last_message = message
        return types.SimpleNamespace(status_code=202, body=None)


def test_send_email_without_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    """When SendGrid settings are missing the helper should exit early."""

    class Unconfigured:
        sendgrid_api_key = None
        sendgrid_sender = None

    monkeypatch.setattr(email_module, "get_settings", lambda: Unconfigured())

    assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is False


def test_send_notification_email_success(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)

    assert email_module.send_notification_email(
        "user@example.com", "Case Assigned", "Your case was assigned", "/dashboard/cases/1"
    ) is True
    assert RecordingClient.last_message is not None


def test_send_email_logs_forbidden_error(monkeypatch: pytest.MonkeyPatch, caplog):
    """Forbidden responses from SendGrid should surface meaningful log details."""

    class FakeForbiddenError(Exception):
        status_code = 403
        body = json.dumps(
            {"errors": [{"message": "The provided authorization grant is invalid."}]}
        ).encode()

    class FailingClient(RecordingClient):
        def send(self, message):
            raise FakeForbiddenError()

    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", FailingClient)

    with caplog.at_level("ERROR"):
        result = email_module.send_email("Subject", "<p>Body</p>", "user@example.com")

    assert result is False
    assert "status 403" in caplog.text
    assert "authorization grant is invalid" in caplog.text


def test_render_notification_email_escapes_content():
    html = email_module.render_notification_email(
        "<b>Alert</b>", "Fish & chips", '/dashboard?x="1"'
    )

    assert "&lt;b&gt;Alert&lt;/b&gt;" in html
    assert "Fish &amp; chips" in html
    assert 'href="/dashboard?x=&quot;1&quot;"' in html
