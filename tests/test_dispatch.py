"""Tests for push and email fan-out of notifications."""

from __future__ import annotations

import json

import httpx
import pytest

from app.infrastructure.database import SessionLocal
from app.infrastructure.dispatch import NotificationDispatcher
from app.infrastructure.push import ExpoPushClient, is_expo_push_token

pytestmark = pytest.mark.anyio

TOKEN = "ExponentPushToken[abc123]"


def _expo_transport(requests: list[httpx.Request], *, status: str = "ok", http_status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        ticket = {"status": status}
        if status != "ok":
            ticket.update({"message": "not registered", "details": {"error": "DeviceNotRegistered"}})
        return httpx.Response(http_status, json={"data": [ticket]})

    return httpx.MockTransport(handler)


def test_expo_token_shape():
    assert is_expo_push_token(TOKEN)
    assert is_expo_push_token("ExpoPushToken[xyz]")
    assert not is_expo_push_token("fcm-token")
    assert not is_expo_push_token(None)


async def test_push_client_posts_expo_message():
    requests: list[httpx.Request] = []
    client = ExpoPushClient(
        "https://push.test/send", access_token="secret", transport=_expo_transport(requests)
    )

    delivered = await client.send(TOKEN, title="Case Assigned", body="hello", data={"case_id": "c1"})

    assert delivered is True
    body = json.loads(requests[0].content)
    assert body[0]["to"] == TOKEN
    assert body[0]["data"] == {"case_id": "c1"}
    assert requests[0].headers["Authorization"] == "Bearer secret"


async def test_push_client_reports_rejected_ticket(caplog):
    requests: list[httpx.Request] = []
    client = ExpoPushClient("https://push.test/send", transport=_expo_transport(requests, status="error"))

    assert await client.send(TOKEN, title="t", body="b") is False
    assert "DeviceNotRegistered" in caplog.text


async def test_push_client_raises_on_http_error():
    client = ExpoPushClient(
        "https://push.test/send", transport=_expo_transport([], http_status=500)
    )

    with pytest.raises(httpx.HTTPStatusError):
        await client.send(TOKEN, title="t", body="b")


async def test_dispatcher_sends_push_and_email(make_user):
    user = make_user(push_token=TOKEN, email="client@example.com")
    requests: list[httpx.Request] = []
    emails = []

    dispatcher = NotificationDispatcher(
        SessionLocal,
        push_client=ExpoPushClient("https://push.test/send", transport=_expo_transport(requests)),
        email_enabled=True,
        email_sender=lambda *args: emails.append(args) or True,
    )

    await dispatcher.send(user.id, "Case Assigned", "assigned", {"action_url": "/dashboard/cases/c1"})

    assert len(requests) == 1
    assert emails == [("client@example.com", "Case Assigned", "assigned", "/dashboard/cases/c1")]


async def test_dispatcher_email_survives_push_failure(make_user, caplog):
    user = make_user(push_token=TOKEN)
    emails = []

    dispatcher = NotificationDispatcher(
        SessionLocal,
        push_client=ExpoPushClient(
            "https://push.test/send", transport=_expo_transport([], http_status=503)
        ),
        email_enabled=True,
        email_sender=lambda *args: emails.append(args) or True,
    )

    await dispatcher.send(user.id, "title", "body")

    assert len(emails) == 1
    assert "Push delivery to user" in caplog.text


async def test_dispatcher_skips_inactive_users(make_user):
    user = make_user(push_token=TOKEN, is_active=False)
    requests: list[httpx.Request] = []
    dispatcher = NotificationDispatcher(
        SessionLocal,
        push_client=ExpoPushClient("https://push.test/send", transport=_expo_transport(requests)),
    )

    await dispatcher.send(user.id, "title", "body")
    await dispatcher.send(9999, "title", "body")

    assert requests == []
