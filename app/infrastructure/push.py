"""Mobile push delivery through the Expo push API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_TOKEN_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")


def is_expo_push_token(token: str | None) -> bool:
    """Return ``True`` when ``token`` looks like an Expo push token."""

    return bool(token) and token.startswith(_TOKEN_PREFIXES) and token.endswith("]")


class ExpoPushClient:
    """Send push notifications to devices registered with Expo."""

    def __init__(
        self,
        url: str,
        *,
        access_token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._access_token = access_token
        self._timeout = timeout
        self._transport = transport

    async def send(
        self,
        token: str,
        *,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
        priority: str = "high",
    ) -> bool:
        """Push one message to ``token``.

        Returns ``False`` when Expo rejects the ticket; transport and HTTP
        errors propagate to the caller.
        """

        if not is_expo_push_token(token):
            logger.warning("Skipping push to malformed Expo token")
            return False

        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        message = {
            "to": token,
            "title": title,
            "body": body,
            "data": data or {},
            "sound": "default",
            "priority": "high" if priority == "high" else "default",
            "channelId": "default",
        }

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(self._url, json=[message], headers=headers)
        response.raise_for_status()

        tickets = response.json().get("data") or []
        delivered = True
        for ticket in tickets:
            if ticket.get("status") == "ok":
                continue
            delivered = False
            details = ticket.get("details") or {}
            logger.warning(
                "Expo rejected push ticket: %s (%s)",
                ticket.get("message"),
                details.get("error", "unknown"),
            )
        return delivered


__all__ = ["ExpoPushClient", "is_expo_push_token"]
