"""Notification email delivery via SendGrid."""

from __future__ import annotations

import html
import json
import logging
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.config import get_settings

logger = logging.getLogger(__name__)


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    parsed = body
    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body

    if isinstance(parsed, dict):
        messages: list[str] = []
        for item in parsed.get("errors") or []:
            if not isinstance(item, dict) or not item.get("message"):
                continue
            help_link = item.get("help")
            messages.append(
                f"{item['message']} (help: {help_link})" if help_link else str(item["message"])
            )
        if messages:
            return "; ".join(messages)
        return json.dumps(parsed, default=str)

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _log_sendgrid_failure(status_code: Any, body: Any, exc: Exception | None = None) -> None:
    details = _extract_sendgrid_error_details(body)
    if status_code and details:
        logger.error("SendGrid API request failed with status %s: %s", status_code, details)
    elif status_code:
        logger.error("SendGrid API request failed with status %s", status_code)
    elif details:
        logger.error("SendGrid API request failed: %s", details)
    elif exc is not None:
        logger.error("Error sending email via SendGrid: %s", exc, exc_info=exc)


def send_email(subject: str, html_content: str, recipient: str) -> bool:
    """Send an email using the configured SendGrid credentials."""

    settings = get_settings()
    if not (settings.sendgrid_api_key and settings.sendgrid_sender):
        logger.info("SendGrid configuration incomplete; skipping email delivery")
        return False

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
    )

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:  # pragma: no cover - network failures depend on environment
        _log_sendgrid_failure(getattr(exc, "status_code", None), getattr(exc, "body", None), exc)
        return False

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        _log_sendgrid_failure(status_code or "unknown", getattr(response, "body", None))
        return False

    return True


def render_notification_email(title: str, body: str, action_url: str | None = None) -> str:
    """Return the HTML body used for notification emails."""

    parts = [
        f"<h2>{html.escape(title)}</h2>",
        f"<p>{html.escape(body)}</p>",
    ]
    if action_url:
        parts.append(f'<p><a href="{html.escape(action_url, quote=True)}">View details</a></p>')
    parts.append("<p>You can manage notification preferences from your dashboard.</p>")
    return "".join(parts)


def send_notification_email(
    recipient: str, title: str, body: str, action_url: str | None = None
) -> bool:
    """Deliver a notification to ``recipient`` by email."""

    return send_email(title, render_notification_email(title, body, action_url), recipient)


__all__ = ["render_notification_email", "send_email", "send_notification_email"]
