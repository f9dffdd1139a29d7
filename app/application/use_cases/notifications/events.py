"""Helpers that turn case platform events into queued notifications."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from app.domain.entities import NotificationPriority, NotificationType
from app.domain.exceptions import InvalidInputError

from .queue import NotificationBatchQueue

MESSAGE_PREVIEW_LENGTH = 100
DOCUMENTS_URL = "/dashboard/documents"


def _preview(text: str, limit: int = MESSAGE_PREVIEW_LENGTH) -> str:
    text = text or ""
    return f"{text[:limit]}..." if len(text) > limit else text


def _case_url(case_id: str) -> str:
    return f"/dashboard/cases/{case_id}"


def notify_new_message(
    queue: NotificationBatchQueue,
    *,
    recipient_id: int,
    sender_name: str,
    message_preview: str,
    case_id: str | None = None,
    case_reference: str | None = None,
) -> None:
    """Tell ``recipient_id`` that ``sender_name`` wrote to them."""

    preview = _preview(message_preview)
    message = f"Case {case_reference}: {preview}" if case_reference else preview
    action_url = (
        f"/dashboard/messages?caseId={case_id}" if case_id else "/dashboard/messages"
    )
    queue.enqueue(
        recipient_id,
        NotificationType.NEW_MESSAGE,
        f"New message from {sender_name}",
        message,
        case_id=case_id,
        action_url=action_url,
        priority=NotificationPriority.HIGH,
    )


def notify_case_update(
    queue: NotificationBatchQueue,
    *,
    user_id: int,
    case_id: str,
    case_reference: str,
    update_type: str,
    message: str,
) -> None:
    queue.enqueue(
        user_id,
        NotificationType.CASE_STATUS_UPDATE,
        f"Case {case_reference} - {update_type}",
        message,
        case_id=case_id,
        action_url=_case_url(case_id),
        priority=NotificationPriority.MEDIUM,
    )


def notify_case_assigned(
    queue: NotificationBatchQueue,
    *,
    client_id: int,
    agent_id: int,
    case_id: str,
    case_reference: str,
    agent_name: str,
) -> None:
    """Notify both the client and the newly assigned agent."""

    queue.enqueue(
        client_id,
        NotificationType.CASE_ASSIGNED,
        "Case Assigned",
        f"Your case {case_reference} has been assigned to {agent_name}",
        case_id=case_id,
        action_url=_case_url(case_id),
        priority=NotificationPriority.HIGH,
    )
    queue.enqueue(
        agent_id,
        NotificationType.CASE_ASSIGNED,
        "New Case Assigned",
        f"You have been assigned to case {case_reference}",
        case_id=case_id,
        action_url=_case_url(case_id),
        priority=NotificationPriority.HIGH,
    )


DOCUMENT_STATUSES = ("requested", "uploaded", "approved", "rejected")


def notify_document_status(
    queue: NotificationBatchQueue,
    *,
    user_id: int,
    status: str,
    document_name: str | None = None,
    document_types: Sequence[str] = (),
    reason: str | None = None,
    case_id: str | None = None,
) -> None:
    """Queue the notification matching a document lifecycle ``status``.

    ``requested`` lists ``document_types``; the other statuses describe
    ``document_name``.
    """

    if status not in DOCUMENT_STATUSES:
        raise InvalidInputError(f"Unknown document status: {status}")

    priority = NotificationPriority.MEDIUM
    if status == "requested":
        title = "Documents Required"
        message = f"Please upload: {', '.join(document_types)}"
    elif status == "uploaded":
        title = "Document Uploaded"
        message = f"{document_name} was uploaded and is awaiting review"
        priority = NotificationPriority.LOW
    elif status == "approved":
        title = "Document Approved"
        message = f"Your {document_name} has been verified and approved"
    else:
        title = "Document Requires Reupload"
        message = f"Your {document_name} needs to be reuploaded."
        if reason:
            message = f"{message} Reason: {reason}"
        priority = NotificationPriority.HIGH

    queue.enqueue(
        user_id,
        NotificationType.DOCUMENT_UPLOADED,
        title,
        message,
        case_id=case_id,
        action_url=DOCUMENTS_URL,
        priority=priority,
    )


def notify_system_announcement(
    queue: NotificationBatchQueue,
    *,
    user_ids: Iterable[int],
    title: str,
    message: str,
    action_url: str | None = None,
    priority: NotificationPriority | str = NotificationPriority.MEDIUM,
) -> int:
    """Queue one announcement per distinct user; returns how many were queued."""

    recipients = list(dict.fromkeys(user_ids))
    for user_id in recipients:
        queue.enqueue(
            user_id,
            NotificationType.SYSTEM_ANNOUNCEMENT,
            title,
            message,
            action_url=action_url,
            priority=priority,
        )
    return len(recipients)
