"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NotificationBatchQueue,
    notify_system_announcement,
    realtime_notification_payload,
)
from app.domain.entities import Notification, User
from app.infrastructure.database import SessionLocal, get_db
from app.infrastructure.realtime import notification_room, serialize_realtime_value
from app.infrastructure.repositories import NotificationRepository, UserRepository
from app.interfaces.api.dependencies import (
    get_current_active_user,
    get_notification_queue,
    require_admin,
    resolve_current_user,
)
from app.interfaces.api.routes_helpers import HANDLED_ERRORS, http_error_from
from app.interfaces.api.schemas import (
    AnnouncementCreate,
    AnnouncementQueued,
    NotificationRead,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        user_id=notification.user_id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        case_id=notification.case_id,
        action_url=notification.action_url,
        priority=notification.priority,
        is_read=notification.is_read,
        read_at=notification.read_at,
        created_at=notification.created_at,
    )


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[NotificationRead]:
    """Return the most recent notifications for the authenticated user."""

    try:
        notifications = NotificationRepository(db).list_for_user(
            current_user.id, unread_only=unread_only, limit=limit
        )
    except HANDLED_ERRORS as exc:
        raise http_error_from(exc) from exc
    return [_notification_to_schema(notification) for notification in notifications]


@router.get("/unread-count", response_model=UnreadCountRead)
def unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UnreadCountRead:
    try:
        count = NotificationRepository(db).count_unread(current_user.id)
    except HANDLED_ERRORS as exc:
        raise http_error_from(exc) from exc
    return UnreadCountRead(count=count)


@router.post(
    "/announcements",
    response_model=AnnouncementQueued,
    status_code=status.HTTP_202_ACCEPTED,
)
def create_announcement(
    payload: AnnouncementCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
    queue: NotificationBatchQueue = Depends(get_notification_queue),
) -> AnnouncementQueued:
    """Queue a system announcement for the selected users."""

    user_ids = payload.user_ids
    if user_ids is None:
        try:
            user_ids = UserRepository(db).list_active_ids(role=payload.role)
        except HANDLED_ERRORS as exc:
            raise http_error_from(exc) from exc

    queued = notify_system_announcement(
        queue,
        user_ids=user_ids,
        title=payload.title,
        message=payload.message,
        action_url=payload.action_url,
        priority=payload.priority,
    )
    return AnnouncementQueued(queued=queued)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
        pending_notifications = NotificationRepository(session).list_for_user(
            user.id, unread_only=True
        )
    except HTTPException:
        await websocket.close(code=1008)
        return
    finally:
        session.close()

    manager = websocket.app.state.connection_manager
    room_key = notification_room(user.id)
    await manager.connect(room_key, websocket)
    try:
        await websocket.send_json(
            {
                "type": "init",
                "room": room_key,
                "data": [
                    serialize_realtime_value(realtime_notification_payload(notification))
                    for notification in pending_notifications
                ],
            }
        )
        while True:
            message = await websocket.receive_json()
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        manager.disconnect(room_key, websocket)
    except Exception:
        manager.disconnect(room_key, websocket)
        raise
