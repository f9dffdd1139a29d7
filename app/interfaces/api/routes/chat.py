"""Endpoints for chat archival, read receipts and live chat rooms."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from app.application.use_cases.messages import (
    archive_message as archive_message_uc,
    list_conversation_history as list_conversation_history_uc,
    mark_message_read as mark_message_read_uc,
    mark_messages_read as mark_messages_read_uc,
    sync_realtime_reads as sync_realtime_reads_uc,
)
from app.domain.entities import ChatMessage, MessageAttachment, User
from app.infrastructure.database import SessionLocal, get_db
from app.infrastructure.realtime import (
    BestEffortRunner,
    RealtimeIdentityTranslator,
    RealtimeMirror,
    conversation_room,
)
from app.interfaces.api.dependencies import (
    get_background_runner,
    get_current_active_user,
    get_identity_translator,
    get_realtime_mirror,
    resolve_current_user,
)
from app.interfaces.api.routes_helpers import HANDLED_ERRORS, http_error_from
from app.interfaces.api.schemas import (
    ArchiveMessageRequest,
    ArchiveMessageResponse,
    AttachmentPayload,
    BulkMarkReadRequest,
    BulkReadResponse,
    ChatMessageRead,
    ReadReceiptRead,
    RealtimeReadSyncRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def _message_to_schema(message: ChatMessage) -> ChatMessageRead:
    return ChatMessageRead(
        id=message.id or 0,
        external_id=message.external_id,
        sender_id=message.sender_id,
        recipient_id=message.recipient_id,
        conversation_id=message.conversation_id,
        subject=message.subject,
        content=message.content,
        is_read=message.is_read,
        read_at=message.read_at,
        sent_at=message.sent_at,
        created_at=message.created_at,
        attachments=[
            AttachmentPayload(**attachment.to_dict()) for attachment in message.attachments
        ],
    )


@router.post("/archive", response_model=ArchiveMessageResponse)
def archive_message(
    payload: ArchiveMessageRequest,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ArchiveMessageResponse:
    """Persist a realtime chat message; repeated calls return the stored copy."""

    try:
        result = archive_message_uc(
            db,
            external_id=payload.external_id,
            sender_id=payload.sender_id,
            recipient_id=payload.recipient_id,
            content=payload.content,
            sent_at=payload.sent_at,
            conversation_id=payload.conversation_id,
            subject=payload.subject,
            attachments=[
                MessageAttachment(**attachment.model_dump())
                for attachment in payload.attachments
            ],
            requesting_user_id=current_user.id,
        )
    except HANDLED_ERRORS as exc:
        raise http_error_from(exc) from exc

    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return ArchiveMessageResponse(created=result.created, message=_message_to_schema(result.message))


@router.put("/messages/mark-read", response_model=BulkReadResponse)
def mark_messages_read(
    payload: BulkMarkReadRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    mirror: RealtimeMirror = Depends(get_realtime_mirror),
    identity: RealtimeIdentityTranslator = Depends(get_identity_translator),
    runner: BestEffortRunner = Depends(get_background_runner),
) -> BulkReadResponse:
    try:
        result = mark_messages_read_uc(
            db,
            message_ids=payload.message_ids,
            requesting_user_id=current_user.id,
            conversation_id=payload.conversation_id,
            mirror=mirror,
            identity=identity,
            runner=runner,
        )
    except HANDLED_ERRORS as exc:
        raise http_error_from(exc) from exc
    return BulkReadResponse(count=result.count, message_ids=result.message_ids, read_at=result.read_at)


@router.put("/messages/sync-realtime-read", response_model=BulkReadResponse)
def sync_realtime_read(
    payload: RealtimeReadSyncRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> BulkReadResponse:
    """Bring durable read state in line with flags set in the realtime store."""

    try:
        result = sync_realtime_reads_uc(
            db,
            conversation_id=payload.conversation_id,
            external_ids=payload.external_ids,
            requesting_user_id=current_user.id,
        )
    except HANDLED_ERRORS as exc:
        raise http_error_from(exc) from exc
    return BulkReadResponse(count=result.count, message_ids=result.message_ids, read_at=result.read_at)


@router.put("/messages/{message_id}/read", response_model=ReadReceiptRead)
def mark_message_read(
    message_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    mirror: RealtimeMirror = Depends(get_realtime_mirror),
    identity: RealtimeIdentityTranslator = Depends(get_identity_translator),
    runner: BestEffortRunner = Depends(get_background_runner),
) -> ReadReceiptRead:
    """Mark a message addressed to the caller as read."""

    try:
        receipt = mark_message_read_uc(
            db,
            message_id=message_id,
            requesting_user_id=current_user.id,
            mirror=mirror,
            identity=identity,
            runner=runner,
        )
    except HANDLED_ERRORS as exc:
        raise http_error_from(exc) from exc
    return ReadReceiptRead(
        message_id=receipt.message_id,
        is_read=receipt.is_read,
        read_at=receipt.read_at,
        already_read=receipt.already_read,
    )


@router.get("/history", response_model=list[ChatMessageRead])
def conversation_history(
    conversation_id: str = Query(..., min_length=1),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[ChatMessageRead]:
    try:
        messages = list_conversation_history_uc(
            db,
            conversation_id=conversation_id,
            requesting_user_id=current_user.id,
            limit=limit,
        )
    except HANDLED_ERRORS as exc:
        raise http_error_from(exc) from exc
    return [_message_to_schema(message) for message in messages]


@router.websocket("/rooms/{conversation_id}/ws")
async def chat_room_websocket(websocket: WebSocket, conversation_id: str) -> None:
    """Subscribe to the live items and read receipts of a conversation room."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    except HTTPException:
        await websocket.close(code=1008)
        return
    finally:
        session.close()

    logger.info("User %s subscribed to room %s", user.id, conversation_id)
    manager = websocket.app.state.connection_manager
    mirror = websocket.app.state.realtime_mirror
    room_key = conversation_room(conversation_id)
    await manager.connect(room_key, websocket)
    try:
        await websocket.send_json(
            {"type": "init", "room": room_key, "data": mirror.snapshot(room_key)}
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
