"""SQLAlchemy model for archived chat messages."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import expression, func

from app.infrastructure.database import Base


class ChatMessageModel(Base):
    """Durable copy of a message first written to the realtime store."""

    __tablename__ = "chat_message"
    __table_args__ = (
        Index("ix_chat_message_participants_sent_at", "sender_id", "recipient_id", "sent_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String(128), nullable=False, unique=True)
    sender_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    conversation_id = Column(String(64), nullable=True, index=True)
    subject = Column(String(255), nullable=True)
    content = Column(Text, nullable=False)
    is_read = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=expression.false(),
        index=True,
    )
    read_at = Column(DateTime(), nullable=True)
    sent_at = Column(DateTime(), nullable=False, index=True)
    created_at = Column(DateTime(), nullable=False, server_default=func.now())
    attachments = Column(JSON, nullable=True)


__all__ = ["ChatMessageModel"]
