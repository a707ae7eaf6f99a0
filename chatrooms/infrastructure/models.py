# chatrooms/infrastructure/models.py
from datetime import UTC, datetime
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatrooms.infrastructure.database import Base


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, always hands back aware UTC datetimes."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Chatroom(Base):
    __tablename__ = "chatrooms"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    created_by: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime)

    members: Mapped[List["ChatroomMember"]] = relationship(
        "ChatroomMember",
        back_populates="chatroom",
        order_by="ChatroomMember.id",
        lazy="selectin",
        cascade="all, delete-orphan",
    )


class ChatroomMember(Base):
    __tablename__ = "chatroom_members"

    __table_args__ = (
        UniqueConstraint("chatroom_id", "user_id", name="uq_chatroom_members_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chatroom_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chatrooms.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    username: Mapped[str] = mapped_column(String)
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime)

    chatroom: Mapped[Chatroom] = relationship("Chatroom", back_populates="members")


class Message(Base):
    __tablename__ = "messages"

    __table_args__ = (
        Index("ix_messages_chatroom_sent", "chatroom_id", "sent_at", "id"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    chatroom_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chatrooms.id"), index=True
    )
    sender_id: Mapped[int] = mapped_column(Integer, index=True)
    sender_name: Mapped[str] = mapped_column(String)
    message_type: Mapped[str] = mapped_column(String(32))
    text_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    media_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(UTCDateTime)
