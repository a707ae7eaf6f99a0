# chatrooms/domain/events.py
from datetime import datetime

from pydantic import BaseModel

from chatrooms.domain.entities import MessageType


class Event(BaseModel):
    pass


class MessageCreated(Event):
    message_id: int
    chatroom_id: int
    sender_id: int
    sender_name: str
    message_type: MessageType
    text_content: str | None = None
    media_url: str | None = None
    sent_at: datetime


class MemberJoined(Event):
    chatroom_id: int
    user_id: int
    username: str
    joined_at: datetime
