# chatrooms/infrastructure/schemas.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from chatrooms.domain.entities import MessageType

ROOM_NAME_MIN_LENGTH = 3
ROOM_NAME_MAX_LENGTH = 100


class ChatroomMember(BaseModel):
    user_id: int
    username: str
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatroomBase(BaseModel):
    name: str = Field(
        ..., min_length=ROOM_NAME_MIN_LENGTH, max_length=ROOM_NAME_MAX_LENGTH
    )


class ChatroomCreate(ChatroomBase):
    pass


class Chatroom(ChatroomBase):
    id: int
    created_by: int
    created_at: datetime
    members: list[ChatroomMember] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class MessageBase(BaseModel):
    message_type: MessageType
    text_content: str | None = None
    media_url: str | None = None


class MessageCreate(MessageBase):
    pass


class Message(MessageBase):
    id: int
    chatroom_id: int
    sender_id: int
    sender_name: str
    sent_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OnlineMembers(BaseModel):
    chatroom_id: int
    user_ids: list[int]
