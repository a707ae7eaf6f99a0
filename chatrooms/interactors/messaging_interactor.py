# chatrooms/interactors/messaging_interactor.py
import logging
from datetime import UTC, datetime
from typing import List, Optional

from chatrooms.domain.entities import MessageType
from chatrooms.domain.errors import (
    DuplicateNameError,
    TransientStoreError,
    ValidationError,
)
from chatrooms.domain.events import MemberJoined, MessageCreated
from chatrooms.gateways.interfaces import IChatroomGateway, IMessageGateway
from chatrooms.infrastructure import models, schemas
from chatrooms.infrastructure.delivery_hub import LiveDeliveryHub
from chatrooms.infrastructure.event_dispatcher import EventDispatcher
from chatrooms.infrastructure.sequencer import RoomSequencer
from chatrooms.interactors.membership_guard import MembershipGuard

DEFAULT_MESSAGES_LIMIT = 50
MAX_MESSAGES_LIMIT = 500


def validate_payload(
    message_type: MessageType | str,
    text_content: Optional[str],
    media_url: Optional[str],
) -> MessageType:
    """Check message_type against the closed set and its payload fields."""
    try:
        message_type = MessageType(message_type)
    except ValueError as e:
        raise ValidationError(f"Unknown message type '{message_type}'") from e

    if message_type.carries_text and not (text_content and text_content.strip()):
        raise ValidationError(
            f"Message of type '{message_type.value}' requires text_content"
        )
    if message_type.carries_media and not (media_url and media_url.strip()):
        raise ValidationError(
            f"Message of type '{message_type.value}' requires media_url"
        )
    return message_type


class MessagingInteractor:
    def __init__(
        self,
        chatroom_gateway: IChatroomGateway,
        message_gateway: IMessageGateway,
        guard: MembershipGuard,
        hub: LiveDeliveryHub,
        sequencer: RoomSequencer,
        event_dispatcher: EventDispatcher,
        default_limit: int = DEFAULT_MESSAGES_LIMIT,
        max_limit: int = MAX_MESSAGES_LIMIT,
        logger: Optional[logging.Logger] = None,
    ):
        self.chatroom_gateway = chatroom_gateway
        self.message_gateway = message_gateway
        self.guard = guard
        self.hub = hub
        self.sequencer = sequencer
        self.event_dispatcher = event_dispatcher
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.logger = logger or logging.getLogger("ChatAPI")

    async def create_room(
        self,
        name: str,
        creator_id: int,
        creator_username: str,
        now: Optional[datetime] = None,
    ) -> schemas.Chatroom:
        if not (
            schemas.ROOM_NAME_MIN_LENGTH <= len(name) <= schemas.ROOM_NAME_MAX_LENGTH
        ):
            raise ValidationError(
                f"Chatroom name must be {schemas.ROOM_NAME_MIN_LENGTH}-"
                f"{schemas.ROOM_NAME_MAX_LENGTH} characters"
            )
        # the unique index on chatrooms.name settles races this check misses
        if await self.chatroom_gateway.find_by_name(name) is not None:
            raise DuplicateNameError(f"Chatroom with name '{name}' already exists")

        now = now or datetime.now(UTC)
        chatroom = models.Chatroom(name=name, created_by=creator_id, created_at=now)
        chatroom.members = [
            models.ChatroomMember(
                user_id=creator_id, username=creator_username, joined_at=now
            )
        ]
        chatroom = await self.chatroom_gateway.insert(chatroom)
        self.logger.info(f"Chatroom {chatroom.id} '{name}' created by user {creator_id}")
        return schemas.Chatroom.model_validate(chatroom)

    async def list_rooms(self) -> List[schemas.Chatroom]:
        chatrooms = await self.chatroom_gateway.list_all()
        return [schemas.Chatroom.model_validate(chatroom) for chatroom in chatrooms]

    async def get_room(self, chatroom_id: int, caller_id: int) -> schemas.Chatroom:
        return await self.guard.require_membership(chatroom_id, caller_id)

    async def join_room(
        self,
        chatroom_id: int,
        user_id: int,
        username: str,
        now: Optional[datetime] = None,
    ) -> schemas.Chatroom:
        chatroom = await self.guard.add_member(chatroom_id, user_id, username, now)
        member = next(m for m in chatroom.members if m.user_id == user_id)
        await self.event_dispatcher.dispatch(
            MemberJoined(
                chatroom_id=chatroom_id,
                user_id=user_id,
                username=username,
                joined_at=member.joined_at,
            )
        )
        return chatroom

    async def send_message(
        self,
        chatroom_id: int,
        sender_id: int,
        sender_name: str,
        message_type: MessageType | str,
        text_content: Optional[str] = None,
        media_url: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> schemas.Message:
        chatroom = await self.guard.require_membership(chatroom_id, sender_id)
        message_type = validate_payload(message_type, text_content, media_url)

        async with self.sequencer.slot(chatroom_id) as slot:
            db_message = models.Message(
                chatroom_id=chatroom_id,
                sender_id=sender_id,
                sender_name=sender_name,
                message_type=message_type.value,
                text_content=text_content,
                media_url=media_url,
                sent_at=slot.stamp(now),
            )
            db_message = await self.message_gateway.insert(db_message)
            slot.commit()
            message = schemas.Message.model_validate(db_message)

            # members may have joined since the guard read the room
            try:
                member_ids = await self.chatroom_gateway.member_ids(chatroom_id)
            except TransientStoreError as e:
                self.logger.warning(
                    f"Falling back to cached members of chatroom {chatroom_id}: {e!r}"
                )
                member_ids = [m.user_id for m in chatroom.members]
            self.hub.broadcast(chatroom_id, message, member_ids)

        await self.event_dispatcher.dispatch(
            MessageCreated(
                message_id=message.id,
                chatroom_id=message.chatroom_id,
                sender_id=message.sender_id,
                sender_name=message.sender_name,
                message_type=message.message_type,
                text_content=message.text_content,
                media_url=message.media_url,
                sent_at=message.sent_at,
            )
        )
        return message

    async def list_messages(
        self, chatroom_id: int, caller_id: int, limit: Optional[int] = None
    ) -> List[schemas.Message]:
        await self.guard.require_membership(chatroom_id, caller_id)
        messages = await self.message_gateway.list_by_room(
            chatroom_id, self.effective_limit(limit), order_desc=True
        )
        return [schemas.Message.model_validate(message) for message in messages]

    async def online_members(self, chatroom_id: int, caller_id: int) -> List[int]:
        chatroom = await self.guard.require_membership(chatroom_id, caller_id)
        return self.hub.online_user_ids(m.user_id for m in chatroom.members)

    def effective_limit(self, limit: Optional[int]) -> int:
        if limit is None or limit <= 0:
            return self.default_limit
        return min(limit, self.max_limit)
