# chatrooms/interactors/membership_guard.py
from datetime import UTC, datetime
from typing import Optional

from chatrooms.domain.entities import AppendResult
from chatrooms.domain.errors import AlreadyMemberError, NotFoundError, NotMemberError
from chatrooms.gateways.interfaces import IChatroomGateway
from chatrooms.infrastructure import models, schemas


class MembershipGuard:
    """Single authority on who may act in a chatroom.

    Every read or write of a room's messages goes through require_membership,
    and the member list is only ever extended through add_member.
    """

    def __init__(self, chatroom_gateway: IChatroomGateway):
        self.chatroom_gateway = chatroom_gateway

    async def ensure_room_exists(self, chatroom_id: int) -> schemas.Chatroom:
        chatroom = await self.chatroom_gateway.find_by_id(chatroom_id)
        if chatroom is None:
            raise NotFoundError(f"Chatroom {chatroom_id} not found")
        return schemas.Chatroom.model_validate(chatroom)

    @staticmethod
    def is_member(chatroom: schemas.Chatroom, user_id: int) -> bool:
        return any(member.user_id == user_id for member in chatroom.members)

    async def add_member(
        self,
        chatroom_id: int,
        user_id: int,
        username: str,
        now: Optional[datetime] = None,
    ) -> schemas.Chatroom:
        chatroom = await self.ensure_room_exists(chatroom_id)
        if self.is_member(chatroom, user_id):
            raise AlreadyMemberError(
                f"User {user_id} is already a member of chatroom {chatroom_id}"
            )

        member = models.ChatroomMember(
            user_id=user_id,
            username=username,
            joined_at=now or datetime.now(UTC),
        )
        result = await self.chatroom_gateway.append_member(chatroom_id, member)
        if result is AppendResult.NOT_FOUND:
            raise NotFoundError(f"Chatroom {chatroom_id} not found")
        if result is AppendResult.ALREADY_PRESENT:
            raise AlreadyMemberError(
                f"User {user_id} is already a member of chatroom {chatroom_id}"
            )
        return await self.ensure_room_exists(chatroom_id)

    async def require_membership(
        self, chatroom_id: int, user_id: int
    ) -> schemas.Chatroom:
        chatroom = await self.ensure_room_exists(chatroom_id)
        if not self.is_member(chatroom, user_id):
            raise NotMemberError(
                f"User {user_id} is not a member of chatroom {chatroom_id}"
            )
        return chatroom
