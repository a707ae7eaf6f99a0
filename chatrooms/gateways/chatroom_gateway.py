# chatrooms/gateways/chatroom_gateway.py
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chatrooms.domain.entities import AppendResult
from chatrooms.domain.errors import DuplicateNameError, TransientStoreError
from chatrooms.gateways.base import DEFAULT_STORE_TIMEOUT_SECONDS, BaseGateway
from chatrooms.gateways.interfaces import IChatroomGateway
from chatrooms.infrastructure import models
from chatrooms.infrastructure.data_mappers import ChatroomMapper, ChatroomMemberMapper
from chatrooms.infrastructure.uow import UnitOfWork

# how SQLite and PostgreSQL name the unique constraints in their error text
ROOM_NAME_UNIQUE = ("UNIQUE constraint failed: chatrooms.name", "ix_chatrooms_name")
MEMBER_UNIQUE = (
    "UNIQUE constraint failed: chatroom_members.chatroom_id, chatroom_members.user_id",
    "uq_chatroom_members_user",
)


def violates(error: IntegrityError, markers: tuple) -> bool:
    text = str(error.orig)
    return any(marker in text for marker in markers)


class ChatroomGateway(BaseGateway, IChatroomGateway):
    def __init__(
        self,
        session: AsyncSession,
        uow: UnitOfWork,
        timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        super().__init__(session, uow, timeout)
        uow.mappers[models.Chatroom] = ChatroomMapper(session)
        uow.mappers[models.ChatroomMember] = ChatroomMemberMapper(session)

    async def find_by_id(self, chatroom_id: int) -> Optional[models.Chatroom]:
        async with self.deadline("find chatroom"):
            stmt = (
                select(models.Chatroom)
                .options(selectinload(models.Chatroom.members))
                .filter(models.Chatroom.id == chatroom_id)
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

    async def find_by_name(self, name: str) -> Optional[models.Chatroom]:
        async with self.deadline("find chatroom by name"):
            stmt = select(models.Chatroom).filter(models.Chatroom.name == name)
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

    async def insert(self, chatroom: models.Chatroom) -> models.Chatroom:
        async with self.deadline("insert chatroom"):
            self.uow.register_new(chatroom)
            try:
                await self.uow.commit()
            except IntegrityError as e:
                if not violates(e, ROOM_NAME_UNIQUE):
                    raise TransientStoreError(
                        f"insert chatroom failed: {e.__class__.__name__}"
                    ) from e
                raise DuplicateNameError(
                    f"Chatroom with name '{chatroom.name}' already exists"
                ) from e
            return chatroom

    async def append_member(
        self, chatroom_id: int, member: models.ChatroomMember
    ) -> AppendResult:
        async with self.deadline("append chatroom member"):
            exists = await self.session.scalar(
                select(models.Chatroom.id).filter(models.Chatroom.id == chatroom_id)
            )
            if exists is None:
                return AppendResult.NOT_FOUND

            member.chatroom_id = chatroom_id
            self.uow.register_new(member)
            try:
                await self.uow.commit()
            except IntegrityError as e:
                if not violates(e, MEMBER_UNIQUE):
                    raise TransientStoreError(
                        f"append chatroom member failed: {e.__class__.__name__}"
                    ) from e
                # a concurrent join won
                return AppendResult.ALREADY_PRESENT
            return AppendResult.SUCCESS

    async def list_all(self) -> List[models.Chatroom]:
        async with self.deadline("list chatrooms"):
            stmt = select(models.Chatroom).order_by(models.Chatroom.id)
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

    async def member_ids(self, chatroom_id: int) -> List[int]:
        async with self.deadline("list chatroom members"):
            stmt = (
                select(models.ChatroomMember.user_id)
                .filter(models.ChatroomMember.chatroom_id == chatroom_id)
                .order_by(models.ChatroomMember.id)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
