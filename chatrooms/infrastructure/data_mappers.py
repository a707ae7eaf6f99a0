# chatrooms/infrastructure/data_mappers.py

from typing import Protocol, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from chatrooms.infrastructure import models

ModelT_contra = TypeVar("ModelT_contra", contravariant=True)


class DataMapper(Protocol[ModelT_contra]):
    async def insert(self, model: ModelT_contra):
        raise NotImplementedError


class ChatroomMapper(DataMapper[models.Chatroom]):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, model: models.Chatroom):
        # members are flushed with the room through the relationship cascade
        self.session.add(model)
        await self.session.flush()


class ChatroomMemberMapper(DataMapper[models.ChatroomMember]):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, model: models.ChatroomMember):
        self.session.add(model)
        await self.session.flush()


class MessageMapper(DataMapper[models.Message]):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, model: models.Message):
        self.session.add(model)
        await self.session.flush()
