# chatrooms/gateways/message_gateway.py
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatrooms.gateways.base import DEFAULT_STORE_TIMEOUT_SECONDS, BaseGateway
from chatrooms.gateways.interfaces import IMessageGateway
from chatrooms.infrastructure import models
from chatrooms.infrastructure.data_mappers import MessageMapper
from chatrooms.infrastructure.uow import UnitOfWork


class MessageGateway(BaseGateway, IMessageGateway):
    def __init__(
        self,
        session: AsyncSession,
        uow: UnitOfWork,
        timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        super().__init__(session, uow, timeout)
        uow.mappers[models.Message] = MessageMapper(session)

    async def insert(self, message: models.Message) -> models.Message:
        async with self.deadline("insert message"):
            self.uow.register_new(message)
            await self.uow.commit()
            return message

    async def list_by_room(
        self, chatroom_id: int, limit: int, order_desc: bool = True
    ) -> List[models.Message]:
        async with self.deadline("list messages"):
            if order_desc:
                ordering = (models.Message.sent_at.desc(), models.Message.id.desc())
            else:
                ordering = (models.Message.sent_at.asc(), models.Message.id.asc())
            stmt = (
                select(models.Message)
                .filter(models.Message.chatroom_id == chatroom_id)
                .order_by(*ordering)
                .limit(limit)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
