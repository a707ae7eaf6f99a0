# chatrooms/gateways/interfaces.py
from abc import ABC, abstractmethod
from typing import List, Optional

from chatrooms.domain.entities import AppendResult
from chatrooms.infrastructure import models


class IChatroomGateway(ABC):
    @abstractmethod
    async def find_by_id(self, chatroom_id: int) -> Optional[models.Chatroom]:
        pass

    @abstractmethod
    async def find_by_name(self, name: str) -> Optional[models.Chatroom]:
        pass

    @abstractmethod
    async def insert(self, chatroom: models.Chatroom) -> models.Chatroom:
        pass

    @abstractmethod
    async def append_member(
        self, chatroom_id: int, member: models.ChatroomMember
    ) -> AppendResult:
        pass

    @abstractmethod
    async def list_all(self) -> List[models.Chatroom]:
        pass

    @abstractmethod
    async def member_ids(self, chatroom_id: int) -> List[int]:
        pass


class IMessageGateway(ABC):
    @abstractmethod
    async def insert(self, message: models.Message) -> models.Message:
        pass

    @abstractmethod
    async def list_by_room(
        self, chatroom_id: int, limit: int, order_desc: bool = True
    ) -> List[models.Message]:
        pass
