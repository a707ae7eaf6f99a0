# chatrooms/infrastructure/uow.py

from typing import Any, Dict, Type

from sqlalchemy.ext.asyncio import AsyncSession


class UnitOfWork:
    """Collects new rows and writes them in one transaction.

    Rooms, members and messages are never updated or deleted, so only inserts
    are tracked. Either every registered row is committed or none is.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.new: Dict[int, Any] = {}
        self.mappers: Dict[Type, Any] = {}

    def register_new(self, model: Any) -> Any:
        self.new[id(model)] = model
        return model

    async def commit(self) -> None:
        try:
            for model in self.new.values():
                await self.mappers[type(model)].insert(model)
            await self.session.commit()
        except BaseException:
            # includes the CancelledError of an expired deadline
            await self.rollback()
            raise
        finally:
            self.new.clear()

    async def rollback(self) -> None:
        self.new.clear()
        await self.session.rollback()
