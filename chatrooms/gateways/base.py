# chatrooms/gateways/base.py
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatrooms.domain.errors import ChatroomServiceError, TransientStoreError
from chatrooms.infrastructure.uow import UnitOfWork

DEFAULT_STORE_TIMEOUT_SECONDS = 5.0


class BaseGateway:
    def __init__(
        self,
        session: AsyncSession,
        uow: UnitOfWork,
        timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        self.session = session
        self.uow = uow
        self.timeout = timeout

    @asynccontextmanager
    async def deadline(self, operation: str) -> AsyncIterator[None]:
        """Run one store operation under the gateway deadline.

        Expiry and driver failures roll the transaction back and surface as
        TransientStoreError; domain errors raised inside pass through.
        """
        try:
            async with asyncio.timeout(self.timeout):
                yield
        except ChatroomServiceError:
            raise
        except TimeoutError as e:
            await self.uow.rollback()
            raise TransientStoreError(
                f"{operation} timed out after {self.timeout}s"
            ) from e
        except SQLAlchemyError as e:
            await self.uow.rollback()
            raise TransientStoreError(f"{operation} failed: {e.__class__.__name__}") from e
