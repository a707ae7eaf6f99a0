# chatrooms/api/dependencies.py
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from chatrooms.config import AppConfig
from chatrooms.domain.entities import Identity
from chatrooms.gateways.chatroom_gateway import ChatroomGateway
from chatrooms.gateways.message_gateway import MessageGateway
from chatrooms.infrastructure.activity import ActivityRecorder
from chatrooms.infrastructure.delivery_hub import LiveDeliveryHub
from chatrooms.infrastructure.event_dispatcher import EventDispatcher
from chatrooms.infrastructure.security import SecurityService
from chatrooms.infrastructure.sequencer import RoomSequencer
from chatrooms.infrastructure.uow import UnitOfWork
from chatrooms.interactors.membership_guard import MembershipGuard
from chatrooms.interactors.messaging_interactor import MessagingInteractor

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_security_service(request: Request) -> SecurityService:
    return request.app.state.security_service


def get_event_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.event_dispatcher


def get_delivery_hub(request: Request) -> LiveDeliveryHub:
    return request.app.state.delivery_hub


def get_sequencer(request: Request) -> RoomSequencer:
    return request.app.state.sequencer


def get_activity_recorder(request: Request) -> ActivityRecorder:
    return request.app.state.activity_recorder


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.database.session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_uow(session: AsyncSession = Depends(get_session)) -> UnitOfWork:
    return UnitOfWork(session)


async def get_chatroom_gateway(
    session: AsyncSession = Depends(get_session),
    uow: UnitOfWork = Depends(get_uow),
    config: AppConfig = Depends(get_config),
) -> ChatroomGateway:
    return ChatroomGateway(session, uow, config.STORE_TIMEOUT_SECONDS)


async def get_message_gateway(
    session: AsyncSession = Depends(get_session),
    uow: UnitOfWork = Depends(get_uow),
    config: AppConfig = Depends(get_config),
) -> MessageGateway:
    return MessageGateway(session, uow, config.STORE_TIMEOUT_SECONDS)


async def get_membership_guard(
    chatroom_gateway: ChatroomGateway = Depends(get_chatroom_gateway),
) -> MembershipGuard:
    return MembershipGuard(chatroom_gateway)


async def get_messaging_interactor(
    request: Request,
    chatroom_gateway: ChatroomGateway = Depends(get_chatroom_gateway),
    message_gateway: MessageGateway = Depends(get_message_gateway),
    guard: MembershipGuard = Depends(get_membership_guard),
    hub: LiveDeliveryHub = Depends(get_delivery_hub),
    sequencer: RoomSequencer = Depends(get_sequencer),
    event_dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    config: AppConfig = Depends(get_config),
) -> MessagingInteractor:
    return MessagingInteractor(
        chatroom_gateway,
        message_gateway,
        guard,
        hub,
        sequencer,
        event_dispatcher,
        default_limit=config.MESSAGES_DEFAULT_LIMIT,
        max_limit=config.MESSAGES_MAX_LIMIT,
        logger=request.app.state.logger,
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    security_service: SecurityService = Depends(get_security_service),
) -> Identity:
    identity = security_service.decode_access_token(token)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
