# chatrooms/tests/conftest.py

import pytest
from fakeredis import aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from chatrooms.config import AppConfig
from chatrooms.domain.entities import Identity
from chatrooms.gateways.chatroom_gateway import ChatroomGateway
from chatrooms.gateways.message_gateway import MessageGateway
from chatrooms.infrastructure.database import create_database
from chatrooms.infrastructure.delivery_hub import LiveDeliveryHub
from chatrooms.infrastructure.event_dispatcher import EventDispatcher
from chatrooms.infrastructure.security import SecurityService
from chatrooms.infrastructure.sequencer import RoomSequencer
from chatrooms.infrastructure.uow import UnitOfWork
from chatrooms.interactors.membership_guard import MembershipGuard
from chatrooms.interactors.messaging_interactor import MessagingInteractor
from chatrooms.main import Application

ALICE = Identity(user_id=1, username="alice")
BOB = Identity(user_id=2, username="bob")
CAROL = Identity(user_id=3, username="carol")


@pytest.fixture(scope="function")
def app_config(tmp_path):
    """
    Provide a test configuration backed by a throwaway SQLite file, so that
    concurrent sessions get separate connections.
    """
    return AppConfig(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'chatrooms_test.db'}",
        REDIS_ENABLED=True,
        REDIS_HOST="localhost",
        REDIS_PORT=6379,
        SECRET_KEY="test_secret_key",
        PROJECT_NAME="Test Chatrooms API",
        PROJECT_VERSION="1.0.0",
        PROJECT_DESCRIPTION="Test Chatrooms API",
        API_V1_STR="/api/v1",
        ALGORITHM="HS256",
        ACCESS_TOKEN_EXPIRE_MINUTES=5,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture(scope="function")
async def mock_redis():
    """Provide a fake Redis client for testing."""
    redis = aioredis.FakeRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


@pytest.fixture(scope="function")
async def database(app_config):
    """Create the schema in the test database and hand out the Database."""
    engine = create_async_engine(app_config.DATABASE_URL, echo=False)
    database = create_database(engine)
    await database.connect()
    yield database
    await database.disconnect()


@pytest.fixture(scope="function")
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture(scope="function")
def hub():
    return LiveDeliveryHub()


@pytest.fixture(scope="function")
def sequencer():
    return RoomSequencer()


@pytest.fixture(scope="function")
def event_dispatcher():
    return EventDispatcher()


@pytest.fixture(scope="function")
async def messaging_factory(database, hub, sequencer, event_dispatcher):
    """
    Build MessagingInteractors the way a request does: one session and one
    unit of work each. Concurrency tests use one interactor per racing task.
    """
    sessions = []

    def _factory() -> MessagingInteractor:
        session = database.SessionLocal()
        sessions.append(session)
        uow = UnitOfWork(session)
        chatroom_gateway = ChatroomGateway(session, uow)
        message_gateway = MessageGateway(session, uow)
        return MessagingInteractor(
            chatroom_gateway,
            message_gateway,
            MembershipGuard(chatroom_gateway),
            hub,
            sequencer,
            event_dispatcher,
        )

    yield _factory
    for session in sessions:
        await session.close()


@pytest.fixture(scope="function")
def messaging(messaging_factory):
    return messaging_factory()


@pytest.fixture(scope="function")
def security_service(app_config):
    return SecurityService(app_config)


@pytest.fixture(scope="function")
def auth_header(security_service):
    """Build an Authorization header for one of the test identities."""

    def _auth_header(identity: Identity) -> dict:
        token, _ = security_service.create_access_token(
            identity.user_id, identity.username
        )
        return {"Authorization": f"Bearer {token}"}

    return _auth_header


@pytest.fixture(scope="function")
async def application(app_config, mock_redis, database):
    application = Application(config=app_config)
    application.database = database
    application.redis_client.client = mock_redis
    return application


@pytest.fixture(scope="function")
async def app(application):
    """Create the FastAPI app with the test database."""
    return application.create_app()


@pytest.fixture(scope="function")
async def client(app):
    """Provide an HTTP client with the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture(scope="function")
async def general_room(client, auth_header):
    """Room "general" created by alice."""
    response = await client.post(
        "/api/v1/chatrooms/", headers=auth_header(ALICE), json={"name": "general"}
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def alice():
    return ALICE


@pytest.fixture
def bob():
    return BOB


@pytest.fixture
def carol():
    return CAROL
