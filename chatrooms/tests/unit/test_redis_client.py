import json
import logging
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest
import redis

from chatrooms.domain.events import MemberJoined, MessageCreated
from chatrooms.infrastructure.event_handlers import EventHandlers
from chatrooms.infrastructure.redis_client import RedisClient


@pytest.fixture
def test_logger():
    logger = logging.getLogger("test_redis")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def redis_client(test_logger):
    return RedisClient(host="localhost", port=6379, logger=test_logger)


@pytest.fixture
def event_handlers(redis_client):
    return EventHandlers(redis_client)


@pytest.mark.asyncio
async def test_redis_connect_and_publish(redis_client, caplog):
    caplog.set_level(logging.DEBUG)
    with patch("redis.asyncio.Redis", return_value=AsyncMock()) as mock_redis:
        mock_redis.return_value.ping.return_value = True
        await redis_client.connect()
        assert redis_client.client is not None
        assert (
            f"Successfully connected to Redis at {redis_client.host}:{redis_client.port}"
            in caplog.text
        )

        await redis_client.publish("test_channel", "test_message")
        redis_client.client.publish.assert_called_once_with("test_channel", "test_message")
        assert "Published message to channel test_channel" in caplog.text


@pytest.mark.asyncio
async def test_redis_connect_failure(redis_client, caplog):
    caplog.set_level(logging.ERROR)
    with patch("redis.asyncio.Redis", return_value=AsyncMock()) as mock_redis:
        mock_redis.return_value.ping.side_effect = redis.ConnectionError("refused")
        with pytest.raises(redis.ConnectionError):
            await redis_client.connect()
    assert "Failed to connect to Redis" in caplog.text


@pytest.mark.asyncio
async def test_redis_disconnect(redis_client):
    client = AsyncMock()
    redis_client.client = client

    await redis_client.disconnect()

    client.aclose.assert_awaited_once()
    assert redis_client.client is None


@pytest.mark.asyncio
async def test_publish_before_connect(redis_client):
    with pytest.raises(RuntimeError):
        await redis_client.publish("test_channel", "test_message")


@pytest.mark.asyncio
async def test_disabled_client_skips_everything(test_logger, caplog):
    caplog.set_level(logging.INFO)
    redis_client = RedisClient("localhost", 6379, test_logger, enabled=False)
    with patch("redis.asyncio.Redis") as mock_redis:
        await redis_client.connect()
        await redis_client.publish("test_channel", "test_message")
    mock_redis.assert_not_called()
    assert redis_client.client is None
    assert "Redis publishing disabled" in caplog.text


@pytest.mark.asyncio
async def test_redis_publish_message_created(redis_client, event_handlers, caplog):
    caplog.set_level(logging.DEBUG)
    redis_client.client = AsyncMock()

    event = MessageCreated(
        message_id=1,
        chatroom_id=1,
        sender_id=1,
        sender_name="alice",
        message_type="text_and_picture",
        text_content="Test message",
        media_url="https://cdn.example.com/cat.png",
        sent_at=datetime(2023, 1, 1, 12, 0, 0, tzinfo=UTC),
    )
    await event_handlers.publish_message_created(event)

    expected_data = {
        "id": 1,
        "chatroom_id": 1,
        "sender_id": 1,
        "sender_name": "alice",
        "message_type": "text_and_picture",
        "text_content": "Test message",
        "media_url": "https://cdn.example.com/cat.png",
        "sent_at": "2023-01-01T12:00:00Z",
    }
    redis_client.client.publish.assert_called_once()
    call_args = redis_client.client.publish.call_args
    assert call_args[0][0] == "chatroom:1"
    assert json.loads(call_args[0][1]) == expected_data
    assert "Published message to channel chatroom:1" in caplog.text


@pytest.mark.asyncio
async def test_redis_publish_member_joined(redis_client, event_handlers):
    redis_client.client = AsyncMock()

    event = MemberJoined(
        chatroom_id=3,
        user_id=2,
        username="bob",
        joined_at=datetime(2023, 1, 1, 12, 0, 0, tzinfo=UTC),
    )
    await event_handlers.publish_member_joined(event)

    call_args = redis_client.client.publish.call_args
    assert call_args[0][0] == "chatroom:3:members"
    assert json.loads(call_args[0][1]) == {
        "chatroom_id": 3,
        "user_id": 2,
        "username": "bob",
        "joined_at": "2023-01-01T12:00:00Z",
    }
