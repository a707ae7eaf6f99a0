# chatrooms/infrastructure/redis_client.py
import logging

import redis.asyncio as redis


class RedisClient:
    def __init__(
        self, host: str, port: int, logger: logging.Logger, enabled: bool = True
    ):
        self.host = host
        self.port = port
        self.enabled = enabled
        self.client: redis.Redis | None = None
        self.logger = logger

    async def connect(self):
        if not self.enabled:
            self.logger.info("Redis publishing disabled, skipping connection")
            return
        self.client = redis.Redis(
            host=self.host,
            port=self.port,
            db=0,
            decode_responses=True,
        )
        try:
            await self.client.ping()
            self.logger.info(
                f"Successfully connected to Redis at {self.host}:{self.port}"
            )
        except redis.ConnectionError as e:
            self.logger.error(f"Failed to connect to Redis: {e!s}")
            self.logger.error(f"Redis host: {self.host}, Redis port: {self.port}")
            raise e

    async def disconnect(self):
        if self.client:
            await self.client.aclose()
            self.client = None
            self.logger.info("Disconnected from Redis")

    async def publish(self, channel: str, message: str) -> None:
        if not self.enabled:
            return
        if self.client is None:
            raise RuntimeError("Redis client not connected")
        await self.client.publish(channel, message)
        self.logger.debug(f"Published message to channel {channel}")
