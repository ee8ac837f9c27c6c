"""
Redis client shared by the hold store and the seat map cache.
Separated from business logic for clean architecture.
"""

from typing import Optional

import redis.asyncio as redis

from seat_reservation.core.config import get_settings
from seat_reservation.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


class RedisClient:
    """Process-wide async Redis client with connection pooling."""

    _instance: Optional[redis.Redis] = None

    @classmethod
    async def get_client(cls) -> Optional[redis.Redis]:
        """Get or create the client. Returns None if Redis is disabled or unreachable."""
        if not settings.REDIS_ENABLED:
            return None

        if cls._instance is None:
            try:
                client = redis.from_url(
                    settings.REDIS_URL,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                    retry_on_timeout=True,
                    health_check_interval=30,
                )
                await client.ping()
                cls._instance = client
                logger.info("redis_connected", url=settings.REDIS_URL)
            except redis.RedisError as e:
                logger.error("redis_connection_failed", error=str(e))
                return None
        return cls._instance

    @classmethod
    async def close(cls) -> None:
        """Close Redis connection."""
        if cls._instance is not None:
            await cls._instance.aclose()
            cls._instance = None


async def get_redis() -> Optional[redis.Redis]:
    """Get Redis client instance."""
    return await RedisClient.get_client()


async def close_redis() -> None:
    await RedisClient.close()
