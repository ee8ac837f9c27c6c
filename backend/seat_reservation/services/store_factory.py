"""
Hold store factory.
Configures which hold store backend the engine uses.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from seat_reservation.core.config import get_settings
from seat_reservation.db.session import get_db
from seat_reservation.domain.errors import StorageFailureError
from seat_reservation.infrastructure.redis_client import get_redis
from seat_reservation.services.interfaces.hold_store import HoldStore
from seat_reservation.services.interfaces.sql_hold_store import SqlHoldStore
from seat_reservation.services.redis_hold_store import RedisHoldStore

settings = get_settings()


async def build_hold_store(db: AsyncSession) -> HoldStore:
    """
    Build the configured hold store.

    Backend selection via HOLD_STORE:
    - sql: holds share the application database (default)
    - redis: holds live in Redis with native key expiry
    """
    if settings.HOLD_STORE == "redis":
        client = await get_redis()
        if client is None:
            raise StorageFailureError("redis", "Redis hold store selected but Redis is unavailable")
        return RedisHoldStore(client)
    return SqlHoldStore(db)


async def get_hold_store(db: AsyncSession = Depends(get_db)) -> HoldStore:
    """FastAPI dependency for the request-scoped hold store."""
    return await build_hold_store(db)
