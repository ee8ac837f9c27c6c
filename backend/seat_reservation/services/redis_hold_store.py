"""
Redis hold store.
Implements HoldStore using one hash per seat and Lua scripts.

Layout:
  hold:{showtime_id}:{row}:{col}  -> hash {holder, expires_at(ms)}, PEXPIREAT expires_at
  holds:{showtime_id}             -> sorted set of "row:col", scored by expires_at(ms)

Every per-seat step (acquire, release, consume) runs as a single Lua script,
so Redis executes it atomically with respect to every other client. Expired
hashes are deleted by Redis itself; the index is pruned by purge_expired.
"""

import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import redis.asyncio as redis

from seat_reservation.core.logging import get_logger
from seat_reservation.core.metrics import store_errors
from seat_reservation.domain import ExpiringGrant, Hold, SeatKey
from seat_reservation.domain.errors import StorageFailureError
from seat_reservation.services.interfaces.hold_store import HoldStore

logger = get_logger(__name__)

# Load Lua scripts
SCRIPT_DIR = os.path.join(os.path.dirname(__file__), '../infrastructure')
with open(os.path.join(SCRIPT_DIR, 'hold_acquire.lua'), 'r') as f:
    ACQUIRE_SCRIPT = f.read()
with open(os.path.join(SCRIPT_DIR, 'hold_release.lua'), 'r') as f:
    RELEASE_SCRIPT = f.read()


def to_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def from_millis(value: str) -> datetime:
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def hold_key(showtime_id: int, seat: SeatKey) -> str:
    return f"hold:{showtime_id}:{seat.row}:{seat.column}"


def index_key(showtime_id: int) -> str:
    return f"holds:{showtime_id}"


class RedisHoldStore(HoldStore):
    """
    Redis-based hold store.

    Use when:
    - Several service processes share the hold state
    - Holds should disappear on their own even if nothing reads them
    """

    backend = "redis"

    def __init__(self, client: redis.Redis):
        self.redis = client
        self._acquire = client.register_script(ACQUIRE_SCRIPT)
        self._release = client.register_script(RELEASE_SCRIPT)

    @asynccontextmanager
    async def _guard(self):
        try:
            yield
        except redis.RedisError as e:
            store_errors.labels(backend=self.backend).inc()
            logger.error("hold_store_failure", backend=self.backend, error=str(e))
            raise StorageFailureError(self.backend, str(e)) from e

    async def acquire(
        self,
        showtime_id: int,
        seats: list[SeatKey],
        holder_id: str,
        expires_at: datetime,
        now: datetime,
    ) -> None:
        async with self._guard():
            for seat in sorted(seats):
                await self._acquire(
                    keys=[hold_key(showtime_id, seat), index_key(showtime_id)],
                    args=[holder_id, to_millis(expires_at), to_millis(now), str(seat)],
                )

    async def find(self, showtime_id: int, seats: Optional[list[SeatKey]] = None) -> list[Hold]:
        async with self._guard():
            if seats is None:
                members = await self.redis.zrange(index_key(showtime_id), 0, -1)
                seats = [SeatKey.from_canonical(member) for member in members]
            if not seats:
                return []

            async with self.redis.pipeline(transaction=False) as pipe:
                for seat in seats:
                    pipe.hgetall(hold_key(showtime_id, seat))
                rows = await pipe.execute()

        holds = []
        for seat, row in zip(seats, rows):
            if not row:
                continue
            holds.append(Hold(
                showtime_id=showtime_id,
                seat=seat,
                grant=ExpiringGrant(holder_id=row["holder"], expires_at=from_millis(row["expires_at"])),
            ))
        return holds

    async def _compare_and_delete(
        self, showtime_id: int, seats: list[SeatKey], holder_id: str, now: Optional[datetime]
    ) -> list[SeatKey]:
        removed = []
        now_arg = "" if now is None else to_millis(now)
        async with self._guard():
            for seat in sorted(seats):
                deleted = await self._release(
                    keys=[hold_key(showtime_id, seat), index_key(showtime_id)],
                    args=[holder_id, str(seat), now_arg],
                )
                if int(deleted):
                    removed.append(seat)
        return removed

    async def release(
        self, showtime_id: int, seats: list[SeatKey], holder_id: str, now: datetime
    ) -> list[SeatKey]:
        return await self._compare_and_delete(showtime_id, seats, holder_id, None)

    async def consume(
        self, showtime_id: int, seats: list[SeatKey], holder_id: str, now: datetime
    ) -> list[SeatKey]:
        """Removes holds immediately; not rolled back if the booking write fails."""
        return await self._compare_and_delete(showtime_id, seats, holder_id, now)

    async def purge_expired(self, now: datetime, showtime_id: Optional[int] = None) -> int:
        cutoff = to_millis(now)
        async with self._guard():
            if showtime_id is not None:
                return await self.redis.zremrangebyscore(index_key(showtime_id), "-inf", cutoff)

            purged = 0
            async for key in self.redis.scan_iter(match="holds:*", count=100):
                purged += await self.redis.zremrangebyscore(key, "-inf", cutoff)
            return purged
