"""
Redis caching service for showtime seat maps.

CACHING STRATEGY
================

What we cache:
  - Seat map snapshots (seat key, type, price), JSON-serialized
  - Cache key pattern: "seatmap:{showtime_id}"

Why:
  - The seat map is read on every availability view, hold and booking
  - It is read-mostly: fixed at showtime creation, only prices change

Invalidation strategy:
  - On price override: delete the showtime's key
  - TTL-based expiry as safety net (SEAT_MAP_CACHE_TTL)

Why NOT cache availability:
  - Availability is computed from holds and bookings on every read
  - A stale occupancy view would show released seats as taken (or worse,
    taken seats as free)
"""

import json
from decimal import Decimal
from typing import Optional

import redis.asyncio as redis

from seat_reservation.core.config import get_settings
from seat_reservation.core.logging import get_logger
from seat_reservation.domain import SeatKey, SeatMap, SeatRecord
from seat_reservation.infrastructure.redis_client import get_redis

logger = get_logger(__name__)
settings = get_settings()


def _make_seat_map_key(showtime_id: int) -> str:
    return f"seatmap:{showtime_id}"


def _dump(seat_map: SeatMap) -> str:
    return json.dumps({
        "showtime_id": seat_map.showtime_id,
        "seats_per_row": seat_map.seats_per_row,
        "seats": [
            {"seat": str(r.seat), "seat_type": r.seat_type, "price": str(r.price)}
            for r in seat_map.seats
        ],
    })


def _load(data: str) -> SeatMap:
    raw = json.loads(data)
    return SeatMap(
        showtime_id=raw["showtime_id"],
        seats_per_row=raw["seats_per_row"],
        seats=tuple(
            SeatRecord(
                seat=SeatKey.from_canonical(s["seat"]),
                seat_type=s["seat_type"],
                price=Decimal(s["price"]),
            )
            for s in raw["seats"]
        ),
    )


async def get_cached_seat_map(showtime_id: int) -> Optional[SeatMap]:
    """Retrieve a cached seat map snapshot."""
    client = await get_redis()
    if not client:
        return None

    key = _make_seat_map_key(showtime_id)
    try:
        data = await client.get(key)
        if data:
            logger.debug("cache_hit", key=key)
            return _load(data)
        logger.debug("cache_miss", key=key)
    except (redis.RedisError, ValueError, KeyError) as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_seat_map(seat_map: SeatMap) -> None:
    """Cache a seat map snapshot with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_seat_map_key(seat_map.showtime_id)
    try:
        await client.setex(key, settings.SEAT_MAP_CACHE_TTL, _dump(seat_map))
        logger.debug("cache_set", key=key, ttl=settings.SEAT_MAP_CACHE_TTL)
    except redis.RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_seat_map(showtime_id: int) -> None:
    """Drop a showtime's cached seat map after its prices change."""
    client = await get_redis()
    if not client:
        return

    key = _make_seat_map_key(showtime_id)
    try:
        await client.delete(key)
        logger.info("cache_invalidated", key=key)
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", key=key, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}
