"""
Tests for the Redis hold store (fakeredis with Lua support).

Hold expiry instants are far in the future (see conftest.T0), so keys are
not removed by Redis during a test; expiry is exercised through `now`.
"""

import asyncio

import pytest
import redis.asyncio as redis

from conftest import at
from seat_reservation.domain import SeatKey
from seat_reservation.domain.errors import StorageFailureError
from seat_reservation.services.redis_hold_store import RedisHoldStore, hold_key, index_key

SHOWTIME = 7
A1, A2, A3 = SeatKey(1, 1), SeatKey(1, 2), SeatKey(1, 3)


@pytest.mark.asyncio
async def test_acquire_and_find(redis_store):
    await redis_store.acquire(SHOWTIME, [A1, A2], "alice", at(600), at(0))

    holds = {h.seat: h for h in await redis_store.find(SHOWTIME)}

    assert set(holds) == {A1, A2}
    assert holds[A1].holder_id == "alice"
    assert holds[A1].expires_at == at(600)


@pytest.mark.asyncio
async def test_live_hold_of_other_holder_is_not_overwritten(redis_store):
    await redis_store.acquire(SHOWTIME, [A1], "alice", at(600), at(0))
    await redis_store.acquire(SHOWTIME, [A1], "bob", at(700), at(1))

    [hold] = await redis_store.find(SHOWTIME, [A1])
    assert hold.holder_id == "alice"


@pytest.mark.asyncio
async def test_expired_hold_is_taken_over(redis_store):
    await redis_store.acquire(SHOWTIME, [A1], "alice", at(60), at(0))
    await redis_store.acquire(SHOWTIME, [A1], "bob", at(700), at(60))

    [hold] = await redis_store.find(SHOWTIME, [A1])
    assert hold.holder_id == "bob"
    assert hold.expires_at == at(700)


@pytest.mark.asyncio
async def test_renewal_keeps_later_expiry(redis_store):
    await redis_store.acquire(SHOWTIME, [A1], "alice", at(600), at(0))
    await redis_store.acquire(SHOWTIME, [A1], "alice", at(100), at(10))

    [hold] = await redis_store.find(SHOWTIME, [A1])
    assert hold.expires_at == at(600)


@pytest.mark.asyncio
async def test_concurrent_acquire_has_one_winner(redis_client):
    """Many holders race for one seat; exactly one ends up holding it."""
    holders = [f"holder-{i}" for i in range(20)]

    await asyncio.gather(*[
        RedisHoldStore(redis_client).acquire(SHOWTIME, [A1], holder, at(600), at(0))
        for holder in holders
    ])

    holds = await RedisHoldStore(redis_client).find(SHOWTIME)
    assert len(holds) == 1
    assert holds[0].holder_id in holders


@pytest.mark.asyncio
async def test_release_is_scoped_to_holder(redis_store, redis_client):
    await redis_store.acquire(SHOWTIME, [A1], "alice", at(600), at(0))
    await redis_store.acquire(SHOWTIME, [A2], "bob", at(600), at(0))

    released = await redis_store.release(SHOWTIME, [A1, A2], "bob", at(1))

    assert released == [A2]
    assert await redis_client.exists(hold_key(SHOWTIME, A2)) == 0
    assert [h.seat for h in await redis_store.find(SHOWTIME)] == [A1]


@pytest.mark.asyncio
async def test_consume_requires_live_own_hold(redis_store):
    await redis_store.acquire(SHOWTIME, [A1], "alice", at(600), at(0))
    await redis_store.acquire(SHOWTIME, [A2], "alice", at(60), at(0))
    await redis_store.acquire(SHOWTIME, [A3], "bob", at(600), at(0))

    consumed = await redis_store.consume(SHOWTIME, [A1, A2, A3], "alice", at(60))

    assert consumed == [A1]
    assert {h.seat for h in await redis_store.find(SHOWTIME)} == {A2, A3}


@pytest.mark.asyncio
async def test_purge_expired_prunes_index(redis_store, redis_client):
    await redis_store.acquire(SHOWTIME, [A1], "alice", at(60), at(0))
    await redis_store.acquire(SHOWTIME, [A2], "alice", at(600), at(0))
    await redis_store.acquire(SHOWTIME + 1, [A1], "bob", at(60), at(0))

    assert await redis_store.purge_expired(at(60), showtime_id=SHOWTIME) == 1
    assert await redis_client.zrange(index_key(SHOWTIME), 0, -1) == [str(A2)]

    assert await redis_store.purge_expired(at(60)) == 1
    assert await redis_client.zcard(index_key(SHOWTIME + 1)) == 0


@pytest.mark.asyncio
async def test_redis_errors_become_storage_failures(redis_store, monkeypatch):
    async def broken(*args, **kwargs):
        raise redis.ConnectionError("connection refused")

    monkeypatch.setattr(redis_store.redis, "zrange", broken)

    with pytest.raises(StorageFailureError):
        await redis_store.find(SHOWTIME)
