"""
Tests for the availability resolver and the seat map service.
"""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import at
from seat_reservation.domain import SeatKey, SeatStatus
from seat_reservation.domain.errors import InvalidRequestError, SeatNotFoundError, ShowtimeNotFoundError
from seat_reservation.services.availability_service import resolve, resolve_availability, unavailable_set
from seat_reservation.services.booking_service import finalize_booking
from seat_reservation.services.hold_service import acquire_hold
from seat_reservation.services.showtime_service import load_seat_map, override_price


@pytest.mark.asyncio
async def test_fresh_showtime_is_all_available(db_session: AsyncSession, store, showtime_id):
    statuses = await resolve(db_session, store, showtime_id, now=at(0))

    assert list(statuses) == [SeatKey(1, 1), SeatKey(1, 2), SeatKey(1, 3)]
    assert set(statuses.values()) == {SeatStatus.AVAILABLE}


@pytest.mark.asyncio
async def test_booked_wins_over_held(db_session: AsyncSession, store, showtime_id):
    """A hold row left on a booked seat never flips it back to HELD."""
    await acquire_hold(db_session, store, showtime_id, ["1:1"], "alice", now=at(0))
    await finalize_booking(db_session, store, showtime_id, ["1:1"], "alice", now=at(1))
    await store.acquire(showtime_id, [SeatKey(1, 1)], "bob", at(600), at(2))

    statuses = await resolve(db_session, store, showtime_id, now=at(3))

    assert statuses[SeatKey(1, 1)] == SeatStatus.BOOKED


@pytest.mark.asyncio
async def test_expired_hold_reads_as_available(db_session: AsyncSession, store, showtime_id):
    await acquire_hold(db_session, store, showtime_id, ["1:2"], "alice", ttl_seconds=30, now=at(0))

    assert (await resolve(db_session, store, showtime_id, now=at(29)))[SeatKey(1, 2)] == SeatStatus.HELD
    assert (await resolve(db_session, store, showtime_id, now=at(30)))[SeatKey(1, 2)] == SeatStatus.AVAILABLE


@pytest.mark.asyncio
async def test_resolve_availability_reconciles_first(db_session: AsyncSession, store, showtime_id):
    await acquire_hold(db_session, store, showtime_id, ["1:2"], "alice", ttl_seconds=30, now=at(0))

    statuses = await resolve_availability(db_session, store, showtime_id, now=at(45))

    assert statuses[SeatKey(1, 2)] == SeatStatus.AVAILABLE
    assert await store.find(showtime_id) == []


@pytest.mark.asyncio
async def test_unavailable_set_excludes_requesters_own_holds(db_session: AsyncSession, store, showtime_id):
    await acquire_hold(db_session, store, showtime_id, ["1:1"], "alice", now=at(0))
    await acquire_hold(db_session, store, showtime_id, ["1:2"], "bob", now=at(0))

    assert await unavailable_set(db_session, store, showtime_id, now=at(1)) == {SeatKey(1, 1), SeatKey(1, 2)}
    assert await unavailable_set(db_session, store, showtime_id, now=at(1), holder_id="alice") == {SeatKey(1, 2)}


@pytest.mark.asyncio
async def test_unknown_showtime_raises(db_session: AsyncSession, store):
    with pytest.raises(ShowtimeNotFoundError):
        await resolve(db_session, store, 4242, now=at(0))


@pytest.mark.asyncio
async def test_seat_map_layout_and_prices(db_session: AsyncSession, big_showtime_id):
    seat_map = await load_seat_map(db_session, big_showtime_id)

    assert seat_map.seats_per_row == 4
    assert len(seat_map.seats) == 12
    by_key = {record.seat: record for record in seat_map.seats}
    assert by_key[SeatKey(1, 1)].seat_type == "premium"
    assert by_key[SeatKey(1, 1)].price == Decimal("18.50")
    assert by_key[SeatKey(3, 4)].seat_type == "standard"
    assert by_key[SeatKey(3, 4)].price == Decimal("12.00")


@pytest.mark.asyncio
async def test_override_price(db_session: AsyncSession, big_showtime_id):
    record = await override_price(db_session, big_showtime_id, "C4", Decimal("5.00"))

    assert record.seat == SeatKey(3, 4)
    seat_map = await load_seat_map(db_session, big_showtime_id)
    assert {r.seat: r.price for r in seat_map.seats}[SeatKey(3, 4)] == Decimal("5.00")


@pytest.mark.asyncio
async def test_override_price_rejects_bad_input(db_session: AsyncSession, big_showtime_id):
    with pytest.raises(InvalidRequestError):
        await override_price(db_session, big_showtime_id, "A1", Decimal("-1"))
    with pytest.raises(SeatNotFoundError):
        await override_price(db_session, big_showtime_id, "Z9", Decimal("1"))
