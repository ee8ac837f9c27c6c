"""
Availability resolver.

Occupancy is never stored on the seat map. It is computed on every read:

    BOOKED    seat is in a CONFIRMED booking
    HELD      seat has a live hold (ACTIVE and expires_at > now), unless BOOKED
    AVAILABLE everything else in the seat map

BOOKED wins over HELD: a seat whose hold row has not been cleaned up after
finalization must never flip back to HELD.

resolve() and unavailable_set() only read. resolve_availability() runs the
on-read reconciler first.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from seat_reservation.domain import BookingStatus, Hold, SeatKey, SeatStatus, utcnow
from seat_reservation.domain.errors import StorageFailureError
from seat_reservation.models.booking import Booking, BookedSeat
from seat_reservation.services.interfaces.hold_store import HoldStore
from seat_reservation.services.reconciler import reconcile_showtime
from seat_reservation.services.showtime_service import load_seat_map


async def booked_seats(db: AsyncSession, showtime_id: int) -> set[SeatKey]:
    """Union of seats across the showtime's CONFIRMED bookings."""
    try:
        result = await db.execute(
            select(BookedSeat.seat_row, BookedSeat.seat_col)
            .join(Booking, Booking.id == BookedSeat.booking_id)
            .where(
                BookedSeat.showtime_id == showtime_id,
                Booking.status == BookingStatus.CONFIRMED.value,
            )
        )
    except SQLAlchemyError as e:
        raise StorageFailureError("sql", str(e)) from e
    return {SeatKey(row, col) for row, col in result.all()}


async def live_holds(store: HoldStore, showtime_id: int, now: datetime) -> dict[SeatKey, Hold]:
    return {
        hold.seat: hold
        for hold in await store.find(showtime_id)
        if hold.is_live(now)
    }


async def resolve(
    db: AsyncSession,
    store: HoldStore,
    showtime_id: int,
    now: Optional[datetime] = None,
) -> dict[SeatKey, SeatStatus]:
    """
    Status of every seat in the showtime's seat map.

    Raises:
        ShowtimeNotFoundError: the showtime does not exist.
    """
    now = now or utcnow()
    seat_map = await load_seat_map(db, showtime_id)
    booked = await booked_seats(db, showtime_id)
    held = await live_holds(store, showtime_id, now)

    statuses = {}
    for record in seat_map.seats:
        if record.seat in booked:
            statuses[record.seat] = SeatStatus.BOOKED
        elif record.seat in held:
            statuses[record.seat] = SeatStatus.HELD
        else:
            statuses[record.seat] = SeatStatus.AVAILABLE
    return statuses


async def unavailable_set(
    db: AsyncSession,
    store: HoldStore,
    showtime_id: int,
    now: Optional[datetime] = None,
    holder_id: Optional[str] = None,
) -> set[SeatKey]:
    """
    Seats that are BOOKED or HELD.

    With holder_id, seats held by that holder count as available to it, so
    a holder can renew its own holds.
    """
    now = now or utcnow()
    await load_seat_map(db, showtime_id)
    unavailable = await booked_seats(db, showtime_id)
    for seat, hold in (await live_holds(store, showtime_id, now)).items():
        if holder_id is None or hold.holder_id != holder_id:
            unavailable.add(seat)
    return unavailable


async def resolve_availability(
    db: AsyncSession,
    store: HoldStore,
    showtime_id: int,
    now: Optional[datetime] = None,
) -> dict[SeatKey, SeatStatus]:
    """Reconcile the showtime's holds, then resolve its seat statuses."""
    now = now or utcnow()
    await reconcile_showtime(store, showtime_id, now)
    return await resolve(db, store, showtime_id, now)
