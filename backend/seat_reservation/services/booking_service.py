"""
Booking finalizer: turns a holder's holds into a permanent booking.

CONCURRENCY STRATEGY: Consume-then-insert with a uniqueness backstop
====================================================================

Problem:
  Two finalizations for the same seat must never both succeed, and a seat
  whose hold expired and was re-acquired by someone else must not be booked
  by its previous holder.

Solution:
  1. Reconcile the showtime so expired holds count as absent.
  2. Classify each requested seat:
       in a CONFIRMED booking         -> already_booked
       no live hold                   -> not_locked
       live hold by another holder    -> locked_by_other
       live hold by this holder       -> candidate
  3. Consume candidate holds with an atomic compare-and-delete (holder and
     liveness checked by the store). A seat whose hold vanished in between
     is reclassified instead of booked.
  4. Insert one Booking with exactly the consumed seats. booked_seats is
     unique on (showtime_id, seat_row, seat_col), so the database rejects a
     second booking for any seat.
  5. On a uniqueness violation, roll back, re-read the booked set and retry
     (up to BOOKING_MAX_RETRY_ATTEMPTS). Seats lost this way are
     already_booked.

  With the SQL hold store, steps 3 and 4 share one transaction. With the
  Redis store, consumed holds are gone even if step 4 fails.

  Partial success is returned as data. Releasing seats after a partial
  booking is the caller's decision, never implicit.
"""

import time
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from seat_reservation.core.config import get_settings
from seat_reservation.core.logging import get_logger
from seat_reservation.core.metrics import booking_latency, booking_retries, record_booking_attempt
from seat_reservation.domain import (
    BookingOutcome,
    BookingStatus,
    FailureReason,
    SeatFailure,
    SeatKey,
    utcnow,
)
from seat_reservation.domain.errors import BookingNotFoundError, InvalidRequestError, StorageFailureError
from seat_reservation.models.booking import Booking, BookedSeat
from seat_reservation.services.availability_service import booked_seats
from seat_reservation.services.hold_service import require_holder, requested_seats
from seat_reservation.services.interfaces.hold_store import HoldStore
from seat_reservation.services.reconciler import reconcile_showtime

logger = get_logger(__name__)
settings = get_settings()


def booking_seat_keys(booking: Booking) -> list[SeatKey]:
    return sorted(SeatKey(s.seat_row, s.seat_col) for s in booking.seats)


async def _find_replay(
    db: AsyncSession, showtime_id: int, holder_id: str, idempotency_key: str
) -> Optional[Booking]:
    result = await db.execute(
        select(Booking).where(
            Booking.showtime_id == showtime_id,
            Booking.holder_id == holder_id,
            Booking.idempotency_key == idempotency_key,
        )
    )
    return result.scalar_one_or_none()


def _replayed(booking: Booking) -> BookingOutcome:
    if booking.status != BookingStatus.CONFIRMED.value:
        raise InvalidRequestError("Idempotency key belongs to a cancelled booking")
    logger.info("booking_replayed", booking_id=booking.id, holder_id=booking.holder_id)
    return BookingOutcome(ok=True, booking_id=booking.id, booked=booking_seat_keys(booking), failed=[])


async def _classify(
    db: AsyncSession,
    store: HoldStore,
    showtime_id: int,
    seats: list[SeatKey],
    holder_id: str,
    claimed: set[SeatKey],
    now: datetime,
) -> tuple[list[SeatKey], dict[SeatKey, FailureReason]]:
    booked = await booked_seats(db, showtime_id)
    holds = {hold.seat: hold for hold in await store.find(showtime_id, seats)}

    candidates, failed = [], {}
    for seat in seats:
        hold = holds.get(seat)
        if seat in booked:
            failed[seat] = FailureReason.ALREADY_BOOKED
        elif seat in claimed:
            candidates.append(seat)
        elif hold is None or not hold.is_live(now):
            failed[seat] = FailureReason.NOT_LOCKED
        elif hold.holder_id != holder_id:
            failed[seat] = FailureReason.LOCKED_BY_OTHER
        else:
            candidates.append(seat)
    return candidates, failed


async def _reason_for_lost(store: HoldStore, showtime_id: int, seats: list[SeatKey], now: datetime) -> dict:
    holds = {hold.seat: hold for hold in await store.find(showtime_id, seats)}
    return {
        seat: (
            FailureReason.LOCKED_BY_OTHER
            if seat in holds and holds[seat].is_live(now)
            else FailureReason.NOT_LOCKED
        )
        for seat in seats
    }


async def finalize_booking(
    db: AsyncSession,
    store: HoldStore,
    showtime_id: int,
    raw_seats: Iterable[object],
    holder_id: Optional[str],
    idempotency_key: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingOutcome:
    """
    Book the seats this holder holds.

    Must only be called once payment has been captured.

    Raises:
        MissingHolderError: no holder identity.
        ShowtimeNotFoundError / SeatNotFoundError: unknown showtime or seat.
        StorageFailureError: the store failed mid-way.
    """
    holder_id = require_holder(holder_id)
    seats = await requested_seats(db, showtime_id, raw_seats)
    now = now or utcnow()
    start = time.perf_counter()

    if idempotency_key:
        existing = await _find_replay(db, showtime_id, holder_id, idempotency_key)
        if existing:
            return _replayed(existing)

    await reconcile_showtime(store, showtime_id, now)

    claimed: set[SeatKey] = set()
    booking: Optional[Booking] = None
    failed: dict[SeatKey, FailureReason] = {}

    for attempt in range(1, settings.BOOKING_MAX_RETRY_ATTEMPTS + 1):
        candidates, failed = await _classify(db, store, showtime_id, seats, holder_id, claimed, now)

        to_consume = [seat for seat in candidates if seat not in claimed]
        if to_consume:
            consumed = await store.consume(showtime_id, to_consume, holder_id, now)
            claimed.update(consumed)
            lost = [seat for seat in to_consume if seat not in consumed]
            if lost:
                failed.update(await _reason_for_lost(store, showtime_id, lost, now))

        winners = sorted(seat for seat in candidates if seat in claimed and seat not in failed)
        if not winners:
            break

        booking = Booking(
            showtime_id=showtime_id,
            holder_id=holder_id,
            status=BookingStatus.CONFIRMED.value,
            idempotency_key=idempotency_key,
        )
        booking.seats = [
            BookedSeat(showtime_id=showtime_id, seat_row=seat.row, seat_col=seat.column)
            for seat in winners
        ]
        try:
            db.add(booking)
            await db.flush()
            await db.commit()
            break
        except IntegrityError:
            # Another finalization booked one of these seats first
            await db.rollback()
            booking = None
            booking_retries.inc()
            logger.info(
                "booking_retry",
                showtime_id=showtime_id,
                holder_id=holder_id,
                attempt=attempt,
                reason="seat_uniqueness",
            )
            if idempotency_key:
                existing = await _find_replay(db, showtime_id, holder_id, idempotency_key)
                if existing:
                    return _replayed(existing)
            # Holds restored by the rollback must be consumed again
            if claimed:
                restored = await store.find(showtime_id, sorted(claimed))
                claimed -= {hold.seat for hold in restored if hold.is_live(now) and hold.holder_id == holder_id}
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "booking_write_failed",
                showtime_id=showtime_id,
                holder_id=holder_id,
                seats=winners,
                error=str(e),
            )
            raise StorageFailureError("sql", str(e)) from e
    else:
        # Every attempt lost the insert race; whatever is still unbooked was not ours to keep
        for seat in seats:
            failed.setdefault(seat, FailureReason.ALREADY_BOOKED)

    booked = booking_seat_keys(booking) if booking else []
    failures = [SeatFailure(seat=seat, reason=failed[seat]) for seat in seats if seat in failed]
    ok = bool(booked) and not failures
    booking_latency.observe(time.perf_counter() - start)

    if ok:
        record_booking_attempt("success")
        logger.info(
            "booking_finalized",
            booking_id=booking.id,
            showtime_id=showtime_id,
            holder_id=holder_id,
            seats=booked,
        )
    else:
        record_booking_attempt("partial" if booked else "failed")
        logger.warning(
            "booking_partial" if booked else "booking_failed",
            booking_id=booking.id if booking else None,
            showtime_id=showtime_id,
            holder_id=holder_id,
            booked=booked,
            failed={f.seat: f.reason.value for f in failures},
        )

    return BookingOutcome(ok=ok, booking_id=booking.id if booking else None, booked=booked, failed=failures)


async def get_booking(db: AsyncSession, booking_id: int, holder_id: Optional[str]) -> Booking:
    """Get one of the holder's bookings. Other holders' bookings are not found."""
    holder_id = require_holder(holder_id)
    result = await db.execute(
        select(Booking).where(
            Booking.id == booking_id,
            Booking.holder_id == holder_id,
        )
    )
    booking = result.scalar_one_or_none()

    if not booking:
        raise BookingNotFoundError(booking_id)
    return booking


async def cancel_booking(
    db: AsyncSession,
    booking_id: int,
    holder_id: Optional[str],
) -> Booking:
    """
    Cancel a booking and free its seats.
    The booking row is kept with status CANCELLED.
    """
    booking = await get_booking(db, booking_id, holder_id)

    if booking.status == BookingStatus.CANCELLED.value:
        raise InvalidRequestError("Booking is already cancelled")

    freed = booking_seat_keys(booking)
    booking.seats.clear()
    booking.status = BookingStatus.CANCELLED.value
    await db.flush()
    await db.commit()

    logger.info(
        "booking_cancelled",
        booking_id=booking.id,
        holder_id=booking.holder_id,
        showtime_id=booking.showtime_id,
        seats_freed=freed,
    )
    return booking


async def list_bookings(
    db: AsyncSession, holder_id: Optional[str], showtime_id: Optional[int] = None
) -> list[Booking]:
    """Get all bookings for a holder, newest first."""
    holder_id = require_holder(holder_id)
    query = select(Booking).where(Booking.holder_id == holder_id)
    if showtime_id is not None:
        query = query.where(Booking.showtime_id == showtime_id)
    result = await db.execute(query.order_by(Booking.created_at.desc(), Booking.id.desc()))
    return list(result.scalars().all())
