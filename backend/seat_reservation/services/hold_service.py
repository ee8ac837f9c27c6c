"""
Hold manager: time-bounded, holder-scoped soft locks on seats.

CONCURRENCY STRATEGY: Conditional per-seat writes + verification
================================================================

Problem:
  Many request handlers, possibly in different processes, try to hold the
  same seats at once. There is no shared memory, so an in-process lock
  protects nothing.

Solution:
  The only mutual exclusion is the store's atomic conditional write.

  1. Pre-check: compute the unavailable set (booked, or held by someone
     else). If any requested seat is in it, return the conflicts and write
     nothing.
  2. Conditional write, per seat: take the seat if it has no live hold, or
     its hold expired/was released, or it is already ours (renewal).
  3. Verify: re-read the holds. Any seat not held live by us was won by
     another holder between steps 1 and 2 and is reported as a conflict.

  A multi-seat request is NOT atomic as a group. On a partial conflict the
  holder keeps the seats it won (`held`) and the caller must release them if
  it will not proceed with fewer seats. Closing that gap needs a
  multi-document transaction per showtime in the store.
"""

import time
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from seat_reservation.core.config import get_settings
from seat_reservation.core.logging import get_logger
from seat_reservation.core.metrics import hold_conflicts, hold_latency, hold_releases, record_hold_attempt
from seat_reservation.domain import HoldResult, SeatKey, normalize_seats, utcnow
from seat_reservation.domain.errors import InvalidRequestError, MissingHolderError, SeatNotFoundError
from seat_reservation.services.availability_service import booked_seats, unavailable_set
from seat_reservation.services.interfaces.hold_store import HoldStore
from seat_reservation.services.reconciler import reconcile_showtime
from seat_reservation.services.showtime_service import load_seat_map

logger = get_logger(__name__)
settings = get_settings()


def require_holder(holder_id: Optional[str]) -> str:
    if holder_id is None or not str(holder_id).strip():
        raise MissingHolderError()
    return str(holder_id).strip()


def hold_ttl(ttl_seconds: Optional[int]) -> timedelta:
    if ttl_seconds is None:
        return timedelta(seconds=settings.HOLD_TTL_SECONDS)
    if ttl_seconds <= 0:
        raise InvalidRequestError("Hold TTL must be positive")
    if ttl_seconds > settings.HOLD_TTL_MAX_SECONDS:
        raise InvalidRequestError(f"Hold TTL cannot exceed {settings.HOLD_TTL_MAX_SECONDS} seconds")
    return timedelta(seconds=ttl_seconds)


def _to_millis_precision(value: datetime) -> datetime:
    # Stores keep millisecond precision; keep results comparable across backends
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


async def requested_seats(db: AsyncSession, showtime_id: int, raw_seats: Iterable[object]) -> list[SeatKey]:
    """
    Normalize a request's seats against the showtime's seat map.

    Raises:
        ShowtimeNotFoundError, SeatNotFoundError, InvalidSeatFormatError,
        InvalidRequestError
    """
    seat_map = await load_seat_map(db, showtime_id)
    seats = normalize_seats(raw_seats, seat_map.seats_per_row, settings.MAX_SEATS_PER_REQUEST)
    unknown = seat_map.unknown(seats)
    if unknown:
        raise SeatNotFoundError(showtime_id, unknown)
    return seats


async def acquire_hold(
    db: AsyncSession,
    store: HoldStore,
    showtime_id: int,
    raw_seats: Iterable[object],
    holder_id: Optional[str],
    ttl_seconds: Optional[int] = None,
    now: Optional[datetime] = None,
) -> HoldResult:
    """Hold seats for holder_id until now + ttl. Conflicts are returned, not raised."""
    holder_id = require_holder(holder_id)
    ttl = hold_ttl(ttl_seconds)
    seats = await requested_seats(db, showtime_id, raw_seats)
    now = now or utcnow()
    start = time.perf_counter()

    await reconcile_showtime(store, showtime_id, now)

    # Step 1: fast pre-check, no writes on conflict
    unavailable = await unavailable_set(db, store, showtime_id, now, holder_id=holder_id)
    conflicts = [seat for seat in seats if seat in unavailable]
    if conflicts:
        hold_conflicts.labels(stage="precheck").inc(len(conflicts))
        record_hold_attempt(len(seats), len(conflicts), 0)
        logger.info(
            "hold_conflict",
            showtime_id=showtime_id,
            holder_id=holder_id,
            stage="precheck",
            conflicts=conflicts,
        )
        return HoldResult(ok=False, expires_at=None, conflicts=conflicts, held=[])

    # Step 2: conditional per-seat acquisition
    expires_at = _to_millis_precision(now + ttl)
    await store.acquire(showtime_id, seats, holder_id, expires_at, now)

    # Step 3: post-write verification
    holds = {hold.seat: hold for hold in await store.find(showtime_id, seats)}
    booked = await booked_seats(db, showtime_id)
    held, conflicts, stale = [], [], []
    for seat in seats:
        hold = holds.get(seat)
        if hold is None or not hold.is_live(now) or hold.holder_id != holder_id:
            conflicts.append(seat)
        elif seat in booked:
            # Booked between pre-check and write; our fresh hold on it is meaningless
            conflicts.append(seat)
            stale.append(seat)
        else:
            held.append(seat)

    if stale:
        await store.release(showtime_id, stale, holder_id, now)

    hold_latency.observe(time.perf_counter() - start)
    record_hold_attempt(len(seats), len(conflicts), len(held))

    if conflicts:
        hold_conflicts.labels(stage="verify").inc(len(conflicts))
        logger.warning(
            "hold_conflict",
            showtime_id=showtime_id,
            holder_id=holder_id,
            stage="verify",
            conflicts=conflicts,
            held=held,
        )
    else:
        logger.info(
            "hold_acquired",
            showtime_id=showtime_id,
            holder_id=holder_id,
            seats=held,
            expires_at=expires_at.isoformat(),
        )

    effective_expiry = min((holds[seat].expires_at for seat in held), default=None)
    return HoldResult(ok=not conflicts, expires_at=effective_expiry, conflicts=conflicts, held=held)


async def renew_hold(
    db: AsyncSession,
    store: HoldStore,
    showtime_id: int,
    raw_seats: Iterable[object],
    holder_id: Optional[str],
    ttl_seconds: Optional[int] = None,
    now: Optional[datetime] = None,
) -> HoldResult:
    """Extend the holder's holds. Same path as acquire: re-acquiring your own seat is a renewal."""
    result = await acquire_hold(db, store, showtime_id, raw_seats, holder_id, ttl_seconds, now)
    logger.info("hold_renewed", showtime_id=showtime_id, holder_id=holder_id, ok=result.ok)
    return result


async def release_hold(
    db: AsyncSession,
    store: HoldStore,
    showtime_id: int,
    raw_seats: Iterable[object],
    holder_id: Optional[str],
    now: Optional[datetime] = None,
) -> list[SeatKey]:
    """Release the holder's holds on seats. Other holders' seats are never touched."""
    holder_id = require_holder(holder_id)
    seats = await requested_seats(db, showtime_id, raw_seats)
    now = now or utcnow()

    released = await store.release(showtime_id, seats, holder_id, now)
    hold_releases.inc(len(released))
    logger.info(
        "hold_released",
        showtime_id=showtime_id,
        holder_id=holder_id,
        released=released,
        ignored=[s for s in seats if s not in released],
    )
    return released
