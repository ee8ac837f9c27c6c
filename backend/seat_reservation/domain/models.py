"""Domain models for seats, holds and bookings.

These are plain value objects; the SQLAlchemy tables live in
seat_reservation/models and the stores translate between the two.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from seat_reservation.domain.seat_key import SeatKey


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SeatStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    HELD = "HELD"
    BOOKED = "BOOKED"


class HoldState(str, Enum):
    ACTIVE = "ACTIVE"
    RELEASED = "RELEASED"


class BookingStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class FailureReason(str, Enum):
    ALREADY_BOOKED = "already_booked"
    NOT_LOCKED = "not_locked"
    LOCKED_BY_OTHER = "locked_by_other"


@dataclass(frozen=True)
class ExpiringGrant:
    """A holder's time-bounded claim.

    `is_live` is the one place expiry is decided. A grant whose expiry has
    been reached is treated as absent everywhere.
    """

    holder_id: str
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return self.expires_at > now

    def is_held_by(self, holder_id: str, now: datetime) -> bool:
        return self.is_live(now) and self.holder_id == holder_id

    def is_held_by_other(self, holder_id: str, now: datetime) -> bool:
        return self.is_live(now) and self.holder_id != holder_id


@dataclass(frozen=True)
class Hold:
    """Soft lock on one seat of one showtime."""

    showtime_id: int
    seat: SeatKey
    grant: ExpiringGrant
    state: HoldState = HoldState.ACTIVE

    @property
    def holder_id(self) -> str:
        return self.grant.holder_id

    @property
    def expires_at(self) -> datetime:
        return self.grant.expires_at

    def is_live(self, now: datetime) -> bool:
        return self.state == HoldState.ACTIVE and self.grant.is_live(now)


@dataclass(frozen=True)
class SeatRecord:
    seat: SeatKey
    seat_type: str
    price: Decimal


@dataclass(frozen=True)
class SeatMap:
    """Read-only seat metadata for a showtime. Carries no occupancy."""

    showtime_id: int
    seats_per_row: int
    seats: tuple[SeatRecord, ...]

    def keys(self) -> set[SeatKey]:
        return {record.seat for record in self.seats}

    def unknown(self, seats: list[SeatKey]) -> list[SeatKey]:
        known = self.keys()
        return [seat for seat in seats if seat not in known]


@dataclass
class HoldResult:
    ok: bool
    expires_at: Optional[datetime]
    conflicts: list[SeatKey] = field(default_factory=list)
    held: list[SeatKey] = field(default_factory=list)


@dataclass(frozen=True)
class SeatFailure:
    seat: SeatKey
    reason: FailureReason


@dataclass
class BookingOutcome:
    ok: bool
    booking_id: Optional[int]
    booked: list[SeatKey] = field(default_factory=list)
    failed: list[SeatFailure] = field(default_factory=list)
