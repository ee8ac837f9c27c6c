from seat_reservation.domain.models import (
    BookingOutcome,
    BookingStatus,
    ExpiringGrant,
    FailureReason,
    Hold,
    HoldResult,
    HoldState,
    SeatFailure,
    SeatMap,
    SeatRecord,
    SeatStatus,
    utcnow,
)
from seat_reservation.domain.seat_key import SeatKey, normalize_seat, normalize_seats

__all__ = [
    "BookingOutcome",
    "BookingStatus",
    "ExpiringGrant",
    "FailureReason",
    "Hold",
    "HoldResult",
    "HoldState",
    "SeatFailure",
    "SeatMap",
    "SeatRecord",
    "SeatStatus",
    "SeatKey",
    "normalize_seat",
    "normalize_seats",
    "utcnow",
]
