"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from seat_reservation.domain import BookingOutcome, SeatKey
from seat_reservation.models.booking import Booking
from seat_reservation.schemas.seat import SeatFailureResponse, SeatInput, SeatRef


class BookingRequest(BaseModel):
    showtime_id: int
    seats: list[SeatInput] = Field(..., min_length=1)


class BookingOutcomeResponse(BaseModel):
    ok: bool
    showtime_id: int
    booking_id: Optional[int]
    booked: list[SeatRef]
    failed: list[SeatFailureResponse]

    @classmethod
    def from_outcome(cls, showtime_id: int, outcome: BookingOutcome) -> "BookingOutcomeResponse":
        return cls(
            ok=outcome.ok,
            showtime_id=showtime_id,
            booking_id=outcome.booking_id,
            booked=[SeatRef.from_key(seat) for seat in outcome.booked],
            failed=[SeatFailureResponse.from_failure(f) for f in outcome.failed],
        )


class BookingResponse(BaseModel):
    id: int
    showtime_id: int
    holder_id: str
    status: str
    seats: list[SeatRef]
    created_at: datetime

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            showtime_id=booking.showtime_id,
            holder_id=booking.holder_id,
            status=booking.status,
            seats=[SeatRef.from_key(SeatKey(s.seat_row, s.seat_col)) for s in booking.seats],
            created_at=booking.created_at,
        )


class BookingCancelResponse(BaseModel):
    message: str
    booking_id: int
    status: str
