"""
Pydantic schemas for showtimes, seat maps and availability.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from seat_reservation.domain import SeatKey, SeatMap, SeatStatus


class ShowtimeCreate(BaseModel):
    screen_id: Optional[int] = None
    movie_title: Optional[str] = Field(None, max_length=255)
    starts_at: Optional[datetime] = None
    rows: int = Field(..., gt=0, le=100)
    seats_per_row: int = Field(..., gt=0, le=200)
    base_price: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    # Row label ("A") or number ("1") -> seat type, e.g. {"A": "premium"}
    row_types: Optional[dict[str, str]] = None
    # Seat type -> price; types not listed cost base_price
    type_prices: Optional[dict[str, Decimal]] = None


class ShowtimeResponse(BaseModel):
    id: int
    screen_id: Optional[int]
    movie_title: Optional[str]
    starts_at: Optional[datetime]
    rows: int
    seats_per_row: int
    base_price: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class SeatRecordResponse(BaseModel):
    seat: str
    label: str
    seat_type: str
    price: Decimal


class SeatMapResponse(BaseModel):
    showtime_id: int
    seats_per_row: int
    seats: list[SeatRecordResponse]

    @classmethod
    def from_seat_map(cls, seat_map: SeatMap) -> "SeatMapResponse":
        return cls(
            showtime_id=seat_map.showtime_id,
            seats_per_row=seat_map.seats_per_row,
            seats=[
                SeatRecordResponse(
                    seat=str(record.seat),
                    label=record.seat.label,
                    seat_type=record.seat_type,
                    price=record.price,
                )
                for record in seat_map.seats
            ],
        )


class PriceOverride(BaseModel):
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class SeatStatusResponse(BaseModel):
    seat: str
    label: str
    status: SeatStatus


class AvailabilityResponse(BaseModel):
    showtime_id: int
    available: int
    held: int
    booked: int
    seats: list[SeatStatusResponse]

    @classmethod
    def from_statuses(cls, showtime_id: int, statuses: dict[SeatKey, SeatStatus]) -> "AvailabilityResponse":
        counts = {status: 0 for status in SeatStatus}
        for status in statuses.values():
            counts[status] += 1
        return cls(
            showtime_id=showtime_id,
            available=counts[SeatStatus.AVAILABLE],
            held=counts[SeatStatus.HELD],
            booked=counts[SeatStatus.BOOKED],
            seats=[
                SeatStatusResponse(seat=str(seat), label=seat.label, status=status)
                for seat, status in sorted(statuses.items())
            ],
        )
