"""
Pydantic schemas for hold requests and results.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from seat_reservation.domain import HoldResult, SeatKey
from seat_reservation.schemas.seat import SeatInput, SeatRef


class HoldRequest(BaseModel):
    showtime_id: int
    seats: list[SeatInput] = Field(..., min_length=1)
    ttl_seconds: Optional[int] = Field(None, gt=0)


class ReleaseRequest(BaseModel):
    showtime_id: int
    seats: list[SeatInput] = Field(..., min_length=1)


class HoldResponse(BaseModel):
    ok: bool
    showtime_id: int
    expires_at: Optional[datetime]
    held: list[SeatRef]
    conflicts: list[SeatRef]

    @classmethod
    def from_result(cls, showtime_id: int, result: HoldResult) -> "HoldResponse":
        return cls(
            ok=result.ok,
            showtime_id=showtime_id,
            expires_at=result.expires_at,
            held=[SeatRef.from_key(seat) for seat in result.held],
            conflicts=[SeatRef.from_key(seat) for seat in result.conflicts],
        )


class ReleaseResponse(BaseModel):
    showtime_id: int
    released: list[SeatRef]

    @classmethod
    def from_keys(cls, showtime_id: int, released: list[SeatKey]) -> "ReleaseResponse":
        return cls(showtime_id=showtime_id, released=[SeatRef.from_key(seat) for seat in released])
