"""
Pydantic schemas for seat identifiers and per-seat results.

Requests may name a seat in any shape the normalizer accepts. Responses
always carry the canonical "row:column" key and the human label.
"""

from typing import Union

from pydantic import AliasChoices, BaseModel, Field

from seat_reservation.domain import SeatFailure, SeatKey


class SeatCoordinates(BaseModel):
    row: Union[int, str]
    column: int = Field(..., validation_alias=AliasChoices("column", "col"))


SeatInput = Union[SeatCoordinates, int, str]


def seat_inputs(seats: list[SeatInput]) -> list[object]:
    """Unwrap request seats into the raw shapes the normalizer takes."""
    return [
        {"row": seat.row, "column": seat.column} if isinstance(seat, SeatCoordinates) else seat
        for seat in seats
    ]


class SeatRef(BaseModel):
    seat: str = Field(..., description="Canonical key, row:column")
    label: str = Field(..., description="Row letters plus column, e.g. A1")

    @classmethod
    def from_key(cls, key: SeatKey) -> "SeatRef":
        return cls(seat=str(key), label=key.label)


class SeatFailureResponse(SeatRef):
    reason: str

    @classmethod
    def from_failure(cls, failure: SeatFailure) -> "SeatFailureResponse":
        return cls(seat=str(failure.seat), label=failure.seat.label, reason=failure.reason.value)
