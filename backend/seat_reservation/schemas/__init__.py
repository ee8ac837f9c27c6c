from seat_reservation.schemas.seat import SeatCoordinates, SeatInput, SeatRef, SeatFailureResponse
from seat_reservation.schemas.showtime import (
    ShowtimeCreate, ShowtimeResponse, SeatMapResponse, PriceOverride, AvailabilityResponse,
)
from seat_reservation.schemas.hold import HoldRequest, HoldResponse, ReleaseRequest, ReleaseResponse
from seat_reservation.schemas.booking import (
    BookingRequest, BookingOutcomeResponse, BookingResponse, BookingCancelResponse,
)

__all__ = [
    "SeatCoordinates", "SeatInput", "SeatRef", "SeatFailureResponse",
    "ShowtimeCreate", "ShowtimeResponse", "SeatMapResponse", "PriceOverride", "AvailabilityResponse",
    "HoldRequest", "HoldResponse", "ReleaseRequest", "ReleaseResponse",
    "BookingRequest", "BookingOutcomeResponse", "BookingResponse", "BookingCancelResponse",
]
