"""Domain error codes for the seat reservation engine.

Only malformed calls and infrastructure failures are raised. Seat contention
is reported as data by the hold and booking services.
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    SHOWTIME_NOT_FOUND = "SHOWTIME_NOT_FOUND"
    SEAT_NOT_FOUND = "SEAT_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    INVALID_SEAT_FORMAT = "INVALID_SEAT_FORMAT"
    MISSING_HOLDER = "MISSING_HOLDER"
    INVALID_REQUEST = "INVALID_REQUEST"
    STORAGE_FAILURE = "STORAGE_FAILURE"


class DomainError(Exception):
    """Base domain error with code, user-safe message and HTTP status."""

    status_code = 400

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    """Unknown showtime, seat or booking."""

    status_code = 404


class ShowtimeNotFoundError(NotFoundError):
    def __init__(self, showtime_id: int) -> None:
        super().__init__(ErrorCode.SHOWTIME_NOT_FOUND, f"Showtime {showtime_id} not found")
        self.showtime_id = showtime_id


class SeatNotFoundError(NotFoundError):
    def __init__(self, showtime_id: int, seats: list) -> None:
        listed = ", ".join(str(s) for s in seats)
        super().__init__(
            ErrorCode.SEAT_NOT_FOUND,
            f"Seats not in showtime {showtime_id} seat map: {listed}",
        )
        self.showtime_id = showtime_id
        self.seats = seats


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: int) -> None:
        super().__init__(ErrorCode.BOOKING_NOT_FOUND, "Booking not found")
        self.booking_id = booking_id


class InvalidSeatFormatError(DomainError):
    """Raised when a seat identifier cannot be parsed into a seat key."""

    status_code = 422

    def __init__(self, raw: object, reason: str = "unrecognised seat identifier") -> None:
        super().__init__(ErrorCode.INVALID_SEAT_FORMAT, f"Invalid seat {raw!r}: {reason}")
        self.raw = raw


class MissingHolderError(DomainError):
    """Raised when a hold or booking call carries no holder identity."""

    status_code = 401

    def __init__(self, message: str = "Holder identity is required") -> None:
        super().__init__(ErrorCode.MISSING_HOLDER, message)


class InvalidRequestError(DomainError):
    """Raised for malformed arguments other than seat identifiers."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.INVALID_REQUEST, message)


class StorageFailureError(DomainError):
    """The underlying store is unreachable or failed. Not retried here."""

    status_code = 503

    def __init__(self, backend: str, detail: str) -> None:
        super().__init__(ErrorCode.STORAGE_FAILURE, f"{backend} store unavailable")
        self.backend = backend
        self.detail = detail
