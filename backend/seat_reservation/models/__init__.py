from seat_reservation.models.showtime import Showtime, ShowtimeSeat
from seat_reservation.models.hold import SeatHold
from seat_reservation.models.booking import Booking, BookedSeat

__all__ = ["Showtime", "ShowtimeSeat", "SeatHold", "Booking", "BookedSeat"]
