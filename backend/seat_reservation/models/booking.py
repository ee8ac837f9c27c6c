"""
Booking model representing a holder's confirmed seats for a showtime.

Key design decisions:
- Seats live in booked_seats, unique on (showtime_id, seat_row, seat_col):
  the database refuses a second booking for a seat, so confirmed bookings
  stay pairwise disjoint even across processes
- Cancelling deletes the booking's booked_seats rows and keeps the booking
  with status=CANCELLED
- Optional idempotency key per (holder, showtime) makes payment callbacks
  safe to replay
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import relationship

from seat_reservation.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    showtime_id = Column(Integer, ForeignKey("showtimes.id"), nullable=False, index=True)
    holder_id = Column(String(128), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="CONFIRMED")  # CONFIRMED, CANCELLED
    idempotency_key = Column(String(128), nullable=True)

    seats = relationship(
        "BookedSeat",
        back_populates="booking",
        lazy="selectin",
        order_by="BookedSeat.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("status IN ('CONFIRMED', 'CANCELLED')", name="check_booking_status"),
        UniqueConstraint("holder_id", "showtime_id", "idempotency_key", name="uq_booking_idempotency"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, holder={self.holder_id}, showtime={self.showtime_id}, status={self.status})>"


class BookedSeat(Base):
    __tablename__ = "booked_seats"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    showtime_id = Column(Integer, nullable=False)
    seat_row = Column(Integer, nullable=False)
    seat_col = Column(Integer, nullable=False)

    booking = relationship("Booking", back_populates="seats")

    __table_args__ = (
        UniqueConstraint("showtime_id", "seat_row", "seat_col", name="uq_booked_seat"),
        Index("ix_booked_seats_showtime", "showtime_id"),
    )
