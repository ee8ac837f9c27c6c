"""
Showtime model and its seat map.

Key design decisions:
- The seat map is derived once from the screen layout (rows x seats_per_row)
  when the showtime is created; only prices change afterwards
- Seat rows carry metadata only (type, price), never occupancy. Occupancy is
  computed from holds and bookings
- Unique (showtime_id, seat_row, seat_col) so a seat key names one seat
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from seat_reservation.db.base import Base, TimestampMixin, UTCDateTime


class Showtime(Base, TimestampMixin):
    __tablename__ = "showtimes"

    id = Column(Integer, primary_key=True, index=True)
    # Owned by theatre/screen management; stored for reference only
    screen_id = Column(Integer, nullable=True, index=True)
    movie_title = Column(String(255), nullable=True)
    starts_at = Column(UTCDateTime(), nullable=True, index=True)
    rows = Column(Integer, nullable=False)
    seats_per_row = Column(Integer, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False, default=0)

    seats = relationship(
        "ShowtimeSeat",
        back_populates="showtime",
        lazy="selectin",
        order_by="ShowtimeSeat.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("rows > 0", name="check_showtime_rows_positive"),
        CheckConstraint("seats_per_row > 0", name="check_showtime_seats_per_row_positive"),
        CheckConstraint("base_price >= 0", name="check_showtime_base_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Showtime(id={self.id}, layout={self.rows}x{self.seats_per_row})>"


class ShowtimeSeat(Base):
    __tablename__ = "showtime_seats"

    id = Column(Integer, primary_key=True)
    showtime_id = Column(Integer, ForeignKey("showtimes.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_row = Column(Integer, nullable=False)
    seat_col = Column(Integer, nullable=False)
    seat_type = Column(String(30), nullable=False, default="standard")
    price = Column(Numeric(10, 2), nullable=False)

    showtime = relationship("Showtime", back_populates="seats")

    __table_args__ = (
        UniqueConstraint("showtime_id", "seat_row", "seat_col", name="uq_showtime_seat"),
        CheckConstraint("price >= 0", name="check_seat_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<ShowtimeSeat(showtime={self.showtime_id}, seat={self.seat_row}:{self.seat_col})>"
