"""
Seat hold (soft lock) rows for the SQL hold store.

Key design decisions:
- Primary key (showtime_id, seat_row, seat_col): at most one hold row per
  seat, which is what makes the conditional upsert a per-seat mutex
- Released holds keep their row (state=RELEASED) until reconciled
- Index on expires_at for the background sweeper's range delete
"""

from sqlalchemy import Column, Integer, String, CheckConstraint, Index

from seat_reservation.db.base import Base, TimestampMixin, UTCDateTime


class SeatHold(Base, TimestampMixin):
    __tablename__ = "seat_holds"

    showtime_id = Column(Integer, primary_key=True)
    seat_row = Column(Integer, primary_key=True)
    seat_col = Column(Integer, primary_key=True)
    holder_id = Column(String(128), nullable=False)
    expires_at = Column(UTCDateTime(), nullable=False)
    state = Column(String(20), nullable=False, default="ACTIVE")  # ACTIVE, RELEASED

    __table_args__ = (
        CheckConstraint("state IN ('ACTIVE', 'RELEASED')", name="check_hold_state"),
        Index("ix_seat_holds_expires_at", "expires_at"),
        Index("ix_seat_holds_holder", "showtime_id", "holder_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<SeatHold(showtime={self.showtime_id}, seat={self.seat_row}:{self.seat_col}, "
            f"holder={self.holder_id}, state={self.state})>"
        )
