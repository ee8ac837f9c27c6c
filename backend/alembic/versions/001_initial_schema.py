"""Initial schema: showtimes, seat maps, holds and bookings.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Showtimes table
    op.create_table(
        "showtimes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("screen_id", sa.Integer(), nullable=True),
        sa.Column("movie_title", sa.String(255), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rows", sa.Integer(), nullable=False),
        sa.Column("seats_per_row", sa.Integer(), nullable=False),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint("rows > 0", name="check_showtime_rows_positive"),
        sa.CheckConstraint("seats_per_row > 0", name="check_showtime_seats_per_row_positive"),
        sa.CheckConstraint("base_price >= 0", name="check_showtime_base_price_non_negative"),
    )
    op.create_index("ix_showtimes_id", "showtimes", ["id"])
    op.create_index("ix_showtimes_screen_id", "showtimes", ["screen_id"])
    op.create_index("ix_showtimes_starts_at", "showtimes", ["starts_at"])

    # Seat map: one row per physical seat, metadata only
    op.create_table(
        "showtime_seats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("showtime_id", sa.Integer(), sa.ForeignKey("showtimes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("seat_row", sa.Integer(), nullable=False),
        sa.Column("seat_col", sa.Integer(), nullable=False),
        sa.Column("seat_type", sa.String(30), nullable=False, server_default=sa.text("'standard'")),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.UniqueConstraint("showtime_id", "seat_row", "seat_col", name="uq_showtime_seat"),
        sa.CheckConstraint("price >= 0", name="check_seat_price_non_negative"),
    )
    op.create_index("ix_showtime_seats_showtime_id", "showtime_seats", ["showtime_id"])

    # Holds: the primary key makes the conditional upsert a per-seat mutex
    op.create_table(
        "seat_holds",
        sa.Column("showtime_id", sa.Integer(), primary_key=True),
        sa.Column("seat_row", sa.Integer(), primary_key=True),
        sa.Column("seat_col", sa.Integer(), primary_key=True),
        sa.Column("holder_id", sa.String(128), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("state", sa.String(20), nullable=False, server_default=sa.text("'ACTIVE'")),
        *_timestamps(),
        sa.CheckConstraint("state IN ('ACTIVE', 'RELEASED')", name="check_hold_state"),
    )
    # The sweeper deletes by expiry range across all showtimes
    op.create_index("ix_seat_holds_expires_at", "seat_holds", ["expires_at"])
    op.create_index("ix_seat_holds_holder", "seat_holds", ["showtime_id", "holder_id"])

    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("showtime_id", sa.Integer(), sa.ForeignKey("showtimes.id"), nullable=False),
        sa.Column("holder_id", sa.String(128), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'CONFIRMED'")),
        sa.Column("idempotency_key", sa.String(128), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("holder_id", "showtime_id", "idempotency_key", name="uq_booking_idempotency"),
        sa.CheckConstraint("status IN ('CONFIRMED', 'CANCELLED')", name="check_booking_status"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_showtime_id", "bookings", ["showtime_id"])
    op.create_index("ix_bookings_holder_id", "bookings", ["holder_id"])

    # Booked seats: UNIQUE per seat keeps confirmed bookings disjoint
    op.create_table(
        "booked_seats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("showtime_id", sa.Integer(), nullable=False),
        sa.Column("seat_row", sa.Integer(), nullable=False),
        sa.Column("seat_col", sa.Integer(), nullable=False),
        sa.UniqueConstraint("showtime_id", "seat_row", "seat_col", name="uq_booked_seat"),
    )
    op.create_index("ix_booked_seats_booking_id", "booked_seats", ["booking_id"])
    op.create_index("ix_booked_seats_showtime", "booked_seats", ["showtime_id"])


def downgrade() -> None:
    op.drop_table("booked_seats")
    op.drop_table("bookings")
    op.drop_table("seat_holds")
    op.drop_table("showtime_seats")
    op.drop_table("showtimes")
