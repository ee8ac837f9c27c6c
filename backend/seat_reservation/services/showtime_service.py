"""
Showtime and seat map service.

The seat map is derived from the screen layout when the showtime is created
and is read-only afterwards, apart from per-seat price overrides.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from seat_reservation.core.logging import get_logger
from seat_reservation.domain import SeatKey, SeatMap, SeatRecord, normalize_seat
from seat_reservation.domain.errors import (
    InvalidRequestError,
    SeatNotFoundError,
    ShowtimeNotFoundError,
    StorageFailureError,
)
from seat_reservation.domain.seat_key import row_label
from seat_reservation.models.showtime import Showtime, ShowtimeSeat
from seat_reservation.schemas.showtime import ShowtimeCreate
from seat_reservation.services.cache_service import (
    get_cached_seat_map,
    set_cached_seat_map,
    invalidate_seat_map,
)

logger = get_logger(__name__)

DEFAULT_SEAT_TYPE = "standard"


def _row_type(row: int, row_types: dict[str, str]) -> str:
    return row_types.get(row_label(row), row_types.get(str(row), DEFAULT_SEAT_TYPE))


async def create_showtime(db: AsyncSession, data: ShowtimeCreate) -> Showtime:
    """Create a showtime and lay out one seat per (row, column) of its screen."""
    row_types = {key.upper(): value for key, value in (data.row_types or {}).items()}
    type_prices = data.type_prices or {}

    showtime = Showtime(
        screen_id=data.screen_id,
        movie_title=data.movie_title,
        starts_at=data.starts_at,
        rows=data.rows,
        seats_per_row=data.seats_per_row,
        base_price=data.base_price,
    )
    for row in range(1, data.rows + 1):
        seat_type = _row_type(row, row_types)
        price = type_prices.get(seat_type, data.base_price)
        for col in range(1, data.seats_per_row + 1):
            showtime.seats.append(
                ShowtimeSeat(seat_row=row, seat_col=col, seat_type=seat_type, price=price)
            )

    db.add(showtime)
    await db.flush()
    await db.commit()

    logger.info(
        "showtime_created",
        showtime_id=showtime.id,
        layout=f"{showtime.rows}x{showtime.seats_per_row}",
        seats=len(showtime.seats),
    )
    return showtime


async def get_showtime(db: AsyncSession, showtime_id: int) -> Showtime:
    """Get a single showtime by ID."""
    try:
        result = await db.execute(select(Showtime).where(Showtime.id == showtime_id))
    except SQLAlchemyError as e:
        raise StorageFailureError("sql", str(e)) from e
    showtime = result.scalar_one_or_none()

    if not showtime:
        raise ShowtimeNotFoundError(showtime_id)
    return showtime


def _to_seat_map(showtime: Showtime) -> SeatMap:
    records = sorted(
        (
            SeatRecord(
                seat=SeatKey(s.seat_row, s.seat_col),
                seat_type=s.seat_type,
                price=Decimal(s.price),
            )
            for s in showtime.seats
        ),
        key=lambda record: record.seat,
    )
    return SeatMap(showtime_id=showtime.id, seats_per_row=showtime.seats_per_row, seats=tuple(records))


async def load_seat_map(db: AsyncSession, showtime_id: int) -> SeatMap:
    """
    Load a showtime's seat map, through the snapshot cache.

    Raises:
        ShowtimeNotFoundError: the showtime does not exist.
    """
    cached = await get_cached_seat_map(showtime_id)
    if cached:
        return cached

    showtime = await get_showtime(db, showtime_id)
    seat_map = _to_seat_map(showtime)
    await set_cached_seat_map(seat_map)
    return seat_map


async def override_price(db: AsyncSession, showtime_id: int, raw_seat: object, price: Decimal) -> SeatRecord:
    """Change one seat's price; the only seat map edit allowed once on sale."""
    if price < 0:
        raise InvalidRequestError("Price cannot be negative")

    showtime = await get_showtime(db, showtime_id)
    seat = normalize_seat(raw_seat, showtime.seats_per_row)

    result = await db.execute(
        select(ShowtimeSeat).where(
            ShowtimeSeat.showtime_id == showtime_id,
            ShowtimeSeat.seat_row == seat.row,
            ShowtimeSeat.seat_col == seat.column,
        )
    )
    record = result.scalar_one_or_none()
    if not record:
        raise SeatNotFoundError(showtime_id, [seat])

    previous = record.price
    record.price = price
    await db.flush()
    await db.commit()
    await invalidate_seat_map(showtime_id)

    logger.info(
        "seat_price_overridden",
        showtime_id=showtime_id,
        seat=str(seat),
        previous=str(previous),
        price=str(price),
    )
    return SeatRecord(seat=seat, seat_type=record.seat_type, price=Decimal(price))
