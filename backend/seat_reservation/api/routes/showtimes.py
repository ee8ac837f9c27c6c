"""
Showtime endpoints: seat map management and availability.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from seat_reservation.core.logging import get_logger
from seat_reservation.core.security import get_current_holder_id
from seat_reservation.db.session import get_db
from seat_reservation.schemas.showtime import (
    AvailabilityResponse,
    PriceOverride,
    SeatMapResponse,
    SeatRecordResponse,
    ShowtimeCreate,
    ShowtimeResponse,
)
from seat_reservation.services.availability_service import resolve_availability
from seat_reservation.services.interfaces.hold_store import HoldStore
from seat_reservation.services.showtime_service import (
    create_showtime,
    get_showtime,
    load_seat_map,
    override_price,
)
from seat_reservation.services.store_factory import get_hold_store

logger = get_logger(__name__)
router = APIRouter(prefix="/showtimes", tags=["Showtimes"])


@router.post("", response_model=ShowtimeResponse, status_code=status.HTTP_201_CREATED)
async def create_showtime_endpoint(
    showtime_data: ShowtimeCreate,
    holder_id: str = Depends(get_current_holder_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a showtime and derive its seat map from the screen layout."""
    showtime = await create_showtime(db, showtime_data)
    logger.info("showtime_created_via_api", showtime_id=showtime.id, created_by=holder_id)
    return showtime


@router.get("/{showtime_id}", response_model=ShowtimeResponse)
async def get_showtime_endpoint(
    showtime_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await get_showtime(db, showtime_id)


@router.get("/{showtime_id}/seats", response_model=SeatMapResponse)
async def get_seat_map_endpoint(
    showtime_id: int,
    db: AsyncSession = Depends(get_db),
):
    """
    Seat map for a showtime: every seat with its type and price.
    Served from the Redis snapshot cache when available. Carries no occupancy.
    """
    seat_map = await load_seat_map(db, showtime_id)
    return SeatMapResponse.from_seat_map(seat_map)


@router.patch("/{showtime_id}/seats/{seat}", response_model=SeatRecordResponse)
async def override_price_endpoint(
    showtime_id: int,
    seat: str,
    body: PriceOverride,
    holder_id: str = Depends(get_current_holder_id),
    db: AsyncSession = Depends(get_db),
):
    """Override one seat's price. Invalidates the cached seat map."""
    record = await override_price(db, showtime_id, seat, body.price)
    return SeatRecordResponse(
        seat=str(record.seat),
        label=record.seat.label,
        seat_type=record.seat_type,
        price=record.price,
    )


@router.get("/{showtime_id}/availability", response_model=AvailabilityResponse)
async def availability_endpoint(
    showtime_id: int,
    db: AsyncSession = Depends(get_db),
    store: HoldStore = Depends(get_hold_store),
):
    """
    Per-seat status: AVAILABLE, HELD or BOOKED.
    Never cached: computed from holds and bookings on every read.
    """
    statuses = await resolve_availability(db, store, showtime_id)
    return AvailabilityResponse.from_statuses(showtime_id, statuses)
