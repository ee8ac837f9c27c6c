"""
Booking endpoints: finalize held seats into a booking, list and cancel.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from seat_reservation.core.security import get_current_holder_id
from seat_reservation.db.session import get_db
from seat_reservation.schemas.booking import (
    BookingCancelResponse,
    BookingOutcomeResponse,
    BookingRequest,
    BookingResponse,
)
from seat_reservation.schemas.seat import seat_inputs
from seat_reservation.services.booking_service import (
    cancel_booking,
    finalize_booking,
    get_booking,
    list_bookings,
)
from seat_reservation.services.interfaces.hold_store import HoldStore
from seat_reservation.services.store_factory import get_hold_store

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingOutcomeResponse, status_code=status.HTTP_201_CREATED)
async def finalize_booking_endpoint(
    booking_request: BookingRequest,
    response: Response,
    idempotency_key: Optional[str] = Header(None, alias="X-Idempotency-Key", max_length=128),
    holder_id: str = Depends(get_current_holder_id),
    db: AsyncSession = Depends(get_db),
    store: HoldStore = Depends(get_hold_store),
):
    """
    Book the seats the holder currently holds. Call after payment capture.

    Each seat that cannot be booked is listed in `failed` with a reason:
    already_booked, not_locked or locked_by_other. Returns 409 only when no
    seat was booked. Replaying the same X-Idempotency-Key returns the
    original booking.
    """
    outcome = await finalize_booking(
        db,
        store,
        booking_request.showtime_id,
        seat_inputs(booking_request.seats),
        holder_id,
        idempotency_key=idempotency_key,
    )
    if outcome.booking_id is None:
        response.status_code = status.HTTP_409_CONFLICT
    return BookingOutcomeResponse.from_outcome(booking_request.showtime_id, outcome)


@router.get("", response_model=list[BookingResponse])
async def list_holder_bookings(
    showtime_id: Optional[int] = Query(None),
    holder_id: str = Depends(get_current_holder_id),
    db: AsyncSession = Depends(get_db),
):
    """Get all bookings for the authenticated holder."""
    bookings = await list_bookings(db, holder_id, showtime_id)
    return [BookingResponse.from_booking(b) for b in bookings]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking_endpoint(
    booking_id: int,
    holder_id: str = Depends(get_current_holder_id),
    db: AsyncSession = Depends(get_db),
):
    """Get one of the authenticated holder's bookings."""
    booking = await get_booking(db, booking_id, holder_id)
    return BookingResponse.from_booking(booking)


@router.delete("/{booking_id}", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    holder_id: str = Depends(get_current_holder_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking and make its seats available again."""
    booking = await cancel_booking(db, booking_id, holder_id)
    return BookingCancelResponse(
        message="Booking cancelled successfully",
        booking_id=booking.id,
        status=booking.status,
    )
