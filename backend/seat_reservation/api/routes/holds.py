"""
Hold endpoints: acquire, renew and release soft locks on seats.

Contention is not an error: the body always carries per-seat results. The
status is 409 only when the request ended up holding nothing.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from seat_reservation.core.security import get_current_holder_id
from seat_reservation.db.session import get_db
from seat_reservation.domain import HoldResult
from seat_reservation.schemas.hold import HoldRequest, HoldResponse, ReleaseRequest, ReleaseResponse
from seat_reservation.schemas.seat import seat_inputs
from seat_reservation.services.hold_service import acquire_hold, release_hold, renew_hold
from seat_reservation.services.interfaces.hold_store import HoldStore
from seat_reservation.services.store_factory import get_hold_store

router = APIRouter(prefix="/holds", tags=["Holds"])


def _hold_response(request: HoldRequest, result: HoldResult, response: Response) -> HoldResponse:
    if not result.held:
        response.status_code = status.HTTP_409_CONFLICT
    return HoldResponse.from_result(request.showtime_id, result)


@router.post("", response_model=HoldResponse)
async def acquire_hold_endpoint(
    hold_request: HoldRequest,
    response: Response,
    holder_id: str = Depends(get_current_holder_id),
    db: AsyncSession = Depends(get_db),
    store: HoldStore = Depends(get_hold_store),
):
    """
    Hold seats for the authenticated holder.

    On a partial conflict the seats that were won stay held (`held`); release
    them if you will not continue with fewer seats.
    """
    result = await acquire_hold(
        db,
        store,
        hold_request.showtime_id,
        seat_inputs(hold_request.seats),
        holder_id,
        ttl_seconds=hold_request.ttl_seconds,
    )
    return _hold_response(hold_request, result, response)


@router.put("", response_model=HoldResponse)
async def renew_hold_endpoint(
    hold_request: HoldRequest,
    response: Response,
    holder_id: str = Depends(get_current_holder_id),
    db: AsyncSession = Depends(get_db),
    store: HoldStore = Depends(get_hold_store),
):
    """Extend the holder's holds. An expiry is never shortened."""
    result = await renew_hold(
        db,
        store,
        hold_request.showtime_id,
        seat_inputs(hold_request.seats),
        holder_id,
        ttl_seconds=hold_request.ttl_seconds,
    )
    return _hold_response(hold_request, result, response)


@router.post("/release", response_model=ReleaseResponse)
async def release_hold_endpoint(
    release_request: ReleaseRequest,
    holder_id: str = Depends(get_current_holder_id),
    db: AsyncSession = Depends(get_db),
    store: HoldStore = Depends(get_hold_store),
):
    """Release the holder's holds. Seats held by others are left untouched."""
    released = await release_hold(
        db,
        store,
        release_request.showtime_id,
        seat_inputs(release_request.seats),
        holder_id,
    )
    return ReleaseResponse.from_keys(release_request.showtime_id, released)
