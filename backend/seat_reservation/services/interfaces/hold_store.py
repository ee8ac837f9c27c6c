"""
Hold store interface.
Allows swapping the medium that holds soft locks without changing the
hold protocol.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from seat_reservation.domain import Hold, SeatKey


class HoldStore(ABC):
    """
    Interface for seat hold persistence.

    Every mutating operation is atomic per seat and conditional on the
    current hold, so two processes sharing the store can never both own a
    seat. No operation is atomic across seats.

    Implementations:
    - SqlHoldStore: upsert-with-condition on a seat_holds table
    - RedisHoldStore: Lua scripts over per-seat hashes with native expiry
    """

    backend: str = "abstract"

    @abstractmethod
    async def acquire(
        self,
        showtime_id: int,
        seats: list[SeatKey],
        holder_id: str,
        expires_at: datetime,
        now: datetime,
    ) -> None:
        """
        For each seat, write (holder_id, expires_at) only if the seat has no
        live hold, or the hold is expired or released, or it already belongs
        to holder_id. A renewal never moves an expiry earlier.

        Losing a seat is not an error: callers verify ownership with find().
        """
        ...

    @abstractmethod
    async def find(self, showtime_id: int, seats: Optional[list[SeatKey]] = None) -> list[Hold]:
        """
        Return stored holds for the showtime (restricted to seats if given),
        including expired or released ones. Callers filter with Hold.is_live.
        """
        ...

    @abstractmethod
    async def release(
        self, showtime_id: int, seats: list[SeatKey], holder_id: str, now: datetime
    ) -> list[SeatKey]:
        """
        Release holds owned by holder_id. Seats held by anyone else, or not
        held at all, are left untouched. Returns the seats released.
        """
        ...

    @abstractmethod
    async def consume(
        self, showtime_id: int, seats: list[SeatKey], holder_id: str, now: datetime
    ) -> list[SeatKey]:
        """
        Atomically remove each seat's hold if it is live and owned by
        holder_id. Used by booking finalization; returns the seats consumed.
        """
        ...

    @abstractmethod
    async def purge_expired(self, now: datetime, showtime_id: Optional[int] = None) -> int:
        """
        Delete expired and released holds, for one showtime or all of them.
        Returns how many were removed.
        """
        ...
