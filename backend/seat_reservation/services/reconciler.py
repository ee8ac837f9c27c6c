"""
Hold reconciliation.

Two mechanisms keep dead holds from showing up as occupied seats:

1. On read: reconcile_showtime() purges a showtime's expired and released
   holds before availability is served, a hold is pre-checked, or a booking
   is finalized.
2. Background: HoldSweeper periodically purges expired holds across all
   showtimes, so storage is cleaned up even if nothing reads a showtime.
   With the Redis store, Redis also expires hold keys on its own.

Neither touches bookings.
"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seat_reservation.core.logging import get_logger
from seat_reservation.core.metrics import record_reconciled
from seat_reservation.domain import utcnow
from seat_reservation.domain.errors import StorageFailureError
from seat_reservation.services.interfaces.hold_store import HoldStore

logger = get_logger(__name__)


async def reconcile_showtime(store: HoldStore, showtime_id: int, now: Optional[datetime] = None) -> int:
    """Purge expired and released holds for one showtime. Returns rows removed."""
    now = now or utcnow()
    purged = await store.purge_expired(now, showtime_id=showtime_id)
    if purged:
        logger.info("holds_reconciled", showtime_id=showtime_id, purged=purged, trigger="read")
    record_reconciled("read", purged)
    return purged


class HoldSweeper:
    """
    Background task that purges expired holds every `interval` seconds.

    Each pass opens its own session, so a failing pass never poisons the
    next one. Failures are logged and the loop keeps going.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        store_builder: Callable[[AsyncSession], Awaitable[HoldStore]],
        interval: float,
    ):
        self.session_factory = session_factory
        self.store_builder = store_builder
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        async with self.session_factory() as db:
            store = await self.store_builder(db)
            purged = await store.purge_expired(now)
        if purged:
            logger.info("holds_reconciled", purged=purged, trigger="sweep")
        record_reconciled("sweep", purged)
        return purged

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except StorageFailureError as e:
                logger.warning("hold_sweep_failed", backend=e.backend, error=e.detail)
            except Exception as e:
                logger.exception("hold_sweep_failed", error=str(e))
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="hold-sweeper")
        logger.info("hold_sweeper_started", interval=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("hold_sweeper_died", error=str(e))
        self._task = None
        logger.info("hold_sweeper_stopped")
