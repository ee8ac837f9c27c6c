"""
SQL hold store - holds are rows in seat_holds.

Per-seat mutual exclusion comes from the primary key on
(showtime_id, seat_row, seat_col) plus a conditional upsert:

    INSERT INTO seat_holds (...) VALUES (...)
    ON CONFLICT (showtime_id, seat_row, seat_col) DO UPDATE
        SET holder_id = excluded.holder_id, expires_at = ..., state = 'ACTIVE'
        WHERE seat_holds.expires_at <= :now
           OR seat_holds.state = 'RELEASED'
           OR seat_holds.holder_id = :holder

If another holder owns a live hold the WHERE clause is false and the row is
left alone. PostgreSQL serializes concurrent upserts on the same key, so of
two racing holders only one passes the condition. Each seat is committed on
its own, in key order, so overlapping multi-seat requests never deadlock.

Expired rows are removed by the reconciler (on read) and the background
sweeper.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, case, delete, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from seat_reservation.core.logging import get_logger
from seat_reservation.core.metrics import store_errors
from seat_reservation.domain import ExpiringGrant, Hold, HoldState, SeatKey
from seat_reservation.domain.errors import StorageFailureError
from seat_reservation.models.hold import SeatHold
from seat_reservation.services.interfaces.hold_store import HoldStore

logger = get_logger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _seat_filter(seats: list[SeatKey]):
    return or_(*[
        and_(SeatHold.seat_row == seat.row, SeatHold.seat_col == seat.column)
        for seat in seats
    ])


def _to_hold(row: SeatHold) -> Hold:
    return Hold(
        showtime_id=row.showtime_id,
        seat=SeatKey(row.seat_row, row.seat_col),
        grant=ExpiringGrant(holder_id=row.holder_id, expires_at=row.expires_at),
        state=HoldState(row.state),
    )


class SqlHoldStore(HoldStore):
    """
    Hold store backed by the application database.

    Use when:
    - A single PostgreSQL instance is already the source of truth
    - Redis is not deployed
    """

    backend = "sql"

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _guard(self):
        try:
            yield
        except (SQLAlchemyError, OSError) as e:
            # OSError: the driver lost its connection before SQLAlchemy wrapped it
            await self.db.rollback()
            store_errors.labels(backend=self.backend).inc()
            logger.error("hold_store_failure", backend=self.backend, error=str(e))
            raise StorageFailureError(self.backend, str(e)) from e

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        try:
            return _DIALECT_INSERTS[dialect]
        except KeyError:
            raise StorageFailureError(self.backend, f"conditional upsert unsupported on {dialect}")

    async def acquire(
        self,
        showtime_id: int,
        seats: list[SeatKey],
        holder_id: str,
        expires_at: datetime,
        now: datetime,
    ) -> None:
        insert = self._insert()
        table = SeatHold.__table__

        async with self._guard():
            for seat in sorted(seats):
                stmt = insert(table).values(
                    showtime_id=showtime_id,
                    seat_row=seat.row,
                    seat_col=seat.column,
                    holder_id=holder_id,
                    expires_at=expires_at,
                    state=HoldState.ACTIVE.value,
                    created_at=now,
                    updated_at=now,
                )
                # Same holder renewing: keep whichever expiry is later
                keep_later = and_(
                    table.c.holder_id == stmt.excluded.holder_id,
                    table.c.state == HoldState.ACTIVE.value,
                    table.c.expires_at > stmt.excluded.expires_at,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[table.c.showtime_id, table.c.seat_row, table.c.seat_col],
                    set_={
                        "holder_id": stmt.excluded.holder_id,
                        "expires_at": case((keep_later, table.c.expires_at), else_=stmt.excluded.expires_at),
                        "state": HoldState.ACTIVE.value,
                        "updated_at": stmt.excluded.updated_at,
                    },
                    where=or_(
                        table.c.expires_at <= now,
                        table.c.state == HoldState.RELEASED.value,
                        table.c.holder_id == holder_id,
                    ),
                )
                await self.db.execute(stmt)
                await self.db.commit()

    async def find(self, showtime_id: int, seats: Optional[list[SeatKey]] = None) -> list[Hold]:
        query = select(SeatHold).where(SeatHold.showtime_id == showtime_id)
        if seats:
            query = query.where(_seat_filter(seats))

        async with self._guard():
            result = await self.db.execute(query.execution_options(populate_existing=True))
            return [_to_hold(row) for row in result.scalars().all()]

    async def release(
        self, showtime_id: int, seats: list[SeatKey], holder_id: str, now: datetime
    ) -> list[SeatKey]:
        released = []
        async with self._guard():
            for seat in sorted(seats):
                result = await self.db.execute(
                    update(SeatHold)
                    .where(
                        SeatHold.showtime_id == showtime_id,
                        SeatHold.seat_row == seat.row,
                        SeatHold.seat_col == seat.column,
                        SeatHold.holder_id == holder_id,
                        SeatHold.state == HoldState.ACTIVE.value,
                    )
                    .values(state=HoldState.RELEASED.value, expires_at=now, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount:
                    released.append(seat)
            await self.db.commit()
        return released

    async def consume(
        self, showtime_id: int, seats: list[SeatKey], holder_id: str, now: datetime
    ) -> list[SeatKey]:
        """Deletes inside the caller's transaction; a rollback restores the holds."""
        consumed = []
        async with self._guard():
            for seat in sorted(seats):
                result = await self.db.execute(
                    delete(SeatHold)
                    .where(
                        SeatHold.showtime_id == showtime_id,
                        SeatHold.seat_row == seat.row,
                        SeatHold.seat_col == seat.column,
                        SeatHold.holder_id == holder_id,
                        SeatHold.state == HoldState.ACTIVE.value,
                        SeatHold.expires_at > now,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount:
                    consumed.append(seat)
        return consumed

    async def purge_expired(self, now: datetime, showtime_id: Optional[int] = None) -> int:
        stmt = delete(SeatHold).where(
            or_(SeatHold.expires_at <= now, SeatHold.state == HoldState.RELEASED.value)
        )
        if showtime_id is not None:
            stmt = stmt.where(SeatHold.showtime_id == showtime_id)

        async with self._guard():
            result = await self.db.execute(stmt.execution_options(synchronize_session=False))
            await self.db.commit()
            return result.rowcount or 0
