"""
Seat directory: the static catalog of bookable seats and rooms.
"""

from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.data.seat_catalog import DEFAULT_CATALOG, CatalogEntry
from app.models.seat import Seat
from app.core.logging import get_logger

logger = get_logger(__name__)


async def list_seats(db: AsyncSession) -> list[Seat]:
    """All seats in stable order (by seat identifier)."""
    result = await db.execute(select(Seat).order_by(Seat.seat_id.asc()))
    return list(result.scalars().all())


async def find_seat(db: AsyncSession, seat_id: str) -> Optional[Seat]:
    result = await db.execute(select(Seat).where(Seat.seat_id == seat_id))
    return result.scalar_one_or_none()


async def initialize_seats(db: AsyncSession, catalog: Iterable[CatalogEntry] = DEFAULT_CATALOG) -> int:
    """
    Replace the whole catalog with ``catalog``.

    This deletes every seat first, so it is only meant for startup. Bookings
    reference seats by identifier and are left untouched.
    """
    await db.execute(delete(Seat))
    count = 0
    for entry in catalog:
        db.add(Seat(seat_id=entry.seat_id, kind=entry.kind.value, x=entry.x, y=entry.y))
        count += 1
    await db.commit()

    logger.info("seat_catalog_initialized", seats=count)
    return count
