"""
Availability projector: per-date seat status derived from the ledger.

A seat is "reserved" on a date exactly when an active booking exists for
that seat and date. The same predicate (active_booking_clause) is used by
the reservation engine's conflict check so the map and the engine never
disagree about what counts as taken.
"""

from datetime import date
from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus
from app.services.cache_service import SeatStatusCache
from app.services.seat_service import list_seats

RESERVED = "reserved"
AVAILABLE = "available"


def active_booking_clause(day: date, seat_id: Optional[str] = None):
    """WHERE clause for active bookings on ``day`` (optionally for one seat)."""
    clause = and_(Booking.date == day, Booking.status == BookingStatus.ACTIVE.value)
    if seat_id is not None:
        clause = and_(clause, Booking.seat_id == seat_id)
    return clause


async def find_active_booking(db: AsyncSession, seat_id: str, day: date) -> Optional[Booking]:
    result = await db.execute(select(Booking).where(active_booking_clause(day, seat_id)))
    return result.scalars().first()


async def project_status(db: AsyncSession, day: date) -> list[dict]:
    """
    Seat map for ``day``: one entry per catalog seat, in directory order.

    Read-only. Bookings whose seat is no longer in the catalog are ignored.
    """
    seats = await list_seats(db)
    reserved = set(
        (await db.execute(select(Booking.seat_id).where(active_booking_clause(day)))).scalars().all()
    )
    return [
        {
            "seat_id": seat.seat_id,
            "kind": seat.kind,
            "status": RESERVED if seat.seat_id in reserved else AVAILABLE,
            "x": seat.x,
            "y": seat.y,
        }
        for seat in seats
    ]


async def get_seat_map(
    db: AsyncSession,
    day: date,
    cache: Optional[SeatStatusCache] = None,
) -> tuple[list[dict], bool]:
    """
    Projection for ``day``, served from cache when possible. Returns
    (statuses, cached).

    The generation is read before projecting so that a booking change
    committed while we query is never written back into the cache.
    """
    generation = None
    if cache is not None:
        cached = await cache.get_seat_statuses(day)
        if cached is not None:
            return cached, True
        generation = await cache.get_generation(day)

    statuses = await project_status(db, day)
    if generation is not None:
        await cache.set_seat_statuses(day, statuses, generation)
    return statuses, False
