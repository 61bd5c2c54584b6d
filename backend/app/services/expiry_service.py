"""
Expiry sweeper: moves active bookings for past dates to "expired".

Two callers share one idempotent operation:
  - every API request runs a sweep before touching bookings, so a stale
    "active" row is never observed even if the server was down at midnight
  - a background task sweeps once a day at SWEEP_HOUR:SWEEP_MINUTE

A booking dated today is never expired, however late it is. Each
transition is a conditional update guarded by status = 'active', so the
sweep can run concurrently with itself and with cancellations.
"""

import asyncio
from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.booking import Booking, BookingStatus
from app.core.clock import Clock, calendar_day
from app.core.exceptions import StorageFailure
from app.core.metrics import record_sweep, sweep_failures
from app.services.cache_service import SeatStatusCache
from app.core.logging import get_logger

logger = get_logger(__name__)


async def sweep_expired(
    db: AsyncSession,
    as_of: Union[date, datetime],
    *,
    cache: Optional[SeatStatusCache] = None,
    trigger: str = "manual",
) -> int:
    """
    Expire every active booking dated strictly before the day of ``as_of``.

    Returns how many bookings this call expired. A booking that fails to
    transition is logged and skipped; the rest of the sweep continues.
    """
    cutoff = calendar_day(as_of)

    try:
        stale = (
            await db.execute(
                select(Booking.id, Booking.date).where(
                    Booking.status == BookingStatus.ACTIVE.value,
                    Booking.date < cutoff,
                )
            )
        ).all()
        # Close the read transaction before per-booking writes
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("sweep_scan_failed", as_of=cutoff.isoformat(), error=str(e))
        raise StorageFailure("Failed to scan bookings for expiry") from e

    expired = 0
    expired_dates: set[date] = set()
    for booking_id, booking_date in stale:
        try:
            result = await db.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.status == BookingStatus.ACTIVE.value)
                .values(status=BookingStatus.EXPIRED.value)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            sweep_failures.inc()
            logger.error("sweep_failed", booking_id=booking_id, error=str(e))
            continue

        # Zero rows: cancelled or expired by someone else in the meantime
        if result.rowcount:
            expired += 1
            expired_dates.add(booking_date)

    record_sweep(trigger, expired)
    if expired:
        logger.info("bookings_expired", count=expired, as_of=cutoff.isoformat(), trigger=trigger)
        if cache is not None:
            await cache.invalidate(expired_dates)

    return expired


async def run_sweep_scheduler(
    session_factory: async_sessionmaker[AsyncSession],
    clock: Clock,
    hour: int,
    minute: int,
    cache: Optional[SeatStatusCache] = None,
) -> None:
    """Sweep once a day at hour:minute local time until cancelled."""
    while True:
        delay = clock.seconds_until(hour, minute)
        logger.info("sweep_scheduled", seconds_until_run=round(delay))
        await asyncio.sleep(delay)

        try:
            async with session_factory() as db:
                await sweep_expired(db, clock.now(), cache=cache, trigger="schedule")
        except Exception as e:
            # Log and wait for the next run
            logger.error("scheduled_sweep_failed", error=str(e))
