"""
Shared FastAPI dependencies.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, get_clock
from app.db.session import get_db
from app.services.cache_service import SeatStatusCache
from app.services.expiry_service import sweep_expired


def get_cache(request: Request) -> Optional[SeatStatusCache]:
    """Seat-map cache built by the lifespan, or None when not running one."""
    return getattr(request.app.state, "cache", None)


async def sweep_stale_bookings(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    cache: Optional[SeatStatusCache] = Depends(get_cache),
) -> None:
    """Expire past-dated bookings before the request reads or writes any."""
    await sweep_expired(db, clock.now(), cache=cache, trigger="request")
