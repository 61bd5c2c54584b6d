"""
Operational endpoints for administrators.
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_cache
from app.core.clock import Clock, calendar_day, get_clock
from app.db.session import get_db
from app.schemas.booking import SweepResponse
from app.services.cache_service import SeatStatusCache
from app.services.expiry_service import sweep_expired

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/sweep", response_model=SweepResponse)
async def run_sweep(
    as_of: Optional[dt.date] = Query(None, description="Defaults to today"),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    cache: Optional[SeatStatusCache] = Depends(get_cache),
):
    """Expire active bookings dated before ``as_of``. Safe to repeat."""
    cutoff = calendar_day(as_of or clock.now())
    expired = await sweep_expired(db, cutoff, cache=cache, trigger="manual")
    return SweepResponse(expired=expired, as_of=cutoff)
