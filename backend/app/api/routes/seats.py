"""
Seat map endpoint: every catalog seat with its status for one date.
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_cache
from app.db.session import get_db
from app.schemas.seat import SeatStatusResponse
from app.services.availability_service import get_seat_map
from app.services.cache_service import SeatStatusCache
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/seats", tags=["Seats"])


@router.get("/", response_model=list[SeatStatusResponse])
@router.get("", response_model=list[SeatStatusResponse], include_in_schema=False)
async def list_seats_for_date(
    date: dt.date = Query(..., description="Calendar date, YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
    cache: Optional[SeatStatusCache] = Depends(get_cache),
):
    """
    Seat map for a date. Served from Redis when cached; the cache entry for
    a date is dropped whenever a booking on that date changes.
    """
    statuses, cached = await get_seat_map(db, date, cache)
    if cached:
        logger.info("seat_map_cache_hit", date=date.isoformat())
    return statuses
