"""
Booking endpoints: personal history, admin day view, cancellation.
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_cache
from app.db.session import get_db
from app.schemas.booking import BookingResponse, BookingWithIdentifierResponse
from app.services.booking_service import (
    cancel_booking,
    get_booking,
    list_bookings_for_date,
    list_user_bookings,
)
from app.services.cache_service import SeatStatusCache

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("/", response_model=list[BookingWithIdentifierResponse])
@router.get("", response_model=list[BookingWithIdentifierResponse], include_in_schema=False)
async def list_bookings_for_date_endpoint(
    date: dt.date = Query(..., description="Calendar date, YYYY-MM-DD"),
    status: str = Query("active", description="active, cancelled, expired or all"),
    db: AsyncSession = Depends(get_db),
):
    """Admin view of one day's bookings, each with its owner's identifier."""
    rows = await list_bookings_for_date(db, date, status)
    return [
        BookingWithIdentifierResponse(
            **BookingResponse.model_validate(booking).model_dump(),
            identifier=identifier,
        )
        for booking, identifier in rows
    ]


@router.get("/user/{identifier}", response_model=list[BookingResponse])
async def list_user_bookings_endpoint(
    identifier: str,
    db: AsyncSession = Depends(get_db),
):
    """Bookings made with an identifier, most recent date first."""
    return await list_user_bookings(db, identifier)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking_endpoint(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await get_booking(db, booking_id)


@router.patch("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    cache: Optional[SeatStatusCache] = Depends(get_cache),
):
    """Cancel an active booking. Cancelling twice returns 400."""
    return await cancel_booking(db, booking_id, cache=cache)
