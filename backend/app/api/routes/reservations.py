"""
Reservation endpoint.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_cache
from app.core.clock import Clock, get_clock
from app.db.session import get_db
from app.schemas.booking import ReservationCreate, BookingResponse
from app.services.booking_service import reserve_seat
from app.services.cache_service import SeatStatusCache

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_reservation(
    reservation: ReservationCreate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    cache: Optional[SeatStatusCache] = Depends(get_cache),
):
    """
    Reserve one seat for one date.

    404 if the seat does not exist, 409 if the seat is taken that day
    (code seat_conflict) or the person already holds a seat that day
    (code user_day_conflict).
    """
    return await reserve_seat(
        db,
        reservation.identifier,
        reservation.seat_id,
        reservation.date,
        reservation.notes,
        clock=clock,
        cache=cache,
    )
