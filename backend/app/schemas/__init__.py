from app.schemas.booking import (
    ReservationCreate,
    BookingResponse,
    BookingWithIdentifierResponse,
    SweepResponse,
)
from app.schemas.seat import SeatStatusResponse

__all__ = [
    "ReservationCreate", "BookingResponse", "BookingWithIdentifierResponse", "SweepResponse",
    "SeatStatusResponse",
]
