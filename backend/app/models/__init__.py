from app.models.user import User
from app.models.seat import Seat, SeatKind
from app.models.booking import Booking, BookingStatus

__all__ = ["User", "Seat", "SeatKind", "Booking", "BookingStatus"]
