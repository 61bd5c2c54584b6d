"""
Typed failures raised by the reservation services.

Every business-rule failure is one of these; the API layer maps them to
HTTP responses through a single handler (app.api.exception_handlers).
"""

from typing import Optional


class BookingError(Exception):
    """Base class for all reservation errors."""

    status_code: int = 400
    code: str = "booking_error"

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(message)


class ValidationError(BookingError):
    status_code = 422
    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(BookingError):
    status_code = 404
    code = "not_found"


class SeatNotFound(NotFoundError):
    code = "seat_not_found"


class BookingNotFound(NotFoundError):
    code = "booking_not_found"


class ConflictError(BookingError):
    status_code = 409
    code = "conflict"


class SeatConflict(ConflictError):
    code = "seat_conflict"


class UserDayConflict(ConflictError):
    code = "user_day_conflict"


class InvalidStateError(BookingError):
    status_code = 400
    code = "invalid_state"


class StorageFailure(BookingError):
    """I/O or transaction failure. Safe for the caller to retry."""

    status_code = 503
    code = "storage_failure"
