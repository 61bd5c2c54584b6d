"""
Booking model: one reservation of a seat by a user for a calendar date.

Key design decisions:
- Partial unique indexes on (seat_id, date) and (user_id, date), restricted
  to status = 'active', are the authoritative guard against double booking.
  Application-level pre-checks only exist to produce a precise error.
- seat_id references the catalog by value; bookings survive catalog resets.
- Rows are never deleted. Cancellation and expiry are status transitions
  and both are terminal.
"""

import enum

from sqlalchemy import Column, Date, Integer, String, ForeignKey, Index, CheckConstraint, text

from app.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


# The only legal transitions. Anything not listed here is rejected.
ALLOWED_TRANSITIONS = {
    BookingStatus.ACTIVE: frozenset({BookingStatus.CANCELLED, BookingStatus.EXPIRED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.EXPIRED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return BookingStatus(target) in ALLOWED_TRANSITIONS[BookingStatus(current)]


_ACTIVE_ONLY = text("status = 'active'")


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seat_id = Column(String(10), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.ACTIVE.value)
    notes = Column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'cancelled', 'expired')",
            name="check_booking_status",
        ),
        # One active booking per seat per day
        Index(
            "uq_bookings_active_seat_date",
            "seat_id",
            "date",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        # One active booking per person per day
        Index(
            "uq_bookings_active_user_date",
            "user_id",
            "date",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        # Sweeper scans active bookings by date
        Index("ix_bookings_status_date", "status", "date"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, seat={self.seat_id}, date={self.date}, status={self.status})>"
