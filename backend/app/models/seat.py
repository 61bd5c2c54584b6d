"""
Seat model: one bookable unit from the static catalog.
"""

import enum

from sqlalchemy import Column, Integer, String, CheckConstraint

from app.db.base import Base, TimestampMixin


class SeatKind(str, enum.Enum):
    SEAT = "seat"
    MEETING_ROOM = "meeting-room"
    QUIET = "quiet"
    TOUCHDOWN = "touchdown"


class Seat(Base, TimestampMixin):
    __tablename__ = "seats"

    id = Column(Integer, primary_key=True, index=True)
    seat_id = Column(String(10), unique=True, index=True, nullable=False)
    kind = Column(String(20), nullable=False, default=SeatKind.SEAT.value)
    # Floor-plan coordinates, cosmetic only
    x = Column(Integer, nullable=True)
    y = Column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "kind IN ('seat', 'meeting-room', 'quiet', 'touchdown')",
            name="check_seat_kind",
        ),
    )

    def __repr__(self) -> str:
        return f"<Seat(seat_id={self.seat_id}, kind={self.kind})>"
