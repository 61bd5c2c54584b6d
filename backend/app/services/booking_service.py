"""
Reservation engine and booking lifecycle.

CONCURRENCY STRATEGY: Store-Enforced Uniqueness
===============================================

Problem:
  Two people ask for seat E1-11 on the same day at the same moment.
  Both read "no active booking", both insert, both succeed.
  Result: Double booking. The same race exists for one person booking two
  different seats on one day from two tabs.

Solution:
  The bookings table carries two partial unique indexes:

    (seat_id, date) WHERE status = 'active'
    (user_id, date) WHERE status = 'active'

  1. Pre-check with plain reads (seat exists, seat free, user free) so the
     common failure cases get a precise error without touching the indexes
  2. Insert the booking and commit
  3. If the commit raises IntegrityError, another transaction won the race.
     Roll back (this also discards a user created in this unit of work)
     and re-read to report which rule was violated

  The pre-checks are a courtesy. The indexes are the guard: whatever the
  timing, at most one active row per (seat, date) and per (user, date) can
  ever be committed.

Lifecycle:
  active -> cancelled   (owner cancels)
  active -> expired     (expiry sweeper, see expiry_service)

  Both targets are terminal. Transitions are conditional updates
  (WHERE status = 'active'), so a cancel racing a sweep ends in exactly one
  terminal state and the loser sees zero affected rows.
"""

import time
from datetime import date
from typing import Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus, can_transition
from app.models.user import User
from app.core.clock import Clock, get_clock, parse_calendar_date
from app.core.config import get_settings
from app.core.exceptions import (
    BookingError,
    BookingNotFound,
    InvalidStateError,
    SeatConflict,
    SeatNotFound,
    StorageFailure,
    UserDayConflict,
    ValidationError,
)
from app.core.metrics import booking_cancellations, record_reservation_attempt, reservation_latency
from app.services.availability_service import find_active_booking
from app.services.cache_service import SeatStatusCache
from app.services.identity_service import get_user_by_identifier, resolve_user, validate_identifier
from app.services.seat_service import find_seat
from app.core.logging import get_logger

logger = get_logger(__name__)

SEAT_ID_MAX_LENGTH = 10
NOTES_MAX_LENGTH = 500
STATUS_FILTER_ALL = "all"

_OUTCOME_LABELS = {
    "validation_error": "validation_error",
    "seat_not_found": "not_found",
    "seat_conflict": "seat_conflict",
    "user_day_conflict": "user_day_conflict",
}


def _validate_seat_id(seat_id: str) -> str:
    if not isinstance(seat_id, str) or not seat_id.strip():
        raise ValidationError("Seat ID is required", field="seat_id")
    seat_id = seat_id.strip()
    if len(seat_id) > SEAT_ID_MAX_LENGTH:
        raise ValidationError(
            f"Seat ID must be at most {SEAT_ID_MAX_LENGTH} characters", field="seat_id"
        )
    return seat_id


def _validate_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    if len(notes) > NOTES_MAX_LENGTH:
        raise ValidationError(
            f"Notes must be at most {NOTES_MAX_LENGTH} characters", field="notes"
        )
    return notes or None


async def _find_active_user_booking(db: AsyncSession, user_id: int, day: date) -> Optional[Booking]:
    result = await db.execute(
        select(Booking).where(
            Booking.user_id == user_id,
            Booking.date == day,
            Booking.status == BookingStatus.ACTIVE.value,
        )
    )
    return result.scalars().first()


async def _classify_conflict(db: AsyncSession, identifier: str, seat_id: str, day: date) -> BookingError:
    """Work out which uniqueness rule a failed commit tripped."""
    if await find_active_booking(db, seat_id, day):
        return SeatConflict("This seat is already reserved for the selected date")
    user = await get_user_by_identifier(db, identifier)
    if user and await _find_active_user_booking(db, user.id, day):
        return UserDayConflict(
            "You already have a reservation for this date. One person can only reserve one seat per day."
        )
    # The winning booking was already cancelled again; report the seat race
    return SeatConflict("This seat was reserved concurrently, please retry")


async def reserve_seat(
    db: AsyncSession,
    identifier: str,
    seat_id: str,
    day: Union[date, str],
    notes: Optional[str] = None,
    *,
    clock: Optional[Clock] = None,
    cache: Optional[SeatStatusCache] = None,
) -> Booking:
    """
    Reserve ``seat_id`` on ``day`` for the person behind ``identifier``.

    Checks run in order and stop at the first failure:
      1. input shape                      -> ValidationError
      2. seat exists                      -> SeatNotFound
      3. seat free on that date           -> SeatConflict
      4. resolve or create the user
      5. user has no booking that date    -> UserDayConflict
      6. insert the active booking and commit

    The seat check runs before the user is resolved so requests that can
    never succeed do not create users. Every failure leaves the database
    unchanged.
    """
    clock = clock or get_clock()
    start = time.perf_counter()
    outcome = "error"

    try:
        identifier = validate_identifier(identifier)
        seat_id = _validate_seat_id(seat_id)
        day = parse_calendar_date(day)
        notes = _validate_notes(notes)
        if not get_settings().ALLOW_PAST_DATES and day < clock.today():
            raise ValidationError("Cannot reserve a date in the past", field="date")

        try:
            seat = await find_seat(db, seat_id)
            if not seat:
                raise SeatNotFound(f"Seat {seat_id} not found")

            if await find_active_booking(db, seat_id, day):
                raise SeatConflict("This seat is already reserved for the selected date")

            user = await resolve_user(db, identifier)

            if await _find_active_user_booking(db, user.id, day):
                raise UserDayConflict(
                    "You already have a reservation for this date. One person can only reserve one seat per day."
                )

            booking = Booking(
                user_id=user.id,
                seat_id=seat_id,
                date=day,
                status=BookingStatus.ACTIVE.value,
                notes=notes,
                created_at=clock.now(),
            )
            db.add(booking)
            await db.commit()
        except BookingError:
            await db.rollback()
            raise
        except IntegrityError:
            await db.rollback()
            conflict = await _classify_conflict(db, identifier, seat_id, day)
            logger.info(
                "booking_conflict",
                seat_id=seat_id,
                date=day.isoformat(),
                identifier=identifier,
                reason=conflict.code,
                detected_by="constraint",
            )
            raise conflict
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("booking_storage_failure", seat_id=seat_id, date=day.isoformat(), error=str(e))
            raise StorageFailure("Failed to create reservation") from e

        await db.refresh(booking)
    except BookingError as e:
        outcome = _OUTCOME_LABELS.get(e.code, "error")
        if isinstance(e, (SeatConflict, UserDayConflict)):
            logger.info("booking_rejected", identifier=identifier, seat_id=seat_id, reason=e.code)
        raise
    else:
        outcome = "success"
    finally:
        record_reservation_attempt(outcome)
        reservation_latency.observe(time.perf_counter() - start)

    if cache is not None:
        await cache.invalidate([booking.date])

    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=booking.user_id,
        seat_id=booking.seat_id,
        date=booking.date.isoformat(),
    )
    return booking


async def get_booking(db: AsyncSession, booking_id: int) -> Booking:
    booking = await db.get(Booking, booking_id, populate_existing=True)
    if not booking:
        raise BookingNotFound(f"Booking {booking_id} not found")
    return booking


async def cancel_booking(
    db: AsyncSession,
    booking_id: int,
    *,
    cache: Optional[SeatStatusCache] = None,
) -> Booking:
    """
    Cancel an active booking. Not idempotent: a second cancel of the same
    booking raises InvalidStateError, as does cancelling an expired one.
    """
    booking = await get_booking(db, booking_id)

    if not can_transition(booking.status, BookingStatus.CANCELLED.value):
        raise InvalidStateError(
            f"Only active bookings can be cancelled (booking is {booking.status})"
        )

    try:
        result = await db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == BookingStatus.ACTIVE.value)
            .values(status=BookingStatus.CANCELLED.value)
        )
        if result.rowcount == 0:
            # Expired or cancelled between our read and the update
            await db.rollback()
            raise InvalidStateError("Only active bookings can be cancelled")
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("booking_storage_failure", booking_id=booking_id, error=str(e))
        raise StorageFailure("Failed to cancel booking") from e

    await db.refresh(booking)
    booking_cancellations.inc()
    if cache is not None:
        await cache.invalidate([booking.date])

    logger.info(
        "booking_cancelled",
        booking_id=booking.id,
        user_id=booking.user_id,
        seat_id=booking.seat_id,
        date=booking.date.isoformat(),
    )
    return booking


async def list_user_bookings(db: AsyncSession, identifier: str) -> list[Booking]:
    """All bookings of one person, most recent date first. Never creates a user."""
    identifier = validate_identifier(identifier)
    user = await get_user_by_identifier(db, identifier)
    if not user:
        return []

    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user.id)
        .order_by(Booking.date.desc(), Booking.created_at.desc(), Booking.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_bookings_for_date(
    db: AsyncSession,
    day: Union[date, str],
    status: str = BookingStatus.ACTIVE.value,
) -> list[tuple[Booking, str]]:
    """Admin view: bookings on ``day`` with the owner's identifier, by seat."""
    day = parse_calendar_date(day)
    if status != STATUS_FILTER_ALL and status not in {s.value for s in BookingStatus}:
        raise ValidationError(f"Unknown status filter: {status}", field="status")

    query = (
        select(Booking, User.identifier)
        .join(User, User.id == Booking.user_id)
        .where(Booking.date == day)
        .order_by(Booking.seat_id.asc(), Booking.id.asc())
        .execution_options(populate_existing=True)
    )
    if status != STATUS_FILTER_ALL:
        query = query.where(Booking.status == status)

    result = await db.execute(query)
    return [(booking, identifier) for booking, identifier in result.all()]
