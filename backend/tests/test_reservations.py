"""
Tests for the reservation engine: ordering of checks, conflicts, validation.
"""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.core.config import get_settings
from app.core.exceptions import SeatConflict, SeatNotFound, UserDayConflict, ValidationError
from app.models.booking import Booking, BookingStatus
from app.models.user import User
from app.services.booking_service import cancel_booking, reserve_seat

DAY = date(2024, 6, 1)


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar()


@pytest.mark.asyncio
async def test_reserve_seat(db_session, seats, clock):
    """A free seat is booked as active for the requested date."""
    booking = await reserve_seat(db_session, "ab12", "E1-11", "2024-06-01", "window please", clock=clock)

    assert booking.id is not None
    assert booking.seat_id == "E1-11"
    assert booking.date == DAY
    assert booking.status == BookingStatus.ACTIVE.value
    assert booking.notes == "window please"


@pytest.mark.asyncio
async def test_seat_conflict_and_user_day_conflict(db_session, seats, clock):
    """Same seat by someone else is a seat conflict; same person on another seat is a day conflict."""
    await reserve_seat(db_session, "ab12", "E1-11", "2024-06-01", clock=clock)

    with pytest.raises(SeatConflict):
        await reserve_seat(db_session, "zz99", "E1-11", "2024-06-01", clock=clock)

    with pytest.raises(UserDayConflict):
        await reserve_seat(db_session, "ab12", "F1-5", "2024-06-01", clock=clock)


@pytest.mark.asyncio
async def test_same_person_other_day_is_allowed(db_session, seats, clock):
    await reserve_seat(db_session, "ab12", "E1-11", "2024-06-01", clock=clock)
    booking = await reserve_seat(db_session, "ab12", "E1-11", "2024-06-02", clock=clock)
    assert booking.date == date(2024, 6, 2)


@pytest.mark.asyncio
async def test_seat_conflict_does_not_create_user(db_session, seats, clock):
    """A request that loses on the seat check never creates a user."""
    await reserve_seat(db_session, "ab12", "E1-11", DAY, clock=clock)

    with pytest.raises(SeatConflict):
        await reserve_seat(db_session, "newbie", "E1-11", DAY, clock=clock)

    result = await db_session.execute(select(User).where(User.identifier == "newbie"))
    assert result.scalar_one_or_none() is None


@pytest.mark.asyncio
async def test_unknown_seat(db_session, seats, clock):
    with pytest.raises(SeatNotFound):
        await reserve_seat(db_session, "ab12", "Z9-99", DAY, clock=clock)
    assert await _count(db_session, User) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "identifier,seat_id,day,field",
    [
        ("a", "E1-11", "2024-06-01", "identifier"),
        ("x" * 21, "E1-11", "2024-06-01", "identifier"),
        ("   ", "E1-11", "2024-06-01", "identifier"),
        ("ab12", "", "2024-06-01", "seat_id"),
        ("ab12", "E1-11", "2024-13-01", "date"),
        ("ab12", "E1-11", "next tuesday", "date"),
        ("ab12", "E1-11", "20240601", "date"),
    ],
)
async def test_validation_errors(db_session, seats, clock, identifier, seat_id, day, field):
    """Malformed input fails validation before anything is read or written."""
    with pytest.raises(ValidationError) as exc_info:
        await reserve_seat(db_session, identifier, seat_id, day, clock=clock)

    assert exc_info.value.field == field
    assert await _count(db_session, Booking) == 0


@pytest.mark.asyncio
async def test_identifier_length_bounds_are_inclusive(db_session, seats, clock):
    await reserve_seat(db_session, "ab", "E1-11", DAY, clock=clock)
    await reserve_seat(db_session, "y" * 20, "E1-12", DAY, clock=clock)
    assert await _count(db_session, Booking) == 2


@pytest.mark.asyncio
async def test_validation_precedes_seat_lookup(db_session, seats, clock):
    """An invalid identifier on an unknown seat is reported as a validation error."""
    with pytest.raises(ValidationError):
        await reserve_seat(db_session, "a", "Z9-99", DAY, clock=clock)


@pytest.mark.asyncio
async def test_seat_is_free_again_after_cancel(db_session, seats, clock):
    first = await reserve_seat(db_session, "ab12", "E1-11", DAY, clock=clock)
    await cancel_booking(db_session, first.id)

    second = await reserve_seat(db_session, "zz99", "E1-11", DAY, clock=clock)
    assert second.status == BookingStatus.ACTIVE.value
    assert second.id != first.id


@pytest.mark.asyncio
async def test_past_dates_rejected_when_disallowed(db_session, seats, clock, monkeypatch):
    monkeypatch.setattr(get_settings(), "ALLOW_PAST_DATES", False)

    with pytest.raises(ValidationError) as exc_info:
        await reserve_seat(db_session, "ab12", "E1-11", "2024-05-31", clock=clock)
    assert exc_info.value.field == "date"

    # Today is still bookable
    await reserve_seat(db_session, "ab12", "E1-11", "2024-06-01", clock=clock)


@pytest.mark.asyncio
async def test_at_most_one_active_booking_per_seat_and_per_user(db_session, seats, clock):
    """After a mixed sequence of operations both per-day rules still hold."""
    attempts = [
        ("ab12", "E1-11"), ("zz99", "E1-11"), ("ab12", "F1-5"),
        ("zz99", "F1-5"), ("cd34", "F1-5"), ("cd34", "E2-8"),
    ]
    for identifier, seat_id in attempts:
        try:
            await reserve_seat(db_session, identifier, seat_id, DAY, clock=clock)
        except (SeatConflict, UserDayConflict):
            pass

    active = (
        await db_session.execute(
            select(Booking).where(Booking.status == BookingStatus.ACTIVE.value)
        )
    ).scalars().all()
    assert len({(b.seat_id, b.date) for b in active}) == len(active)
    assert len({(b.user_id, b.date) for b in active}) == len(active)
    assert len(active) == 3


# --- HTTP ---


@pytest.mark.asyncio
async def test_create_reservation_endpoint(client: AsyncClient):
    response = await client.post(
        "/api/v1/reservations/",
        json={"identifier": "ab12", "seat_id": "E1-11", "date": "2024-06-01", "notes": "standing desk"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["seat_id"] == "E1-11"
    assert data["date"] == "2024-06-01"
    assert data["status"] == "active"
    assert data["notes"] == "standing desk"
    assert "password" not in data


@pytest.mark.asyncio
async def test_reservation_conflicts_are_distinguishable(client: AsyncClient):
    payload = {"identifier": "ab12", "seat_id": "E1-11", "date": "2024-06-01"}
    assert (await client.post("/api/v1/reservations/", json=payload)).status_code == 201

    seat_taken = await client.post("/api/v1/reservations/", json={**payload, "identifier": "zz99"})
    assert seat_taken.status_code == 409
    assert seat_taken.json()["code"] == "seat_conflict"

    already_booked = await client.post("/api/v1/reservations/", json={**payload, "seat_id": "F1-5"})
    assert already_booked.status_code == 409
    assert already_booked.json()["code"] == "user_day_conflict"


@pytest.mark.asyncio
async def test_reservation_unknown_seat_returns_404(client: AsyncClient):
    response = await client.post(
        "/api/v1/reservations/",
        json={"identifier": "ab12", "seat_id": "NOPE", "date": "2024-06-01"},
    )
    assert response.status_code == 404
    assert response.json()["code"] == "seat_not_found"


@pytest.mark.asyncio
async def test_reservation_validation_returns_422_with_field(client: AsyncClient):
    response = await client.post(
        "/api/v1/reservations/",
        json={"identifier": "a", "seat_id": "E1-11", "date": "2024-06-01"},
    )
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["field"] == "identifier"


@pytest.mark.asyncio
async def test_reservation_missing_field_returns_422(client: AsyncClient):
    response = await client.post("/api/v1/reservations/", json={"identifier": "ab12"})
    assert response.status_code == 422
