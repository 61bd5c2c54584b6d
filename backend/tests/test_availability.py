"""
Tests for the per-date seat map.
"""

from datetime import date

import pytest
from httpx import AsyncClient

from app.services import availability_service
from app.services.availability_service import AVAILABLE, RESERVED, get_seat_map, project_status
from app.services.booking_service import cancel_booking, reserve_seat

DAY = date(2024, 6, 1)


@pytest.mark.asyncio
async def test_one_reserved_nine_available(db_session, seats, clock):
    await reserve_seat(db_session, "ab12", "F1-5", DAY, clock=clock)

    statuses = await project_status(db_session, DAY)

    assert len(statuses) == len(seats) == 10
    reserved = [s for s in statuses if s["status"] == RESERVED]
    assert [s["seat_id"] for s in reserved] == ["F1-5"]
    assert sum(1 for s in statuses if s["status"] == AVAILABLE) == 9


@pytest.mark.asyncio
async def test_projection_is_per_date(db_session, seats, clock):
    await reserve_seat(db_session, "ab12", "F1-5", DAY, clock=clock)

    other_day = await project_status(db_session, date(2024, 6, 2))
    assert all(s["status"] == AVAILABLE for s in other_day)


@pytest.mark.asyncio
async def test_cancelled_booking_frees_the_seat(db_session, seats, clock):
    booking = await reserve_seat(db_session, "ab12", "F1-5", DAY, clock=clock)
    await cancel_booking(db_session, booking.id)

    statuses = await project_status(db_session, DAY)
    assert all(s["status"] == AVAILABLE for s in statuses)


@pytest.mark.asyncio
async def test_projection_order_and_fields(db_session, seats):
    statuses = await project_status(db_session, DAY)

    assert [s["seat_id"] for s in statuses] == sorted(entry.seat_id for entry in seats)
    room = next(s for s in statuses if s["seat_id"] == "APR207")
    assert room == {"seat_id": "APR207", "kind": "meeting-room", "status": AVAILABLE, "x": 470, "y": 120}


class FakeCache:
    """In-memory stand-in for SeatStatusCache, generations included."""

    def __init__(self):
        self.store = {}
        self.generations = {}
        self.invalidated = []

    async def get_seat_statuses(self, day):
        return self.store.get(day)

    async def get_generation(self, day):
        return str(self.generations.get(day, 0))

    async def set_seat_statuses(self, day, statuses, generation):
        if generation != str(self.generations.get(day, 0)):
            return False
        self.store[day] = statuses
        return True

    async def invalidate(self, days):
        for day in days:
            self.invalidated.append(day)
            self.generations[day] = self.generations.get(day, 0) + 1
            self.store.pop(day, None)


@pytest.mark.asyncio
async def test_seat_map_cache_is_invalidated_by_reservation(db_session, seats, clock):
    cache = FakeCache()

    _, cached = await get_seat_map(db_session, DAY, cache)
    assert cached is False
    _, cached = await get_seat_map(db_session, DAY, cache)
    assert cached is True

    await reserve_seat(db_session, "ab12", "F1-5", DAY, clock=clock, cache=cache)
    assert cache.invalidated == [DAY]

    statuses, cached = await get_seat_map(db_session, DAY, cache)
    assert cached is False
    assert next(s for s in statuses if s["seat_id"] == "F1-5")["status"] == RESERVED


@pytest.mark.asyncio
async def test_reservation_during_projection_is_not_cached_stale(
    db_session, session_factory, seats, clock, monkeypatch
):
    """A booking committed between the DB read and the cache write must not leave a stale map behind."""
    cache = FakeCache()
    original_project_status = availability_service.project_status

    async def project_then_reserve(db, day):
        statuses = await original_project_status(db, day)
        async with session_factory() as other:
            await reserve_seat(other, "ab12", "F1-5", day, clock=clock, cache=cache)
        return statuses

    monkeypatch.setattr(availability_service, "project_status", project_then_reserve)
    statuses, cached = await get_seat_map(db_session, DAY, cache)
    monkeypatch.undo()

    # The in-flight answer predates the booking, but it is not stored
    assert next(s for s in statuses if s["seat_id"] == "F1-5")["status"] == AVAILABLE
    assert DAY not in cache.store

    await db_session.commit()
    statuses, cached = await get_seat_map(db_session, DAY, cache)
    assert cached is False
    assert next(s for s in statuses if s["seat_id"] == "F1-5")["status"] == RESERVED

    statuses, cached = await get_seat_map(db_session, DAY, cache)
    assert cached is True
    assert next(s for s in statuses if s["seat_id"] == "F1-5")["status"] == RESERVED


@pytest.mark.asyncio
async def test_seats_endpoint(client: AsyncClient):
    await client.post(
        "/api/v1/reservations/",
        json={"identifier": "ab12", "seat_id": "F1-5", "date": "2024-06-01"},
    )

    response = await client.get("/api/v1/seats/", params={"date": "2024-06-01"})
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 10
    assert {s["seat_id"] for s in data if s["status"] == "reserved"} == {"F1-5"}


@pytest.mark.asyncio
async def test_seats_endpoint_rejects_bad_date(client: AsyncClient):
    assert (await client.get("/api/v1/seats/", params={"date": "2024-02-30"})).status_code == 422
    assert (await client.get("/api/v1/seats/")).status_code == 422
