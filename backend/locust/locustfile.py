"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking
  locust -f locustfile.py --tags throughput   # Test seat map cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from datetime import date, timedelta
from locust import HttpUser, task, between, tag

SEAT_IDS = ["E1-11", "E1-12", "E2-8", "F1-5", "F1-6", "F2-2", "E3-9", "APR207", "APR208"]
HOT_SEAT = "E1-11"


def random_identifier():
    return "lt" + "".join(random.choices(string.ascii_lowercase + string.digits, k=8))


def future_day(max_days: int = 30) -> str:
    return (date.today() + timedelta(days=random.randint(1, max_days))).isoformat()


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - everyone wants the same seat on the same day

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT seat_id, date, COUNT(*) FROM bookings
      WHERE status = 'active' GROUP BY seat_id, date HAVING COUNT(*) > 1;
    Should return no rows.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.identifier = random_identifier()
        self.day = (date.today() + timedelta(days=7)).isoformat()

    @tag("concurrency")
    @task
    def reserve_hot_seat(self):
        with self.client.post("/api/v1/reservations/",
            json={"identifier": self.identifier, "seat_id": HOT_SEAT, "date": self.day},
            catch_response=True,
            name="/api/v1/reservations/ [hot seat]",
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: seat taken or already booked that day
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - seat map cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare avg response time, requests/sec, P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def seat_map(self):
        self.client.get("/api/v1/seats/", params={"date": future_day(5)},
            name="/api/v1/seats/ [cached]")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_seat(self):
        with self.client.post("/api/v1/reservations/",
            json={"identifier": random_identifier(), "seat_id": "ZZ-999", "date": future_day()},
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def short_identifier(self):
        with self.client.post("/api/v1/reservations/",
            json={"identifier": "x", "seat_id": HOT_SEAT, "date": future_day()},
            catch_response=True,
        ) as resp:
            self._expect(resp, (422,))

    @tag("edge")
    @task
    def impossible_date(self):
        with self.client.post("/api/v1/reservations/",
            json={"identifier": random_identifier(), "seat_id": HOT_SEAT, "date": "2024-02-30"},
            catch_response=True,
        ) as resp:
            self._expect(resp, (422,))

    @tag("edge")
    @task
    def cancel_missing_booking(self):
        with self.client.patch("/api/v1/bookings/999999999/cancel", catch_response=True) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/reservations/",
            data="not json at all",
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 422))


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Mostly looking at the seat map, some reservations, the odd cancellation.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.identifier = random_identifier()
        self.booking_ids = []

    @task(50)
    def browse_seat_map(self):
        self.client.get("/api/v1/seats/", params={"date": future_day(10)})

    @task(10)
    def my_bookings(self):
        self.client.get(f"/api/v1/bookings/user/{self.identifier}",
            name="/api/v1/bookings/user/{identifier}")

    @task(10)
    def reserve(self):
        with self.client.post("/api/v1/reservations/",
            json={"identifier": self.identifier, "seat_id": random.choice(SEAT_IDS), "date": future_day(10)},
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                self.booking_ids.append(resp.json()["id"])
                resp.success()
            elif resp.status_code == 409:
                resp.success()

    @task(2)
    def cancel(self):
        if self.booking_ids:
            booking_id = self.booking_ids.pop(random.randrange(len(self.booking_ids)))
            self.client.patch(f"/api/v1/bookings/{booking_id}/cancel",
                name="/api/v1/bookings/{id}/cancel")
