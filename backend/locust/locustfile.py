"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags contention   # Many holders, few seats
  locust -f locustfile.py --tags throughput   # Seat map cache, availability reads
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

Tokens are minted locally with the service's SECRET_KEY, so run with the
same environment as the API.
"""

import random
import uuid

from locust import HttpUser, task, between, tag, events

from seat_reservation.core.security import create_access_token

# Shared state
SHOWTIME_IDS = []
CONTENTION_SHOWTIME_ID = None
CONTENTION_SEATS = ["A1", "A2", "A3", "A4", "A5", "B1", "B2", "B3", "B4", "B5"]


def holder_headers() -> dict:
    token = create_access_token(data={"sub": f"load-{uuid.uuid4().hex[:12]}"})
    return {"Authorization": f"Bearer {token}"}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print("SETUP: contention showtime is created by the first user")
    print("="*60)


class ContentionUser(HttpUser):
    """
    TEST 1: Contention - 100 holders -> 10 seats

    Run: locust -f locustfile.py --tags contention -u 100 -r 50 --run-time 30s

    After test, verify no seat is booked twice:
      SELECT seat_row, seat_col, COUNT(*) FROM booked_seats
      WHERE showtime_id = X GROUP BY 1, 2 HAVING COUNT(*) > 1;
    Should return no rows (the unique constraint makes it impossible).
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = holder_headers()

        if not CONTENTION_SHOWTIME_ID:
            resp = self.client.post("/api/v1/showtimes",
                json={"movie_title": "Contention Test", "rows": 2, "seats_per_row": 5, "base_price": "10.00"},
                headers=self.headers
            )
            if resp.status_code == 201:
                globals()["CONTENTION_SHOWTIME_ID"] = resp.json()["id"]
                print(f"\n✓ Created showtime {CONTENTION_SHOWTIME_ID} with 10 seats\n")

    @tag("contention")
    @task
    def hold_and_book(self):
        """Everyone fights for the same seats, then pays and books what they won."""
        if not CONTENTION_SHOWTIME_ID:
            return

        seats = random.sample(CONTENTION_SEATS, k=random.randint(1, 3))
        with self.client.post("/api/v1/holds",
            json={"showtime_id": CONTENTION_SHOWTIME_ID, "seats": seats, "ttl_seconds": 30},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code not in (200, 409):
                resp.failure(f"Unexpected: {resp.status_code}")
                return
            resp.success()  # 409: someone else holds them
            held = [s["seat"] for s in resp.json()["held"]]

        if not held:
            return

        with self.client.post("/api/v1/bookings",
            json={"showtime_id": CONTENTION_SHOWTIME_ID, "seats": held},
            headers={**self.headers, "X-Idempotency-Key": uuid.uuid4().hex},
            catch_response=True
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - seat map cache vs. live availability

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare /seats (cached snapshot) with /availability (never cached).
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.headers = holder_headers()
        if len(SHOWTIME_IDS) < 5:
            resp = self.client.post("/api/v1/showtimes",
                json={"rows": 10, "seats_per_row": 20, "base_price": "12.50", "row_types": {"A": "premium"}},
                headers=self.headers)
            if resp.status_code == 201:
                SHOWTIME_IDS.append(resp.json()["id"])

    @tag("throughput", "read")
    @task(10)
    def seat_map_cached(self):
        if SHOWTIME_IDS:
            self.client.get(f"/api/v1/showtimes/{random.choice(SHOWTIME_IDS)}/seats",
                name="/api/v1/showtimes/{id}/seats [cached]")

    @tag("throughput", "read")
    @task(5)
    def availability(self):
        if SHOWTIME_IDS:
            self.client.get(f"/api/v1/showtimes/{random.choice(SHOWTIME_IDS)}/availability",
                name="/api/v1/showtimes/{id}/availability")

    @tag("throughput")
    @task(2)
    def hold_then_release(self):
        if not SHOWTIME_IDS:
            return
        showtime_id = random.choice(SHOWTIME_IDS)
        seat = f"{random.randint(1, 10)}:{random.randint(1, 20)}"
        resp = self.client.post("/api/v1/holds",
            json={"showtime_id": showtime_id, "seats": [seat]},
            headers=self.headers, name="/api/v1/holds")
        if resp.status_code == 200:
            self.client.post("/api/v1/holds/release",
                json={"showtime_id": showtime_id, "seats": [seat]},
                headers=self.headers)

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

    def on_start(self):
        self.headers = holder_headers()

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_showtime(self):
        with self.client.post("/api/v1/holds",
            json={"showtime_id": 999999, "seats": ["A1"]},
            headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def garbage_seat(self):
        if not SHOWTIME_IDS:
            return
        with self.client.post("/api/v1/holds",
            json={"showtime_id": SHOWTIME_IDS[0], "seats": ["??", "0:0"]},
            headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def duplicate_seats(self):
        if not SHOWTIME_IDS:
            return
        with self.client.post("/api/v1/holds",
            json={"showtime_id": SHOWTIME_IDS[0], "seats": ["A1", "1:1"]},
            headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/bookings",
            data="not json at all",
            headers=self.headers, catch_response=True
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/holds",
            json={"showtime_id": 1, "seats": ["A1"]},
            catch_response=True
        ) as resp:
            self._expect(resp, [401])
