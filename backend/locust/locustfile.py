"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double-booking of slots
  locust -f locustfile.py --tags capacity     # Test activity overbooking
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
from datetime import date, timedelta
from locust import HttpUser, task, between, tag, events

# Shared state
RESOURCE_IDS = []
SERVICE_ID = None
ACTIVITY_ID = None

OWNER_HEADERS = {"X-Actor-Id": "1", "X-Actor-Role": "owner"}


def customer_headers():
    return {"X-Actor-Id": str(random.randint(1000, 999999)), "X-Actor-Role": "customer"}


def next_weekday(min_days=2):
    """First Monday-Friday at least min_days out."""
    day = date.today() + timedelta(days=min_days)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: resources are created by the first user of each class")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - every user asks for the same 10:00 service slot

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings WHERE resource_id = X AND start_time = 1000;
    Should be exactly 1
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = customer_headers()
        if not SERVICE_ID:
            resp = self.client.post("/api/v1/resources/",
                json={
                    "kind": "service",
                    "name": "Concurrency Test Service",
                    "open_time": "09:00",
                    "close_time": "17:00",
                    "closed_weekdays": ["Saturday", "Sunday"],
                },
                headers=OWNER_HEADERS,
            )
            if resp.status_code == 201:
                globals()["SERVICE_ID"] = resp.json()["id"]
                print(f"\n✓ Created service {SERVICE_ID}\n")

    @tag("concurrency")
    @task
    def book_same_slot(self):
        if not SERVICE_ID:
            return

        with self.client.post("/api/v1/bookings/",
            json={
                "resource_id": SERVICE_ID,
                "booking_date": next_weekday().isoformat(),
                "start_time": "10:00",
                "duration_hours": 2,
            },
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: slot already taken
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class CapacityUser(HttpUser):
    """
    TEST 2: Aggregate capacity - 100 users, 20 participants per date

    Run: locust -f locustfile.py --tags capacity -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT SUM(quantity) FROM bookings WHERE resource_id = X AND status <> 'cancelled';
    Should be <= 20
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = customer_headers()
        if not ACTIVITY_ID:
            resp = self.client.post("/api/v1/resources/",
                json={
                    "kind": "activity",
                    "name": "Capacity Test Tour",
                    "capacity": 20,
                    "offered_dates": [(date.today() + timedelta(days=7)).isoformat()],
                },
                headers=OWNER_HEADERS,
            )
            if resp.status_code == 201:
                globals()["ACTIVITY_ID"] = resp.json()["id"]

    @tag("capacity")
    @task
    def book_participants(self):
        if not ACTIVITY_ID:
            return

        with self.client.post("/api/v1/bookings/",
            json={
                "resource_id": ACTIVITY_ID,
                "booking_date": (date.today() + timedelta(days=7)).isoformat(),
                "quantity": random.randint(1, 3),
            },
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 422):
                resp.success()  # 422: not enough capacity left
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: Stop Redis, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_resources_cached(self):
        page = random.randint(1, 5)
        kind = random.choice(["", "&kind=restaurant", "&kind=service"])
        self.client.get(f"/api/v1/resources/?page={page}&page_size=20{kind}",
            name="/api/v1/resources/ [cached]")

    @tag("throughput", "read")
    @task(3)
    def service_slots(self):
        """Uncached: slot lists must reflect the live busy set."""
        if SERVICE_ID:
            self.client.get(
                f"/api/v1/resources/{SERVICE_ID}/slots?date={next_weekday().isoformat()}&duration_hours=1",
                name="/api/v1/resources/{id}/slots",
            )

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = customer_headers()

    def _expect(self, payload, allowed, headers=None):
        with self.client.post("/api/v1/bookings/",
            json=payload,
            headers=self.headers if headers is None else headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in allowed:
                resp.success()
            else:
                resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_resource(self):
        self._expect({"resource_id": 999999, "booking_date": next_weekday().isoformat()}, [404])

    @tag("edge")
    @task
    def zero_quantity(self):
        if ACTIVITY_ID:
            self._expect(
                {"resource_id": ACTIVITY_ID, "booking_date": (date.today() + timedelta(days=7)).isoformat(), "quantity": 0},
                [422],
            )

    @tag("edge")
    @task
    def off_grid_start(self):
        if SERVICE_ID:
            self._expect(
                {
                    "resource_id": SERVICE_ID,
                    "booking_date": next_weekday().isoformat(),
                    "start_time": "10:15",
                    "duration_hours": 1,
                },
                [400],
            )

    @tag("edge")
    @task
    def past_date(self):
        if SERVICE_ID:
            self._expect(
                {
                    "resource_id": SERVICE_ID,
                    "booking_date": (date.today() - timedelta(days=3)).isoformat(),
                    "start_time": "10:00",
                    "duration_hours": 1,
                },
                [422],
            )

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/bookings/",
            data="not json at all",
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_actor(self):
        self._expect({"resource_id": 1, "booking_date": next_weekday().isoformat()}, [401], headers={})


class RealisticUser(HttpUser):
    """
    TEST 5: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing and availability checks
      - Some bookings
      - Rare resource creation
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = customer_headers()

    @task(50)
    def browse_resources(self):
        resp = self.client.get("/api/v1/resources/?page=1&page_size=20")
        if resp.status_code == 200:
            for resource in resp.json().get("resources", []):
                if resource["id"] not in RESOURCE_IDS:
                    RESOURCE_IDS.append(resource["id"])

    @task(20)
    def check_availability(self):
        if RESOURCE_IDS:
            self.client.get(
                f"/api/v1/resources/{random.choice(RESOURCE_IDS)}/availability"
                f"?date={next_weekday().isoformat()}&time=12:00",
                name="/api/v1/resources/{id}/availability",
            )

    @task(10)
    def book_service(self):
        if SERVICE_ID:
            hour = random.randint(9, 15)
            self.client.post("/api/v1/bookings/",
                json={
                    "resource_id": SERVICE_ID,
                    "booking_date": next_weekday(random.randint(2, 20)).isoformat(),
                    "start_time": f"{hour:02d}:{random.choice(['00', '30'])}",
                    "duration_hours": random.randint(1, 2),
                },
                headers=self.headers)

    @task(3)
    def create_restaurant(self):
        resp = self.client.post("/api/v1/resources/",
            json={
                "kind": "restaurant",
                "name": f"Restaurant {random.randint(1, 10000)}",
                "capacity": random.randint(10, 80),
                "open_time": "11:00",
                "close_time": "22:00",
                "closed_weekdays": ["Monday"],
            },
            headers=OWNER_HEADERS)
        if resp.status_code == 201:
            RESOURCE_IDS.append(resp.json()["id"])
