"""
Locust Load Test Suite

Events are created by the administrative tooling, so seed one first and pass
its id in:
  LOAD_EVENT_ID=live-1 locust -f locustfile.py --tags concurrency  # Test overbooking
  LOAD_EVENT_ID=live-1 locust -f locustfile.py --tags edit         # Test delta charging
  locust -f locustfile.py --tags throughput                        # Test cache
  locust -f locustfile.py --tags edge                              # Test bad input

Tokens are signed locally with the same SECRET_KEY the API verifies with.
"""

import os
import random
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from locust import HttpUser, task, between, tag

from ticket_reserve.core.config import get_settings

EVENT_ID = os.environ.get("LOAD_EVENT_ID", "live-1")


def sign_token(user_id: str) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode({"sub": user_id, "exp": expire}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def general_body(headcount: int) -> dict:
    return {
        "kind": "general",
        "representative_name": "Load Tester",
        "companions": [f"guest {i}" for i in range(headcount - 1)],
    }


class AuthenticatedUser(HttpUser):
    abstract = True

    def on_start(self):
        self.user_id = f"load-{uuid.uuid4().hex[:12]}"
        token = sign_token(self.user_id)
        self.headers = {"Authorization": f"Bearer {token}"}


class ConcurrencyUser(AuthenticatedUser):
    """
    TEST 1: Concurrency - many users race for the seats of one event

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT total_reserved, ticket_stock FROM events WHERE id = :id;
      SELECT SUM(total_count) FROM reservations WHERE event_id = :id;
    total_reserved must equal the sum and stay <= ticket_stock.
    """
    wait_time = between(0, 0.1)

    @tag("concurrency")
    @task
    def reserve_seats(self):
        with self.client.put(f"/api/v1/reservations/{EVENT_ID}",
            json=general_body(random.randint(1, 3)),
            headers=self.headers,
            name="/api/v1/reservations/{event_id}",
            catch_response=True
        ) as resp:
            if resp.status_code == 200:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: sold out or contention
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class EditingUser(AuthenticatedUser):
    """
    TEST 2: Edits - each user keeps resizing and cancelling one reservation

    Run: locust -f locustfile.py --tags edit -u 50 -r 10 --run-time 60s

    Only the headcount difference is charged, so after the run
    total_reserved must still equal SUM(total_count).
    """
    wait_time = between(0.1, 0.5)

    @tag("edit")
    @task(5)
    def resize(self):
        with self.client.put(f"/api/v1/reservations/{EVENT_ID}",
            json=general_body(random.randint(1, 5)),
            headers=self.headers,
            name="/api/v1/reservations/{event_id} [edit]",
            catch_response=True
        ) as resp:
            if resp.status_code in [200, 409]:
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("edit")
    @task(1)
    def cancel(self):
        self.client.delete(f"/api/v1/reservations/{EVENT_ID}",
            headers=self.headers,
            name="/api/v1/reservations/{event_id} [cancel]")


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false on the API, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        page = random.randint(1, 5)
        self.client.get(f"/api/v1/events/?page={page}&page_size=20",
            name="/api/v1/events/ [cached]")

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        self.client.get(f"/api/v1/events/{EVENT_ID}",
            name="/api/v1/events/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(AuthenticatedUser):
    """
    TEST 4: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        with self.client.put("/api/v1/reservations/no-such-event",
            json=general_body(1),
            headers=self.headers,
            catch_response=True
        ) as resp:
            self.expect(resp, [404])

    @tag("edge")
    @task
    def empty_invited(self):
        with self.client.put(f"/api/v1/reservations/{EVENT_ID}",
            json={"kind": "invited", "groups": [{"group_name": "", "companions": [""]}]},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self.expect(resp, [403, 422])

    @tag("edge")
    @task
    def unknown_kind(self):
        with self.client.put(f"/api/v1/reservations/{EVENT_ID}",
            json={"kind": "vip"},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self.expect(resp, [422])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.put(f"/api/v1/reservations/{EVENT_ID}",
            data="not json at all",
            headers=self.headers,
            catch_response=True
        ) as resp:
            self.expect(resp, [400, 422])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.put(f"/api/v1/reservations/{EVENT_ID}",
            json=general_body(1),
            catch_response=True
        ) as resp:
            self.expect(resp, [401])
