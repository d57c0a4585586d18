"""
Locust Load Test Suite

Sign-in is handled outside the API, so tokens are minted locally for an
existing admin. Set LOAD_ADMIN_ID to a seeded admin's user id and run with
the same SECRET_KEY as the server.

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double-booking
  locust -f locustfile.py --tags read         # Listing + stream load
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
from datetime import datetime, timezone, timedelta

from locust import HttpUser, task, between, tag, events

from esports_scheduler.core.security import create_access_token

ADMIN_ID = os.environ.get("LOAD_ADMIN_ID", "")

# Shared state
COMPUTER_IDS = []
TEAM_IDS = []

# Every concurrency user fights over this one slot
CONTESTED_START = (datetime.now(timezone.utc) + timedelta(days=30)).replace(
    hour=18, minute=0, second=0, microsecond=0
)


def admin_headers():
    token = create_access_token(data={"sub": ADMIN_ID, "role": "ADMIN"})
    return {"Authorization": f"Bearer {token}"}


def slot(start, hours=1):
    return start.isoformat(), (start + timedelta(hours=hours)).isoformat()


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print(f"SETUP: contested slot starts {CONTESTED_START.isoformat()}")
    if not ADMIN_ID:
        print("LOAD_ADMIN_ID is not set - write tasks will get 401")
    print("="*60)


class ReferenceDataMixin:
    def load_reference_data(self):
        if not COMPUTER_IDS:
            resp = self.client.get("/api/v1/computers?active=1")
            if resp.status_code == 200:
                COMPUTER_IDS.extend(c["id"] for c in resp.json())
        if not TEAM_IDS:
            resp = self.client.get("/api/v1/teams")
            if resp.status_code == 200:
                TEAM_IDS.extend(t["id"] for t in resp.json())


class ConcurrencyUser(ReferenceDataMixin, HttpUser):
    """
    TEST 1: Concurrency - many admins, one computer, one slot

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify no computer has overlapping CONFIRMED rows:
      SELECT a.id, b.id FROM reservations a JOIN reservations b
        ON a.computer_id = b.computer_id AND a.id < b.id
       AND a.starts_at < b.ends_at AND b.starts_at < a.ends_at;
    Should return nothing.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = admin_headers()
        self.load_reference_data()

    @tag("concurrency")
    @task
    def book_contested_slot(self):
        """All users race for the first two computers at the same time."""
        if len(COMPUTER_IDS) < 2 or not TEAM_IDS:
            return

        # Random offsets keep some requests partially overlapping
        start = CONTESTED_START + timedelta(minutes=random.choice([0, 0, 30]))
        starts_at, ends_at = slot(start)
        with self.client.post("/api/v1/reservations",
            json={
                "teamId": random.choice(TEAM_IDS),
                "computerIds": random.sample(COMPUTER_IDS[:2], random.randint(1, 2)),
                "startsAt": starts_at,
                "endsAt": ends_at,
            },
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: already reserved
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ReadUser(HttpUser):
    """
    TEST 2: Read load on the schedule views

    Run: locust -f locustfile.py --tags read -u 100 -r 20 --run-time 60s

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("read")
    @task(10)
    def list_grouped_week(self):
        start = datetime.now(timezone.utc)
        self.client.get("/api/v1/reservations",
            params={
                "grouped": 1,
                "start": start.isoformat(),
                "end": (start + timedelta(days=7)).isoformat(),
            },
            name="/api/v1/reservations?grouped=1")

    @tag("read")
    @task(3)
    def list_computers(self):
        self.client.get("/api/v1/computers?active=1")

    @tag("read")
    @task(1)
    def health_check(self):
        """Monitor system health."""
        self.client.get("/health")


class EdgeCaseUser(ReferenceDataMixin, HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = admin_headers()
        self.load_reference_data()

    def expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_team(self):
        starts_at, ends_at = slot(CONTESTED_START + timedelta(days=1))
        with self.client.post("/api/v1/reservations",
            json={"teamId": "team-nobody", "computerIds": [1], "startsAt": starts_at, "endsAt": ends_at},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self.expect(resp, [400])

    @tag("edge")
    @task
    def unknown_computer(self):
        if not TEAM_IDS:
            return
        starts_at, ends_at = slot(CONTESTED_START + timedelta(days=1))
        with self.client.post("/api/v1/reservations",
            json={"teamId": TEAM_IDS[0], "computerIds": [999999], "startsAt": starts_at, "endsAt": ends_at},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self.expect(resp, [400])

    @tag("edge")
    @task
    def inverted_interval(self):
        if not TEAM_IDS:
            return
        ends_at, starts_at = slot(CONTESTED_START + timedelta(days=2))
        with self.client.post("/api/v1/reservations",
            json={"teamId": TEAM_IDS[0], "computerIds": [1], "startsAt": starts_at, "endsAt": ends_at},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self.expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        """Send garbage data."""
        with self.client.post("/api/v1/reservations",
            data="not json at all",
            headers={**self.headers, "Content-Type": "application/json"},
            catch_response=True
        ) as resp:
            self.expect(resp, [400])

    @tag("edge")
    @task
    def unknown_group_delete(self):
        with self.client.delete("/api/v1/reservations?groupId=does-not-exist",
            headers=self.headers,
            catch_response=True
        ) as resp:
            self.expect(resp, [404])

    @tag("edge")
    @task
    def missing_auth(self):
        """Try booking without auth."""
        with self.client.post("/api/v1/reservations",
            json={"teamId": "x", "computerIds": [1]},
            catch_response=True
        ) as resp:
            self.expect(resp, [401])
