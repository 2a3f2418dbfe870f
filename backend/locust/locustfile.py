"""
Locust Load Test Suite

The server must run in shared-secret mode (AUTH0_DOMAIN unset) with the same
SECRET_KEY as this process, and have at least one home game with seats
(`ticket-manager scrape-schedule`, `ticket-manager add-seat ...`).

Run scenarios:
  locust -f locustfile.py --tags contention   # Admins racing for the same tickets
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
from locust import HttpUser, task, between, tag, events

from ticket_manager.core.security import create_access_token

# Shared state
GAME_PKS = []
CONTENTION_GAME_PK = None
MEMBER_IDS = []


def bearer(sub: str, roles: list[str] | None = None) -> dict:
    token = create_access_token(sub, email=f"{sub.split('|')[-1]}@load.test", name=sub, roles=roles)
    return {"Authorization": f"Bearer {token}"}


def load_member() -> dict:
    return bearer(f"load|member{random.randint(10000, 99999)}")


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "="*60)
    print("SETUP: Load test against season ticket allocation")
    print("="*60)


class AllocationContentionUser(HttpUser):
    """
    TEST 1: Contention - many admins assign the same available tickets

    Run: locust -f locustfile.py --tags contention -u 50 -r 25 --run-time 30s

    Every admin picks a random available ticket of one game and assigns it to
    a random member. Losers get assigned=0, never an error. After the test:
      SELECT COUNT(*) FROM game_tickets
      WHERE game_pk = X AND status = 'assigned' AND assigned_to IS NULL;
    Should be 0, and no ticket is ever reported assigned twice.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = bearer(f"load|admin{random.randint(1000, 9999)}", roles=["admin"])

        member = load_member()
        resp = self.client.get("/api/users/me", headers=member)
        if resp.status_code == 200:
            MEMBER_IDS.append(resp.json()["id"])

        if not CONTENTION_GAME_PK:
            resp = self.client.get("/api/admin/allocation", headers=self.headers)
            if resp.status_code == 200:
                rows = [r for r in resp.json() if r["total_seats"] > 0]
                if rows:
                    globals()["CONTENTION_GAME_PK"] = rows[0]["game_pk"]
                    print(f"\n✓ Contention game {CONTENTION_GAME_PK} ({rows[0]['total_seats']} seats)\n")

    @tag("contention")
    @task(5)
    def assign_available_ticket(self):
        if not CONTENTION_GAME_PK or not MEMBER_IDS:
            return

        tickets = self.client.get(
            f"/api/games/{CONTENTION_GAME_PK}/tickets", name="/api/games/{pk}/tickets"
        ).json()
        available = [t["id"] for t in tickets if t["status"] == "available"]
        if not available:
            return

        with self.client.post("/api/admin/allocate",
            json={"assignments": [
                {"game_ticket_id": random.choice(available), "user_id": random.choice(MEMBER_IDS)}
            ]},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 200 and resp.json()["assigned"] in (0, 1):
                resp.success()  # 0 means another admin won the ticket
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("contention")
    @task(1)
    def revoke_assigned_ticket(self):
        """Keep the pool from draining so assignment contention continues."""
        if not CONTENTION_GAME_PK:
            return

        tickets = self.client.get(
            f"/api/games/{CONTENTION_GAME_PK}/tickets", name="/api/games/{pk}/tickets"
        ).json()
        assigned = [t["id"] for t in tickets if t["status"] == "assigned"]
        if not assigned:
            return

        with self.client.delete(f"/api/admin/allocate/{random.choice(assigned)}",
            headers=self.headers,
            name="/api/admin/allocate/{id}",
            catch_response=True
        ) as resp:
            if resp.status_code in (200, 404):
                resp.success()  # 404 means someone revoked it first
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. With REDIS_ENABLED=false on the server, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_games_cached(self):
        month = random.choice([None, 4, 5, 6, 7, 8, 9])
        params = {"month": month} if month else {}
        resp = self.client.get("/api/games", params=params, name="/api/games [cached]")
        if resp.status_code == 200 and not GAME_PKS:
            GAME_PKS.extend(g["game_pk"] for g in resp.json()["games"])

    @tag("throughput", "read")
    @task(3)
    def get_game_tickets(self):
        if GAME_PKS:
            self.client.get(f"/api/games/{random.choice(GAME_PKS)}/tickets",
                name="/api/games/{pk}/tickets")

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
        self.headers = load_member()

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def request_unknown_game(self):
        with self.client.post("/api/my/requests",
            json={"requests": [{"game_pk": 999999, "seats_requested": 1}]},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def request_too_many_seats(self):
        game_pk = random.choice(GAME_PKS) if GAME_PKS else 1
        with self.client.post("/api/my/requests",
            json={"requests": [{"game_pk": game_pk, "seats_requested": random.choice([0, 5, 99])}]},
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/my/requests",
            data="not json at all",
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def member_calls_admin_route(self):
        with self.client.get("/api/admin/allocation",
            headers=self.headers,
            catch_response=True
        ) as resp:
            self._expect(resp, [403])

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.get("/api/my/games", catch_response=True) as resp:
            self._expect(resp, [401])


class RealisticMember(HttpUser):
    """
    TEST 4: Realistic member workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates a member session:
      - Mostly browsing the schedule
      - Some requests and edits
      - Occasional release of held tickets
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = load_member()

    @task(50)
    def browse_schedule(self):
        resp = self.client.get("/api/games")
        if resp.status_code == 200:
            for game in resp.json().get("games", []):
                if game["home_away"] == "home" and game["game_pk"] not in GAME_PKS:
                    GAME_PKS.append(game["game_pk"])

    @task(15)
    def view_my_requests(self):
        self.client.get("/api/my/requests", headers=self.headers)

    @task(10)
    def request_seats(self):
        if GAME_PKS:
            self.client.post("/api/my/requests",
                json={"requests": [
                    {"game_pk": random.choice(GAME_PKS), "seats_requested": random.randint(1, 4)}
                ]},
                headers=self.headers)

    @task(3)
    def release_game(self):
        resp = self.client.get("/api/my/games", headers=self.headers)
        if resp.status_code == 200 and resp.json():
            game_pk = random.choice(resp.json())["game_pk"]
            self.client.post(f"/api/my/games/{game_pk}/release",
                headers=self.headers,
                name="/api/my/games/{pk}/release")
