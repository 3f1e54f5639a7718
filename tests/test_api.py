import tempfile
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from crapstable.config import RateLimitConfig, settings
from crapstable.core.database import Database, get_db
from crapstable.core.rate_limit import limiter
from crapstable.core.tables import table_registry
from crapstable.main import create_app


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = Database(Path(self.tmp.name) / "accounts.db")

        self.app = create_app()
        self.app.dependency_overrides[get_db] = lambda: self.db
        self.client = TestClient(self.app)

        self._rate_limit = settings.rate_limit
        settings.rate_limit = RateLimitConfig(enabled=False)
        limiter.reset()

    def tearDown(self):
        settings.rate_limit = self._rate_limit
        limiter.reset()
        self.db.close()
        self.tmp.cleanup()

    def create(self, username="alice", **extra):
        response = self.client.post("/api/accounts", json={"username": username, **extra})
        self.assertEqual(response.status_code, 201, response.text)
        account = response.json()
        self.addCleanup(table_registry.discard, account["accountId"])
        return account

    def bet(self, account_id, bet_type, amount):
        return self.client.post(
            f"/api/table/{account_id}/bets", json={"betType": bet_type, "amount": amount}
        )

    def roll(self, account_id, dice):
        response = self.client.post(f"/api/table/{account_id}/roll", json={"dice": dice})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()


class TestHealth(ApiTestCase):
    def test_root(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertEqual(response.headers["X-Content-Type-Options"], "nosniff")

    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.json(), {"status": "ok"})
        self.assertEqual(response.headers["Cache-Control"], "no-store")


class TestAccounts(ApiTestCase):
    def test_create_account(self):
        account = self.create()
        self.assertEqual(account["username"], "alice")
        self.assertEqual(account["currentMoney"], settings.economy.starting_money)
        self.assertEqual(account["totalGamesPlayed"], 0)
        self.assertEqual(account["createdAt"], account["lastUpdated"])

    def test_create_with_client_id(self):
        account = self.create("bob", accountId="device-42", currentMoney=75)
        self.assertEqual(account["accountId"], "device-42")
        self.assertEqual(account["currentMoney"], 75)

    def test_duplicate_username_conflicts(self):
        self.create()
        response = self.client.post("/api/accounts", json={"username": "alice"})
        self.assertEqual(response.status_code, 409)
        self.assertIn("error", response.json())

    def test_username_required(self):
        for body in ({}, {"username": "   "}):
            response = self.client.post("/api/accounts", json=body)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json(), {"error": "Username is required"})

    def test_get_by_username(self):
        created = self.create()
        response = self.client.get("/api/accounts/alice")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["accountId"], created["accountId"])

        response = self.client.get("/api/accounts/nobody")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Account not found"})

    def test_update_account(self):
        account = self.create()
        response = self.client.put(
            f"/api/accounts/{account['accountId']}",
            json={"currentMoney": 4321, "totalWins": 3},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["currentMoney"], 4321)
        self.assertEqual(response.json()["totalWins"], 3)
        self.assertEqual(response.json()["totalLosses"], 0)

        response = self.client.put("/api/accounts/missing", json={"currentMoney": 1})
        self.assertEqual(response.status_code, 404)

    def test_delete_account(self):
        account = self.create()
        response = self.client.delete(f"/api/accounts/{account['accountId']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/api/accounts/alice").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/accounts/{account['accountId']}").status_code, 404)
        self.assertEqual(self.client.get(f"/api/table/{account['accountId']}").status_code, 404)

    def test_leaderboard(self):
        self.create("poor", currentMoney=5)
        self.create("rich", currentMoney=9000)
        response = self.client.get("/api/leaderboard", params={"limit": 1})
        self.assertEqual([a["username"] for a in response.json()["leaderboard"]], ["rich"])

    def test_loan_and_repay(self):
        account = self.create(currentMoney=10)
        account_id = account["accountId"]

        response = self.client.post(f"/api/accounts/{account_id}/loan")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["received"], settings.economy.loan_amount)
        self.assertEqual(data["balance"], 10 + settings.economy.loan_amount)
        self.assertEqual(data["totalLoaned"], settings.economy.loan_debt)

        # Too rich for a second loan
        self.assertEqual(self.client.post(f"/api/accounts/{account_id}/loan").status_code, 400)

        response = self.client.post(f"/api/accounts/{account_id}/repay", json={"amount": 100})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["repaid"], 100)
        stored = self.client.get("/api/accounts/alice").json()
        self.assertEqual(stored["totalLoaned"], settings.economy.loan_debt - 100)

    def test_reset_statistics(self):
        account = self.create()
        account_id = account["accountId"]
        self.bet(account_id, "pass_line", 10)
        self.roll(account_id, [3, 4])

        response = self.client.post(f"/api/accounts/{account_id}/reset-stats")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["totalWins"], 0)
        self.assertEqual(response.json()["currentMoney"], settings.economy.starting_money + 10)


class TestTable(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.account_id = self.create(currentMoney=1000)["accountId"]
        self.url = f"/api/table/{self.account_id}"

    def test_fresh_table(self):
        data = self.client.get(self.url).json()
        self.assertEqual(data["balance"], 1000)
        self.assertTrue(data["state"]["isComeout"])
        self.assertEqual(data["activeBets"], [])
        self.assertIsNone(data["lastResult"])
        self.assertEqual(data["betLimits"]["min"], settings.craps.min_bet)

    def test_unknown_account(self):
        self.assertEqual(self.client.get("/api/table/missing").status_code, 404)
        self.assertEqual(self.bet("missing", "field", 5).status_code, 404)

    def test_bet_is_saved_to_the_account(self):
        response = self.bet(self.account_id, "pass_line", 10)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["bet"]["betType"], "pass_line")
        self.assertEqual(response.json()["balance"], 990)
        self.assertEqual(self.client.get("/api/accounts/alice").json()["currentMoney"], 990)

    def test_natural(self):
        self.bet(self.account_id, "pass_line", 10)
        data = self.roll(self.account_id, [5, 6])

        self.assertEqual(data["result"]["event"], "natural")
        self.assertEqual(data["result"]["totalPayout"], 20)
        self.assertEqual(data["result"]["netChange"], 10)
        self.assertEqual(data["balance"], 1010)
        self.assertEqual(data["recentRolls"][0]["total"], 11)

        stored = self.client.get("/api/accounts/alice").json()
        self.assertEqual(stored["currentMoney"], 1010)
        self.assertEqual(stored["totalWins"], 1)

    def test_server_rolls_when_no_dice_are_sent(self):
        response = self.client.post(f"{self.url}/roll")
        self.assertEqual(response.status_code, 200)
        total = response.json()["result"]["roll"]["total"]
        self.assertTrue(2 <= total <= 12)

    def test_rejected_bets(self):
        cases = [
            ("place_6", 10, "invalid_state"),
            ("field", 0, "invalid_amount"),
            ("field", settings.craps.max_bet + 1, "invalid_amount"),
        ]
        for bet_type, amount, reason in cases:
            response = self.bet(self.account_id, bet_type, amount)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json()["reason"], reason)

        self.bet(self.account_id, "field", 5)
        self.assertEqual(self.bet(self.account_id, "field", 5).json()["reason"], "already_placed")
        self.assertEqual(self.client.get(self.url).json()["balance"], 995)

    def test_insufficient_funds(self):
        self.client.put(f"/api/accounts/{self.account_id}", json={"currentMoney": 5})
        response = self.bet(self.account_id, "field", 10)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["reason"], "insufficient_funds")

    def test_unknown_bet_type(self):
        self.assertEqual(self.bet(self.account_id, "big_red", 10).status_code, 422)

    def test_invalid_dice(self):
        for dice in ([7, 1], [3], [1, 2, 3]):
            response = self.client.post(f"{self.url}/roll", json={"dice": dice})
            self.assertEqual(response.status_code, 422)

    def test_two_step_roll(self):
        self.bet(self.account_id, "pass_line", 10)

        response = self.client.post(f"{self.url}/roll/start")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["state"]["rollInProgress"])

        self.assertEqual(self.bet(self.account_id, "field", 5).json()["reason"], "invalid_state")
        self.assertEqual(self.client.post(f"{self.url}/roll/start").status_code, 409)
        self.assertEqual(self.client.post(f"{self.url}/roll", json={}).status_code, 409)

        response = self.client.post(f"{self.url}/roll/complete", json={"dice": [2, 2]})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["result"]["event"], "point_established")
        self.assertEqual(data["state"]["pointValue"], 4)
        self.assertFalse(data["state"]["rollInProgress"])

        response = self.client.post(f"{self.url}/roll/complete", json={"dice": [2, 2]})
        self.assertEqual(response.status_code, 409)

    def test_seven_out(self):
        self.bet(self.account_id, "pass_line", 10)
        self.roll(self.account_id, [4, 2])
        self.bet(self.account_id, "place_8", 12)

        data = self.roll(self.account_id, [6, 1])

        self.assertEqual(data["result"]["event"], "seven_out")
        self.assertEqual(data["result"]["totalLost"], 22)
        self.assertEqual([b["betType"] for b in data["result"]["forfeited"]], ["place_8"])
        self.assertEqual(data["activeBets"], [])
        self.assertEqual(data["balance"], 978)

    def test_reset_returns_bets(self):
        self.bet(self.account_id, "pass_line", 10)
        self.roll(self.account_id, [3, 3])
        self.bet(self.account_id, "place_5", 10)
        self.bet(self.account_id, "any_craps", 5)

        response = self.client.post(f"{self.url}/reset")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual([b["betType"] for b in data["returned"]], ["any_craps"])
        self.assertEqual([b["betType"] for b in data["forfeited"]], ["pass_line"])
        self.assertEqual([b["betType"] for b in data["activeBets"]], ["place_5"])
        self.assertEqual(data["balance"], 980)
        self.assertEqual(self.client.get("/api/accounts/alice").json()["currentMoney"], 980)
        self.assertTrue(data["state"]["isComeout"])


class TestRateLimit(ApiTestCase):
    def test_table_requests_are_limited(self):
        account_id = self.create()["accountId"]
        settings.rate_limit = RateLimitConfig(enabled=True, table_requests="5/minute")

        for i in range(5):
            response = self.client.post(f"/api/table/{account_id}/roll", json={"dice": [2, 3]})
            self.assertNotEqual(
                response.status_code, 429, f"Request {i+1}/6 should have succeeded."
            )

        response = self.client.post(f"/api/table/{account_id}/roll", json={"dice": [2, 3]})
        self.assertEqual(response.status_code, 429)

    def test_table_state_is_limited(self):
        account_id = self.create()["accountId"]
        settings.rate_limit = RateLimitConfig(enabled=True, table_requests="3/minute")

        for _ in range(3):
            self.assertEqual(self.client.get(f"/api/table/{account_id}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/table/{account_id}").status_code, 429)

    def test_leaderboard_is_limited(self):
        settings.rate_limit = RateLimitConfig(enabled=True, api_requests="2/minute")

        for _ in range(2):
            self.assertEqual(self.client.get("/api/leaderboard").status_code, 200)
        self.assertEqual(self.client.get("/api/leaderboard").status_code, 429)

    def test_disabled_limit(self):
        account_id = self.create()["accountId"]
        for _ in range(10):
            response = self.client.post(f"/api/table/{account_id}/roll", json={"dice": [2, 3]})
            self.assertEqual(response.status_code, 200)


if __name__ == "__main__":
    unittest.main()
