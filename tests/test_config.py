import os
import unittest
from unittest.mock import patch

from crapstable.config import AppConfig, load_config


class TestConfig(unittest.TestCase):
    def test_defaults(self):
        config = AppConfig()
        self.assertEqual(config.server.port, 3000)
        self.assertEqual(config.craps.min_bet, 1)
        self.assertTrue(config.craps.repeat_winning_place_bets)
        self.assertLess(config.economy.loan_amount, config.economy.loan_debt)

    @patch.dict(
        os.environ,
        {
            "SERVER_PORT": "8080",
            "STARTING_MONEY": "250",
            "REPEAT_WINNING_PLACE_BETS": "false",
            "RATE_LIMIT_TABLE_REQUESTS": "10/second",
            "DB_PATH": "/tmp/craps-test.db",
        },
    )
    def test_environment_overrides(self):
        config = load_config()
        self.assertEqual(config.server.port, 8080)
        self.assertEqual(config.economy.starting_money, 250)
        self.assertFalse(config.craps.repeat_winning_place_bets)
        self.assertEqual(config.rate_limit.table_requests, "10/second")
        self.assertEqual(str(config.paths.get_db_path()), "/tmp/craps-test.db")

    @patch.dict(os.environ, {"SERVER_PORT": "not-a-port"})
    def test_bad_integer_is_ignored(self):
        self.assertEqual(load_config().server.port, 3000)


if __name__ == "__main__":
    unittest.main()
