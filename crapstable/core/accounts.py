"""
Player accounts: the money and statistics behind a seat at the table.
Features:
- Atomic withdrawals for stakes
- Win/loss statistics with win streaks
- Casino loans with interest for broke players
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

from crapstable.config import settings
from crapstable.core.craps.ledger import BalanceLedger, StatisticsCollector
from crapstable.core.exceptions import LoanError
from crapstable.core.logger import get_logger

logger = get_logger("accounts")

# Column name -> JSON name, in table order
ACCOUNT_FIELDS = {
    "account_id": "accountId",
    "username": "username",
    "current_money": "currentMoney",
    "total_wins": "totalWins",
    "total_losses": "totalLosses",
    "current_win_streak": "currentWinStreak",
    "best_win_streak": "bestWinStreak",
    "total_games_played": "totalGamesPlayed",
    "total_money_won": "totalMoneyWon",
    "total_money_lost": "totalMoneyLost",
    "total_loaned": "totalLoaned",
    "last_updated": "lastUpdated",
    "created_at": "createdAt",
}

# Fields a client may overwrite through an update
MUTABLE_FIELDS = tuple(
    key for key in ACCOUNT_FIELDS
    if key not in ("account_id", "username", "last_updated", "created_at")
)


def new_account_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PlayerAccount(BalanceLedger, StatisticsCollector):
    """In-memory view of one account row."""

    def __init__(
        self,
        username: str,
        account_id: Optional[str] = None,
        current_money: Optional[int] = None,
        total_wins: int = 0,
        total_losses: int = 0,
        current_win_streak: int = 0,
        best_win_streak: int = 0,
        total_games_played: int = 0,
        total_money_won: int = 0,
        total_money_lost: int = 0,
        total_loaned: int = 0,
        last_updated: Optional[str] = None,
        created_at: Optional[str] = None,
    ):
        self.account_id = account_id or new_account_id()
        self.username = username
        self.current_money = (
            settings.economy.starting_money if current_money is None else current_money
        )
        self.total_wins = total_wins
        self.total_losses = total_losses
        self.current_win_streak = current_win_streak
        self.best_win_streak = best_win_streak
        self.total_games_played = total_games_played
        self.total_money_won = total_money_won
        self.total_money_lost = total_money_lost
        self.total_loaned = total_loaned
        self.last_updated = last_updated or utc_now()
        self.created_at = created_at or self.last_updated

    @classmethod
    def from_row(cls, row) -> "PlayerAccount":
        """Build from a database row (sqlite3.Row or dict)."""
        return cls(**{key: row[key] for key in ACCOUNT_FIELDS})

    def to_row(self) -> Dict:
        return {key: getattr(self, key) for key in ACCOUNT_FIELDS}

    def to_dict(self) -> Dict:
        """camelCase representation served by the API."""
        return {json_key: getattr(self, key) for key, json_key in ACCOUNT_FIELDS.items()}

    def touch(self):
        self.last_updated = utc_now()

    # ==================== Balance ====================

    def balance(self) -> int:
        return self.current_money

    def withdraw(self, amount: int) -> bool:
        if amount < 0:
            logger.warning("Cannot withdraw a negative amount")
            return False
        if self.current_money < amount:
            logger.info(
                f"Insufficient funds for {self.username}. "
                f"Have: {self.current_money}, Need: {amount}"
            )
            return False
        self.current_money -= amount
        self.touch()
        return True

    def deposit(self, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot deposit a negative amount")
        self.current_money += amount
        self.touch()

    def is_out_of_money(self) -> bool:
        return self.current_money <= 0

    # ==================== Statistics ====================

    def record_win(self, amount: int) -> None:
        self.total_wins += 1
        self.total_games_played += 1
        self.current_win_streak += 1
        self.best_win_streak = max(self.best_win_streak, self.current_win_streak)
        self.total_money_won += max(amount, 0)
        self.touch()

    def record_loss(self, amount: int) -> None:
        self.total_losses += 1
        self.total_games_played += 1
        self.current_win_streak = 0
        self.total_money_lost += max(amount, 0)
        self.touch()

    def win_rate(self) -> float:
        """Win rate as a percentage."""
        if self.total_games_played == 0:
            return 0.0
        return self.total_wins / self.total_games_played * 100

    def reset_statistics(self):
        """Clear statistics but keep the money and the debt."""
        self.total_wins = 0
        self.total_losses = 0
        self.current_win_streak = 0
        self.best_win_streak = 0
        self.total_games_played = 0
        self.total_money_won = 0
        self.total_money_lost = 0
        self.touch()

    # ==================== Loans ====================

    def can_request_loan(self) -> bool:
        return self.current_money < settings.economy.loan_threshold

    def has_loan(self) -> bool:
        return self.total_loaned > 0

    def request_loan(self) -> int:
        """
        Borrow from the casino. Only allowed below the loan threshold.
        The player receives loan_amount; loan_debt (with interest) is added
        to their debt. Returns the amount received.
        """
        economy = settings.economy
        if not self.can_request_loan():
            raise LoanError(
                f"Cannot request a loan with {self.current_money}, "
                f"need less than {economy.loan_threshold}"
            )
        self.current_money += economy.loan_amount
        self.total_loaned += economy.loan_debt
        self.touch()
        logger.info(
            f"Loaned {economy.loan_amount} to {self.username}. "
            f"Debt added: {economy.loan_debt}. Total debt: {self.total_loaned}"
        )
        return economy.loan_amount

    def repay_loan(self, amount: int) -> int:
        """Repay part of the debt. Capped at the outstanding debt. Returns the amount repaid."""
        if amount <= 0:
            raise LoanError("Repayment amount must be positive")
        if not self.has_loan():
            raise LoanError("No loan to repay")
        if self.current_money < amount:
            raise LoanError(
                f"Insufficient funds. Have: {self.current_money}, trying to repay: {amount}"
            )

        repaid = min(amount, self.total_loaned)
        self.current_money -= repaid
        self.total_loaned -= repaid
        self.touch()
        logger.info(f"{self.username} repaid {repaid}. Remaining debt: {self.total_loaned}")
        return repaid
