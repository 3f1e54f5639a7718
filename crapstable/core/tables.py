"""
Table registry - one craps table per account, kept in memory.

Every operation reloads the account from the database, runs against the
table under the seat's lock and writes the account back.
"""

import threading
from collections import deque
from contextlib import contextmanager
from typing import Deque, Dict, Iterator, Optional, Sequence

from crapstable.config import settings
from crapstable.core.accounts import ACCOUNT_FIELDS, PlayerAccount
from crapstable.core.craps import BetError, BetType, CrapsTable, PlaceBetResult, RoundSummary
from crapstable.core.craps.dice import outcome_from_dice, roll_dice
from crapstable.core.database import Database
from crapstable.core.exceptions import RollStateError
from crapstable.core.logger import get_logger

logger = get_logger("tables")

HISTORY_SIZE = 10


class TableSession:
    """A seat: the player's account, their table and the recent rolls."""

    def __init__(self, account: PlayerAccount):
        self.account = account
        self.table = CrapsTable(
            balance=account,
            statistics=account,
            repeat_winning_place_bets=settings.craps.repeat_winning_place_bets,
        )
        self.lock = threading.Lock()
        self.history: Deque[dict] = deque(maxlen=HISTORY_SIZE)
        self.last_summary: Optional[RoundSummary] = None
        self.table.subscribe(self._on_round)

    def _on_round(self, summary: RoundSummary):
        self.last_summary = summary
        self.history.appendleft(summary.roll.to_dict())

    def refresh(self, stored: PlayerAccount):
        """Pick up changes written to the database since the last call."""
        for key in ACCOUNT_FIELDS:
            setattr(self.account, key, getattr(stored, key))

    def close(self):
        self.table.unsubscribe(self._on_round)

    def to_dict(self) -> dict:
        account = self.account
        return {
            "accountId": account.account_id,
            "username": account.username,
            "balance": account.balance(),
            "outOfMoney": account.is_out_of_money(),
            "canRequestLoan": account.can_request_loan(),
            "totalLoaned": account.total_loaned,
            "winRate": round(account.win_rate(), 2),
            "state": self.table.state.to_dict(),
            "activeBets": [bet.to_dict() for bet in self.table.get_active_bets()],
            "recentRolls": list(self.history),
            "lastResult": self.last_summary.to_dict() if self.last_summary else None,
            "betLimits": {
                "min": settings.craps.min_bet,
                "max": settings.craps.max_bet,
                "presets": settings.craps.bet_presets,
            },
        }


class TableRegistry:
    """Open tables keyed by account id."""

    def __init__(self):
        self._sessions: Dict[str, TableSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    @contextmanager
    def seat(
        self, db: Database, account_id: str, persist: bool = True
    ) -> Iterator[TableSession]:
        """
        Hold the seat for ``account_id`` with a fresh account loaded, then
        write the account back unless ``persist`` is off.
        Raises AccountNotFoundError for unknown ids.
        """
        with self._lock:
            session = self._sessions.get(account_id)
            if session is None:
                session = TableSession(db.get_account(account_id))
                self._sessions[account_id] = session
                logger.info(
                    f"Opened table for {session.account.username}",
                    extra={"account": account_id},
                )

        with session.lock:
            # Reload under the seat lock; a queued caller must see the last save
            session.refresh(db.get_account(account_id))
            yield session
            if persist:
                db.save_account(session.account)

    def discard(self, account_id: str):
        """Drop a table, e.g. when its account is deleted."""
        with self._lock:
            session = self._sessions.pop(account_id, None)
        if session is not None:
            session.close()
            logger.info("Closed table", extra={"account": account_id})

    # ==================== Table operations ====================

    def state(self, db: Database, account_id: str) -> dict:
        with self.seat(db, account_id, persist=False) as session:
            return session.to_dict()

    def place_bet(
        self, db: Database, account_id: str, bet_type: BetType, amount: int
    ) -> PlaceBetResult:
        limits = settings.craps
        with self.seat(db, account_id) as session:
            if not limits.min_bet <= amount <= limits.max_bet:
                return PlaceBetResult(error=BetError.INVALID_AMOUNT)
            return session.table.place_bet(bet_type, amount)

    def roll(
        self, db: Database, account_id: str, dice: Optional[Sequence[int]] = None
    ) -> RoundSummary:
        """Throw and settle in one step. Reported dice replace the server's roll."""
        with self.seat(db, account_id) as session:
            table = session.table
            if not table.can_roll():
                raise RollStateError("A roll is already in progress")
            roll = outcome_from_dice(dice if dice else roll_dice())
            table.on_roll_started()
            return table.on_roll_completed(roll.total, roll.dice)

    def start_roll(self, db: Database, account_id: str) -> dict:
        with self.seat(db, account_id) as session:
            if not session.table.can_roll():
                raise RollStateError("A roll is already in progress")
            session.table.on_roll_started()
            return session.to_dict()

    def complete_roll(
        self, db: Database, account_id: str, dice: Sequence[int]
    ) -> RoundSummary:
        with self.seat(db, account_id) as session:
            if not session.table.is_roll_in_progress:
                raise RollStateError("No roll in progress")
            roll = outcome_from_dice(dice)
            return session.table.on_roll_completed(roll.total, roll.dice)

    def reset(self, db: Database, account_id: str) -> dict:
        with self.seat(db, account_id) as session:
            summary = session.table.reset()
            return {**summary.to_dict(), **session.to_dict()}

    # ==================== Account operations ====================

    def request_loan(self, db: Database, account_id: str) -> dict:
        with self.seat(db, account_id) as session:
            received = session.account.request_loan()
            return {"received": received, **session.to_dict()}

    def repay_loan(self, db: Database, account_id: str, amount: int) -> dict:
        with self.seat(db, account_id) as session:
            repaid = session.account.repay_loan(amount)
            return {"repaid": repaid, **session.to_dict()}

    def reset_statistics(self, db: Database, account_id: str) -> PlayerAccount:
        with self.seat(db, account_id) as session:
            session.account.reset_statistics()
            return session.account


table_registry = TableRegistry()
