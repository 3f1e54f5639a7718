"""
Bet ledger: the wagers currently on the table for one player.

The ledger takes money through a BalanceLedger and reports forfeited place
bets to a StatisticsCollector. Both are supplied by the owner of the table.
"""

import itertools
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from crapstable.core.craps.bets import (
    ActiveBet,
    BetError,
    BetType,
    PlaceBetResult,
)
from crapstable.core.craps.round_state import RoundState
from crapstable.core.logger import get_logger

logger = get_logger("craps.ledger")


class BalanceLedger(ABC):
    """Where stakes come from and winnings go."""

    @abstractmethod
    def withdraw(self, amount: int) -> bool:
        """Take the full amount or nothing. Returns False when refused."""

    @abstractmethod
    def deposit(self, amount: int) -> None:
        pass

    @abstractmethod
    def balance(self) -> int:
        pass


class StatisticsCollector(ABC):
    """Receives a call for every bet that is won or lost."""

    @abstractmethod
    def record_win(self, amount: int) -> None:
        pass

    @abstractmethod
    def record_loss(self, amount: int) -> None:
        pass


class BetLedger:
    """Active bets keyed by type. Each type is on the table at most once."""

    def __init__(self, balance: BalanceLedger, statistics: StatisticsCollector):
        self._balance = balance
        self._statistics = statistics
        self._bets: Dict[BetType, ActiveBet] = {}
        self._ids = itertools.count(1)
        self.pass_line_placed = False

    def __len__(self) -> int:
        return len(self._bets)

    def _check_legal(self, bet_type: BetType, state: RoundState) -> Optional[BetError]:
        if state.roll_in_progress:
            return BetError.INVALID_STATE
        if bet_type is BetType.PASS_LINE:
            if not state.is_comeout or self.pass_line_placed:
                return BetError.INVALID_STATE
            return None
        if bet_type.is_place:
            if not state.point_on:
                return BetError.INVALID_STATE
            if bet_type in self._bets:
                return BetError.DUPLICATE_BET
            return None
        if bet_type in self._bets:
            # One-roll bets do not stack
            return BetError.ALREADY_PLACED
        return None

    def place(self, bet_type: BetType, amount: int, state: RoundState) -> PlaceBetResult:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            return PlaceBetResult(error=BetError.INVALID_AMOUNT)

        error = self._check_legal(bet_type, state)
        if error is not None:
            logger.debug(f"Refused {bet_type.value} bet of {amount}: {error.value}")
            return PlaceBetResult(error=error)

        if not self._balance.withdraw(amount):
            logger.debug(f"Refused {bet_type.value} bet of {amount}: insufficient funds")
            return PlaceBetResult(error=BetError.INSUFFICIENT_FUNDS)

        bet = ActiveBet(bet_id=next(self._ids), bet_type=bet_type, amount=amount)
        self._bets[bet_type] = bet
        if bet_type is BetType.PASS_LINE:
            self.pass_line_placed = True

        logger.info(f"Placed {bet_type.value} bet of {amount}")
        return PlaceBetResult(bet=bet)

    def query(self, bet_type: BetType) -> Optional[ActiveBet]:
        return self._bets.get(bet_type)

    def snapshot(self) -> Tuple[ActiveBet, ...]:
        return tuple(self._bets.values())

    def remove(self, bet_type: BetType) -> Optional[ActiveBet]:
        return self._bets.pop(bet_type, None)

    def remove_one_roll_bets(self) -> List[ActiveBet]:
        """Clear field, any craps and hard way bets. Returns what was removed."""
        removed = [bet for bet in self._bets.values() if bet.bet_type.is_one_roll]
        for bet in removed:
            del self._bets[bet.bet_type]
        return removed

    def forfeit_place_bets(self) -> List[ActiveBet]:
        """Take down every place bet as a loss."""
        forfeited = [bet for bet in self._bets.values() if bet.bet_type.is_place]
        for bet in forfeited:
            del self._bets[bet.bet_type]
            self._statistics.record_loss(bet.amount)
        if forfeited:
            logger.info(f"Forfeited {len(forfeited)} place bet(s) on seven out")
        return forfeited

    def clear_round(self):
        """Start a new round: the pass line may be bet again."""
        self.pass_line_placed = False
