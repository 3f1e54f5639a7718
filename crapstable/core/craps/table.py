"""
CrapsTable - the entry point the dice and the display layer talk to.

The dice collaborator calls on_roll_started() when the dice leave the hand
and on_roll_completed() once they settle. The display layer places bets,
reads the round state and subscribes to RoundSummary notifications.
"""

from typing import Callable, List, Optional, Sequence, Tuple

from crapstable.core.craps.bets import ActiveBet, BetType, PlaceBetResult, RollOutcome
from crapstable.core.craps.ledger import BalanceLedger, BetLedger, StatisticsCollector
from crapstable.core.craps.resolver import ResetSummary, RoundResolver, RoundSummary
from crapstable.core.craps.round_state import RoundState, RoundStateMachine
from crapstable.core.logger import get_logger

logger = get_logger("craps.table")

RoundListener = Callable[[RoundSummary], None]


class CrapsTable:
    """A single player's seat at a craps table."""

    def __init__(
        self,
        balance: BalanceLedger,
        statistics: StatisticsCollector,
        repeat_winning_place_bets: bool = True,
    ):
        self._state = RoundStateMachine()
        self._ledger = BetLedger(balance, statistics)
        self._resolver = RoundResolver(
            self._ledger,
            self._state,
            balance,
            statistics,
            repeat_winning_place_bets=repeat_winning_place_bets,
        )
        self._listeners: List[RoundListener] = []

    # ==================== Observers ====================

    def subscribe(self, listener: RoundListener):
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: RoundListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, summary: RoundSummary):
        for listener in list(self._listeners):
            try:
                listener(summary)
            except Exception:
                logger.exception(f"Round listener {listener!r} failed")

    # ==================== Betting ====================

    def place_bet(self, bet_type: BetType, amount: int) -> PlaceBetResult:
        return self._ledger.place(bet_type, amount, self._state.state())

    def get_active_bets(self) -> Tuple[ActiveBet, ...]:
        return self._ledger.snapshot()

    def query_bet(self, bet_type: BetType) -> Optional[ActiveBet]:
        return self._ledger.query(bet_type)

    # ==================== Rolling ====================

    def can_roll(self) -> bool:
        return not self._state.roll_in_progress

    def on_roll_started(self):
        self._state.start_roll()

    def on_roll_completed(
        self, total: int, dice: Optional[Sequence[int]] = None
    ) -> Optional[RoundSummary]:
        """
        Settle the table for a finished roll.

        Returns None, leaving the table untouched, when no roll was started.
        """
        if not self._state.roll_in_progress:
            logger.warning("on_roll_completed called but no roll was in progress")
            return None

        roll = RollOutcome.from_roll(total, dice)
        self._state.finish_roll()
        summary = self._resolver.resolve(roll)
        self._notify(summary)
        return summary

    def reset(self) -> ResetSummary:
        """Start over on a comeout roll. Reports the bets handed back or lost."""
        return self._resolver.reset()

    # ==================== State ====================

    @property
    def state(self) -> RoundState:
        return self._state.state()

    @property
    def is_point_on(self) -> bool:
        return self._state.point_on

    @property
    def point_value(self) -> int:
        return self._state.point_value

    @property
    def is_comeout(self) -> bool:
        return self._state.is_comeout

    @property
    def is_roll_in_progress(self) -> bool:
        return self._state.roll_in_progress

    @property
    def repeat_winning_place_bets(self) -> bool:
        return self._resolver.repeat_winning_place_bets
