"""
Round resolution: settle every bet on the table against one roll, move the
round along and report what happened.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from crapstable.core.craps.bets import ActiveBet, BetType, RollOutcome
from crapstable.core.craps.ledger import BalanceLedger, BetLedger, StatisticsCollector
from crapstable.core.craps.payouts import Payout, PayoutSign, resolve
from crapstable.core.craps.round_state import RoundEvent, RoundState, RoundStateMachine
from crapstable.core.logger import get_logger

logger = get_logger("craps.resolver")


@dataclass(frozen=True)
class BetResolution:
    bet: ActiveBet
    payout: Payout
    removed: bool

    def to_dict(self) -> dict:
        return {
            **self.bet.to_dict(),
            "result": self.payout.sign.value,
            "payout": self.payout.amount,
            "removed": self.removed,
        }


@dataclass(frozen=True)
class RoundSummary:
    """Everything a display layer needs after a roll."""

    roll: RollOutcome
    event: RoundEvent
    state: RoundState
    resolutions: Tuple[BetResolution, ...] = ()
    forfeited: Tuple[ActiveBet, ...] = ()
    # One-roll bets the roll did not decide; cleared with their stake.
    expired: Tuple[ActiveBet, ...] = ()
    total_payout: int = 0
    total_lost: int = 0
    # Payout less the stakes that came off the table this roll
    net_change: int = 0

    def to_dict(self) -> dict:
        return {
            "roll": self.roll.to_dict(),
            "event": self.event.value,
            "state": self.state.to_dict(),
            "results": [r.to_dict() for r in self.resolutions],
            "forfeited": [b.to_dict() for b in self.forfeited],
            "expired": [b.to_dict() for b in self.expired],
            "totalPayout": self.total_payout,
            "totalLost": self.total_lost,
            "netChange": self.net_change,
        }


@dataclass(frozen=True)
class ResetSummary:
    """Bets taken down by a table reset."""

    returned: Tuple[ActiveBet, ...] = ()
    # Contract bets that cannot be called off once a point is on
    forfeited: Tuple[ActiveBet, ...] = ()

    def to_dict(self) -> dict:
        return {
            "returned": [b.to_dict() for b in self.returned],
            "forfeited": [b.to_dict() for b in self.forfeited],
        }


@dataclass
class _Tally:
    resolutions: List[BetResolution] = field(default_factory=list)
    total_payout: int = 0
    total_lost: int = 0
    # Stakes that came off the table this roll
    stakes_settled: int = 0


class RoundResolver:
    """
    Owns the bet ledger and the round state machine for one table.

    Winnings are credited to ``balance``; wins and losses are reported to
    ``statistics``.
    """

    def __init__(
        self,
        ledger: BetLedger,
        state_machine: RoundStateMachine,
        balance: BalanceLedger,
        statistics: StatisticsCollector,
        repeat_winning_place_bets: bool = True,
    ):
        self.ledger = ledger
        self.state_machine = state_machine
        self._balance = balance
        self._statistics = statistics
        self.repeat_winning_place_bets = repeat_winning_place_bets

    def _stays_up_after_win(self, bet: ActiveBet) -> bool:
        return bet.bet_type.is_place and self.repeat_winning_place_bets

    def _settle(self, bet: ActiveBet, roll: RollOutcome, point: int, tally: _Tally):
        payout = resolve(bet, roll, point)

        if payout.sign is PayoutSign.NO_CHANGE:
            return

        removed = True
        if payout.sign is PayoutSign.WIN:
            self._balance.deposit(payout.amount)
            self._statistics.record_win(payout.amount - bet.amount)
            tally.total_payout += payout.amount
            removed = not self._stays_up_after_win(bet)
        elif payout.sign is PayoutSign.PUSH:
            self._balance.deposit(payout.amount)
            tally.total_payout += payout.amount
        else:
            self._statistics.record_loss(bet.amount)
            tally.total_lost += bet.amount

        if removed:
            self.ledger.remove(bet.bet_type)
            tally.stakes_settled += bet.amount
        tally.resolutions.append(BetResolution(bet=bet, payout=payout, removed=removed))

    def resolve(self, roll: RollOutcome) -> RoundSummary:
        point = self.state_machine.point_value
        tally = _Tally()

        seven_out = point != 0 and roll.total == 7
        for bet in self.ledger.snapshot():
            if seven_out and bet.bet_type.is_place:
                continue  # taken by forfeit_place_bets below
            self._settle(bet, roll, point, tally)

        event = self.state_machine.advance(roll.total)

        expired = self.ledger.remove_one_roll_bets()
        tally.total_lost += sum(bet.amount for bet in expired)
        tally.stakes_settled += sum(bet.amount for bet in expired)

        forfeited: List[ActiveBet] = []
        if event is RoundEvent.SEVEN_OUT:
            forfeited = self.ledger.forfeit_place_bets()
            tally.total_lost += sum(bet.amount for bet in forfeited)
            tally.stakes_settled += sum(bet.amount for bet in forfeited)

        if event.ends_round:
            self.ledger.clear_round()

        logger.info(
            f"Rolled {roll.total} {list(roll.dice)}: {event.value}, "
            f"paid {tally.total_payout}, lost {tally.total_lost}"
        )

        return RoundSummary(
            roll=roll,
            event=event,
            state=self.state_machine.state(),
            resolutions=tuple(tally.resolutions),
            forfeited=tuple(forfeited),
            expired=tuple(expired),
            total_payout=tally.total_payout,
            total_lost=tally.total_lost,
            net_change=tally.total_payout - tally.stakes_settled,
        )

    def reset(self) -> ResetSummary:
        """
        Back to a fresh comeout. Place bets stay where they are; one-roll
        bets come down with their stake returned, since no roll settled them.
        A pass line bet is returned only on the comeout. Once a point is on it
        is a contract bet, so it is lost rather than refunded.
        """
        point_on = self.state_machine.point_on
        self.state_machine.reset()

        returned = self.ledger.remove_one_roll_bets()
        forfeited: List[ActiveBet] = []
        pass_line = self.ledger.remove(BetType.PASS_LINE)
        if pass_line is not None:
            if point_on:
                self._statistics.record_loss(pass_line.amount)
                forfeited.append(pass_line)
            else:
                returned.append(pass_line)
        self.ledger.clear_round()

        for bet in returned:
            self._balance.deposit(bet.amount)
        if returned or forfeited:
            logger.info(
                f"Table reset returned {len(returned)} bet(s), "
                f"forfeited {len(forfeited)}"
            )
        return ResetSummary(returned=tuple(returned), forfeited=tuple(forfeited))
