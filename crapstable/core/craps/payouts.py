"""
Craps pay table.

Every function here is pure: given a bet, a settled roll and the current
point, say how much money comes back. Amounts always include the stake.
"""

import math
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction

from crapstable.core.craps.bets import ActiveBet, BetType, RollOutcome
from crapstable.core.craps.round_state import CRAPS, NATURALS


class PayoutSign(Enum):
    WIN = "win"
    LOSS = "loss"
    PUSH = "push"  # stake handed back, no profit
    NO_CHANGE = "no_change"  # bet stays up, no money moves


@dataclass(frozen=True)
class Payout:
    amount: int
    sign: PayoutSign


NO_CHANGE = Payout(0, PayoutSign.NO_CHANGE)
LOSS = Payout(0, PayoutSign.LOSS)

# Total returned per unit staked, stake included.
PLACE_RETURNS = {
    4: Fraction(14, 5),  # 9:5
    10: Fraction(14, 5),
    5: Fraction(12, 5),  # 7:5
    9: Fraction(12, 5),
    6: Fraction(13, 6),  # 7:6
    8: Fraction(13, 6),
}
HARD_WAY_RETURNS = {
    4: 8,  # 7:1
    10: 8,
    6: 10,  # 9:1
    8: 10,
}
PASS_LINE_RETURN = 2
FIELD_RETURN = 2
ANY_CRAPS_RETURN = 8

FIELD_WINNERS = (2, 12)
FIELD_PUSHES = (3, 4, 9, 10, 11)


def round_half_up(value: Fraction) -> int:
    """Nearest integer, halves rounded up."""
    return math.floor(value + Fraction(1, 2))


def win(amount) -> Payout:
    return Payout(int(amount), PayoutSign.WIN)


def resolve_pass_line(stake: int, roll: RollOutcome, point: int) -> Payout:
    if point == 0:
        if roll.total in NATURALS:
            return win(stake * PASS_LINE_RETURN)
        if roll.total in CRAPS:
            return LOSS
        return NO_CHANGE

    if roll.total == point:
        return win(stake * PASS_LINE_RETURN)
    if roll.total == 7:
        return LOSS
    return NO_CHANGE


def resolve_place(stake: int, target: int, roll: RollOutcome) -> Payout:
    if roll.total == target:
        return win(round_half_up(stake * PLACE_RETURNS[target]))
    if roll.total == 7:
        return LOSS
    return NO_CHANGE


def resolve_field(stake: int, roll: RollOutcome) -> Payout:
    if roll.total in FIELD_WINNERS:
        return win(stake * FIELD_RETURN)
    if roll.total in FIELD_PUSHES:
        return Payout(stake, PayoutSign.PUSH)
    return LOSS


def resolve_any_craps(stake: int, roll: RollOutcome) -> Payout:
    if roll.total in CRAPS:
        return win(stake * ANY_CRAPS_RETURN)
    return LOSS


def resolve_hard_way(stake: int, target: int, roll: RollOutcome) -> Payout:
    if roll.total == target:
        if roll.is_hard_way:
            return win(stake * HARD_WAY_RETURNS[target])
        return LOSS  # easy way
    if roll.total == 7:
        return LOSS
    return NO_CHANGE


def resolve(bet: ActiveBet, roll: RollOutcome, point: int = 0) -> Payout:
    """
    Settle one bet against a roll.

    ``point`` is the point in effect when the dice were thrown, 0 on a comeout.
    """
    bet_type = bet.bet_type
    if bet_type is BetType.PASS_LINE:
        return resolve_pass_line(bet.amount, roll, point)
    if bet_type.is_place:
        return resolve_place(bet.amount, bet_type.target_number, roll)
    if bet_type is BetType.FIELD:
        return resolve_field(bet.amount, roll)
    if bet_type is BetType.ANY_CRAPS:
        return resolve_any_craps(bet.amount, roll)
    if bet_type.is_hard_way:
        return resolve_hard_way(bet.amount, bet_type.target_number, roll)
    raise ValueError(f"Unknown bet type: {bet_type}")
