"""
Craps bet types and the value objects passed around a table.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple


POINT_NUMBERS = (4, 5, 6, 8, 9, 10)


class BetType(Enum):
    """Every wager the table accepts."""

    PASS_LINE = "pass_line"
    PLACE_4 = "place_4"
    PLACE_5 = "place_5"
    PLACE_6 = "place_6"
    PLACE_8 = "place_8"
    PLACE_9 = "place_9"
    PLACE_10 = "place_10"
    FIELD = "field"
    ANY_CRAPS = "any_craps"
    HARD_4 = "hard_4"
    HARD_6 = "hard_6"
    HARD_8 = "hard_8"
    HARD_10 = "hard_10"

    @property
    def is_place(self) -> bool:
        return self in PLACE_BETS

    @property
    def is_hard_way(self) -> bool:
        return self in HARD_WAY_BETS

    @property
    def is_one_roll(self) -> bool:
        """Field, any craps and the hard ways only live for a single roll."""
        return self in ONE_ROLL_BETS

    @property
    def target_number(self) -> int:
        """The number a place or hard way bet is riding on, 0 otherwise."""
        if self.is_place or self.is_hard_way:
            return int(self.value.rsplit("_", 1)[1])
        return 0

    @classmethod
    def place_on(cls, number: int) -> "BetType":
        return cls(f"place_{number}")


PLACE_BETS = frozenset({
    BetType.PLACE_4, BetType.PLACE_5, BetType.PLACE_6,
    BetType.PLACE_8, BetType.PLACE_9, BetType.PLACE_10,
})
HARD_WAY_BETS = frozenset({
    BetType.HARD_4, BetType.HARD_6, BetType.HARD_8, BetType.HARD_10,
})
ONE_ROLL_BETS = HARD_WAY_BETS | {BetType.FIELD, BetType.ANY_CRAPS}


@dataclass(frozen=True)
class ActiveBet:
    """A wager sitting on the table."""

    bet_id: int
    bet_type: BetType
    amount: int

    @property
    def target_number(self) -> int:
        return self.bet_type.target_number

    def to_dict(self) -> dict:
        return {
            "betId": self.bet_id,
            "betType": self.bet_type.value,
            "amount": self.amount,
            "targetNumber": self.target_number,
        }


@dataclass(frozen=True)
class RollOutcome:
    """
    A settled roll. ``dice`` may be empty when the caller only knows the
    total; such a roll is never a hard way.
    """

    total: int
    dice: Tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def from_roll(cls, total: int, dice: Optional[Sequence[int]] = None) -> "RollOutcome":
        if not 2 <= total <= 12:
            raise ValueError(f"Roll total must be between 2 and 12, got {total}")
        return cls(total=total, dice=tuple(dice or ()))

    @property
    def is_hard_way(self) -> bool:
        if len(self.dice) != 2:
            return False
        first, second = self.dice
        return first == second and first + second == self.total

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "dice": list(self.dice),
            "isHardWay": self.is_hard_way,
        }


class BetError(Enum):
    """Why a bet was refused."""

    INVALID_AMOUNT = "invalid_amount"
    INVALID_STATE = "invalid_state"
    DUPLICATE_BET = "duplicate_bet"  # place bet on a number already covered
    ALREADY_PLACED = "already_placed"  # one-roll bet of this type already up
    INSUFFICIENT_FUNDS = "insufficient_funds"


@dataclass(frozen=True)
class PlaceBetResult:
    """Outcome of a bet placement. Truthy when the bet is on the table."""

    bet: Optional[ActiveBet] = None
    error: Optional[BetError] = None

    def __bool__(self) -> bool:
        return self.bet is not None

    @property
    def success(self) -> bool:
        return self.bet is not None
