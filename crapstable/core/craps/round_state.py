"""
Comeout / point state machine for a single craps table.
"""

from dataclasses import dataclass
from enum import Enum

NATURALS = (7, 11)
CRAPS = (2, 3, 12)


class RoundEvent(Enum):
    """What a roll did to the round."""

    NATURAL = "natural"  # 7 or 11 on the comeout, pass line wins
    CRAPS = "craps"  # 2, 3 or 12 on the comeout, pass line loses
    POINT_ESTABLISHED = "point_established"
    POINT_MADE = "point_made"
    SEVEN_OUT = "seven_out"
    NO_DECISION = "no_decision"

    @property
    def ends_round(self) -> bool:
        return self in (
            RoundEvent.NATURAL,
            RoundEvent.CRAPS,
            RoundEvent.POINT_MADE,
            RoundEvent.SEVEN_OUT,
        )


@dataclass(frozen=True)
class RoundState:
    """Read-only snapshot of the table phase."""

    point_on: bool = False
    point_value: int = 0
    is_comeout: bool = True
    roll_in_progress: bool = False

    def to_dict(self) -> dict:
        return {
            "pointOn": self.point_on,
            "pointValue": self.point_value,
            "isComeout": self.is_comeout,
            "rollInProgress": self.roll_in_progress,
        }


class RoundStateMachine:
    """Tracks the point. The round starts over after every decision."""

    def __init__(self):
        self._point = 0
        self._roll_in_progress = False

    @property
    def point_on(self) -> bool:
        return self._point != 0

    @property
    def point_value(self) -> int:
        return self._point

    @property
    def is_comeout(self) -> bool:
        return self._point == 0

    @property
    def roll_in_progress(self) -> bool:
        return self._roll_in_progress

    def state(self) -> RoundState:
        return RoundState(
            point_on=self.point_on,
            point_value=self._point,
            is_comeout=self.is_comeout,
            roll_in_progress=self._roll_in_progress,
        )

    def start_roll(self):
        self._roll_in_progress = True

    def finish_roll(self):
        self._roll_in_progress = False

    def advance(self, total: int) -> RoundEvent:
        """Apply a settled total and return what happened."""
        if not 2 <= total <= 12:
            raise ValueError(f"Roll total must be between 2 and 12, got {total}")

        if self.is_comeout:
            if total in NATURALS:
                return RoundEvent.NATURAL
            if total in CRAPS:
                return RoundEvent.CRAPS
            self._point = total
            return RoundEvent.POINT_ESTABLISHED

        if total == self._point:
            self._point = 0
            return RoundEvent.POINT_MADE
        if total == 7:
            self._point = 0
            return RoundEvent.SEVEN_OUT
        return RoundEvent.NO_DECISION

    def reset(self):
        self._point = 0
        self._roll_in_progress = False

