"""
Two six-sided dice.

Faces come from the ``secrets`` module so a throw can't be predicted from
earlier throws.
"""

import secrets
from typing import Sequence, Tuple

from crapstable.core.craps.bets import RollOutcome

DIE_FACES = 6


def throw_die() -> int:
    return 1 + secrets.randbelow(DIE_FACES)


def roll_dice() -> Tuple[int, int]:
    return throw_die(), throw_die()


def outcome_from_dice(dice: Sequence[int]) -> RollOutcome:
    """Build a RollOutcome from two reported die faces."""
    if len(dice) != 2:
        raise ValueError(f"Expected two dice, got {len(dice)}")
    for face in dice:
        if not 1 <= face <= DIE_FACES:
            raise ValueError(f"Die face must be between 1 and {DIE_FACES}, got {face}")
    return RollOutcome.from_roll(sum(dice), dice)
