"""XP and level curve.

Level 1 starts at 0 XP. Reaching the next level costs ``base`` XP, and every
level after that costs ``multiplier`` times the previous cost, floored to a
whole number of XP:

    level 1 -> 2: 100 XP   (total 100)
    level 2 -> 3: 120 XP   (total 220)
    level 3 -> 4: 144 XP   (total 364)
    level 4 -> 5: 172 XP   (total 536)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Tuple

XP_PER_CORRECT: int = 10
XP_PER_SESSION_COMPLETE: int = 50
BASE_XP_PER_LEVEL: int = 100
LEVEL_MULTIPLIER: float = 1.2


@dataclass(frozen=True)
class LevelProgress:
    """XP progress inside the current level.

    Attributes:
        level: Current level
        current: XP earned since reaching the current level
        required: XP the current level costs in total
        percent: floor(current / required * 100), capped at 100
    """

    level: int
    current: int
    required: int
    percent: int


def _walk_levels(
    total_xp: int, base: int, multiplier: float
) -> Iterator[Tuple[int, int, int]]:
    """Yield (level, remaining_xp, cost_of_level) until XP runs out."""
    level = 1
    cost = base
    remaining = max(0, int(total_xp))
    while remaining >= cost:
        remaining -= cost
        level += 1
        cost = math.floor(cost * multiplier)
    yield level, remaining, cost


def level_from_xp(
    total_xp: int,
    base: int = BASE_XP_PER_LEVEL,
    multiplier: float = LEVEL_MULTIPLIER,
) -> int:
    """Compute the level reached with ``total_xp``.

    Args:
        total_xp: Lifetime XP (negative values count as 0)
        base: XP cost of the first level-up
        multiplier: Growth of each successive level cost (>= 1.0)

    Returns:
        Level, starting at 1

    Examples:
        >>> level_from_xp(99)
        1
        >>> level_from_xp(100)
        2
        >>> level_from_xp(220)
        3
    """
    level, _, _ = next(_walk_levels(total_xp, base, multiplier))
    return level


def level_progress(
    total_xp: int,
    base: int = BASE_XP_PER_LEVEL,
    multiplier: float = LEVEL_MULTIPLIER,
) -> LevelProgress:
    """Describe how far ``total_xp`` is into the current level."""
    level, remaining, cost = next(_walk_levels(total_xp, base, multiplier))
    percent = min(100, math.floor(remaining / cost * 100))
    return LevelProgress(level=level, current=remaining, required=cost, percent=percent)
