"""SM-2 style review scheduler.

Implements a SuperMemo SM-2 variant for calculating review intervals from
answer quality. Differences from textbook SM-2:

- The first two successes use longer steps (3 days, then 7 days instead of
  1 and 6).
- Ease is updated on every answer, failures included, and is kept inside
  [1.3, 3.0].
- Intervals never exceed one year.

All functions are pure: they read the clock value passed in and return new
SchedulingState values.
"""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from recallforge.core.clock import ensure_aware
from recallforge.core.config.study import SchedulerConfig
from recallforge.core.exceptions import InvalidQualityError
from recallforge.study.models import SchedulingState, clamp

# SM-2 Algorithm Constants
INITIAL_EASE_FACTOR: float = 2.5
MIN_EASE_FACTOR: float = 1.3
MAX_EASE_FACTOR: float = 3.0
MAX_INTERVAL_DAYS: int = 365
PASSING_QUALITY: int = 3

# Quality mapping for the simple correct/incorrect UI
QUALITY_INCORRECT: int = 1
QUALITY_HARD: int = 3
QUALITY_CORRECT: int = 4

_DEFAULT_CONFIG = SchedulerConfig()


def initial_state(
    item_id: str, now: datetime, config: Optional[SchedulerConfig] = None
) -> SchedulingState:
    """Create the scheduling state for an item on first exposure.

    Args:
        item_id: Item identifier
        now: Current time; the new item is due immediately
        config: Scheduler settings (defaults apply when None)

    Returns:
        State with initial ease, interval 0 and no repetitions
    """
    config = config or _DEFAULT_CONFIG
    return SchedulingState(
        item_id=item_id,
        next_review_due=ensure_aware(now),
        ease_factor=config.initial_ease,
    )


def quality_from_answer(is_correct: bool, was_hard: bool = False) -> int:
    """Map a correct/incorrect answer onto the 0-5 quality scale.

    Incorrect answers map to 1 (recognized once shown), hard successes to 3
    and ordinary successes to 4.
    """
    if not is_correct:
        return QUALITY_INCORRECT
    if was_hard:
        return QUALITY_HARD
    return QUALITY_CORRECT


def validate_quality(quality: object) -> int:
    """Return quality unchanged if it is an int in 0..5.

    Raises:
        InvalidQualityError: For non-integers (bool included) or out-of-range values
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if not 0 <= quality <= 5:
        raise InvalidQualityError(quality)
    return quality


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up."""
    return int(math.floor(value + 0.5))


def compute_next(
    state: SchedulingState,
    quality: int,
    now: datetime,
    config: Optional[SchedulerConfig] = None,
) -> SchedulingState:
    """Compute the next scheduling state after one answer.

    Args:
        state: Current state of the item
        quality: Recall quality 0-5 (< 3 is a failure)
            - 0: Complete blackout
            - 1: Incorrect, recognized once shown
            - 2: Incorrect, but felt easy once shown
            - 3: Correct with serious difficulty
            - 4: Correct with some hesitation
            - 5: Perfect recall
        now: Time of the answer
        config: Scheduler settings (defaults apply when None)

    Returns:
        New SchedulingState; ``state`` is not modified

    Raises:
        InvalidQualityError: If quality is not an int in 0..5

    Examples:
        >>> s = compute_next(initial_state("w", now), 4, now)
        >>> (s.repetitions, s.interval, s.ease_factor)
        (1, 3, 2.5)
    """
    quality = validate_quality(quality)
    config = config or _DEFAULT_CONFIG
    now = ensure_aware(now)

    if quality < PASSING_QUALITY:
        repetitions = 0
        interval = config.fail_reset_interval
        correct, incorrect = state.correct_count, state.incorrect_count + 1
    else:
        repetitions = state.repetitions + 1
        # Growth uses the ease factor from before this answer's update
        interval = _success_interval(repetitions, state.interval, state.ease_factor, config)
        correct, incorrect = state.correct_count + 1, state.incorrect_count

    interval = int(clamp(interval, 0, config.max_interval))
    ease = _next_ease_factor(state.ease_factor, quality, config)

    return replace(
        state,
        ease_factor=ease,
        interval=interval,
        repetitions=repetitions,
        next_review_due=now + timedelta(days=interval),
        last_reviewed_at=now,
        correct_count=correct,
        incorrect_count=incorrect,
    )


def _success_interval(
    repetitions: int, prev_interval: int, ease_factor: float, config: SchedulerConfig
) -> int:
    """Interval ladder for a successful answer."""
    if repetitions == 1:
        return config.first_success_interval
    if repetitions == 2:
        return config.second_success_interval
    return round_half_up(prev_interval * ease_factor)


def _next_ease_factor(ease_factor: float, quality: int, config: SchedulerConfig) -> float:
    """Apply the SM-2 ease formula and clamp the result.

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))

    q=5 adds 0.1, q=4 keeps EF, q=3 subtracts 0.14, q=1 subtracts 0.54.
    """
    diff = 5 - quality
    adjustment = 0.1 - diff * (0.08 + diff * 0.02)
    return clamp(ease_factor + adjustment, config.min_ease, config.max_ease)


def next_review_text(state: SchedulingState, now: datetime) -> str:
    """Human-readable time until the next review.

    Returns:
        "Due now", "Due soon" (under an hour), or "In N hours/days/weeks/months"
    """
    seconds = (state.next_review_due - now).total_seconds()
    if seconds <= 0:
        return "Due now"

    hours = seconds / 3600
    days = hours / 24
    if hours < 1:
        return "Due soon"
    if hours < 24:
        return f"In {round_half_up(hours)} hours"
    if days < 7:
        return f"In {round_half_up(days)} days"
    if days < 30:
        return f"In {round_half_up(days / 7)} weeks"
    return f"In {round_half_up(days / 30)} months"
