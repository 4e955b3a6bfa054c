"""Tests for the SM-2 style review scheduler.

Tests the scheduling rules:
- Success interval ladder (3 days, 7 days, then interval * ease)
- Failure resets
- Ease factor updates and bounds
- Interval cap
- Quality validation
- Human-readable review times
"""

from datetime import datetime, timedelta
from typing import Callable

import pytest

from recallforge.core.config.study import SchedulerConfig
from recallforge.core.exceptions import InvalidQualityError
from recallforge.study.models import SchedulingState
from recallforge.study.scheduler import (
    INITIAL_EASE_FACTOR,
    MAX_EASE_FACTOR,
    MAX_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
    compute_next,
    initial_state,
    next_review_text,
    quality_from_answer,
    round_half_up,
)


class TestConstants:
    """Scheduler constants."""

    def test_ease_bounds(self) -> None:
        assert MIN_EASE_FACTOR == 1.3
        assert MAX_EASE_FACTOR == 3.0
        assert INITIAL_EASE_FACTOR == 2.5

    def test_interval_cap_is_one_year(self) -> None:
        assert MAX_INTERVAL_DAYS == 365


class TestInitialState:
    """Tests for initial_state."""

    def test_new_item_defaults(self, now: datetime) -> None:
        """New items start at ease 2.5 with no interval and are due now."""
        state = initial_state("bonjour", now)

        assert state.item_id == "bonjour"
        assert state.ease_factor == 2.5
        assert state.interval == 0
        assert state.repetitions == 0
        assert state.next_review_due == now
        assert state.last_reviewed_at is None
        assert state.is_new

    def test_initial_ease_from_config(self, now: datetime) -> None:
        state = initial_state("x", now, SchedulerConfig(initial_ease=2.0))
        assert state.ease_factor == 2.0

    def test_naive_now_becomes_aware(self) -> None:
        state = compute_next(initial_state("x", datetime(2024, 3, 1, 9)), 4, datetime(2024, 3, 1, 9))

        assert state.next_review_due.tzinfo is not None
        assert state.last_reviewed_at.tzinfo is not None
        assert state.interval == 3


class TestQualityMapping:
    """Tests for quality_from_answer."""

    @pytest.mark.parametrize(
        "is_correct,was_hard,expected",
        [(False, False, 1), (False, True, 1), (True, True, 3), (True, False, 4)],
    )
    def test_mapping(self, is_correct: bool, was_hard: bool, expected: int) -> None:
        assert quality_from_answer(is_correct, was_hard) == expected


class TestQualityValidation:
    """Quality must be an int in 0..5."""

    @pytest.mark.parametrize("quality", [-1, 6, 2.5, True, "4", None])
    def test_invalid_quality_rejected(self, quality: object, now: datetime) -> None:
        """Out-of-range and non-integer qualities raise instead of clamping."""
        state = initial_state("w", now)
        with pytest.raises(InvalidQualityError, match="Quality must be 0-5"):
            compute_next(state, quality, now)  # type: ignore[arg-type]

    @pytest.mark.parametrize("quality", [0, 5])
    def test_boundaries_accepted(self, quality: int, now: datetime) -> None:
        compute_next(initial_state("w", now), quality, now)


class TestSuccessLadder:
    """Successful answers follow 3 days, 7 days, then interval * ease."""

    def test_first_success_scenario(self, now: datetime) -> None:
        """New item answered with quality 4 is scheduled 3 days out."""
        state = compute_next(initial_state("w", now), 4, now)

        assert state.repetitions == 1
        assert state.interval == 3
        assert state.ease_factor == pytest.approx(2.5)
        assert state.next_review_due == now + timedelta(days=3)
        assert state.last_reviewed_at == now
        assert state.correct_count == 1

    def test_second_success_is_seven_days(self, now: datetime) -> None:
        state = compute_next(initial_state("w", now), 4, now)
        state = compute_next(state, 4, now)

        assert state.repetitions == 2
        assert state.interval == 7

    def test_third_success_multiplies_by_previous_ease(
        self, make_state: Callable[..., SchedulingState], now: datetime
    ) -> None:
        """repetitions=2, interval=7, ease=2.5 answered 4 -> interval round(17.5)=18."""
        state = make_state("w", interval=7, repetitions=2, ease_factor=2.5)

        result = compute_next(state, 4, now)

        assert result.repetitions == 3
        assert result.interval == 18

    def test_growth_uses_ease_before_update(
        self, make_state: Callable[..., SchedulingState], now: datetime
    ) -> None:
        """Quality 5 raises ease to 2.6, but the interval still uses 2.5."""
        state = make_state("w", interval=10, repetitions=3, ease_factor=2.5)

        result = compute_next(state, 5, now)

        assert result.interval == 25
        assert result.ease_factor == pytest.approx(2.6)

    def test_interval_capped_at_one_year(
        self, make_state: Callable[..., SchedulingState], now: datetime
    ) -> None:
        state = make_state("w", interval=200, repetitions=6, ease_factor=2.5)

        result = compute_next(state, 5, now)

        assert result.interval == 365
        assert result.next_review_due == now + timedelta(days=365)

    def test_success_after_failure_restarts_ladder(self, now: datetime) -> None:
        state = compute_next(initial_state("w", now), 4, now)
        state = compute_next(state, 1, now)
        state = compute_next(state, 4, now)

        assert state.repetitions == 1
        assert state.interval == 3


class TestFailure:
    """Failures reset repetitions and interval."""

    def test_failure_scenario(
        self, make_state: Callable[..., SchedulingState], now: datetime
    ) -> None:
        """repetitions=3, interval=10 answered 1 -> repetitions 0, interval 1."""
        state = make_state("w", interval=10, repetitions=3)

        result = compute_next(state, 1, now)

        assert result.repetitions == 0
        assert result.interval == 1
        assert result.incorrect_count == state.incorrect_count + 1
        assert result.correct_count == state.correct_count
        assert result.next_review_due == now + timedelta(days=1)

    @pytest.mark.parametrize("quality", [0, 1, 2])
    def test_any_failure_resets(
        self, quality: int, make_state: Callable[..., SchedulingState], now: datetime
    ) -> None:
        state = make_state("w", interval=120, repetitions=8, ease_factor=2.9)

        result = compute_next(state, quality, now)

        assert (result.repetitions, result.interval) == (0, 1)

    def test_input_state_is_not_modified(
        self, make_state: Callable[..., SchedulingState], now: datetime
    ) -> None:
        state = make_state("w", interval=10, repetitions=3)
        compute_next(state, 1, now)
        assert state.interval == 10
        assert state.repetitions == 3


class TestEaseFactor:
    """SM-2 ease update on every answer, clamped to [1.3, 3.0]."""

    @pytest.mark.parametrize(
        "quality,expected",
        [(5, 2.6), (4, 2.5), (3, 2.36), (2, 2.18), (1, 1.96), (0, 1.7)],
    )
    def test_adjustment_by_quality(self, quality: int, expected: float, now: datetime) -> None:
        result = compute_next(initial_state("w", now), quality, now)
        assert result.ease_factor == pytest.approx(expected)

    def test_ease_never_below_minimum(self, now: datetime) -> None:
        state = initial_state("w", now)
        for _ in range(10):
            state = compute_next(state, 0, now)
        assert state.ease_factor == pytest.approx(1.3)

    def test_ease_never_above_maximum(self, now: datetime) -> None:
        state = initial_state("w", now)
        for _ in range(10):
            state = compute_next(state, 5, now)
        assert state.ease_factor == pytest.approx(3.0)


class TestInvariants:
    """Properties that hold across answer sequences."""

    def test_successes_never_shrink_interval(self, now: datetime) -> None:
        state = initial_state("w", now)
        previous = 0
        for _ in range(15):
            state = compute_next(state, 4, now)
            assert state.interval >= previous
            assert state.interval <= 365
            previous = state.interval
        assert state.interval == 365

    @pytest.mark.parametrize("qualities", [[5, 0, 3, 5, 2, 4], [0, 0, 5, 5, 5, 1], [3] * 12])
    def test_bounds_hold_for_mixed_sequences(self, qualities: list, now: datetime) -> None:
        state = initial_state("w", now)
        for quality in qualities:
            state = compute_next(state, quality, now)
            assert 1.3 <= state.ease_factor <= 3.0
            assert 0 <= state.interval <= 365


class TestRounding:
    """Half-up rounding."""

    @pytest.mark.parametrize("value,expected", [(17.5, 18), (17.49, 17), (2.5, 3), (0.0, 0)])
    def test_round_half_up(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected


class TestNextReviewText:
    """Tests for next_review_text."""

    @pytest.mark.parametrize(
        "offset,expected",
        [
            (timedelta(0), "Due now"),
            (timedelta(hours=-5), "Due now"),
            (timedelta(minutes=30), "Due soon"),
            (timedelta(hours=5), "In 5 hours"),
            (timedelta(days=3), "In 3 days"),
            (timedelta(days=14), "In 2 weeks"),
            (timedelta(days=90), "In 3 months"),
        ],
    )
    def test_text(self, offset: timedelta, expected: str, now: datetime) -> None:
        state = SchedulingState(item_id="w", next_review_due=now + offset)
        assert next_review_text(state, now) == expected
