"""Tests for progress statistics."""

from datetime import date, datetime, timedelta
from typing import Callable

import pytest

from recallforge.study.models import DailyStat, ProgressStore, SchedulingState
from recallforge.study.stats import (
    MasteryLevel,
    SrsOverview,
    classify_mastery,
    mastery_distribution,
    overall_accuracy,
    progress_summary,
    srs_overview,
)

StateFactory = Callable[..., SchedulingState]


class TestClassifyMastery:
    """Tests for classify_mastery."""

    @pytest.mark.parametrize(
        "repetitions,interval,expected",
        [
            (0, 0, MasteryLevel.NEW),
            (0, 1, MasteryLevel.NEW),
            (1, 3, MasteryLevel.LEARNING),
            (4, 21, MasteryLevel.LEARNING),
            (5, 22, MasteryLevel.MATURE),
        ],
    )
    def test_levels(
        self, repetitions: int, interval: int, expected: MasteryLevel, make_state: StateFactory
    ) -> None:
        state = make_state("w", interval=interval, repetitions=repetitions)
        assert classify_mastery(state) is expected


class TestSrsOverview:
    """Tests for srs_overview."""

    def test_counts_by_window(self, make_state: StateFactory, now: datetime) -> None:
        store = ProgressStore.empty()
        for state in (
            make_state("due", overdue_days=2, interval=3),
            make_state("tomorrow", overdue_days=-0.5, interval=7),
            make_state("week", overdue_days=-5, interval=30),
            make_state("later", overdue_days=-40, interval=60),
            make_state("failed", overdue_days=1, interval=1, repetitions=0),
        ):
            store = store.with_state(state)

        overview = srs_overview(store, now)

        assert overview == SrsOverview(
            due_now=1, due_tomorrow=1, due_this_week=1, mastered=2, learning=2, new=1
        )
        assert overview.total == 5

    def test_empty_store(self, now: datetime) -> None:
        assert srs_overview(ProgressStore.empty(), now) == SrsOverview()

    def test_naive_now(self, make_state: StateFactory, now: datetime) -> None:
        store = ProgressStore.empty().with_state(make_state("due", overdue_days=2))
        naive_now = now.astimezone().replace(tzinfo=None)

        assert srs_overview(store, naive_now).due_now == 1

    def test_distribution(self, make_state: StateFactory) -> None:
        store = ProgressStore.empty().with_state(make_state("a", interval=40, repetitions=5))
        distribution = mastery_distribution(store)
        assert distribution[MasteryLevel.MATURE] == 1
        assert distribution[MasteryLevel.NEW] == 0


class TestProgressSummary:
    """Tests for progress_summary and overall_accuracy."""

    def test_summary_against_catalog(self, make_state: StateFactory) -> None:
        store = (
            ProgressStore.empty()
            .with_state(make_state("a", interval=30, repetitions=4))
            .with_state(make_state("b", interval=3))
            .with_state(make_state("gone", interval=90, repetitions=6))
            .with_daily_stat(DailyStat(date="2024-03-09", items_studied=4, correct_answers=3, incorrect_answers=1))
            .with_daily_stat(DailyStat(date="2024-03-10", items_studied=4, correct_answers=1, incorrect_answers=3))
        )

        summary = progress_summary(["a", "b", "c", "a"], store, date(2024, 3, 10))

        assert summary.total_items == 3
        assert summary.reviewed_items == 2
        assert summary.mastered_items == 1
        assert summary.overall_accuracy == 50.0
        assert summary.today.items_studied == 4

    def test_today_defaults_to_zero(self) -> None:
        summary = progress_summary(["a"], ProgressStore.empty(), date(2024, 3, 10))
        assert summary.today == DailyStat(date="2024-03-10")
        assert summary.overall_accuracy == 0.0

    def test_overall_accuracy_without_history(self) -> None:
        assert overall_accuracy(ProgressStore.empty()) == 0.0
