"""Progress statistics.

Read-only summaries over a ProgressStore for dashboards:
- SRS overview: what is due now, tomorrow, this week
- Mastery classification per item
- Overall progress against a catalog
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable

from recallforge.core.clock import ensure_aware
from recallforge.study.models import DailyStat, ProgressStore, SchedulingState, format_date
from recallforge.study.queue_builder import unique_ids

MASTERED_INTERVAL_DAYS: int = 21


class MasteryLevel(Enum):
    """Mastery level classification."""

    NEW = "new"  # no successful recall since the last failure
    LEARNING = "learning"  # interval <= 21 days
    MATURE = "mature"  # interval > 21 days


@dataclass(frozen=True)
class SrsOverview:
    """Counts of scheduled items by due window and mastery.

    Attributes:
        due_now: Learned items due at or before now
        due_tomorrow: Due within the next day
        due_this_week: Due within 1-7 days
        mastered: Interval above 21 days
        learning: Interval of 21 days or less
        new: Never successfully recalled (repetitions == 0)
    """

    due_now: int = 0
    due_tomorrow: int = 0
    due_this_week: int = 0
    mastered: int = 0
    learning: int = 0
    new: int = 0

    @property
    def total(self) -> int:
        return self.mastered + self.learning + self.new


@dataclass(frozen=True)
class ProgressSummary:
    """Progress against a catalog.

    Attributes:
        total_items: Distinct catalog items
        reviewed_items: Catalog items with scheduling state
        mastered_items: Catalog items classified MATURE
        overall_accuracy: Lifetime accuracy from daily stats (0-100)
        today: DailyStat for today (zeros if nothing studied yet)
    """

    total_items: int
    reviewed_items: int
    mastered_items: int
    overall_accuracy: float
    today: DailyStat


def classify_mastery(state: SchedulingState) -> MasteryLevel:
    """Classify one item by repetitions and interval."""
    if state.repetitions == 0:
        return MasteryLevel.NEW
    if state.interval > MASTERED_INTERVAL_DAYS:
        return MasteryLevel.MATURE
    return MasteryLevel.LEARNING


def srs_overview(store: ProgressStore, now: datetime) -> SrsOverview:
    """Count stored items by due window and mastery level.

    Items with zero repetitions count only as new and are left out of the
    due windows.
    """
    now = ensure_aware(now)
    counts: Dict[str, int] = {
        "due_now": 0,
        "due_tomorrow": 0,
        "due_this_week": 0,
        "mastered": 0,
        "learning": 0,
        "new": 0,
    }

    for state in store.items.values():
        level = classify_mastery(state)
        if level is MasteryLevel.NEW:
            counts["new"] += 1
            continue

        days_until_due = -state.days_overdue(now)
        if days_until_due <= 0:
            counts["due_now"] += 1
        elif days_until_due <= 1:
            counts["due_tomorrow"] += 1
        elif days_until_due <= 7:
            counts["due_this_week"] += 1

        if level is MasteryLevel.MATURE:
            counts["mastered"] += 1
        else:
            counts["learning"] += 1

    return SrsOverview(**counts)


def mastery_distribution(store: ProgressStore) -> Dict[MasteryLevel, int]:
    """Count stored items per mastery level."""
    distribution = {level: 0 for level in MasteryLevel}
    for state in store.items.values():
        distribution[classify_mastery(state)] += 1
    return distribution


def overall_accuracy(store: ProgressStore) -> float:
    """Lifetime accuracy percentage over all daily stats."""
    answered = sum(s.correct_answers + s.incorrect_answers for s in store.daily_stats)
    if answered == 0:
        return 0.0
    correct = sum(s.correct_answers for s in store.daily_stats)
    return correct / answered * 100


def progress_summary(
    all_item_ids: Iterable[str], store: ProgressStore, today: date
) -> ProgressSummary:
    """Summarize progress for the items of a catalog."""
    catalog = unique_ids(all_item_ids)
    states = [store.items[i] for i in catalog if i in store.items]
    today_key = format_date(today)
    return ProgressSummary(
        total_items=len(catalog),
        reviewed_items=len(states),
        mastered_items=sum(1 for s in states if classify_mastery(s) is MasteryLevel.MATURE),
        overall_accuracy=overall_accuracy(store),
        today=store.daily_stat_for(today_key) or DailyStat(date=today_key),
    )
