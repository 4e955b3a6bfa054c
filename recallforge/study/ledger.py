"""Progress ledger: folds answers into persisted progress.

One answer touches three parts of the ProgressStore:

1. The item's SchedulingState (via the scheduler)
2. The DailyStat of the answer's calendar day
3. UserStats: streak, XP and level

The ledger builds all three on a new store and returns it in a LedgerResult.
The input store is never modified, so a caller that fails to persist the
result can simply keep using the old store.

Calendar days come from the ledger's Clock. A clock with ``tz=None`` uses the
host's local zone for every day computation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Optional

from recallforge.core.clock import Clock, SystemClock, ensure_aware
from recallforge.core.config.study import GamificationConfig, SchedulerConfig
from recallforge.core.exceptions import ValidationError
from recallforge.core.logging import get_logger
from recallforge.study.gamification import level_from_xp
from recallforge.study.models import (
    DailyStat,
    ProgressStore,
    SchedulingState,
    UserStats,
    format_date,
)
from recallforge.study.scheduler import (
    PASSING_QUALITY,
    compute_next,
    initial_state,
    quality_from_answer,
    validate_quality,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class LedgerResult:
    """Outcome of recording one answer.

    Attributes:
        store: New progress store with all updates applied
        state: The item's updated SchedulingState
        xp_awarded: XP added by this answer
        leveled_up: True if the level increased
        daily_stat: DailyStat of the answer's day after the update
    """

    store: ProgressStore
    state: SchedulingState
    xp_awarded: int
    leveled_up: bool
    daily_stat: DailyStat


@dataclass(frozen=True)
class XpAward:
    """Outcome of a bonus award."""

    store: ProgressStore
    xp_awarded: int
    leveled_up: bool


def update_streak(stats: UserStats, today: date) -> UserStats:
    """Advance the study streak for activity on ``today``.

    - Already studied today: unchanged.
    - Last studied yesterday: streak + 1.
    - Otherwise (gap, first ever study, or a last date after today): 1.

    ``today_xp`` restarts at 0 whenever the day changes.
    """
    today_key = format_date(today)
    if stats.last_study_date == today_key:
        return stats

    yesterday_key = format_date(today - timedelta(days=1))
    if stats.last_study_date == yesterday_key:
        current = stats.current_streak + 1
    else:
        current = 1

    return replace(
        stats,
        current_streak=current,
        longest_streak=max(stats.longest_streak, current),
        last_study_date=today_key,
        today_xp=0,
    )


class ProgressLedger:
    """Records answers against a ProgressStore.

    Example:
        >>> ledger = ProgressLedger(clock=FixedClock(now))
        >>> result = ledger.record_answer(store, "w1", True, now)
        >>> result.xp_awarded
        10
    """

    def __init__(
        self,
        scheduler_config: Optional[SchedulerConfig] = None,
        gamification_config: Optional[GamificationConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.scheduler_config = scheduler_config or SchedulerConfig()
        self.gamification_config = gamification_config or GamificationConfig()
        self.clock = clock or SystemClock()

    def level_of(self, total_xp: int) -> int:
        """Level for ``total_xp`` under the configured curve."""
        return level_from_xp(
            total_xp,
            self.gamification_config.base_xp_per_level,
            self.gamification_config.level_multiplier,
        )

    def empty_store(self) -> ProgressStore:
        """Fresh store carrying the configured daily goal."""
        return ProgressStore.empty(daily_goal=self.gamification_config.daily_goal)

    def record_answer(
        self,
        store: ProgressStore,
        item_id: str,
        is_correct: bool,
        timestamp: datetime,
        quality: Optional[int] = None,
    ) -> LedgerResult:
        """Fold one answer into the store.

        Args:
            store: Current progress (not modified)
            item_id: Answered item; its state is created on first answer
            is_correct: Whether the answer was right
            timestamp: Time of the answer
            quality: Explicit 0-5 quality; defaults to the simple mapping

        Returns:
            LedgerResult with the new store

        Raises:
            InvalidQualityError: If quality is not an int in 0..5
            ValidationError: If quality contradicts is_correct
        """
        if quality is None:
            quality = quality_from_answer(is_correct)
        else:
            validate_quality(quality)
            if (quality >= PASSING_QUALITY) != bool(is_correct):
                raise ValidationError(
                    f"Quality {quality} contradicts is_correct={is_correct} "
                    f"for item '{item_id}'"
                )

        timestamp = ensure_aware(timestamp, self.clock.tz)
        today = self.clock.local_date(timestamp)

        # 1. Scheduling state
        previous = store.get_state(item_id) or initial_state(
            item_id, timestamp, self.scheduler_config
        )
        state = compute_next(previous, quality, timestamp, self.scheduler_config)

        # 2. Daily stat
        day_key = format_date(today)
        daily = (store.daily_stat_for(day_key) or DailyStat(date=day_key)).with_answer(
            is_correct
        )

        # 3. Streak, XP, level
        old_stats = store.user_stats
        user_stats = update_streak(old_stats, today)
        xp = self.gamification_config.xp_per_correct if is_correct else 0
        user_stats = self._add_xp(user_stats, xp)
        leveled_up = user_stats.level > old_stats.level

        new_store = (
            store.with_state(state).with_daily_stat(daily).with_user_stats(user_stats)
        )

        logger.debug(
            "Answer recorded",
            item_id=item_id,
            quality=quality,
            interval=state.interval,
            ease=f"{state.ease_factor:.2f}",
            day=day_key,
        )
        if leveled_up:
            logger.info("Level up", level=user_stats.level, total_xp=user_stats.total_xp)

        return LedgerResult(
            store=new_store,
            state=state,
            xp_awarded=xp,
            leveled_up=leveled_up,
            daily_stat=daily,
        )

    def award_bonus(
        self, store: ProgressStore, amount: int, timestamp: datetime
    ) -> XpAward:
        """Add bonus XP (e.g. for finishing a session) and advance the streak.

        Raises:
            ValidationError: If amount is negative
        """
        if amount < 0:
            raise ValidationError(f"Bonus XP must be >= 0, got {amount}")

        today = self.clock.local_date(ensure_aware(timestamp, self.clock.tz))
        old_stats = store.user_stats
        user_stats = self._add_xp(update_streak(old_stats, today), amount)
        leveled_up = user_stats.level > old_stats.level
        if leveled_up:
            logger.info("Level up", level=user_stats.level, total_xp=user_stats.total_xp)
        return XpAward(
            store=store.with_user_stats(user_stats),
            xp_awarded=amount,
            leveled_up=leveled_up,
        )

    def _add_xp(self, stats: UserStats, amount: int) -> UserStats:
        stats = stats.with_xp(stats.total_xp + amount, self.level_of)
        return replace(stats, today_xp=stats.today_xp + amount)


def record_answer(
    store: ProgressStore,
    item_id: str,
    is_correct: bool,
    timestamp: datetime,
    quality: Optional[int] = None,
    clock: Optional[Clock] = None,
) -> LedgerResult:
    """Record an answer with default settings.

    Convenience wrapper around ProgressLedger for callers without config.
    """
    return ProgressLedger(clock=clock).record_answer(
        store, item_id, is_correct, timestamp, quality
    )
