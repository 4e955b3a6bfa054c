"""Progress data model for spaced-repetition study.

State Hierarchy
---------------
    ProgressStore (aggregate root)
    ├── items: Dict[str, SchedulingState]   (one per item, created lazily)
    ├── daily_stats: Tuple[DailyStat, ...]  (one per calendar day, append-only)
    └── user_stats: UserStats               (XP, level, streaks)

All records are frozen dataclasses. Operations that change progress build a
new ProgressStore with ``with_*`` helpers instead of mutating the old one, so
the caller either adopts the whole result of an answer or none of it.

Serialization
-------------
``ProgressStore.to_dict()`` produces JSON-compatible data:

    {"version": 2, "items": {...}, "daily_stats": [...], "user_stats": {...}}

``ProgressStore.from_dict()`` accepts that shape with any field missing, and
also the legacy web-client shape (``wordProgress``, ``dailyStats``,
``currentStreak``, ``lastStudyDate``, optional ``userStats`` and per-word
``srs`` blocks with epoch-millisecond timestamps).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from recallforge.core.config.study import SchedulerConfig
from recallforge.core.exceptions import CorruptStateError
from recallforge.study.gamification import level_from_xp

SCHEMA_VERSION = 2
SECONDS_PER_DAY = 86400.0
DEFAULT_DAILY_GOAL = 50

_BOUNDS = SchedulerConfig()
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

LevelFunction = Callable[[int], int]


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def format_date(day: date) -> str:
    """Format a calendar date as the YYYY-MM-DD key used by DailyStat."""
    return day.isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO string (naive values are read as UTC)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _from_epoch_ms(value: Any) -> Optional[datetime]:
    """Convert legacy epoch milliseconds; 0 and missing mean unset."""
    if not value:
        return None
    return _EPOCH + timedelta(milliseconds=float(value))


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class SchedulingState:
    """Scheduling record for one learnable item.

    Attributes:
        item_id: Identifier of the item in the caller's catalog
        next_review_due: Item is eligible for review once now >= this
        ease_factor: Interval growth multiplier, kept in [1.3, 3.0]
        interval: Days until the next review, kept in [0, 365]
        repetitions: Consecutive successful recalls since the last failure
        last_reviewed_at: Time of the most recent answer, None if never reviewed
        correct_count: Lifetime correct answers
        incorrect_count: Lifetime incorrect answers
    """

    item_id: str
    next_review_due: datetime
    ease_factor: float = _BOUNDS.initial_ease
    interval: int = 0
    repetitions: int = 0
    last_reviewed_at: Optional[datetime] = None
    correct_count: int = 0
    incorrect_count: int = 0

    @property
    def is_new(self) -> bool:
        """True until the first answer is recorded."""
        return self.last_reviewed_at is None

    def days_overdue(self, now: datetime) -> float:
        """Fractional days since the item became due (negative if not yet due)."""
        return (now - self.next_review_due).total_seconds() / SECONDS_PER_DAY

    def is_due(self, now: datetime) -> bool:
        """True when now >= next_review_due."""
        return self.next_review_due <= now

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "item_id": self.item_id,
            "ease_factor": self.ease_factor,
            "interval": self.interval,
            "repetitions": self.repetitions,
            "next_review_due": _format_timestamp(self.next_review_due),
            "last_reviewed_at": _format_timestamp(self.last_reviewed_at),
            "correct_count": self.correct_count,
            "incorrect_count": self.incorrect_count,
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        item_id: Optional[str] = None,
        bounds: Optional[SchedulerConfig] = None,
    ) -> "SchedulingState":
        """Create from dictionary, clamping ease and interval into ``bounds``."""
        bounds = bounds or _BOUNDS
        last = parse_timestamp(data.get("last_reviewed_at"))
        due = parse_timestamp(data.get("next_review_due")) or last or _EPOCH
        return cls(
            item_id=str(data.get("item_id", item_id)),
            next_review_due=due,
            ease_factor=clamp(
                float(data.get("ease_factor", bounds.initial_ease)),
                bounds.min_ease,
                bounds.max_ease,
            ),
            interval=int(clamp(int(data.get("interval", 0)), 0, bounds.max_interval)),
            repetitions=max(0, int(data.get("repetitions", 0))),
            last_reviewed_at=last,
            correct_count=max(0, int(data.get("correct_count", 0))),
            incorrect_count=max(0, int(data.get("incorrect_count", 0))),
        )


@dataclass(frozen=True)
class DailyStat:
    """Answer counters for one calendar day (key: YYYY-MM-DD)."""

    date: str
    items_studied: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0

    @property
    def accuracy_percent(self) -> float:
        """correct / (correct + incorrect) * 100, or 0 with no answers."""
        total = self.correct_answers + self.incorrect_answers
        if total == 0:
            return 0.0
        return self.correct_answers / total * 100

    def with_answer(self, is_correct: bool) -> "DailyStat":
        """Return a copy counting one more answer."""
        return replace(
            self,
            items_studied=self.items_studied + 1,
            correct_answers=self.correct_answers + (1 if is_correct else 0),
            incorrect_answers=self.incorrect_answers + (0 if is_correct else 1),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["accuracy_percent"] = self.accuracy_percent
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DailyStat":
        # accuracy_percent is derived and ignored on input
        return cls(
            date=str(data["date"]),
            items_studied=int(data.get("items_studied", 0)),
            correct_answers=int(data.get("correct_answers", 0)),
            incorrect_answers=int(data.get("incorrect_answers", 0)),
        )


@dataclass(frozen=True)
class UserStats:
    """Process-wide gamification state.

    ``level`` is derived from ``total_xp``; use ``with_xp`` (or the ledger)
    to change XP so both move together.
    """

    total_xp: int = 0
    level: int = 1
    current_streak: int = 0
    longest_streak: int = 0
    last_study_date: Optional[str] = None
    today_xp: int = 0
    daily_goal: int = DEFAULT_DAILY_GOAL

    @property
    def daily_goal_met(self) -> bool:
        return self.today_xp >= self.daily_goal

    def with_xp(self, total_xp: int, level_of: LevelFunction = level_from_xp) -> "UserStats":
        """Return a copy with new total XP and its recomputed level."""
        return replace(self, total_xp=total_xp, level=level_of(total_xp))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], level_of: LevelFunction = level_from_xp
    ) -> "UserStats":
        """Create from dictionary; any stored level is recomputed."""
        total_xp = max(0, int(data.get("total_xp", 0)))
        current = max(0, int(data.get("current_streak", 0)))
        return cls(
            total_xp=total_xp,
            level=level_of(total_xp),
            current_streak=current,
            longest_streak=max(current, int(data.get("longest_streak", 0))),
            last_study_date=data.get("last_study_date"),
            today_xp=max(0, int(data.get("today_xp", 0))),
            daily_goal=int(data.get("daily_goal", DEFAULT_DAILY_GOAL)),
        )


@dataclass(frozen=True)
class ProgressStore:
    """Aggregate root: scheduling states, daily history and user stats."""

    items: Mapping[str, SchedulingState] = field(default_factory=dict)
    daily_stats: Tuple[DailyStat, ...] = ()
    user_stats: UserStats = field(default_factory=UserStats)

    @classmethod
    def empty(cls, daily_goal: int = DEFAULT_DAILY_GOAL) -> "ProgressStore":
        """Store for a learner with no history."""
        return cls(user_stats=UserStats(daily_goal=daily_goal))

    def get_state(self, item_id: str) -> Optional[SchedulingState]:
        return self.items.get(item_id)

    def daily_stat_for(self, day: str) -> Optional[DailyStat]:
        """Get the DailyStat for a YYYY-MM-DD key."""
        for stat in self.daily_stats:
            if stat.date == day:
                return stat
        return None

    def with_state(self, state: SchedulingState) -> "ProgressStore":
        items = dict(self.items)
        items[state.item_id] = state
        return replace(self, items=items)

    def with_daily_stat(self, stat: DailyStat) -> "ProgressStore":
        """Replace the stat for its day in place, or append a new day."""
        stats = list(self.daily_stats)
        for index, existing in enumerate(stats):
            if existing.date == stat.date:
                stats[index] = stat
                break
        else:
            stats.append(stat)
        return replace(self, daily_stats=tuple(stats))

    def with_user_stats(self, user_stats: UserStats) -> "ProgressStore":
        return replace(self, user_stats=user_stats)

    def prune_daily_stats(self, keep_days: int, today: date) -> "ProgressStore":
        """Drop daily stats older than ``keep_days`` days before ``today``."""
        cutoff = format_date(today - timedelta(days=max(0, keep_days)))
        kept = tuple(stat for stat in self.daily_stats if stat.date >= cutoff)
        return replace(self, daily_stats=kept)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-compatible dictionary."""
        return {
            "version": SCHEMA_VERSION,
            "items": {item_id: state.to_dict() for item_id, state in self.items.items()},
            "daily_stats": [stat.to_dict() for stat in self.daily_stats],
            "user_stats": self.user_stats.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        level_of: LevelFunction = level_from_xp,
        bounds: Optional[SchedulerConfig] = None,
    ) -> "ProgressStore":
        """Create from dictionary, migrating the legacy shape when present.

        Scheduling states are clamped into ``bounds`` (the default scheduler
        settings when None).

        Raises:
            CorruptStateError: If the payload is not a mapping or a field
                has the wrong type
        """
        if not isinstance(data, Mapping):
            raise CorruptStateError(
                f"Progress payload must be an object, got {type(data).__name__}"
            )
        try:
            if "version" not in data and "wordProgress" in data:
                return _from_legacy_dict(data, level_of, bounds)
            return _from_current_dict(data, level_of, bounds)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CorruptStateError(f"Unreadable progress payload: {e}") from e


def _from_current_dict(
    data: Mapping[str, Any], level_of: LevelFunction, bounds: Optional[SchedulerConfig]
) -> ProgressStore:
    items = {
        str(item_id): SchedulingState.from_dict(raw, item_id=str(item_id), bounds=bounds)
        for item_id, raw in (data.get("items") or {}).items()
    }
    daily = tuple(DailyStat.from_dict(raw) for raw in (data.get("daily_stats") or []))

    raw_user = data.get("user_stats")
    if raw_user is None:
        user_stats = _user_stats_from_legacy_streak(data, level_of)
    else:
        user_stats = UserStats.from_dict(raw_user, level_of)
    return ProgressStore(items=items, daily_stats=daily, user_stats=user_stats)


def _user_stats_from_legacy_streak(
    data: Mapping[str, Any], level_of: LevelFunction
) -> UserStats:
    """Default UserStats, keeping any streak recorded at the top level."""
    streak = int(data.get("current_streak", data.get("currentStreak", 0)) or 0)
    last = data.get("last_study_date", data.get("lastStudyDate"))
    return UserStats(
        level=level_of(0),
        current_streak=streak,
        longest_streak=streak,
        last_study_date=last,
    )


def _from_legacy_dict(
    data: Mapping[str, Any], level_of: LevelFunction, bounds: Optional[SchedulerConfig]
) -> ProgressStore:
    items: Dict[str, SchedulingState] = {}
    for word_id, word in (data.get("wordProgress") or {}).items():
        state = _legacy_state(str(word.get("wordId", word_id)), word, bounds)
        items[state.item_id] = state

    daily = tuple(
        DailyStat(
            date=str(raw["date"]),
            items_studied=int(raw.get("cardsStudied", 0)),
            correct_answers=int(raw.get("correctAnswers", 0)),
            incorrect_answers=int(raw.get("incorrectAnswers", 0)),
        )
        for raw in (data.get("dailyStats") or [])
    )

    legacy_user = data.get("userStats")
    if legacy_user is None:
        user_stats = _user_stats_from_legacy_streak(data, level_of)
    else:
        user_stats = UserStats.from_dict(
            {
                "total_xp": legacy_user.get("xp", 0),
                "current_streak": legacy_user.get("currentStreak", 0),
                "longest_streak": legacy_user.get("longestStreak", 0),
                "last_study_date": legacy_user.get("lastStudyDate"),
                "today_xp": legacy_user.get("todayXp", 0),
                "daily_goal": legacy_user.get("dailyGoal", DEFAULT_DAILY_GOAL),
            },
            level_of,
        )
    return ProgressStore(items=items, daily_stats=daily, user_stats=user_stats)


def _legacy_state(
    item_id: str, word: Mapping[str, Any], bounds: Optional[SchedulerConfig]
) -> SchedulingState:
    """Build a SchedulingState from a legacy wordProgress entry."""
    srs = word.get("srs")
    if srs:
        last = _from_epoch_ms(srs.get("lastReviewDate"))
        return SchedulingState.from_dict(
            {
                "item_id": item_id,
                "ease_factor": srs.get("easeFactor", (bounds or _BOUNDS).initial_ease),
                "interval": srs.get("interval", 0),
                "repetitions": srs.get("repetitions", 0),
                "next_review_due": _from_epoch_ms(srs.get("nextReviewDate")) or last,
                "last_reviewed_at": last,
                "correct_count": srs.get("correct", word.get("correct", 0)),
                "incorrect_count": srs.get("incorrect", word.get("incorrect", 0)),
            },
            bounds=bounds,
        )

    # Words studied before scheduling existed: due again from their last review
    last = _from_epoch_ms(word.get("lastReviewedAt"))
    return SchedulingState.from_dict(
        {
            "item_id": item_id,
            "next_review_due": last,
            "last_reviewed_at": last,
            "correct_count": word.get("correct", 0),
            "incorrect_count": word.get("incorrect", 0),
        },
        bounds=bounds,
    )


def prune_daily_stats(store: ProgressStore, keep_days: int, today: date) -> ProgressStore:
    """Return ``store`` without daily stats older than ``keep_days`` before today."""
    return store.prune_daily_stats(keep_days, today)
