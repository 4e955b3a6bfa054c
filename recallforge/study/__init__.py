"""Spaced-repetition study core.

Provides the scheduling core and its companions:
- models: SchedulingState, DailyStat, UserStats, ProgressStore
- scheduler: SM-2 style next-review computation
- queue_builder: Due/new queue assembly under a size budget
- gamification: XP level curve
- ledger: Folds answers into daily stats, streaks and XP
- session: Study session coordination with answer/advance gates
- stats: Progress overview and mastery classification
- quiz: Multiple-choice and typing question generation
"""

from __future__ import annotations

from recallforge.study.models import (
    DailyStat,
    ProgressStore,
    SchedulingState,
    UserStats,
    prune_daily_stats,
)

from recallforge.study.scheduler import (
    compute_next,
    initial_state,
    next_review_text,
    quality_from_answer,
)

from recallforge.study.queue_builder import (
    StudyQueue,
    build_queue,
    build_study_queue,
)

from recallforge.study.gamification import (
    LevelProgress,
    level_from_xp,
    level_progress,
)

from recallforge.study.ledger import (
    LedgerResult,
    ProgressLedger,
    XpAward,
    record_answer,
    update_streak,
)

from recallforge.study.session import (
    AnswerResult,
    ItemPhase,
    SessionCoordinator,
    SessionSnapshot,
    SessionSummary,
    SessionTotals,
)

from recallforge.study.stats import (
    MasteryLevel,
    ProgressSummary,
    SrsOverview,
    classify_mastery,
    progress_summary,
    srs_overview,
)

from recallforge.study.quiz import (
    CatalogItem,
    QuestionType,
    QuizQuestion,
    check_answer,
    generate_question,
)

__all__ = [
    # Models
    "SchedulingState",
    "DailyStat",
    "UserStats",
    "ProgressStore",
    "prune_daily_stats",
    # Scheduler
    "compute_next",
    "initial_state",
    "quality_from_answer",
    "next_review_text",
    # Queue
    "StudyQueue",
    "build_queue",
    "build_study_queue",
    # Gamification
    "LevelProgress",
    "level_from_xp",
    "level_progress",
    # Ledger
    "LedgerResult",
    "XpAward",
    "ProgressLedger",
    "record_answer",
    "update_streak",
    # Session
    "AnswerResult",
    "ItemPhase",
    "SessionCoordinator",
    "SessionSnapshot",
    "SessionSummary",
    "SessionTotals",
    # Stats
    "MasteryLevel",
    "ProgressSummary",
    "SrsOverview",
    "classify_mastery",
    "progress_summary",
    "srs_overview",
    # Quiz
    "CatalogItem",
    "QuestionType",
    "QuizQuestion",
    "check_answer",
    "generate_question",
]
