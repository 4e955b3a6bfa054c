"""
End-to-End Study Workflow Tests.

Drives real sessions against the JSON file backend across several days.

Workflow Steps
--------------
1. Day 1: study four new items, interrupt mid-session, resume, finish
2. Day 2: failed item comes back as a review, new items fill the rest
3. Day 5: overdue reviews ranked by priority, streak resets after a gap

Test Strategy
-------------
- Real JsonFileStore in a temp directory, no mocks
- A fresh repository per "process" so every step reloads from disk
- FixedClock moved forward between days
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List

import pytest

from recallforge.core.clock import FixedClock
from recallforge.core.config import Config, GamificationConfig, QueueConfig, SessionConfig, StorageConfig
from recallforge.storage.factory import create_repository
from recallforge.storage.repository import ProgressRepository
from recallforge.study.ledger import ProgressLedger
from recallforge.study.models import ProgressStore
from recallforge.study.session import ItemPhase, SessionCoordinator
from recallforge.study.stats import progress_summary, srs_overview

pytestmark = pytest.mark.integration

DAY_ONE = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)
CATALOG: List[str] = [f"w{i}" for i in range(6)]


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(
        queue=QueueConfig(default_limit=4, min_new=2),
        session=SessionConfig(default_limit=4),
        gamification=GamificationConfig(completion_bonus_xp=50),
        storage=StorageConfig(data_dir=str(tmp_path / "data")),
        timezone="UTC",
    )


@pytest.fixture
def study_clock() -> FixedClock:
    return FixedClock(DAY_ONE)


def open_repository(config: Config) -> ProgressRepository:
    return create_repository(config)


def open_session(config: Config, clock: FixedClock) -> SessionCoordinator:
    """Coordinator wired the way a fresh process would build it."""
    return SessionCoordinator(
        repository=open_repository(config),
        ledger=ProgressLedger(config.scheduler, config.gamification, clock=clock),
        config=config.session,
        queue_config=config.queue,
        clock=clock,
    )


def run_day_one(config: Config, clock: FixedClock) -> None:
    """Answer w0 (q4), w1 (q1), w2 (q5), crash, resume, answer w3 (q4)."""
    session = open_session(config, clock)
    assert session.start_session(CATALOG) == ("w0", "w1", "w2", "w3")

    session.answer("w0", 4)
    session.advance()
    session.answer("w1", 1)
    session.acknowledge()
    session.advance()
    session.answer("w2", 5)
    session.repository.save_snapshot(session.snapshot())

    clock.advance(minutes=10)
    resumed = open_session(config, clock)
    assert resumed.resume() is True
    assert resumed.current_item == "w2"
    assert resumed.phase is ItemPhase.ANSWERED_CORRECT

    assert resumed.advance() == "w3"
    resumed.answer("w3", 4)
    assert resumed.advance() is None

    summary = resumed.end_session()
    assert summary.completed
    assert (summary.correct, summary.incorrect) == (3, 1)
    assert summary.xp_earned == 80


# ============================================================================
# Workflow Tests
# ============================================================================


class TestDayOne:
    """First session with an interruption."""

    def test_progress_persisted(self, config: Config, study_clock: FixedClock) -> None:
        run_day_one(config, study_clock)

        store = open_repository(config).load()

        assert store.items["w0"].interval == 3
        assert store.items["w0"].next_review_due == DAY_ONE + timedelta(days=3)
        assert store.items["w1"].interval == 1
        assert store.items["w1"].repetitions == 0
        assert store.items["w2"].ease_factor == pytest.approx(2.6)
        assert store.user_stats.total_xp == 80
        assert store.user_stats.current_streak == 1

        today = store.daily_stat_for("2024-03-10")
        assert (today.items_studied, today.correct_answers, today.incorrect_answers) == (4, 3, 1)

    def test_snapshot_cleared_after_end(self, config: Config, study_clock: FixedClock) -> None:
        run_day_one(config, study_clock)
        assert open_repository(config).load_snapshot() is None

    def test_expired_snapshot_not_resumed(self, config: Config, study_clock: FixedClock) -> None:
        session = open_session(config, study_clock)
        session.start_session(CATALOG)
        session.answer("w0", 4)
        session.repository.save_snapshot(session.snapshot())

        study_clock.advance(minutes=61)
        later = open_session(config, study_clock)

        assert later.resume() is False
        assert not later.is_started


class TestFollowingDays:
    """Reviews come back on schedule and the streak tracks study days."""

    def test_day_two_review_then_new(self, config: Config, study_clock: FixedClock) -> None:
        run_day_one(config, study_clock)
        study_clock.set(DAY_ONE + timedelta(days=1, hours=3))

        session = open_session(config, study_clock)
        queue = session.start_session(CATALOG)
        assert queue == ("w1", "w4", "w5")

        for item_id in queue:
            result = session.answer(item_id, 4)
            assert result.can_advance
            session.advance()
        session.end_session()

        store = open_repository(config).load()
        assert store.items["w1"].interval == 3
        assert store.user_stats.current_streak == 2
        assert store.user_stats.total_xp == 160
        assert store.user_stats.level == 2

        summary = progress_summary(CATALOG, store, study_clock.today())
        assert summary.reviewed_items == 6
        assert summary.today.items_studied == 3
        assert srs_overview(store, study_clock.now()).due_now == 0

    def test_day_five_priority_and_streak_reset(self, config: Config, study_clock: FixedClock) -> None:
        run_day_one(config, study_clock)
        study_clock.set(DAY_ONE + timedelta(days=1, hours=3))
        session = open_session(config, study_clock)
        for item_id in session.start_session(CATALOG):
            session.answer(item_id, 4)
            session.advance()

        study_clock.set(DAY_ONE + timedelta(days=4))
        session = open_session(config, study_clock)

        # w0 and w3 (ease 2.5) outrank w2 (ease 2.6); only two review slots
        assert session.start_session(CATALOG) == ("w0", "w3")

        session.answer("w0", 4)
        store = open_repository(config).load()
        assert store.user_stats.current_streak == 1
        assert store.user_stats.longest_streak == 2

    def test_reset_starts_over(self, config: Config, study_clock: FixedClock) -> None:
        run_day_one(config, study_clock)

        open_repository(config).clear()

        assert open_repository(config).load() == ProgressStore.empty()
