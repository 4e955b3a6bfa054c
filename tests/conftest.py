"""
Shared pytest fixtures and configuration for RecallForge tests.

This file is automatically discovered by pytest and provides fixtures
that can be used across all test files.

Fixture Organization
--------------------
- **now / clock**: A fixed UTC instant and a FixedClock frozen at it
- **kv / repository**: In-memory key-value store and a repository over it
- **ledger**: ProgressLedger bound to the fixed clock
- **make_state**: Builder for SchedulingState relative to ``now``
- **catalog_ids**: Ten item ids in display order
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List

import pytest

from recallforge.core.clock import FixedClock
from recallforge.storage.memory import InMemoryStore
from recallforge.storage.repository import ProgressRepository
from recallforge.study.ledger import ProgressLedger
from recallforge.study.models import ProgressStore, SchedulingState

NOW = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# Time Fixtures
# ============================================================================


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant (2024-03-10 09:00 UTC)."""
    return NOW


@pytest.fixture
def clock(now: datetime) -> FixedClock:
    """Clock frozen at ``now`` using UTC day boundaries."""
    return FixedClock(now)


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def kv() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def repository(kv: InMemoryStore) -> ProgressRepository:
    return ProgressRepository(kv)


# ============================================================================
# Study Fixtures
# ============================================================================


@pytest.fixture
def ledger(clock: FixedClock) -> ProgressLedger:
    return ProgressLedger(clock=clock)


@pytest.fixture
def empty_store() -> ProgressStore:
    return ProgressStore.empty()


@pytest.fixture
def make_state(now: datetime) -> Callable[..., SchedulingState]:
    """Build a reviewed SchedulingState due ``overdue_days`` before now.

    Example:
        def test_ranking(make_state):
            state = make_state("w1", overdue_days=5, ease_factor=1.5)
    """

    def _make(
        item_id: str,
        overdue_days: float = 0.0,
        ease_factor: float = 2.5,
        interval: int = 3,
        repetitions: int = 1,
    ) -> SchedulingState:
        due = now - timedelta(days=overdue_days)
        return SchedulingState(
            item_id=item_id,
            next_review_due=due,
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            last_reviewed_at=due - timedelta(days=interval),
            correct_count=repetitions,
        )

    return _make


@pytest.fixture
def catalog_ids() -> List[str]:
    """Ten item ids in display order."""
    return [f"word-{i:02d}" for i in range(10)]
