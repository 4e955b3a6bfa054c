"""
Progress repository: load-or-default persistence for ProgressStore.

Loading happens once at session start. A missing blob means a new learner;
an unparseable one is treated the same way, but the problem is logged at
WARNING and flagged on ``last_load_recovered`` so callers can tell the user.
Write failures propagate as StorageError.
"""

import json
from typing import Optional

from recallforge.core.config.study import SchedulerConfig
from recallforge.core.exceptions import CorruptStateError
from recallforge.core.logging import get_logger
from recallforge.storage.base import KeyValueStore
from recallforge.study.gamification import level_from_xp
from recallforge.study.models import DEFAULT_DAILY_GOAL, LevelFunction, ProgressStore
from recallforge.study.session import SessionSnapshot

logger = get_logger(__name__)

DEFAULT_PROGRESS_KEY = "progress"
DEFAULT_SESSION_KEY = "session"


class ProgressRepository:
    """Reads and writes ProgressStore and SessionSnapshot blobs."""

    def __init__(
        self,
        kv: KeyValueStore,
        key: str = DEFAULT_PROGRESS_KEY,
        snapshot_key: str = DEFAULT_SESSION_KEY,
        level_of: LevelFunction = level_from_xp,
        daily_goal: int = DEFAULT_DAILY_GOAL,
        scheduler_config: Optional[SchedulerConfig] = None,
    ) -> None:
        """
        Initialize repository.

        Args:
            kv: Blob store
            key: Key of the progress blob
            snapshot_key: Key of the session snapshot blob
            level_of: Level curve used to recompute levels on load
            daily_goal: Daily XP goal for a fresh store
            scheduler_config: Bounds that loaded scheduling states are
                clamped into (defaults when None)
        """
        self.kv = kv
        self.key = key
        self.snapshot_key = snapshot_key
        self.level_of = level_of
        self.daily_goal = daily_goal
        self.scheduler_config = scheduler_config
        self.last_load_recovered = False

    def default_store(self) -> ProgressStore:
        return ProgressStore.empty(daily_goal=self.daily_goal)

    def load(self) -> ProgressStore:
        """
        Load the persisted store, or a default one.

        Returns:
            The stored ProgressStore (legacy payloads are migrated), or an
            empty store when nothing is stored or the blob is corrupt

        Raises:
            StorageError: If the backend itself cannot be read
        """
        self.last_load_recovered = False
        raw = self.kv.get(self.key)
        if raw is None:
            return self.default_store()

        try:
            return ProgressStore.from_dict(
                json.loads(raw), self.level_of, self.scheduler_config
            )
        except (json.JSONDecodeError, CorruptStateError) as e:
            logger.warning(
                "Corrupt progress data, starting from empty progress",
                key=self.key,
                error=e,
            )
            self.last_load_recovered = True
            return self.default_store()

    def save(self, store: ProgressStore) -> None:
        """
        Persist store.

        Raises:
            StorageError: If the write fails
        """
        self.kv.set(self.key, json.dumps(store.to_dict(), indent=2))

    def clear(self) -> None:
        """Delete stored progress and any session snapshot."""
        self.kv.delete(self.key)
        self.kv.delete(self.snapshot_key)
        logger.info("Progress cleared", key=self.key)

    def load_snapshot(self) -> Optional[SessionSnapshot]:
        """Load the saved session snapshot; corrupt snapshots are dropped."""
        raw = self.kv.get(self.snapshot_key)
        if raw is None:
            return None
        try:
            return SessionSnapshot.from_dict(json.loads(raw))
        except (json.JSONDecodeError, CorruptStateError) as e:
            logger.warning("Discarding unreadable session snapshot", error=e)
            self.kv.delete(self.snapshot_key)
            return None

    def save_snapshot(self, snapshot: SessionSnapshot) -> None:
        self.kv.set(self.snapshot_key, json.dumps(snapshot.to_dict()))

    def clear_snapshot(self) -> None:
        self.kv.delete(self.snapshot_key)
