"""Study session coordination.

A SessionCoordinator walks one queue built by the queue builder. Each item
goes through:

    UNANSWERED -> ANSWERED_CORRECT -----------------> ADVANCED
    UNANSWERED -> ANSWERED_INCORRECT -> acknowledge -> ADVANCED

``has_answered`` and ``can_advance`` are separate gates so callers can
advance immediately after correct answers (or set
``auto_advance_on_correct``) while holding incorrect ones until the learner
has seen the feedback.

Every answer is folded into the ProgressStore by the ledger. When a
repository is injected, the new store is saved *before* the coordinator
adopts it, so a failed save leaves cursor, totals and store exactly as they
were and the same answer can be retried.

Caller mistakes raise SessionError subclasses and never change state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from recallforge.core.clock import Clock, SystemClock
from recallforge.core.config.study import QueueConfig, SessionConfig
from recallforge.core.exceptions import (
    AdvanceBlockedError,
    AlreadyAnsweredError,
    CorruptStateError,
    OutOfOrderAnswerError,
    SessionCompleteError,
    SessionNotStartedError,
    StorageError,
)
from recallforge.core.logging import SessionLogger, get_logger
from recallforge.study.ledger import ProgressLedger
from recallforge.study.models import ProgressStore, SchedulingState, parse_timestamp
from recallforge.study.queue_builder import build_queue
from recallforge.study.scheduler import PASSING_QUALITY, quality_from_answer, validate_quality

if TYPE_CHECKING:
    from recallforge.storage.repository import ProgressRepository

logger = get_logger(__name__)


class ItemPhase(Enum):
    """Where a queued item stands within the session."""

    UNANSWERED = "unanswered"
    ANSWERED_CORRECT = "answered_correct"
    ANSWERED_INCORRECT = "answered_incorrect"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class SessionTotals:
    """Additive counters for the current session (not persisted progress)."""

    correct: int = 0
    incorrect: int = 0
    xp_earned: int = 0

    @property
    def answered(self) -> int:
        return self.correct + self.incorrect

    @property
    def accuracy_percent(self) -> float:
        if self.answered == 0:
            return 0.0
        return self.correct / self.answered * 100

    def with_answer(self, is_correct: bool, xp: int) -> "SessionTotals":
        return SessionTotals(
            correct=self.correct + (1 if is_correct else 0),
            incorrect=self.incorrect + (0 if is_correct else 1),
            xp_earned=self.xp_earned + xp,
        )

    def to_dict(self) -> Dict[str, int]:
        return {"correct": self.correct, "incorrect": self.incorrect, "xp_earned": self.xp_earned}


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of SessionCoordinator.answer().

    Attributes:
        updated_state: The item's new SchedulingState
        totals: Session totals including this answer
        can_advance: Whether advance() is allowed right now
        store: The progress store after this answer
        is_correct: Whether the answer counted as correct
        xp_awarded: XP this answer earned
        leveled_up: True if this answer raised the level
        advanced: True if the cursor already moved (auto-advance)
    """

    updated_state: SchedulingState
    totals: SessionTotals
    can_advance: bool
    store: ProgressStore
    is_correct: bool
    xp_awarded: int
    leveled_up: bool
    advanced: bool = False


@dataclass(frozen=True)
class SessionSummary:
    """End-of-session report for display."""

    correct: int
    incorrect: int
    accuracy_percent: float
    xp_earned: int
    items_total: int
    items_answered: int
    completed: bool


@dataclass(frozen=True)
class SessionSnapshot:
    """Serializable in-progress session for restoring after a restart.

    Attributes:
        session_id: Identifier used in logs
        queue: Item ids of the session queue
        cursor: Index of the current item
        phase: Phase of the current item
        totals: Session totals so far
        started_at: When the session started
        saved_at: When the snapshot was taken
        acknowledged: Whether an incorrect current item was acknowledged
    """

    session_id: str
    queue: Tuple[str, ...]
    cursor: int
    phase: ItemPhase
    totals: SessionTotals
    started_at: datetime
    saved_at: datetime
    acknowledged: bool = False

    def is_restorable(self, now: datetime, window_minutes: int) -> bool:
        """True if younger than the window and pointing inside the queue."""
        age = now - self.saved_at
        if age < timedelta(0) or age >= timedelta(minutes=window_minutes):
            return False
        return 0 <= self.cursor < len(self.queue)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "queue": list(self.queue),
            "cursor": self.cursor,
            "phase": self.phase.value,
            "totals": self.totals.to_dict(),
            "started_at": self.started_at.isoformat(),
            "saved_at": self.saved_at.isoformat(),
            "acknowledged": self.acknowledged,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionSnapshot":
        """Create from dictionary.

        Raises:
            CorruptStateError: If required fields are missing or malformed
        """
        try:
            totals = data.get("totals") or {}
            return cls(
                session_id=str(data.get("session_id", "")),
                queue=tuple(str(item_id) for item_id in data["queue"]),
                cursor=int(data["cursor"]),
                phase=ItemPhase(data.get("phase", ItemPhase.UNANSWERED.value)),
                totals=SessionTotals(
                    correct=int(totals.get("correct", 0)),
                    incorrect=int(totals.get("incorrect", 0)),
                    xp_earned=int(totals.get("xp_earned", 0)),
                ),
                started_at=parse_timestamp(data["started_at"]),
                saved_at=parse_timestamp(data["saved_at"]),
                acknowledged=bool(data.get("acknowledged", False)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CorruptStateError(f"Unreadable session snapshot: {e}") from e


class SessionCoordinator:
    """Runs one study session at a time over a ProgressStore.

    Example:
        >>> session = SessionCoordinator(repository=repo, clock=clock)
        >>> queue = session.start_session(catalog_ids)
        >>> result = session.answer(session.current_item, 4)
        >>> session.advance()
        >>> summary = session.end_session()
    """

    def __init__(
        self,
        repository: Optional["ProgressRepository"] = None,
        ledger: Optional[ProgressLedger] = None,
        config: Optional[SessionConfig] = None,
        queue_config: Optional[QueueConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """Initialize coordinator.

        Args:
            repository: Persists the store after every answer (optional)
            ledger: Folds answers into progress; built from ``clock`` if None
            config: Session behavior
            queue_config: Reserved new-item slots for queue building
            clock: Source of "now"
        """
        self.clock = clock or (ledger.clock if ledger else SystemClock())
        self.ledger = ledger or ProgressLedger(clock=self.clock)
        self.repository = repository
        self.config = config or SessionConfig()
        self.queue_config = queue_config or QueueConfig()

        self._store: Optional[ProgressStore] = None
        self._queue: Tuple[str, ...] = ()
        self._phases: List[ItemPhase] = []
        self._cursor = 0
        self._acknowledged = False
        self._totals = SessionTotals()
        self._started_at: Optional[datetime] = None
        self._ended = False
        self._bonus_awarded = False
        self._session_log: Optional[SessionLogger] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_started(self) -> bool:
        return self._started_at is not None

    @property
    def store(self) -> Optional[ProgressStore]:
        """Progress store as of the last committed answer."""
        return self._store

    @property
    def queue(self) -> Tuple[str, ...]:
        return self._queue

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def totals(self) -> SessionTotals:
        return self._totals

    @property
    def is_complete(self) -> bool:
        """True once the cursor has passed the last queued item."""
        return self.is_started and self._cursor >= len(self._queue)

    @property
    def current_item(self) -> Optional[str]:
        if not self.is_started or self.is_complete:
            return None
        return self._queue[self._cursor]

    @property
    def phase(self) -> Optional[ItemPhase]:
        """Phase of the current item, None when there is none."""
        if self.current_item is None:
            return None
        return self._phases[self._cursor]

    @property
    def has_answered(self) -> bool:
        return self.phase in (ItemPhase.ANSWERED_CORRECT, ItemPhase.ANSWERED_INCORRECT)

    @property
    def can_advance(self) -> bool:
        """True after a correct answer, or an acknowledged incorrect one."""
        if self._ended:
            return False
        phase = self.phase
        if phase is ItemPhase.ANSWERED_CORRECT:
            return True
        return phase is ItemPhase.ANSWERED_INCORRECT and self._acknowledged

    def item_phase(self, index: int) -> ItemPhase:
        """Phase of the queue item at ``index``."""
        return self._phases[index]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_session(
        self,
        all_item_ids: Iterable[str],
        store: Optional[ProgressStore] = None,
        limit: Optional[int] = None,
    ) -> Tuple[str, ...]:
        """Build a queue and start a fresh session.

        Args:
            all_item_ids: Catalog ids
            store: Progress to study against; loaded from the repository
                (or empty) when None
            limit: Queue size; defaults to the configured session limit

        Returns:
            The session queue (may be empty, which completes the session)
        """
        if store is None:
            store = self._load_store()
        if limit is None:
            limit = self.config.default_limit

        now = self.clock.now()
        queue = tuple(build_queue(all_item_ids, store, limit, now, self.queue_config.min_new))
        if self.repository is not None:
            self.repository.clear_snapshot()

        self._begin(
            store=store,
            queue=queue,
            cursor=0,
            phase=ItemPhase.UNANSWERED,
            totals=SessionTotals(),
            started_at=now,
            session_id=uuid.uuid4().hex[:8],
        )
        self._session_log.start(items=len(queue))
        return queue

    def resume(
        self,
        snapshot: Optional[SessionSnapshot] = None,
        store: Optional[ProgressStore] = None,
    ) -> bool:
        """Continue a session from a snapshot.

        Args:
            snapshot: Snapshot to restore; read from the repository if None
            store: Progress to continue with; loaded when None

        Returns:
            True if restored, False if there was no usable snapshot
            (missing, older than the restore window, or cursor outside the queue)
        """
        if snapshot is None and self.repository is not None:
            snapshot = self.repository.load_snapshot()
        if snapshot is None:
            return False
        if not snapshot.is_restorable(self.clock.now(), self.config.restore_window_minutes):
            logger.info("Session snapshot expired", session_id=snapshot.session_id)
            return False

        self._begin(
            store=store if store is not None else self._load_store(),
            queue=snapshot.queue,
            cursor=snapshot.cursor,
            phase=snapshot.phase,
            totals=snapshot.totals,
            started_at=snapshot.started_at,
            session_id=snapshot.session_id,
        )
        self._acknowledged = (
            snapshot.acknowledged and snapshot.phase is ItemPhase.ANSWERED_INCORRECT
        )
        self._session_log.start(items=len(snapshot.queue), resumed_at=snapshot.cursor)
        return True

    def snapshot(self) -> SessionSnapshot:
        """Capture the session for later resume().

        Raises:
            SessionNotStartedError: If no session is running
        """
        self._require_started()
        phase = self.phase or ItemPhase.ADVANCED
        return SessionSnapshot(
            session_id=self._session_log.session_id,
            queue=self._queue,
            cursor=self._cursor,
            phase=phase,
            totals=self._totals,
            started_at=self._started_at,
            saved_at=self.clock.now(),
            acknowledged=self._acknowledged,
        )

    def end_session(self) -> SessionSummary:
        """Stop the session and report totals.

        Calling it again returns the same summary.
        """
        self._require_started()
        summary = SessionSummary(
            correct=self._totals.correct,
            incorrect=self._totals.incorrect,
            accuracy_percent=self._totals.accuracy_percent,
            xp_earned=self._totals.xp_earned,
            items_total=len(self._queue),
            items_answered=self._totals.answered,
            completed=self._cursor >= len(self._queue),
        )
        if not self._ended:
            self._ended = True
            if self.repository is not None:
                self.repository.clear_snapshot()
            self._session_log.finish(
                correct=summary.correct,
                incorrect=summary.incorrect,
                xp=summary.xp_earned,
                completed=summary.completed,
            )
        return summary

    # ------------------------------------------------------------------
    # Answer flow
    # ------------------------------------------------------------------

    def answer(self, item_id: str, quality: int) -> AnswerResult:
        """Record an answer for the current item.

        Args:
            item_id: Must equal current_item
            quality: Recall quality 0-5; >= 3 counts as correct

        Returns:
            AnswerResult with the new state, totals and gate

        Raises:
            SessionNotStartedError: Before start_session()/resume()
            SessionCompleteError: After the last item or end_session()
            OutOfOrderAnswerError: If item_id is not the current item
            AlreadyAnsweredError: If the current item already has an answer
            InvalidQualityError: If quality is not an int in 0..5
            StorageError: If saving the answer fails (session state is
                unchanged). A failed completion-bonus save during
                auto-advance is not raised: the answer stays recorded,
                ``advanced`` is False and the caller retries advance()
        """
        self._require_open()
        expected = self.current_item
        if item_id != expected:
            raise OutOfOrderAnswerError(item_id, expected)
        if self.has_answered:
            raise AlreadyAnsweredError(f"Item '{item_id}' was already answered")
        quality = validate_quality(quality)

        is_correct = quality >= PASSING_QUALITY
        result = self.ledger.record_answer(
            self._store, item_id, is_correct, self.clock.now(), quality
        )
        self._commit(result.store)

        self._totals = self._totals.with_answer(is_correct, result.xp_awarded)
        self._phases[self._cursor] = (
            ItemPhase.ANSWERED_CORRECT if is_correct else ItemPhase.ANSWERED_INCORRECT
        )
        self._acknowledged = False
        self._session_log.answer(item_id, quality, correct=is_correct)

        advanced = False
        if is_correct and self.config.auto_advance_on_correct:
            try:
                self.advance()
                advanced = True
            except StorageError as e:
                logger.warning(
                    "Auto-advance failed, answer kept", item_id=item_id, error=e
                )

        return AnswerResult(
            updated_state=result.state,
            totals=self._totals,
            can_advance=self.can_advance,
            store=self._store,
            is_correct=is_correct,
            xp_awarded=result.xp_awarded,
            leveled_up=result.leveled_up,
            advanced=advanced,
        )

    def answer_outcome(
        self, item_id: str, is_correct: bool, was_hard: bool = False
    ) -> AnswerResult:
        """Record a correct/incorrect answer using the simple quality mapping."""
        return self.answer(item_id, quality_from_answer(is_correct, was_hard))

    def acknowledge(self) -> None:
        """Release the hold placed by an incorrect answer.

        Raises:
            AdvanceBlockedError: If the current item has not been answered
        """
        self._require_open()
        if not self.has_answered:
            raise AdvanceBlockedError("Nothing to acknowledge: current item is unanswered")
        self._acknowledged = True

    def advance(self) -> Optional[str]:
        """Move to the next item.

        Returns:
            The new current item, or None when the session is complete

        Raises:
            AdvanceBlockedError: If the gate is closed
            SessionCompleteError: If the session is already complete or ended
            StorageError: If saving the completion bonus fails
        """
        self._require_open()
        if not self.can_advance:
            raise AdvanceBlockedError(
                f"Cannot advance past '{self.current_item}' in phase {self.phase.value}"
            )

        if self._cursor + 1 >= len(self._queue):
            self._award_completion_bonus()

        self._phases[self._cursor] = ItemPhase.ADVANCED
        self._cursor += 1
        self._acknowledged = False
        return self.current_item

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _begin(
        self,
        store: ProgressStore,
        queue: Tuple[str, ...],
        cursor: int,
        phase: ItemPhase,
        totals: SessionTotals,
        started_at: datetime,
        session_id: str,
    ) -> None:
        self._store = store
        self._queue = queue
        self._phases = [ItemPhase.ADVANCED] * cursor + [ItemPhase.UNANSWERED] * (
            len(queue) - cursor
        )
        if cursor < len(queue):
            self._phases[cursor] = phase
        self._cursor = cursor
        self._acknowledged = False
        self._totals = totals
        self._started_at = started_at
        self._ended = False
        self._bonus_awarded = False
        self._session_log = SessionLogger(session_id)

    def _load_store(self) -> ProgressStore:
        if self.repository is not None:
            return self.repository.load()
        return self.ledger.empty_store()

    def _commit(self, store: ProgressStore) -> None:
        """Persist then adopt; a failed save raises before adoption."""
        if self.repository is not None:
            self.repository.save(store)
        self._store = store

    def _award_completion_bonus(self) -> None:
        amount = self.ledger.gamification_config.completion_bonus_xp
        if amount <= 0 or self._bonus_awarded:
            return
        award = self.ledger.award_bonus(self._store, amount, self.clock.now())
        self._commit(award.store)
        self._bonus_awarded = True
        self._totals = replace(self._totals, xp_earned=self._totals.xp_earned + amount)

    def _require_started(self) -> None:
        if not self.is_started:
            raise SessionNotStartedError("No session has been started")

    def _require_open(self) -> None:
        self._require_started()
        if self._ended:
            raise SessionCompleteError("Session has ended")
        if self.is_complete:
            raise SessionCompleteError("Session is complete: all items were answered")
