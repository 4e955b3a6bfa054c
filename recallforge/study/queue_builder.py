"""Study queue assembly.

A queue mixes due reviews with never-seen items under a size budget:

1. Due items (state exists and next_review_due <= now) are ranked by
   ``days_overdue + (3 - ease_factor)``, highest first, ties by item id.
   Long-overdue and hard items come first.
2. Due items take at most ``limit - min_new`` slots so new material keeps
   flowing even with a large review backlog.
3. New items (no state yet) fill the rest of the budget in catalog order.
   When reviews are scarce they may take more than ``min_new`` slots.

Only ids in the caller's catalog are considered. Progress recorded for items
that have since left the catalog is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Tuple

from recallforge.core.clock import ensure_aware
from recallforge.study.models import ProgressStore, SchedulingState

DEFAULT_QUEUE_LIMIT: int = 20
DEFAULT_MIN_NEW: int = 5
EASE_PRIORITY_PIVOT: float = 3.0


@dataclass(frozen=True)
class StudyQueue:
    """Queue split into its due and new parts."""

    due_items: Tuple[str, ...] = ()
    new_items: Tuple[str, ...] = ()

    @property
    def item_ids(self) -> Tuple[str, ...]:
        """Due items first, then new items."""
        return self.due_items + self.new_items

    def __len__(self) -> int:
        return len(self.due_items) + len(self.new_items)


def review_priority(state: SchedulingState, now: datetime) -> float:
    """Ranking key for a due item; higher means review sooner."""
    return state.days_overdue(now) + (EASE_PRIORITY_PIVOT - state.ease_factor)


def unique_ids(all_item_ids: Iterable[str]) -> List[str]:
    """De-duplicate ids, keeping the first occurrence of each."""
    seen = set()
    ordered = []
    for item_id in all_item_ids:
        if item_id not in seen:
            seen.add(item_id)
            ordered.append(item_id)
    return ordered


def build_study_queue(
    all_item_ids: Iterable[str],
    store: ProgressStore,
    limit: int,
    now: datetime,
    min_new: int = DEFAULT_MIN_NEW,
) -> StudyQueue:
    """Select and order items for one study session.

    Args:
        all_item_ids: Catalog ids in display order (duplicates are ignored)
        store: Persisted progress
        limit: Maximum queue length; <= 0 yields an empty queue
        now: Time used to decide what is due; naive values are read in the
            host zone
        min_new: New-item slots reserved out of ``limit``

    Returns:
        StudyQueue with no id repeated and at most ``limit`` entries
    """
    if limit <= 0:
        return StudyQueue()

    now = ensure_aware(now)
    catalog = unique_ids(all_item_ids)
    due: List[SchedulingState] = []
    new: List[str] = []
    for item_id in catalog:
        state = store.get_state(item_id)
        if state is None:
            new.append(item_id)
        elif state.is_due(now):
            due.append(state)

    due.sort(key=lambda s: (-review_priority(s, now), s.item_id))
    due_slots = max(0, limit - max(0, min_new))
    due_ids = tuple(s.item_id for s in due[:due_slots])

    new_ids = tuple(new[: limit - len(due_ids)])
    return StudyQueue(due_items=due_ids, new_items=new_ids)


def build_queue(
    all_item_ids: Iterable[str],
    store: ProgressStore,
    limit: int,
    now: datetime,
    min_new: int = DEFAULT_MIN_NEW,
) -> List[str]:
    """Ordered item ids for a study session: due reviews, then new items."""
    return list(build_study_queue(all_item_ids, store, limit, now, min_new).item_ids)
