"""Goal and measurement repositories: CRUD over one TrackerStore snapshot.

Repositories mutate the snapshot they wrap and never persist; the façade
decides which snapshot is live and when it is written.
"""

from __future__ import annotations

import random
import string
from datetime import datetime
from typing import TypeVar

from tracker.engine import ledger
from tracker.engine.models import (
    EntryCreate,
    GoalCreate,
    GoalTracker,
    GoalUpdate,
    MeasurementCreate,
    MeasurementEntry,
    MeasurementTracker,
    TrackerStore,
)
from tracker.engine.periods import to_epoch_ms

_ID_ALPHABET = string.ascii_lowercase + string.digits

T = TypeVar("T")


def generate_id(now: datetime) -> str:
    """`<epoch ms>-<9 base36 chars>`; unique in practice, not guaranteed."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{to_epoch_ms(now)}-{suffix}"


def move_item(items: list[T], from_index: int, to_index: int) -> None:
    """Move one element, keeping everyone else's relative order.

    Raises IndexError for out-of-range indices (caller bug, not user input).
    """
    size = len(items)
    if not 0 <= from_index < size or not 0 <= to_index < size:
        raise IndexError(f"reorder indices out of range: {from_index} -> {to_index} (size {size})")
    item = items.pop(from_index)
    items.insert(to_index, item)


class GoalRepository:
    def __init__(self, store: TrackerStore):
        self.store = store

    def get(self, goal_id: str) -> GoalTracker | None:
        return next((g for g in self.store.goals if g.id == goal_id), None)

    def create(self, data: GoalCreate, now: datetime) -> GoalTracker:
        goal = GoalTracker(
            **data.model_dump(),
            id=generate_id(now),
            completions=[],
            created_at=to_epoch_ms(now),
        )
        self.store.goals.append(goal)
        return goal

    def update(self, goal_id: str, updates: GoalUpdate) -> GoalTracker | None:
        """Merge only the fields that were sent.

        Existing completions are left keyed to the periods they were written
        under, even when period or anchors change.
        """
        goal = self.get(goal_id)
        if goal is None:
            return None
        for field_name, value in updates.model_dump(exclude_unset=True).items():
            setattr(goal, field_name, value)
        return goal

    def delete(self, goal_id: str) -> bool:
        before = len(self.store.goals)
        self.store.goals = [g for g in self.store.goals if g.id != goal_id]
        return len(self.store.goals) != before

    def reorder(self, from_index: int, to_index: int) -> None:
        move_item(self.store.goals, from_index, to_index)

    def increment(self, goal_id: str, now: datetime) -> GoalTracker | None:
        goal = self.get(goal_id)
        if goal is not None:
            ledger.increment(goal, now)
        return goal

    def decrement(self, goal_id: str, now: datetime) -> GoalTracker | None:
        goal = self.get(goal_id)
        if goal is not None:
            ledger.decrement(goal, now)
        return goal


class MeasurementRepository:
    def __init__(self, store: TrackerStore):
        self.store = store

    def get(self, tracker_id: str) -> MeasurementTracker | None:
        return next((m for m in self.store.measurements if m.id == tracker_id), None)

    def create(self, data: MeasurementCreate, now: datetime) -> MeasurementTracker:
        tracker = MeasurementTracker(
            **data.model_dump(),
            id=generate_id(now),
            entries=[],
            created_at=to_epoch_ms(now),
        )
        self.store.measurements.append(tracker)
        return tracker

    def add_entry(
        self,
        tracker_id: str,
        data: EntryCreate,
        now: datetime,
    ) -> MeasurementEntry | None:
        tracker = self.get(tracker_id)
        if tracker is None:
            return None
        entry = MeasurementEntry(
            id=generate_id(now),
            value=data.value,
            date=data.date if data.date is not None else to_epoch_ms(now),
        )
        tracker.entries.append(entry)
        return entry

    def delete(self, tracker_id: str) -> bool:
        before = len(self.store.measurements)
        self.store.measurements = [m for m in self.store.measurements if m.id != tracker_id]
        return len(self.store.measurements) != before

    def reorder(self, from_index: int, to_index: int) -> None:
        move_item(self.store.measurements, from_index, to_index)
