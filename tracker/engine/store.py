"""Store façade: the one object the presentation layer talks to.

Owns the live TrackerStore snapshot and the key-value store it is persisted
to. Every mutation runs read → copy → modify → swap → persist under one
asyncio.Lock, so back-to-back calls never build on a stale snapshot.

A failed write does not roll the in-memory snapshot back; it is logged and
reported through `last_write_ok` until the next successful write.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Callable
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from tracker.config import settings
from tracker.engine import ledger, stats
from tracker.engine.models import (
    CompletionRecord,
    DashboardSummary,
    EntryCreate,
    GoalCreate,
    GoalProgress,
    GoalStats,
    GoalTracker,
    GoalUpdate,
    MeasurementCreate,
    MeasurementEntry,
    MeasurementSummary,
    MeasurementTracker,
    TagStats,
    Tracker,
    TrackerStore,
)
from tracker.engine.repository import GoalRepository, MeasurementRepository
from tracker.engine.storage import KeyValueStore

logger = logging.getLogger(__name__)

Listener = Callable[[TrackerStore], None]


def _default_clock() -> datetime:
    return datetime.now(ZoneInfo(settings.default_tz))


def serialize_store(store: TrackerStore, indent: int | None = None) -> str:
    return store.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def parse_store(raw: str) -> TrackerStore | None:
    """Parse a store document. None unless both `goals` and `measurements` are lists."""
    try:
        data: Any = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    if not isinstance(data.get("goals"), list) or not isinstance(data.get("measurements"), list):
        return None
    try:
        return TrackerStore.model_validate(data)
    except ValidationError:
        return None


class TrackerStoreFacade:
    def __init__(
        self,
        kv: KeyValueStore,
        *,
        key: str | None = None,
        clock: Callable[[], datetime] | None = None,
        history_limit: int | None = None,
    ):
        self._kv = kv
        self._key = key or settings.storage_key
        self._clock = clock or _default_clock
        self._history_limit = history_limit or settings.history_limit
        self._store = TrackerStore()
        self._lock = asyncio.Lock()
        self._listeners: list[Listener] = []
        self.last_write_ok = True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> TrackerStore:
        """Read the persisted document; first run writes an empty store."""
        async with self._lock:
            raw = await self._kv.get(self._key)
            if raw is None:
                logger.info("No stored trackers under %s, initializing empty store", self._key)
                await self._commit(TrackerStore())
                return self._store
            parsed = parse_store(raw)
            if parsed is None:
                # Leave the unreadable document in place for manual recovery
                logger.error("Stored tracker data under %s is unreadable, starting empty", self._key)
                self._store = TrackerStore()
            else:
                self._store = parsed
                logger.info(
                    "Loaded %d goal and %d measurement trackers",
                    len(parsed.goals),
                    len(parsed.measurements),
                )
            return self._store

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(snapshot)` after every committed mutation."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _commit(self, new_store: TrackerStore) -> bool:
        self._store = new_store
        ok = await self._kv.set(self._key, serialize_store(new_store))
        if not ok:
            logger.error("Tracker store write failed; in-memory state is ahead of storage")
        self.last_write_ok = ok
        for listener in list(self._listeners):
            try:
                listener(new_store)
            except Exception:
                logger.exception("Store listener %r failed", listener)
        return ok

    async def _mutate(self, change: Callable[[TrackerStore], Any]) -> Any:
        """Apply `change` to a copy of the live snapshot and commit it.

        Nothing is committed when `change` returns None or False (target absent).
        """
        async with self._lock:
            draft = self._store.model_copy(deep=True)
            result = change(draft)
            if result is None or result is False:
                return result
            await self._commit(draft)
            return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> TrackerStore:
        return self._store.model_copy(deep=True)

    def now(self) -> datetime:
        return self._clock()

    def get_goal(self, goal_id: str) -> GoalTracker | None:
        return GoalRepository(self._store).get(goal_id)

    def get_measurement(self, tracker_id: str) -> MeasurementTracker | None:
        return MeasurementRepository(self._store).get(tracker_id)

    def get_tracker(self, tracker_id: str) -> Tracker | None:
        return self.get_goal(tracker_id) or self.get_measurement(tracker_id)

    def current_progress(self, goal_id: str) -> GoalProgress | None:
        goal = self.get_goal(goal_id)
        if goal is None:
            return None
        return ledger.current_progress(goal, self.now())

    def history(self, goal_id: str, limit: int | None = None) -> list[CompletionRecord] | None:
        goal = self.get_goal(goal_id)
        if goal is None:
            return None
        return ledger.history(goal, self._history_limit if limit is None else limit)

    def goal_stats(self, goal_id: str) -> GoalStats | None:
        goal = self.get_goal(goal_id)
        if goal is None:
            return None
        return stats.goal_stats(goal, self._history_limit)

    def stats_by_tag(self) -> list[TagStats]:
        return stats.stats_by_tag(self._store.goals, self.now())

    def dashboard_summary(self) -> DashboardSummary:
        return stats.dashboard_summary(self._store.goals, self.now())

    def measurement_summary(self, tracker_id: str) -> MeasurementSummary | None:
        tracker = self.get_measurement(tracker_id)
        if tracker is None:
            return None
        return stats.measurement_summary(tracker.entries)

    def measurement_entries(
        self,
        tracker_id: str,
        range_name: str = "all",
    ) -> list[MeasurementEntry] | None:
        tracker = self.get_measurement(tracker_id)
        if tracker is None:
            return None
        return stats.entries_in_range(tracker.entries, self.now(), range_name)

    def export_data(self) -> str:
        return serialize_store(self._store, indent=2)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_goal(self, data: GoalCreate) -> GoalTracker:
        now = self.now()
        goal = await self._mutate(lambda s: GoalRepository(s).create(data, now))
        logger.info("Created goal tracker %s (%s)", goal.id, goal.name)
        return goal

    async def update_goal(self, goal_id: str, updates: GoalUpdate) -> GoalTracker | None:
        return await self._mutate(lambda s: GoalRepository(s).update(goal_id, updates))

    async def delete_goal(self, goal_id: str) -> bool:
        deleted = await self._mutate(lambda s: GoalRepository(s).delete(goal_id))
        if deleted:
            logger.info("Deleted goal tracker %s", goal_id)
        return deleted

    async def increment_goal(self, goal_id: str) -> GoalProgress | None:
        """Increment the current period; returns progress as committed."""
        now = self.now()

        def change(s: TrackerStore) -> GoalProgress | None:
            goal = GoalRepository(s).increment(goal_id, now)
            return None if goal is None else ledger.current_progress(goal, now)

        return await self._mutate(change)

    async def decrement_goal(self, goal_id: str) -> GoalProgress | None:
        now = self.now()

        def change(s: TrackerStore) -> GoalProgress | None:
            goal = GoalRepository(s).decrement(goal_id, now)
            return None if goal is None else ledger.current_progress(goal, now)

        return await self._mutate(change)

    async def reorder_goals(self, from_index: int, to_index: int) -> list[GoalTracker]:
        def change(s: TrackerStore) -> list[GoalTracker]:
            GoalRepository(s).reorder(from_index, to_index)
            return s.goals

        return await self._mutate(change)

    async def add_measurement(self, data: MeasurementCreate) -> MeasurementTracker:
        now = self.now()
        tracker = await self._mutate(lambda s: MeasurementRepository(s).create(data, now))
        logger.info("Created measurement tracker %s (%s)", tracker.id, tracker.name)
        return tracker

    async def add_measurement_entry(
        self,
        tracker_id: str,
        data: EntryCreate,
    ) -> MeasurementEntry | None:
        now = self.now()
        return await self._mutate(lambda s: MeasurementRepository(s).add_entry(tracker_id, data, now))

    async def delete_measurement(self, tracker_id: str) -> bool:
        deleted = await self._mutate(lambda s: MeasurementRepository(s).delete(tracker_id))
        if deleted:
            logger.info("Deleted measurement tracker %s", tracker_id)
        return deleted

    async def reorder_measurements(self, from_index: int, to_index: int) -> list[MeasurementTracker]:
        def change(s: TrackerStore) -> list[MeasurementTracker]:
            MeasurementRepository(s).reorder(from_index, to_index)
            return s.measurements

        return await self._mutate(change)

    async def delete_tracker(self, tracker_id: str) -> bool:
        """Delete a tracker of either kind."""
        tracker = self.get_tracker(tracker_id)
        if isinstance(tracker, GoalTracker):
            return await self.delete_goal(tracker_id)
        if isinstance(tracker, MeasurementTracker):
            return await self.delete_measurement(tracker_id)
        return False

    async def import_data(self, raw: str) -> bool:
        """Replace the whole store with `raw`. False (store untouched) if invalid."""
        new_store = parse_store(raw)
        if new_store is None:
            logger.warning("Import rejected: document is not a valid tracker store")
            return False
        async with self._lock:
            await self._commit(new_store)
        logger.info(
            "Imported %d goal and %d measurement trackers",
            len(new_store.goals),
            len(new_store.measurements),
        )
        return True
