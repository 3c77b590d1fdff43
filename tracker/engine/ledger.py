"""Completion ledger: sparse {periodStart → count} history of a goal tracker.

A period nobody touched has no record and reads as zero, so nothing has to
"close" a period when time moves on. Increment and decrement clamp silently
at [0, frequency]; none of these functions raise.
"""

from __future__ import annotations

from datetime import datetime

from tracker.engine.models import CompletionRecord, GoalProgress, GoalTracker
from tracker.engine.periods import period_start_ms

DEFAULT_HISTORY_LIMIT = 8


def find_record(
    completions: list[CompletionRecord],
    period_start: int,
) -> CompletionRecord | None:
    for record in completions:
        if record.period_start == period_start:
            return record
    return None


def current_period_start(tracker: GoalTracker, now: datetime) -> int:
    return period_start_ms(now, tracker.period, tracker.start_day, tracker.start_date)


def increment(tracker: GoalTracker, now: datetime) -> bool:
    """Add one completion to the current period. Returns False at the ceiling."""
    start = current_period_start(tracker, now)
    record = find_record(tracker.completions, start)
    if record is None:
        tracker.completions.append(CompletionRecord(period_start=start, count=1))
        return True
    if record.count >= tracker.frequency:
        return False
    record.count += 1
    return True


def decrement(tracker: GoalTracker, now: datetime) -> bool:
    """Remove one completion from the current period. Returns False at zero.

    A record that drops to 0 is kept: "touched, then undone" stays
    distinguishable from "never touched".
    """
    start = current_period_start(tracker, now)
    record = find_record(tracker.completions, start)
    if record is None or record.count <= 0:
        return False
    record.count -= 1
    return True


def current_progress(tracker: GoalTracker, now: datetime) -> GoalProgress:
    start = current_period_start(tracker, now)
    record = find_record(tracker.completions, start)
    return GoalProgress(
        count=record.count if record else 0,
        frequency=tracker.frequency,
        period_start=start,
    )


def full_history(tracker: GoalTracker) -> list[CompletionRecord]:
    """Every record, oldest period first."""
    return sorted(tracker.completions, key=lambda r: r.period_start)


def history(
    tracker: GoalTracker,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[CompletionRecord]:
    """The `limit` most recent records, oldest first (chart order)."""
    if limit <= 0:
        return []
    recent = sorted(tracker.completions, key=lambda r: r.period_start, reverse=True)[:limit]
    recent.reverse()
    return recent
