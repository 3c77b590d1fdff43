"""Pure aggregation functions: recomputed from the snapshot, never raise."""

from __future__ import annotations

from datetime import datetime, timedelta

from tracker.engine import ledger
from tracker.engine.models import (
    CompletionRecord,
    DashboardSummary,
    GoalStats,
    GoalTracker,
    MeasurementEntry,
    MeasurementSummary,
    MeasurementTrend,
    TagStats,
    TrendDirection,
)
from tracker.engine.periods import to_epoch_ms

# Chart windows for measurement entries, in days (None = everything)
RANGE_DAYS: dict[str, int | None] = {
    "week": 7,
    "month": 30,
    "3months": 90,
    "all": None,
}


# ---------------------------------------------------------------------------
# Goal streaks and rates
# ---------------------------------------------------------------------------

def _met(record: CompletionRecord, frequency: int) -> bool:
    return record.count >= frequency


def current_streak(records: list[CompletionRecord], frequency: int) -> int:
    """Consecutive met-target periods counted back from the most recent record.

    `records` must be oldest first. An unmet current period ends the streak
    at zero even when the periods before it were met.
    """
    streak = 0
    for record in reversed(records):
        if not _met(record, frequency):
            break
        streak += 1
    return streak


def best_streak(records: list[CompletionRecord], frequency: int) -> int:
    """Longest run of consecutive met-target records (oldest first)."""
    best = 0
    running = 0
    for record in records:
        if _met(record, frequency):
            running += 1
            best = max(best, running)
        else:
            running = 0
    return best


def completion_rate(records: list[CompletionRecord], frequency: int) -> float:
    """Fraction of records meeting target. 0.0 when there are none."""
    if not records:
        return 0.0
    return sum(1 for r in records if _met(r, frequency)) / len(records)


def total_completions(records: list[CompletionRecord]) -> int:
    return sum(r.count for r in records)


def goal_stats(tracker: GoalTracker, limit: int = ledger.DEFAULT_HISTORY_LIMIT) -> GoalStats:
    """Streaks, rate and totals over the tracker's recent history window."""
    records = ledger.history(tracker, limit)
    rate = completion_rate(records, tracker.frequency)
    return GoalStats(
        streak=current_streak(records, tracker.frequency),
        best_streak=best_streak(records, tracker.frequency),
        completion_rate=rate,
        completion_pct=round(rate * 100),
        total_completions=total_completions(records),
        goals_met=sum(1 for r in records if _met(r, tracker.frequency)),
        periods=len(records),
    )


# ---------------------------------------------------------------------------
# Tag rollups
# ---------------------------------------------------------------------------

def stats_by_tag(goals: list[GoalTracker], now: datetime) -> list[TagStats]:
    """Group goals by tag in one pass; tags keep first-seen order.

    The tag colour comes from the first goal seen with that tag.
    """
    by_tag: dict[str, TagStats] = {}
    for goal in goals:
        progress = ledger.current_progress(goal, now)
        stats = by_tag.get(goal.tag)
        if stats is None:
            stats = TagStats(tag=goal.tag, tag_color=goal.tag_color)
            by_tag[goal.tag] = stats
        stats.total_goals += 1
        stats.completed_periods += sum(1 for r in goal.completions if _met(r, goal.frequency))
        stats.total_periods += len(goal.completions)
        stats.current_progress += progress.count
        stats.current_target += goal.frequency
    return list(by_tag.values())


def dashboard_summary(goals: list[GoalTracker], now: datetime) -> DashboardSummary:
    tags = stats_by_tag(goals, now)
    return DashboardSummary(
        current_progress=sum(t.current_progress for t in tags),
        current_target=sum(t.current_target for t in tags),
        tags=tags,
    )


# ---------------------------------------------------------------------------
# Measurements
# ---------------------------------------------------------------------------

def chronological(entries: list[MeasurementEntry]) -> list[MeasurementEntry]:
    """Entries ordered by reading date; insertion order breaks ties."""
    return sorted(entries, key=lambda e: e.date)


def measurement_trend(entries: list[MeasurementEntry]) -> MeasurementTrend:
    """Compare the two most recent readings (by date).

    Fewer than two readings → "same" with zero magnitude.
    """
    ordered = chronological(entries)
    if len(ordered) < 2:
        return MeasurementTrend()
    latest = ordered[-1].value
    previous = ordered[-2].value
    if latest < previous:
        direction = TrendDirection.down
    elif latest > previous:
        direction = TrendDirection.up
    else:
        direction = TrendDirection.same
    return MeasurementTrend(direction=direction, magnitude=abs(latest - previous))


def measurement_summary(entries: list[MeasurementEntry]) -> MeasurementSummary:
    ordered = chronological(entries)
    if not ordered:
        return MeasurementSummary()
    values = [e.value for e in ordered]
    latest = ordered[-1]
    start = ordered[0]
    return MeasurementSummary(
        latest=latest,
        previous=ordered[-2] if len(ordered) > 1 else None,
        start=start,
        total_change=latest.value - start.value,
        lowest=min(values),
        highest=max(values),
        trend=measurement_trend(ordered),
        entry_count=len(ordered),
    )


def entries_in_range(
    entries: list[MeasurementEntry],
    now: datetime,
    range_name: str = "all",
) -> list[MeasurementEntry]:
    """Entries within the named window ending at `now`, oldest first.

    Unknown range names fall back to "all".
    """
    days = RANGE_DAYS.get(range_name)
    ordered = chronological(entries)
    if days is None:
        return ordered
    cutoff = to_epoch_ms(now - timedelta(days=days))
    return [e for e in ordered if e.date >= cutoff]
