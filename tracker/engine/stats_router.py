"""Stats endpoints: tag rollups, dashboard totals, per-tracker statistics."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from tracker.db import get_tracker_store
from tracker.engine.models import DashboardSummary, GoalStats, MeasurementSummary, TagStats
from tracker.engine.store import TrackerStoreFacade

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/tags", response_model=list[TagStats])
async def tag_stats(store: TrackerStoreFacade = Depends(get_tracker_store)) -> list[TagStats]:
    return store.stats_by_tag()


@router.get("/dashboard", response_model=DashboardSummary)
async def dashboard(store: TrackerStoreFacade = Depends(get_tracker_store)) -> DashboardSummary:
    return store.dashboard_summary()


@router.get("/goals/{goal_id}", response_model=GoalStats)
async def goal_stats(
    goal_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> GoalStats:
    result = store.goal_stats(goal_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Unknown goal tracker: {goal_id}")
    return result


@router.get("/measurements/{tracker_id}", response_model=MeasurementSummary)
async def measurement_stats(
    tracker_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> MeasurementSummary:
    result = store.measurement_summary(tracker_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Unknown measurement tracker: {tracker_id}")
    return result
