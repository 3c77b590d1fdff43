"""Tracker HTTP router: CRUD, ledger mutations, import/export."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from tracker.db import get_tracker_store
from tracker.engine.models import (
    CompletionRecord,
    EntryCreate,
    GoalCreate,
    GoalProgress,
    GoalTracker,
    GoalUpdate,
    MeasurementCreate,
    MeasurementEntry,
    MeasurementTracker,
    ReorderRequest,
    TrackerStore,
)
from tracker.engine.stats import RANGE_DAYS
from tracker.engine.store import TrackerStoreFacade

router = APIRouter(prefix="/trackers", tags=["trackers"])

PERSISTED_HEADER = "X-Tracker-Persisted"


def _mark_persisted(response: Response, store: TrackerStoreFacade) -> None:
    if not store.last_write_ok:
        response.headers[PERSISTED_HEADER] = "false"


def _no_content(store: TrackerStoreFacade) -> Response:
    response = Response(status_code=204)
    _mark_persisted(response, store)
    return response


def _not_found(kind: str, tracker_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Unknown {kind} tracker: {tracker_id}")


# ---------------------------------------------------------------------------
# Whole store
# ---------------------------------------------------------------------------


@router.get("/store", response_model=TrackerStore)
async def get_store(store: TrackerStoreFacade = Depends(get_tracker_store)) -> TrackerStore:
    return store.snapshot


@router.get("/export")
async def export_store(store: TrackerStoreFacade = Depends(get_tracker_store)) -> Response:
    return Response(
        content=store.export_data(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="tracker-data.json"'},
    )


@router.post("/import")
async def import_store(
    request: Request,
    response: Response,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> dict[str, bool]:
    """Replace the whole store with the request body. Never errors on bad input."""
    try:
        raw = (await request.body()).decode("utf-8")
    except UnicodeDecodeError:
        return {"ok": False}
    ok = await store.import_data(raw)
    if ok:
        _mark_persisted(response, store)
    return {"ok": ok}


# ---------------------------------------------------------------------------
# Goal trackers
# ---------------------------------------------------------------------------


@router.post("/goals", response_model=GoalTracker, status_code=201)
async def create_goal(
    body: GoalCreate,
    response: Response,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> GoalTracker:
    goal = await store.add_goal(body)
    _mark_persisted(response, store)
    return goal


@router.post("/goals/reorder", response_model=list[GoalTracker])
async def reorder_goals(
    body: ReorderRequest,
    response: Response,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> list[GoalTracker]:
    try:
        goals = await store.reorder_goals(body.from_index, body.to_index)
    except IndexError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    _mark_persisted(response, store)
    return goals


@router.get("/goals/{goal_id}", response_model=GoalTracker)
async def get_goal(
    goal_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> GoalTracker:
    goal = store.get_goal(goal_id)
    if goal is None:
        raise _not_found("goal", goal_id)
    return goal


@router.patch("/goals/{goal_id}", response_model=GoalTracker)
async def update_goal(
    goal_id: str,
    body: GoalUpdate,
    response: Response,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> GoalTracker:
    goal = await store.update_goal(goal_id, body)
    if goal is None:
        raise _not_found("goal", goal_id)
    _mark_persisted(response, store)
    return goal


@router.delete("/goals/{goal_id}", status_code=204)
async def delete_goal(
    goal_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> Response:
    if not await store.delete_goal(goal_id):
        raise _not_found("goal", goal_id)
    return _no_content(store)


@router.post("/goals/{goal_id}/increment", response_model=GoalProgress)
async def increment_goal(
    goal_id: str,
    response: Response,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> GoalProgress:
    progress = await store.increment_goal(goal_id)
    if progress is None:
        raise _not_found("goal", goal_id)
    _mark_persisted(response, store)
    return progress


@router.post("/goals/{goal_id}/decrement", response_model=GoalProgress)
async def decrement_goal(
    goal_id: str,
    response: Response,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> GoalProgress:
    progress = await store.decrement_goal(goal_id)
    if progress is None:
        raise _not_found("goal", goal_id)
    _mark_persisted(response, store)
    return progress


@router.get("/goals/{goal_id}/progress", response_model=GoalProgress)
async def goal_progress(
    goal_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> GoalProgress:
    progress = store.current_progress(goal_id)
    if progress is None:
        raise _not_found("goal", goal_id)
    return progress


@router.get("/goals/{goal_id}/history", response_model=list[CompletionRecord])
async def goal_history(
    goal_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
    limit: int | None = Query(default=None, ge=1, le=366, description="Most recent periods to return"),
) -> list[CompletionRecord]:
    records = store.history(goal_id, limit)
    if records is None:
        raise _not_found("goal", goal_id)
    return records


# ---------------------------------------------------------------------------
# Measurement trackers
# ---------------------------------------------------------------------------


@router.post("/measurements", response_model=MeasurementTracker, status_code=201)
async def create_measurement(
    body: MeasurementCreate,
    response: Response,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> MeasurementTracker:
    tracker = await store.add_measurement(body)
    _mark_persisted(response, store)
    return tracker


@router.post("/measurements/reorder", response_model=list[MeasurementTracker])
async def reorder_measurements(
    body: ReorderRequest,
    response: Response,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> list[MeasurementTracker]:
    try:
        trackers = await store.reorder_measurements(body.from_index, body.to_index)
    except IndexError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    _mark_persisted(response, store)
    return trackers


@router.get("/measurements/{tracker_id}", response_model=MeasurementTracker)
async def get_measurement(
    tracker_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> MeasurementTracker:
    tracker = store.get_measurement(tracker_id)
    if tracker is None:
        raise _not_found("measurement", tracker_id)
    return tracker


@router.delete("/measurements/{tracker_id}", status_code=204)
async def delete_measurement(
    tracker_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> Response:
    if not await store.delete_measurement(tracker_id):
        raise _not_found("measurement", tracker_id)
    return _no_content(store)


@router.post("/measurements/{tracker_id}/entries", response_model=MeasurementEntry, status_code=201)
async def add_entry(
    tracker_id: str,
    body: EntryCreate,
    response: Response,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> MeasurementEntry:
    entry = await store.add_measurement_entry(tracker_id, body)
    if entry is None:
        raise _not_found("measurement", tracker_id)
    _mark_persisted(response, store)
    return entry


@router.get("/measurements/{tracker_id}/entries", response_model=list[MeasurementEntry])
async def list_entries(
    tracker_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
    range_name: str = Query(default="all", alias="range", description="week | month | 3months | all"),
) -> list[MeasurementEntry]:
    if range_name not in RANGE_DAYS:
        raise HTTPException(status_code=422, detail=f"Unknown range: {range_name}")
    entries = store.measurement_entries(tracker_id, range_name)
    if entries is None:
        raise _not_found("measurement", tracker_id)
    return entries


# ---------------------------------------------------------------------------
# Either kind
# ---------------------------------------------------------------------------


@router.get("/{tracker_id}", response_model=GoalTracker | MeasurementTracker)
async def get_tracker(
    tracker_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> GoalTracker | MeasurementTracker:
    tracker = store.get_tracker(tracker_id)
    if tracker is None:
        raise HTTPException(status_code=404, detail=f"Unknown tracker: {tracker_id}")
    return tracker


@router.delete("/{tracker_id}", status_code=204)
async def delete_tracker(
    tracker_id: str,
    store: TrackerStoreFacade = Depends(get_tracker_store),
) -> Response:
    if not await store.delete_tracker(tracker_id):
        raise HTTPException(status_code=404, detail=f"Unknown tracker: {tracker_id}")
    return _no_content(store)
