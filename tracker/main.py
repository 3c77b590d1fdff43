import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tracker.config import settings
from tracker.db import async_session, ensure_schema
from tracker.engine.router import router as tracker_router
from tracker.engine.stats_router import router as stats_router
from tracker.engine.storage import SqlKeyValueStore
from tracker.engine.store import TrackerStoreFacade

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await ensure_schema()
    store = TrackerStoreFacade(SqlKeyValueStore(async_session))
    await store.load()
    app.state.tracker_store = store
    logger.info("Tracker store ready (tz=%s)", settings.default_tz)
    yield


app = FastAPI(title="TrackerKernel", version="0.1.0", lifespan=lifespan)
app.include_router(tracker_router)
app.include_router(stats_router)


@app.get("/")
async def root() -> dict:
    return {
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "trackers": {
            "store": "/trackers/store",
            "goals": "/trackers/goals/{id}",
            "goal_progress": "/trackers/goals/{id}/progress",
            "goal_history": "/trackers/goals/{id}/history",
            "measurements": "/trackers/measurements/{id}",
            "export": "/trackers/export",
            "import": "/trackers/import",
        },
        "stats": {
            "tags": "/stats/tags",
            "dashboard": "/stats/dashboard",
            "goal": "/stats/goals/{id}",
            "measurement": "/stats/measurements/{id}",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
