from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tracker.config import settings
from tracker.engine.store import TrackerStoreFacade

_raw_url = settings.database_url

if _raw_url.startswith("postgres://"):
    _raw_url = _raw_url.replace("postgres://", "postgresql+asyncpg://", 1)
elif _raw_url.startswith("postgresql://"):
    _raw_url = _raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)

engine = create_async_engine(_raw_url, pool_pre_ping=True)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

KV_TABLE_DDL = (
    "CREATE TABLE IF NOT EXISTS kv_store ("
    "store_key TEXT PRIMARY KEY, "
    "payload TEXT NOT NULL"
    ")"
)


async def ensure_schema(bind: AsyncEngine = engine) -> None:
    async with bind.begin() as conn:
        await conn.execute(text(KV_TABLE_DDL))


def get_tracker_store(request: Request) -> TrackerStoreFacade:
    """FastAPI dependency returning the façade created at startup."""
    return request.app.state.tracker_store
