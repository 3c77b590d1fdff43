"""Key-value persistence: one text document per key.

The store façade is the only caller. `SqlKeyValueStore` keeps documents in
the `kv_store` table through SQLAlchemy async sessions (SQLite or Postgres).
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> bool: ...


class SqlKeyValueStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, key: str) -> str | None:
        """Return the stored document, or None when the key was never written."""
        async with self._session_factory() as session:
            result = await session.execute(
                text("SELECT payload FROM kv_store WHERE store_key = :key"),
                {"key": key},
            )
            row = result.fetchone()
        if row is None:
            return None
        return row[0]

    async def set(self, key: str, value: str) -> bool:
        """Upsert the document. Returns False (and logs) when the write fails."""
        query = (
            "INSERT INTO kv_store (store_key, payload) VALUES (:key, :payload) "
            "ON CONFLICT (store_key) DO UPDATE SET payload = excluded.payload"
        )
        try:
            async with self._session_factory() as session:
                await session.execute(text(query), {"key": key, "payload": value})
                await session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to write key %s", key)
            return False
        return True
