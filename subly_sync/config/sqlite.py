"""
SQLite configuration store using aiosqlite.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import aiosqlite

from .store import ConfigStore

logger = logging.getLogger(__name__)


class SQLiteConfigStore(ConfigStore):
    """
    Persists configuration values as JSON text in a ``config`` table.

    A connection is opened per operation; the schema is created on first use.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._lock = asyncio.Lock()
        self._initialized = False

    async def _ensure_schema(self) -> None:
        async with self._lock:
            if self._initialized:
                return

            # Ensure database directory exists
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    "CREATE TABLE IF NOT EXISTS config ("
                    "key TEXT PRIMARY KEY, "
                    "value TEXT NOT NULL)"
                )
                await db.commit()

            self._initialized = True
            logger.info(f"Config store ready at {self.db_path}")

    async def get(self, key: str) -> Optional[Any]:
        await self._ensure_schema()
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute("SELECT value FROM config WHERE key = ?", (key,)) as cursor:
                row = await cursor.fetchone()

        if row is None:
            return None

        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt config value for {key}: {e}")
            return None

    async def set(self, key: str, value: Any) -> None:
        await self._ensure_schema()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO config (key, value) VALUES (?, ?)",
                (key, json.dumps(value)),
            )
            await db.commit()

    async def delete(self, key: str) -> bool:
        await self._ensure_schema()
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("DELETE FROM config WHERE key = ?", (key,))
            await db.commit()
            return cursor.rowcount > 0
