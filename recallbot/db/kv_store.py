"""Hash/set key-value store on top of SQLite."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, List, Mapping, Set

import aiosqlite

from recallbot.utils.errors import PersistenceFailure

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Redis-style hashes and sets stored in two SQLite tables.

    Every storage error is re-raised as PersistenceFailure so callers
    never depend on the SQLite driver.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open database connection."""
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        logger.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Database connection closed")

    @property
    def db(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if self._db is None:
            raise RuntimeError("Database not connected")
        return self._db

    @asynccontextmanager
    async def _guard(self, operation: str, key: str) -> AsyncIterator[None]:
        try:
            yield
        except aiosqlite.Error as e:
            logger.error(f"Store {operation} failed for {key}: {e}")
            raise PersistenceFailure(f"{operation} failed for {key}") from e

    # Hash operations

    async def hget(self, key: str, field: str) -> str | None:
        async with self._guard("hget", key):
            async with self.db.execute(
                "SELECT value FROM kv_hash WHERE key = ? AND field = ?", (key, field)
            ) as cursor:
                row = await cursor.fetchone()
                return row["value"] if row else None

    async def hset(self, key: str, field: str, value: str) -> None:
        async with self._guard("hset", key):
            await self.db.execute(
                """
                INSERT INTO kv_hash (key, field, value) VALUES (?, ?, ?)
                ON CONFLICT (key, field) DO UPDATE SET
                    value = excluded.value,
                    updated_at = datetime('now')
                """,
                (key, field, value),
            )
            await self.db.commit()

    async def hset_many(self, key: str, mapping: Mapping[str, str]) -> None:
        """Set several fields of one hash in a single transaction."""
        async with self._guard("hset_many", key):
            await self.db.executemany(
                """
                INSERT INTO kv_hash (key, field, value) VALUES (?, ?, ?)
                ON CONFLICT (key, field) DO UPDATE SET
                    value = excluded.value,
                    updated_at = datetime('now')
                """,
                [(key, field, value) for field, value in mapping.items()],
            )
            await self.db.commit()

    async def hdel(self, key: str, field: str) -> bool:
        """Delete a field. Returns True if it existed."""
        async with self._guard("hdel", key):
            cursor = await self.db.execute(
                "DELETE FROM kv_hash WHERE key = ? AND field = ?", (key, field)
            )
            await self.db.commit()
            return cursor.rowcount > 0

    async def hkeys(self, key: str) -> List[str]:
        """Enumerate the fields of a hash, in insertion order."""
        async with self._guard("hkeys", key):
            async with self.db.execute(
                "SELECT field FROM kv_hash WHERE key = ? ORDER BY rowid", (key,)
            ) as cursor:
                rows = await cursor.fetchall()
                return [row["field"] for row in rows]

    async def hgetall(self, key: str) -> Dict[str, str]:
        async with self._guard("hgetall", key):
            async with self.db.execute(
                "SELECT field, value FROM kv_hash WHERE key = ? ORDER BY rowid", (key,)
            ) as cursor:
                rows = await cursor.fetchall()
                return {row["field"]: row["value"] for row in rows}

    async def delete(self, key: str) -> None:
        """Delete a whole hash or set."""
        async with self._guard("delete", key):
            await self.db.execute("DELETE FROM kv_hash WHERE key = ?", (key,))
            await self.db.execute("DELETE FROM kv_set WHERE key = ?", (key,))
            await self.db.commit()

    # Set operations

    async def sadd(self, key: str, member: str) -> None:
        async with self._guard("sadd", key):
            await self.db.execute(
                "INSERT OR IGNORE INTO kv_set (key, member) VALUES (?, ?)", (key, member)
            )
            await self.db.commit()

    async def srem(self, key: str, member: str) -> None:
        async with self._guard("srem", key):
            await self.db.execute(
                "DELETE FROM kv_set WHERE key = ? AND member = ?", (key, member)
            )
            await self.db.commit()

    async def smembers(self, key: str) -> Set[str]:
        async with self._guard("smembers", key):
            async with self.db.execute(
                "SELECT member FROM kv_set WHERE key = ?", (key,)
            ) as cursor:
                rows = await cursor.fetchall()
                return {row["member"] for row in rows}
