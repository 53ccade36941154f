"""Schema setup for the key-value tables."""

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Bump together with a new entry in MIGRATIONS
SCHEMA_VERSION = 1


async def _create_tables(db: aiosqlite.Connection) -> None:
    await db.executescript(SCHEMA_PATH.read_text())


MIGRATIONS = {
    1: _create_tables,
}


async def get_schema_version(db_path: Path | str) -> int:
    async with aiosqlite.connect(db_path) as db:
        async with db.execute("PRAGMA user_version") as cursor:
            row = await cursor.fetchone()
            return row[0] if row else 0


async def run_migrations(db_path: Path | str) -> int:
    """Bring the database up to SCHEMA_VERSION.

    Each pending step runs once and records its number in SQLite's
    user_version. Returns the number of steps applied.
    """
    current = await get_schema_version(db_path)
    applied = 0

    async with aiosqlite.connect(db_path) as db:
        for version in range(current + 1, SCHEMA_VERSION + 1):
            await MIGRATIONS[version](db)
            # PRAGMA does not accept bound parameters
            await db.execute(f"PRAGMA user_version = {int(version)}")
            await db.commit()
            applied += 1
            logger.info(f"Applied schema migration {version} to {db_path}")

    if not applied:
        logger.info(f"Database at {db_path} is up to date (version {current})")
    return applied
