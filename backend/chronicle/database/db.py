"""
Database connection and initialization.
"""

import aiosqlite
from pathlib import Path
from chronicle.config import settings
from chronicle.logging import get_logger

logger = get_logger('database')

NODE_TABLES = ("eras", "events", "scenes")


async def init_db(db_path: str | Path | None = None):
    """
    Initialize database with schema.

    :param db_path: Database file path; defaults to the configured DATABASE_PATH
    :type db_path: str | Path | None
    :return: None
    :rtype: None
    """
    database_path = Path(db_path or settings.DATABASE_PATH)
    database_path.parent.mkdir(parents=True, exist_ok=True)

    async with aiosqlite.connect(database_path) as db:
        schema_path = Path(__file__).parent / "init_db.sql"
        with open(schema_path) as f:
            await db.executescript(f.read())
        await db.commit()
        logger.info(f"Database initialized at {database_path}")
