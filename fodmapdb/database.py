"""
Backend selection and generic CRUD helpers.

The helpers only use the shared coroutine surface, so they behave the
same on the emulated store and on SQLite.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from fodmapdb.config import Settings, settings as default_settings
from fodmapdb.native import SqliteDatabase
from fodmapdb.query.query_interface import EmulatedDatabase
from fodmapdb.storage.backends import FileStorage

logger = logging.getLogger(__name__)

Database = Union[EmulatedDatabase, SqliteDatabase]


def open_database(settings: Optional[Settings] = None) -> Database:
    """
    Open the configured backend.

    Call once at process start and pass the result around; every call
    builds a fresh, independent instance.
    """
    settings = settings or default_settings
    if settings.backend == "sqlite":
        logger.info("Using SQLite database at %s", settings.database_path)
        return SqliteDatabase(settings.database_path)

    logger.info("Using emulated database under %s", settings.data_root)
    return EmulatedDatabase.open(FileStorage(settings.data_root), settings.storage_key)


async def insert_row(db: Database, table: str, data: Dict[str, Any]) -> int:
    """Insert ``data`` as one row; return the generated id."""
    keys = list(data.keys())
    placeholders = ", ".join("?" for _ in keys)
    result = await db.run_for_effect(
        f"INSERT INTO {table} ({', '.join(keys)}) VALUES ({placeholders})",
        list(data.values()),
    )
    return result.last_insert_row_id


async def update_row(db: Database, table: str, row_id: int, data: Dict[str, Any]) -> None:
    """Overwrite the given columns of one row and stamp ``updated_at``."""
    set_clause = ", ".join(f"{key} = ?" for key in data)
    await db.run_for_effect(
        f"UPDATE {table} SET {set_clause}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
        [*data.values(), row_id],
    )


async def delete_row(db: Database, table: str, row_id: int) -> None:
    await db.run_for_effect(f"DELETE FROM {table} WHERE id = ?", [row_id])


async def get_rows(
    db: Database,
    table: str,
    where: Optional[str] = None,
    params: Optional[Sequence[Any]] = None,
) -> List[Dict[str, Any]]:
    query = f"SELECT * FROM {table} WHERE {where}" if where else f"SELECT * FROM {table}"
    return await db.select_many(query, params or [])


async def get_row_by_id(db: Database, table: str, row_id: int) -> Optional[Dict[str, Any]]:
    return await db.select_first(f"SELECT * FROM {table} WHERE id = ?", [row_id])
