"""
Compatibility facade for the emulated database.

Exposes the same coroutine surface as the native SQLite adapter
(``fodmapdb.native.SqliteDatabase``) so the rest of the application
does not care which backend is active:

    await db.run_for_effect(sql, params)   -> RunResult
    await db.select_many(sql, params)      -> [record, ...]
    await db.select_first(sql, params)     -> record | None
    await db.execute_script(sql)
    await db.wipe()

Each call parses its text afresh; there is no statement cache. The
coroutine bodies run synchronously once scheduled, so two calls never
interleave mid-statement.
"""

import dataclasses
import logging
from typing import Any, Dict, List, Optional, Sequence

from fodmapdb.core.store import TableStore
from fodmapdb.core.table import Record
from fodmapdb.query.executor import QueryExecutor
from fodmapdb.query.sql_parser import SQLParser
from fodmapdb.query.statements import CreateTable, RunResult, Unsupported
from fodmapdb.storage.persistence import DEFAULT_STORAGE_KEY, PersistenceAdapter

logger = logging.getLogger(__name__)


class EmulatedDatabase:
    """
    SQL-shaped access to an in-memory TableStore.

    Example:
        db = EmulatedDatabase.open(FileStorage("~/.fodmapdb"))

        result = await db.run_for_effect(
            "INSERT INTO meals (name, date) VALUES (?, ?)",
            ["Desayuno", "2024-01-01"],
        )
        # RunResult(last_insert_row_id=1, changes=1)

        rows = await db.select_many(
            "SELECT * FROM meals WHERE date BETWEEN ? AND ?",
            ["2024-01-01", "2024-01-31"],
        )
    """

    def __init__(self, store: TableStore, persistence: Optional[PersistenceAdapter] = None):
        """
        Initialize the facade.

        Args:
            store: The process-wide table store
            persistence: Adapter flushed after every mutation; None keeps
                everything in memory
        """
        self.store = store
        self.persistence = persistence
        self.sql_parser = SQLParser()
        self.executor = QueryExecutor(store, persistence)

    @classmethod
    def open(cls, storage: Any, key: str = DEFAULT_STORAGE_KEY) -> "EmulatedDatabase":
        """Build a store over ``storage``, hydrate it and return the facade."""
        store = TableStore()
        persistence = PersistenceAdapter(store, storage, key)
        persistence.load()
        logger.info("Opened emulated database (%d tables)", len(store))
        return cls(store, persistence)

    async def run_for_effect(self, sql: str, params: Optional[Sequence[Any]] = None) -> RunResult:
        """Execute an INSERT / UPDATE / DELETE."""
        logger.debug("run_for_effect: %s %r", _preview(sql), params)
        parsed = self.sql_parser.parse(sql)
        return self.executor.execute(parsed, params)

    async def select_many(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Record]:
        """Execute a SELECT and return every row."""
        logger.debug("select_many: %s %r", _preview(sql), params)
        parsed = self.sql_parser.parse(sql)
        return self.executor.select(parsed, params)

    async def select_first(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Record]:
        """Execute a SELECT and return the first row, or None."""
        logger.debug("select_first: %s %r", _preview(sql), params)
        parsed = self.sql_parser.parse(sql)
        return self.executor.select_first(parsed, params)

    async def execute_script(self, sql: str) -> None:
        """
        Run a schema script.

        Only ``CREATE TABLE`` statements have an effect here: they
        register empty tables. Everything else in the script is skipped.
        """
        for parsed in self.sql_parser.parse_script(sql):
            if not isinstance(parsed, CreateTable):
                logger.debug("execute_script skipping %s (table %s)", type(parsed).__name__, parsed.table)
                continue
            self.executor.execute(parsed)

    async def wipe(self) -> None:
        """Delete every table and the persisted blob."""
        if self.persistence is not None:
            self.persistence.wipe()
        else:
            self.store.clear()
        logger.info("Emulated database wiped")

    def explain(self, sql: str) -> Dict[str, Any]:
        """
        Show how a statement is classified, without running it.

        Returns:
            ``{'original_query', 'statement', 'parsed_query', 'supported'}``
        """
        parsed = self.sql_parser.parse(sql)
        return {
            'original_query': sql,
            'statement': type(parsed).__name__,
            'parsed_query': dataclasses.asdict(parsed),
            'supported': not isinstance(parsed, Unsupported),
        }

    def get_stats(self) -> Dict[str, Any]:
        """Get query execution statistics."""
        return self.executor.get_stats()


def _preview(sql: str) -> str:
    return ' '.join((sql or '').split())[:100]
