"""
Native backend: the same coroutine surface as EmulatedDatabase, backed
by a real SQLite file.

Errors raised by SQLite propagate to the caller; only the emulated
backend promises never to raise.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from fodmapdb.query.statements import RunResult

logger = logging.getLogger(__name__)


def connect(db_path: Union[str, Path]) -> sqlite3.Connection:
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


class SqliteDatabase:
    """
    Thin async-shaped wrapper around one sqlite3 connection.

    Rows come back as plain dicts, matching the emulated backend.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = db_path
        self.conn = connect(db_path)

    async def run_for_effect(self, sql: str, params: Optional[Sequence[Any]] = None) -> RunResult:
        cur = self.conn.execute(sql, tuple(params or ()))
        self.conn.commit()
        return RunResult(last_insert_row_id=cur.lastrowid or 0, changes=max(cur.rowcount, 0))

    async def select_many(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        cur = self.conn.execute(sql, tuple(params or ()))
        return [dict(row) for row in cur.fetchall()]

    async def select_first(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        cur = self.conn.execute(sql, tuple(params or ()))
        row = cur.fetchone()
        return dict(row) if row is not None else None

    async def execute_script(self, sql: str) -> None:
        self.conn.executescript(sql)
        self.conn.commit()

    async def wipe(self) -> None:
        """Delete every row of every user table."""
        tables = [
            row["name"]
            for row in self.conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
            )
        ]
        self.conn.execute("PRAGMA foreign_keys = OFF;")
        try:
            for name in tables:
                self.conn.execute(f'DELETE FROM "{name}"')
            self.conn.commit()
        finally:
            self.conn.execute("PRAGMA foreign_keys = ON;")
        logger.info("SQLite database wiped (%d tables)", len(tables))

    def close(self) -> None:
        self.conn.close()
