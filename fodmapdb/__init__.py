"""
fodmapdb: local data layer for the FODMAP diet diary

Where no embedded SQL engine is available, statements are recognised by
shape and run against an in-memory table store that is written through
to a single JSON blob. Where SQLite is available, the same call surface
is served by it directly.
"""

__version__ = "0.1.0"

from fodmapdb.core.store import TableStore
from fodmapdb.query.query_interface import EmulatedDatabase
from fodmapdb.query.statements import RunResult
from fodmapdb.native import SqliteDatabase
from fodmapdb.database import open_database

__all__ = [
    'TableStore',
    'EmulatedDatabase',
    'SqliteDatabase',
    'RunResult',
    'open_database',
]
