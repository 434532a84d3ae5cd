"""
Query Processing Layer for fodmapdb

Recognises the SQL statement shapes the diary application issues and
runs them against the in-memory TableStore.
"""

from fodmapdb.query.sql_parser import SQLParser
from fodmapdb.query.executor import QueryExecutor
from fodmapdb.query.query_interface import EmulatedDatabase
from fodmapdb.query.statements import RunResult

__all__ = [
    'SQLParser',
    'QueryExecutor',
    'EmulatedDatabase',
    'RunResult',
]
