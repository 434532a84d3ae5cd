"""
Core data structures for fodmapdb.

Tables of plain-dict records grouped in a TableStore, plus the loose
value comparisons the query layer needs.
"""

from fodmapdb.core.table import Table, Record, utc_timestamp
from fodmapdb.core.store import TableStore
from fodmapdb.core.values import values_equal, compare_values, as_number

__all__ = [
    'Table',
    'Record',
    'TableStore',
    'utc_timestamp',
    'values_equal',
    'compare_values',
    'as_number',
]
