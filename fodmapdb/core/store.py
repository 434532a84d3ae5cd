"""
TableStore: the in-memory database.

Maps table name to Table. Tables are created on first reference, so
referencing an unknown table is never an error. The store is built
once per process and handed to the executor and the persistence
adapter explicitly.
"""

import logging
from typing import Any, Dict, List, Optional

from fodmapdb.core.table import Record, Table

logger = logging.getLogger(__name__)


class TableStore:
    """
    Collection of named tables.

    Example:
        store = TableStore()
        meals = store.get_or_create_table('meals')
        meals.insert({'name': 'Desayuno'}, created_at='2024-01-01T08:00:00.000Z')
        store.to_dict()
        # {'meals': [{'id': 1, 'created_at': '...', 'name': 'Desayuno'}]}
    """

    def __init__(self):
        self._tables: Dict[str, Table] = {}

    # ========================================
    # Table Operations
    # ========================================

    def get_table(self, name: str) -> Optional[Table]:
        """Retrieve table by name, without creating it."""
        return self._tables.get(name)

    def get_or_create_table(self, name: str) -> Table:
        """Retrieve a table, creating an empty one on first reference."""
        table = self._tables.get(name)
        if table is None:
            table = Table(name)
            self._tables[name] = table
            logger.info("Auto-created table: %s", name)
        return table

    def create_table(self, name: str) -> bool:
        """
        Register an empty table.

        Returns:
            True if the table was created, False if it already existed
        """
        if name in self._tables:
            return False
        self._tables[name] = Table(name)
        logger.info("Created table: %s", name)
        return True

    def table_names(self) -> List[str]:
        return list(self._tables.keys())

    # ========================================
    # Whole-store Operations
    # ========================================

    def to_dict(self) -> Dict[str, List[Record]]:
        """Serializable snapshot: ``{table: [record, ...]}``."""
        return {name: table.to_list() for name, table in self._tables.items()}

    def replace_all(self, data: Dict[str, List[Record]]) -> None:
        """Swap the whole content for ``data`` (used when hydrating)."""
        self._tables = {name: Table(name, rows) for name, rows in data.items()}

    def clear(self) -> None:
        """Drop every table."""
        self._tables = {}

    def __contains__(self, name: Any) -> bool:
        return name in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"TableStore(tables={self.table_names()})"
