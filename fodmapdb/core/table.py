"""
Table: ordered sequence of records.

Records are plain dicts so the whole table can be dumped to JSON as-is.
Each record carries a synthetic integer ``id`` and an ISO-8601
``created_at`` stamp set at insert time.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional
from datetime import datetime, timezone

from fodmapdb.core.values import is_number

Record = Dict[str, Any]


def utc_timestamp() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class Table:
    """
    A named, ordered list of records.

    Ids are handed out as ``max(existing ids, 0) + 1``. The table also
    remembers the highest id it ever issued, so deleting the newest row
    and inserting again does not reuse its id.
    """

    def __init__(self, name: str, rows: Optional[Iterable[Record]] = None):
        """
        Initialize a Table.

        Args:
            name: Table name (e.g., "meals", "water_intake")
            rows: Existing records, e.g. restored from storage
        """
        self.name = name
        self._rows: List[Record] = list(rows or [])
        self._last_id = self._max_id()

    def _max_id(self) -> int:
        max_id = 0
        for row in self._rows:
            row_id = row.get('id')
            if isinstance(row_id, int) and not isinstance(row_id, bool):
                max_id = max(max_id, row_id)
        return max_id

    def next_id(self) -> int:
        """Id the next inserted record will receive."""
        return max(self._max_id(), self._last_id) + 1

    def insert(self, values: Dict[str, Any], created_at: str) -> Record:
        """
        Append a new record.

        Args:
            values: Column values supplied by the caller
            created_at: Insert timestamp

        Returns:
            The stored record
        """
        row_id = self.next_id()
        record: Record = {'id': row_id, 'created_at': created_at}
        record.update(values)
        # caller columns never override the synthetic id
        record['id'] = row_id
        self._rows.append(record)
        self._last_id = row_id
        return record

    def find_by_id(self, row_id: Any) -> Optional[Record]:
        """Return the live record with this id, or None."""
        if not is_number(row_id):
            return None
        for row in self._rows:
            current = row.get('id')
            if is_number(current) and current == row_id:
                return row
        return None

    def remove_where(self, predicate: Callable[[Record], bool]) -> int:
        """
        Drop every record the predicate accepts.

        Returns:
            Number of records removed
        """
        kept = [row for row in self._rows if not predicate(row)]
        removed = len(self._rows) - len(kept)
        self._rows = kept
        return removed

    def clear(self) -> int:
        """Remove all records; return how many there were."""
        removed = len(self._rows)
        self._rows = []
        return removed

    def scan(self) -> List[Record]:
        """Full table scan: shallow copies of every record, in order."""
        return [dict(row) for row in self._rows]

    def count(self) -> int:
        return len(self._rows)

    def to_list(self) -> List[Record]:
        """Serializable view of the table (live records, not copies)."""
        return self._rows

    def __repr__(self) -> str:
        return f"Table(name={self.name}, count={self.count()})"
