"""
Query Executor for fodmapdb

Applies a parsed statement and its positional parameters to the
TableStore. Writes go through to the persistence adapter right away;
reads run a fixed pipeline:

    filter -> aggregate or group by date -> order -> offset/limit

Nothing here raises to the caller. Shapes the parser could not classify
run as an unfiltered read or a zero-effect write.
"""

import logging
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Optional, Sequence

from fodmapdb.core.store import TableStore
from fodmapdb.core.table import Record, utc_timestamp
from fodmapdb.core.values import as_number, compare_values, values_equal
from fodmapdb.query.statements import (
    MUTATIONS,
    Between,
    Count,
    CreateTable,
    DeleteAll,
    DeleteWhereEquals,
    EqualsParam,
    Insert,
    OrderKey,
    ParsedQuery,
    RunResult,
    Select,
    Sum,
    Unsupported,
    UpdateById,
)

logger = logging.getLogger(__name__)

# Column summed per day by GROUP BY date
GROUP_TOTAL_COLUMN = 'glasses'


class QueryExecutor:
    """
    Execute parsed statements against a TableStore.

    Process for writes:
    1. Resolve (or auto-create) the target table
    2. Apply the change
    3. Flush the whole store if anything changed

    Example:
        executor = QueryExecutor(store, persistence)
        parser = SQLParser()
        executor.execute(parser.parse("INSERT INTO meals (name, date) VALUES (?, ?)"),
                         ["Desayuno", "2024-01-01"])
        # RunResult(last_insert_row_id=1, changes=1)
    """

    def __init__(
        self,
        store: TableStore,
        persistence: Optional[Any] = None,
        clock: Callable[[], str] = utc_timestamp,
    ):
        """
        Initialize query executor.

        Args:
            store: The table store to read and mutate
            persistence: Adapter with a ``save()`` method, or None for a
                purely in-memory database
            clock: Returns the ISO-8601 stamp for created_at/updated_at
        """
        self.store = store
        self.persistence = persistence
        self.clock = clock

        self.stats = {
            'total_queries': 0,
            'mutations': 0,
            'unsupported': 0,
        }

    # ========================================
    # Writes
    # ========================================

    def execute(self, query: ParsedQuery, params: Optional[Sequence[Any]] = None) -> RunResult:
        """
        Run a statement for its effect.

        Args:
            query: Parsed statement
            params: Positional parameters, matched left to right

        Returns:
            RunResult with the generated id (inserts) and rows affected
        """
        params = list(params or [])
        self.stats['total_queries'] += 1

        if isinstance(query, Insert):
            result = self._execute_insert(query, params)
        elif isinstance(query, DeleteAll):
            result = self._execute_delete_all(query)
        elif isinstance(query, DeleteWhereEquals):
            result = self._execute_delete_where(query, params)
        elif isinstance(query, UpdateById):
            result = self._execute_update(query, params)
        elif isinstance(query, CreateTable):
            result = self._execute_create_table(query)
        elif isinstance(query, Unsupported):
            result = self._execute_unsupported(query)
        else:
            # a SELECT run for effect changes nothing
            result = RunResult()

        if isinstance(query, MUTATIONS) and result.changes:
            self.stats['mutations'] += 1
            self._flush()
        return result

    def _flush(self) -> None:
        if self.persistence is not None:
            self.persistence.save()

    def _execute_insert(self, query: Insert, params: List[Any]) -> RunResult:
        table = self.store.get_or_create_table(query.table)

        values = {}
        for i, column in enumerate(query.columns):
            if i < len(params):
                values[column] = params[i]

        record = table.insert(values, created_at=self.clock())
        logger.debug("INSERT into %s: %s", query.table, record)
        return RunResult(last_insert_row_id=record['id'], changes=1)

    def _execute_delete_all(self, query: DeleteAll) -> RunResult:
        table = self.store.get_or_create_table(query.table)
        removed = table.clear()
        logger.debug("DELETE ALL from %s, deleted %d rows", query.table, removed)
        return RunResult(changes=removed)

    def _execute_delete_where(self, query: DeleteWhereEquals, params: List[Any]) -> RunResult:
        table = self.store.get_or_create_table(query.table)

        if query.source == 'literal':
            value = query.literal
        elif params:
            value = params[0]
        else:
            logger.warning("DELETE from %s WHERE %s = ? with no parameter bound",
                           query.table, query.column)
            return RunResult()

        initial = table.count()
        removed = table.remove_where(lambda row: values_equal(row.get(query.column), value))
        logger.debug("DELETE from %s WHERE %s=%r, deleted %d/%d rows",
                     query.table, query.column, value, removed, initial)
        return RunResult(changes=removed)

    def _execute_update(self, query: UpdateById, params: List[Any]) -> RunResult:
        if not params:
            return RunResult()

        table = self.store.get_or_create_table(query.table)
        record = table.find_by_id(params[-1])
        if record is None:
            logger.debug("UPDATE %s: no row with id %r", query.table, params[-1])
            return RunResult()

        values = params[:-1]
        for i, column in enumerate(query.set_columns):
            if column == 'updated_at' or i >= len(values):
                continue
            record[column] = values[i]
        record['updated_at'] = self.clock()

        logger.debug("UPDATE %s: %s", query.table, record)
        return RunResult(changes=1)

    def _execute_create_table(self, query: CreateTable) -> RunResult:
        created = self.store.create_table(query.table)
        return RunResult(changes=1 if created else 0)

    def _execute_unsupported(self, query: Unsupported) -> RunResult:
        self.stats['unsupported'] += 1
        if query.table:
            self.store.get_or_create_table(query.table)
        logger.warning("Unhandled statement (%s): %s", query.reason, query.text[:100])
        return RunResult()

    # ========================================
    # Reads
    # ========================================

    def select(self, query: ParsedQuery, params: Optional[Sequence[Any]] = None) -> List[Record]:
        """
        Run the read pipeline and return every resulting row.

        Anything that isn't a Select (e.g. an unrecognised statement)
        returns no rows.
        """
        params = list(params or [])
        self.stats['total_queries'] += 1

        if not isinstance(query, Select):
            if isinstance(query, Unsupported):
                self.stats['unsupported'] += 1
                logger.warning("Unhandled query (%s): %s", query.reason, query.text[:100])
            return []

        if not query.table:
            logger.warning("Could not extract table name from query")
            return []

        table = self.store.get_or_create_table(query.table)
        rows = table.scan()
        logger.debug("SELECT from %s: found %d total rows", query.table, len(rows))

        rows = self._filter(rows, query, params)

        # an aggregate collapses the rows before any GROUP BY is looked at
        if isinstance(query.aggregate, Count):
            rows = [{'count': len(rows)}]
        elif isinstance(query.aggregate, Sum):
            total = sum(as_number(row.get(query.aggregate.column)) for row in rows)
            rows = [{'total': total}]
        elif query.group_by == 'date':
            rows = self._group_by_date(rows)

        if query.order_by:
            rows = self._order(rows, query.order_by)

        if query.offset:
            rows = rows[query.offset:]
        if query.limit is not None:
            rows = rows[:query.limit]

        logger.debug("SELECT returning %d rows", len(rows))
        return rows

    def select_first(self, query: ParsedQuery, params: Optional[Sequence[Any]] = None) -> Optional[Record]:
        """Same pipeline as select(); first row or None."""
        rows = self.select(query, params)
        return rows[0] if rows else None

    def _filter(self, rows: List[Record], query: Select, params: List[Any]) -> List[Record]:
        """Apply the WHERE predicate."""
        if not query.has_where:
            return rows

        # WHERE present but nothing bound (e.g. WHERE 1=1): everything
        if not params:
            return rows

        predicate = query.predicate
        if isinstance(predicate, Between):
            low = params[0]
            high = params[1] if len(params) > 1 else None
            return [row for row in rows if self._between(row.get(predicate.column), low, high)]

        if isinstance(predicate, EqualsParam):
            value = params[0]
            filtered = [row for row in rows if values_equal(row.get(predicate.column), value)]
            logger.debug("Filtering by %s = %r: %d -> %d rows",
                         predicate.column, value, len(rows), len(filtered))
            return filtered

        logger.warning("Unhandled WHERE clause on %s, returning all rows", query.table)
        return rows

    @staticmethod
    def _between(value: Any, low: Any, high: Any) -> bool:
        lower = compare_values(value, low)
        upper = compare_values(value, high)
        if lower is None or upper is None:
            return False
        return lower >= 0 and upper <= 0

    @staticmethod
    def _group_by_date(rows: List[Record]) -> List[Record]:
        """One ``{date, count, total}`` row per distinct date, first-seen order."""
        grouped: Dict[Any, Record] = {}
        for row in rows:
            date = row.get('date')
            group = grouped.get(date)
            if group is None:
                group = grouped[date] = {'date': date, 'count': 0, 'total': 0}
            group['count'] += 1
            group['total'] += as_number(row.get(GROUP_TOTAL_COLUMN))
        return list(grouped.values())

    @staticmethod
    def _order(rows: List[Record], keys: Sequence[OrderKey]) -> List[Record]:
        """Stable multi-key sort; pairs that can't be compared count as equal."""

        def compare(a: Record, b: Record) -> int:
            for key in keys:
                result = compare_values(a.get(key.column), b.get(key.column))
                if result:
                    return -result if key.descending else result
            return 0

        return sorted(rows, key=cmp_to_key(compare))

    def get_stats(self) -> Dict[str, Any]:
        """Get executor statistics."""
        return dict(self.stats)
