"""
Parsed statement shapes.

The parser turns a statement string into exactly one of these; the
executor dispatches on the type. ``Unsupported`` is a real result,
not an error: it executes as an unfiltered read or a zero-effect write.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union


# ----------------------------------------
# Predicates
# ----------------------------------------

@dataclass(frozen=True)
class Between:
    """``col BETWEEN ? AND ?``"""
    column: str


@dataclass(frozen=True)
class EqualsParam:
    """``col = ?``"""
    column: str


Predicate = Union[Between, EqualsParam]


# ----------------------------------------
# Select-list aggregates and ordering
# ----------------------------------------

@dataclass(frozen=True)
class Count:
    """``COUNT(*)``, reported as ``{'count': n}``."""


@dataclass(frozen=True)
class Sum:
    """``SUM(col)`` or ``COALESCE(SUM(col), ...)``, reported as ``{'total': t}``."""
    column: str
    coalesce: bool = False


Aggregate = Union[Count, Sum]


@dataclass(frozen=True)
class OrderKey:
    column: str
    descending: bool = False


# ----------------------------------------
# Statements
# ----------------------------------------

@dataclass(frozen=True)
class Insert:
    table: str
    columns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DeleteAll:
    table: str


@dataclass(frozen=True)
class DeleteWhereEquals:
    """
    Single-column equality delete.

    ``source`` is ``'param'`` (value is the first bound parameter) or
    ``'literal'`` (value is ``literal``).
    """
    table: str
    column: str
    source: str = 'param'
    literal: Any = None


@dataclass(frozen=True)
class UpdateById:
    """``UPDATE t SET c1 = ?, c2 = ? ... WHERE id = ?``"""
    table: str
    set_columns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Select:
    table: Optional[str]
    predicate: Optional[Predicate] = None
    aggregate: Optional[Aggregate] = None
    group_by: Optional[str] = None
    order_by: Tuple[OrderKey, ...] = ()
    limit: Optional[int] = None
    offset: Optional[int] = None
    has_where: bool = False


@dataclass(frozen=True)
class CreateTable:
    table: str


@dataclass(frozen=True)
class Unsupported:
    """
    Anything the parser does not recognise.

    ``table`` is filled in when the statement named one (e.g. a DELETE
    with a WHERE shape we don't handle).
    """
    text: str
    reason: str = ''
    table: Optional[str] = None


ParsedQuery = Union[
    Insert, DeleteAll, DeleteWhereEquals, UpdateById, Select, CreateTable, Unsupported
]

MUTATIONS = (Insert, DeleteAll, DeleteWhereEquals, UpdateById, CreateTable)


@dataclass
class RunResult:
    """
    Receipt of a statement run for its effect.

    Same shape as the native engine's result: ``last_insert_row_id`` is
    the generated id of an insert (0 otherwise) and ``changes`` the
    number of rows affected.
    """
    last_insert_row_id: int = 0
    changes: int = 0
