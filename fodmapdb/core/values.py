"""
Value helpers shared by the executor.

Rows come back from JSON, so a column that was inserted as ``5`` may be
compared against a parameter bound as ``"5"``. These helpers give the
loose comparisons the rest of the application relies on.
"""

from typing import Any, Optional, Union

Number = Union[int, float]


def is_number(value: Any) -> bool:
    """True for ints and floats, False for bools."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_number(text: str) -> Optional[Number]:
    """Parse a numeric string, or return None."""
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def values_equal(a: Any, b: Any) -> bool:
    """
    Equality with number/string coercion.

    Examples:
        values_equal(5, "5")      # True
        values_equal("5", 5.0)    # True
        values_equal(None, "")    # False
    """
    if a is None or b is None:
        return a is None and b is None

    if type(a) is type(b):
        return a == b

    if is_number(a) and isinstance(b, str):
        return parse_number(b) == a
    if isinstance(a, str) and is_number(b):
        return parse_number(a) == b
    if is_number(a) and is_number(b):
        return a == b

    return str(a) == str(b)


def compare_values(a: Any, b: Any) -> Optional[int]:
    """
    Three-way comparison.

    Returns -1, 0 or 1, or None when the pair cannot be ordered
    (either side is None, or the types don't mix).
    """
    if a is None or b is None:
        return None

    if is_number(a) and isinstance(b, str):
        b = parse_number(b)
        if b is None:
            return None
    elif isinstance(a, str) and is_number(b):
        a = parse_number(a)
        if a is None:
            return None

    try:
        if a < b:
            return -1
        if a > b:
            return 1
    except TypeError:
        return None
    return 0


def as_number(value: Any) -> Number:
    """Numeric view used by SUM and grouping totals; anything else is 0."""
    if is_number(value):
        return value
    if isinstance(value, str):
        parsed = parse_number(value)
        return parsed if parsed is not None else 0
    return 0
