"""
Value semantics for script documents.

Scripts are authored as JSON/YAML and were historically evaluated with
JavaScript rules. These helpers pin down truthiness, equality and
stringification so that scripts behave the same regardless of how
Python would treat the equivalent objects (e.g. [] is truthy, True is
not strictly equal to 1).
"""

from __future__ import annotations

import json
import math
from typing import Any


def is_number(value: Any) -> bool:
    """True for int/float values, excluding booleans."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_truthy(value: Any) -> bool:
    """JavaScript truthiness: only None, False, 0, NaN and "" are falsy."""
    if value is None or value is False:
        return False
    if is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def deep_equal(left: Any, right: Any) -> bool:
    """Structural equality that keeps booleans distinct from numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return left == right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(deep_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))
    if type(left) is not type(right):
        return False
    return left == right


def strict_equals(left: Any, right: Any) -> bool:
    """The === operator: same type and same value."""
    return deep_equal(left, right)


def loose_equals(left: Any, right: Any) -> bool:
    """
    The == operator.

    Coerces between numbers, numeric strings and booleans. None only
    equals None.
    """
    if left is None or right is None:
        return left is None and right is None
    if deep_equal(left, right):
        return True
    scalars = (str, int, float)
    if isinstance(left, scalars) and isinstance(right, scalars):
        left_number, right_number = _to_number(left), _to_number(right)
        if left_number is None or right_number is None:
            return False
        return left_number == right_number
    return False


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        return float(value)
    text = value.strip()
    if text == "":
        return 0.0
    try:
        return float(text)
    except ValueError:
        return None


def to_js_string(value: Any) -> str:
    """Stringify a value the way String(value) would in JavaScript."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return to_json(value)
    return str(value)


def to_json(value: Any) -> str:
    """Compact JSON serialization (no whitespace after separators)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _relational_number(value: Any) -> float | None:
    # null orders as 0; objects and arrays never order
    if value is None:
        return 0.0
    if isinstance(value, (str, int, float)):
        return _to_number(value)
    return None


def _ordered(op):
    """Relational operator: strings compare as text, anything else numerically."""

    def compare(left: Any, right: Any) -> bool:
        if isinstance(left, str) and isinstance(right, str):
            return op(left, right)
        left_number, right_number = _relational_number(left), _relational_number(right)
        if left_number is None or right_number is None:
            return False
        return op(left_number, right_number)

    return compare


def _contains(left: Any, right: Any) -> bool:
    if isinstance(right, (str, dict)):
        return isinstance(left, str) and left in right
    if isinstance(right, list):
        return any(strict_equals(left, item) for item in right)
    return False


OPERATORS = {
    "==": loose_equals,
    "!=": lambda left, right: not loose_equals(left, right),
    "===": strict_equals,
    "!==": lambda left, right: not strict_equals(left, right),
    "<": _ordered(lambda left, right: left < right),
    ">": _ordered(lambda left, right: left > right),
    "<=": _ordered(lambda left, right: left <= right),
    ">=": _ordered(lambda left, right: left >= right),
    "in": _contains,
}


def compare(left: Any, operator: str, right: Any) -> bool:
    """
    Apply a jump comparison operator.

    Unknown operators compare as False. Ordering comparisons coerce
    null, booleans and numeric strings to numbers (null is 0); operands
    that have no numeric value compare as False rather than raising.
    """
    comparator = OPERATORS.get(operator)
    if comparator is None:
        return False
    return bool(comparator(left, right))
