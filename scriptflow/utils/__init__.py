"""
scriptflow utilities

Document addressing and value semantics shared by the evaluator and
the script engine.
"""

from .pointer import PointerError, get_path, is_pointer, set_path
from .values import (
    compare,
    deep_equal,
    is_number,
    is_truthy,
    loose_equals,
    strict_equals,
    to_js_string,
    to_json,
)
from .xml import parse_xml

__all__ = [
    "PointerError",
    "get_path",
    "set_path",
    "is_pointer",
    "compare",
    "deep_equal",
    "is_number",
    "is_truthy",
    "loose_equals",
    "strict_equals",
    "to_js_string",
    "to_json",
    "parse_xml",
]
