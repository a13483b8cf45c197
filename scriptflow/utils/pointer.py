"""
JSON Pointer helpers for addressing the script document.

Reads never fail: any traversal problem (missing key, indexing into
null, malformed pointer) resolves to None. Writes create missing
intermediate containers, choosing a list when the next token is an
array index and a dict otherwise.
"""

from __future__ import annotations

import re
from typing import Any

from jsonpointer import EndOfList, JsonPointer, JsonPointerException

_ARRAY_INDEX = re.compile(r"^(0|[1-9][0-9]*|-)$")


class PointerError(ValueError):
    """Raised when a value cannot be written at a pointer location."""

    pass


def is_pointer(value: Any) -> bool:
    """True for strings that use the path shorthand (leading slash)."""
    return isinstance(value, str) and value.startswith("/")


def get_path(document: Any, path: str) -> Any:
    """
    Resolve a JSON pointer against a document.

    Args:
        document: Any JSON-like value
        path: RFC 6901 pointer, "" addresses the whole document

    Returns:
        The addressed value, or None when it cannot be reached
    """
    try:
        result = JsonPointer(path).resolve(document)
    except (JsonPointerException, TypeError, AttributeError):
        return None
    if isinstance(result, EndOfList):
        return None
    return result


def set_path(document: Any, path: str, value: Any) -> Any:
    """
    Write a value at a pointer location.

    The document is modified in place when possible. The return value is
    the (possibly new) root, which differs from the input when path is ""
    or when the input document was None.

    Raises:
        PointerError: If the pointer is malformed or crosses a scalar
    """
    if path == "":
        return value
    try:
        parts = JsonPointer(path).parts
    except JsonPointerException as e:
        raise PointerError(str(e)) from e

    if document is None:
        document = [] if _ARRAY_INDEX.match(parts[0]) else {}
    if not isinstance(document, (dict, list)):
        raise PointerError(f"Cannot write {path} into {type(document).__name__} document")

    target = document
    for part, following in zip(parts, parts[1:]):
        target = _descend(target, part, following, path)
    _assign(target, parts[-1], value, path)
    return document


def _descend(container: Any, part: str, following: str, path: str) -> Any:
    fresh: Any = [] if _ARRAY_INDEX.match(following) else {}
    if isinstance(container, dict):
        child = container.get(part)
        if child is None:
            container[part] = child = fresh
    elif isinstance(container, list):
        index = _index(container, part, path)
        if index == len(container):
            container.append(fresh)
        child = container[index]
        if child is None:
            container[index] = child = fresh
    else:
        raise PointerError(f"Cannot traverse {type(container).__name__} at {path}")

    if not isinstance(child, (dict, list)):
        raise PointerError(f"Cannot traverse {type(child).__name__} at {path}")
    return child


def _assign(container: Any, part: str, value: Any, path: str) -> None:
    if isinstance(container, dict):
        container[part] = value
        return
    index = _index(container, part, path)
    if index == len(container):
        container.append(value)
    else:
        container[index] = value


def _index(container: list, part: str, path: str) -> int:
    if part == "-":
        return len(container)
    if not _ARRAY_INDEX.match(part):
        raise PointerError(f"Invalid array index '{part}' in {path}")
    index = int(part)
    if index > len(container):
        raise PointerError(f"Array index {index} out of range in {path}")
    return index
