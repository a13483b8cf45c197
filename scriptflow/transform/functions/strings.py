"""
String operations: splitting, regular expressions, casing and slicing.

Most operations degrade to None on input of the wrong type; substring
and length raise TransformationError instead.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from scriptflow.errors import TransformationError
from scriptflow.transform.registry import register_function
from scriptflow.utils import is_number, text, to_js_string

if TYPE_CHECKING:
    from scriptflow.transform.evaluator import Transformation

_REGEX_LITERAL = re.compile(r"^/(.+)/([a-z]*)$", re.DOTALL)
_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}
# JavaScript replacement tokens: $& (whole match) and $1..$99
_JS_REPLACEMENT = re.compile(r"\$(&|\d{1,2})")


def parse_regex(literal: str) -> tuple[re.Pattern[str], bool] | None:
    """
    Compile a "/body/flags" literal.

    Returns:
        (pattern, is_global), or None when the string is not a literal
    """
    match = _REGEX_LITERAL.match(literal)
    if match is None:
        return None
    body, flags = match.groups()
    compiled_flags = 0
    for flag in flags:
        compiled_flags |= _FLAGS.get(flag, 0)
    try:
        return re.compile(body, compiled_flags), "g" in flags
    except re.error as e:
        raise TransformationError(f"Invalid regular expression {literal}: {e}") from e


def _python_replacement(replacement: str) -> str:
    escaped = replacement.replace("\\", "\\\\")
    return _JS_REPLACEMENT.sub(
        lambda m: r"\g<0>" if m.group(1) == "&" else rf"\g<{int(m.group(1))}>",
        escaped,
    )


@register_function("split")
async def split(t: Transformation, value: Any, options: Any) -> Any:
    """
    Split a string on a separator.

    Options:
        separator: Required separator string
        maxItems: Keep at most this many parts
        addRemainder: Last kept part holds the unsplit rest of the string
    """
    if not isinstance(options, dict) or not options.get("separator"):
        raise TransformationError("Missing separator for split transformation", function="split")
    if not isinstance(value, str):
        return []
    separator = options["separator"]
    max_items = options.get("maxItems")

    if isinstance(max_items, int) and options.get("addRemainder"):
        if max_items <= 0:
            return []
        return value.split(separator, max_items - 1)

    parts = value.split(separator)
    if isinstance(max_items, int):
        parts = parts[: max(max_items, 0)]
    return parts


@register_function("match")
async def match(t: Transformation, value: Any, options: Any) -> Any:
    """
    Match against a regular expression literal.

    Returns False without a match, [full, *groups] for a single match,
    or all full matches when the g flag is set.
    """
    if isinstance(options, dict):
        pattern = await t.evaluate(options.get("pattern"), value)
        value = await t.evaluate(options.get("input"), value)
    else:
        pattern = options
    if not isinstance(pattern, str):
        if isinstance(options, dict):
            return False
        raise TransformationError('Value of "match" function must be a string', function="match")
    if not isinstance(value, str):
        return False

    parsed = parse_regex(pattern)
    if parsed is None:
        raise TransformationError(f"Pattern must be a /body/flags literal, got {pattern}", function="match")
    regex, is_global = parsed

    if is_global:
        found = [m.group(0) for m in regex.finditer(value)]
        return found or False
    result = regex.search(value)
    if result is None:
        return False
    return [result.group(0), *result.groups()]


@register_function("replace")
async def replace(t: Transformation, value: Any, options: Any) -> Any:
    if (
        not isinstance(options, dict)
        or not isinstance(options.get("search"), str)
        or not isinstance(options.get("replace"), str)
    ):
        raise TransformationError(
            'Value of "replace" function must be an object with search and replace properties',
            function="replace",
        )
    if not isinstance(value, str):
        return None
    parsed = parse_regex(options["search"])
    if parsed is None:
        return value.replace(options["search"], options["replace"], 1)
    regex, is_global = parsed
    return regex.sub(_python_replacement(options["replace"]), value, count=0 if is_global else 1)


@register_function("join")
async def join(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(value, list):
        return None
    separator = options.get("separator") if isinstance(options, dict) else None
    return (separator or "").join("" if item is None else to_js_string(item) for item in value)


@register_function("slice")
async def slice_(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(value, list):
        return None
    options = options if isinstance(options, dict) else {}
    start = options.get("from", 0)
    end = options.get("to")
    return value[start:end]


@register_function("count")
async def count(t: Transformation, value: Any, options: Any) -> Any:
    if isinstance(value, (str, list)):
        return len(value)
    return 0


@register_function("length")
async def length(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(value, (str, list)):
        raise TransformationError("Can only get length of arrays and strings", function="length")
    return len(value)


@register_function("substring")
async def substring(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(value, str):
        raise TransformationError(f"Cannot execute substring on {type(value).__name__}", function="substring")
    options = options if isinstance(options, dict) else {}
    start = options.get("start") if is_number(options.get("start")) else 0
    size = options.get("length") if is_number(options.get("length")) else None
    start = max(int(start), 0)
    if size is None:
        return value[start:]
    return value[start : start + max(int(size), 0)]


def _string_function(name: str, convert) -> None:
    async def handler(t: Transformation, value: Any, options: Any) -> Any:
        if not isinstance(value, str):
            return None
        return convert(value)

    handler.__name__ = name
    register_function(name)(handler)


_string_function("lowerCase", text.lower_case)
_string_function("upperCase", text.upper_case)
_string_function("camelCase", text.camel_case)
_string_function("kebabCase", text.kebab_case)
_string_function("snakeCase", text.snake_case)
_string_function("capitalize", text.capitalize)
_string_function("nameCase", text.name_case)
_string_function("deburr", text.deburr)
