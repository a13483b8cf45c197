"""
Structural operations: lookup, construction, collections and diffs.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from scriptflow.errors import TransformationError
from scriptflow.transform.registry import register_function
from scriptflow.utils import deep_equal, get_path, is_truthy, to_js_string

if TYPE_CHECKING:
    from scriptflow.transform.evaluator import Transformation

# Object key that merges the input's own properties into the output
RETAIN_KEY = "..."


@register_function("get")
async def get(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(options, str):
        raise TransformationError('Value of "get" function must be a string', function="get")
    return get_path(value, options)


@register_function("static", null_tolerant=True)
async def static(t: Transformation, value: Any, options: Any) -> Any:
    return copy.deepcopy(options)


@register_function("default", null_tolerant=True)
async def default(t: Transformation, value: Any, options: Any) -> Any:
    if value is None:
        return copy.deepcopy(options)
    return value


@register_function("object")
async def object_(t: Transformation, value: Any, options: Any) -> Any:
    """
    Build a new object from property templates.

    The special key "..." retains the input's own properties; explicit
    properties win on collision regardless of where "..." appears.
    """
    if not isinstance(options, dict):
        raise TransformationError('Value of "object" function must be an object', function="object")
    output: dict[str, Any] = {}
    for key, spec in options.items():
        if key == RETAIN_KEY:
            continue
        output[key] = await t.evaluate(spec, value, info=f"{key} property")
    if RETAIN_KEY in options and isinstance(value, dict):
        for key, item in value.items():
            output.setdefault(key, item)
    return output


@register_function("map")
async def map_(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(value, list):
        return None
    return [await t.evaluate(options, item) for item in value]


@register_function("array")
async def array(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(options, list):
        raise TransformationError("Options for array transformation must be an array", function="array")
    return [await t.evaluate(spec, value) for spec in options]


@register_function("union")
async def union(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(options, list):
        raise TransformationError("Options for union transformation must be an array", function="union")
    output: list[Any] = []
    for part in await array(t, value, options):
        if not isinstance(part, list):
            continue
        for item in part:
            if not any(deep_equal(item, seen) for seen in output):
                output.append(item)
    return output


@register_function("filter")
async def filter_(t: Transformation, value: Any, options: Any) -> Any:
    """
    Filter array elements.

    Forms:
        filter: {}                      keep truthy elements
        filter: [steps]                 sub-script per element
        filter: {source, filter: [..]}  sub-script per element of source,
                                        document is {item, ...input}
        filter: {template}              transformation per element
    """
    if isinstance(options, dict) and "filter" in options:
        source = await t.evaluate(options["source"], value) if "source" in options else value
        if not isinstance(source, list):
            return None
        outer = value if isinstance(value, dict) else {}
        kept = []
        for item in source:
            document = {"item": item, **copy.deepcopy(outer)}
            if is_truthy(await t.run_script(options["filter"], document)):
                kept.append(item)
        return kept

    if not isinstance(value, list):
        return None
    if options is None or options == {}:
        return [item for item in value if is_truthy(item)]
    if isinstance(options, list):
        return [item for item in value if is_truthy(await t.run_script(options, copy.deepcopy(item)))]
    return [item for item in value if is_truthy(await t.evaluate(options, item))]


@register_function("eval")
async def eval_(t: Transformation, value: Any, options: Any) -> Any:
    steps = await t.evaluate(options, value)
    if steps is None:
        return None
    return await t.run_script(steps, value, trace=t.trace)


@register_function("case")
async def case(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(options, dict):
        raise TransformationError('Value of "case" function must be an object', function="case")
    operand = to_js_string(value)
    if operand in options:
        return copy.deepcopy(options[operand])
    return copy.deepcopy(options.get("default"))


@register_function("keys")
async def keys(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(value, dict):
        return None
    return list(value)


def _key_list(options: Any, function: str) -> list[str]:
    if isinstance(options, str):
        return [options]
    if isinstance(options, list) and all(isinstance(k, str) for k in options):
        return options
    raise TransformationError(f'Value of "{function}" function must be a string or list of strings', function=function)


@register_function("omit")
async def omit(t: Transformation, value: Any, options: Any) -> Any:
    names = _key_list(options, "omit")
    if not isinstance(value, dict):
        return None
    return {k: v for k, v in value.items() if k not in names}


@register_function("pick")
async def pick(t: Transformation, value: Any, options: Any) -> Any:
    names = _key_list(options, "pick")
    if not isinstance(value, dict):
        return None
    return {k: v for k, v in value.items() if k in names}


@register_function("changed")
async def changed(t: Transformation, value: Any, options: Any) -> Any:
    """
    Shallow diff between two objects.

    Returns keys whose values differ, with the value from right. Keys
    missing on one side compare as None, so a removed key is reported
    as None and a None value that disappears is not a change.
    """
    if not isinstance(options, dict):
        raise TransformationError('Value of "changed" function must be an object', function="changed")
    left = await t.evaluate(options.get("left"), value)
    right = await t.evaluate(options.get("right"), value)
    left = left if isinstance(left, dict) else {}
    right = right if isinstance(right, dict) else {}

    output: dict[str, Any] = {}
    for key in [*left, *(k for k in right if k not in left)]:
        if not deep_equal(left.get(key), right.get(key)):
            output[key] = right.get(key)
    return output


@register_function("change")
async def change(t: Transformation, value: Any, options: Any) -> Any:
    """Apply a diff produced by "changed": None deletes, anything else overwrites."""
    if not isinstance(options, dict):
        raise TransformationError('Value of "change" function must be an object', function="change")
    target = await t.evaluate(options.get("target"), value)
    changes = await t.evaluate(options.get("changes"), value)
    if not isinstance(target, dict):
        return None
    output = dict(target)
    for key, item in (changes if isinstance(changes, dict) else {}).items():
        if item is None:
            output.pop(key, None)
        else:
            output[key] = item
    return output
