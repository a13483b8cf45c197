"""
Encoding, hashing, serialization, templating and validation operations.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import time
from typing import TYPE_CHECKING, Any

import jsonschema
from jinja2 import Environment, TemplateError

from scriptflow.errors import AssertionFailedError, TransformationError
from scriptflow.transform.registry import register_function
from scriptflow.utils import parse_xml, to_json

if TYPE_CHECKING:
    from scriptflow.transform.evaluator import Transformation

_templates = Environment(autoescape=True)


@register_function("hash")
async def hash_(t: Transformation, value: Any, options: Any) -> Any:
    """
    Digest the input.

    Options:
        algorithm: Any hashlib algorithm name (default md5)
        encoding: "hex" (default) or "base64"
    """
    options = options if isinstance(options, dict) else {}
    algorithm = options.get("algorithm") or "md5"
    encoding = options.get("encoding") or "hex"
    if not isinstance(value, str):
        value = to_json(value)
    try:
        digest = hashlib.new(algorithm, value.encode("utf-8"))
    except ValueError as e:
        raise TransformationError(f"Unsupported hash algorithm {algorithm}", function="hash") from e
    if encoding == "hex":
        return digest.hexdigest()
    if encoding == "base64":
        return base64.b64encode(digest.digest()).decode("ascii")
    raise TransformationError(f"Unsupported hash encoding {encoding}", function="hash")


@register_function("toBase64")
async def to_base64(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(value, str):
        return None
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


@register_function("fromBase64")
async def from_base64(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(value, str):
        return None
    try:
        return base64.b64decode(value).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise TransformationError(f"Invalid base64 input: {e}", function="fromBase64") from e


@register_function("fromJson")
async def from_json(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(value, str):
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise TransformationError(f"Invalid JSON input: {e}", function="fromJson") from e


@register_function("toJson")
async def to_json_(t: Transformation, value: Any, options: Any) -> Any:
    return to_json(value)


@register_function("fromXml")
async def from_xml(t: Transformation, value: Any, options: Any) -> Any:
    if not isinstance(value, str):
        return None
    try:
        return parse_xml(value)
    except ValueError as e:
        raise TransformationError(str(e), function="fromXml") from e


@register_function("now", null_tolerant=True)
async def now(t: Transformation, value: Any, options: Any) -> Any:
    """Current Unix time in whole seconds."""
    return int(time.time())


@register_function("render")
async def render(t: Transformation, value: Any, options: Any) -> Any:
    """Render a Jinja2 template (HTML autoescaped) with the input as variables."""
    if not isinstance(options, str):
        raise TransformationError('Value of "render" function must be a string', function="render")
    variables = value if isinstance(value, dict) else {"value": value}
    try:
        return _templates.from_string(options).render(**variables)
    except TemplateError as e:
        raise TransformationError(f"Template error: {e}", function="render") from e


@register_function("assert")
async def assert_(t: Transformation, value: Any, options: Any) -> Any:
    """Validate the input object against inline JSON schema properties."""
    if not isinstance(options, dict):
        raise TransformationError('Value of "assert" function must be an object', function="assert")
    schema = {"type": "object", "properties": options}
    try:
        jsonschema.validate(value, schema)
    except jsonschema.ValidationError as e:
        raise AssertionFailedError(value, e.message) from e
    except jsonschema.SchemaError as e:
        raise TransformationError(f"Invalid assertion schema: {e.message}", function="assert") from e
    return value
