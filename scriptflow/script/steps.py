"""
Step Handlers.

Each non-label step is an object whose keys name operations. A handler
owns one keyword, runs in a fixed phase and may declare modifier keys
that are only meaningful next to its keyword:

    - query: '{item(id: $id) { name }}'   # QUERY phase
      arguments: {id: /id}                # modifier of query
      resultProperty: /item               # modifier of query
      jump: done                          # JUMP phase

Within one step handlers run in phase order:

    QUERY -> REQUEST -> TRANSFORM -> INCREMENT -> JUMP

Transform-phase keys ("object", "transform" and any evaluator
operation) run in the order they appear in the step.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import TYPE_CHECKING, Any

from scriptflow.errors import ScriptDefinitionError, ScriptOperationError
from scriptflow.utils import (
    PointerError,
    compare,
    get_path,
    is_number,
    is_pointer,
    parse_xml,
    set_path,
)

if TYPE_CHECKING:
    from .program import Script
    from .state import ExecutionState

logger = logging.getLogger(__name__)

DEFAULT_RESULT_PROPERTY = "/result"


class Phase(IntEnum):
    """Execution order of handlers within one step."""

    QUERY = 10
    REQUEST = 20
    TRANSFORM = 30
    INCREMENT = 40
    JUMP = 50


class StepHandler(ABC):
    """
    Base class for step operations.

    Subclasses set keyword/phase and implement apply(). validate() is
    called once when the script is compiled.
    """

    keyword: str = ""
    phase: Phase = Phase.TRANSFORM
    modifiers: tuple[str, ...] = ()

    def validate(self, options: Any, step: dict[str, Any], labels: dict[str, int]) -> None:
        """Check options at compile time. Raise ScriptDefinitionError on misuse."""

    @abstractmethod
    async def apply(
        self,
        script: Script,
        state: ExecutionState,
        keyword: str,
        options: Any,
        step: dict[str, Any],
    ) -> None:
        """Apply the operation, updating state.document or state.jump_target."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(keyword={self.keyword!r}, phase={self.phase.name})"


def write_result(script: Script, operation: str, document: Any, path: Any, value: Any) -> Any:
    """Store an operation result in the document at a JSON pointer."""
    if not isinstance(path, str):
        raise ScriptOperationError(operation, "resultProperty must be a string", script=script.name)
    try:
        return set_path(document, path, value)
    except PointerError as e:
        raise ScriptOperationError(operation, str(e), script=script.name) from e


def resolve_shorthand(value: Any, document: Any) -> Any:
    """Resolve a pointer string against the document; other values are literal."""
    if is_pointer(value):
        return get_path(document, value)
    return value


# =============================================================================
# Query
# =============================================================================


class QueryStep(StepHandler):
    """
    Run a query through the host's query capability.

    Forms:
        query: '{ items { id } }'
        query: {query: '...', arguments: {...}, resultProperty: /x, runInContext: true}

    Arguments are value specifications evaluated against the document.
    The result lands at resultProperty (default /result); an empty
    resultProperty replaces the whole document.
    """

    keyword = "query"
    phase = Phase.QUERY
    modifiers = ("arguments", "resultProperty", "runInContext")

    def _options(self, options: Any, step: dict[str, Any]) -> dict[str, Any]:
        merged = dict(options) if isinstance(options, dict) else {"query": options}
        for modifier in self.modifiers:
            if modifier in step:
                merged[modifier] = step[modifier]
        return merged

    def validate(self, options: Any, step: dict[str, Any], labels: dict[str, int]) -> None:
        merged = self._options(options, step)
        if not merged.get("query"):
            raise ScriptDefinitionError("query step requires a query")
        arguments = merged.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise ScriptDefinitionError("query arguments must be an object")

    async def apply(self, script, state, keyword, options, step) -> None:
        options = self._options(options, step)
        arguments = {}
        for name, spec in (options.get("arguments") or {}).items():
            arguments[name] = await script.evaluate(spec, state)

        context = script.context if options.get("runInContext") else None
        query = script.require_query()
        logger.debug(f"[query] {script.name}: running query with {len(arguments)} argument(s)")
        result = await query(options["query"], context, arguments)

        state.document = write_result(
            script,
            "query",
            state.document,
            options.get("resultProperty", DEFAULT_RESULT_PROPERTY),
            result,
        )


# =============================================================================
# Request
# =============================================================================


class RequestStep(StepHandler):
    """
    Perform an HTTP request through the host's request capability.

    Forms:
        request: https://example.com/feed.xml
        request: {method: POST, url: /target, headers: {...}, body: /payload, cookies: /jar}

    url, body, cookies and header values may be pointers into the
    document. The response {headers, body, cookies}, plus status when the
    capability reports one, is stored at resultProperty (default /result).
    JSON and XML bodies are parsed according to the content-type header.
    """

    keyword = "request"
    phase = Phase.REQUEST
    modifiers = ("resultProperty",)

    def _options(self, options: Any) -> dict[str, Any]:
        return dict(options) if isinstance(options, dict) else {"url": options}

    def validate(self, options: Any, step: dict[str, Any], labels: dict[str, int]) -> None:
        if not self._options(options).get("url"):
            raise ScriptDefinitionError("request step requires a url")

    async def apply(self, script, state, keyword, options, step) -> None:
        options = self._options(options)
        document = state.document
        method = str(options.get("method") or "GET").upper()
        url = resolve_shorthand(options["url"], document)
        if not isinstance(url, str) or not url:
            raise ScriptOperationError("request", f"url resolved to {url!r}", script=script.name)

        headers = resolve_shorthand(options.get("headers"), document) or {}
        if not isinstance(headers, dict):
            raise ScriptOperationError("request", "headers must be an object", script=script.name)
        headers = {name: resolve_shorthand(value, document) for name, value in headers.items()}
        body = resolve_shorthand(options.get("body"), document)
        cookies = resolve_shorthand(options.get("cookies"), document)

        request = script.require_request()
        logger.debug(f"[request] {script.name}: {method} {url}")
        response = await request(method, url, headers, body, cookies)

        result = {
            "headers": response.get("headers") or {},
            "body": self._parse_body(script, response),
            "cookies": response.get("cookies") or {},
        }
        if "status" in response:
            result["status"] = response["status"]
        state.document = write_result(
            script,
            "request",
            state.document,
            step.get("resultProperty", options.get("resultProperty", DEFAULT_RESULT_PROPERTY)),
            result,
        )

    def _parse_body(self, script: Script, response: dict[str, Any]) -> Any:
        body = response.get("body")
        if not isinstance(body, str):
            return body

        content_type = content_type_of(response.get("headers") or {})
        if "json" in content_type:
            try:
                return json.loads(body)
            except ValueError:
                logger.warning(f"[request] {script.name}: response is not valid JSON, keeping text")
                return body
        if "xml" in content_type:
            try:
                return parse_xml(body)
            except ValueError:
                logger.warning(f"[request] {script.name}: response is not valid XML, keeping text")
                return body
        return body


def content_type_of(headers: dict[str, Any]) -> str:
    """Lowercased content-type from a header map whose values may be lists."""
    for name, value in headers.items():
        if name.lower() != "content-type":
            continue
        if isinstance(value, list):
            value = value[0] if value else ""
        return str(value).lower()
    return ""


# =============================================================================
# Transform
# =============================================================================


class TransformStep(StepHandler):
    """
    Replace the document with the output of a transformation template.

        transform: {get: /items, map: {object: {id: /id}}}
    """

    keyword = "transform"
    phase = Phase.TRANSFORM

    def validate(self, options: Any, step: dict[str, Any], labels: dict[str, int]) -> None:
        if not isinstance(options, dict):
            raise ScriptDefinitionError("transform step requires a template object")

    async def apply(self, script, state, keyword, options, step) -> None:
        transformation = script.transformation(options, state)
        state.document = await transformation.transform(state.document)


class FunctionStep(StepHandler):
    """
    Shorthand for a single-operation transformation.

        object: {name: /user/name}

    is equivalent to

        transform: {object: {name: /user/name}}

    Used for "object" and for any operation known to the evaluator.
    """

    keyword = "object"
    phase = Phase.TRANSFORM

    async def apply(self, script, state, keyword, options, step) -> None:
        transformation = script.transformation({keyword: options}, state)
        state.document = await transformation.transform(state.document)


# =============================================================================
# Increment
# =============================================================================


class IncrementStep(StepHandler):
    """
    Add one to the number at a JSON pointer. A missing value is
    initialized to 0.

        increment: /i
    """

    keyword = "increment"
    phase = Phase.INCREMENT

    def validate(self, options: Any, step: dict[str, Any], labels: dict[str, int]) -> None:
        if not isinstance(options, str):
            raise ScriptDefinitionError("increment step requires a JSON pointer")

    async def apply(self, script, state, keyword, options, step) -> None:
        current = get_path(state.document, options)
        if current is None:
            current = -1
        elif not is_number(current):
            raise ScriptOperationError(
                "increment",
                f"value at {options} is not a number ({type(current).__name__})",
                script=script.name,
            )
        state.document = write_result(script, "increment", state.document, options, current + 1)


# =============================================================================
# Jump
# =============================================================================


class JumpStep(StepHandler):
    """
    Conditionally continue at a label.

    Forms:
        jump: loop
        jump: {to: loop, left: /i, operator: '<', right: 10}

    left and right are value specifications and default to true; the
    operator defaults to ===. "end" jumps past the last step unless a
    label of that name exists.
    """

    keyword = "jump"
    phase = Phase.JUMP

    def _options(self, options: Any) -> dict[str, Any]:
        return dict(options) if isinstance(options, dict) else {"to": options}

    def validate(self, options: Any, step: dict[str, Any], labels: dict[str, int]) -> None:
        target = self._options(options).get("to")
        if not isinstance(target, str) or not target:
            raise ScriptDefinitionError("jump requires a target label")
        if target not in labels and target != "end":
            raise ScriptDefinitionError(f"Jump to unknown label '{target}'")

    async def apply(self, script, state, keyword, options, step) -> None:
        options = self._options(options)
        left = await script.evaluate(options.get("left", True), state)
        right = await script.evaluate(options.get("right", True), state)
        operator = options.get("operator", "===")
        if compare(left, operator, right):
            state.jump_target = options["to"]
