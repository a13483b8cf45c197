"""
Transformation evaluator.

A transformation template is a mapping from operation name to options.
Operations run in the template's key order, each receiving the output
of the previous one:

    {"get": "/body/items", "map": {"object": {"title": "/title"}}}

Absence propagates: once the chain value is None the remaining
operations are skipped and the result is None, unless an operation is
registered as null tolerant (static, default, now).

Nested arguments are "value specifications":
    "/path"      JSON pointer into the current input
    [steps...]   sub-script run with the current input as document
    {template}   nested transformation
    anything     literal value

Sub-scripts are executed through an injected SubscriptRunner, so the
evaluator never depends on the script engine directly.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Protocol

from scriptflow.errors import TransformationError
from scriptflow.utils import get_path, is_pointer

from .registry import FunctionRegistry, default_registry
from .trace import TraceNode

logger = logging.getLogger(__name__)


class SubscriptRunner(Protocol):
    """Capability to run a list of script steps against a document."""

    async def __call__(
        self,
        steps: list[Any],
        document: Any,
        trace: list[TraceNode] | None = None,
    ) -> Any:
        ...


class Transformation:
    """
    Evaluates one transformation template against an input value.

    Example:
        t = Transformation({"get": "/name", "upperCase": {}})
        await t.transform({"name": "john"})  # "JOHN"
    """

    def __init__(
        self,
        template: dict[str, Any],
        *,
        runner: SubscriptRunner | None = None,
        trace: list[TraceNode] | None = None,
        registry: FunctionRegistry | None = None,
    ):
        """
        Args:
            template: Mapping of operation name to options
            runner: Runs nested sub-scripts (filter, eval, list specs)
            trace: When given, nested evaluations append debug nodes here
            registry: Operation registry (defaults to the built-in set)
        """
        if not isinstance(template, dict):
            raise TransformationError(
                f"Transformation template must be an object, got {type(template).__name__}"
            )
        self._template = template
        self._runner = runner
        self._trace = trace
        self._registry = registry if registry is not None else default_registry

    @property
    def template(self) -> dict[str, Any]:
        return self._template

    @property
    def trace(self) -> list[TraceNode] | None:
        return self._trace

    async def transform(self, value: Any) -> Any:
        """
        Run the operation chain.

        Raises:
            UnknownFunctionError: For an unregistered operation reached while
                the chain still has a value
            TransformationError: When an operation rejects its options/input
        """
        output = copy.deepcopy(value)
        for name, options in self._template.items():
            if output is None:
                function = self._registry.get(name)
                if function is None or not function.null_tolerant:
                    # Bail on missing values, e.g. get: /unknown followed by substring
                    return None
            else:
                function = self._registry.get_required(name)
            output = await function(self, output, options)
        return output

    def derive(self, template: dict[str, Any], trace: list[TraceNode] | None = None) -> "Transformation":
        """Create a nested transformation sharing runner and registry."""
        return Transformation(template, runner=self._runner, trace=trace, registry=self._registry)

    async def evaluate(self, spec: Any, value: Any, *, info: str | None = None) -> Any:
        """
        Resolve a value specification against the given input.

        Args:
            spec: Pointer string, step list, template dict or literal
            value: Input the value spec is evaluated against
            info: Label for the debug trace (tracing only)
        """
        node: TraceNode | None = None
        if self._trace is not None and info is not None:
            if is_pointer(spec):
                node = TraceNode(definition=[{"get": spec}], info=f"{info}, using shorthand")
            else:
                node = TraceNode(definition=copy.deepcopy(spec), info=info)
            self._trace.append(node)
        children = node.children if node is not None else None

        if is_pointer(spec):
            result = get_path(value, spec)
            result = copy.deepcopy(result)
        elif isinstance(spec, list):
            result = await self.run_script(spec, value, trace=children)
        elif isinstance(spec, dict):
            result = await self.derive(spec, trace=children).transform(value)
        else:
            result = copy.deepcopy(spec)

        if node is not None:
            node.output = result
        return result

    async def run_script(
        self,
        steps: Any,
        document: Any,
        *,
        trace: list[TraceNode] | None = None,
    ) -> Any:
        """Run a nested sub-script through the injected runner."""
        if not isinstance(steps, list):
            raise TransformationError(
                f"Sub-script must be a list of steps, got {type(steps).__name__}"
            )
        if self._runner is None:
            raise TransformationError("Sub-scripts are not available in this context")
        return await self._runner(steps, document, trace)

    def __repr__(self) -> str:
        return f"Transformation(operations={list(self._template)})"
