"""
Step Registry.

Maps step keywords to their handlers and turns a step object into an
ordered list of operations. Keys that are not step keywords fall back
to the transformation evaluator's operations, so

    - split: {separator: ','}

is a valid step wherever split is a registered function.

Usage:
    registry = create_default_registry()
    operations = registry.plan(step, labels)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from scriptflow.errors import UnknownOperationError
from scriptflow.transform import FunctionRegistry, default_registry

from .steps import (
    FunctionStep,
    IncrementStep,
    JumpStep,
    QueryStep,
    RequestStep,
    StepHandler,
    TransformStep,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PlannedOperation:
    """One handler invocation within a compiled step."""

    handler: StepHandler
    keyword: str
    options: Any
    position: int


class StepRegistry:
    """
    Registry of step handlers.

    Example:
        registry = StepRegistry()
        registry.register(QueryStep())
        registry.get("query")
    """

    def __init__(self, functions: FunctionRegistry | None = None) -> None:
        self._handlers: dict[str, StepHandler] = {}
        self._functions = functions if functions is not None else default_registry
        self._function_step = FunctionStep()

    @property
    def functions(self) -> FunctionRegistry:
        return self._functions

    def register(self, handler: StepHandler) -> None:
        """
        Register a step handler.

        Raises:
            ValueError: If the keyword is empty or already registered
        """
        if not handler.keyword:
            raise ValueError(f"Step handler must have a keyword: {handler!r}")
        if handler.keyword in self._handlers:
            raise ValueError(f"Step keyword '{handler.keyword}' already registered")
        self._handlers[handler.keyword] = handler
        logger.debug(f"[step_registry] Registered step: {handler.keyword}")

    def get(self, keyword: str) -> StepHandler | None:
        return self._handlers.get(keyword)

    def get_required(self, keyword: str) -> StepHandler:
        handler = self.get(keyword)
        if handler is None:
            raise UnknownOperationError(keyword)
        return handler

    def list_names(self) -> list[str]:
        return list(self._handlers.keys())

    def plan(self, step: dict[str, Any], labels: dict[str, int]) -> tuple[PlannedOperation, ...]:
        """
        Resolve a step object into handler calls in execution order.

        Raises:
            UnknownOperationError: For a key that is neither a step keyword,
                a modifier of a keyword present in the step, nor an
                evaluator operation
            ScriptDefinitionError: When a handler rejects its options
        """
        operations: list[PlannedOperation] = []
        allowed_modifiers: set[str] = set()
        for keyword in step:
            handler = self._handlers.get(keyword)
            if handler is not None:
                allowed_modifiers.update(handler.modifiers)

        for position, (keyword, options) in enumerate(step.items()):
            handler = self._handlers.get(keyword)
            if handler is None:
                if keyword in allowed_modifiers:
                    continue
                if keyword in self._functions:
                    handler = self._function_step
                else:
                    raise UnknownOperationError(keyword)
            handler.validate(options, step, labels)
            operations.append(PlannedOperation(handler, keyword, options, position))

        operations.sort(key=lambda op: (op.handler.phase, op.position))
        return tuple(operations)

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, keyword: str) -> bool:
        return keyword in self._handlers


def create_default_registry(functions: FunctionRegistry | None = None) -> StepRegistry:
    """Registry with the built-in query, request, transform, object, increment and jump steps."""
    registry = StepRegistry(functions)
    for handler in (
        QueryStep(),
        RequestStep(),
        TransformStep(),
        FunctionStep(),
        IncrementStep(),
        JumpStep(),
    ):
        registry.register(handler)
    return registry
