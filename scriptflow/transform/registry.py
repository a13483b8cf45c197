"""
Function Registry for the Transformation evaluator.

Every transformation operation ("get", "map", "split", ...) is a
coroutine function registered under its template keyword. The default
registry is populated once at import time by the modules in
scriptflow.transform.functions and is read-only afterwards.

Usage:
    @register_function("upperCase")
    async def upper_case(t: Transformation, value: Any, options: Any) -> Any:
        ...

    function = default_registry.get_required("upperCase")
    result = await function(t, "abc", {})
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from scriptflow.errors import UnknownFunctionError

if TYPE_CHECKING:
    from .evaluator import Transformation

logger = logging.getLogger(__name__)

FunctionHandler = Callable[["Transformation", Any, Any], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class Function:
    """A registered transformation operation."""

    name: str
    handler: FunctionHandler
    # Runs even when the chain value is None (e.g. static, default)
    null_tolerant: bool = False

    async def __call__(self, transformation: "Transformation", value: Any, options: Any) -> Any:
        return await self.handler(transformation, value, options)


class FunctionRegistry:
    """
    Registry of transformation operations by keyword.

    Example:
        registry = FunctionRegistry()
        registry.register(Function("double", double))
        registry.get_required("double")
    """

    def __init__(self) -> None:
        self._functions: dict[str, Function] = {}

    def register(self, function: Function) -> None:
        """
        Register a function.

        Raises:
            ValueError: If the name is already registered
        """
        if function.name in self._functions:
            raise ValueError(f"Function '{function.name}' already registered")
        self._functions[function.name] = function
        logger.debug(f"[functions] Registered function: {function.name}")

    def get(self, name: str) -> Function | None:
        return self._functions.get(name)

    def get_required(self, name: str) -> Function:
        """
        Get a function by name, raising if not found.

        Raises:
            UnknownFunctionError: If no function has this name
        """
        function = self._functions.get(name)
        if function is None:
            raise UnknownFunctionError(name)
        return function

    def list_names(self) -> list[str]:
        return sorted(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)


default_registry = FunctionRegistry()


def register_function(
    name: str,
    *,
    null_tolerant: bool = False,
    registry: FunctionRegistry | None = None,
) -> Callable[[FunctionHandler], FunctionHandler]:
    """Decorator registering a coroutine function as a transformation operation."""

    def decorator(handler: FunctionHandler) -> FunctionHandler:
        target = registry if registry is not None else default_registry
        target.register(Function(name=name, handler=handler, null_tolerant=null_tolerant))
        return handler

    return decorator
