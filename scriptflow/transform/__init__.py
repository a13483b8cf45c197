"""
scriptflow Transformation Evaluator

Declarative, chainable value transformations evaluated against a
single input value.

Usage:
    from scriptflow.transform import Transformation

    t = Transformation({"get": "/body/items", "map": {"object": {"link": "/url"}}})
    links = await t.transform(response)
"""

from . import functions  # noqa: F401  (registers built-in operations)
from .evaluator import SubscriptRunner, Transformation
from .registry import (
    Function,
    FunctionRegistry,
    default_registry,
    register_function,
)
from .trace import TraceNode

__all__ = [
    "Transformation",
    "SubscriptRunner",
    "TraceNode",
    "Function",
    "FunctionRegistry",
    "default_registry",
    "register_function",
]
