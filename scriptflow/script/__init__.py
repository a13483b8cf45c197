"""
scriptflow Script Engine

Compiles declarative step lists into programs and interprets them.

Usage:
    from scriptflow.script import ScriptFactory

    factory = ScriptFactory(query=run_query)
    script = factory.create({
        "name": "Count",
        "steps": ["loop", {"increment": "/i"}, {"jump": {"to": "loop", "left": "/i", "operator": "<", "right": 3}}],
    })
    await script.run({})  # {"i": 3}
"""

from .definition import DEFAULT_MAX_STEPS, ScriptDefinition
from .factory import ScriptFactory, ScriptOptions
from .program import CompiledStep, Program, Script
from .registry import PlannedOperation, StepRegistry, create_default_registry
from .state import ExecutionState
from .steps import (
    FunctionStep,
    IncrementStep,
    JumpStep,
    Phase,
    QueryStep,
    RequestStep,
    StepHandler,
    TransformStep,
)

__all__ = [
    "DEFAULT_MAX_STEPS",
    "ScriptDefinition",
    "ScriptFactory",
    "ScriptOptions",
    "CompiledStep",
    "Program",
    "Script",
    "PlannedOperation",
    "StepRegistry",
    "create_default_registry",
    "ExecutionState",
    "Phase",
    "StepHandler",
    "QueryStep",
    "RequestStep",
    "TransformStep",
    "FunctionStep",
    "IncrementStep",
    "JumpStep",
]
