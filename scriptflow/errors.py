"""
Error taxonomy for scriptflow.

Every error raised by the runtime derives from ScriptError so hosts can
catch script failures with a single except clause. Errors raised by the
injected query/HTTP capabilities are never wrapped; they propagate
through run() unchanged.

Hierarchy:
    ScriptError
    ├── ScriptDefinitionError      (bad definition, labels, schedule)
    │   └── UnknownOperationError  (unknown step keyword)
    ├── ScriptBusyError            (concurrent run on one Script instance)
    ├── StepBudgetExceeded         (runaway loop)
    ├── ScriptOperationError       (engine step failure)
    ├── CapabilityMissingError     (query/request without capability)
    └── TransformationError        (evaluator operation misuse)
        ├── UnknownFunctionError
        └── AssertionFailedError
"""

from __future__ import annotations

from typing import Any


class ScriptError(Exception):
    """Base exception for script errors."""

    def __init__(self, message: str, *, script: str | None = None):
        super().__init__(message)
        self.script = script

    def __str__(self) -> str:
        if self.script:
            return f"[{self.script}] {self.args[0]}"
        return str(self.args[0])


class ScriptDefinitionError(ScriptError):
    """Raised when a script definition cannot be compiled."""

    pass


class UnknownOperationError(ScriptDefinitionError):
    """Raised when a step uses a keyword that no handler supports."""

    def __init__(self, operation: str, *, script: str | None = None):
        super().__init__(f"Unsupported operation '{operation}'", script=script)
        self.operation = operation


class ScriptBusyError(ScriptError):
    """Raised when run() is called while the same instance is still running."""

    def __init__(self, script: str):
        super().__init__("Script is already running", script=script)


class StepBudgetExceeded(ScriptError):
    """Raised when a run processes more steps than max_steps allows."""

    def __init__(self, max_steps: int, *, script: str | None = None, message: str | None = None):
        super().__init__(message or f"Script exceeded maximum of {max_steps} steps", script=script)
        self.max_steps = max_steps


class ScriptOperationError(ScriptError):
    """Raised when an engine step cannot be applied to the document."""

    def __init__(self, operation: str, message: str, *, script: str | None = None):
        super().__init__(f"{operation}: {message}", script=script)
        self.operation = operation


class CapabilityMissingError(ScriptError):
    """Raised when a step needs a host capability that was not injected."""

    def __init__(self, capability: str, *, script: str | None = None):
        super().__init__(f"No {capability} capability configured", script=script)
        self.capability = capability


class TransformationError(ScriptError):
    """Raised by transformation operations on invalid options or input."""

    def __init__(self, message: str, *, function: str | None = None):
        super().__init__(message)
        self.function = function


class UnknownFunctionError(TransformationError):
    """Raised when a template references an unknown operation."""

    def __init__(self, function: str):
        super().__init__(f"Unknown function {function}", function=function)


class AssertionFailedError(TransformationError):
    """Raised by the assert operation when the input does not validate."""

    def __init__(self, value: Any, reason: str):
        super().__init__(f"Assertion did not pass: {reason}", function="assert")
        self.value = value
        self.reason = reason
