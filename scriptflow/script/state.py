"""
Execution State for one script run.

Created fresh for every run and discarded afterwards; never shared
between runs or between Script instances. Sub-scripts get their own
state but continue the parent's step count.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from scriptflow.transform import TraceNode


@dataclass
class ExecutionState:
    """
    Mutable state threaded through the interpreter loop.

    Attributes:
        document: The single value flowing through the steps
        pc: Index of the step to execute next
        steps_executed: Steps processed so far, labels included
        jump_target: Label selected by a jump in the current step
        trace: Debug nodes for processed steps (None when not tracing)
        step_trace: Children list of the step currently being traced
        depth: Sub-script nesting level, 0 for the top-level run
    """

    document: Any = None
    pc: int = 0
    steps_executed: int = 0
    jump_target: str | None = None
    trace: list[TraceNode] | None = None
    step_trace: list[TraceNode] | None = None
    depth: int = 0
    started_at: float = field(default_factory=time.perf_counter)

    @property
    def tracing(self) -> bool:
        return self.trace is not None

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the run started."""
        return (time.perf_counter() - self.started_at) * 1000
