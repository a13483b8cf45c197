"""
Script Program and Interpreter.

A Program is the compiled, immutable form of a ScriptDefinition: the
step list, precomputed handler plans and the label -> index table.
A Script is one execution slot over a Program, owning the busy flag
that allows at most one run in flight:

    script = factory.create(definition)
    output = await script.run({"page": 1})

    # Independent slot sharing the compiled steps
    other = script.clone()

Execution model:
    - pc walks the steps; labels are no-ops
    - each operation step applies its handlers in phase order
    - a jump that fires moves pc to the label's index ("end" leaves)
    - every processed step counts against max_steps
"""

from __future__ import annotations

import asyncio
import copy
import functools
import logging
from dataclasses import dataclass
from typing import Any

from scriptflow.capabilities import QueryCapability, RequestCapability
from scriptflow.errors import (
    CapabilityMissingError,
    ScriptBusyError,
    ScriptDefinitionError,
    StepBudgetExceeded,
)
from scriptflow.transform import TraceNode, Transformation

from .definition import ScriptDefinition
from .registry import PlannedOperation, StepRegistry, create_default_registry
from .state import ExecutionState

logger = logging.getLogger(__name__)

END_LABEL = "end"

# Deepest sub-script nesting; nested steps also count against max_steps
MAX_SUBSCRIPT_DEPTH = 32

_default_step_registry: StepRegistry | None = None


def get_default_step_registry() -> StepRegistry:
    global _default_step_registry
    if _default_step_registry is None:
        _default_step_registry = create_default_registry()
    return _default_step_registry


@dataclass(frozen=True, slots=True)
class CompiledStep:
    """A step with its label or its planned operations."""

    index: int
    definition: Any
    label: str | None = None
    operations: tuple[PlannedOperation, ...] = ()


@dataclass(frozen=True)
class Program:
    """
    Compiled script.

    Attributes:
        definition: The validated definition
        steps: Compiled steps in order
        labels: Label name to step index
    """

    definition: ScriptDefinition
    steps: tuple[CompiledStep, ...]
    labels: dict[str, int]
    registry: StepRegistry

    @classmethod
    def compile(
        cls,
        definition: ScriptDefinition | dict[str, Any],
        registry: StepRegistry | None = None,
    ) -> "Program":
        """
        Compile a definition.

        Raises:
            ScriptDefinitionError: Missing name/steps, duplicate labels,
                unknown jump targets or invalid step options
            UnknownOperationError: Unsupported step keyword
        """
        definition = ScriptDefinition.from_data(definition)
        registry = registry if registry is not None else get_default_step_registry()

        labels: dict[str, int] = {}
        for index, step in enumerate(definition.steps):
            if isinstance(step, str):
                if step in labels:
                    raise ScriptDefinitionError(
                        f"Duplicate label '{step}' at steps {labels[step]} and {index}",
                        script=definition.name,
                    )
                labels[step] = index

        compiled = []
        for index, step in enumerate(definition.steps):
            if isinstance(step, str):
                compiled.append(CompiledStep(index=index, definition=step, label=step))
                continue
            try:
                operations = registry.plan(step, labels)
            except ScriptDefinitionError as e:
                e.script = e.script or definition.name
                raise
            compiled.append(CompiledStep(index=index, definition=step, operations=operations))

        return cls(definition=definition, steps=tuple(compiled), labels=labels, registry=registry)

    @property
    def name(self) -> str:
        return self.definition.name

    def resolve(self, label: str) -> int:
        """Step index for a jump target; "end" without such a label leaves the program."""
        if label in self.labels:
            return self.labels[label]
        if label == END_LABEL:
            return len(self.steps)
        raise ScriptDefinitionError(f"Jump to unknown label '{label}'", script=self.name)


class Script:
    """
    Runnable script: a Program plus capabilities and a busy flag.

    Example:
        script = Script(Program.compile(definition), query=run_query)
        task = script.run({})
        output = await task
    """

    def __init__(
        self,
        program: Program,
        *,
        query: QueryCapability | None = None,
        request: RequestCapability | None = None,
        context: Any = None,
        debug: bool = False,
    ):
        self._program = program
        self._query = query
        self._request = request
        self._context = context
        self._debug = debug
        self._busy = False

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def program(self) -> Program:
        return self._program

    @property
    def name(self) -> str:
        return self._program.name

    @property
    def definition(self) -> ScriptDefinition:
        return self._program.definition

    @property
    def max_steps(self) -> int:
        return self.definition.max_steps

    @property
    def delay(self) -> int:
        return self.definition.delay

    @property
    def schedule(self) -> str | None:
        return self.definition.schedule

    @property
    def run_on_startup(self) -> bool:
        return self.definition.run_on_startup

    @property
    def context(self) -> Any:
        return self._context

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def debug(self) -> bool:
        return self._debug

    def set_debug(self, debug: bool = True) -> None:
        """Make run() resolve to {output, definition, children}."""
        self._debug = bool(debug)

    def clone(self) -> "Script":
        """Independent execution slot sharing the compiled program."""
        return Script(
            self._program,
            query=self._query,
            request=self._request,
            context=self._context,
            debug=self._debug,
        )

    def require_query(self) -> QueryCapability:
        if self._query is None:
            raise CapabilityMissingError("query", script=self.name)
        return self._query

    def require_request(self) -> RequestCapability:
        if self._request is None:
            raise CapabilityMissingError("request", script=self.name)
        return self._request

    # -------------------------------------------------------------------------
    # Evaluation helpers used by step handlers
    # -------------------------------------------------------------------------

    def transformation(self, template: dict[str, Any], state: ExecutionState) -> Transformation:
        """Evaluator for a template; its sub-scripts count against this run."""
        return Transformation(
            template,
            runner=functools.partial(self._run_subscript, state),
            trace=state.step_trace,
            registry=self._program.registry.functions,
        )

    async def evaluate(self, spec: Any, state: ExecutionState) -> Any:
        """Resolve a value specification against the current document."""
        return await self.transformation({}, state).evaluate(spec, state.document)

    async def _run_subscript(
        self,
        parent: ExecutionState,
        steps: list[Any],
        document: Any,
        trace: list[TraceNode] | None = None,
    ) -> Any:
        if parent.depth >= MAX_SUBSCRIPT_DEPTH:
            raise StepBudgetExceeded(
                self.max_steps,
                script=self.name,
                message=f"Sub-scripts nested deeper than {MAX_SUBSCRIPT_DEPTH} levels",
            )
        program = Program.compile(
            {"name": f"{self.name}:subscript", "steps": steps, "maxSteps": self.max_steps},
            self._program.registry,
        )
        child = Script(
            program,
            query=self._query,
            request=self._request,
            context=self._context,
            debug=self._debug,
        )
        state = ExecutionState(
            document=document,
            trace=trace,
            steps_executed=parent.steps_executed,
            depth=parent.depth + 1,
        )
        try:
            return await child._interpret(state)
        finally:
            parent.steps_executed = state.steps_executed

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def run(self, document: Any = None) -> asyncio.Task:
        """
        Start a run and return its task.

        Must be called from a running event loop. The input is deep
        copied; the caller's value is never mutated.

        Raises:
            ScriptBusyError: Immediately, if this instance is already running
        """
        if self._busy:
            raise ScriptBusyError(self.name)
        loop = asyncio.get_running_loop()
        self._busy = True
        task = loop.create_task(self._execute(document), name=f"script:{self.name}")
        task.add_done_callback(self._release)
        return task

    def _release(self, task: asyncio.Task) -> None:
        self._busy = False

    async def _execute(self, document: Any) -> Any:
        try:
            state = ExecutionState(
                document=copy.deepcopy(document) if document is not None else {},
                trace=[] if self._debug else None,
            )
            logger.debug(f"[script] {self.name}: run started")
            output = await self._interpret(state)
            logger.debug(
                f"[script] {self.name}: run completed in {state.elapsed_ms:.1f}ms "
                f"({state.steps_executed} steps)"
            )
            if self._debug:
                return {
                    "output": output,
                    "definition": copy.deepcopy(self.definition.steps),
                    "children": [node.to_dict() for node in state.trace],
                }
            return output
        finally:
            self._busy = False

    async def _interpret(self, state: ExecutionState) -> Any:
        program = self._program
        steps = program.steps

        while state.pc < len(steps):
            if self.delay:
                await asyncio.sleep(self.delay / 1000)

            step = steps[state.pc]
            state.steps_executed += 1
            if state.steps_executed > self.max_steps:
                raise StepBudgetExceeded(self.max_steps, script=self.name)

            node = TraceNode(definition=copy.deepcopy(step.definition)) if state.tracing else None
            state.step_trace = node.children if node is not None else None
            state.jump_target = None

            for operation in step.operations:
                await operation.handler.apply(
                    self, state, operation.keyword, operation.options, step.definition
                )

            if node is not None:
                node.output = copy.deepcopy(state.document)
                state.trace.append(node)

            if state.jump_target is not None:
                state.pc = program.resolve(state.jump_target)
            else:
                state.pc += 1

        return state.document

    def __repr__(self) -> str:
        return f"Script(name={self.name!r}, steps={len(self._program.steps)}, busy={self._busy})"
