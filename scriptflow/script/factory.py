"""
Script Factory.

Binds host capabilities once and compiles definitions into runnable
scripts:

    factory = ScriptFactory(query=run_query, request=HttpxRequester())
    script = factory.create(definition, ScriptOptions(context=ctx))
    output = await script.run({})
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from scriptflow.capabilities import QueryCapability, RequestCapability

from .definition import ScriptDefinition
from .program import Program, Script
from .registry import StepRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScriptOptions:
    """
    Per-script options.

    Attributes:
        context: Caller context passed to queries with runInContext
        debug: Return {output, definition, children} from run()
    """

    context: Any = None
    debug: bool = False


class ScriptFactory:
    """Creates Script instances sharing the same host capabilities."""

    def __init__(
        self,
        *,
        query: QueryCapability | None = None,
        request: RequestCapability | None = None,
        registry: StepRegistry | None = None,
    ):
        self._query = query
        self._request = request
        self._registry = registry

    def create(
        self,
        definition: ScriptDefinition | dict[str, Any],
        options: ScriptOptions | dict[str, Any] | None = None,
    ) -> Script:
        """
        Compile a definition into a runnable script.

        Raises:
            ScriptDefinitionError: If the definition is invalid
        """
        if options is None:
            options = ScriptOptions()
        elif isinstance(options, dict):
            options = ScriptOptions(**options)

        program = Program.compile(definition, self._registry)
        logger.debug(f"[script_factory] Compiled script: {program.name} ({len(program.steps)} steps)")
        return Script(
            program,
            query=self._query,
            request=self._request,
            context=options.context,
            debug=options.debug,
        )
