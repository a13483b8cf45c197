"""
Script Runtime.

Hosts a set of scripts: loads definitions, compiles them with the
host's capabilities, schedules cron/startup runs and runs scripts on
demand.

Usage:
    runtime = create_runtime(query=run_query)
    await runtime.startup()
    output = await runtime.run("QueueWorker", {})
    await runtime.shutdown()

Or as an async context manager:
    async with create_runtime(query=run_query) as runtime:
        ...
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from scriptflow.capabilities import HttpxRequester, QueryCapability, RequestCapability
from scriptflow.config import ScriptSettings, get_settings
from scriptflow.errors import ScriptDefinitionError, ScriptError
from scriptflow.script import Script, ScriptFactory, ScriptOptions, StepRegistry

from .loaders import FileScriptLoader
from .scheduler import STARTUP_DELAY_SECONDS, ScriptScheduler

logger = logging.getLogger(__name__)


class ScriptLoader(Protocol):
    """Source of raw script definitions."""

    async def list_definitions(self) -> list[dict[str, Any]]:
        ...


class ScriptRuntime:
    """
    Owns compiled scripts and their scheduler.

    Scripts returned by get() are clones, so on-demand runs never
    collide with scheduled runs of the same script.
    """

    def __init__(
        self,
        *,
        loader: ScriptLoader,
        query: QueryCapability | None = None,
        request: RequestCapability | None = None,
        context: Any = None,
        registry: StepRegistry | None = None,
        startup_delay: float = STARTUP_DELAY_SECONDS,
    ):
        self._loader = loader
        self._request = request
        self._context = context
        self._factory = ScriptFactory(query=query, request=request, registry=registry)
        self._startup_delay = startup_delay
        self._scheduler = ScriptScheduler(startup_delay=startup_delay)
        self._scripts: dict[str, Script] = {}
        self._started = False

    @property
    def scheduler(self) -> ScriptScheduler:
        return self._scheduler

    @property
    def started(self) -> bool:
        return self._started

    async def startup(self) -> None:
        """
        Load and compile all scripts, then start schedules.

        Raises:
            ScriptDefinitionError: If any definition is invalid
        """
        if self._started:
            return

        # Nothing is registered until every definition compiles
        scripts: dict[str, Script] = {}
        scheduler = ScriptScheduler(startup_delay=self._startup_delay)
        for definition in await self._loader.list_definitions():
            script = self._factory.create(definition, ScriptOptions(context=self._context))
            if script.name in scripts:
                raise ScriptDefinitionError("Duplicate script name", script=script.name)
            scripts[script.name] = script
            scheduler.add(script)
            logger.info(f"[runtime] Loaded script: {script.name}")

        self._scripts = scripts
        self._scheduler = scheduler
        self._scheduler.start()
        self._scheduler.ready()
        self._started = True
        logger.info(f"[runtime] Started with {len(self._scripts)} script(s)")

    async def shutdown(self) -> None:
        """Stop schedules, wait for in-flight runs and close the HTTP client."""
        await self._scheduler.stop()
        if isinstance(self._request, HttpxRequester):
            await self._request.close()
        self._started = False
        logger.info("[runtime] Shut down")

    def list_names(self) -> list[str]:
        return list(self._scripts.keys())

    def get(self, name: str) -> Script | None:
        """Get an independent instance of a loaded script."""
        script = self._scripts.get(name)
        return script.clone() if script is not None else None

    def get_required(self, name: str) -> Script:
        script = self.get(name)
        if script is None:
            raise ScriptError(f"Script not found. Available scripts: {self.list_names()}", script=name)
        return script

    async def run(self, name: str, document: Any = None, *, debug: bool = False) -> Any:
        """Run a loaded script on demand and return its output."""
        script = self.get_required(name)
        script.set_debug(debug)
        return await script.run(document)

    async def __aenter__(self) -> "ScriptRuntime":
        await self.startup()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()


def create_runtime(
    settings: ScriptSettings | None = None,
    *,
    query: QueryCapability | None = None,
    context: Any = None,
) -> ScriptRuntime:
    """Build a runtime that loads scripts from settings.scripts_dir."""
    settings = settings or get_settings()
    return ScriptRuntime(
        loader=FileScriptLoader(settings.scripts_dir),
        query=query,
        request=HttpxRequester(timeout=settings.http_timeout),
        context=context,
        startup_delay=settings.startup_delay,
    )
