"""
Script Scheduler.

Runs scripts on cron schedules and once at startup:

    scheduler = ScriptScheduler()
    scheduler.add(script)       # script.schedule = '*/5 * * * * *'
    scheduler.start()           # cron timers begin
    scheduler.ready()           # runOnStartup scripts fire after startup_delay
    ...
    await scheduler.stop()

Schedules use six fields with seconds first
(second minute hour day month weekday); five-field expressions without
seconds are accepted too.

A tick on a script that is still running is skipped, so a scheduled
script never overlaps itself. Failures of scheduled runs are logged
and never stop the schedule.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from croniter import croniter

from scriptflow.errors import ScriptBusyError, ScriptDefinitionError
from scriptflow.script import Script

logger = logging.getLogger(__name__)

STARTUP_DELAY_SECONDS = 2.0


def to_croniter_expression(expression: str) -> str:
    """
    Convert a seconds-first cron expression to croniter's field order.

    croniter expects seconds as the trailing sixth field.

    Raises:
        ScriptDefinitionError: If the expression is not valid cron
    """
    fields = expression.split()
    if len(fields) == 6:
        fields = fields[1:] + fields[:1]
    elif len(fields) != 5:
        raise ScriptDefinitionError(f"Invalid cron expression '{expression}': expected 5 or 6 fields")
    converted = " ".join(fields)
    if not croniter.is_valid(converted):
        raise ScriptDefinitionError(f"Invalid cron expression '{expression}'")
    return converted


class ScriptScheduler:
    """
    Drives scheduled and startup runs for a set of scripts.

    Each scheduled script gets its own timer task. Runs are
    fire-and-forget; their outcome is only logged.
    """

    def __init__(self, *, startup_delay: float = STARTUP_DELAY_SECONDS):
        """
        Args:
            startup_delay: Seconds between ready() and runOnStartup runs
        """
        self._startup_delay = startup_delay
        self._scripts: dict[str, Script] = {}
        self._expressions: dict[str, str] = {}
        self._timers: dict[str, asyncio.Task] = {}
        self._startup_handles: list[asyncio.TimerHandle] = []
        self._runs: set[asyncio.Task] = set()
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def list_names(self) -> list[str]:
        return list(self._scripts.keys())

    def add(self, script: Script) -> None:
        """
        Register a script. Its schedule is validated immediately.

        Raises:
            ScriptDefinitionError: Invalid cron expression or duplicate name
        """
        if script.name in self._scripts:
            raise ScriptDefinitionError("Script already scheduled", script=script.name)
        if script.schedule:
            try:
                self._expressions[script.name] = to_croniter_expression(script.schedule)
            except ScriptDefinitionError as e:
                e.script = script.name
                raise
        self._scripts[script.name] = script
        if self._started and script.name in self._expressions:
            self._start_timer(script)

    def start(self) -> None:
        """Start cron timers for all scheduled scripts."""
        if self._started:
            return
        self._started = True
        for script in self._scripts.values():
            if script.name in self._expressions:
                self._start_timer(script)
        logger.info(f"[scheduler] Started {len(self._timers)} scheduled script(s)")

    def ready(self) -> None:
        """Queue runOnStartup scripts to run after the startup delay."""
        loop = asyncio.get_running_loop()
        for script in self._scripts.values():
            if script.run_on_startup:
                logger.info(f"[scheduler] {script.name} will run in {self._startup_delay:.1f}s")
                handle = loop.call_later(self._startup_delay, self.trigger, script)
                self._startup_handles.append(handle)

    def trigger(self, script: Script | str) -> asyncio.Task | None:
        """
        Start a run unless the script is busy.

        Returns:
            The run task, or None when the tick was skipped
        """
        if isinstance(script, str):
            script = self._scripts[script]
        if script.busy:
            logger.debug(f"[scheduler] {script.name} is still running, skipping tick")
            return None
        try:
            task = script.run({})
        except ScriptBusyError:
            return None
        self._runs.add(task)
        task.add_done_callback(self._on_run_done)
        return task

    def _on_run_done(self, task: asyncio.Task) -> None:
        self._runs.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"[scheduler] {task.get_name()} failed: {error}", exc_info=error)

    def _start_timer(self, script: Script) -> None:
        expression = self._expressions[script.name]
        self._timers[script.name] = asyncio.get_running_loop().create_task(
            self._cron_loop(script, expression),
            name=f"cron:{script.name}",
        )

    async def _cron_loop(self, script: Script, expression: str) -> None:
        cron = croniter(expression, datetime.now().astimezone())
        while True:
            next_run = cron.get_next(datetime)
            delay = (next_run - datetime.now().astimezone()).total_seconds()
            if delay < 0:
                # Missed tick, e.g. after the loop was blocked
                continue
            await asyncio.sleep(delay)
            self.trigger(script)

    async def stop(self, *, wait: bool = True) -> None:
        """
        Cancel timers and pending startup runs.

        In-flight runs are not cancelled; with wait=True they are
        awaited before returning.
        """
        for handle in self._startup_handles:
            handle.cancel()
        self._startup_handles.clear()

        timers = list(self._timers.values())
        for timer in timers:
            timer.cancel()
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)
        self._timers.clear()
        self._started = False

        if wait and self._runs:
            await asyncio.gather(*list(self._runs), return_exceptions=True)
        logger.info("[scheduler] Stopped")
