"""
Run a script host process.

    SCRIPTFLOW_SCRIPTS_DIR=scripts python -m scriptflow

Loads every script in the scripts directory, runs schedules and
startup scripts until interrupted. Query steps are unavailable in this
mode; embed ScriptRuntime in an application to provide them.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from scriptflow.config import configure_logging, get_settings
from scriptflow.runtime import create_runtime

logger = logging.getLogger(__name__)


async def serve() -> None:
    settings = get_settings()
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops
            pass

    logger.info(f"Starting {settings.service_name} ({settings.environment})...")
    async with create_runtime(settings) as runtime:
        logger.info(f"Serving scripts: {', '.join(runtime.list_names()) or 'none'}")
        await stop.wait()
    logger.info(f"{settings.service_name} stopped")


def main() -> None:
    configure_logging()
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
