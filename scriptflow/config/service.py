"""
Settings and logging setup.

Settings are read from SCRIPTFLOW_* environment variables:

    SCRIPTFLOW_SCRIPTS_DIR=/etc/scripts
    SCRIPTFLOW_STARTUP_DELAY=2
    SCRIPTFLOW_HTTP_TIMEOUT=30
    SCRIPTFLOW_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from .schemas import ScriptSettings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@lru_cache()
def get_settings() -> ScriptSettings:
    """
    Get script host settings from environment.

    Uses lru_cache for singleton pattern.
    """
    return ScriptSettings(
        # Service
        service_name=os.getenv("SCRIPTFLOW_SERVICE_NAME", "scriptflow"),
        environment=os.getenv("SCRIPTFLOW_ENVIRONMENT", "development"),
        debug=os.getenv("SCRIPTFLOW_DEBUG", "false").lower() == "true",
        # Scripts
        scripts_dir=os.getenv("SCRIPTFLOW_SCRIPTS_DIR", "scripts"),
        startup_delay=float(os.getenv("SCRIPTFLOW_STARTUP_DELAY", "2.0")),
        # HTTP
        http_timeout=float(os.getenv("SCRIPTFLOW_HTTP_TIMEOUT", "30.0")),
        # Logging
        log_level=os.getenv("SCRIPTFLOW_LOG_LEVEL", "INFO"),
    )


def configure_logging(settings: ScriptSettings | None = None) -> None:
    """Configure root logging; debug settings force DEBUG level."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
