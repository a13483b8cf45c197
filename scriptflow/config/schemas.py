"""
Configuration Schemas.

Type-safe settings for a script host.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ScriptSettings(BaseModel):
    """
    Script host settings model.

    Attributes:
        service_name: Name used in startup logs
        environment: Deployment environment label
        debug: Enable debug logging
        scripts_dir: Directory holding *.yml/*.yaml/*.json script definitions
        startup_delay: Seconds after ready() before runOnStartup scripts fire
        http_timeout: Timeout in seconds for script HTTP requests
        log_level: Root log level
    """

    # Service identity
    service_name: str = "scriptflow"
    environment: str = "development"
    debug: bool = False

    # Scripts
    scripts_dir: str = Field(default="scripts", description="Script definition directory")
    startup_delay: float = Field(default=2.0, ge=0, description="Startup run delay in seconds")

    # HTTP
    http_timeout: float = Field(default=30.0, gt=0, description="Request step timeout in seconds")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")

    class Config:
        extra = "ignore"
