"""
scriptflow configuration.
"""

from .schemas import ScriptSettings
from .service import LOG_FORMAT, configure_logging, get_settings

__all__ = ["ScriptSettings", "get_settings", "configure_logging", "LOG_FORMAT"]
