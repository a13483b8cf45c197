"""
scriptflow runtime: loading, scheduling and hosting scripts.
"""

from .host import ScriptLoader, ScriptRuntime, create_runtime
from .loaders import FileScriptLoader, MemoryScriptLoader
from .scheduler import STARTUP_DELAY_SECONDS, ScriptScheduler, to_croniter_expression

__all__ = [
    "ScriptLoader",
    "ScriptRuntime",
    "create_runtime",
    "FileScriptLoader",
    "MemoryScriptLoader",
    "ScriptScheduler",
    "STARTUP_DELAY_SECONDS",
    "to_croniter_expression",
]
