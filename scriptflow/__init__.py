"""
scriptflow - Declarative JSON/YAML scripting runtime.

scriptflow runs small automation scripts described as data:

- **Step Interpreter**: labels, conditional jumps and a step budget
- **Transformations**: chainable, side-effect free value reshaping
- **Host Capabilities**: queries and HTTP requests injected by the host
- **Scheduling**: seconds-granularity cron and run-on-startup

Quick Start:
    >>> from scriptflow import ScriptFactory
    >>>
    >>> factory = ScriptFactory()
    >>> script = factory.create({
    ...     "name": "Greeting",
    ...     "steps": [{"object": {"greeting": {"static": "hello"}}}],
    ... })
    >>> await script.run({})
    {'greeting': 'hello'}
"""

__version__ = "0.1.0"

from scriptflow.errors import ScriptError
from scriptflow.runtime import ScriptRuntime, ScriptScheduler, create_runtime
from scriptflow.script import Script, ScriptDefinition, ScriptFactory, ScriptOptions
from scriptflow.transform import Transformation

__all__ = [
    # Version info
    "__version__",
    # Engine
    "Script",
    "ScriptDefinition",
    "ScriptFactory",
    "ScriptOptions",
    "ScriptError",
    # Evaluator
    "Transformation",
    # Hosting
    "ScriptRuntime",
    "ScriptScheduler",
    "create_runtime",
]
