"""
Script Definition Schema.

The declarative form of a script as authored in YAML/JSON:

    name: Queue worker
    schedule: '* * * * * *'
    maxSteps: 5000
    delay: 0
    runOnStartup: false
    steps:
      - start
      - query: '{listQueueItem(limit: 1) { id }}'
      - jump: start

Keys are accepted in their authored camelCase form and by Python field
name (max_steps, run_on_startup).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from scriptflow.errors import ScriptDefinitionError

DEFAULT_MAX_STEPS = 1000


class ScriptDefinition(BaseModel):
    """
    Declarative script definition.

    Attributes:
        name: Script name, used in logs and errors
        steps: Labels (strings) and operations (objects)
        max_steps: Step budget per run
        delay: Milliseconds to wait before each step
        schedule: Cron expression with seconds field
        run_on_startup: Run once shortly after the host is ready
    """

    name: str = Field(..., min_length=1, description="Script name")
    steps: list[str | dict[str, Any]] = Field(..., description="Labels and operations")
    max_steps: int = Field(DEFAULT_MAX_STEPS, alias="maxSteps", gt=0)
    delay: int = Field(0, ge=0, description="Delay before each step in ms")
    schedule: str | None = Field(None, description="Cron expression, seconds first")
    run_on_startup: bool = Field(False, alias="runOnStartup")

    class Config:
        populate_by_name = True

    @classmethod
    def from_data(cls, data: "ScriptDefinition | dict[str, Any]") -> "ScriptDefinition":
        """
        Validate raw definition data.

        Raises:
            ScriptDefinitionError: If required keys are missing or invalid
        """
        if isinstance(data, cls):
            return data
        if not isinstance(data, dict):
            raise ScriptDefinitionError(
                f"Script definition must be an object, got {type(data).__name__}"
            )
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            name = data.get("name") if isinstance(data.get("name"), str) else None
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'definition'}: {err['msg']}"
                for err in e.errors()
            )
            raise ScriptDefinitionError(f"Invalid script definition: {problems}", script=name) from e

    def to_data(self) -> dict[str, Any]:
        """Serialize back to the authored (camelCase) form."""
        return self.model_dump(by_alias=True, exclude_none=True)
