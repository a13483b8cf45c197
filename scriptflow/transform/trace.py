"""
Debug trace nodes.

When a script runs in debug mode every processed step, object property
and sub-script records a TraceNode. The tree is returned to the caller
as plain dicts so it can be serialized for troubleshooting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TraceNode:
    """One evaluated definition with its output and nested evaluations."""

    definition: Any
    output: Any = None
    info: str | None = None
    children: list["TraceNode"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "definition": self.definition,
            "output": self.output,
            "children": [child.to_dict() for child in self.children],
        }
        if self.info is not None:
            data["info"] = self.info
        return data
