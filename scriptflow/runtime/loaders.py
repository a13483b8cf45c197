"""
Script Definition Loaders.

Where script definitions come from:
    - FileScriptLoader: a directory of YAML/JSON files, one script per file
    - MemoryScriptLoader: in-memory definitions, for tests and embedding

Both return raw definition mappings; validation happens when the
runtime compiles them.

Usage:
    loader = FileScriptLoader("scripts/")
    definitions = await loader.list_definitions()
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

SCRIPT_SUFFIXES = (".yml", ".yaml", ".json")


class FileScriptLoader:
    """
    Loads script definitions from a directory.

    Layout:
        scripts/
        ├── QueueWorker.yml
        ├── Cleanup.yaml
        └── Import.json

    A file without a name key gets its file stem as name. Unreadable
    files are logged and skipped.
    """

    def __init__(self, base_dir: str | Path):
        """
        Args:
            base_dir: Directory containing script files
        """
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    async def list_definitions(self) -> list[dict[str, Any]]:
        """Load every script file in the directory, sorted by file name."""
        if not self._base_dir.exists():
            logger.warning(f"[file_loader] Scripts directory not found: {self._base_dir}")
            return []

        definitions = []
        for path in sorted(self._base_dir.iterdir()):
            if not path.is_file() or path.suffix.lower() not in SCRIPT_SUFFIXES:
                continue
            data = self._load(path)
            if data is None:
                continue
            definitions.append(data)

        logger.info(f"[file_loader] Loaded {len(definitions)} script(s) from {self._base_dir}")
        return definitions

    async def get_definition(self, name: str) -> dict[str, Any] | None:
        """Find a script by name."""
        for definition in await self.list_definitions():
            if definition.get("name") == name:
                return definition
        return None

    def _load(self, path: Path) -> dict[str, Any] | None:
        """Load one YAML/JSON file."""
        try:
            with path.open(encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"[file_loader] Failed to load {path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"[file_loader] Script file {path} does not contain an object")
            return None
        data.setdefault("name", path.stem)
        return data


class MemoryScriptLoader:
    """
    In-memory script loader for testing.

    Usage:
        loader = MemoryScriptLoader()
        await loader.add({"name": "Noop", "steps": []})
    """

    def __init__(self, definitions: list[dict[str, Any]] | None = None):
        self._definitions: dict[str, dict[str, Any]] = {}
        for definition in definitions or []:
            self._definitions[definition["name"]] = definition

    async def add(self, definition: dict[str, Any]) -> None:
        """Add or replace a definition by name."""
        self._definitions[definition["name"]] = definition

    async def list_definitions(self) -> list[dict[str, Any]]:
        return list(self._definitions.values())

    async def get_definition(self, name: str) -> dict[str, Any] | None:
        return self._definitions.get(name)

    def clear(self) -> None:
        """Clear all definitions."""
        self._definitions.clear()
