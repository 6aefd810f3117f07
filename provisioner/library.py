"""
DefinitionLibrary - Load and compile Definitions from storage.

The library provides:
- Loading declarations from YAML or JSON files in a definitions directory
- Compiling them through the definition compiler
- Caching compiled definitions
- Listing available definition names
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from .compiler import compile_definition
from .errors import DefinitionError, DefinitionNotFoundError
from .schemas import Definition


logger = logging.getLogger(__name__)

EXTENSIONS = (".yaml", ".yml", ".json")


class DefinitionLibrary:
    """
    Library of definitions stored as files.

    Files may sit at the root of the definitions directory or anywhere below
    it. The file stem is the definition name and must agree with the
    declared name.

    Example directory structure:
        definitions/
            servers/
                launch_web.yaml
            dns/
                publish_record.json

    Example file:
        name: launch_web
        tasks:
          - ref: create_server
            params:
              image: ami-123
          - ref: create_dns_record
            params:
              value: "${public_ip}"
    """

    def __init__(self, definitions_dir: Path | str):
        self._definitions_dir = Path(definitions_dir)
        self._cache: dict[str, Definition] = {}

    @property
    def definitions_dir(self) -> Path:
        return self._definitions_dir

    def load(self, name: str) -> Definition:
        """
        Load and compile a Definition by name.

        YAML files are preferred over JSON when both exist.
        Results are cached for subsequent calls.

        Args:
            name: The definition name (filename without extension)

        Returns:
            The compiled Definition

        Raises:
            DefinitionNotFoundError: If no file exists for the name
            DefinitionError: If the file cannot be parsed or compiled
        """
        if name in self._cache:
            return self._cache[name]

        def_path = self._find_definition(name)
        if def_path is None:
            raise DefinitionNotFoundError(f"Definition not found: {name}")

        try:
            data = self._load_file(def_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise DefinitionError(f"Failed to load {def_path}: {e}") from e

        if not isinstance(data, dict):
            raise DefinitionError(f"Invalid definition in {def_path}: expected a mapping")

        declared = data.get("name", name)
        if declared != name:
            raise DefinitionError(
                f"Definition name mismatch: file is '{name}' but name is '{declared}'"
            )

        definition = compile_definition(
            name,
            data.get("tasks", []),
            description=data.get("description"),
        )
        logger.debug("Loaded definition %s from %s (%d tasks)", name, def_path, len(definition))

        self._cache[name] = definition
        return definition

    def _load_file(self, path: Path) -> Any:
        suffix = path.suffix.lower()

        with open(path) as f:
            if suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
            elif suffix == ".json":
                return json.load(f)
            else:
                raise ValueError(f"Unsupported file format: {suffix}")

    def list_definitions(self) -> list[str]:
        """
        List all available definition names.

        Returns:
            Sorted list of names found in the definitions directory
        """
        if not self._definitions_dir.exists():
            return []

        names = set()
        for ext in EXTENSIONS:
            for f in self._definitions_dir.glob(f"**/*{ext}"):
                names.add(f.stem)

        return sorted(names)

    def _find_definition(self, name: str) -> Optional[Path]:
        for ext in EXTENSIONS:
            filename = f"{name}{ext}"

            root_path = self._definitions_dir / filename
            if root_path.exists():
                return root_path

            matches = sorted(self._definitions_dir.glob(f"**/{filename}"))
            if matches:
                return matches[0]

        return None

    def clear_cache(self) -> None:
        """Clear the definition cache."""
        self._cache.clear()

    def preload_all(self) -> int:
        """
        Load every definition into the cache.

        Useful for startup validation.

        Returns:
            Number of definitions loaded

        Raises:
            DefinitionError: If any definition is invalid
        """
        count = 0
        for name in self.list_definitions():
            self.load(name)
            count += 1
        return count
