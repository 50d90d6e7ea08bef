"""package.json access: project name and dependency sections.

Only the pieces ipack needs are read or written. Key order and all other
fields are preserved on rewrite.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Optional

MANIFEST_FILE = "package.json"


class DependencyKind(Enum):
    """Manifest sections a dependency can be recorded in."""

    REGULAR = "dependencies"
    DEV = "devDependencies"
    OPTIONAL = "optionalDependencies"
    PEER = "peerDependencies"


class PackageManifest:
    """Reader/writer for the ``package.json`` in a project root."""

    def __init__(self, project_root: str | Path):
        self.project_root = Path(project_root)
        self.path = self.project_root / MANIFEST_FILE

    def exists(self) -> bool:
        return self.path.is_file()

    def read_name(self) -> Optional[str]:
        """Return the ``name`` field, or None if missing, empty, or unreadable."""
        try:
            data = self._read()
        except (OSError, ValueError):
            return None
        name = data.get("name")
        if isinstance(name, str) and name.strip():
            return name
        return None

    def read_dependency_section(self, kind: DependencyKind) -> dict[str, str]:
        """Return one dependency section; empty if the manifest or section is absent."""
        if not self.exists():
            return {}
        section = self._read().get(kind.value)
        if not isinstance(section, dict):
            return {}
        return {k: v for k, v in section.items() if isinstance(v, str)}

    def write_dependency_entry(
        self, kind: DependencyKind, package_name: str, reference: str
    ) -> None:
        """Set ``<section>[package_name] = reference``, creating the section if needed.

        Raises:
            OSError: If the manifest cannot be read or written.
            ValueError: If the manifest is not a JSON object.
        """
        data = self._read()
        section = data.get(kind.value)
        if not isinstance(section, dict):
            section = {}
            data[kind.value] = section
        section[package_name] = reference
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    def _read(self) -> dict[str, Any]:
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} must contain a JSON object")
        return data
