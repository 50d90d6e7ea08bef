"""Config declarations: the per-project ``.ipackrc`` file.

A declaration expresses publish intent (``alias`` plus optional
``directory``), consume intent (``packs``), or both::

    {"alias": "ui", "directory": "dist", "packs": ["core", "%lint-config"]}

The file is parsed with PyYAML, so plain JSON and YAML both work.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from ipack.errors import DeclarationError


@dataclass
class ConfigDeclaration:
    """Parsed contents of one ``.ipackrc`` file."""

    path: Path
    alias: Optional[str] = None
    directory: Optional[str] = None
    packs: Optional[list[str]] = None

    @property
    def project_dir(self) -> Path:
        return self.path.parent

    @property
    def has_publish_intent(self) -> bool:
        return self.alias is not None

    @property
    def has_consume_intent(self) -> bool:
        return self.packs is not None

    @classmethod
    def load(cls, path: str | Path) -> "ConfigDeclaration":
        """Read and validate a declaration file.

        Raises:
            DeclarationError: If the file cannot be read or parsed, or a field
                has the wrong type.
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise DeclarationError(f"Failed to read {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise DeclarationError(f"{path} must contain an object")

        alias = data.get("alias")
        directory = data.get("directory")
        packs = data.get("packs")

        if alias is not None and not isinstance(alias, str):
            raise DeclarationError(f"{path}: 'alias' must be a string")
        if directory is not None and not isinstance(directory, str):
            raise DeclarationError(f"{path}: 'directory' must be a string")
        if packs is not None:
            if not isinstance(packs, list) or not all(isinstance(p, str) for p in packs):
                raise DeclarationError(f"{path}: 'packs' must be a list of strings")

        return cls(path=path, alias=alias, directory=directory, packs=packs)


def find_declaration(directory: Path, file_name: str) -> Optional[Path]:
    """Return the declaration file in *directory*, or None."""
    candidate = directory / file_name
    return candidate if candidate.is_file() else None
