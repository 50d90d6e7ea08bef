"""Runtime settings: registry location, file names, and alias markers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

REGISTRY_HOME_ENV = "IPACK_HOME"
DEFAULT_REGISTRY_DIRNAME = ".ipacks"


@dataclass
class IpackSettings:
    """Resolved settings for a single ipack invocation."""

    registry_dir: Path
    data_file_name: str = "data.json"
    archive_extension: str = ".tgz"
    declaration_file_name: str = ".ipackrc"
    ignore_marker: str = "!"
    dev_marker: str = "%"

    @property
    def data_file(self) -> Path:
        return self.registry_dir / self.data_file_name

    @classmethod
    def resolve(cls, registry_dir: Optional[str | Path] = None) -> "IpackSettings":
        """Build settings from an explicit directory, the environment, or the default.

        Precedence: *registry_dir* argument, then ``$IPACK_HOME``, then
        ``~/.ipacks``.
        """
        if registry_dir is None:
            registry_dir = os.environ.get(REGISTRY_HOME_ENV) or None
        if registry_dir is None:
            return cls(registry_dir=Path.home() / DEFAULT_REGISTRY_DIRNAME)
        return cls(registry_dir=Path(registry_dir).expanduser().absolute())
