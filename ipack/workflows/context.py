"""Execution context shared by every workflow call."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from ipack.registry.store import RegistryStore
from ipack.settings import IpackSettings
from ipack.toolchain import NpmToolchain


@dataclass(frozen=True)
class IpackContext:
    """Where a workflow runs and what it runs against."""

    project_root: Path
    settings: IpackSettings
    store: RegistryStore
    toolchain: Any  # NpmToolchain or anything with the same methods

    @classmethod
    def create(
        cls,
        project_root: str | Path,
        settings: IpackSettings,
        toolchain: Any = None,
    ) -> "IpackContext":
        return cls(
            project_root=Path(project_root).resolve(),
            settings=settings,
            store=RegistryStore(settings),
            toolchain=toolchain if toolchain is not None else NpmToolchain(),
        )

    def for_directory(self, directory: str | Path) -> "IpackContext":
        """Same registry and toolchain, different project root."""
        return replace(self, project_root=Path(directory).resolve())
