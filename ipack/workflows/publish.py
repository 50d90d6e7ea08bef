"""Publish workflow: build, pack, version, and store one project under an alias.

Stages run strictly in order::

    IDLE -> VALIDATING -> BUILDING -> ARCHIVING -> RELOCATING -> REGISTERING -> DONE

Any failure moves the workflow to FAILED and skips the remaining stages.
The registry is only written in REGISTERING, so a failure before that
leaves the previous version intact and installable.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from ipack.errors import (
    ArchiveFailure,
    BuildFailure,
    DirectoryNotFound,
    IpackError,
    ManifestError,
    MissingAlias,
    RelocationFailure,
)
from ipack.manifest import MANIFEST_FILE, PackageManifest
from ipack.registry.models import AliasSpec
from ipack.utils.workdir import working_directory
from ipack.workflows.context import IpackContext

logger = logging.getLogger(__name__)


class PublishStage(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    BUILDING = "building"
    ARCHIVING = "archiving"
    RELOCATING = "relocating"
    REGISTERING = "registering"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PublishResult:
    """Outcome of one successful (or skipped) publish."""

    alias: str
    package_name: str = ""
    version: int = 0
    artifact_path: Optional[Path] = None
    skipped: bool = False
    warnings: list[str] = field(default_factory=list)


class PublishWorkflow:
    """Publishes the project at ``ctx.project_root`` under one alias."""

    def __init__(self, ctx: IpackContext, alias: str, subdirectory: Optional[str] = None):
        self.ctx = ctx
        self.alias_input = alias or ""
        self.subdirectory = subdirectory
        self.stage = PublishStage.IDLE
        self.failed_stage: Optional[PublishStage] = None

    def run(self) -> PublishResult:
        try:
            result = self._run()
        except IpackError:
            self.failed_stage = self.stage
            self.stage = PublishStage.FAILED
            logger.error("Publish of '%s' failed while %s", self.alias_input, self.failed_stage.value)
            raise
        self.stage = PublishStage.DONE
        return result

    def _enter(self, stage: PublishStage) -> None:
        self.stage = stage
        logger.debug("Publish '%s': %s", self.alias_input, stage.value)

    def _run(self) -> PublishResult:
        ctx = self.ctx

        # Validating
        self._enter(PublishStage.VALIDATING)
        if not self.alias_input:
            raise MissingAlias("Alias is required for 'pack'.")
        spec = AliasSpec.for_publish(self.alias_input, ctx.settings.ignore_marker)
        if spec.ignored:
            logger.info("Skipping ignored alias '%s'", spec.base)
            return PublishResult(alias=spec.base, skipped=True)
        alias = spec.base

        manifest = PackageManifest(ctx.project_root)
        if not manifest.exists():
            raise ManifestError(f"'{MANIFEST_FILE}' not found in {ctx.project_root}")
        package_name = manifest.read_name()
        if package_name is None:
            raise ManifestError(f"Could not read package name from {manifest.path}")
        logger.info("Package name: %s, alias: %s", package_name, alias)

        # Building
        self._enter(PublishStage.BUILDING)
        if ctx.toolchain.build(ctx.project_root) != 0:
            raise BuildFailure("'npm run build' failed.")
        logger.info("Build successful")

        # Archiving
        self._enter(PublishStage.ARCHIVING)
        packed_file = self._archive()

        # Relocating
        self._enter(PublishStage.RELOCATING)
        warnings: list[str] = []
        current = ctx.store.get_record(alias)
        current_version = current.version if current else 0
        new_version = current_version + 1
        logger.info("Versioning: '%s' -> %d", alias, new_version)

        if current_version > 0:
            warning = self._remove_previous(alias, current_version)
            if warning:
                warnings.append(warning)
        else:
            logger.info("First tracked version, nothing to remove")

        target = ctx.store.artifact_path(alias, new_version)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(packed_file), str(target))
        except OSError as e:
            raise RelocationFailure(
                f"Failed to move {packed_file} to {target}: {e}"
            ) from e

        # Registering
        self._enter(PublishStage.REGISTERING)
        ctx.store.upsert_record(alias, package_name, new_version)
        logger.info("Stored '%s' as '%s' version %d at %s", package_name, alias, new_version, target)

        return PublishResult(
            alias=alias,
            package_name=package_name,
            version=new_version,
            artifact_path=target,
            warnings=warnings,
        )

    def _archive(self) -> Path:
        """Run ``npm pack`` (optionally in a subdirectory) and return the produced file."""
        pack_dir = self.ctx.project_root
        if self.subdirectory:
            pack_dir = (self.ctx.project_root / self.subdirectory).resolve()
            if not pack_dir.is_dir():
                raise DirectoryNotFound(f"Provided directory '{self.subdirectory}' does not exist.")

        with working_directory(pack_dir):
            exit_code, reported = self.ctx.toolchain.pack(pack_dir)

        if exit_code != 0 or not reported:
            raise ArchiveFailure("'npm pack' failed or did not report a file.")
        packed_file = pack_dir / reported
        if not packed_file.is_file():
            raise ArchiveFailure(f"'npm pack' did not produce a file. Expected file at: {packed_file}")
        return packed_file

    def _remove_previous(self, alias: str, version: int) -> Optional[str]:
        """Best-effort removal of the superseded archive. Returns a warning on failure."""
        previous = self.ctx.store.artifact_path(alias, version)
        if not previous.exists():
            logger.info("No previous version file found for '%s' version %d", alias, version)
            return None
        try:
            previous.unlink()
        except OSError as e:
            message = f"Failed to remove previous version at {previous}: {e}"
            logger.warning(message)
            return message
        logger.info("Removed previous version: %s", previous)
        return None


def publish(ctx: IpackContext, alias: str, subdirectory: Optional[str] = None) -> PublishResult:
    """Publish the project at ``ctx.project_root`` under *alias*."""
    return PublishWorkflow(ctx, alias, subdirectory).run()
