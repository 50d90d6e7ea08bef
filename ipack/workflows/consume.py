"""Consume workflow: resolve an alias and install its latest artifact.

An alias prefixed with the dev marker (``%lint-config``) is installed as a
development dependency. Installing an artifact the project's package.json
already references is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ipack.errors import AliasNotFound, ArtifactMissing, InstallFailure, IpackError, MissingAlias
from ipack.manifest import DependencyKind, PackageManifest
from ipack.registry.models import AliasSpec, Record
from ipack.workflows.context import IpackContext

logger = logging.getLogger(__name__)

FILE_PROTOCOL = "file:"


@dataclass
class ConsumeResult:
    """Outcome of installing one alias."""

    alias: str
    package_name: str = ""
    version: int = 0
    artifact_path: Optional[Path] = None
    dev: bool = False
    already_installed: bool = False
    skipped: bool = False
    warnings: list[str] = field(default_factory=list)


@dataclass
class BatchInstallResult:
    """Outcome of installing several aliases in order."""

    results: list[ConsumeResult] = field(default_factory=list)
    failures: list[tuple[str, IpackError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def file_reference(artifact: Path) -> str:
    """Stable ``file:`` reference to *artifact*, relative to the home directory when possible."""
    try:
        return f"{FILE_PROTOCOL}~/{artifact.relative_to(Path.home()).as_posix()}"
    except ValueError:
        return f"{FILE_PROTOCOL}{artifact.as_posix()}"


def references_artifact(spec: str, artifact: Path, project_root: Path) -> bool:
    """True if a dependency spec from package.json points at *artifact*."""
    target = spec[len(FILE_PROTOCOL):] if spec.startswith(FILE_PROTOCOL) else spec
    if not target:
        return False
    if Path(target).name == artifact.name:
        return True
    if not spec.startswith(FILE_PROTOCOL):
        return False
    path = Path(target).expanduser()
    if not path.is_absolute():
        path = project_root / path
    return path.resolve() == artifact.resolve()


def consume(ctx: IpackContext, alias_input: str) -> ConsumeResult:
    """Install the latest artifact for *alias_input* into ``ctx.project_root``."""
    if not alias_input:
        raise MissingAlias("Alias is required for 'install'.")
    spec = AliasSpec.for_consume(
        alias_input, ctx.settings.ignore_marker, ctx.settings.dev_marker
    )
    if spec.ignored:
        logger.info("Skipping ignored alias '%s'", spec.base)
        return ConsumeResult(alias=spec.base, skipped=True)

    alias = spec.base
    record = _resolve(ctx, alias)
    artifact = ctx.store.artifact_path(alias, record.version)
    kind = DependencyKind.DEV if spec.dev_only else DependencyKind.REGULAR
    result = ConsumeResult(
        alias=alias,
        package_name=record.package_name,
        version=record.version,
        artifact_path=artifact,
        dev=spec.dev_only,
    )

    manifest = PackageManifest(ctx.project_root)
    if _already_referenced(manifest, artifact):
        logger.info("'%s' version %d is already installed", alias, record.version)
        result.already_installed = True
        return result

    if not artifact.is_file():
        raise ArtifactMissing(
            f"Package file for '{alias}' (version {record.version}) not found. "
            f"Expected path: {artifact}"
        )

    logger.info(
        "Installing '%s' version %d from %s", record.package_name, record.version, artifact
    )
    if ctx.toolchain.install(artifact, ctx.project_root, dev=spec.dev_only) != 0:
        raise InstallFailure(f"'npm install {artifact}' failed.")

    reference = file_reference(artifact)
    try:
        manifest.write_dependency_entry(kind, record.package_name, reference)
    except (OSError, ValueError) as e:
        message = f"Installed, but could not update {kind.value} in {manifest.path}: {e}"
        logger.warning(message)
        result.warnings.append(message)

    return result


def install_many(ctx: IpackContext, aliases: Iterable[str]) -> BatchInstallResult:
    """Install each alias in order. A failing alias does not stop the others."""
    batch = BatchInstallResult()
    for alias_input in aliases:
        try:
            batch.results.append(consume(ctx, alias_input))
        except IpackError as e:
            logger.error("Install of '%s' failed: %s", alias_input, e)
            batch.failures.append((alias_input, e))
    return batch


def _resolve(ctx: IpackContext, alias: str) -> Record:
    raw = ctx.store.load().get(alias)
    if raw is None:
        raise AliasNotFound(f"Alias '{alias}' not found in {ctx.store.data_path}.")
    try:
        return Record.from_dict(raw)
    except ValueError as e:
        raise AliasNotFound(
            f"Incomplete data found for alias '{alias}' in {ctx.store.data_path}: {e}"
        ) from e


def _already_referenced(manifest: PackageManifest, artifact: Path) -> bool:
    if not manifest.exists():
        return False
    try:
        sections = [manifest.read_dependency_section(kind) for kind in DependencyKind]
    except (OSError, ValueError) as e:
        logger.warning("Could not read %s: %s", manifest.path, e)
        return False
    return any(
        references_artifact(spec, artifact, manifest.project_root)
        for section in sections
        for spec in section.values()
    )
