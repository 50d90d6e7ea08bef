"""Discovery workflow: publish every declared project under a directory tree.

Scans for ``.ipackrc`` files, lists the publish-capable ones, asks the
operator for confirmation, then publishes each project in turn. One
failing project does not stop the rest; there is no rollback across
projects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ipack.declaration import ConfigDeclaration
from ipack.errors import DeclarationError, IpackError
from ipack.utils.file_scanner import scan_declaration_files
from ipack.utils.workdir import working_directory
from ipack.workflows.context import IpackContext
from ipack.workflows.publish import PublishResult, publish

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryCandidate:
    """A directory whose declaration asks for it to be published."""

    alias: str
    directory: Path
    subdirectory: Optional[str] = None


class DiscoveryStatus(Enum):
    NO_DECLARATIONS = "no_declarations"
    NO_CANDIDATES = "no_candidates"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass
class DiscoveryReport:
    status: DiscoveryStatus
    declarations_found: int = 0
    candidates: list[DiscoveryCandidate] = field(default_factory=list)
    published: list[PublishResult] = field(default_factory=list)
    failures: list[tuple[DiscoveryCandidate, IpackError]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


ConfirmCallback = Callable[[list[DiscoveryCandidate]], bool]


def discover(root: Path, declaration_file_name: str) -> tuple[int, list[DiscoveryCandidate], list[str]]:
    """Scan *root* for declarations.

    Returns the number of declaration files found, the publish-capable
    candidates in path order, and warnings for unreadable declarations.
    """
    paths = scan_declaration_files(root, declaration_file_name)
    candidates = []
    warnings = []
    for path in paths:
        try:
            declaration = ConfigDeclaration.load(path)
        except DeclarationError as e:
            logger.warning(str(e))
            warnings.append(str(e))
            continue
        if declaration.has_publish_intent:
            candidates.append(
                DiscoveryCandidate(
                    alias=declaration.alias,
                    directory=declaration.project_dir.resolve(),
                    subdirectory=declaration.directory,
                )
            )
    return len(paths), candidates, warnings


def publish_all(
    ctx: IpackContext,
    root: Optional[Path] = None,
    install_first: bool = False,
    confirm: Optional[ConfirmCallback] = None,
) -> DiscoveryReport:
    """Discover declared projects under *root* and publish each after confirmation.

    Args:
        ctx: Context whose registry and toolchain are used for every project.
        root: Directory to scan. Defaults to ``ctx.project_root``.
        install_first: Run ``npm install`` in each project before publishing.
            A failing install is reported as a warning only.
        confirm: Called with the candidate list before anything is changed.
            Returning False cancels the run. None means confirmed.
    """
    root = Path(root) if root is not None else ctx.project_root
    found, candidates, warnings = discover(root, ctx.settings.declaration_file_name)
    report = DiscoveryReport(
        status=DiscoveryStatus.COMPLETED,
        declarations_found=found,
        candidates=candidates,
        warnings=warnings,
    )

    if not found:
        logger.info("No %s files found under %s", ctx.settings.declaration_file_name, root)
        report.status = DiscoveryStatus.NO_DECLARATIONS
        return report
    if not candidates:
        logger.info("No declarations under %s define an alias", root)
        report.status = DiscoveryStatus.NO_CANDIDATES
        return report

    if confirm is not None and not confirm(candidates):
        logger.info("Cancelled by operator")
        report.status = DiscoveryStatus.CANCELLED
        return report

    for candidate in candidates:
        project_ctx = ctx.for_directory(candidate.directory)
        try:
            with working_directory(candidate.directory):
                if install_first:
                    _install_dependencies(project_ctx, report)
                report.published.append(
                    publish(project_ctx, candidate.alias, candidate.subdirectory)
                )
        except IpackError as e:
            logger.error("Failed to publish '%s' in %s: %s", candidate.alias, candidate.directory, e)
            report.failures.append((candidate, e))

    return report


def _install_dependencies(ctx: IpackContext, report: DiscoveryReport) -> None:
    if ctx.toolchain.install_dependencies(ctx.project_root) != 0:
        message = f"'npm install' failed in {ctx.project_root}; publishing anyway"
        logger.warning(message)
        report.warnings.append(message)
