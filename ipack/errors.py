"""Error taxonomy for registry operations and workflows.

Every fatal condition raised by ipack derives from ``IpackError`` so that
batch callers (multi-alias install, discovery) can catch one type per entry.
"""

from __future__ import annotations


class IpackError(Exception):
    """Base class for all fatal ipack errors."""


# --- Preconditions ---


class PreconditionError(IpackError):
    """A required input is missing; nothing was mutated."""


class MissingAlias(PreconditionError):
    pass


class ManifestError(PreconditionError):
    """package.json is missing or does not declare a usable name."""


class DirectoryNotFound(PreconditionError):
    pass


class DeclarationError(PreconditionError):
    """A .ipackrc declaration file cannot be read or is malformed."""


# --- External steps ---


class ExternalStepFailure(IpackError):
    """An npm step exited non-zero or did not produce what it promised."""


class BuildFailure(ExternalStepFailure):
    pass


class ArchiveFailure(ExternalStepFailure):
    pass


class InstallFailure(ExternalStepFailure):
    pass


# --- Filesystem / storage ---


class FilesystemError(IpackError):
    pass


class RelocationFailure(FilesystemError):
    """The freshly packed archive could not be moved into the registry."""


class RegistryAccessError(FilesystemError):
    """The registry directory or its data file could not be read or written."""


class DataCorruption(IpackError):
    """The registry document failed to parse or validate."""


# --- Resolution (consume side) ---


class ResolutionError(IpackError):
    pass


class AliasNotFound(ResolutionError):
    pass


class ArtifactMissing(ResolutionError):
    pass
