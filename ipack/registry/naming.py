"""Artifact naming shared by publish and install."""

from __future__ import annotations

DEFAULT_ARCHIVE_EXTENSION = ".tgz"


def safe_name(alias: str) -> str:
    """Return *alias* with every path separator replaced by a hyphen."""
    return alias.replace("/", "-")


def artifact_file_name(
    alias: str, version: int, extension: str = DEFAULT_ARCHIVE_EXTENSION
) -> str:
    """File name of the stored archive for *alias* at *version*.

    >>> artifact_file_name("@acme/ui", 3)
    '@acme-ui-3.tgz'
    """
    return f"{safe_name(alias)}-{version}{extension}"
