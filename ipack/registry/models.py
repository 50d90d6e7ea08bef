"""Registry data models: records and parsed alias inputs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Record:
    """A registry entry for one alias."""

    package_name: str
    version: int

    def to_dict(self) -> dict[str, Any]:
        return {"packageName": self.package_name, "version": self.version}

    @classmethod
    def from_dict(cls, data: Any) -> "Record":
        """Parse a stored entry.

        Raises:
            ValueError: If the entry is not an object, or ``packageName`` is not
                a non-empty string, or ``version`` is not an integer >= 1.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Record must be an object, got {type(data).__name__}")
        name = data.get("packageName")
        version = data.get("version")
        if not isinstance(name, str) or not name:
            raise ValueError("Record has no packageName")
        # bool is an int subclass; reject it explicitly
        if isinstance(version, bool) or not isinstance(version, int) or version < 1:
            raise ValueError(f"Record has invalid version: {version!r}")
        return cls(package_name=name, version=version)


@dataclass(frozen=True)
class AliasSpec:
    """An alias as typed by the operator, with its markers decoded.

    Markers are inspected exactly once, here. Downstream code only reads
    ``base``, ``ignored`` and ``dev_only``.
    """

    base: str
    ignored: bool = False
    dev_only: bool = False

    @classmethod
    def for_publish(cls, raw: str, ignore_marker: str = "!") -> "AliasSpec":
        """Parse an alias passed to ``pack``.

        Only the ignore marker is meaningful when publishing; any other
        leading character is part of the alias.
        """
        if raw.startswith(ignore_marker):
            return cls(base=raw[len(ignore_marker):], ignored=True)
        return cls(base=raw)

    @classmethod
    def for_consume(
        cls, raw: str, ignore_marker: str = "!", dev_marker: str = "%"
    ) -> "AliasSpec":
        """Parse an alias passed to ``install``."""
        if raw.startswith(ignore_marker):
            return cls(base=raw[len(ignore_marker):], ignored=True)
        if raw.startswith(dev_marker):
            return cls(base=raw[len(dev_marker):], dev_only=True)
        return cls(base=raw)
