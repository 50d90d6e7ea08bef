"""File-based registry store.

Keeps every alias record in a single JSON document (``data.json``) next to
the stored archives. The document is never edited in place: each update
reads the whole mapping, changes one key, and swaps a freshly written and
re-validated copy into place.

There is no cross-process lock. Two invocations updating the same registry
at the same time can lose an update (last writer wins).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from ipack.errors import DataCorruption, RegistryAccessError
from ipack.registry.models import Record
from ipack.registry.naming import artifact_file_name
from ipack.settings import IpackSettings

logger = logging.getLogger(__name__)

Registry = dict[str, Any]


class RegistryStore:
    """Alias index plus artifact directory for one registry root."""

    def __init__(self, settings: IpackSettings):
        self.settings = settings
        self.registry_dir = settings.registry_dir
        self.data_path = settings.data_file

    # ------------------------------------------------------------------
    # Whole-document access
    # ------------------------------------------------------------------

    def load(self) -> Registry:
        """Return the full alias mapping, creating an empty registry if absent.

        Raises:
            DataCorruption: If the stored document is not a UTF-8 JSON object.
            RegistryAccessError: If the registry cannot be created or read.
        """
        if not self.data_path.exists():
            self._initialize()
            return {}

        try:
            text = self.data_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise DataCorruption(f"{self.data_path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise RegistryAccessError(f"Could not read {self.data_path}: {e}") from e
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DataCorruption(f"{self.data_path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise DataCorruption(f"{self.data_path} must contain a JSON object")
        return data

    def save(self, registry: Registry) -> None:
        """Atomically replace the stored document with *registry*.

        The serialized form is written to a temporary file in the registry
        directory and read back before the swap. If it does not parse back to
        the same mapping the temporary file is discarded, the stored document
        is left untouched, and ``DataCorruption`` is raised.
        """
        content = self._serialize(registry)
        try:
            self.registry_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.registry_dir),
                prefix=f".{self.data_path.name}.",
                suffix=".tmp",
            )
        except OSError as e:
            raise RegistryAccessError(f"Could not write to {self.registry_dir}: {e}") from e
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())

            try:
                written = json.loads(tmp_path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise DataCorruption(f"Refusing to write invalid registry data: {e}") from e
            if written != registry:
                raise DataCorruption("Refusing to write registry data: round-trip mismatch")

            os.replace(tmp_path, self.data_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise RegistryAccessError(f"Could not save {self.data_path}: {e}") from e
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def get_record(self, alias: str) -> Record | None:
        """Look up *alias*. Returns None if absent or incomplete."""
        data = self.load().get(alias)
        if data is None:
            return None
        try:
            return Record.from_dict(data)
        except ValueError as e:
            logger.debug("Ignoring incomplete record for %r: %s", alias, e)
            return None

    def upsert_record(self, alias: str, package_name: str, version: int) -> Record:
        """Insert or replace the record for *alias* and persist the whole registry."""
        record = Record(package_name=package_name, version=version)
        registry = self.load()
        registry[alias] = record.to_dict()
        self.save(registry)
        return record

    def records(self) -> dict[str, Record]:
        """All well-formed records, keyed by alias."""
        result = {}
        for alias, data in self.load().items():
            try:
                result[alias] = Record.from_dict(data)
            except ValueError:
                continue
        return result

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def artifact_path(self, alias: str, version: int) -> Path:
        """Where the archive for *alias* at *version* lives (whether or not it exists)."""
        return self.registry_dir / artifact_file_name(
            alias, version, self.settings.archive_extension
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _initialize(self) -> None:
        try:
            self.registry_dir.mkdir(parents=True, exist_ok=True)
            self.data_path.write_text("{}\n", encoding="utf-8")
        except OSError as e:
            raise RegistryAccessError(f"Could not initialize {self.data_path}: {e}") from e
        logger.info("Initialized data file at %s", self.data_path)

    def _serialize(self, registry: Registry) -> str:
        return json.dumps(registry, indent=2) + "\n"
