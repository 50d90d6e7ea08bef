"""npm toolchain: build, pack, and install as blocking subprocess calls.

Every step runs to completion with no timeout. Output from npm is passed
through to the terminal, except for ``npm pack`` whose stdout is captured to
learn the produced file name.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

# Exit status reported when the executable itself cannot be started
COMMAND_NOT_FOUND = 127


class NpmToolchain:
    """Runs the external npm steps ipack delegates to."""

    def __init__(self, executable: str = "npm"):
        self.executable = executable

    def build(self, directory: Path) -> int:
        """``npm run build`` in *directory*."""
        return self._run(["run", "build"], directory)

    def pack(self, directory: Path) -> tuple[int, Optional[str]]:
        """``npm pack`` in *directory*.

        Returns the exit status and the produced file name as reported on the
        last non-empty line of stdout (None if nothing was reported).
        """
        cmd = [self.executable, "pack"]
        logger.info("Running '%s' in %s", " ".join(cmd), directory)
        try:
            proc = subprocess.run(cmd, cwd=directory, stdout=subprocess.PIPE, text=True)
        except OSError as e:
            logger.error("Could not run %s: %s", self.executable, e)
            return COMMAND_NOT_FOUND, None

        lines = [line.strip() for line in proc.stdout.splitlines() if line.strip()]
        return proc.returncode, (lines[-1] if lines else None)

    def install(self, artifact: Path, directory: Path, dev: bool = False) -> int:
        """``npm install <artifact>`` in *directory*, as a dev dependency if *dev*."""
        args = ["install", str(artifact)]
        if dev:
            args.append("--save-dev")
        return self._run(args, directory)

    def install_dependencies(self, directory: Path) -> int:
        """Plain ``npm install`` in *directory*."""
        return self._run(["install"], directory)

    def _run(self, args: Sequence[str], directory: Path) -> int:
        cmd = [self.executable, *args]
        logger.info("Running '%s' in %s", " ".join(cmd), directory)
        try:
            return subprocess.run(cmd, cwd=directory).returncode
        except OSError as e:
            logger.error("Could not run %s: %s", self.executable, e)
            return COMMAND_NOT_FOUND
