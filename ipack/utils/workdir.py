"""Scoped working-directory changes."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


@contextmanager
def working_directory(path: str | Path) -> Iterator[Path]:
    """Change into *path* for the duration of the block.

    The previous working directory is restored on every exit path,
    including exceptions raised inside the block::

        with working_directory(pack_dir):
            toolchain.pack(pack_dir)
    """
    previous = Path.cwd()
    target = Path(path)
    logger.debug("Entering %s", target)
    os.chdir(target)
    try:
        yield target
    finally:
        os.chdir(previous)
        logger.debug("Returned to %s", previous)
