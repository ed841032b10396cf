"""File utility functions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

logger: Final = logging.getLogger(__name__)


def ensure_directory_exists(directory: Path) -> None:
    """Create directory if it doesn't exist.

    Args:
        directory: Path to create
    """
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        logger.debug("Created directory: %s", directory)


def append_line(file_path: Path, line: str) -> None:
    """Append one line to a text file, closing it before returning.

    Args:
        file_path: File to append to (created if missing)
        line: Text to write, without trailing newline
    """
    with file_path.open("a", encoding="utf-8") as f:
        f.write(line + "\n")
