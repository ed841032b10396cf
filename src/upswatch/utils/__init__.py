"""Common utility functions and helpers for the upswatch package."""

from upswatch.utils.file import append_line, ensure_directory_exists
from upswatch.utils.time import TimeUtils

__all__ = [
    "TimeUtils",
    "append_line",
    "ensure_directory_exists",
]
