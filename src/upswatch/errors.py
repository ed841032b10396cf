"""Exception classes for the UPS watchdog.

This module defines the error hierarchy used across configuration loading,
battery queries, status-log persistence and the shutdown fan-out.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional


class UpsWatchError(Exception):
    """Base class for all watchdog errors."""


class ConfigErrorKind(Enum):
    """Reason a configuration file was rejected."""

    MISSING_FILE = "MissingFile"
    PARSE_FAILURE = "ParseFailure"
    INVALID_FIELD = "InvalidField"


class ConfigError(UpsWatchError):
    """Configuration could not be loaded or failed validation.

    Always fatal: raised before the monitor loop starts.
    """

    def __init__(
        self,
        kind: ConfigErrorKind,
        message: str,
        field: Optional[str] = None,
        path: Optional[Path] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            kind: Which stage of loading failed
            message: Human-readable error message
            field: Offending key for INVALID_FIELD errors
            path: Config file the error refers to
        """
        detail = f"{kind.value}({field})" if field else kind.value
        super().__init__(f"[{detail}] {message}")
        self.kind = kind
        self.message = message
        self.field = field
        self.path = path

    @classmethod
    def missing_file(cls, path: Path) -> ConfigError:
        return cls(ConfigErrorKind.MISSING_FILE, f"Config file not found: {path}", path=path)

    @classmethod
    def parse_failure(cls, path: Path, reason: object) -> ConfigError:
        return cls(
            ConfigErrorKind.PARSE_FAILURE,
            f"Unable to parse config file {path}: {reason}",
            path=path,
        )

    @classmethod
    def invalid_field(cls, field: str, reason: str, path: Optional[Path] = None) -> ConfigError:
        return cls(ConfigErrorKind.INVALID_FIELD, reason, field=field, path=path)


class QueryError(UpsWatchError):
    """The platform battery query failed.

    Transient: the monitor logs it and tries again next cycle.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize with query failure details.

        Args:
            message: Description of the failure
            original_error: The original exception that was caught
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class LogWriteError(UpsWatchError):
    """A line could not be appended to the status log."""

    def __init__(self, path: Path, original_error: Optional[Exception] = None) -> None:
        super().__init__(f"Unable to write status log {path}: {original_error}")
        self.path = path
        self.original_error = original_error


class ShutdownCommandError(UpsWatchError):
    """A power-off request for one host failed."""

    def __init__(
        self,
        host: Optional[str],
        message: str,
        returncode: Optional[int] = None,
    ) -> None:
        """Initialize with the failing host.

        Args:
            host: Target host, or None for the local machine
            message: Description of the failure
            returncode: Exit status of the power-off command, if it ran
        """
        super().__init__(f"Power-off failed for {host or 'local machine'}: {message}")
        self.host = host
        self.message = message
        self.returncode = returncode
