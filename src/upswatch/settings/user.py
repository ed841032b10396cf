"""User-configurable settings loaded from config.yaml."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, ClassVar

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from upswatch.constants import DEFAULT_LOG_DIRECTORY, DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
from upswatch.errors import ConfigError

# Load environment variables from .env file(s)
load_dotenv()


def _interpolate_env(content: str) -> str:
    return re.sub(r"\$\{(\w+)\}", lambda m: os.getenv(m.group(1), ""), content)


class UserSettings(BaseModel):
    """Watchdog settings read once at startup.

    Keys in the file use the PascalCase names of the original deployment
    (``ShutDownRunTimeMinutes``, ``ComputerNames``...). The model is frozen:
    nothing may change it once the monitor is running.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    # Default search paths for configuration
    DEFAULT_CONFIG_PATHS: ClassVar[list[Path]] = [
        Path("config.yaml"),
        Path("~/.config/upswatch/config.yaml").expanduser(),
        Path("/etc/upswatch/config.yaml"),
    ]

    # Shutdown policy
    shutdown_runtime_minutes: int = Field(
        ...,
        ge=1,
        strict=True,
        alias="ShutDownRunTimeMinutes",
        description="Shut down once the estimated runtime drops below this many minutes",
    )

    # Logging cadence
    log_update_interval_minutes: int = Field(
        ...,
        ge=1,
        strict=True,
        alias="LogUpdateIntervalMinutes",
        description="Minimum minutes between status lines while on external power",
    )
    log_on_battery_interval_seconds: int = Field(
        ...,
        ge=1,
        strict=True,
        alias="LogOnBatteryIntervalSeconds",
        description="Minimum seconds between status lines while on battery",
    )

    # Polling
    sleep_interval_seconds: int = Field(
        ..., ge=1, strict=True, alias="SleepIntervalSeconds", description="Seconds between polls"
    )

    # Shutdown targets
    computer_names: tuple[str, ...] = Field(
        (),
        alias="ComputerNames",
        description="Hosts to power off, in order; empty means the local machine",
    )
    shutdown_timeout_seconds: int = Field(
        DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
        ge=1,
        alias="ShutdownTimeoutSeconds",
        description="Upper bound on each power-off request",
    )

    # Status log
    log_directory: Path = Field(
        Path(DEFAULT_LOG_DIRECTORY),
        alias="LogDirectory",
        description="Directory holding the dated status log files",
    )
    independent_throttle: bool = Field(
        False,
        alias="IndependentThrottle",
        description="Keep a separate throttle timestamp per power state",
    )

    # ---- validators ----
    @field_validator("computer_names", mode="before")
    @classmethod
    def validate_computer_names(cls, v: Any) -> Any:
        """Accept a single host name or null as well as a list."""
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return v

    @field_validator("computer_names")
    @classmethod
    def reject_blank_names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        names = tuple(name.strip() for name in v)
        if any(not name for name in names):
            raise ValueError("ComputerNames cannot contain blank host names")
        return names

    # ---- convenience methods ----
    @property
    def targets_local_machine(self) -> bool:
        """Whether a shutdown powers off this machine rather than remote hosts."""
        return not self.computer_names

    @classmethod
    def resolve_path(cls, path: Path | None = None) -> Path:
        """Find the config file to load.

        Args:
            path: Explicit path (returned unchanged when given)

        Returns:
            Path to the config file

        Raises:
            ConfigError: If no config file can be located
        """
        if path is not None:
            return path

        # Check environment variable first
        env_path = os.environ.get("UPSWATCH_CONFIG")
        if env_path:
            return Path(env_path)

        for default_path in cls.DEFAULT_CONFIG_PATHS:
            if default_path.exists():
                return default_path

        raise ConfigError.missing_file(cls.DEFAULT_CONFIG_PATHS[0])

    @classmethod
    def load(cls, path: Path | None = None) -> UserSettings:
        """Load configuration from a YAML (or JSON) file.

        Args:
            path: Path to config file (optional, searches default locations if None)

        Returns:
            Validated UserSettings object

        Raises:
            ConfigError: MISSING_FILE, PARSE_FAILURE or INVALID_FIELD
        """
        path = cls.resolve_path(path)
        if not path.is_file():
            raise ConfigError.missing_file(path)

        try:
            raw = _interpolate_env(path.read_text(encoding="utf-8"))
            data = yaml.safe_load(raw)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            raise ConfigError.parse_failure(path, exc) from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError.parse_failure(path, "top level must be a mapping")

        try:
            settings = cls.model_validate(data)
        except ValidationError as err:
            first = err.errors()[0]
            field = str(first["loc"][0]) if first["loc"] else "<root>"
            raise ConfigError.invalid_field(field, first["msg"], path=path) from err

        # Relative log directories live next to the config file
        if not settings.log_directory.is_absolute():
            settings = settings.model_copy(
                update={"log_directory": path.parent / settings.log_directory}
            )
        return settings
