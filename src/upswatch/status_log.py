"""Append-only, date-rotating status log with write throttling.

Every entry goes to ``<log_directory>/<YYYY-MM-DD>_battery_status_log.txt``
as a single ``[YYYY-MM-DD HH:MM:SS] message`` line and is echoed to the
console through :mod:`logging`. Persisting the file is best-effort: a
failed write is reported on the console and never interrupts monitoring.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Final

from upswatch.constants import (
    LOG_FILE_SUFFIX,
    ON_BATTERY_INTERVAL_UNIT,
    ON_POWER_INTERVAL_UNIT,
)
from upswatch.errors import LogWriteError
from upswatch.utils import TimeUtils, append_line, ensure_directory_exists

logger: Final = logging.getLogger(__name__)


class LogCategory(Enum):
    """Throttled status-line cadence, selected by the current power state."""

    ON_POWER = "on_power"
    ON_BATTERY = "on_battery"

    @property
    def interval_unit(self) -> timedelta:
        """Unit the configured throttle window is expressed in."""
        if self is LogCategory.ON_POWER:
            return ON_POWER_INTERVAL_UNIT
        return ON_BATTERY_INTERVAL_UNIT

    def window(self, amount: int) -> timedelta:
        """Convert a configured interval into a throttle window."""
        return self.interval_unit * amount


def log_file_path(log_directory: Path, now: datetime) -> Path:
    """Return the status-log file for the calendar day of ``now``."""
    return log_directory / f"{TimeUtils.log_date(now)}{LOG_FILE_SUFFIX}"


@dataclass
class LogState:
    """Mutable logging state owned by the monitor loop.

    By default the two throttle categories share one timestamp, so a
    change of power state resets neither window. With ``independent``
    set, each category keeps its own timestamp.
    """

    log_directory: Path
    independent: bool = False
    current_log_file_path: Path | None = None

    # None means "never logged"
    last_log_timestamp: datetime | None = None
    category_timestamps: dict[LogCategory, datetime] = field(default_factory=dict)

    def last_logged(self, category: LogCategory) -> datetime | None:
        if self.independent:
            return self.category_timestamps.get(category)
        return self.last_log_timestamp

    def mark_logged(self, category: LogCategory, now: datetime) -> None:
        self.category_timestamps[category] = now
        self.last_log_timestamp = now


class StatusLog:
    """Writes status lines to the dated log file."""

    def __init__(
        self,
        state: LogState,
        clock: Callable[[], datetime] = TimeUtils.now_localized,
    ) -> None:
        """Initialize the log sink.

        Args:
            state: Logging state; the sink mutates it, the monitor owns it
            clock: Source of timestamps for unthrottled writes
        """
        self.state = state
        self.clock = clock

    def prepare(self) -> bool:
        """Create the log directory if needed.

        Returns:
            True if the directory exists afterwards
        """
        try:
            ensure_directory_exists(self.state.log_directory)
            return True
        except OSError as exc:
            logger.error("Unable to create log directory %s: %s", self.state.log_directory, exc)
            return False

    def ensure_rotated(self, now: datetime) -> Path:
        """Point the sink at the file for ``now``'s calendar date.

        Must run before any write in a cycle so entries land in the file
        for the current day.

        Args:
            now: Current time

        Returns:
            The current log file path
        """
        path = log_file_path(self.state.log_directory, now)
        if path != self.state.current_log_file_path:
            if self.state.current_log_file_path is not None:
                logger.info("Rotating status log to %s", path)
            self.state.current_log_file_path = path
        return path

    def write_throttled(
        self,
        message: str,
        category: LogCategory,
        interval: timedelta,
        now: datetime,
    ) -> bool:
        """Write ``message`` only if the throttle window has elapsed.

        Args:
            message: Line to write
            category: Throttle category selected by the power state
            interval: Minimum time between throttled writes
            now: Current time

        Returns:
            True if the line was written
        """
        last = self.state.last_logged(category)
        if last is not None and now - last <= interval:
            logger.debug("Throttled (%s): %s", category.value, message)
            return False

        if not self._write(message, now, logging.INFO):
            return False
        self.state.mark_logged(category, now)
        return True

    def write_immediate(
        self,
        message: str,
        now: datetime | None = None,
        level: int = logging.INFO,
    ) -> bool:
        """Write ``message`` unconditionally, bypassing the throttle.

        Used for the startup banner, shutdown notices, error traces and
        the final exit line.

        Returns:
            True if the line was written
        """
        return self._write(message, now or self.clock(), level)

    def _write(self, message: str, now: datetime, level: int) -> bool:
        path = self.ensure_rotated(now)
        logger.log(level, "%s", message)
        try:
            append_line(path, f"{TimeUtils.log_timestamp(now)} {message}")
        except OSError as exc:
            logger.error("%s", LogWriteError(path, exc))
            return False
        return True
