# src/upswatch/utils/time.py
"""Time and date handling utilities."""

from __future__ import annotations

from datetime import UTC, datetime

from upswatch.constants import LOG_DATE_FORMAT, LOG_TIMESTAMP_FORMAT


class TimeUtils:
    """Time-related utility functions.

    Centralized helpers for the clock the monitor runs on:
    - Current time retrieval with proper timezone handling
    - Status-log date and timestamp formatting
    """

    @staticmethod
    def now_localized() -> datetime:
        """Get current datetime with local timezone.

        Returns:
            Current datetime with local timezone
        """
        return datetime.now(UTC).astimezone()

    @staticmethod
    def log_date(dt: datetime) -> str:
        """Format the calendar date embedded in a status-log file name.

        Args:
            dt: Datetime to format

        Returns:
            Date string such as ``2024-06-01``
        """
        return dt.strftime(LOG_DATE_FORMAT)

    @staticmethod
    def log_timestamp(dt: datetime) -> str:
        """Format the ``[YYYY-MM-DD HH:MM:SS]`` prefix of a status-log line."""
        return f"[{dt.strftime(LOG_TIMESTAMP_FORMAT)}]"
