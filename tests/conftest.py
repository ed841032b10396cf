from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from upswatch.settings import UserSettings


class FakeClock:
    """Manually advanced clock; ``sleep`` moves it forward instead of waiting."""

    def __init__(self, start: datetime) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 6, 1, 12, 0, 0))


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def settings(log_dir: Path) -> UserSettings:
    return UserSettings(
        shutdown_runtime_minutes=10,
        log_update_interval_minutes=1,
        log_on_battery_interval_seconds=30,
        sleep_interval_seconds=10,
        log_directory=log_dir,
    )


def read_log_lines(log_dir: Path) -> list[str]:
    """Return every line of every status log, oldest file first."""
    lines: list[str] = []
    for path in sorted(log_dir.glob("*_battery_status_log.txt")):
        lines.extend(path.read_text(encoding="utf-8").splitlines())
    return lines


@pytest.fixture
def log_lines(log_dir: Path):
    """Callable returning the current status-log lines."""
    return lambda: read_log_lines(log_dir)
