"""Battery / UPS status sources.

The monitor never talks to UPS hardware directly: it relies on the battery
abstraction the operating system exposes (a UPS attached over USB shows up
as a system battery) and reads it through psutil.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Final, Protocol, runtime_checkable

import psutil

from upswatch.errors import QueryError
from upswatch.types.battery import BatterySnapshot, BatteryStatus

logger: Final = logging.getLogger(__name__)


@runtime_checkable
class BatterySource(Protocol):
    """Protocol for battery status providers."""

    def query(self) -> BatterySnapshot:
        """Take a fresh battery snapshot.

        Returns:
            The current snapshot (NO_BATTERY_PRESENT if no device exists)

        Raises:
            QueryError: If the platform query failed
        """
        ...


class PsutilBatterySource:
    """Battery source backed by ``psutil.sensors_battery()``."""

    def query(self) -> BatterySnapshot:
        sensors_battery = getattr(psutil, "sensors_battery", None)
        if sensors_battery is None:
            raise QueryError("Battery status is not supported on this platform")

        try:
            battery = sensors_battery()
        except Exception as exc:
            raise QueryError(f"Battery status query failed: {exc}", exc) from exc

        if battery is None:
            return BatterySnapshot(BatteryStatus.NO_BATTERY_PRESENT)

        return BatterySnapshot(
            status=self._status_from_plugged(battery.power_plugged),
            estimated_runtime_minutes=self._runtime_minutes(battery.secsleft),
            charge_percent=None if battery.percent is None else int(battery.percent),
        )

    @staticmethod
    def _status_from_plugged(power_plugged: bool | None) -> BatteryStatus:
        if power_plugged is None:
            return BatteryStatus.UNKNOWN
        return BatteryStatus.ON_POWER if power_plugged else BatteryStatus.DISCHARGING

    @staticmethod
    def _runtime_minutes(secsleft: Any) -> int | None:
        # secsleft can be psutil.POWER_TIME_UNLIMITED or psutil.POWER_TIME_UNKNOWN
        if secsleft in (psutil.POWER_TIME_UNLIMITED, psutil.POWER_TIME_UNKNOWN):
            return None
        if secsleft is None or secsleft < 0:
            return None
        return int(secsleft) // 60


class StaticBatterySource:
    """Battery source replaying a fixed script of snapshots.

    Each item is either a snapshot or an exception to raise for that poll.
    Once the script is exhausted the last item repeats.
    """

    def __init__(self, script: Iterable[BatterySnapshot | Exception]) -> None:
        self._script = list(script)
        if not self._script:
            raise ValueError("StaticBatterySource needs at least one snapshot")
        self.calls = 0

    def query(self) -> BatterySnapshot:
        item = self._script[min(self.calls, len(self._script) - 1)]
        self.calls += 1
        if isinstance(item, QueryError):
            raise item
        if isinstance(item, Exception):
            raise QueryError(str(item), item)
        return item
