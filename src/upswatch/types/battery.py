"""Battery snapshot types returned by a battery source."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BatteryStatus(Enum):
    """Power source reported by the platform battery abstraction."""

    ON_POWER = "OnPower"
    DISCHARGING = "Discharging"
    UNKNOWN = "Unknown"
    NO_BATTERY_PRESENT = "NoBatteryPresent"


@dataclass(frozen=True)
class BatterySnapshot:
    """Battery state captured by a single poll.

    Snapshots are never persisted; the monitor builds one per cycle and
    discards it after the decision step.
    """

    status: BatteryStatus
    estimated_runtime_minutes: int | None = None
    charge_percent: int | None = None

    @property
    def battery_present(self) -> bool:
        """Return True unless the platform reported no battery at all."""
        return self.status is not BatteryStatus.NO_BATTERY_PRESENT

    @property
    def on_power(self) -> bool:
        """Return True when the host is fed by external power."""
        return self.status is BatteryStatus.ON_POWER

    def runtime_below(self, threshold_minutes: int) -> bool:
        """Return True if a reported runtime is under ``threshold_minutes``.

        An unreported runtime never counts as below the threshold.
        """
        if self.estimated_runtime_minutes is None:
            return False
        return self.estimated_runtime_minutes < threshold_minutes

    def describe(self) -> str:
        """Return the status line written to the log for this snapshot."""
        parts = [f"Power status: {self.status.value}"]
        if self.charge_percent is not None:
            parts.append(f"Charge: {self.charge_percent}%")
        if self.estimated_runtime_minutes is not None:
            parts.append(f"Estimated runtime: {self.estimated_runtime_minutes} min")
        else:
            parts.append("Estimated runtime: unknown")
        return " | ".join(parts)
