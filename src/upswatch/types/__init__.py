"""Shared data types."""

from upswatch.types.battery import BatterySnapshot, BatteryStatus

__all__ = ["BatterySnapshot", "BatteryStatus"]
