"""Power-failure watchdog for UPS-backed machines."""

__version__ = "1.0.0"
