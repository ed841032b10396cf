"""Polling loop that watches the battery and decides when to shut down."""

from __future__ import annotations

import logging
import time
import traceback
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Final, Optional

from upswatch.battery import BatterySource, PsutilBatterySource
from upswatch.errors import QueryError
from upswatch.power import ShutdownTrigger
from upswatch.settings import UserSettings
from upswatch.status_log import LogCategory, LogState, StatusLog
from upswatch.types.battery import BatterySnapshot
from upswatch.utils import TimeUtils

logger: Final = logging.getLogger(__name__)


class MonitorOutcome(Enum):
    """How a monitor run ended."""

    SHUTDOWN = "shutdown"
    INTERRUPTED = "interrupted"
    FAULT = "fault"
    COMPLETED = "completed"


class MonitorLoop:
    """Polls the battery source and reacts to what it reports.

    Each cycle:
    - rotates the status log to today's file
    - queries the battery; a failed query is logged and the cycle ends
    - logs "no battery" on every cycle when no device is present
    - logs the status line, throttled per power state
    - on battery, triggers the shutdown once the runtime drops below
      the configured threshold

    The loop owns all mutable state (the :class:`LogState`). Clock and
    sleep are injectable so cycles can be driven without waiting.
    """

    def __init__(
        self,
        config: UserSettings,
        battery_source: Optional[BatterySource] = None,
        shutdown_trigger: Optional[ShutdownTrigger] = None,
        status_log: Optional[StatusLog] = None,
        clock: Callable[[], datetime] = TimeUtils.now_localized,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.clock = clock
        self.sleep = sleep
        self.battery_source = battery_source or PsutilBatterySource()
        self.shutdown_trigger = shutdown_trigger or ShutdownTrigger(config)
        self.status_log = status_log or StatusLog(
            LogState(config.log_directory, independent=config.independent_throttle),
            clock,
        )
        self.shutdown_triggered = False

    @property
    def log_state(self) -> LogState:
        return self.status_log.state

    def run(self, max_cycles: Optional[int] = None) -> MonitorOutcome:
        """Run the monitor until shutdown, interrupt or fault.

        Exactly one "monitor exiting" line is written on every exit path.

        Args:
            max_cycles: Stop after this many cycles (unbounded when None)

        Returns:
            How the run ended
        """
        outcome = MonitorOutcome.COMPLETED
        try:
            self.status_log.prepare()
            self.status_log.ensure_rotated(self.clock())
            self.status_log.write_immediate(self._banner())

            cycles = 0
            while max_cycles is None or cycles < max_cycles:
                cycles += 1
                if self.run_cycle():
                    outcome = MonitorOutcome.SHUTDOWN
                    break
                if max_cycles is not None and cycles >= max_cycles:
                    break
                self.sleep(self.config.sleep_interval_seconds)
        except KeyboardInterrupt:
            outcome = MonitorOutcome.INTERRUPTED
            self.status_log.write_immediate("Monitor interrupted by operator", level=logging.WARNING)
        except Exception as exc:
            outcome = MonitorOutcome.FAULT
            self._record_fault(exc)
        finally:
            self.status_log.ensure_rotated(self.clock())
            self.status_log.write_immediate(f"Monitor exiting ({outcome.value})")
        return outcome

    def run_cycle(self) -> bool:
        """Poll once and act on the result.

        Returns:
            True if the shutdown was triggered this cycle
        """
        now = self.clock()
        self.status_log.ensure_rotated(now)

        try:
            snapshot = self.battery_source.query()
        except QueryError as exc:
            self.status_log.write_immediate(
                f"Battery status query failed: {exc.message}", now, logging.WARNING
            )
            return False

        if not snapshot.battery_present:
            self.status_log.write_immediate("No battery detected", now)
            return False

        message = snapshot.describe()
        if snapshot.on_power:
            category = LogCategory.ON_POWER
            interval = category.window(self.config.log_update_interval_minutes)
            self.status_log.write_throttled(message, category, interval, now)
            return False

        category = LogCategory.ON_BATTERY
        interval = category.window(self.config.log_on_battery_interval_seconds)
        self.status_log.write_throttled(message, category, interval, now)

        if snapshot.runtime_below(self.config.shutdown_runtime_minutes):
            self.status_log.write_immediate(self._shutdown_notice(snapshot), now, logging.CRITICAL)
            self.trigger_shutdown()
            return True
        return False

    def trigger_shutdown(self) -> None:
        """Run the shutdown trigger; later calls in the same run do nothing."""
        if self.shutdown_triggered:
            return
        self.shutdown_triggered = True

        report = self.shutdown_trigger.execute()
        if report.all_succeeded:
            logger.info("Shutdown requested for all %d target(s)", len(report.succeeded))
        else:
            logger.error(
                "Shutdown failed for %d of %d target(s)",
                len(report.failed),
                len(report.failed) + len(report.succeeded),
            )

    def _targets_label(self) -> str:
        if self.config.targets_local_machine:
            return "local machine"
        return ", ".join(self.config.computer_names)

    def _banner(self) -> str:
        return (
            f"Monitor started: shutdown below {self.config.shutdown_runtime_minutes} min runtime, "
            f"polling every {self.config.sleep_interval_seconds}s, "
            f"targets: {self._targets_label()}"
        )

    def _shutdown_notice(self, snapshot: BatterySnapshot) -> str:
        return (
            f"Estimated runtime {snapshot.estimated_runtime_minutes} min is below "
            f"{self.config.shutdown_runtime_minutes} min, shutting down {self._targets_label()}"
        )

    def _record_fault(self, exc: Exception) -> None:
        logger.exception("Unhandled fault in monitor loop")
        trace = "".join(traceback.format_exception(exc)).rstrip()
        self.status_log.ensure_rotated(self.clock())
        self.status_log.write_immediate(
            f"Unhandled fault {type(exc).__name__}: {exc}\n{trace}", level=logging.DEBUG
        )
