"""Power-off helpers and the one-shot shutdown trigger."""

from __future__ import annotations

import logging
import platform
import subprocess
from dataclasses import dataclass, field
from typing import Final, Optional, Protocol, runtime_checkable

from upswatch.constants import DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
from upswatch.errors import ShutdownCommandError
from upswatch.settings import UserSettings

logger: Final = logging.getLogger(__name__)


@runtime_checkable
class PowerOffProvider(Protocol):
    """Protocol for forced power-off mechanisms."""

    def power_off(self, host: Optional[str] = None) -> None:
        """Request an immediate, forced power-off.

        Args:
            host: Remote host name, or None for the local machine

        Raises:
            ShutdownCommandError: If the request could not be issued
        """
        ...


class SystemPowerOff:
    """Power-off through the operating system's shutdown command.

    On Windows ``shutdown /s /f /t 0`` is used, with ``/m \\\\host`` for
    remote targets. Elsewhere the local machine runs
    ``sudo shutdown -h now`` and remote hosts get the same command over
    ssh. Remote targets must already trust the caller.
    """

    def __init__(
        self,
        timeout_seconds: int = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
        windows: Optional[bool] = None,
    ) -> None:
        """Initialize the provider.

        Args:
            timeout_seconds: Upper bound on each shutdown command
            windows: Force Windows (True) or POSIX (False) commands;
                detected from the running platform when None
        """
        self.timeout_seconds = timeout_seconds
        self.windows = platform.system() == "Windows" if windows is None else windows

    def command_for(self, host: Optional[str]) -> list[str]:
        """Build the shutdown command line for ``host``."""
        if self.windows:
            cmd = ["shutdown", "/s", "/f", "/t", "0"]
            if host:
                cmd += ["/m", f"\\\\{host}"]
            return cmd

        local = ["sudo", "shutdown", "-h", "now"]
        if host:
            return ["ssh", "-o", "BatchMode=yes", host, *local]
        return local

    def power_off(self, host: Optional[str] = None) -> None:
        cmd = self.command_for(host)
        logger.debug("Running %s", " ".join(cmd))
        try:
            subprocess.run(
                cmd,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise ShutdownCommandError(host, detail, exc.returncode) from exc
        except subprocess.TimeoutExpired as exc:
            raise ShutdownCommandError(
                host, f"timed out after {self.timeout_seconds}s"
            ) from exc
        except FileNotFoundError as exc:
            raise ShutdownCommandError(host, f"command not found: {cmd[0]}") from exc
        except (OSError, ValueError) as exc:
            raise ShutdownCommandError(host, str(exc)) from exc


class DryRunPowerOff:
    """Records power-off requests without acting on them."""

    def __init__(self) -> None:
        self.requests: list[Optional[str]] = []

    def power_off(self, host: Optional[str] = None) -> None:
        self.requests.append(host)
        logger.warning("Dry run: would power off %s", host or "the local machine")


@dataclass
class ShutdownReport:
    """Outcome of a shutdown fan-out."""

    succeeded: list[Optional[str]] = field(default_factory=list)
    failed: dict[Optional[str], str] = field(default_factory=dict)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


class ShutdownTrigger:
    """Issues forced power-off requests to every configured target.

    Best-effort: hosts are tried in order, a failure for one host is
    reported and the rest are still attempted. Nothing is retried or
    rolled back.
    """

    def __init__(self, config: UserSettings, provider: Optional[PowerOffProvider] = None) -> None:
        """Initialize with the shutdown targets.

        Args:
            config: Watchdog settings (``computer_names`` and the per-host timeout)
            provider: Power-off mechanism; the OS shutdown command by default
        """
        self.config = config
        self.provider = provider or SystemPowerOff(config.shutdown_timeout_seconds)

    @property
    def targets(self) -> list[Optional[str]]:
        """Hosts to power off; ``[None]`` means the local machine."""
        if self.config.targets_local_machine:
            return [None]
        return list(self.config.computer_names)

    def execute(self) -> ShutdownReport:
        """Request a forced power-off on every target, sequentially.

        Returns:
            Per-host outcome of the requests
        """
        report = ShutdownReport()
        for host in self.targets:
            name = host or "local machine"
            try:
                self.provider.power_off(host)
            except ShutdownCommandError as exc:
                logger.error("%s", exc)
                report.failed[host] = exc.message
                continue
            except Exception as exc:
                error = ShutdownCommandError(host, f"{type(exc).__name__}: {exc}")
                logger.exception("%s", error)
                report.failed[host] = error.message
                continue
            logger.info("Power-off requested for %s", name)
            report.succeeded.append(host)
        return report
