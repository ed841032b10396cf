"""Tests for upswatch.power helpers."""

from __future__ import annotations

import subprocess
from typing import Any, Optional

import pytest

from upswatch import power
from upswatch.errors import ShutdownCommandError
from upswatch.power import DryRunPowerOff, PowerOffProvider, ShutdownTrigger, SystemPowerOff
from upswatch.settings import UserSettings


class _FakeRun:
    """Capture arguments to subprocess.run, optionally raising."""

    def __init__(self, error: Optional[BaseException] = None) -> None:
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def __call__(self, cmd: list[str], **kwargs: Any) -> None:
        self.calls.append({"cmd": cmd, "kwargs": kwargs})
        if self.error is not None:
            raise self.error


class _BrokenPowerOff:
    """Raises something other than ShutdownCommandError for one host."""

    def __init__(self, broken_host: str) -> None:
        self.broken_host = broken_host
        self.calls: list[Optional[str]] = []

    def power_off(self, host: Optional[str] = None) -> None:
        self.calls.append(host)
        if host == self.broken_host:
            raise RuntimeError("provider bug")


class _RecordingPowerOff:
    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.fail_on = set(fail_on)
        self.calls: list[Optional[str]] = []

    def power_off(self, host: Optional[str] = None) -> None:
        self.calls.append(host)
        if host in self.fail_on:
            raise ShutdownCommandError(host, "Access is denied.", 5)


def _patch_run(monkeypatch: pytest.MonkeyPatch, fake: _FakeRun) -> None:
    monkeypatch.setattr(power.subprocess, "run", fake)


def test_local_posix_shutdown(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeRun()
    _patch_run(monkeypatch, fake)

    SystemPowerOff(timeout_seconds=30, windows=False).power_off()

    assert fake.calls[0]["cmd"] == ["sudo", "shutdown", "-h", "now"]
    assert fake.calls[0]["kwargs"]["check"] is True
    assert fake.calls[0]["kwargs"]["timeout"] == 30


def test_remote_posix_shutdown_uses_ssh() -> None:
    cmd = SystemPowerOff(windows=False).command_for("nas01")

    assert cmd[0] == "ssh"
    assert cmd[-5:] == ["nas01", "sudo", "shutdown", "-h", "now"]


def test_windows_commands_are_forced() -> None:
    provider = SystemPowerOff(windows=True)

    assert provider.command_for(None) == ["shutdown", "/s", "/f", "/t", "0"]
    assert provider.command_for("NAS01") == ["shutdown", "/s", "/f", "/t", "0", "/m", r"\\NAS01"]


@pytest.mark.parametrize(
    ("error", "fragment"),
    [
        (subprocess.CalledProcessError(5, ["shutdown"], stderr="Access is denied."), "Access is denied."),
        (subprocess.TimeoutExpired(["shutdown"], 30), "timed out"),
        (FileNotFoundError(), "command not found"),
    ],
)
def test_power_off_failures(
    monkeypatch: pytest.MonkeyPatch, error: BaseException, fragment: str
) -> None:
    _patch_run(monkeypatch, _FakeRun(error))

    with pytest.raises(ShutdownCommandError) as exc_info:
        SystemPowerOff(timeout_seconds=30, windows=True).power_off("nas01")

    assert exc_info.value.host == "nas01"
    assert fragment in exc_info.value.message


def test_empty_list_targets_local_machine(settings: UserSettings) -> None:
    provider = _RecordingPowerOff()

    report = ShutdownTrigger(settings, provider).execute()

    assert provider.calls == [None]
    assert report.succeeded == [None]
    assert report.all_succeeded


def test_failure_does_not_stop_fan_out(settings: UserSettings) -> None:
    config = settings.model_copy(update={"computer_names": ("A", "B")})
    provider = _RecordingPowerOff(fail_on=("A",))

    report = ShutdownTrigger(config, provider).execute()

    assert provider.calls == ["A", "B"]
    assert report.succeeded == ["B"]
    assert report.failed == {"A": "Access is denied."}
    assert not report.all_succeeded


def test_default_provider_uses_configured_timeout(settings: UserSettings) -> None:
    config = settings.model_copy(update={"shutdown_timeout_seconds": 15})

    trigger = ShutdownTrigger(config)

    assert isinstance(trigger.provider, SystemPowerOff)
    assert trigger.provider.timeout_seconds == 15


def test_dry_run_records_requests(settings: UserSettings) -> None:
    provider = DryRunPowerOff()
    assert isinstance(provider, PowerOffProvider)

    ShutdownTrigger(settings, provider).execute()

    assert provider.requests == [None]


def test_unexpected_error_does_not_stop_fan_out(settings: UserSettings) -> None:
    config = settings.model_copy(update={"computer_names": ("A", "B")})
    provider = _BrokenPowerOff("A")

    report = ShutdownTrigger(config, provider).execute()

    assert provider.calls == ["A", "B"]
    assert report.succeeded == ["B"]
    assert report.failed == {"A": "RuntimeError: provider bug"}


def test_invalid_host_name_does_not_stop_fan_out(
    monkeypatch: pytest.MonkeyPatch, settings: UserSettings
) -> None:
    fake = _FakeRun()

    def run(cmd: list[str], **kwargs: Any) -> None:
        if any("\x00" in part for part in cmd):
            raise ValueError("embedded null byte")
        fake(cmd, **kwargs)

    monkeypatch.setattr(power.subprocess, "run", run)
    config = settings.model_copy(update={"computer_names": ("bad\x00host", "nas01")})

    report = ShutdownTrigger(config, SystemPowerOff(windows=False)).execute()

    assert report.succeeded == ["nas01"]
    assert report.failed == {"bad\x00host": "embedded null byte"}
    assert fake.calls[0]["cmd"][-5] == "nas01"
