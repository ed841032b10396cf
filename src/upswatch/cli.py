"""UPS watchdog CLI application.

This module provides the command-line interface for the power-failure
watchdog: the monitor loop itself, a one-shot battery status probe and
configuration utilities.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Final, Optional

import typer
import yaml
from pydantic import ValidationError

from upswatch.battery import PsutilBatterySource
from upswatch.constants import EXIT_FAILURE
from upswatch.errors import ConfigError, QueryError
from upswatch.monitor import MonitorLoop, MonitorOutcome
from upswatch.power import DryRunPowerOff, ShutdownTrigger
from upswatch.settings import UserSettings

# ── CLI setup ────────────────────────────────────────────────────────────────
app = typer.Typer(help="UPS power-failure watchdog", add_completion=False)
config_app = typer.Typer(help="Config helpers")
app.add_typer(config_app, name="config")

logger: Final = logging.getLogger(__name__)  # Will be "upswatch.cli"

# Options for the main command
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    dir_okay=False,
    help="Config file (default: $UPSWATCH_CONFIG or config.yaml search path)",
)
DEBUG_OPTION = typer.Option(False, "--debug", help="Enable debug logging")
ONCE_OPTION = typer.Option(False, "--once", "-1", help="Run one cycle then exit")
DRY_RUN_OPTION = typer.Option(
    False, "--dry-run", help="Log shutdown requests instead of powering anything off"
)
DST_ARGUMENT = typer.Argument(..., help="Output config.yaml")


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def load_settings(config: Optional[Path]) -> UserSettings:
    """Load settings, converting configuration errors into a fatal exit."""
    try:
        return UserSettings.load(config)
    except ConfigError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_FAILURE) from exc


@app.command()
def run(
    config: Optional[Path] = CONFIG_OPTION,
    once: bool = ONCE_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Watch the UPS and shut down when the runtime gets too low."""
    configure_logging(debug)
    settings = load_settings(config)

    trigger = ShutdownTrigger(settings, DryRunPowerOff() if dry_run else None)
    monitor = MonitorLoop(settings, shutdown_trigger=trigger)
    outcome = monitor.run(max_cycles=1 if once else None)

    if outcome is MonitorOutcome.FAULT:
        raise typer.Exit(code=EXIT_FAILURE)


@app.command()
def status(debug: bool = DEBUG_OPTION) -> None:
    """Print the current battery status once."""
    configure_logging(debug)
    try:
        snapshot = PsutilBatterySource().query()
    except QueryError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_FAILURE) from exc
    typer.echo(snapshot.describe())


# ───────────────────────── config sub-commands ───────────────────────────────
@config_app.command("validate")
def validate_config(file: Path):
    """Validate a YAML config file against the schema."""
    try:
        UserSettings.load(file)
        typer.echo("✅ Config valid")
    except ConfigError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@config_app.command("wizard")
def wizard(dst: Path = DST_ARGUMENT):
    """Interactive prompt to create a config file."""
    typer.echo("Interactive config builder - press Enter for defaults.")

    while True:
        data: dict[str, Any] = {
            "ShutDownRunTimeMinutes": int(
                typer.prompt("Shut down below runtime (minutes)", default="10")
            ),
            "LogUpdateIntervalMinutes": int(
                typer.prompt("Log interval on power (minutes)", default="60")
            ),
            "LogOnBatteryIntervalSeconds": int(
                typer.prompt("Log interval on battery (seconds)", default="60")
            ),
            "SleepIntervalSeconds": int(typer.prompt("Poll interval (seconds)", default="10")),
        }
        hosts = typer.prompt("Hosts to power off (comma separated, blank = this machine)", default="")
        data["ComputerNames"] = [h.strip() for h in hosts.split(",") if h.strip()]
        try:
            cfg = UserSettings.model_validate(data)
            break  # valid → exit loop
        except ValidationError as err:
            typer.secho("\nConfig error(s):", fg=typer.colors.RED, err=True)
            for e in err.errors():
                typer.secho(f"  • {e['loc'][0]} - {e['msg']}", fg=typer.colors.RED, err=True)
            typer.echo("Please re-enter the values.\n")

    dumped = cfg.model_dump(by_alias=True, mode="json")
    dst.write_text(yaml.safe_dump(dumped, sort_keys=False), encoding="utf-8")
    typer.secho(f"Config written to {dst}", fg=typer.colors.GREEN)


# ───────────────────────── module entrypoint ────────────────────────────────
if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(0)
