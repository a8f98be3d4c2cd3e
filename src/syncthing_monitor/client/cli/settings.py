"""Settings commands for the Syncthing Monitor CLI.

Commands:
- config show: Print the current settings
- config set: Update one or more settings
"""

from __future__ import annotations

import sys
from dataclasses import replace
from typing import Any

import click

from syncthing_monitor.client.cli.config import (
    get_config_file,
    load_settings_or_exit,
    save_settings,
)
from syncthing_monitor.core.config import ConfigError, ConnectionSettings

SECRET_FIELDS = ("api_key", "password")


def _mask(value: str) -> str:
    return "********" if value else ""


def format_settings(settings: ConnectionSettings) -> list[str]:
    """Format settings for display, masking secrets."""
    lines = []
    for key, value in settings.to_dict().items():
        if key in SECRET_FIELDS:
            value = _mask(value)
        elif value is None:
            value = ""
        lines.append(f"{key}: {value}")
    return lines


@click.group()
def config() -> None:
    """View or change the monitor settings."""


@config.command("show")
def show() -> None:
    """Show the current settings."""
    settings = load_settings_or_exit()
    click.echo(f"Settings file: {get_config_file()}")
    for line in format_settings(settings):
        click.echo(line)


@config.command("set")
@click.option("--url", "base_url", help="Syncthing GUI/REST URL.")
@click.option("--api-key", help="Syncthing API key.")
@click.option("--username", help="GUI username (used when no API key is set).")
@click.option("--password", help="GUI password (used when no API key is set).")
@click.option("--folder-id", help="ID of the folder to monitor.")
@click.option("--interval", "poll_interval", type=int, help="Seconds between status checks.")
@click.option(
    "--folder-path",
    type=click.Path(file_okay=False),
    help="Local path of the synced folder.",
)
@click.option("--timeout", type=float, help="Request timeout in seconds.")
def set_(**options: Any) -> None:
    """Update settings. Only the given options change."""
    changes = {key: value for key, value in options.items() if value is not None}
    if not changes:
        click.echo("Nothing to change.")
        return

    settings = load_settings_or_exit()
    try:
        settings = replace(settings, **changes)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    save_settings(settings)
    click.echo(f"Saved settings to {get_config_file()}")
