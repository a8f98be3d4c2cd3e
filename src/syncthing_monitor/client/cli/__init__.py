"""Command-line interface for Syncthing Monitor.

This module provides the main CLI entry point and assembles all commands.

Commands:
- config show / config set: View or change the settings
- status: Check the folder status once
- watch: Poll the folder status continuously
- force-sync: Trigger a folder rescan
- check-connection: Test the connection to Syncthing
- delete-conflicts: Delete Syncthing conflict copies
- tray: Start the system tray icon
"""

from __future__ import annotations

import click

from syncthing_monitor.client.cli.actions import check_connection, delete_conflicts, force_sync
from syncthing_monitor.client.cli.config import (
    configure_logging,
    get_config_dir,
    get_config_file,
    load_settings,
    save_settings,
)
from syncthing_monitor.client.cli.settings import config
from syncthing_monitor.client.cli.status import status, watch
from syncthing_monitor.client.cli.tray import tray


@click.group()
@click.version_option(package_name="syncthing-monitor")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Syncthing Monitor - Folder sync status for Syncthing."""
    configure_logging(verbose)


# Settings
cli.add_command(config)

# Status commands
cli.add_command(status)
cli.add_command(watch)

# Manual operations
cli.add_command(force_sync)
cli.add_command(check_connection)
cli.add_command(delete_conflicts)

# Tray command
cli.add_command(tray)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "load_settings",
    "save_settings",
]
