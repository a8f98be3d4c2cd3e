"""Manual operation commands for the Syncthing Monitor CLI.

Commands:
- force-sync: Trigger a folder rescan
- check-connection: Test the connection to Syncthing
- delete-conflicts: Delete Syncthing conflict copies
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from syncthing_monitor.client.api import SyncthingClient
from syncthing_monitor.client.cli.config import load_settings_or_exit
from syncthing_monitor.client.conflicts import (
    LocalFolder,
    delete_conflict_files,
    find_conflict_files,
)
from syncthing_monitor.client.poller import (
    RESCAN_CHECK_DELAY,
    ActionResult,
    ConnectionCheck,
    StatusPoller,
)
from syncthing_monitor.core.config import ConnectionSettings
from syncthing_monitor.core.types import SyncStatus, format_status


async def run_force_sync(
    settings: ConnectionSettings,
    wait: bool = True,
    check_delay: float = RESCAN_CHECK_DELAY,
) -> tuple[ActionResult, SyncStatus, str]:
    """Trigger a rescan and optionally check the status after a delay."""
    async with SyncthingClient(settings) as client:
        poller = StatusPoller(client, rescan_check_delay=check_delay)
        try:
            result = await poller.force_sync()
            if result.success and wait:
                # Cancel the scheduled follow-up and run it inline instead
                await asyncio.sleep(check_delay)
                poller.close()
                await poller.check_status()
        finally:
            poller.close()
        return result, poller.status, poller.message


async def run_check_connection(settings: ConnectionSettings) -> ConnectionCheck:
    """Probe the Syncthing version endpoint."""
    async with SyncthingClient(settings) as client:
        return await StatusPoller(client).check_connection()


@click.command("force-sync")
@click.option(
    "--wait/--no-wait",
    default=True,
    help="Check the folder status once the rescan had time to start.",
)
def force_sync(wait: bool) -> None:
    """Ask Syncthing to rescan the monitored folder."""
    settings = load_settings_or_exit()
    result, sync_status, message = asyncio.run(run_force_sync(settings, wait=wait))

    if not result.success:
        click.echo(result.message, err=True)
        sys.exit(1)

    click.echo(result.message)
    if wait:
        click.echo(format_status(sync_status, message))


@click.command("check-connection")
def check_connection() -> None:
    """Test the connection to the Syncthing daemon."""
    settings = load_settings_or_exit()
    result = asyncio.run(run_check_connection(settings))
    if not result.success:
        click.echo(result.message, err=True)
        sys.exit(1)
    click.echo(result.message)


@click.command("delete-conflicts")
@click.option(
    "--path",
    "folder_path",
    type=click.Path(file_okay=False, path_type=Path),
    help="Folder to clean (defaults to the configured folder path).",
)
@click.option("--dry-run", is_flag=True, help="List conflict files without deleting them.")
def delete_conflicts(folder_path: Path | None, dry_run: bool) -> None:
    """Delete Syncthing conflict copies (*.sync-conflict-*)."""
    if folder_path is None:
        settings = load_settings_or_exit()
        if not settings.folder_path:
            click.echo("Error: Folder path not set. Use --path or 'config set --folder-path'.", err=True)
            sys.exit(1)
        folder_path = Path(settings.folder_path)

    folder = LocalFolder(folder_path.expanduser())

    try:
        if dry_run:
            conflicts = find_conflict_files(folder.list_files())
        else:
            result = delete_conflict_files(folder)
            conflicts = result.found
    except OSError as e:
        click.echo(f"Error deleting sync conflict files: {e}", err=True)
        sys.exit(1)

    if not conflicts:
        click.echo("No sync conflict files found")
        return

    if dry_run:
        click.echo(f"Found {len(conflicts)} sync conflict files:")
        for path in conflicts:
            click.echo(f"  {path}")
        return

    click.echo(f"Deleted {result.deleted} sync conflict files")
    if result.failed:
        click.echo(f"Failed to delete {len(result.failed)} files:", err=True)
        for path in result.failed:
            click.echo(f"  {path}", err=True)
        sys.exit(1)
