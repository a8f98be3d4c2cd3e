"""Status commands for the Syncthing Monitor CLI.

Commands:
- status: Check the folder status once
- watch: Poll the folder status until interrupted
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import replace

import click

from syncthing_monitor.client.api import SyncthingClient
from syncthing_monitor.client.cli.config import load_settings_or_exit
from syncthing_monitor.client.poller import CHECKING_MESSAGE, StatusPoller
from syncthing_monitor.core.config import MIN_POLL_INTERVAL, ConnectionSettings
from syncthing_monitor.core.types import SyncStatus, format_status


async def check_once(settings: ConnectionSettings) -> tuple[SyncStatus, str]:
    """Run a single poll cycle and return the resulting status."""
    async with SyncthingClient(settings) as client:
        poller = StatusPoller(client)
        try:
            await poller.check_status()
        finally:
            poller.close()
        return poller.status, poller.message


async def watch_status(settings: ConnectionSettings) -> None:
    """Poll until cancelled, printing each distinct status line."""
    last_line: str | None = None

    def on_status_change(status: SyncStatus, message: str) -> None:
        nonlocal last_line
        # Skip the transient state shown while a cycle is in flight
        if status == SyncStatus.SYNCING and message == CHECKING_MESSAGE:
            return
        line = format_status(status, message)
        if line != last_line:
            click.echo(line)
            last_line = line

    async with SyncthingClient(settings) as client:
        poller = StatusPoller(client, on_status_change=on_status_change)
        try:
            if not await poller.start_polling():
                return
            await asyncio.Event().wait()
        finally:
            poller.close()


@click.command()
def status() -> None:
    """Check the monitored folder once.

    Exits with status 1 if Syncthing is unreachable or the folder
    status cannot be read.
    """
    settings = load_settings_or_exit()
    sync_status, message = asyncio.run(check_once(settings))
    click.echo(format_status(sync_status, message))
    if sync_status == SyncStatus.ERROR:
        sys.exit(1)


@click.command()
@click.option(
    "--interval",
    type=click.IntRange(min=MIN_POLL_INTERVAL),
    help="Seconds between status checks (overrides the saved setting).",
)
def watch(interval: int | None) -> None:
    """Poll the monitored folder until interrupted."""
    settings = load_settings_or_exit()
    if interval is not None:
        settings = replace(settings, poll_interval=interval)

    if not settings.folder_id:
        click.echo("Error: Folder ID not set. Use 'syncthing-monitor config set --folder-id'.", err=True)
        sys.exit(1)

    click.echo(
        f"Watching folder {settings.folder_id} every {settings.poll_interval}s "
        "(Ctrl+C to stop)"
    )
    try:
        asyncio.run(watch_status(settings))
    except KeyboardInterrupt:
        click.echo("\nStopped.")
