"""System tray command for the Syncthing Monitor CLI.

Commands:
- tray: Start the status tray icon
"""

from __future__ import annotations

import signal
import sys
import threading
from pathlib import Path

import click

from syncthing_monitor.client.cli.config import load_settings_or_exit
from syncthing_monitor.client.monitor import SyncthingMonitor


@click.command()
def tray() -> None:
    """Start the system tray status icon.

    Runs the monitor in the background, providing:
    - Status indicator (idle, syncing, synced, error)
    - Force sync, connection test and conflict cleanup
    - Quick access to the folder and the Syncthing web UI

    Requires pystray and pillow: pip install syncthing-monitor[tray]
    """
    try:
        from syncthing_monitor.client.tray import PYSTRAY_AVAILABLE, MonitorTray, TrayCallbacks
    except ImportError:
        click.echo(
            "Error: Tray dependencies not installed.\n"
            "Install with: pip install syncthing-monitor[tray]",
            err=True,
        )
        sys.exit(1)

    if not PYSTRAY_AVAILABLE:
        click.echo(
            "Error: pystray not available.\n" "Install with: pip install pystray pillow",
            err=True,
        )
        sys.exit(1)

    settings = load_settings_or_exit()
    folder_path = Path(settings.folder_path).expanduser() if settings.folder_path else None

    stop_event = threading.Event()

    # Menu callbacks resolve `monitor` when clicked, after it is created below
    callbacks = TrayCallbacks(
        on_force_sync=lambda: monitor.force_sync(),
        on_check_connection=lambda: monitor.check_connection(),
        on_delete_conflicts=lambda: monitor.delete_conflict_files(),
        on_restart=lambda: monitor.restart_polling(),
        on_quit=stop_event.set,
    )
    tray_icon = MonitorTray(settings.base_url, folder_path, callbacks)
    monitor = SyncthingMonitor(settings, on_status_change=tray_icon.set_status)

    click.echo("Starting Syncthing Monitor tray icon...")
    click.echo(f"Syncthing: {settings.base_url}")
    click.echo(f"Folder: {settings.folder_id or '(not set)'}")
    click.echo("Press Ctrl+C or use tray menu to quit.")

    def signal_handler(signum: int, frame: object) -> None:
        click.echo("\nStopping tray icon...")
        stop_event.set()

    signal.signal(signal.SIGINT, signal_handler)

    tray_icon.start(blocking=False)
    monitor.start()

    try:
        while not stop_event.is_set():
            # The tray may have been closed from its menu
            if not tray_icon.running:
                break
            stop_event.wait(timeout=0.5)
    except KeyboardInterrupt:
        click.echo("\nStopping tray icon...")
    finally:
        monitor.stop()
        tray_icon.stop()
