"""System tray status indicator.

This module provides:
- A tray icon reflecting the folder's SyncStatus
- Context menu for the monitor commands
- Tooltip with the status detail message

Requires pystray and Pillow for cross-platform tray icon support.
"""

from __future__ import annotations

import platform
import subprocess
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageDraw

from syncthing_monitor.core.types import SyncStatus, format_status

# pystray import with fallback
PYSTRAY_AVAILABLE: bool
try:
    import pystray
    from pystray import Icon, Menu, MenuItem

    PYSTRAY_AVAILABLE = True
except ImportError:
    PYSTRAY_AVAILABLE = False
    pystray = None  # type: ignore[assignment]
    Icon = None  # noqa: N806  # type: ignore[misc]
    Menu = None  # noqa: N806  # type: ignore[misc]
    MenuItem = None  # noqa: N806  # type: ignore[misc]


# Color scheme for status icons
STATUS_COLORS = {
    SyncStatus.IDLE: "#9E9E9E",  # Gray
    SyncStatus.SYNCING: "#2196F3",  # Blue
    SyncStatus.SYNCED: "#4CAF50",  # Green
    SyncStatus.ERROR: "#F44336",  # Red
}


@dataclass
class TrayCallbacks:
    """Callbacks for tray menu actions.

    Attributes:
        on_force_sync: Called when "Force Sync" is clicked
        on_check_connection: Called when "Check Connection" is clicked
        on_delete_conflicts: Called when "Delete Sync Conflict Files" is clicked
        on_restart: Called when "Restart Monitoring" is clicked
        on_quit: Called when "Quit" is clicked
    """

    on_force_sync: Callable[[], object] | None = None
    on_check_connection: Callable[[], object] | None = None
    on_delete_conflicts: Callable[[], object] | None = None
    on_restart: Callable[[], object] | None = None
    on_quit: Callable[[], object] | None = None


def create_icon_image(status: SyncStatus, size: int = 64) -> Image.Image:
    """Create a status icon image.

    Args:
        status: The status to represent
        size: Icon size in pixels

    Returns:
        PIL Image with the status icon
    """
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)

    color = STATUS_COLORS.get(status, STATUS_COLORS[SyncStatus.IDLE])

    margin = size // 8
    center = size // 2

    if status == SyncStatus.SYNCING:
        # Ring with an arrow head
        draw.ellipse(
            [margin, margin, size - margin, size - margin],
            outline=color,
            width=size // 10,
        )
        arrow_size = size // 6
        draw.polygon(
            [
                (size - margin - arrow_size, margin),
                (size - margin, margin + arrow_size),
                (size - margin - arrow_size * 2, margin + arrow_size),
            ],
            fill=color,
        )

    elif status == SyncStatus.ERROR:
        # Exclamation mark in circle
        draw.ellipse(
            [margin, margin, size - margin, size - margin],
            fill=color,
        )
        bar_width = size // 8
        draw.rectangle(
            [
                center - bar_width // 2,
                margin + size // 6,
                center + bar_width // 2,
                size - margin - size // 3,
            ],
            fill="white",
        )
        draw.ellipse(
            [
                center - bar_width // 2,
                size - margin - size // 5,
                center + bar_width // 2,
                size - margin - size // 10,
            ],
            fill="white",
        )

    elif status == SyncStatus.SYNCED:
        # Checkmark in circle
        draw.ellipse(
            [margin, margin, size - margin, size - margin],
            fill=color,
        )
        line_width = size // 10
        check_points = [
            (margin + size // 4, center),
            (center - size // 10, size - margin - size // 4),
            (size - margin - size // 6, margin + size // 4),
        ]
        draw.line(check_points[:2], fill="white", width=line_width)
        draw.line(check_points[1:], fill="white", width=line_width)

    else:  # IDLE - hollow circle
        draw.ellipse(
            [margin, margin, size - margin, size - margin],
            outline=color,
            width=size // 10,
        )

    return image


def open_folder(folder_path: Path) -> None:
    """Open a folder in the system file manager.

    Args:
        folder_path: Path to the folder to open
    """
    system = platform.system()

    if system == "Windows":
        subprocess.run(["explorer", str(folder_path)], check=False)
    elif system == "Darwin":
        subprocess.run(["open", str(folder_path)], check=False)
    else:  # Linux
        subprocess.run(["xdg-open", str(folder_path)], check=False)


def open_url(url: str) -> None:
    """Open a URL in the default browser.

    Args:
        url: URL to open
    """
    import webbrowser

    webbrowser.open(url)


class MonitorTray:
    """System tray icon showing the Syncthing folder status.

    set_status() matches the StatusPoller callback signature, so the
    tray can be used directly as the poller's UI sink.
    """

    def __init__(
        self,
        web_ui_url: str,
        folder_path: Path | None = None,
        callbacks: TrayCallbacks | None = None,
    ) -> None:
        """Initialize the tray icon.

        Args:
            web_ui_url: URL of the Syncthing web UI
            folder_path: Local path of the monitored folder, if known
            callbacks: Optional callbacks for menu actions

        Raises:
            ImportError: If pystray is not available
        """
        if not PYSTRAY_AVAILABLE:
            raise ImportError(
                "pystray is required for tray icon. "
                "Install with: pip install syncthing-monitor[tray]"
            )

        self._web_ui_url = web_ui_url
        self._folder_path = folder_path
        self._callbacks = callbacks or TrayCallbacks()
        self._status = SyncStatus.IDLE
        self._message = ""
        self._icon: pystray.Icon | None = None
        self._thread: threading.Thread | None = None

    @property
    def status(self) -> SyncStatus:
        """Get current status."""
        return self._status

    @property
    def running(self) -> bool:
        """Check if the icon is shown."""
        return self._icon is not None

    def set_status(self, status: SyncStatus, message: str = "") -> None:
        """Set status and detail message, then update the icon."""
        self._status = status
        self._message = message
        self._update_icon()

    def _get_status_text(self) -> str:
        """Get status text for tooltip."""
        return format_status(self._status, self._message)

    def _update_icon(self) -> None:
        """Update the tray icon based on current status."""
        if self._icon is None:
            return

        self._icon.icon = create_icon_image(self._status)
        self._icon.title = self._get_status_text()

    def _run_callback(self, callback: Callable[[], object] | None) -> None:
        if callback:
            callback()

    def _on_force_sync(self) -> None:
        self._run_callback(self._callbacks.on_force_sync)

    def _on_check_connection(self) -> None:
        self._run_callback(self._callbacks.on_check_connection)

    def _on_delete_conflicts(self) -> None:
        self._run_callback(self._callbacks.on_delete_conflicts)

    def _on_restart(self) -> None:
        self._run_callback(self._callbacks.on_restart)

    def _on_open_folder(self) -> None:
        if self._folder_path is not None:
            open_folder(self._folder_path)

    def _on_open_web_ui(self) -> None:
        open_url(self._web_ui_url)

    def _on_quit(self) -> None:
        self._run_callback(self._callbacks.on_quit)
        self.stop()

    def _create_menu(self) -> pystray.Menu:
        """Create the context menu."""
        return Menu(
            MenuItem(lambda _: self._get_status_text(), lambda: None, enabled=False),
            Menu.SEPARATOR,
            MenuItem("Force Sync", self._on_force_sync),
            MenuItem("Check Connection", self._on_check_connection),
            MenuItem("Delete Sync Conflict Files", self._on_delete_conflicts),
            MenuItem("Restart Monitoring", self._on_restart),
            Menu.SEPARATOR,
            MenuItem(
                "Open Folder",
                self._on_open_folder,
                enabled=lambda _: self._folder_path is not None,
            ),
            MenuItem("Open Syncthing Web UI", self._on_open_web_ui),
            Menu.SEPARATOR,
            MenuItem("Quit", self._on_quit),
        )

    def start(self, blocking: bool = True) -> None:
        """Start the tray icon.

        Args:
            blocking: If True, blocks until stop() is called.
                     If False, runs in a background thread.
        """
        if self._icon is not None:
            return  # Already running

        self._icon = Icon(
            name="SyncthingMonitor",
            icon=create_icon_image(self._status),
            title=self._get_status_text(),
            menu=self._create_menu(),
        )

        if blocking:
            self._icon.run()
        else:
            self._thread = threading.Thread(target=self._icon.run, daemon=True)
            self._thread.start()

    def stop(self) -> None:
        """Stop the tray icon."""
        if self._icon is not None:
            self._icon.stop()
            self._icon = None
