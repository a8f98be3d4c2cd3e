"""Background monitor tying the client, poller and notifications together.

This module provides:
- SyncthingMonitor: runs the poller on a private event loop and exposes
  blocking commands (force sync, connection test, conflict cleanup) to
  synchronous hosts such as the tray icon

Architecture:
    Host thread (tray/CLI) ──submit──► monitor loop thread
                                        └─ StatusPoller ──► SyncthingClient ──http──► Syncthing
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, TypeVar

from syncthing_monitor.client.api import SyncthingClient
from syncthing_monitor.client.conflicts import (
    ConflictCleanupResult,
    LocalFolder,
    delete_conflict_files,
)
from syncthing_monitor.client.notifications import Notification, send_notification
from syncthing_monitor.client.poller import (
    RESCAN_CHECK_DELAY,
    ActionResult,
    ConnectionCheck,
    StatusCallback,
    StatusPoller,
)
from syncthing_monitor.core.config import ConnectionSettings
from syncthing_monitor.core.types import SyncStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

STARTUP_DELAY = 2.0  # seconds before the first poll
COMMAND_TIMEOUT = 120.0

Notifier = Callable[[Notification], object]


class SyncthingMonitor:
    """Runs status polling in a background thread.

    Usage:
        monitor = SyncthingMonitor(settings, on_status_change=tray.set_status)
        monitor.start()

        result = monitor.force_sync()

        monitor.stop()
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        on_status_change: StatusCallback | None = None,
        notifier: Notifier | None = send_notification,
        startup_delay: float = STARTUP_DELAY,
        rescan_check_delay: float = RESCAN_CHECK_DELAY,
    ) -> None:
        """Initialize the monitor.

        Args:
            settings: Connection settings.
            on_status_change: UI sink for (status, message) updates.
            notifier: Shows transient notices, or None to disable them.
            startup_delay: Seconds between start() and the first poll.
            rescan_check_delay: Seconds between a forced rescan and its
                follow-up status check.
        """
        self._settings = settings
        self._on_status_change = on_status_change
        self._notifier = notifier
        self._startup_delay = startup_delay
        self._rescan_check_delay = rescan_check_delay

        # Thread and loop
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._ready = threading.Event()

        # Created on the monitor loop
        self._client: SyncthingClient | None = None
        self._poller: StatusPoller | None = None
        self._startup_task: asyncio.Task[Any] | None = None

    @property
    def settings(self) -> ConnectionSettings:
        """Current connection settings."""
        return self._settings

    @property
    def running(self) -> bool:
        """Check if the monitor thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def status(self) -> SyncStatus:
        """Current sync status."""
        return self._poller.status if self._poller else SyncStatus.IDLE

    @property
    def message(self) -> str:
        """Detail message for the current status."""
        return self._poller.message if self._poller else ""

    # === Lifecycle ===

    def start(self) -> None:
        """Start the monitor loop; polling begins after the startup delay."""
        if self.running:
            logger.warning("SyncthingMonitor already running")
            return

        self._ready.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="SyncthingMonitor",
            daemon=True,
        )
        self._thread.start()
        self._ready.wait(timeout=5.0)
        logger.info("SyncthingMonitor started")

    def stop(self) -> None:
        """Cancel all timers and stop the monitor loop. Safe to call repeatedly."""
        if self._thread is None:
            return

        loop = self._loop
        if loop is not None and loop.is_running():
            try:
                asyncio.run_coroutine_threadsafe(self._shutdown(), loop).result(timeout=5.0)
            except Exception:
                logger.warning("Monitor shutdown did not complete cleanly", exc_info=True)
            loop.call_soon_threadsafe(loop.stop)

        self._thread.join(timeout=5.0)
        self._thread = None
        logger.info("SyncthingMonitor stopped")

    def _run_loop(self) -> None:
        """Run the event loop in the monitor thread."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop

        try:
            loop.run_until_complete(self._setup())
            loop.call_soon(self._ready.set)
            loop.run_forever()
        finally:
            self._ready.set()
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()
            self._loop = None

    async def _setup(self) -> None:
        self._client = SyncthingClient(self._settings)
        self._poller = StatusPoller(
            self._client,
            on_status_change=self._on_status_change,
            rescan_check_delay=self._rescan_check_delay,
        )
        self._startup_task = asyncio.create_task(self._delayed_start())

    async def _delayed_start(self) -> None:
        await asyncio.sleep(self._startup_delay)
        await self._require_poller().start_polling()

    async def _shutdown(self) -> None:
        if self._startup_task is not None:
            self._startup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._startup_task
            self._startup_task = None
        if self._poller is not None:
            self._poller.close()
        if self._client is not None:
            await self._client.aclose()

    def _submit(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a coroutine on the monitor loop and wait for its result."""
        loop = self._loop
        if loop is None or not loop.is_running():
            coro.close()
            raise RuntimeError("SyncthingMonitor is not running")
        return asyncio.run_coroutine_threadsafe(coro, loop).result(timeout=COMMAND_TIMEOUT)

    def _require_poller(self) -> StatusPoller:
        if self._poller is None:
            raise RuntimeError("SyncthingMonitor is not running")
        return self._poller

    def _require_client(self) -> SyncthingClient:
        if self._client is None:
            raise RuntimeError("SyncthingMonitor is not running")
        return self._client

    def _notify(self, message: str, error: bool = False) -> None:
        if self._notifier is None:
            return
        notification = Notification.error(message) if error else Notification.info(message)
        self._notifier(notification)

    def _notify_result(self, result: ActionResult) -> None:
        self._notify(result.message, error=not result.success)

    # === Commands ===

    def force_sync(self) -> ActionResult:
        """Trigger a rescan and report the outcome."""
        poller = self._require_poller()
        if self._settings.folder_id:
            self._notify("Forcing Syncthing rescan...")
        result = self._submit(poller.force_sync())
        self._notify_result(result)
        return result

    def check_connection(self) -> ConnectionCheck:
        """Test the connection and report the outcome."""
        poller = self._require_poller()
        self._notify("Testing Syncthing connection...")
        result = self._submit(poller.check_connection())
        self._notify_result(result)
        return result

    def restart_polling(self) -> bool:
        """Restart status polling immediately.

        Returns:
            False if polling could not start (no folder ID).
        """
        self._require_poller()
        started = self._submit(self._restart())
        if started:
            self._notify("Sync monitoring restarted")
        return started

    async def _restart(self) -> bool:
        poller = self._require_poller()
        if self._startup_task is not None and not self._startup_task.done():
            self._startup_task.cancel()
        return await poller.start_polling()

    def update_settings(self, settings: ConnectionSettings) -> None:
        """Replace the settings; a running poll is restarted to pick them up."""
        self._settings = settings
        if self._loop is not None and self._poller is not None:
            self._submit(self._apply_settings(settings))

    async def _apply_settings(self, settings: ConnectionSettings) -> None:
        poller = self._require_poller()
        self._require_client().settings = settings
        if poller.polling:
            await poller.start_polling()

    def delete_conflict_files(self) -> ConflictCleanupResult | None:
        """Delete Syncthing conflict copies in the local folder.

        Returns:
            The cleanup result, or None if the folder is unknown or unreadable.
        """
        if not self._settings.folder_path:
            self._notify("Error: Folder path not set", error=True)
            return None

        self._notify("Searching for sync conflict files...")
        folder = LocalFolder(Path(self._settings.folder_path).expanduser())
        try:
            result = delete_conflict_files(folder)
        except OSError as e:
            logger.warning("Conflict cleanup failed: %s", e)
            self._notify(f"Error deleting sync conflict files: {e}", error=True)
            return None

        if not result.found:
            self._notify("No sync conflict files found")
        else:
            self._notify(f"Deleted {result.deleted} sync conflict files")
        return result
