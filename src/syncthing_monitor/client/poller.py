"""Periodic folder status polling.

This module provides:
- StatusPoller: owns the sync status and the polling timer
- ActionResult / ConnectionCheck: outcomes of manual operations

Status transitions per poll cycle:
    (no folder ID) ──► ERROR
    SYNCING ──ping fails──► ERROR
    SYNCING ──status fails──► ERROR
    SYNCING ──counts──► SYNCING (in progress) | SYNCED
    SYNCING ──no counts──► SYNCED (assumed)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from syncthing_monitor.client.errors import REQUEST_ERRORS, SyncthingError, describe_error
from syncthing_monitor.core.types import SyncStatus

if TYPE_CHECKING:
    from syncthing_monitor.client.api import SyncthingClient
    from syncthing_monitor.core.config import ConnectionSettings

logger = logging.getLogger(__name__)

POLL_JOB_ID = "status_poll"
RESCAN_CHECK_JOB_ID = "rescan_check"
RESCAN_CHECK_DELAY = 2.0  # seconds

FOLDER_ID_NOT_SET = "Folder ID not set"
CHECKING_MESSAGE = "Checking folder status"
IN_SYNC_MESSAGE = "All files in sync"
ASSUMED_IN_SYNC_MESSAGE = "All files in sync (assumed)"

StatusCallback = Callable[[SyncStatus, str], None]


@dataclass
class ActionResult:
    """Outcome of a manual operation, suitable for a transient notice."""

    success: bool
    message: str


@dataclass
class ConnectionCheck(ActionResult):
    """Outcome of a connection test."""

    version: str | None = None


class StatusPoller:
    """Polls a Syncthing folder and tracks its sync status.

    Only one poll cycle runs at a time; a cycle that fires while
    another is in flight is skipped. At most one recurring timer
    exists per poller.

    Usage:
        async with SyncthingClient(settings) as client:
            poller = StatusPoller(client, on_status_change=print)
            await poller.start_polling()
            ...
            poller.close()
    """

    def __init__(
        self,
        client: SyncthingClient,
        on_status_change: StatusCallback | None = None,
        rescan_check_delay: float = RESCAN_CHECK_DELAY,
    ) -> None:
        """Initialize the poller.

        Args:
            client: Syncthing client used for every request.
            on_status_change: Called with (status, message) on every update.
            rescan_check_delay: Seconds between a forced rescan and the
                follow-up status check.
        """
        self._client = client
        self._on_status_change = on_status_change
        self._rescan_check_delay = rescan_check_delay

        self._status = SyncStatus.IDLE
        self._message = ""
        self._cycle_running = False
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def status(self) -> SyncStatus:
        """Current sync status."""
        return self._status

    @property
    def message(self) -> str:
        """Detail message for the current status."""
        return self._message

    @property
    def settings(self) -> ConnectionSettings:
        """Settings of the underlying client."""
        return self._client.settings

    @property
    def polling(self) -> bool:
        """Check if the recurring status check is scheduled."""
        return self._scheduler is not None and self._scheduler.get_job(POLL_JOB_ID) is not None

    def set_callback(self, on_status_change: StatusCallback | None) -> None:
        """Set the status change callback."""
        self._on_status_change = on_status_change

    def _set_status(self, status: SyncStatus, message: str = "") -> None:
        """Update the status and notify the UI sink."""
        if status != self._status:
            logger.debug("Status %s -> %s: %s", self._status.value, status.value, message)
        self._status = status
        self._message = message

        if self._on_status_change:
            try:
                self._on_status_change(status, message)
            except Exception:
                logger.exception("Status callback failed")

    def _get_scheduler(self) -> AsyncIOScheduler:
        """Get the scheduler, starting it on the running event loop."""
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
            self._scheduler.start()
        return self._scheduler

    # === Poll cycle ===

    async def check_status(self) -> bool:
        """Run one poll cycle.

        Returns:
            False if the cycle was skipped because another is in flight.
        """
        if self._cycle_running:
            logger.debug("Previous status check still running, skipping")
            return False

        self._cycle_running = True
        try:
            await self._run_cycle()
        finally:
            self._cycle_running = False
        return True

    async def _run_cycle(self) -> None:
        folder_id = self._client.settings.folder_id
        if not folder_id:
            self._set_status(SyncStatus.ERROR, FOLDER_ID_NOT_SET)
            return

        was_error = self._status == SyncStatus.ERROR
        self._set_status(SyncStatus.SYNCING, CHECKING_MESSAGE)

        try:
            await self._client.ping()
            folder_status = await self._client.get_folder_status(folder_id)
        except SyncthingError as e:
            if was_error:
                logger.debug("Status check failed again: %s", e)
            else:
                logger.warning("Status check failed: %s", e)
            self._set_status(SyncStatus.ERROR, describe_error(e))
            return

        if was_error:
            logger.info("Connection to Syncthing restored")

        if folder_status is None:
            self._set_status(SyncStatus.SYNCED, ASSUMED_IN_SYNC_MESSAGE)
        elif folder_status.in_sync_files < folder_status.global_files:
            self._set_status(
                SyncStatus.SYNCING,
                f"Syncing: {folder_status.in_sync_files}/{folder_status.global_files} files",
            )
        else:
            self._set_status(SyncStatus.SYNCED, IN_SYNC_MESSAGE)

    # === Scheduling ===

    async def start_polling(self) -> bool:
        """(Re)start periodic polling and run one cycle immediately.

        Any previous recurring timer is cancelled first.

        Returns:
            False if polling cannot start because no folder ID is set.
        """
        self.stop_polling()

        settings = self._client.settings
        if not settings.folder_id:
            logger.warning("Cannot start polling: folder ID not set")
            self._set_status(SyncStatus.ERROR, FOLDER_ID_NOT_SET)
            return False

        self._get_scheduler().add_job(
            self.check_status,
            trigger=IntervalTrigger(seconds=settings.poll_interval),
            id=POLL_JOB_ID,
            name="Syncthing status poll",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(
            "Polling folder %s every %ds",
            settings.folder_id,
            settings.poll_interval,
        )

        await self.check_status()
        return True

    def stop_polling(self) -> None:
        """Cancel the recurring status check. Safe to call repeatedly."""
        if self._scheduler is None:
            return
        if self._scheduler.get_job(POLL_JOB_ID) is not None:
            self._scheduler.remove_job(POLL_JOB_ID)
            logger.info("Polling stopped")

    def close(self) -> None:
        """Cancel every timer and stop the scheduler. Safe to call repeatedly."""
        if self._scheduler is None:
            return
        self._scheduler.remove_all_jobs()
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.debug("Status poller closed")

    # === Manual operations ===

    async def force_sync(self) -> ActionResult:
        """Trigger a folder rescan, then check status once after a delay.

        The follow-up check is a one-shot timer and does not touch the
        recurring schedule.
        """
        folder_id = self._client.settings.folder_id
        if not folder_id:
            return ActionResult(False, f"Error: {FOLDER_ID_NOT_SET}")

        self._set_status(SyncStatus.SYNCING, "Rescan requested")

        try:
            await self._client.trigger_rescan(folder_id)
        except REQUEST_ERRORS as e:
            logger.warning("Rescan failed: %s", e)
            self._set_status(SyncStatus.ERROR, describe_error(e))
            return ActionResult(False, f"Sync error: {describe_error(e)}")

        self._get_scheduler().add_job(
            self.check_status,
            trigger=DateTrigger(
                run_date=datetime.now(UTC) + timedelta(seconds=self._rescan_check_delay)
            ),
            id=RESCAN_CHECK_JOB_ID,
            name="Status check after rescan",
            replace_existing=True,
        )
        return ActionResult(True, "Syncthing rescan initiated")

    async def check_connection(self) -> ConnectionCheck:
        """Probe the daemon version without touching the sync status."""
        if not self._client.settings.base_url:
            return ConnectionCheck(False, "Error: No Syncthing URL configured")

        try:
            data = await self._client.probe_version()
        except REQUEST_ERRORS as e:
            logger.info("Connection test failed: %s", e)
            return ConnectionCheck(False, f"Connection error: {describe_error(e)}")

        version = data.get("version") if isinstance(data, dict) else None
        if version:
            return ConnectionCheck(True, f"Connected to Syncthing {version}", version=str(version))
        return ConnectionCheck(True, "Connected to Syncthing")
