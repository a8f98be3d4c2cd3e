"""Shared types for syncthing_monitor.

This module defines the sync status enum shared by the poller and every
UI sink (CLI, tray icon).
"""

from __future__ import annotations

from enum import Enum


class SyncStatus(str, Enum):
    """Synchronization status of the monitored folder.

    Starts as IDLE and is only mutated by the StatusPoller.
    """

    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"

    @property
    def label(self) -> str:
        """Short text shown by status indicators."""
        return _LABELS[self]


_LABELS = {
    SyncStatus.IDLE: "Syncthing: Idle",
    SyncStatus.SYNCING: "Syncthing: Syncing...",
    SyncStatus.SYNCED: "Syncthing: Synced",
    SyncStatus.ERROR: "Syncthing: Error",
}


def format_status(status: SyncStatus, message: str = "") -> str:
    """Format a status and its detail message for display."""
    if message:
        return f"{status.label} - {message}"
    return status.label
