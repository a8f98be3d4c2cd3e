"""Core module - Shared settings and status types."""

from syncthing_monitor.core.config import (
    DEFAULT_BASE_URL,
    DEFAULT_POLL_INTERVAL,
    MIN_POLL_INTERVAL,
    ConfigError,
    ConnectionSettings,
    validate_poll_interval,
)
from syncthing_monitor.core.types import SyncStatus, format_status

__all__ = [
    # Config
    "DEFAULT_BASE_URL",
    "DEFAULT_POLL_INTERVAL",
    "MIN_POLL_INTERVAL",
    "ConfigError",
    "ConnectionSettings",
    "validate_poll_interval",
    # Types
    "SyncStatus",
    "format_status",
]
