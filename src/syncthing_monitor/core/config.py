"""Connection settings for syncthing_monitor.

This module defines the typed settings used by the Syncthing client, the
poller and the command line host, together with their validation rules.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8384"
DEFAULT_POLL_INTERVAL = 10
MIN_POLL_INTERVAL = 5
DEFAULT_TIMEOUT = 30.0

# camelCase keys accepted from older settings files
LEGACY_KEYS = {
    "syncthingUrl": "base_url",
    "syncthingApiKey": "api_key",
    "syncthingUsername": "username",
    "syncthingPassword": "password",
    "folderId": "folder_id",
    "pollInterval": "poll_interval",
}

_STRING_FIELDS = ("base_url", "api_key", "username", "password", "folder_id")


class ConfigError(Exception):
    """Invalid or unreadable configuration."""


def _parse_int(value: Any) -> int | None:
    """Parse an integer from an int, integral float or numeric string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def validate_poll_interval(value: Any) -> int:
    """Validate a poll interval.

    Args:
        value: Interval in seconds (int or numeric string).

    Returns:
        The interval as an int.

    Raises:
        ConfigError: If the value is not an integer or below the minimum.
    """
    interval = _parse_int(value)
    if interval is None:
        raise ConfigError(f"Poll interval must be an integer, got {value!r}")
    if interval < MIN_POLL_INTERVAL:
        raise ConfigError(
            f"Poll interval must be at least {MIN_POLL_INTERVAL} seconds, got {interval}"
        )
    return interval


@dataclass
class ConnectionSettings:
    """Settings for connecting to a Syncthing daemon.

    Attributes:
        base_url: Base URL of the Syncthing GUI/REST API.
        api_key: API key. Takes precedence over username/password.
        username: GUI username for basic authentication.
        password: GUI password for basic authentication.
        folder_id: ID of the Syncthing folder to monitor.
        poll_interval: Seconds between status checks (minimum 5).
        folder_path: Local path of the synced folder, if known.
        timeout: Request timeout in seconds.
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    username: str = ""
    password: str = ""
    folder_id: str = ""
    poll_interval: int = DEFAULT_POLL_INTERVAL
    folder_path: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        """Normalize the URL and validate the poll interval."""
        self.base_url = self.base_url.strip().rstrip("/")
        self.poll_interval = validate_poll_interval(self.poll_interval)
        if self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}")

    @property
    def has_api_key(self) -> bool:
        """Check if an API key is configured."""
        return bool(self.api_key)

    @property
    def has_basic_auth(self) -> bool:
        """Check if both username and password are configured."""
        return bool(self.username and self.password)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ConnectionSettings:
        """Load settings from saved data, falling back to defaults per field.

        Out-of-range poll intervals are clamped to the minimum and
        unparsable values are replaced by their default; both are logged.

        Args:
            data: Previously saved settings, or None.

        Returns:
            Validated settings.
        """
        values: dict[str, Any] = {}
        known = {f.name for f in fields(cls)}

        for key, value in (data or {}).items():
            name = LEGACY_KEYS.get(key, key)
            if name not in known:
                logger.debug("Ignoring unknown setting %r", key)
                continue
            values[name] = value

        for name in _STRING_FIELDS:
            if name in values and not isinstance(values[name], str):
                logger.warning("Ignoring invalid %s setting: %r", name, values[name])
                del values[name]

        if "poll_interval" in values:
            values["poll_interval"] = _coerce_poll_interval(values["poll_interval"])

        if "folder_path" in values:
            folder_path = values["folder_path"]
            if folder_path is not None and not isinstance(folder_path, str):
                logger.warning("Ignoring invalid folder_path setting: %r", folder_path)
                values["folder_path"] = None
            elif not folder_path:
                values["folder_path"] = None

        if "timeout" in values:
            timeout = values["timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0:
                logger.warning("Ignoring invalid timeout setting: %r", timeout)
                del values["timeout"]

        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted form."""
        return asdict(self)


def _coerce_poll_interval(value: Any) -> int:
    """Coerce a saved poll interval into the allowed range."""
    interval = _parse_int(value)
    if interval is None:
        logger.warning(
            "Invalid poll interval %r, using default of %d seconds",
            value,
            DEFAULT_POLL_INTERVAL,
        )
        return DEFAULT_POLL_INTERVAL

    if interval < MIN_POLL_INTERVAL:
        logger.warning(
            "Poll interval %d is below the minimum, using %d seconds",
            interval,
            MIN_POLL_INTERVAL,
        )
        return MIN_POLL_INTERVAL

    return interval
