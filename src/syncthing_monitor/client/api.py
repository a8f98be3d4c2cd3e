"""HTTP client for the Syncthing REST API.

This module provides:
- SyncthingClient: async client for a running Syncthing daemon
- FolderStatus: snapshot of a folder's file counts
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

import httpx

from syncthing_monitor.client.auth import build_auth_headers
from syncthing_monitor.client.decoder import check_status, decode_response
from syncthing_monitor.client.errors import (
    FolderStatusError,
    HttpError,
    SyncthingConnectionError,
    describe_error,
)
from syncthing_monitor.core.config import ConnectionSettings

logger = logging.getLogger(__name__)

VERSION_PATH = "/rest/system/version"
PING_PATH = "/rest/system/ping"
FOLDER_STATUS_PATH = "/rest/db/status"
SCAN_PATH = "/rest/db/scan"


@dataclass
class FolderStatus:
    """File counts from /rest/db/status."""

    in_sync_files: int
    global_files: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FolderStatus:
        """Create from API response dictionary.

        Raises:
            KeyError: If a count is missing.
            TypeError, ValueError: If a count is not a number.
        """
        return cls(
            in_sync_files=_as_count(data["inSyncFiles"]),
            global_files=_as_count(data["globalFiles"]),
        )


def _as_count(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        raise TypeError(f"Not a file count: {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"Not a file count: {value!r}")
    return int(value)


class SyncthingClient:
    """Async HTTP client for a Syncthing daemon.

    Settings are read on every call, so they can be replaced while the
    client is in use. Authentication headers are never cached.
    """

    def __init__(self, settings: ConnectionSettings) -> None:
        """Initialize the client.

        Args:
            settings: Connection settings.
        """
        self._settings = settings
        self._client = httpx.AsyncClient()

    @property
    def settings(self) -> ConnectionSettings:
        """Current connection settings."""
        return self._settings

    @settings.setter
    def settings(self, value: ConnectionSettings) -> None:
        self._settings = value

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> SyncthingClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        settings = self._settings
        logger.debug("%s %s", method, path)
        return await self._client.request(
            method,
            f"{settings.base_url}{path}",
            params=params,
            headers=build_auth_headers(settings),
            timeout=settings.timeout,
        )

    async def probe_version(self) -> Any:
        """Query the daemon version.

        Returns:
            Decoded response, usually containing a "version" key.

        Raises:
            HttpError: On a non-2xx status.
            httpx.HTTPError: On transport failure.
        """
        response = await self._request("GET", VERSION_PATH)
        return decode_response(response)

    async def ping(self) -> None:
        """Check that the daemon is reachable.

        The response body is ignored.

        Raises:
            SyncthingConnectionError: If the daemon cannot be reached or
                answers with an error status.
        """
        try:
            check_status(await self._request("GET", PING_PATH))
        except (HttpError, httpx.HTTPError) as e:
            raise SyncthingConnectionError(
                f"Connection failed: {describe_error(e)}"
            ) from e

    async def get_folder_status(self, folder_id: str) -> FolderStatus | None:
        """Get the file counts of a folder.

        Args:
            folder_id: Syncthing folder ID.

        Returns:
            Folder status, or None if the response could not be interpreted.

        Raises:
            FolderStatusError: If the request fails.
        """
        try:
            response = check_status(
                await self._request("GET", FOLDER_STATUS_PATH, params={"folder": folder_id})
            )
        except HttpError as e:
            raise FolderStatusError(
                f"Folder status error: {e}", status_code=e.status_code
            ) from e
        except httpx.HTTPError as e:
            raise FolderStatusError(f"Folder status error: {describe_error(e)}") from e

        data = decode_response(response)
        if not isinstance(data, dict):
            logger.debug("Unexpected folder status payload: %r", data)
            return None
        try:
            return FolderStatus.from_dict(data)
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.debug("Folder status without usable file counts: %s", e)
            return None

    async def trigger_rescan(self, folder_id: str) -> None:
        """Ask the daemon to rescan a folder.

        The response body is ignored once the status is 2xx.

        Args:
            folder_id: Syncthing folder ID.

        Raises:
            HttpError: On a non-2xx status.
            httpx.HTTPError: On transport failure.
        """
        response = await self._request("POST", SCAN_PATH, params={"folder": folder_id})
        decode_response(response)
        logger.info("Rescan requested for folder %s", folder_id)
