"""Exceptions raised by the Syncthing client."""

from __future__ import annotations

import httpx


class SyncthingError(Exception):
    """Base exception for Syncthing API errors."""


class HttpError(SyncthingError):
    """The daemon answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = "") -> None:
        super().__init__(f"HTTP {status_code} {reason}".rstrip())
        self.status_code = status_code
        self.reason = reason


class SyncthingConnectionError(SyncthingError):
    """The daemon could not be reached."""


class FolderStatusError(SyncthingError):
    """The folder status query failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# Everything a manual operation must catch to stay non-fatal
REQUEST_ERRORS: tuple[type[Exception], ...] = (
    SyncthingError,
    httpx.HTTPError,
)


def describe_error(error: BaseException) -> str:
    """Get a human-readable message for an error.

    Some transport errors carry no message, in which case the
    exception type name is used.
    """
    return str(error) or type(error).__name__
