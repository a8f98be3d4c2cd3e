"""Authentication headers for the Syncthing REST API."""

from __future__ import annotations

import base64

from syncthing_monitor.core.config import ConnectionSettings

API_KEY_HEADER = "X-API-Key"


def build_auth_headers(settings: ConnectionSettings) -> dict[str, str]:
    """Build authentication headers for a request.

    An API key always wins over basic credentials. Without either,
    no header is emitted and the request is sent unauthenticated.

    Args:
        settings: Connection settings.

    Returns:
        Header name to value mapping (possibly empty).
    """
    if settings.api_key:
        return {API_KEY_HEADER: settings.api_key}

    if settings.username and settings.password:
        credentials = f"{settings.username}:{settings.password}".encode()
        token = base64.b64encode(credentials).decode("ascii")
        return {"Authorization": f"Basic {token}"}

    return {}
