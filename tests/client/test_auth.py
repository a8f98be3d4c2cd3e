"""Tests for authentication headers and client errors."""

import base64

import httpx

from syncthing_monitor.client.auth import API_KEY_HEADER, build_auth_headers
from syncthing_monitor.client.errors import (
    REQUEST_ERRORS,
    FolderStatusError,
    HttpError,
    SyncthingConnectionError,
    SyncthingError,
    describe_error,
)
from syncthing_monitor.core.config import ConnectionSettings


class TestBuildAuthHeaders:
    """Tests for build_auth_headers."""

    def test_api_key(self) -> None:
        """Should send the API key header."""
        settings = ConnectionSettings(api_key="secret")
        assert build_auth_headers(settings) == {API_KEY_HEADER: "secret"}

    def test_api_key_wins_over_basic(self) -> None:
        """Should ignore username/password when an API key is set."""
        settings = ConnectionSettings(api_key="secret", username="u", password="p")
        headers = build_auth_headers(settings)
        assert headers == {"X-API-Key": "secret"}
        assert "Authorization" not in headers

    def test_basic_auth(self) -> None:
        """Should encode username:password as basic credentials."""
        settings = ConnectionSettings(username="alice", password="pa:ss")
        headers = build_auth_headers(settings)
        token = headers["Authorization"].removeprefix("Basic ")
        assert base64.b64decode(token).decode() == "alice:pa:ss"

    def test_basic_auth_non_ascii(self) -> None:
        """Should encode credentials as UTF-8."""
        settings = ConnectionSettings(username="élodie", password="mot de passe")
        token = build_auth_headers(settings)["Authorization"].removeprefix("Basic ")
        assert base64.b64decode(token).decode("utf-8") == "élodie:mot de passe"

    def test_username_only(self) -> None:
        """Should send no header with only a username."""
        assert build_auth_headers(ConnectionSettings(username="alice")) == {}

    def test_password_only(self) -> None:
        """Should send no header with only a password."""
        assert build_auth_headers(ConnectionSettings(password="secret")) == {}

    def test_no_credentials(self) -> None:
        """Should send no header without credentials."""
        assert build_auth_headers(ConnectionSettings()) == {}


class TestErrors:
    """Tests for client exceptions."""

    def test_http_error_message(self) -> None:
        """Should include status code and reason."""
        error = HttpError(404, "Not Found")
        assert str(error) == "HTTP 404 Not Found"
        assert error.status_code == 404
        assert error.reason == "Not Found"

    def test_http_error_without_reason(self) -> None:
        """Should not leave a trailing space."""
        assert str(HttpError(599)) == "HTTP 599"

    def test_hierarchy(self) -> None:
        """Should derive every client error from SyncthingError."""
        assert issubclass(HttpError, SyncthingError)
        assert issubclass(SyncthingConnectionError, SyncthingError)
        assert issubclass(FolderStatusError, SyncthingError)

    def test_folder_status_error_code(self) -> None:
        """Should carry the HTTP status when known."""
        assert FolderStatusError("boom", status_code=500).status_code == 500
        assert FolderStatusError("boom").status_code is None

    def test_request_errors_cover_transport(self) -> None:
        """Should catch both client and transport errors."""
        assert isinstance(HttpError(500), REQUEST_ERRORS)
        assert isinstance(httpx.ConnectError("refused"), REQUEST_ERRORS)

    def test_describe_error(self) -> None:
        """Should prefer the message, then the type name."""
        assert describe_error(ValueError("bad")) == "bad"
        assert describe_error(httpx.ReadTimeout("")) == "ReadTimeout"
