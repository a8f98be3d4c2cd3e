"""Tests for the background monitor."""

import asyncio
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from syncthing_monitor.client.api import FolderStatus
from syncthing_monitor.client.monitor import SyncthingMonitor
from syncthing_monitor.client.notifications import Notification, NotificationType
from syncthing_monitor.core.config import ConnectionSettings
from syncthing_monitor.core.types import SyncStatus


class StubClient:
    """Syncthing client answering from memory."""

    instances: list["StubClient"] = []

    def __init__(self, settings: ConnectionSettings) -> None:
        self.settings = settings
        self.closed = False
        self.scans: list[str] = []
        StubClient.instances.append(self)

    async def ping(self) -> None:
        pass

    async def get_folder_status(self, folder_id: str) -> FolderStatus:
        return FolderStatus(in_sync_files=3, global_files=3)

    async def trigger_rescan(self, folder_id: str) -> None:
        self.scans.append(folder_id)

    async def probe_version(self) -> Any:
        return {"version": "v1.27.0"}

    async def aclose(self) -> None:
        self.closed = True


def wait_for(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    """Poll a condition until it holds or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture(autouse=True)
def stub_client() -> Iterator[None]:
    """Replace the HTTP client used by the monitor."""
    StubClient.instances.clear()
    with patch("syncthing_monitor.client.monitor.SyncthingClient", StubClient):
        yield


@pytest.fixture
def notices() -> list[Notification]:
    """Collected notifications."""
    return []


@pytest.fixture
def make_monitor(
    notices: list[Notification],
) -> Iterator[Callable[..., SyncthingMonitor]]:
    """Create monitors that are stopped after the test."""
    monitors: list[SyncthingMonitor] = []

    def factory(settings: ConnectionSettings | None = None, **kwargs: Any) -> SyncthingMonitor:
        kwargs.setdefault("notifier", notices.append)
        kwargs.setdefault("startup_delay", 0)
        kwargs.setdefault("rescan_check_delay", 0.05)
        monitor = SyncthingMonitor(
            settings or ConnectionSettings(folder_id="abcd-1234"),
            **kwargs,
        )
        monitors.append(monitor)
        return monitor

    yield factory

    for monitor in monitors:
        monitor.stop()


class TestLifecycle:
    """Tests for starting and stopping the monitor."""

    def test_start_polls(self, make_monitor: Callable[..., SyncthingMonitor]) -> None:
        """Should poll once the startup delay has elapsed."""
        updates: list[tuple[SyncStatus, str]] = []
        monitor = make_monitor(on_status_change=lambda s, m: updates.append((s, m)))

        monitor.start()

        assert monitor.running is True
        assert wait_for(lambda: monitor.status == SyncStatus.SYNCED)
        assert monitor.message == "All files in sync"
        assert (SyncStatus.SYNCED, "All files in sync") in updates

    def test_startup_delay(self, make_monitor: Callable[..., SyncthingMonitor]) -> None:
        """Should not poll before the startup delay."""
        monitor = make_monitor(startup_delay=30)

        monitor.start()

        assert monitor.status == SyncStatus.IDLE

    def test_stop(self, make_monitor: Callable[..., SyncthingMonitor]) -> None:
        """Should stop the thread and close the client."""
        monitor = make_monitor()
        monitor.start()
        wait_for(lambda: monitor.status == SyncStatus.SYNCED)

        monitor.stop()
        monitor.stop()

        assert monitor.running is False
        assert StubClient.instances[0].closed is True

    def test_stop_before_start(self, make_monitor: Callable[..., SyncthingMonitor]) -> None:
        """Should be a no-op when never started."""
        monitor = make_monitor()
        monitor.stop()
        assert monitor.running is False
        assert monitor.status == SyncStatus.IDLE

    def test_commands_require_running_monitor(
        self, make_monitor: Callable[..., SyncthingMonitor]
    ) -> None:
        """Should refuse commands when not running."""
        monitor = make_monitor()
        with pytest.raises(RuntimeError):
            monitor.check_connection()

    def test_commands_after_stop(self, make_monitor: Callable[..., SyncthingMonitor]) -> None:
        """Should refuse commands once stopped."""
        monitor = make_monitor()
        monitor.start()
        monitor.stop()

        with pytest.raises(RuntimeError):
            monitor.restart_polling()

    @pytest.mark.parametrize(
        "step",
        [
            lambda m: m._delayed_start(),
            lambda m: m._restart(),
            lambda m: m._apply_settings(ConnectionSettings(folder_id="other")),
        ],
    )
    def test_loop_steps_require_setup(
        self,
        make_monitor: Callable[..., SyncthingMonitor],
        step: Callable[[SyncthingMonitor], Any],
    ) -> None:
        """Should raise RuntimeError from loop-side steps run before setup."""
        monitor = make_monitor()
        with pytest.raises(RuntimeError, match="not running"):
            asyncio.run(step(monitor))


class TestCommands:
    """Tests for the blocking command wrappers."""

    def test_force_sync(
        self,
        make_monitor: Callable[..., SyncthingMonitor],
        notices: list[Notification],
    ) -> None:
        """Should rescan, notify and check again after the delay."""
        monitor = make_monitor()
        monitor.start()
        wait_for(lambda: monitor.status == SyncStatus.SYNCED)

        result = monitor.force_sync()

        assert result.success is True
        assert StubClient.instances[0].scans == ["abcd-1234"]
        assert [n.message for n in notices] == [
            "Forcing Syncthing rescan...",
            "Syncthing rescan initiated",
        ]
        assert wait_for(lambda: monitor.status == SyncStatus.SYNCED)

    def test_force_sync_without_folder_id(
        self,
        make_monitor: Callable[..., SyncthingMonitor],
        notices: list[Notification],
    ) -> None:
        """Should only show the error notice."""
        monitor = make_monitor(ConnectionSettings())
        monitor.start()

        result = monitor.force_sync()

        assert result.success is False
        assert len(notices) == 1
        assert notices[0].message == "Error: Folder ID not set"
        assert notices[0].type == NotificationType.ERROR

    def test_check_connection(
        self,
        make_monitor: Callable[..., SyncthingMonitor],
        notices: list[Notification],
    ) -> None:
        """Should announce the test and report the version."""
        monitor = make_monitor()
        monitor.start()

        result = monitor.check_connection()

        assert result.version == "v1.27.0"
        assert [n.message for n in notices] == [
            "Testing Syncthing connection...",
            "Connected to Syncthing v1.27.0",
        ]

    def test_restart_polling(
        self,
        make_monitor: Callable[..., SyncthingMonitor],
        notices: list[Notification],
    ) -> None:
        """Should restart polling before the startup delay elapses."""
        monitor = make_monitor(startup_delay=30)
        monitor.start()

        assert monitor.restart_polling() is True
        assert monitor.status == SyncStatus.SYNCED
        assert notices[-1].message == "Sync monitoring restarted"

    def test_restart_without_folder_id(
        self,
        make_monitor: Callable[..., SyncthingMonitor],
        notices: list[Notification],
    ) -> None:
        """Should report the error state instead of restarting."""
        monitor = make_monitor(ConnectionSettings(), startup_delay=30)
        monitor.start()

        assert monitor.restart_polling() is False
        assert monitor.status == SyncStatus.ERROR
        assert notices == []

    def test_update_settings(self, make_monitor: Callable[..., SyncthingMonitor]) -> None:
        """Should hand new settings to the client."""
        monitor = make_monitor()
        monitor.start()
        wait_for(lambda: monitor.status == SyncStatus.SYNCED)

        new_settings = ConnectionSettings(folder_id="other", poll_interval=60)
        monitor.update_settings(new_settings)

        assert monitor.settings is new_settings
        assert StubClient.instances[0].settings is new_settings

    def test_without_notifier(self, make_monitor: Callable[..., SyncthingMonitor]) -> None:
        """Should run commands with notifications disabled."""
        monitor = make_monitor(notifier=None)
        monitor.start()

        assert monitor.check_connection().success is True


class TestDeleteConflictFiles:
    """Tests for the conflict cleanup command."""

    def test_no_folder_path(
        self,
        make_monitor: Callable[..., SyncthingMonitor],
        notices: list[Notification],
    ) -> None:
        """Should report a missing folder path."""
        monitor = make_monitor()

        assert monitor.delete_conflict_files() is None
        assert notices[0].message == "Error: Folder path not set"
        assert notices[0].type == NotificationType.ERROR

    def test_deletes_conflicts(
        self,
        make_monitor: Callable[..., SyncthingMonitor],
        notices: list[Notification],
        tmp_path: Path,
    ) -> None:
        """Should delete conflict copies and report the count."""
        (tmp_path / "a.md").write_text("a")
        (tmp_path / "a.sync-conflict-20230101-120000-ABC.md").write_text("b")
        monitor = make_monitor(ConnectionSettings(folder_path=str(tmp_path)))

        result = monitor.delete_conflict_files()

        assert result is not None
        assert result.deleted == 1
        assert [n.message for n in notices] == [
            "Searching for sync conflict files...",
            "Deleted 1 sync conflict files",
        ]

    def test_no_conflicts(
        self,
        make_monitor: Callable[..., SyncthingMonitor],
        notices: list[Notification],
        tmp_path: Path,
    ) -> None:
        """Should say when nothing was found."""
        monitor = make_monitor(ConnectionSettings(folder_path=str(tmp_path)))

        monitor.delete_conflict_files()

        assert notices[-1].message == "No sync conflict files found"

    def test_missing_folder(
        self,
        make_monitor: Callable[..., SyncthingMonitor],
        notices: list[Notification],
        tmp_path: Path,
    ) -> None:
        """Should report an unreadable folder."""
        monitor = make_monitor(ConnectionSettings(folder_path=str(tmp_path / "missing")))

        assert monitor.delete_conflict_files() is None
        assert notices[-1].type == NotificationType.ERROR
        assert notices[-1].message.startswith("Error deleting sync conflict files:")
