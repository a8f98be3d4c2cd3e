"""Transient desktop notices.

Manual operations (force sync, connection test, conflict cleanup) report
their outcome through short-lived notices. Each supported platform maps a
notice to one command line:
- Windows: toast through PowerShell
- macOS: osascript ``display notification``
- Linux: notify-send
"""

from __future__ import annotations

import logging
import platform
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from xml.sax.saxutils import escape

logger = logging.getLogger(__name__)

APP_NAME = "Syncthing Monitor"
SEND_TIMEOUT = 10.0


class NotificationType(Enum):
    """Severity of a notice."""

    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A notice to display."""

    title: str
    message: str
    type: NotificationType = NotificationType.INFO

    @classmethod
    def info(cls, message: str) -> Notification:
        return cls(title=APP_NAME, message=message)

    @classmethod
    def error(cls, message: str) -> Notification:
        return cls(title=f"{APP_NAME} - Error", message=message, type=NotificationType.ERROR)


_TOAST_SCRIPT = (
    "[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, "
    "ContentType = WindowsRuntime] > $null; "
    "$doc = [Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, "
    "ContentType = WindowsRuntime]::new(); "
    "$doc.LoadXml('<toast><visual><binding template=\"ToastText02\">"
    "<text id=\"1\">{title}</text><text id=\"2\">{message}</text>"
    "</binding></visual></toast>'); "
    "[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier('{app}')"
    ".Show([Windows.UI.Notifications.ToastNotification]::new($doc))"
)


def _powershell_literal(text: str) -> str:
    """Make text safe inside a single-quoted PowerShell string of toast XML."""
    return escape(text).replace("'", "''")


def _applescript_literal(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def windows_command(notification: Notification) -> list[str]:
    script = _TOAST_SCRIPT.format(
        title=_powershell_literal(notification.title),
        message=_powershell_literal(notification.message),
        app=_powershell_literal(APP_NAME),
    )
    return ["powershell", "-NoProfile", "-ExecutionPolicy", "Bypass", "-Command", script]


def macos_command(notification: Notification) -> list[str]:
    script = (
        f"display notification {_applescript_literal(notification.message)} "
        f"with title {_applescript_literal(notification.title)}"
    )
    return ["osascript", "-e", script]


def linux_command(notification: Notification) -> list[str]:
    urgency = "critical" if notification.type is NotificationType.ERROR else "normal"
    return [
        "notify-send",
        f"--urgency={urgency}",
        f"--app-name={APP_NAME}",
        notification.title,
        notification.message,
    ]


COMMAND_BUILDERS: dict[str, Callable[[Notification], list[str]]] = {
    "Windows": windows_command,
    "Darwin": macos_command,
    "Linux": linux_command,
}


def send_notification(notification: Notification) -> bool:
    """Show a notice with the platform's native tool.

    Args:
        notification: The notice to show.

    Returns:
        True if the tool ran successfully, False if it failed or the
        platform has no notice support.
    """
    system = platform.system()
    build = COMMAND_BUILDERS.get(system)
    if build is None:
        logger.warning("Notifications not supported on %s", system)
        return False

    try:
        subprocess.run(
            build(notification),
            capture_output=True,
            check=True,
            timeout=SEND_TIMEOUT,
            creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Notification failed on %s: %s", system, e)
        return False
    return True
