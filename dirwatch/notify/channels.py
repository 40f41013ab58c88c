"""Concrete notification channels.

Every channel honours the same contract: ``send(title, body, severity)``
returns ``True`` once the message was handed to the OS and ``False``
otherwise. Subclasses implement ``_deliver`` and signal failure by raising
:class:`~dirwatch.errors.NotificationDeliveryFailed`; ``send`` turns that into
a logged ``False`` so the chain can fall through to the next channel.
"""
from __future__ import annotations

import logging
import subprocess
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable
from xml.sax.saxutils import escape as xml_escape

from plyer import notification as plyer_notification

from ..config import DEFAULT_NOTIFY_TIMEOUT, DEFAULT_TRAY_ICON_LIFETIME
from ..errors import NotificationDeliveryFailed
from ..events import Severity
from ..logger import get_logger, log_event

Runner = Callable[..., Any]


class NotificationChannel:
    """Base protocol for a single delivery mechanism."""

    name = "base"

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("notify")

    def send(self, title: str, body: str, severity: Severity = Severity.INFO) -> bool:
        try:
            self._deliver(title, body, severity)
        except NotificationDeliveryFailed as exc:
            log_event(
                self.logger,
                level=logging.DEBUG,
                action="notify.channel_failed",
                message=str(exc),
                extra={"channel": self.name, "reason": exc.reason},
            )
            return False
        return True

    def cleanup(self) -> None:
        """Release resources held between calls."""

    def _deliver(self, title: str, body: str, severity: Severity) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class CommandChannel(NotificationChannel):
    """Deliver through an OS-provided command with a hard timeout."""

    def __init__(
        self,
        *,
        app_name: str = "dirwatch",
        timeout: float = DEFAULT_NOTIFY_TIMEOUT,
        runner: Runner | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger=logger)
        self.app_name = app_name
        self.timeout = timeout
        self._runner = runner or subprocess.run

    def build_command(self, title: str, body: str, severity: Severity) -> list[str]:  # pragma: no cover - interface
        raise NotImplementedError

    def _deliver(self, title: str, body: str, severity: Severity) -> None:
        command = self.build_command(title, body, severity)
        try:
            self._runner(command, check=True, capture_output=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as exc:
            raise NotificationDeliveryFailed(self.name, f"timed out after {self.timeout}s") from exc
        except subprocess.CalledProcessError as exc:
            raise NotificationDeliveryFailed(self.name, f"exit status {exc.returncode}") from exc
        except OSError as exc:
            raise NotificationDeliveryFailed(self.name, f"{command[0]} unavailable ({exc})") from exc


def applescript_quote(value: str) -> str:
    """Return *value* as a double-quoted AppleScript string literal."""

    cleaned = value.replace("\r", " ").replace("\n", " ")
    return '"' + cleaned.replace("\\", "\\\\").replace('"', '\\"') + '"'


def powershell_quote(value: str) -> str:
    """Return *value* as a single-quoted PowerShell literal (no interpolation)."""

    return "'" + value.replace("'", "''") + "'"


class AppleScriptChannel(CommandChannel):
    """macOS Notification Center through ``osascript``."""

    name = "applescript"

    def build_command(self, title: str, body: str, severity: Severity) -> list[str]:
        script = (
            f"display notification {applescript_quote(body)} "
            f"with title {applescript_quote(self.app_name)} "
            f"subtitle {applescript_quote(title)}"
        )
        if severity is not Severity.INFO:
            script += ' sound name "Basso"'
        return ["osascript", "-e", script]


_URGENCY = {
    Severity.INFO: "low",
    Severity.WARNING: "normal",
    Severity.ERROR: "critical",
}


class NotifySendChannel(CommandChannel):
    """freedesktop notifications through ``notify-send``."""

    name = "notify-send"

    def build_command(self, title: str, body: str, severity: Severity) -> list[str]:
        return ["notify-send", "-u", _URGENCY[severity], "-a", self.app_name, "--", title, body]


_TOAST_TEMPLATE = (
    '<toast><visual><binding template="ToastText02">'
    '<text id="1">{title}</text><text id="2">{body}</text>'
    "</binding></visual></toast>"
)
_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


class PowerShellToastChannel(CommandChannel):
    """Windows toast notifications through PowerShell."""

    name = "powershell-toast"

    def build_command(self, title: str, body: str, severity: Severity) -> list[str]:
        toast = _TOAST_TEMPLATE.format(
            title=xml_escape(title, _XML_ENTITIES),
            body=xml_escape(body, _XML_ENTITIES),
        )
        script = "; ".join(
            [
                "[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null",
                "[Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, ContentType = WindowsRuntime] | Out-Null",
                "$xml = New-Object Windows.Data.Xml.Dom.XmlDocument",
                f"$xml.LoadXml({powershell_quote(toast)})",
                "$toast = [Windows.UI.Notifications.ToastNotification]::new($xml)",
                "[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("
                f"{powershell_quote(self.app_name)}).Show($toast)",
            ]
        )
        return ["powershell", "-NoProfile", "-NonInteractive", "-Command", script]


@dataclass
class _TrayIcon:
    """Transient icon handle: the balloons it shows and its removal timer."""

    balloons: list[threading.Thread] = field(default_factory=list)
    timer: threading.Timer | None = None

    def live_balloons(self) -> list[threading.Thread]:
        return [balloon for balloon in self.balloons if balloon.is_alive()]


class TrayBalloonChannel(NotificationChannel):
    """System tray balloon through :mod:`plyer`.

    plyer shows each balloon on a blocking call, so every message runs on its
    own display thread owned by the current icon. The first message creates
    the icon; each message pushes its removal back to ``lifetime`` seconds
    from now. Removing the icon, on the timer or through :meth:`cleanup`, waits
    up to ``removal_grace`` seconds for its balloons to close.
    """

    name = "tray"

    def __init__(
        self,
        *,
        app_name: str = "dirwatch",
        lifetime: float = DEFAULT_TRAY_ICON_LIFETIME,
        startup_grace: float = 0.5,
        removal_grace: float = 1.0,
        notify: Callable[..., Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger=logger)
        self.app_name = app_name
        self.lifetime = lifetime
        self.startup_grace = startup_grace
        self.removal_grace = removal_grace
        self._notify = notify or plyer_notification.notify
        self._lock = threading.Lock()
        self._icon: _TrayIcon | None = None

    @property
    def has_icon(self) -> bool:
        return self._icon is not None

    @property
    def active_balloons(self) -> int:
        icon = self._icon
        return len(icon.live_balloons()) if icon is not None else 0

    def _deliver(self, title: str, body: str, severity: Severity) -> None:
        errors: list[BaseException] = []
        shown = threading.Event()

        def display() -> None:
            try:
                self._notify(
                    title=title,
                    message=body,
                    app_name=self.app_name,
                    timeout=max(int(self.lifetime), 1),
                )
            except Exception as exc:
                errors.append(exc)
            finally:
                shown.set()

        balloon = threading.Thread(target=display, name="dirwatch-tray", daemon=True)
        with self._lock:
            if self._icon is None:
                self._icon = _TrayIcon()
            icon = self._icon
            icon.balloons = icon.live_balloons()
            icon.balloons.append(balloon)
            self._schedule_removal(icon)
            balloon.start()

        # Only an exception raised within the startup grace counts as failure.
        shown.wait(self.startup_grace)
        if errors:
            self._remove_icon(icon)
            raise NotificationDeliveryFailed(self.name, repr(errors[0]))

    def cleanup(self) -> None:
        icon = self._icon
        if icon is not None:
            self._remove_icon(icon)

    def _schedule_removal(self, icon: _TrayIcon) -> None:
        if icon.timer is not None:
            icon.timer.cancel()
        icon.timer = threading.Timer(self.lifetime, self._remove_icon, args=(icon,))
        icon.timer.daemon = True
        icon.timer.start()

    def _remove_icon(self, icon: _TrayIcon) -> None:
        with self._lock:
            if self._icon is not icon:
                return
            self._icon = None
            if icon.timer is not None:
                icon.timer.cancel()
            icon.timer = None

        deadline = time.monotonic() + self.removal_grace
        for balloon in icon.balloons:
            if balloon is not threading.current_thread():
                balloon.join(max(deadline - time.monotonic(), 0))
        lingering = len(icon.live_balloons())
        if lingering:
            log_event(
                self.logger,
                level=logging.DEBUG,
                action="notify.tray_balloon_lingering",
                message="Tray balloons still open after icon removal",
                extra={"balloons": lingering},
            )


DialogPresenter = Callable[[Severity, str, str], None]

# Tk aborts the process instead of raising when started off the main thread here.
_MAIN_THREAD_ONLY = frozenset({"darwin"})


def _show_messagebox(severity: Severity, title: str, body: str) -> None:
    if sys.platform in _MAIN_THREAD_ONLY and threading.current_thread() is not threading.main_thread():
        raise NotificationDeliveryFailed("dialog", f"Tk dialogs need the main thread on {sys.platform}")
    try:
        import tkinter
        from tkinter import messagebox
    except ImportError as exc:
        raise NotificationDeliveryFailed("dialog", "tkinter is not installed") from exc

    show = {
        Severity.INFO: messagebox.showinfo,
        Severity.WARNING: messagebox.showwarning,
        Severity.ERROR: messagebox.showerror,
    }[severity]
    try:
        root = tkinter.Tk()
    except tkinter.TclError as exc:
        raise NotificationDeliveryFailed("dialog", f"no display ({exc})") from exc
    try:
        root.withdraw()
        root.attributes("-topmost", True)
        show(title, body, parent=root)
    except tkinter.TclError as exc:
        raise NotificationDeliveryFailed("dialog", str(exc)) from exc
    finally:
        root.destroy()


class DialogChannel(NotificationChannel):
    """Modal message box; the last resort in every chain."""

    name = "dialog"

    def __init__(
        self,
        *,
        presenter: DialogPresenter | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(logger=logger)
        self._presenter = presenter or _show_messagebox

    def _deliver(self, title: str, body: str, severity: Severity) -> None:
        self._presenter(severity, title, body)


__all__ = [
    "AppleScriptChannel",
    "CommandChannel",
    "DialogChannel",
    "NotificationChannel",
    "NotifySendChannel",
    "PowerShellToastChannel",
    "TrayBalloonChannel",
    "applescript_quote",
    "powershell_quote",
]
