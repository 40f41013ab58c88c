"""Platform-ordered notification fallback chain."""
from __future__ import annotations

import logging
import platform
import time
from typing import Sequence

from ..config import WatchSettings
from ..errors import NotificationDeliveryFailed
from ..events import Severity
from ..logger import get_logger, log_event
from .channels import (
    AppleScriptChannel,
    DialogChannel,
    NotificationChannel,
    NotifySendChannel,
    PowerShellToastChannel,
    TrayBalloonChannel,
)


def channels_for_platform(
    system: str | None = None,
    settings: WatchSettings | None = None,
) -> list[NotificationChannel]:
    """Return the fallback order for *system* (a :func:`platform.system` value).

    Native notification first, then the tray balloon, then a modal dialog.
    """

    system = system or platform.system()
    settings = settings or WatchSettings()
    native_options = {"app_name": settings.app_name, "timeout": settings.notify_timeout}
    if system == "Darwin":
        native: NotificationChannel = AppleScriptChannel(**native_options)
    elif system == "Windows":
        native = PowerShellToastChannel(**native_options)
    else:
        native = NotifySendChannel(**native_options)
    return [
        native,
        TrayBalloonChannel(app_name=settings.app_name, lifetime=settings.tray_icon_lifetime),
        DialogChannel(),
    ]


class NotifierChain:
    """Try each channel once, in order, until one delivers the message.

    The order is fixed at construction; ``send`` never raises.
    """

    def __init__(
        self,
        channels: Sequence[NotificationChannel],
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.channels = tuple(channels)
        self.logger = logger or get_logger("notify")
        self._closed = False

    @classmethod
    def for_platform(
        cls,
        system: str | None = None,
        *,
        settings: WatchSettings | None = None,
        logger: logging.Logger | None = None,
    ) -> "NotifierChain":
        return cls(channels_for_platform(system, settings), logger=logger)

    def send(self, title: str, body: str, severity: Severity = Severity.INFO) -> bool:
        started = time.monotonic()
        failures: list[NotificationDeliveryFailed] = []
        for channel in self.channels:
            try:
                delivered = channel.send(title, body, severity)
            except Exception as exc:
                failures.append(NotificationDeliveryFailed(channel.name, repr(exc)))
                continue
            if delivered:
                log_event(
                    self.logger,
                    level=logging.DEBUG,
                    action="notify.delivered",
                    message=title,
                    duration_ms=(time.monotonic() - started) * 1000,
                    extra={"channel": channel.name, "attempts": len(failures) + 1},
                )
                return True
            failures.append(NotificationDeliveryFailed(channel.name, "reported failure"))

        log_event(
            self.logger,
            level=logging.WARNING,
            action="notify.all_channels_failed",
            message=f"Could not deliver notification: {title}",
            duration_ms=(time.monotonic() - started) * 1000,
            extra={"failures": [str(failure) for failure in failures]},
        )
        return False

    def cleanup(self) -> None:
        """Release channel resources such as a standing tray icon. Idempotent."""

        if self._closed:
            return
        self._closed = True
        for channel in self.channels:
            try:
                channel.cleanup()
            except Exception as exc:
                log_event(
                    self.logger,
                    level=logging.WARNING,
                    action="notify.cleanup_failed",
                    message="Channel cleanup raised an exception",
                    extra={"channel": channel.name, "error": repr(exc)},
                )


__all__ = ["NotifierChain", "channels_for_platform"]
