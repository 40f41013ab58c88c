"""Tunable defaults for the watcher and notification chain."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_POLL_INTERVAL = 0.2
DEFAULT_NOTIFY_TIMEOUT = 3.0
DEFAULT_TRAY_ICON_LIFETIME = 5.0
# Matches the per-registration event limit after which the OS reports an overflow.
DEFAULT_MAX_PENDING_EVENTS = 512
DEFAULT_HEALTH_CHECK_INTERVAL = 1.0
DEFAULT_MAX_PENDING_NOTIFICATIONS = 4


@dataclass(frozen=True)
class WatchSettings:
    """Timing and sizing knobs shared by sessions, controllers and channels.

    These are empirically chosen defaults rather than precise requirements;
    they are set in code and never read from user configuration.
    """

    poll_interval: float = DEFAULT_POLL_INTERVAL
    notify_timeout: float = DEFAULT_NOTIFY_TIMEOUT
    tray_icon_lifetime: float = DEFAULT_TRAY_ICON_LIFETIME
    max_pending_events: int = DEFAULT_MAX_PENDING_EVENTS
    health_check_interval: float = DEFAULT_HEALTH_CHECK_INTERVAL
    max_pending_notifications: int = DEFAULT_MAX_PENDING_NOTIFICATIONS
    app_name: str = "dirwatch"

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.notify_timeout <= 0:
            raise ValueError("notify_timeout must be positive")
        if self.max_pending_events < 1:
            raise ValueError("max_pending_events must be at least 1")
        if self.health_check_interval <= 0:
            raise ValueError("health_check_interval must be positive")
        if self.max_pending_notifications < 1:
            raise ValueError("max_pending_notifications must be at least 1")


def default_watch_directory() -> Path:
    """Return ``~/Desktop`` when it exists, otherwise the home directory."""

    home = Path.home()
    desktop = home / "Desktop"
    return desktop if desktop.is_dir() else home


__all__ = ["WatchSettings", "default_watch_directory"]
