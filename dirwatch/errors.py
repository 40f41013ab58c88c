"""Exception hierarchy for dirwatch."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(eq=False)
class DirWatchError(Exception):
    """Base class for every error raised by the watcher core."""

    message: str
    path: Path | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message}: {self.path}"


class InvalidTarget(DirWatchError):
    """The requested watch target is not an existing directory."""


class WatchUnavailable(DirWatchError):
    """The OS refused to register a watch on the directory."""


class WatchLoopFault(DirWatchError):
    """The retrieval loop hit an unrecoverable error after it was running."""


class NotificationDeliveryFailed(DirWatchError):
    """A single notification channel could not deliver a message."""

    def __init__(self, channel: str, reason: str) -> None:
        super().__init__(f"{channel} channel failed: {reason}")
        self.channel = channel
        self.reason = reason


__all__ = [
    "DirWatchError",
    "InvalidTarget",
    "NotificationDeliveryFailed",
    "WatchLoopFault",
    "WatchUnavailable",
]
