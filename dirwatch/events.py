"""Event and record types shared by the watcher and notification layers."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Union
import time


class ChangeKind(Enum):
    """Kinds of change reported for a direct child of the watched directory."""

    CREATED = auto()
    DELETED = auto()
    MODIFIED = auto()


class Severity(Enum):
    """How prominently a notification should be shown."""

    INFO = auto()
    WARNING = auto()
    ERROR = auto()

    @classmethod
    def for_kind(cls, kind: ChangeKind) -> "Severity":
        if kind is ChangeKind.DELETED:
            return cls.WARNING
        return cls.INFO


class SessionState(Enum):
    """Lifecycle of a :class:`~dirwatch.watcher.session.WatchSession`."""

    IDLE = auto()
    STARTING = auto()
    RUNNING = auto()
    STOPPING = auto()
    STOPPED = auto()


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A single change to an entry of the watched directory."""

    path: str
    kind: ChangeKind
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class WatchOverflow:
    """Raw events were dropped; the listing must be resynchronized."""

    directory: Path
    dropped: int = 0


@dataclass(frozen=True, slots=True)
class WatchFault:
    """The session stopped because of an unrecoverable error."""

    directory: Path
    message: str


WatchRecord = Union[ChangeEvent, WatchOverflow, WatchFault]
RecordSink = Callable[[WatchRecord], None]


__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "RecordSink",
    "SessionState",
    "Severity",
    "WatchFault",
    "WatchOverflow",
    "WatchRecord",
]
