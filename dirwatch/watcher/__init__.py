"""Watcher subsystem for dirwatch."""
from ..events import (
    ChangeEvent,
    ChangeKind,
    SessionState,
    Severity,
    WatchFault,
    WatchOverflow,
    WatchRecord,
)
from .strategies import BlockingStrategy, PollingStrategy, RetrievalStrategy, select_strategy
from .session import WatchSession
from .controller import WatchController

__all__ = [
    "BlockingStrategy",
    "ChangeEvent",
    "ChangeKind",
    "PollingStrategy",
    "RetrievalStrategy",
    "SessionState",
    "Severity",
    "WatchController",
    "WatchFault",
    "WatchOverflow",
    "WatchRecord",
    "WatchSession",
    "select_strategy",
]
