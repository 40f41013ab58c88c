"""dirwatch package exports."""

from .cli import main as cli_main
from .errors import InvalidTarget, WatchUnavailable
from .events import ChangeEvent, ChangeKind, Severity
from .notify import NotifierChain
from .watcher import WatchController, WatchSession

__all__ = [
    "cli_main",
    "ChangeEvent",
    "ChangeKind",
    "InvalidTarget",
    "NotifierChain",
    "Severity",
    "WatchController",
    "WatchSession",
    "WatchUnavailable",
]
