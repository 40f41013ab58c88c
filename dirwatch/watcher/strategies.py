"""Event retrieval strategies for :class:`~dirwatch.watcher.session.WatchSession`.

A strategy decides two things, once per session: which watchdog observer
registers the OS watch, and how the session loop takes raw events off its
queue. Native observers deliver promptly, so the loop blocks, waking once
per health-check interval so the session can notice a dead OS watch. On
macOS native delivery is delayed or dropped under a blocking wait, so the
loop polls on a short fixed interval against a polling observer instead.
"""
from __future__ import annotations

import sys
from queue import Empty, Queue

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from ..config import DEFAULT_HEALTH_CHECK_INTERVAL, WatchSettings


class RetrievalStrategy:
    """Base protocol for raw event retrieval."""

    name = "base"

    def create_observer(self) -> BaseObserver:  # pragma: no cover - interface
        raise NotImplementedError

    def next_item(self, queue: Queue) -> object | None:  # pragma: no cover - interface
        """Return the next raw item, or ``None`` when nothing arrived in time."""

        raise NotImplementedError


class BlockingStrategy(RetrievalStrategy):
    """Wait for the next event from a native observer.

    The wait gives up after ``health_interval`` seconds and returns ``None``.
    """

    name = "blocking"

    def __init__(self, health_interval: float = DEFAULT_HEALTH_CHECK_INTERVAL) -> None:
        if health_interval <= 0:
            raise ValueError("health_interval must be positive")
        self.health_interval = health_interval

    def create_observer(self) -> BaseObserver:
        return Observer()

    def next_item(self, queue: Queue) -> object | None:
        try:
            return queue.get(timeout=self.health_interval)
        except Empty:
            return None


class PollingStrategy(RetrievalStrategy):
    """Check for available events every ``interval`` seconds."""

    name = "polling"

    def __init__(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval

    def create_observer(self) -> BaseObserver:
        return PollingObserver(timeout=self.interval)

    def next_item(self, queue: Queue) -> object | None:
        try:
            return queue.get(timeout=self.interval)
        except Empty:
            return None


def select_strategy(
    platform: str | None = None,
    settings: WatchSettings | None = None,
) -> RetrievalStrategy:
    """Pick the retrieval strategy for *platform* (defaults to ``sys.platform``)."""

    platform = platform or sys.platform
    settings = settings or WatchSettings()
    if platform == "darwin":
        return PollingStrategy(settings.poll_interval)
    return BlockingStrategy(settings.health_check_interval)


__all__ = [
    "BlockingStrategy",
    "PollingStrategy",
    "RetrievalStrategy",
    "select_strategy",
]
