from __future__ import annotations

import time
from typing import Any, Callable

import pytest
from watchdog.events import FileSystemEventHandler

from dirwatch.watcher.strategies import BlockingStrategy, PollingStrategy


class FakeEmitter:
    def __init__(self) -> None:
        self.alive = True

    def is_alive(self) -> bool:
        return self.alive


class FakeObserver:
    """Stands in for a watchdog observer; tests push raw events by hand."""

    def __init__(self, fail_with: OSError | None = None) -> None:
        self.fail_with = fail_with
        self.handler: FileSystemEventHandler | None = None
        self.path: str | None = None
        self.recursive: bool | None = None
        self.started = False
        self.stopped = False
        self.joined = False
        self.emitters: list[FakeEmitter] = []

    def schedule(self, handler: FileSystemEventHandler, path: str, recursive: bool = False) -> None:
        self.handler = handler
        self.path = path
        self.recursive = recursive

    def start(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.started = True
        self.emitters.append(FakeEmitter())

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout: float | None = None) -> None:
        self.joined = True

    def emit(self, event: Any) -> None:
        assert self.handler is not None
        self.handler.dispatch(event)


class FakeBlockingStrategy(BlockingStrategy):
    def __init__(self, observer: FakeObserver | None = None, health_interval: float = 1.0) -> None:
        super().__init__(health_interval)
        self.observer = observer or FakeObserver()

    def create_observer(self) -> FakeObserver:  # type: ignore[override]
        return self.observer


class FakePollingStrategy(PollingStrategy):
    def __init__(self, interval: float, observer: FakeObserver | None = None) -> None:
        super().__init__(interval)
        self.observer = observer or FakeObserver()

    def create_observer(self) -> FakeObserver:  # type: ignore[override]
        return self.observer


def wait_until(predicate: Callable[[], bool], *, timeout: float = 5.0, interval: float = 0.02) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture()
def wait_for() -> Callable[..., bool]:
    return wait_until
