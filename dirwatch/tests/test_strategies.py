from __future__ import annotations

import time
from queue import Queue

import pytest
from watchdog.observers.polling import PollingObserver

from dirwatch.config import WatchSettings
from dirwatch.watcher.strategies import BlockingStrategy, PollingStrategy, select_strategy


def test_select_strategy_polls_on_macos() -> None:
    strategy = select_strategy("darwin", WatchSettings(poll_interval=0.15))
    assert isinstance(strategy, PollingStrategy)
    assert strategy.interval == 0.15


@pytest.mark.parametrize("platform", ["linux", "win32"])
def test_select_strategy_blocks_elsewhere(platform: str) -> None:
    assert isinstance(select_strategy(platform), BlockingStrategy)


def test_polling_strategy_returns_none_after_interval() -> None:
    strategy = PollingStrategy(0.05)
    queue: Queue[object] = Queue()

    started = time.monotonic()
    assert strategy.next_item(queue) is None
    assert time.monotonic() - started >= 0.04


def test_polling_strategy_returns_available_items() -> None:
    strategy = PollingStrategy(1.0)
    queue: Queue[object] = Queue()
    queue.put("event")

    assert strategy.next_item(queue) == "event"


def test_polling_strategy_uses_polling_observer() -> None:
    observer = PollingStrategy(0.2).create_observer()
    assert isinstance(observer, PollingObserver)


def test_polling_strategy_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        PollingStrategy(0)


def test_blocking_strategy_waits_for_item() -> None:
    queue: Queue[object] = Queue()
    queue.put("event")
    assert BlockingStrategy().next_item(queue) == "event"


def test_blocking_strategy_wakes_after_health_interval() -> None:
    strategy = BlockingStrategy(health_interval=0.05)

    started = time.monotonic()
    assert strategy.next_item(Queue()) is None
    assert time.monotonic() - started < 1.0


def test_select_strategy_passes_health_interval() -> None:
    strategy = select_strategy("linux", WatchSettings(health_check_interval=0.3))
    assert isinstance(strategy, BlockingStrategy)
    assert strategy.health_interval == 0.3
