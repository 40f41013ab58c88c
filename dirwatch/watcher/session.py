"""A single non-recursive watch on one directory, run on its own thread."""
from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers.api import BaseObserver

from ..config import WatchSettings
from ..errors import WatchUnavailable
from ..events import (
    ChangeEvent,
    ChangeKind,
    RecordSink,
    SessionState,
    WatchFault,
    WatchOverflow,
    WatchRecord,
)
from ..logger import get_logger, log_event
from .strategies import RetrievalStrategy, select_strategy

_KIND_BY_EVENT_TYPE = {
    EVENT_TYPE_CREATED: ChangeKind.CREATED,
    EVENT_TYPE_DELETED: ChangeKind.DELETED,
    EVENT_TYPE_MODIFIED: ChangeKind.MODIFIED,
}

_Wake = object()


class _QueueingHandler(FileSystemEventHandler):
    """Hands every raw watchdog event to the owning session."""

    def __init__(self, session: "WatchSession") -> None:
        super().__init__()
        self._session = session

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._session._enqueue(event)


class WatchSession:
    """Watch the direct children of one directory and report changes to *sink*.

    The session is its own handle: :meth:`start` registers the OS watch and
    launches the retrieval loop, :meth:`stop` tears both down and only returns
    once nothing is left running. Every outcome of the loop, including a
    terminal failure, reaches *sink* as a :data:`WatchRecord`; exceptions never
    cross the thread boundary. A session runs at most once.
    """

    def __init__(
        self,
        sink: RecordSink,
        *,
        strategy: RetrievalStrategy | None = None,
        settings: WatchSettings | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._sink = sink
        self._settings = settings or WatchSettings()
        self.strategy = strategy or select_strategy(settings=self._settings)
        self.logger = logger or get_logger("session")
        self.directory: Path | None = None

        self._queue: Queue[Any] = Queue(maxsize=self._settings.max_pending_events)
        self._overflowed = threading.Event()
        self._dropped = 0
        self._overflow_lock = threading.Lock()
        self._cancelled = threading.Event()
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._observer: BaseObserver | None = None
        self._worker: threading.Thread | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SessionState.RUNNING and not self._cancelled.is_set()

    def start(self, directory: str | Path) -> "WatchSession":
        """Register the watch on *directory* and start the retrieval loop.

        Raises :class:`~dirwatch.errors.WatchUnavailable` when the path is not an
        existing directory or the OS refuses the registration; the session is
        then ``STOPPED``.
        """

        path = Path(directory).expanduser()
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise RuntimeError(f"Session cannot be started from state {self._state.name}")
            self._state = SessionState.STARTING

            if not path.exists():
                self._abort_start()
                raise WatchUnavailable("Directory does not exist", path)
            if not path.is_dir():
                self._abort_start()
                raise WatchUnavailable("Not a directory", path)

            path = path.resolve()
            self.directory = path
            observer = self.strategy.create_observer()
            try:
                observer.schedule(_QueueingHandler(self), str(path), recursive=False)
                observer.start()
            except OSError as exc:
                # The observer thread never started, so stop() only drops the emitters.
                observer.stop()
                self._abort_start()
                log_event(
                    self.logger,
                    level=logging.WARNING,
                    action="session.register_failed",
                    message="OS refused the directory watch",
                    path=path,
                    extra={"error": repr(exc)},
                )
                raise WatchUnavailable(f"Cannot watch directory ({exc.strerror or exc})", path) from exc

            self._observer = observer
            self._worker = threading.Thread(
                target=self._run,
                name=f"WatchSession[{path.name or path}]",
                daemon=True,
            )
            self._state = SessionState.RUNNING
            self._worker.start()

        log_event(
            self.logger,
            level=logging.INFO,
            action="session.started",
            message="Watching directory",
            path=path,
            extra={"strategy": self.strategy.name},
        )
        return self

    def stop(self) -> None:
        """Cancel the loop and release the OS watch. Safe to call repeatedly."""

        with self._lock:
            state = self._state
            if state is SessionState.IDLE:
                self._state = SessionState.STOPPED
                self._stopped.set()
                return
            owner = state is SessionState.RUNNING
            if owner:
                self._state = SessionState.STOPPING
                self._cancelled.set()

        if not owner:
            if not self._on_worker_thread():
                self._stopped.wait()
            return

        self._wake()
        self._release_observer()
        worker = self._worker
        if worker is not None and not self._on_worker_thread():
            worker.join()

        with self._lock:
            self._state = SessionState.STOPPED
        self._stopped.set()
        log_event(
            self.logger,
            level=logging.INFO,
            action="session.stopped",
            message="Stopped watching directory",
            path=self.directory,
        )

    def _abort_start(self) -> None:
        self._state = SessionState.STOPPED
        self._stopped.set()

    def _on_worker_thread(self) -> bool:
        return self._worker is not None and threading.current_thread() is self._worker

    def _wake(self) -> None:
        try:
            self._queue.put_nowait(_Wake)
        except Full:
            # The loop has pending items and will observe the cancellation.
            pass

    def _enqueue(self, event: FileSystemEvent) -> None:
        if self._cancelled.is_set():
            return
        try:
            self._queue.put_nowait(event)
        except Full:
            with self._overflow_lock:
                self._dropped += 1
                self._overflowed.set()

    def _release_observer(self) -> None:
        with self._lock:
            observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join()

    def _run(self) -> None:
        directory = self.directory
        assert directory is not None
        try:
            while not self._cancelled.is_set():
                item = self.strategy.next_item(self._queue)
                if self._cancelled.is_set():
                    break
                if self._overflowed.is_set():
                    self._resynchronize(directory, item)
                    continue
                if item is None:
                    if not self._observer_alive():
                        self._fail(WatchFault(directory, "Operating system stopped reporting changes"))
                        return
                    continue
                if item is _Wake:
                    continue
                for record in self._classify(directory, item):
                    if isinstance(record, WatchFault):
                        self._fail(record)
                        return
                    self._deliver(record)
        except Exception as exc:
            self._fail(WatchFault(directory, f"{type(exc).__name__}: {exc}"))

    def _observer_alive(self) -> bool:
        """Return ``False`` once any emitter thread of the observer has died."""

        observer = self._observer
        if observer is None or self._cancelled.is_set():
            return True
        return all(emitter.is_alive() for emitter in observer.emitters)

    def _resynchronize(self, directory: Path, item: object | None) -> None:
        dropped = 0 if item is None or item is _Wake else 1
        with self._overflow_lock:
            while True:
                try:
                    self._queue.get_nowait()
                except Empty:
                    break
                dropped += 1
            dropped += self._dropped
            self._dropped = 0
            self._overflowed.clear()
        log_event(
            self.logger,
            level=logging.WARNING,
            action="session.overflow",
            message="Event queue overflowed; requesting a full refresh",
            path=directory,
            extra={"dropped": dropped},
        )
        self._deliver(WatchOverflow(directory=directory, dropped=dropped))

    def _classify(self, directory: Path, event: FileSystemEvent) -> list[WatchRecord]:
        src = Path(os.fsdecode(event.src_path))
        if src == directory:
            if event.event_type in (EVENT_TYPE_DELETED, EVENT_TYPE_MOVED):
                return [WatchFault(directory, "Watched directory was removed or renamed")]
            return []

        if event.event_type == EVENT_TYPE_MOVED:
            records: list[WatchRecord] = []
            if src.parent == directory:
                records.append(ChangeEvent(path=src.name, kind=ChangeKind.DELETED))
            dest = Path(os.fsdecode(event.dest_path))
            if dest.parent == directory:
                records.append(ChangeEvent(path=dest.name, kind=ChangeKind.CREATED))
            return records

        kind = _KIND_BY_EVENT_TYPE.get(event.event_type)
        if kind is None or src.parent != directory:
            return []
        return [ChangeEvent(path=src.name, kind=kind)]

    def _deliver(self, record: WatchRecord) -> None:
        try:
            self._sink(record)
        except Exception as exc:
            log_event(
                self.logger,
                level=logging.ERROR,
                action="session.sink_error",
                message="Watch record consumer raised an exception",
                path=self.directory,
                extra={"error": repr(exc), "record": type(record).__name__},
            )

    def _fail(self, fault: WatchFault) -> None:
        with self._lock:
            if self._state is not SessionState.RUNNING or self._cancelled.is_set():
                return
            self._cancelled.set()

        log_event(
            self.logger,
            level=logging.ERROR,
            action="session.fault",
            message=fault.message,
            path=fault.directory,
        )
        self._release_observer()
        with self._lock:
            if self._state is SessionState.RUNNING:
                self._state = SessionState.STOPPED
                self._stopped.set()
        self._deliver(fault)


__all__ = ["WatchSession"]
