"""Single owner of the current watch target."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Callable

from ..config import WatchSettings
from ..errors import InvalidTarget, WatchLoopFault, WatchUnavailable
from ..events import ChangeEvent, RecordSink, Severity, WatchFault, WatchOverflow, WatchRecord
from ..logger import get_logger, log_event
from ..notify.chain import NotifierChain
from ..notify.messages import format_notification
from .session import WatchSession

SessionFactory = Callable[[RecordSink], WatchSession]


class WatchController:
    """Mediates target changes from the UI and the lifecycle of one :class:`WatchSession`.

    Only the controller changes which directory is watched. Target swaps happen
    under a lock: the old session is fully stopped before the new one starts,
    so no record of the old directory is delivered after the new one is live.
    Records from the session thread are forwarded to the UI callbacks and to
    the notifier chain. Notifications run on a single worker thread so a slow
    channel never stalls the watch loop; at most
    ``settings.max_pending_notifications`` sends are queued or in flight and
    further ones are dropped with a warning.
    """

    def __init__(
        self,
        notifier: NotifierChain | None = None,
        *,
        on_directory_changed: Callable[[ChangeEvent], None] | None = None,
        on_refresh: Callable[[Path], None] | None = None,
        on_status: Callable[[str], None] | None = None,
        session_factory: SessionFactory | None = None,
        settings: WatchSettings | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings or WatchSettings()
        self.notifier = notifier or NotifierChain.for_platform(settings=self.settings)
        self.on_directory_changed = on_directory_changed
        self.on_refresh = on_refresh
        self.on_status = on_status
        self.logger = logger or get_logger("controller")
        self._session_factory = session_factory or self._default_session_factory
        self._lock = threading.Lock()
        self._target: Path | None = None
        self._session: WatchSession | None = None
        self.last_fault: WatchLoopFault | None = None
        self._closed = False
        self._pending_sends = 0
        self._send_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dirwatch-notify")

    def __enter__(self) -> "WatchController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    @property
    def current_target(self) -> Path | None:
        return self._target

    @property
    def is_watching(self) -> bool:
        session = self._session
        return session is not None and session.is_running

    def set_target(self, path: str | Path) -> Path:
        """Watch *path* instead of the current target.

        Raises :class:`InvalidTarget` without touching the running session when
        *path* is not an existing directory. Raises :class:`WatchUnavailable`
        when the OS refuses the new watch; the previous session is already gone
        at that point and nothing is watched.
        """

        candidate = Path(path).expanduser()
        if not candidate.is_dir():
            reason = "Directory does not exist" if not candidate.exists() else "Not a directory"
            self._report_status(f"Please choose a valid folder: {candidate}")
            log_event(
                self.logger,
                level=logging.WARNING,
                action="controller.invalid_target",
                message=reason,
                path=candidate,
            )
            raise InvalidTarget(reason, candidate)
        candidate = candidate.resolve()

        with self._lock:
            if self._closed:
                raise RuntimeError("WatchController has been shut down")

            previous, self._session = self._session, None
            if previous is not None:
                previous.stop()

            session = self._session_factory(partial(self._handle_record, candidate))
            try:
                session.start(candidate)
            except WatchUnavailable as exc:
                self._target = None
                self._report_status(f"Watch error: {exc}")
                raise
            self._session = session
            self._target = candidate
            self.last_fault = None

        log_event(
            self.logger,
            level=logging.INFO,
            action="controller.target_changed",
            message="Watch target changed",
            path=candidate,
        )
        self._report_status(f"Watching folder: {candidate}")
        self.refresh()
        return candidate

    def refresh(self) -> None:
        """Ask the UI to reload the listing of the current target."""

        target = self._target
        if target is not None and self.on_refresh is not None:
            self._call_ui(self.on_refresh, target)

    def on_event(self, event: ChangeEvent, directory: Path | None = None) -> None:
        """Notify about *event* and pass it on to the UI."""

        title, body, severity = format_notification(event, directory or self._target)
        if not self._closed:
            self._dispatch(title, body, severity)
        if self.on_directory_changed is not None:
            self._call_ui(self.on_directory_changed, event)

    def shutdown(self) -> None:
        """Stop watching and release notifier resources. Safe to call repeatedly."""

        with self._lock:
            if self._closed:
                return
            self._closed = True
            session, self._session = self._session, None

        if session is not None:
            session.stop()
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.notifier.cleanup()
        log_event(
            self.logger,
            level=logging.INFO,
            action="controller.shutdown",
            message="Watch controller shut down",
            path=self._target,
        )

    def _dispatch(self, title: str, body: str, severity: Severity) -> None:
        with self._send_lock:
            backlog = self._pending_sends
            if backlog < self.settings.max_pending_notifications:
                self._pending_sends += 1
        if backlog >= self.settings.max_pending_notifications:
            log_event(
                self.logger,
                level=logging.WARNING,
                action="controller.notification_dropped",
                message=title,
                extra={"body": body, "pending": backlog},
            )
            return
        try:
            self._executor.submit(self._send, title, body, severity)
        except RuntimeError:
            # Executor already shut down by a concurrent shutdown().
            self._send_finished()

    def _send(self, title: str, body: str, severity: Severity) -> None:
        try:
            self.notifier.send(title, body, severity)
        finally:
            self._send_finished()

    def _send_finished(self) -> None:
        with self._send_lock:
            self._pending_sends -= 1

    def _handle_record(self, directory: Path, record: WatchRecord) -> None:
        if isinstance(record, ChangeEvent):
            self.on_event(record, directory)
        elif isinstance(record, WatchOverflow):
            if self.on_refresh is not None:
                self._call_ui(self.on_refresh, record.directory)
        elif isinstance(record, WatchFault):
            self.last_fault = WatchLoopFault(record.message, record.directory)
            log_event(
                self.logger,
                level=logging.ERROR,
                action="controller.watch_fault",
                message=record.message,
                path=directory,
            )
            self._report_status(f"Watch error: {record.message}")

    def _report_status(self, message: str) -> None:
        if self.on_status is not None:
            self._call_ui(self.on_status, message)

    def _call_ui(self, callback: Callable[..., None], *args: object) -> None:
        try:
            callback(*args)
        except Exception as exc:
            log_event(
                self.logger,
                level=logging.ERROR,
                action="controller.callback_error",
                message="UI callback raised an exception",
                extra={"error": repr(exc), "callback": getattr(callback, "__name__", repr(callback))},
            )

    def _default_session_factory(self, sink: RecordSink) -> WatchSession:
        return WatchSession(sink, settings=self.settings)


__all__ = ["WatchController"]
