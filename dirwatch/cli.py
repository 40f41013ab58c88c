"""Command line front end for dirwatch."""
from __future__ import annotations

import argparse
import sys
import threading
import time
from pathlib import Path
from typing import Iterable, TextIO

from .config import default_watch_directory
from .errors import InvalidTarget, WatchUnavailable
from .events import ChangeEvent
from .listing import list_directory, render_listing
from .logger import configure_logging
from .watcher.controller import WatchController

_QUIT_COMMANDS = {"q", "quit", "exit"}
_REFRESH_COMMANDS = {"r", "refresh"}


class TerminalView:
    """Prints status lines, change lines and the directory listing.

    Every change reloads the listing of the directory shown last.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout
        self.directory: Path | None = None
        self._lock = threading.Lock()

    def status(self, message: str) -> None:
        self._write(f"[{time.strftime('%Y-%m-%d %H:%M:%S')}] {message}")

    def changed(self, event: ChangeEvent) -> None:
        self._write(f"{event.kind.name.lower():<8} {event.path}")
        if self.directory is not None:
            self.refresh(self.directory)

    def refresh(self, directory: Path) -> None:
        self.directory = directory
        try:
            listing = render_listing(list_directory(directory))
        except OSError as exc:
            self.status(f"Error: {exc}")
            return
        self._write(f"--- {directory} ---\n{listing}")
        self.status("Listing updated")

    def _write(self, text: str) -> None:
        with self._lock:
            print(text, file=self.stream, flush=True)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging()

    view = TerminalView()
    controller = WatchController(
        on_directory_changed=view.changed,
        on_refresh=view.refresh,
        on_status=view.status,
    )
    directory = args.directory or default_watch_directory()
    try:
        controller.set_target(directory)
    except (InvalidTarget, WatchUnavailable) as exc:
        print(f"Cannot watch {directory}: {exc}", file=sys.stderr)
        controller.shutdown()
        return 2

    view.status("Type a folder path to watch it instead, 'r' to refresh, 'q' to quit")
    try:
        if _interact(controller, sys.stdin):
            _wait_forever()
    except KeyboardInterrupt:
        pass
    finally:
        controller.shutdown()
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dirwatch",
        description="Watch a folder and show a desktop notification for every change",
    )
    parser.add_argument(
        "directory",
        nargs="?",
        type=Path,
        help="Folder to watch (default: ~/Desktop, or the home directory)",
    )
    return parser


def _interact(controller: WatchController, lines: Iterable[str]) -> bool:
    """Apply commands from *lines*; return ``True`` when input ran out."""

    for line in lines:
        command = line.strip()
        if not command:
            continue
        if command.lower() in _QUIT_COMMANDS:
            return False
        if command.lower() in _REFRESH_COMMANDS:
            controller.refresh()
            continue
        try:
            controller.set_target(command)
        except (InvalidTarget, WatchUnavailable):
            # Already reported through the status callback.
            continue
    return True


def _wait_forever() -> None:
    while True:
        time.sleep(1.0)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
