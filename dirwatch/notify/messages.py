"""Notification text for watch events."""
from __future__ import annotations

from pathlib import Path

from ..events import ChangeEvent, ChangeKind, Severity

_TITLES = {
    ChangeKind.CREATED: "File created",
    ChangeKind.DELETED: "File deleted",
    ChangeKind.MODIFIED: "File modified",
}


def format_notification(event: ChangeEvent, directory: Path | None = None) -> tuple[str, str, Severity]:
    """Return ``(title, body, severity)`` for *event*."""

    title = _TITLES[event.kind]
    body = event.path if directory is None else f"{event.path} in {directory}"
    return title, body, Severity.for_kind(event.kind)


__all__ = ["format_notification"]
