from __future__ import annotations

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from dirwatch.config import WatchSettings, default_watch_directory
from dirwatch.events import ChangeEvent, ChangeKind, Severity
from dirwatch.notify.messages import format_notification


@pytest.mark.parametrize(
    ("kind", "severity"),
    [
        (ChangeKind.CREATED, Severity.INFO),
        (ChangeKind.MODIFIED, Severity.INFO),
        (ChangeKind.DELETED, Severity.WARNING),
    ],
)
def test_severity_for_kind(kind: ChangeKind, severity: Severity) -> None:
    assert Severity.for_kind(kind) is severity


def test_change_event_is_immutable() -> None:
    event = ChangeEvent(path="a.txt", kind=ChangeKind.CREATED)
    with pytest.raises(FrozenInstanceError):
        event.path = "b.txt"  # type: ignore[misc]
    assert event.timestamp > 0


def test_format_notification() -> None:
    event = ChangeEvent(path="a.txt", kind=ChangeKind.DELETED)

    assert format_notification(event, Path("/srv/inbox")) == ("File deleted", "a.txt in /srv/inbox", Severity.WARNING)
    assert format_notification(event) == ("File deleted", "a.txt", Severity.WARNING)


def test_settings_validation() -> None:
    with pytest.raises(ValueError):
        WatchSettings(poll_interval=0)
    with pytest.raises(ValueError):
        WatchSettings(max_pending_events=0)


def test_default_watch_directory_prefers_desktop(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
    assert default_watch_directory() == tmp_path

    (tmp_path / "Desktop").mkdir()
    assert default_watch_directory() == tmp_path / "Desktop"
