from __future__ import annotations

import json
import logging
from pathlib import Path

from dirwatch.logger import configure_logging, get_logger, log_event


def _read_payloads(log_file: Path) -> list[dict]:
    return [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines() if line]


def test_log_event_sanitizes_home_directory(tmp_path: Path) -> None:
    log_file = tmp_path / "dirwatch.log"
    logger = configure_logging(log_file, level=logging.INFO)
    watched = Path.home() / "Desktop" / "inbox"
    log_event(
        logger,
        level=logging.INFO,
        action="session.started",
        message=f"Watching {watched}",
        path=watched,
        extra={"dirs": [str(watched)]},
    )
    for handler in logger.handlers:
        handler.flush()

    payload = _read_payloads(log_file)[-1]
    assert payload["action"] == "session.started"
    assert payload["path"] == "~/Desktop/inbox"
    assert payload["message"] == "Watching ~/Desktop/inbox"
    assert payload["dirs"] == ["~/Desktop/inbox"]
    assert payload["ts"].endswith("Z")


def test_component_loggers_share_package_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "dirwatch.log"
    configure_logging(log_file, level=logging.DEBUG)

    log_event(
        get_logger("notify"),
        level=logging.DEBUG,
        action="notify.delivered",
        message="File created",
        duration_ms=1.23456,
        extra={"channel": "tray"},
    )
    for handler in logging.getLogger("dirwatch").handlers:
        handler.flush()

    payload = _read_payloads(log_file)[-1]
    assert payload["level"] == "DEBUG"
    assert payload["ms"] == 1.235
    assert payload["channel"] == "tray"


def test_reconfiguring_replaces_the_handler(tmp_path: Path) -> None:
    configure_logging(tmp_path / "first.log")
    logger = configure_logging(tmp_path / "second.log", level=logging.WARNING)

    assert len(logger.handlers) == 1
    assert logger.handlers[0].baseFilename == str(tmp_path / "second.log")  # type: ignore[attr-defined]
    assert logger.level == logging.WARNING
    assert logger.propagate is False
