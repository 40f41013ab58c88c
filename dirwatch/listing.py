"""Directory listing shown to the user on every refresh."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    name: str
    is_dir: bool
    size: int | None
    modified: datetime

    @property
    def kind_label(self) -> str:
        return "folder" if self.is_dir else "file"

    @property
    def size_label(self) -> str:
        return "-" if self.size is None else f"{self.size} bytes"


def list_directory(directory: str | Path) -> list[DirectoryEntry]:
    """Return the direct children of *directory* sorted by name.

    Entries removed while the listing is being read are skipped. Errors
    opening *directory* itself propagate as :class:`OSError`.
    """

    entries: list[DirectoryEntry] = []
    for path in Path(directory).iterdir():
        try:
            stat = path.stat()
            is_dir = path.is_dir()
        except FileNotFoundError:
            continue
        entries.append(
            DirectoryEntry(
                name=path.name,
                is_dir=is_dir,
                size=None if is_dir else stat.st_size,
                modified=datetime.fromtimestamp(stat.st_mtime).replace(microsecond=0),
            )
        )
    entries.sort(key=lambda entry: entry.name.casefold())
    return entries


def render_listing(entries: list[DirectoryEntry]) -> str:
    """Format *entries* as aligned text columns."""

    if not entries:
        return "(empty)"
    width = max(len(entry.name) for entry in entries)
    lines = [
        f"{entry.name:<{width}}  {entry.kind_label:<6}  {entry.size_label:>14}  {entry.modified:%Y-%m-%d %H:%M:%S}"
        for entry in entries
    ]
    return "\n".join(lines)


__all__ = ["DirectoryEntry", "list_directory", "render_listing"]
