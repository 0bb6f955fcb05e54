"""Timestamped backups that mirror the original path layout."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path, PurePath


@dataclass(slots=True, frozen=True)
class BackupEntry:
    original: Path
    backup: Path


class BackupManager:
    """Copies files under <root>/<timestamp>/<path relative to base_dir>."""

    def __init__(self, root: Path, base_dir: Path) -> None:
        self.root = root
        self.base_dir = base_dir

    def timestamp_root(self, timestamp: str) -> Path:
        return self.root / timestamp

    def relative_path(self, source: Path) -> Path:
        """Path below base_dir, else the source's plain components ('root' when none)."""
        if source.is_absolute():
            try:
                stripped = source.relative_to(self.base_dir)
            except ValueError:
                stripped = None
            if stripped is not None and stripped.parts:
                return stripped
        parts = [
            part
            for part in PurePath(source).parts
            if part not in ("..", ".") and part != source.anchor
        ]
        if not parts:
            return Path("root")
        return Path(*parts)

    def backup_file(self, timestamp: str, source: Path) -> BackupEntry | None:
        """Copy an existing regular file with its permissions; missing files are skipped."""
        if not source.is_file():
            return None
        target = self.timestamp_root(timestamp) / self.relative_path(source)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
        return BackupEntry(original=source, backup=target)
