from __future__ import annotations

import os
from pathlib import Path

import pytest

from macc_core.apply import BackupManager, write_atomic


def test_write_atomic_creates_parents_and_leaves_no_temp_files(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "file.txt"

    write_atomic(target, b"content")

    assert target.read_bytes() == b"content"
    assert sorted(path.name for path in target.parent.iterdir()) == ["file.txt"]


@pytest.mark.skipif(os.name != "posix", reason="file modes are posix only")
def test_write_atomic_keeps_existing_mode(tmp_path: Path) -> None:
    target = tmp_path / "run.sh"
    target.write_bytes(b"old")
    target.chmod(0o750)

    write_atomic(target, b"new")

    assert target.stat().st_mode & 0o777 == 0o750
    assert target.read_bytes() == b"new"


def test_backup_mirrors_relative_layout(tmp_path: Path) -> None:
    source = tmp_path / "docs" / "guide.md"
    source.parent.mkdir()
    source.write_text("guide", encoding="utf-8")
    manager = BackupManager(tmp_path / ".macc" / "backups", tmp_path)

    entry = manager.backup_file("20240101-000000", source)

    assert entry is not None
    assert entry.backup == tmp_path / ".macc" / "backups" / "20240101-000000" / "docs" / "guide.md"
    assert entry.backup.read_text(encoding="utf-8") == "guide"


def test_backup_of_missing_file_is_skipped(tmp_path: Path) -> None:
    manager = BackupManager(tmp_path / "backups", tmp_path)

    assert manager.backup_file("ts", tmp_path / "missing.txt") is None
    assert not (tmp_path / "backups").exists()


def test_paths_outside_base_keep_their_components(tmp_path: Path) -> None:
    manager = BackupManager(tmp_path / "backups", tmp_path / "home")

    assert manager.relative_path(Path("/etc/tool/config")) == Path("etc/tool/config")
    assert manager.relative_path(Path("/")) == Path("root")
