from __future__ import annotations

import json
from pathlib import Path

from macc_core.plan import (
    ActionPlan,
    BackupFile,
    EnsureGitignore,
    MergeJson,
    Mkdir,
    SetExecutable,
    WriteFile,
    collect_plan_operations,
    read_existing,
)
from macc_core.plan.operations import KIND_MERGE, KIND_MKDIR, KIND_WRITE
from macc_core.project import ProjectPaths
from macc_core.security import SCOPE_PROJECT, SCOPE_USER


def _collect(root: Path, actions: list, home: Path | None = None) -> list:
    plan = ActionPlan(actions=actions)
    plan.normalize()
    return collect_plan_operations(ProjectPaths(root=root), plan, home=home)


def test_gitignore_pattern_is_appended_once(tmp_path: Path) -> None:
    (tmp_path / ".gitignore").write_text("node_modules/\n", encoding="utf-8")

    operations = _collect(tmp_path, [EnsureGitignore("*.log"), EnsureGitignore("*.log")])

    assert len(operations) == 1
    assert operations[0].kind == KIND_WRITE
    assert operations[0].after == b"node_modules/\n*.log\n"


def test_gitignore_pattern_already_present_is_not_duplicated(tmp_path: Path) -> None:
    (tmp_path / ".gitignore").write_text("node_modules/\n  *.log  \n", encoding="utf-8")

    operations = _collect(tmp_path, [EnsureGitignore("*.log")])

    assert operations[0].after == b"node_modules/\n  *.log  \n"
    assert operations[0].before == operations[0].after


def test_gitignore_created_when_missing(tmp_path: Path) -> None:
    operations = _collect(tmp_path, [EnsureGitignore(".macc/"), EnsureGitignore(".tool/")])

    assert operations[0].before is None
    assert operations[0].after == b".macc/\n.tool/\n"


def test_merge_patches_apply_in_order_over_existing_file(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text('{"a": 1, "keep": true}', encoding="utf-8")

    operations = _collect(
        tmp_path,
        [MergeJson("settings.json", {"b": 2}), MergeJson("settings.json", {"a": 3})],
    )

    assert operations[0].kind == KIND_MERGE
    assert json.loads(operations[0].after) == {"a": 3, "keep": True, "b": 2}


def test_merge_over_unparseable_file_starts_from_empty_object(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text("{broken", encoding="utf-8")

    operations = _collect(tmp_path, [MergeJson("settings.json", {"b": 2})])

    assert json.loads(operations[0].after) == {"b": 2}
    assert operations[0].before == b"{broken"


def test_merge_wins_over_write_and_layers_written_content_first(tmp_path: Path) -> None:
    operations = _collect(
        tmp_path,
        [
            MergeJson("x.json", {"b": 2, "a": 5}),
            WriteFile("x.json", b'{"a": 1}'),
        ],
    )

    assert len(operations) == 1
    assert operations[0].kind == KIND_MERGE
    assert json.loads(operations[0].after) == {"a": 5, "b": 2}


def test_write_plus_merge_keeps_existing_user_keys(tmp_path: Path) -> None:
    (tmp_path / "x.json").write_text('{"user": "keep"}', encoding="utf-8")

    operations = _collect(
        tmp_path,
        [
            WriteFile("x.json", b'{"a": 1}'),
            MergeJson("x.json", {"b": 2}),
        ],
    )

    assert operations[0].kind == KIND_MERGE
    assert json.loads(operations[0].after) == {"user": "keep", "a": 1, "b": 2}


def test_write_is_not_downgraded_by_mkdir(tmp_path: Path) -> None:
    operations = _collect(tmp_path, [Mkdir("docs"), WriteFile("docs", b"x")])

    assert operations[0].kind == KIND_WRITE
    assert operations[0].after == b"x"


def test_metadata_flags_are_collected(tmp_path: Path) -> None:
    operations = _collect(
        tmp_path,
        [
            WriteFile("run.sh", b"#!/bin/sh\n"),
            BackupFile("run.sh"),
            SetExecutable("run.sh"),
        ],
    )

    metadata = operations[0].metadata
    assert metadata.backup_required is True
    assert metadata.set_executable is True
    assert metadata.consent_required is False


def test_any_user_scope_action_escalates_the_path(tmp_path: Path) -> None:
    home = tmp_path / "home"
    home.mkdir()

    operations = _collect(
        tmp_path,
        [
            BackupFile("settings.json", scope=SCOPE_USER),
            WriteFile("settings.json", b"{}", scope=SCOPE_PROJECT),
        ],
        home=home,
    )

    assert operations[0].scope == SCOPE_USER
    assert operations[0].consent_required is True


def test_user_scope_before_is_read_from_home(tmp_path: Path) -> None:
    home = tmp_path / "home"
    home.mkdir()
    (home / ".toolrc").write_text("old\n", encoding="utf-8")

    operations = _collect(tmp_path, [WriteFile("~/.toolrc", b"new\n", scope=SCOPE_USER)], home=home)

    assert operations[0].before == b"old\n"


def test_backup_or_chmod_only_paths_produce_no_operation(tmp_path: Path) -> None:
    operations = _collect(tmp_path, [BackupFile("a.txt"), SetExecutable("b.sh")])

    assert operations == []


def test_mkdir_operation_has_no_content(tmp_path: Path) -> None:
    operations = _collect(tmp_path, [Mkdir(".tool")])

    assert operations[0].kind == KIND_MKDIR
    assert operations[0].after is None


def test_operations_are_sorted_by_path(tmp_path: Path) -> None:
    operations = _collect(
        tmp_path,
        [WriteFile("z.md", b"z"), Mkdir("b"), MergeJson("a.json", {"k": 1})],
    )

    assert [operation.path for operation in operations] == ["a.json", "b", "z.md"]


def test_directory_in_place_of_file_reads_as_absent(tmp_path: Path) -> None:
    (tmp_path / "folder").mkdir()

    assert read_existing(tmp_path / "folder").exists is False
