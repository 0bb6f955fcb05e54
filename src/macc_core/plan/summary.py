"""Fixed-width, human-readable summary of an action plan."""

from __future__ import annotations

from pathlib import Path

from macc_core.plan.actions import (
    ActionPlan,
    BackupFile,
    EnsureGitignore,
    MergeJson,
    Mkdir,
    Noop,
    SetExecutable,
    WriteFile,
)
from macc_core.plan.existing import compute_write_status, read_existing, status_label
from macc_core.plan.operations import compute_merge_after, target_path
from macc_core.project import ProjectPaths
from macc_core.security.paths import SCOPE_USER

_ROW = "{:<16} {:<10} {:<40} {:>10}"


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def _scope_label(scope: str, allow_user_scope: bool) -> str:
    if scope != SCOPE_USER:
        return "[Proj]"
    return "[User]" if allow_user_scope else "[User] (REFUSED)"


def render_summary(
    plan: ActionPlan,
    root: Path,
    *,
    allow_user_scope: bool = False,
    home: Path | None = None,
) -> str:
    """One row per action, ordered by path."""
    paths = ProjectPaths(root=root)
    lines = [
        "Planned changes summary:",
        _ROW.format("SCOPE", "STATUS", "PATH", "SIZE"),
        _ROW.format("-" * 16, "-" * 10, "-" * 40, "-" * 10),
    ]
    for action in sorted(plan.actions, key=lambda item: item.path):
        size = "-"
        if isinstance(action, WriteFile):
            existing = read_existing(target_path(paths, action.path, action.scope, home))
            status = status_label(compute_write_status(action.path, action.content, existing))
            size = format_size(len(action.content))
        elif isinstance(action, MergeJson):
            existing = read_existing(target_path(paths, action.path, action.scope, home))
            merged = compute_merge_after(existing.content, [action.patch]) or b""
            status = status_label(compute_write_status(action.path, merged, existing))
            size = format_size(len(merged))
        elif isinstance(action, Mkdir):
            exists = target_path(paths, action.path, action.scope, home).exists()
            status = "OK" if exists else "CREATE"
        elif isinstance(action, SetExecutable):
            status = "CHMOD"
        elif isinstance(action, BackupFile):
            status = "BACKUP"
        elif isinstance(action, EnsureGitignore):
            status = "GITIGNORE"
        elif isinstance(action, Noop):
            status = "NOOP"
        else:
            status = "UNKNOWN"
        lines.append(
            _ROW.format(_scope_label(action.scope, allow_user_scope), status, action.path, size)
        )
    return "\n".join(lines) + "\n"
