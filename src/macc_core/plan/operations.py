"""Collapse a normalized action plan into one planned operation per path."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from macc_core.merge.deep import merge_all
from macc_core.merge.formats import to_pretty_json
from macc_core.plan.actions import (
    ActionPlan,
    BackupFile,
    EnsureGitignore,
    MergeJson,
    Mkdir,
    SetExecutable,
    WriteFile,
)
from macc_core.plan.existing import ExistingFile, read_existing
from macc_core.project import ProjectPaths, find_user_home
from macc_core.security.paths import SCOPE_PROJECT, SCOPE_USER, resolve_user_path

KIND_WRITE: Final = "write"
KIND_MERGE: Final = "merge"
KIND_DELETE: Final = "delete"
KIND_MKDIR: Final = "mkdir"
KIND_OTHER: Final = "other"

KIND_ORDER: Final[tuple[str, ...]] = (KIND_WRITE, KIND_MERGE, KIND_DELETE, KIND_MKDIR, KIND_OTHER)

# Higher wins when several actions touch one path.
_KIND_PRECEDENCE: Final[dict[str, int]] = {
    KIND_OTHER: 0,
    KIND_MKDIR: 1,
    KIND_DELETE: 1,
    KIND_WRITE: 2,
    KIND_MERGE: 3,
}


@dataclass(slots=True, frozen=True)
class OperationMetadata:
    backup_required: bool = False
    consent_required: bool = False
    set_executable: bool = False


@dataclass(slots=True, frozen=True)
class PlannedOperation:
    """Per-path result of folding every action that touches the path."""

    path: str
    scope: str
    kind: str
    metadata: OperationMetadata
    before: bytes | None
    after: bytes | None

    @property
    def consent_required(self) -> bool:
        return self.metadata.consent_required

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "scope": self.scope,
            "kind": self.kind,
            "metadata": {
                "backup_required": self.metadata.backup_required,
                "consent_required": self.metadata.consent_required,
                "set_executable": self.metadata.set_executable,
            },
            "before": _encode_optional(self.before),
            "after": _encode_optional(self.after),
        }


def _encode_optional(content: bytes | None) -> str | None:
    if content is None:
        return None
    return base64.b64encode(content).decode("ascii")


def operations_to_json(operations: list[PlannedOperation]) -> str:
    return json.dumps([operation.to_dict() for operation in operations], indent=2) + "\n"


def operation_sort_key(operation: PlannedOperation) -> tuple[str, int]:
    return (operation.path, KIND_ORDER.index(operation.kind))


@dataclass(slots=True)
class _Accumulator:
    scope: str = SCOPE_PROJECT
    kind: str | None = None
    backup_required: bool = False
    set_executable: bool = False
    write_content: bytes | None = None
    merge_patches: list[Any] = field(default_factory=list)
    gitignore_patterns: set[str] = field(default_factory=set)

    def escalate_scope(self, scope: str) -> None:
        if scope == SCOPE_USER:
            self.scope = SCOPE_USER

    def set_kind(self, kind: str) -> None:
        if self.kind is None or _KIND_PRECEDENCE[kind] > _KIND_PRECEDENCE[self.kind]:
            self.kind = kind


def _parse_json_object(content: bytes | None) -> Any:
    if not content:
        return {}
    try:
        return json.loads(content)
    except (UnicodeDecodeError, ValueError):
        return {}


def compute_merge_after(base_content: bytes | None, patches: list[Any]) -> bytes | None:
    """Deep-merge patches onto parsed base JSON; unparseable bases start empty."""
    if not patches:
        return None
    merged = merge_all(_parse_json_object(base_content), patches)
    return to_pretty_json(merged).encode("utf-8")


def compute_gitignore_after(base_content: bytes | None, patterns: set[str]) -> bytes | None:
    """Append each pattern not already present as a trimmed line."""
    if not patterns:
        return None
    lines: list[str] = []
    if base_content:
        try:
            lines = base_content.decode("utf-8").splitlines()
        except UnicodeDecodeError:
            lines = []
    present = {line.strip() for line in lines}
    for pattern in sorted(patterns):
        if pattern not in present:
            lines.append(pattern)
            present.add(pattern)
    output = "\n".join(lines)
    if output and not output.endswith("\n"):
        output += "\n"
    return output.encode("utf-8")


def target_path(paths: ProjectPaths, path: str, scope: str, home: Path | None = None) -> Path:
    """Filesystem location of a plan path for its scope."""
    if scope == SCOPE_USER:
        resolved_home = home if home is not None else find_user_home()
        if resolved_home is None:
            return Path(path)
        return resolve_user_path(resolved_home, path)
    return paths.root / path


def _resolve_entry(
    paths: ProjectPaths,
    path: str,
    entry: _Accumulator,
    home: Path | None,
) -> PlannedOperation | None:
    kind = entry.kind or KIND_OTHER
    if kind == KIND_OTHER and not entry.merge_patches and entry.write_content is None:
        return None

    existing: ExistingFile = read_existing(target_path(paths, path, entry.scope, home))
    after: bytes | None = None
    if kind == KIND_MERGE:
        patches = list(entry.merge_patches)
        if entry.write_content is not None:
            patches.insert(0, _parse_json_object(entry.write_content))
        after = compute_merge_after(existing.content, patches)
    elif kind == KIND_WRITE:
        after = entry.write_content
        if entry.gitignore_patterns:
            base = after if after is not None else existing.content
            after = compute_gitignore_after(base, entry.gitignore_patterns)

    consent_required = entry.scope == SCOPE_USER
    return PlannedOperation(
        path=path,
        scope=entry.scope,
        kind=kind,
        metadata=OperationMetadata(
            backup_required=entry.backup_required,
            consent_required=consent_required,
            set_executable=entry.set_executable,
        ),
        before=existing.content,
        after=after,
    )


def collect_plan_operations(
    paths: ProjectPaths,
    plan: ActionPlan,
    *,
    home: Path | None = None,
) -> list[PlannedOperation]:
    """Fold actions into planned operations sorted by (path, kind).

    Reads current on-disk state; unreadable files count as absent.
    """
    entries: dict[str, _Accumulator] = {}
    for action in plan.actions:
        if isinstance(action, WriteFile):
            entry = entries.setdefault(action.path, _Accumulator())
            entry.set_kind(KIND_WRITE)
            entry.write_content = action.content
        elif isinstance(action, MergeJson):
            entry = entries.setdefault(action.path, _Accumulator())
            entry.set_kind(KIND_MERGE)
            entry.merge_patches.append(action.patch)
        elif isinstance(action, BackupFile):
            entry = entries.setdefault(action.path, _Accumulator())
            entry.backup_required = True
        elif isinstance(action, Mkdir):
            entry = entries.setdefault(action.path, _Accumulator())
            entry.set_kind(KIND_MKDIR)
        elif isinstance(action, EnsureGitignore):
            entry = entries.setdefault(action.path, _Accumulator())
            entry.set_kind(KIND_WRITE)
            entry.gitignore_patterns.add(action.pattern)
        elif isinstance(action, SetExecutable):
            entry = entries.setdefault(action.path, _Accumulator())
            entry.set_executable = True
        else:
            continue
        entry.escalate_scope(action.scope)

    operations = [
        operation
        for path, entry in entries.items()
        if (operation := _resolve_entry(paths, path, entry, home)) is not None
    ]
    operations.sort(key=operation_sort_key)
    return operations
