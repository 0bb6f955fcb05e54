"""Execute planned operations with status tracking, backups and a consent gate."""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from macc_core.apply.backup import BackupEntry, BackupManager
from macc_core.apply.writer import write_atomic
from macc_core.errors import ApplyIOError, HomeDirNotFoundError, MaccError
from macc_core.logging.audit import JsonlAuditLogger, new_run_id
from macc_core.merge.structured import StructuredMergePolicy
from macc_core.plan.existing import (
    STATUS_CREATED,
    STATUS_FAILED,
    STATUS_NOOP,
    STATUS_REFUSED,
    STATUS_UNCHANGED,
    STATUS_UPDATED,
    compute_write_status,
    read_existing,
)
from macc_core.plan.operations import KIND_MERGE, KIND_MKDIR, KIND_WRITE, PlannedOperation
from macc_core.project import ProjectPaths, require_user_home
from macc_core.security.paths import SCOPE_USER, resolve_project_path, resolve_user_path

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

ProgressCallback = Callable[[PlannedOperation, int, int], None]


@dataclass(slots=True)
class ApplyReport:
    """Per-path outcomes of one apply run."""

    outcomes: dict[str, str] = field(default_factory=dict)
    backup_dir: Path | None = None
    user_backup_root: Path | None = None
    backups: list[BackupEntry] = field(default_factory=list)
    refused: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def count(self, status: str) -> int:
        return sum(1 for value in self.outcomes.values() if value == status)

    def render_text(self) -> str:
        lines: list[str] = []
        for path in sorted(self.outcomes):
            lines.append(f"  {self.outcomes[path]:<10} {path}")
        if self.backup_dir is not None:
            lines.append(f"Backups: {self.backup_dir}")
        if self.user_backup_root is not None:
            lines.append(f"User backups: {self.user_backup_root}")
        for path in self.refused:
            lines.append(f"Refused (user scope requires consent): {path}")
        for path in sorted(self.failures):
            lines.append(f"Failed: {path}: {self.failures[path]}")
        lines.append(
            f"Total: {self.count(STATUS_CREATED)} created, {self.count(STATUS_UPDATED)} updated, "
            f"{self.count(STATUS_UNCHANGED)} unchanged"
        )
        return "\n".join(lines) + "\n"


def backup_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)


def _set_executable(target: Path) -> None:
    if os.name != "posix":
        return
    mode = target.stat().st_mode
    target.chmod(mode | 0o111)


class _ApplyRun:
    def __init__(
        self,
        paths: ProjectPaths,
        home: Path | None,
        merge_policy: StructuredMergePolicy,
        timestamp: str,
    ) -> None:
        self.paths = paths
        self.home = home
        self.merge_policy = merge_policy
        self.timestamp = timestamp
        self.project_backups = BackupManager(paths.backups_dir, paths.root.resolve())
        self.user_backups = (
            BackupManager(home / ".macc" / "backups", home) if home is not None else None
        )
        self.backed_up: set[Path] = set()
        self.report = ApplyReport()

    def target(self, operation: PlannedOperation) -> Path:
        if operation.scope == SCOPE_USER:
            if self.home is None:
                raise HomeDirNotFoundError()
            return resolve_user_path(self.home, operation.path)
        return resolve_project_path(self.paths.root, operation.path)

    def backup(self, operation: PlannedOperation, target: Path) -> None:
        if target in self.backed_up:
            return
        manager = self.user_backups if operation.scope == SCOPE_USER else self.project_backups
        if manager is None:
            raise HomeDirNotFoundError()
        entry = manager.backup_file(self.timestamp, target)
        if entry is None:
            return
        self.backed_up.add(target)
        self.report.backups.append(entry)
        if operation.scope == SCOPE_USER:
            self.report.user_backup_root = manager.timestamp_root(self.timestamp)
        else:
            self.report.backup_dir = manager.timestamp_root(self.timestamp)

    def execute(self, operation: PlannedOperation) -> str:
        target = self.target(operation)
        if operation.kind == KIND_MKDIR:
            if target.exists():
                return STATUS_UNCHANGED
            target.mkdir(parents=True, exist_ok=True)
            return STATUS_CREATED
        if operation.kind not in (KIND_WRITE, KIND_MERGE) or operation.after is None:
            return STATUS_NOOP

        existing = read_existing(target)
        content = operation.after
        if operation.kind == KIND_WRITE:
            content = self.merge_policy.merge_bytes_for_path(
                operation.path, existing.content, content
            )
        status = compute_write_status(operation.path, content, existing)
        if status == STATUS_UPDATED:
            self.backup(operation, target)
        if status != STATUS_UNCHANGED:
            write_atomic(target, content)
        if operation.metadata.set_executable:
            _set_executable(target)
        return status


def apply_operations(
    paths: ProjectPaths,
    operations: Sequence[PlannedOperation],
    *,
    allow_user_scope: bool = False,
    home: Path | None = None,
    merge_policy: StructuredMergePolicy | None = None,
    audit_logger: JsonlAuditLogger | None = None,
    timestamp: str | None = None,
    on_progress: ProgressCallback | None = None,
) -> ApplyReport:
    """Apply operations in order; refusals and per-path IO failures do not stop the run."""
    needs_home = allow_user_scope and any(op.scope == SCOPE_USER for op in operations)
    if needs_home and home is None:
        home = require_user_home()
    run = _ApplyRun(
        paths=paths,
        home=home if needs_home else None,
        merge_policy=merge_policy or StructuredMergePolicy(),
        timestamp=timestamp or backup_timestamp(),
    )
    run_id = new_run_id()
    report = run.report
    total = len(operations)

    for index, operation in enumerate(operations, start=1):
        if on_progress is not None:
            on_progress(operation, index, total)
        if operation.scope == SCOPE_USER and not allow_user_scope:
            status = STATUS_REFUSED
            report.refused.append(operation.path)
        else:
            try:
                status = run.execute(operation)
            except OSError as exc:
                failure = ApplyIOError(operation.path, f"apply {operation.kind}", exc)
                status = STATUS_FAILED
                report.failures[operation.path] = str(failure)
            except MaccError as exc:
                status = STATUS_FAILED
                report.failures[operation.path] = str(exc)
        report.outcomes[operation.path] = status
        if audit_logger is not None:
            audit_logger.record(
                run_id,
                "apply.operation",
                status != STATUS_FAILED,
                {
                    "path": operation.path,
                    "scope": operation.scope,
                    "kind": operation.kind,
                    "status": status,
                },
            )

    if audit_logger is not None:
        audit_logger.record(
            run_id,
            "apply.summary",
            report.ok,
            {
                "created": report.count(STATUS_CREATED),
                "updated": report.count(STATUS_UPDATED),
                "unchanged": report.count(STATUS_UNCHANGED),
                "refused": len(report.refused),
                "failed": len(report.failures),
                "backup_dir": str(report.backup_dir) if report.backup_dir else None,
            },
        )
    return report
