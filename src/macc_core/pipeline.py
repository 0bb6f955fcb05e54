"""End-to-end planning: renderers to normalized plan, operations, previews and apply."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from macc_core.apply.engine import ApplyReport, ProgressCallback, apply_operations
from macc_core.config import EngineLimits
from macc_core.errors import SecretDetectedError
from macc_core.logging.audit import JsonlAuditLogger
from macc_core.plan.actions import ActionPlan, EnsureGitignore, MergeJson, WriteFile
from macc_core.plan.diff import DiffView, render_diff
from macc_core.plan.operations import PlannedOperation, collect_plan_operations
from macc_core.project import ProjectPaths
from macc_core.resolve.fetch import MaterializedFetchUnit
from macc_core.resolve.resolver import ResolvedConfig
from macc_core.security.secrets import SEVERITY_ERROR, describe_findings, scan_bytes
from macc_core.tools.registry import RendererRegistry
from macc_core.tools.renderer import PlanningContext, validate_renderer_plan
from macc_core.tools.spec import ToolSpec, collect_gitignore_entries, merge_policy_for_specs


@dataclass(slots=True, frozen=True)
class OperationPreview:
    operation: PlannedOperation
    diff: DiffView


def build_plan(
    paths: ProjectPaths,
    resolved: ResolvedConfig,
    units: Sequence[MaterializedFetchUnit],
    registry: RendererRegistry,
    tool_specs: Sequence[ToolSpec] = (),
) -> ActionPlan:
    """Run enabled renderers in id order and return one normalized plan."""
    context = PlanningContext(paths=paths, resolved=resolved, materialized_units=tuple(units))
    plan = ActionPlan()
    for renderer in registry.select(resolved.tools.enabled):
        rendered = renderer.plan(context)
        validate_renderer_plan(renderer.tool_id, rendered)
        plan.extend(rendered.actions)
    if tool_specs:
        for entry in collect_gitignore_entries(tool_specs, resolved.tools.enabled):
            plan.add_action(EnsureGitignore(pattern=entry))
    plan.normalize()
    return plan


def plan_operations(
    paths: ProjectPaths,
    resolved: ResolvedConfig,
    units: Sequence[MaterializedFetchUnit],
    registry: RendererRegistry,
    tool_specs: Sequence[ToolSpec] = (),
    *,
    home: Path | None = None,
) -> list[PlannedOperation]:
    plan = build_plan(paths, resolved, units, registry, tool_specs)
    return collect_plan_operations(paths, plan, home=home)


def validate_plan(plan: ActionPlan) -> None:
    """Refuse plans whose generated content carries error-severity secrets."""
    for action in plan.actions:
        if isinstance(action, WriteFile):
            content = action.content
        elif isinstance(action, MergeJson):
            content = json.dumps(action.patch, sort_keys=True).encode("utf-8")
        else:
            continue
        findings = [
            finding
            for finding in scan_bytes(action.path, content)
            if finding.severity == SEVERITY_ERROR
        ]
        if findings:
            raise SecretDetectedError(action.path, describe_findings(findings))


def preview_operations(
    operations: Sequence[PlannedOperation],
    limits: EngineLimits | None = None,
) -> list[OperationPreview]:
    """Redacted, bounded diffs for every operation."""
    limits = limits or EngineLimits()
    return [
        OperationPreview(
            operation=operation,
            diff=render_diff(
                operation, max_lines=limits.max_diff_lines, max_bytes=limits.max_diff_bytes
            ),
        )
        for operation in operations
    ]


def apply_plan(
    paths: ProjectPaths,
    plan: ActionPlan,
    *,
    allow_user_scope: bool = False,
    home: Path | None = None,
    tool_specs: Sequence[ToolSpec] = (),
    audit_logger: JsonlAuditLogger | None = None,
    on_progress: ProgressCallback | None = None,
) -> ApplyReport:
    """Normalize, pre-flight, collapse and apply a plan."""
    plan.normalize()
    validate_plan(plan)
    operations = collect_plan_operations(paths, plan, home=home)
    return apply_operations(
        paths,
        operations,
        allow_user_scope=allow_user_scope,
        home=home,
        merge_policy=merge_policy_for_specs(tool_specs),
        audit_logger=audit_logger,
        on_progress=on_progress,
    )
