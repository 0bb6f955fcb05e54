"""Renderer protocol and the contract every rendered plan must satisfy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from macc_core.errors import ValidationError
from macc_core.plan.actions import ActionPlan, EnsureGitignore, Noop
from macc_core.project import ProjectPaths
from macc_core.resolve.fetch import MaterializedFetchUnit
from macc_core.resolve.resolver import ResolvedConfig


@dataclass(slots=True, frozen=True)
class PlanningContext:
    """Inputs handed to every renderer."""

    paths: ProjectPaths
    resolved: ResolvedConfig
    materialized_units: tuple[MaterializedFetchUnit, ...] = ()


class Renderer(Protocol):
    """Tool-specific content generator."""

    tool_id: str

    def plan(self, context: PlanningContext) -> ActionPlan:
        """Return the actions this tool needs; identical input gives an identical plan."""


class RendererContractError(ValidationError):
    """Raised when a renderer plan violates the shared action contract."""


def validate_renderer_plan(tool_id: str, plan: ActionPlan) -> None:
    """Reject Noop actions and empty paths."""
    prefix = f"Renderer '{tool_id}' emitted"
    for action in plan.actions:
        if isinstance(action, Noop):
            raise RendererContractError(f"{prefix} a Noop action: {action.description}")
        if isinstance(action, EnsureGitignore):
            if not action.pattern.strip():
                raise RendererContractError(f"{prefix} an empty gitignore pattern.")
            continue
        if not action.path.strip():
            raise RendererContractError(f"{prefix} an action with an empty path.")
