"""Tool specifications, renderer contract and registry."""

from .registry import RendererRegistry
from .renderer import PlanningContext, Renderer, RendererContractError, validate_renderer_plan
from .spec import (
    BASELINE_GITIGNORE_ENTRY,
    ToolSpec,
    ToolSpecDiagnostic,
    collect_gitignore_entries,
    default_search_paths,
    load_tool_specs,
    managed_prefixes,
    merge_policy_for_specs,
    parse_tool_spec,
)

__all__ = [
    "BASELINE_GITIGNORE_ENTRY",
    "PlanningContext",
    "Renderer",
    "RendererContractError",
    "RendererRegistry",
    "ToolSpec",
    "ToolSpecDiagnostic",
    "collect_gitignore_entries",
    "default_search_paths",
    "load_tool_specs",
    "managed_prefixes",
    "merge_policy_for_specs",
    "parse_tool_spec",
    "validate_renderer_plan",
]
