"""Canonicalize raw configuration into a deterministic resolved form."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from macc_core.config import CanonicalConfig, CliOverrides, McpTemplate

DEFAULT_VERSION = "v1"
DEFAULT_LANGUAGE = "English"


@dataclass(slots=True, frozen=True)
class ResolvedTools:
    enabled: tuple[str, ...]
    config: dict[str, Any] = field(default_factory=dict)
    specific: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ResolvedStandards:
    path: str | None
    inline: dict[str, str]


@dataclass(slots=True, frozen=True)
class ResolvedSelections:
    skills: tuple[str, ...] = ()
    agents: tuple[str, ...] = ()
    mcp: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ResolvedConfig:
    """Sorted, deduplicated configuration consumed by planning."""

    version: str
    tools: ResolvedTools
    standards: ResolvedStandards
    selections: ResolvedSelections
    mcp_templates: tuple[McpTemplate, ...] = ()
    automation: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "version": self.version,
            "tools": {
                "enabled": list(self.tools.enabled),
                "config": self.tools.config,
                "specific": self.tools.specific,
            },
            "standards": {"path": self.standards.path, "inline": self.standards.inline},
            "selections": {
                "skills": list(self.selections.skills),
                "agents": list(self.selections.agents),
                "mcp": list(self.selections.mcp),
            },
            "mcp_templates": [template.to_dict() for template in self.mcp_templates],
            "automation": self.automation,
        }

    def to_json(self) -> str:
        """Key-sorted JSON; identical inputs always serialize identically."""
        return json.dumps(self.to_dict(), indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    def template(self, template_id: str) -> McpTemplate | None:
        for template in self.mcp_templates:
            if template.id == template_id:
                return template
        return None


def sorted_unique(values: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    return tuple(sorted(set(values)))


def resolve(canonical: CanonicalConfig, overrides: CliOverrides | None = None) -> ResolvedConfig:
    """Apply overrides and canonicalize ordering of every list."""
    overrides = overrides or CliOverrides()
    enabled = overrides.tools if overrides.tools is not None else canonical.tools.enabled

    inline = dict(sorted(canonical.standards.inline.items()))
    inline.setdefault("language", DEFAULT_LANGUAGE)

    selections = canonical.selections
    return ResolvedConfig(
        version=canonical.version or DEFAULT_VERSION,
        tools=ResolvedTools(
            enabled=sorted_unique(enabled),
            config=dict(canonical.tools.config),
            specific=dict(canonical.tools.settings),
        ),
        standards=ResolvedStandards(
            path=canonical.standards.path, inline=dict(sorted(inline.items()))
        ),
        selections=ResolvedSelections(
            skills=sorted_unique(selections.skills) if selections else (),
            agents=sorted_unique(selections.agents) if selections else (),
            mcp=sorted_unique(selections.mcp) if selections else (),
        ),
        mcp_templates=canonical.mcp_templates,
        automation=dict(canonical.automation),
    )
