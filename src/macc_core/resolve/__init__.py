"""Configuration resolution and fetch-unit grouping."""

from .fetch import (
    SELECTION_MCP,
    SELECTION_SKILL,
    FetchUnit,
    LocalMaterializer,
    MaterializedFetchUnit,
    Materializer,
    Selection,
    collect_skill_ids,
    materialize_all,
    resolve_fetch_units,
    resolve_project_fetch_units,
)
from .resolver import (
    ResolvedConfig,
    ResolvedSelections,
    ResolvedStandards,
    ResolvedTools,
    resolve,
)

__all__ = [
    "FetchUnit",
    "LocalMaterializer",
    "MaterializedFetchUnit",
    "Materializer",
    "ResolvedConfig",
    "ResolvedSelections",
    "ResolvedStandards",
    "ResolvedTools",
    "SELECTION_MCP",
    "SELECTION_SKILL",
    "Selection",
    "collect_skill_ids",
    "materialize_all",
    "resolve",
    "resolve_fetch_units",
    "resolve_project_fetch_units",
]
