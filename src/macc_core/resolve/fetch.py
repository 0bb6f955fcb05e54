"""Group catalog selections into fetch units keyed by remote source."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Protocol

from macc_core.catalog import (
    Catalog,
    CatalogEntry,
    Source,
    load_mcp_catalog,
    load_skills_catalog_with_local,
)
from macc_core.errors import CatalogEntryNotFoundError, ValidationError
from macc_core.project import ProjectPaths
from macc_core.resolve.resolver import ResolvedConfig

SELECTION_SKILL: Final = "skill"
SELECTION_MCP: Final = "mcp"


@dataclass(slots=True, frozen=True)
class Selection:
    id: str
    subpath: str
    kind: str


@dataclass(slots=True, frozen=True)
class FetchUnit:
    """One source to fetch, with the union of subpaths its selections need."""

    source: Source
    selections: tuple[Selection, ...]


@dataclass(slots=True, frozen=True)
class MaterializedFetchUnit:
    """A fetch unit after download: a local root plus the same selections."""

    source_root_path: Path
    selections: tuple[Selection, ...]


class Materializer(Protocol):
    """Downloader contract; network access lives behind this boundary."""

    def materialize(self, unit: FetchUnit) -> MaterializedFetchUnit:
        """Return a local root for the unit or raise."""


def _string_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, dict):
        return []
    node = value.get(key)
    if isinstance(node, list):
        return [item for item in node if isinstance(item, str)]
    if isinstance(node, str):
        return [item.strip() for item in node.split(",") if item.strip()]
    return []


def collect_skill_ids(resolved: ResolvedConfig) -> tuple[str, ...]:
    """Selected skills plus skills named in per-tool configuration."""
    ids = list(resolved.selections.skills)
    for value in resolved.tools.config.values():
        ids.extend(_string_list(value, "skills"))
    for value in resolved.tools.specific.values():
        ids.extend(_string_list(value, "skills"))
    return tuple(sorted(set(ids)))


def _lookup(catalog: Catalog, entry_id: str, label: str) -> CatalogEntry:
    entry = catalog.get(entry_id)
    if entry is None:
        raise CatalogEntryNotFoundError(label, entry_id)
    return entry


def resolve_fetch_units(
    resolved: ResolvedConfig,
    skills_catalog: Catalog,
    mcp_catalog: Catalog,
) -> list[FetchUnit]:
    """Return fetch units sorted by source cache key."""
    raw: list[tuple[Source, Selection]] = []
    for skill_id in collect_skill_ids(resolved):
        entry = _lookup(skills_catalog, skill_id, "Skill")
        selection = Selection(id=entry.id, subpath=entry.subpath, kind=SELECTION_SKILL)
        raw.append((entry.source, selection))
    for mcp_id in resolved.selections.mcp:
        entry = _lookup(mcp_catalog, mcp_id, "MCP")
        selection = Selection(id=entry.id, subpath=entry.subpath, kind=SELECTION_MCP)
        raw.append((entry.source, selection))

    groups: dict[Source, list[Selection]] = {}
    for source, selection in raw:
        groups.setdefault(source.without_subpaths(), []).append(selection)

    units = [
        FetchUnit(
            source=Source(
                kind=source.kind,
                url=source.url,
                ref=source.ref,
                checksum=source.checksum,
                subpaths=tuple(sorted({selection.subpath for selection in selections})),
            ),
            selections=tuple(sorted(selections, key=lambda item: (item.id, item.kind))),
        )
        for source, selections in groups.items()
    ]
    units.sort(key=lambda unit: unit.source.cache_key())
    return units


def resolve_project_fetch_units(paths: ProjectPaths, resolved: ResolvedConfig) -> list[FetchUnit]:
    """Load the project's catalogs and resolve fetch units against them."""
    return resolve_fetch_units(
        resolved,
        load_skills_catalog_with_local(paths),
        load_mcp_catalog(paths),
    )


class LocalMaterializer:
    """Materializes local sources in place; other kinds need an external fetcher."""

    def materialize(self, unit: FetchUnit) -> MaterializedFetchUnit:
        if unit.source.kind != "local":
            raise ValidationError(
                f"Source kind '{unit.source.kind}' requires an external fetcher: {unit.source.url}"
            )
        root = Path(unit.source.url)
        if not root.is_dir():
            raise ValidationError(f"Local source does not exist: {root}")
        return MaterializedFetchUnit(source_root_path=root, selections=unit.selections)


def materialize_all(
    units: Sequence[FetchUnit], materializer: Materializer
) -> list[MaterializedFetchUnit]:
    return [materializer.materialize(unit) for unit in units]
