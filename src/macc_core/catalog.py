"""Skill and MCP catalogs: remote source descriptors and catalog persistence."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Final

from macc_core.apply.writer import write_atomic
from macc_core.errors import ValidationError
from macc_core.packages import has_skill_marker
from macc_core.project import ProjectPaths

SOURCE_KINDS: Final[tuple[str, ...]] = ("git", "http", "local")
CATALOG_SCHEMA_VERSION: Final = "1.0"
CATALOG_TYPE_SKILLS: Final = "skills"
CATALOG_TYPE_MCP: Final = "mcp"


@dataclass(slots=True, frozen=True)
class Source:
    """Where catalog content is fetched from; subpaths select within it."""

    kind: str
    url: str
    ref: str = ""
    checksum: str | None = None
    subpaths: tuple[str, ...] = ()

    def cache_key(self) -> str:
        """sha256 over kind, url, ref and checksum; subpaths are excluded."""
        raw = f"{self.kind}|{self.url}|{self.ref}|{self.checksum or ''}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def without_subpaths(self) -> Source:
        return replace(self, subpaths=())

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "kind": self.kind,
            "url": self.url,
            "ref": self.ref,
            "checksum": self.checksum,
        }
        if self.subpaths:
            payload["subpaths"] = list(self.subpaths)
        return payload


@dataclass(slots=True, frozen=True)
class CatalogEntry:
    """A skill or MCP server listed in a catalog."""

    id: str
    name: str
    description: str
    tags: tuple[str, ...]
    subpath: str
    source: Source

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "selector": {"subpath": self.subpath},
            "source": self.source.to_dict(),
        }


@dataclass(slots=True)
class Catalog:
    """Catalog document; entries are unique by id."""

    catalog_type: str
    schema_version: str = CATALOG_SCHEMA_VERSION
    updated_at: str = ""
    entries: list[CatalogEntry] = field(default_factory=list)

    def get(self, entry_id: str) -> CatalogEntry | None:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def upsert(self, entry: CatalogEntry) -> None:
        for index, existing in enumerate(self.entries):
            if existing.id == entry.id:
                self.entries[index] = entry
                break
        else:
            self.entries.append(entry)
        self._touch()

    def delete(self, entry_id: str) -> bool:
        remaining = [entry for entry in self.entries if entry.id != entry_id]
        changed = len(remaining) != len(self.entries)
        if changed:
            self.entries = remaining
            self._touch()
        return changed

    def _touch(self) -> None:
        now = datetime.now(tz=UTC).replace(microsecond=0)
        self.updated_at = now.isoformat().replace("+00:00", "Z")

    def to_dict(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "type": self.catalog_type,
            "updated_at": self.updated_at,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    def save(self, path: Path) -> None:
        text = json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"
        write_atomic(path, text.encode("utf-8"))


def _string(payload: dict[str, Any], key: str, where: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValidationError(f"Catalog field '{where}.{key}' must be a string.")
    return value


def _parse_source(payload: object, where: str) -> Source:
    if not isinstance(payload, dict):
        raise ValidationError(f"Catalog field '{where}' must be an object.")
    kind = _string(payload, "kind", where)
    if kind not in SOURCE_KINDS:
        kinds = ", ".join(SOURCE_KINDS)
        raise ValidationError(f"Catalog field '{where}.kind' must be one of {kinds}.")
    checksum = payload.get("checksum")
    if checksum is not None and not isinstance(checksum, str):
        raise ValidationError(f"Catalog field '{where}.checksum' must be a string.")
    subpaths = payload.get("subpaths", [])
    if not isinstance(subpaths, list) or not all(isinstance(item, str) for item in subpaths):
        raise ValidationError(f"Catalog field '{where}.subpaths' must be a list of strings.")
    return Source(
        kind=kind,
        url=_string(payload, "url", where),
        ref=_string(payload, "ref", where),
        checksum=checksum,
        subpaths=tuple(subpaths),
    )


def _parse_entry(payload: object, where: str) -> CatalogEntry:
    if not isinstance(payload, dict):
        raise ValidationError(f"Catalog field '{where}' must be an object.")
    tags = payload.get("tags", [])
    if not isinstance(tags, list) or not all(isinstance(item, str) for item in tags):
        raise ValidationError(f"Catalog field '{where}.tags' must be a list of strings.")
    selector = payload.get("selector")
    if not isinstance(selector, dict):
        raise ValidationError(f"Catalog field '{where}.selector' must be an object.")
    return CatalogEntry(
        id=_string(payload, "id", where),
        name=_string(payload, "name", where),
        description=_string(payload, "description", where),
        tags=tuple(tags),
        subpath=_string(selector, "subpath", f"{where}.selector"),
        source=_parse_source(payload.get("source"), f"{where}.source"),
    )


def parse_catalog(payload: object, catalog_type: str) -> Catalog:
    if not isinstance(payload, dict):
        raise ValidationError("Catalog must be a JSON object.")
    entries = payload.get("entries", [])
    if not isinstance(entries, list):
        raise ValidationError("Catalog field 'entries' must be a list.")
    return Catalog(
        catalog_type=str(payload.get("type", catalog_type)),
        schema_version=str(payload.get("schema_version", CATALOG_SCHEMA_VERSION)),
        updated_at=str(payload.get("updated_at", "")),
        entries=[_parse_entry(item, f"entries[{index}]") for index, item in enumerate(entries)],
    )


def load_catalog(path: Path, catalog_type: str) -> Catalog:
    """Load a catalog file; a missing file is an empty catalog."""
    if not path.exists():
        return Catalog(catalog_type=catalog_type)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValidationError(f"Failed to read {catalog_type} catalog at {path}: {exc}") from exc
    except ValueError as exc:
        raise ValidationError(f"Failed to parse {catalog_type} catalog at {path}: {exc}") from exc
    return parse_catalog(payload, catalog_type)


def discover_local_skills(paths: ProjectPaths) -> list[CatalogEntry]:
    """Skill folders under .macc/skills/ that carry a marker file."""
    root = paths.skills_dir
    if not root.is_dir():
        return []
    entries: list[CatalogEntry] = []
    for child in sorted(root.iterdir()):
        if not child.is_dir() or not has_skill_marker(child):
            continue
        entries.append(
            CatalogEntry(
                id=child.name,
                name=f"Local: {child.name}",
                description=f"Local skill from {child}",
                tags=("local",),
                subpath="",
                source=Source(kind="local", url=str(child)),
            )
        )
    return entries


def load_skills_catalog_with_local(paths: ProjectPaths) -> Catalog:
    """Project skills catalog plus local skills; catalog entries win on id clash."""
    catalog = load_catalog(paths.skills_catalog_path, CATALOG_TYPE_SKILLS)
    known = {entry.id for entry in catalog.entries}
    for entry in discover_local_skills(paths):
        if entry.id not in known:
            catalog.entries.append(entry)
            known.add(entry.id)
    catalog.entries.sort(key=lambda entry: entry.id)
    return catalog


def load_mcp_catalog(paths: ProjectPaths) -> Catalog:
    return load_catalog(paths.mcp_catalog_path, CATALOG_TYPE_MCP)
