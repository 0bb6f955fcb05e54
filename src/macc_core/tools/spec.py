"""Tool specifications: identity and the directories each tool manages."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import yaml

from macc_core.errors import ValidationError
from macc_core.merge.structured import StructuredMergePolicy, managed_prefix_for_entry
from macc_core.project import MACC_DIR_NAME, ProjectPaths, find_user_home

SUPPORTED_API_VERSION: Final = "v1"
BASELINE_GITIGNORE_ENTRY: Final = f"{MACC_DIR_NAME}/"
TOOL_SPEC_SUFFIXES: Final[tuple[str, ...]] = (".tool.yaml", ".tool.yml", ".tool.json")
KEBAB_CASE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """Declarative description of a target tool."""

    id: str
    display_name: str
    gitignore: tuple[str, ...] = ()
    description: str | None = None
    api_version: str = SUPPORTED_API_VERSION

    def validate(self) -> None:
        if self.api_version != SUPPORTED_API_VERSION:
            raise ValidationError(
                f"Unsupported api_version: {self.api_version}. Supported: {SUPPORTED_API_VERSION}"
            )
        if not KEBAB_CASE_PATTERN.match(self.id):
            raise ValidationError(f"Tool ID must be kebab-case: {self.id}")


@dataclass(slots=True, frozen=True)
class ToolSpecDiagnostic:
    path: Path
    error: str


def tool_spec_from_mapping(payload: object) -> ToolSpec:
    if not isinstance(payload, dict):
        raise ValidationError("Tool spec must be a mapping.")
    for key in ("api_version", "id", "display_name"):
        if not isinstance(payload.get(key), str):
            raise ValidationError(f"Tool spec field '{key}' must be a string.")
    gitignore = payload.get("gitignore") or []
    if not isinstance(gitignore, list) or not all(isinstance(item, str) for item in gitignore):
        raise ValidationError("Tool spec field 'gitignore' must be a list of strings.")
    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        raise ValidationError("Tool spec field 'description' must be a string.")
    spec = ToolSpec(
        id=payload["id"],
        display_name=payload["display_name"],
        gitignore=tuple(gitignore),
        description=description,
        api_version=payload["api_version"],
    )
    spec.validate()
    return spec


def parse_tool_spec(text: str, is_json: bool = False) -> ToolSpec:
    try:
        payload = json.loads(text) if is_json else yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise ValidationError(f"Invalid tool spec: {exc}") from exc
    return tool_spec_from_mapping(payload)


def default_search_paths(paths: ProjectPaths) -> list[Path]:
    """User tools.d first, then the project's; later directories win by id."""
    search: list[Path] = []
    home = find_user_home()
    if home is not None:
        search.append(home / ".config" / "macc" / "tools.d")
    search.append(paths.tool_specs_dir)
    return search


def load_tool_specs(
    search_paths: Sequence[Path],
    builtin: Iterable[ToolSpec] = (),
) -> tuple[list[ToolSpec], list[ToolSpecDiagnostic]]:
    """Load specs sorted by id; invalid files become diagnostics, not errors."""
    specs: dict[str, ToolSpec] = {spec.id: spec for spec in builtin}
    diagnostics: list[ToolSpecDiagnostic] = []
    for directory in search_paths:
        if not directory.is_dir():
            continue
        for path in sorted(directory.iterdir(), key=lambda item: item.name):
            if not path.is_file() or not path.name.endswith(TOOL_SPEC_SUFFIXES):
                continue
            try:
                text = path.read_text(encoding="utf-8")
                spec = parse_tool_spec(text, is_json=path.suffix == ".json")
            except OSError as exc:
                error = f"Failed to read file: {exc}"
                diagnostics.append(ToolSpecDiagnostic(path=path, error=error))
                continue
            except ValidationError as exc:
                diagnostics.append(ToolSpecDiagnostic(path=path, error=str(exc)))
                continue
            specs[spec.id] = spec
    return [specs[key] for key in sorted(specs)], diagnostics


def managed_prefixes(specs: Iterable[ToolSpec]) -> tuple[str, ...]:
    """Sorted directory prefixes declared through gitignore entries ending in '/'."""
    prefixes = {
        prefix
        for spec in specs
        for entry in spec.gitignore
        if (prefix := managed_prefix_for_entry(entry)) is not None
    }
    return tuple(sorted(prefixes))


def merge_policy_for_specs(specs: Iterable[ToolSpec]) -> StructuredMergePolicy:
    return StructuredMergePolicy(managed_prefixes=managed_prefixes(specs))


def collect_gitignore_entries(specs: Iterable[ToolSpec], enabled: Iterable[str]) -> tuple[str, ...]:
    """Baseline entry first, then enabled tools' entries in id order, deduplicated."""
    enabled_ids = set(enabled)
    entries: list[str] = [BASELINE_GITIGNORE_ENTRY]
    for spec in sorted(specs, key=lambda item: item.id):
        if spec.id not in enabled_ids:
            continue
        for entry in spec.gitignore:
            stripped = entry.strip()
            if stripped and stripped not in entries:
                entries.append(stripped)
    return tuple(entries)
