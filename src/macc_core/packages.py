"""Validation of materialized skill and MCP package folders."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from macc_core.errors import ValidationError

SKILL_MARKERS: Final[tuple[str, ...]] = ("SKILL.md", "skill.md", "README.md")
MANIFEST_FILE_NAME: Final = "macc.package.json"


@dataclass(slots=True, frozen=True)
class McpManifest:
    """Parsed macc.package.json of an MCP package."""

    type: str
    id: str
    version: str
    server: Any
    merge_target: str


def has_skill_marker(path: Path) -> bool:
    return any((path / marker).is_file() for marker in SKILL_MARKERS)


def _load_manifest_payload(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValidationError(f"Failed to read manifest {path}: {exc}") from exc
    except ValueError as exc:
        raise ValidationError(f"Failed to parse manifest {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationError(f"Manifest {path} must contain a JSON object.")
    return payload


def _require_directory(path: Path, label: str) -> None:
    if not path.exists():
        raise ValidationError(f"{label} folder does not exist: {path}")
    if not path.is_dir():
        raise ValidationError(f"{label} path is not a directory: {path}")


def validate_skill_folder(path: Path, require_manifest: bool = False) -> None:
    """Require a marker file, or a skill manifest when one is expected."""
    _require_directory(path, "Skill")
    manifest_path = path / MANIFEST_FILE_NAME
    if require_manifest and manifest_path.is_file():
        manifest_type = _load_manifest_payload(manifest_path).get("type")
        if manifest_type != "skill":
            raise ValidationError(
                f"Skill manifest at '{manifest_path}' has invalid type '{manifest_type}' "
                "(expected 'skill')"
            )
        return
    if has_skill_marker(path):
        return
    if require_manifest:
        raise ValidationError(f"Skill folder '{path}' is missing '{MANIFEST_FILE_NAME}'")
    raise ValidationError(
        f"Skill folder '{path}' does not contain any marker files ({', '.join(SKILL_MARKERS)})"
    )


def load_mcp_manifest(path: Path) -> McpManifest:
    payload = _load_manifest_payload(path)
    mcp = payload.get("mcp")
    if not isinstance(mcp, dict) or "server" not in mcp:
        raise ValidationError(f"MCP manifest {path} is missing 'mcp.server'")
    fields: dict[str, str] = {}
    for key in ("type", "id", "version", "merge_target"):
        value = payload.get(key)
        if not isinstance(value, str):
            raise ValidationError(f"MCP manifest {path} field '{key}' must be a string")
        fields[key] = value
    return McpManifest(server=mcp["server"], **fields)


def validate_mcp_folder(path: Path, expected_id: str) -> McpManifest:
    """Load and check an MCP package manifest against the selected id."""
    _require_directory(path, "MCP")
    manifest_path = path / MANIFEST_FILE_NAME
    if not manifest_path.is_file():
        raise ValidationError(f"MCP folder '{path}' is missing '{MANIFEST_FILE_NAME}'")
    manifest = load_mcp_manifest(manifest_path)
    if manifest.type != "mcp":
        raise ValidationError(
            f"MCP manifest at '{manifest_path}' has invalid type '{manifest.type}' (expected 'mcp')"
        )
    if manifest.id != expected_id:
        raise ValidationError(
            f"MCP manifest at '{manifest_path}' id mismatch: found '{manifest.id}', "
            f"expected '{expected_id}'"
        )
    if not manifest.merge_target:
        raise ValidationError(f"MCP manifest at '{manifest_path}' is missing 'merge_target'")
    return manifest
