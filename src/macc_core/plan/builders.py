"""Plan builders for materialized packages and project MCP configuration."""

from __future__ import annotations

import json
from pathlib import Path, PurePosixPath
from typing import Any, Final

from macc_core.config import McpTemplate
from macc_core.errors import ValidationError
from macc_core.packages import McpManifest, validate_mcp_folder, validate_skill_folder
from macc_core.plan.actions import ActionPlan, MergeJson, WriteFile
from macc_core.resolve.resolver import ResolvedConfig

PROJECT_MCP_PATH: Final = ".mcp.json"


def _collect_files(base: Path, current: Path, found: list[tuple[str, Path]]) -> None:
    for entry in sorted(current.iterdir(), key=lambda item: item.name):
        if entry.is_symlink():
            raise ValidationError(f"Symlinks are not supported: {entry}")
        if entry.is_dir():
            _collect_files(base, entry, found)
        elif entry.is_file():
            found.append((entry.relative_to(base).as_posix(), entry))
        else:
            raise ValidationError(f"Unsupported file type at: {entry}")


def expand_directory_to_plan(plan: ActionPlan, src_dir: Path, dest_root: str) -> None:
    """Add one WriteFile per regular file under src_dir, ordered by relative path."""
    if not src_dir.is_dir():
        raise ValidationError(f"Source is not a directory: {src_dir}")
    found: list[tuple[str, Path]] = []
    try:
        _collect_files(src_dir, src_dir, found)
    except OSError as exc:
        raise ValidationError(f"Failed to read directory {src_dir}: {exc}") from exc
    for relative, absolute in sorted(found):
        try:
            content = absolute.read_bytes()
        except OSError as exc:
            raise ValidationError(f"Failed to read file {absolute}: {exc}") from exc
        plan.add_action(WriteFile(path=str(PurePosixPath(dest_root, relative)), content=content))


def _package_path(root: Path, subpath: str) -> Path:
    if not subpath or subpath == ".":
        return root
    return root / subpath


def plan_skill_install(
    plan: ActionPlan, tool: str, skill_id: str, root: Path, subpath: str
) -> None:
    """Copy a validated skill folder under .<tool>/skills/<skill_id>/."""
    skill_path = _package_path(root, subpath)
    validate_skill_folder(skill_path, require_manifest=True)
    expand_directory_to_plan(plan, skill_path, f".{tool}/skills/{skill_id}")


def build_patch_from_merge_target(merge_target: str, value: Any) -> dict[str, Any]:
    """Nest value under the dotted merge_target path."""
    parts = [part.strip() for part in merge_target.split(".")]
    if not parts or any(not part for part in parts):
        raise ValidationError(f"Invalid merge_target: '{merge_target}'")
    patch: Any = value
    for key in reversed(parts):
        patch = {key: patch}
    return patch


def plan_mcp_install(plan: ActionPlan, mcp_id: str, root: Path, subpath: str) -> McpManifest:
    """Merge a validated MCP package's server into the project .mcp.json."""
    manifest = validate_mcp_folder(_package_path(root, subpath), mcp_id)
    patch = build_patch_from_merge_target(manifest.merge_target, manifest.server)
    plan.add_action(MergeJson(path=PROJECT_MCP_PATH, patch=patch))
    return manifest


def template_to_server(template: McpTemplate) -> dict[str, Any]:
    env = {
        placeholder.name: placeholder.placeholder
        for placeholder in sorted(template.env_placeholders, key=lambda item: item.name)
    }
    return {"args": list(template.args), "command": template.command, "env": env}


def render_mcp_json(servers: dict[str, Any]) -> str:
    document = {"mcpServers": dict(sorted(servers.items()))}
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def render_project_mcp_json(resolved: ResolvedConfig) -> str | None:
    """The .mcp.json document for selected templates, or None when nothing is selected."""
    selected = set(resolved.selections.mcp)
    servers = {
        template.id: template_to_server(template)
        for template in resolved.mcp_templates
        if template.id in selected
    }
    if not servers:
        return None
    return render_mcp_json(servers)
