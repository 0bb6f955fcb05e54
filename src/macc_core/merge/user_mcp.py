"""Add missing MCP servers to the user's ~/.claude.json without touching existing ones."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Final

from macc_core.errors import ValidationError
from macc_core.plan.actions import ActionPlan, BackupFile, MergeJson
from macc_core.security.paths import SCOPE_USER

USER_CLAUDE_CONFIG: Final = ".claude.json"


def _read_user_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationError(f"Expected a JSON object in {path}")
    return payload


def plan_user_mcp_merge(plan: ActionPlan, servers: dict[str, Any], home: Path) -> bool:
    """Plan a backup plus merge carrying only server ids absent from the user file.

    Returns True when actions were added.
    """
    if not servers:
        return False
    user_path = home / USER_CLAUDE_CONFIG
    existing = _read_user_config(user_path)
    existing_servers = existing.get("mcpServers", {})
    if not isinstance(existing_servers, dict):
        raise ValidationError(f"Expected 'mcpServers' to be an object in {user_path}")

    missing = {
        server_id: server
        for server_id, server in sorted(servers.items())
        if server_id not in existing_servers
    }
    if not missing:
        return False

    path = user_path.as_posix()
    plan.add_action(BackupFile(path=path, scope=SCOPE_USER))
    plan.add_action(MergeJson(path=path, patch={"mcpServers": missing}, scope=SCOPE_USER))
    return True
