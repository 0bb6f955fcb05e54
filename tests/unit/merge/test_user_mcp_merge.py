from __future__ import annotations

import json
from pathlib import Path

import pytest

from macc_core.errors import ValidationError
from macc_core.merge.user_mcp import plan_user_mcp_merge
from macc_core.plan import ActionPlan, BackupFile, MergeJson
from macc_core.security import SCOPE_USER

SERVERS = {"zeta": {"command": "z"}, "alpha": {"command": "a"}}


def test_missing_user_file_plans_all_servers(tmp_path: Path) -> None:
    plan = ActionPlan()

    assert plan_user_mcp_merge(plan, SERVERS, tmp_path) is True

    target = (tmp_path / ".claude.json").as_posix()
    patch = {"mcpServers": {"alpha": {"command": "a"}, "zeta": {"command": "z"}}}
    assert plan.actions == [
        BackupFile(path=target, scope=SCOPE_USER),
        MergeJson(path=target, patch=patch, scope=SCOPE_USER),
    ]


def test_existing_servers_are_never_overwritten(tmp_path: Path) -> None:
    (tmp_path / ".claude.json").write_text(
        json.dumps({"mcpServers": {"alpha": {"command": "custom"}}}), encoding="utf-8"
    )
    plan = ActionPlan()

    plan_user_mcp_merge(plan, SERVERS, tmp_path)

    merge = plan.actions[1]
    assert isinstance(merge, MergeJson)
    assert merge.patch == {"mcpServers": {"zeta": {"command": "z"}}}


def test_nothing_missing_adds_no_actions(tmp_path: Path) -> None:
    (tmp_path / ".claude.json").write_text(json.dumps({"mcpServers": SERVERS}), encoding="utf-8")
    plan = ActionPlan()

    assert plan_user_mcp_merge(plan, SERVERS, tmp_path) is False
    assert plan.actions == []


def test_invalid_user_file_is_a_validation_error(tmp_path: Path) -> None:
    (tmp_path / ".claude.json").write_text("{broken", encoding="utf-8")

    with pytest.raises(ValidationError, match="Invalid JSON"):
        plan_user_mcp_merge(ActionPlan(), SERVERS, tmp_path)


def test_non_object_servers_table_is_rejected(tmp_path: Path) -> None:
    (tmp_path / ".claude.json").write_text(json.dumps({"mcpServers": []}), encoding="utf-8")

    with pytest.raises(ValidationError, match="mcpServers"):
        plan_user_mcp_merge(ActionPlan(), SERVERS, tmp_path)
