from __future__ import annotations

from pathlib import Path

import pytest

from macc_core.config import (
    BUILTIN_MCP_TEMPLATES,
    load_canonical_config,
    parse_canonical_config,
)
from macc_core.errors import ConfigError

MINIMAL = "tools:\n  enabled: [claude]\n"


def test_minimal_config_gets_builtin_templates() -> None:
    config = parse_canonical_config(MINIMAL)

    assert config.tools.enabled == ("claude",)
    assert config.selections is None
    assert config.mcp_templates == BUILTIN_MCP_TEMPLATES
    assert [template.id for template in BUILTIN_MCP_TEMPLATES] == [
        "brave-search",
        "github-issues",
        "local-notes",
    ]


def test_full_config_sections_are_parsed() -> None:
    text = """
version: v1
tools:
  enabled: [gemini, claude]
  config:
    claude:
      model: sonnet
  gemini:
    skills: [lint]
standards:
  path: docs/standards.md
  language: French
selections:
  skills: [lint]
  mcp: [local-notes]
automation:
  coordinator:
    enabled: false
"""
    config = parse_canonical_config(text)

    assert config.version == "v1"
    assert config.tools.enabled == ("gemini", "claude")
    assert config.tools.config == {"claude": {"model": "sonnet"}}
    assert config.tools.settings == {"gemini": {"skills": ["lint"]}}
    assert config.standards.path == "docs/standards.md"
    assert config.standards.inline == {"language": "French"}
    assert config.selections is not None
    assert config.selections.mcp == ("local-notes",)
    assert config.automation == {"coordinator": {"enabled": False}}


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("tools: {}\n", "tools.enabled' is required"),
        ("tools:\n  enabled: claude\n", "must be a list of strings"),
        ("tools:\n  enabled: [1]\n", "must contain only strings"),
        (MINIMAL + "unknown: 1\n", "Unknown config field 'unknown'"),
        (MINIMAL + "selections:\n  widgets: []\n", "selections.widgets"),
        (MINIMAL + "standards:\n  language: 3\n", "standards.language"),
        ("- just\n- a list\n", "top-level mapping"),
        ("tools: [\n", "Invalid YAML"),
    ],
)
def test_invalid_config_is_reported_with_field(text: str, message: str) -> None:
    with pytest.raises(ConfigError) as error:
        parse_canonical_config(text, source="macc.yaml")

    assert message in str(error.value)
    assert str(error.value).startswith("Configuration error in macc.yaml:")


def test_duplicate_template_ids_are_rejected() -> None:
    template = "  - id: dup\n    title: T\n    description: D\n    command: run\n"
    text = MINIMAL + "mcp_templates:\n" + template + template

    with pytest.raises(ConfigError, match="Duplicate MCP template ID: dup"):
        parse_canonical_config(text)


def test_template_without_command_is_rejected() -> None:
    text = (
        MINIMAL
        + "mcp_templates:\n  - id: x\n    title: T\n    description: D\n    command: ' '\n"
    )

    with pytest.raises(ConfigError, match="must include a command"):
        parse_canonical_config(text)


def test_placeholder_without_value_is_rejected() -> None:
    text = (
        MINIMAL
        + "mcp_templates:\n  - id: x\n    title: T\n    description: D\n    command: run\n"
        + "    env_placeholders:\n      - name: TOKEN\n        placeholder: ''\n"
    )

    with pytest.raises(ConfigError, match="without a placeholder value"):
        parse_canonical_config(text)


def test_yaml_roundtrip_is_stable() -> None:
    config = parse_canonical_config(MINIMAL + "selections:\n  skills: [b, a]\n")

    assert parse_canonical_config(config.to_yaml()) == config


def test_load_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Cannot read configuration"):
        load_canonical_config(tmp_path / "macc.yaml")
