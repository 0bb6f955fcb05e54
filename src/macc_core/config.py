"""Canonical project configuration and engine limits with deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from macc_core.errors import ConfigError
from macc_core.project import ProjectPaths

MAX_DIFF_LINES_CAP = 20_000
MAX_DIFF_BYTES_CAP = 4 * 1024 * 1024

_TOP_LEVEL_KEYS = frozenset(
    {"version", "tools", "standards", "selections", "automation", "mcp_templates"}
)
_SELECTION_KEYS = ("skills", "agents", "mcp")


@dataclass(slots=True, frozen=True)
class ToolsConfig:
    """Tool enablement plus per-tool tables and extra tool-specific keys."""

    enabled: tuple[str, ...] = ()
    config: dict[str, Any] = field(default_factory=dict)
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class StandardsConfig:
    path: str | None = None
    inline: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class SelectionsConfig:
    skills: tuple[str, ...] = ()
    agents: tuple[str, ...] = ()
    mcp: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class McpEnvPlaceholder:
    name: str
    placeholder: str
    description: str | None = None


@dataclass(slots=True, frozen=True)
class McpTemplate:
    """Project MCP server template; env values are placeholders, never secrets."""

    id: str
    title: str
    description: str
    command: str
    args: tuple[str, ...] = ()
    env_placeholders: tuple[McpEnvPlaceholder, ...] = ()
    auth_notes: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "command": self.command,
        }
        if self.args:
            payload["args"] = list(self.args)
        if self.env_placeholders:
            payload["env_placeholders"] = [
                _placeholder_to_dict(placeholder) for placeholder in self.env_placeholders
            ]
        if self.auth_notes is not None:
            payload["auth_notes"] = self.auth_notes
        return payload


def _placeholder_to_dict(placeholder: McpEnvPlaceholder) -> dict[str, object]:
    payload: dict[str, object] = {"name": placeholder.name, "placeholder": placeholder.placeholder}
    if placeholder.description is not None:
        payload["description"] = placeholder.description
    return payload


BUILTIN_MCP_TEMPLATES: tuple[McpTemplate, ...] = (
    McpTemplate(
        id="brave-search",
        title="Brave Search",
        description="Search the web via the Brave Search API (placeholder only).",
        command="node",
        args=("scripts/brave-search-mcp.js",),
        env_placeholders=(
            McpEnvPlaceholder(
                name="BRAVE_API_KEY",
                placeholder="${BRAVE_API_KEY}",
                description="Brave Search API key placeholder; set this locally before running.",
            ),
        ),
        auth_notes=(
            "Provide ${BRAVE_API_KEY} via your environment; only the placeholder is written."
        ),
    ),
    McpTemplate(
        id="github-issues",
        title="GitHub Issues",
        description="Manage GitHub issues for the current repository (placeholder auth).",
        command="python",
        args=("scripts/github-issues-mcp.py",),
        env_placeholders=(
            McpEnvPlaceholder(
                name="GITHUB_TOKEN",
                placeholder="${GITHUB_TOKEN}",
                description="Personal access token with repo scope; only the placeholder is kept.",
            ),
        ),
        auth_notes="Set ${GITHUB_TOKEN} locally and keep the real token out of version control.",
    ),
    McpTemplate(
        id="local-notes",
        title="Local Notes",
        description="Expose project notes stored in the repository without extra authentication.",
        command="bash",
        args=("scripts/local-notes.sh", "--dir", "./notes"),
        auth_notes="No secrets required; reads from the checked-in notes directory.",
    ),
)


@dataclass(slots=True, frozen=True)
class CanonicalConfig:
    """Validated contents of .macc/macc.yaml."""

    version: str | None = None
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    standards: StandardsConfig = field(default_factory=StandardsConfig)
    selections: SelectionsConfig | None = None
    automation: dict[str, Any] = field(default_factory=dict)
    mcp_templates: tuple[McpTemplate, ...] = BUILTIN_MCP_TEMPLATES

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {}
        if self.version is not None:
            payload["version"] = self.version
        tools: dict[str, object] = {"enabled": list(self.tools.enabled)}
        if self.tools.config:
            tools["config"] = self.tools.config
        tools.update(self.tools.settings)
        payload["tools"] = tools
        standards: dict[str, object] = {}
        if self.standards.path is not None:
            standards["path"] = self.standards.path
        standards.update(self.standards.inline)
        payload["standards"] = standards
        if self.selections is not None:
            payload["selections"] = {
                key: list(getattr(self.selections, key))
                for key in _SELECTION_KEYS
                if getattr(self.selections, key)
            }
        if self.automation:
            payload["automation"] = self.automation
        payload["mcp_templates"] = [template.to_dict() for template in self.mcp_templates]
        return payload

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)


def _get_table(payload: dict[str, Any], key: str, source: str) -> dict[str, Any]:
    value = payload.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(source, f"Config section '{key}' must be a mapping.")
    return value


def _tuple_of_strings(value: object, name: str, source: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(source, f"Config field '{name}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ConfigError(source, f"Config field '{name}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _required_string(payload: dict[str, Any], key: str, name: str, source: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ConfigError(source, f"Config field '{name}.{key}' must be a string.")
    return value


def _optional_string(payload: dict[str, Any], key: str, name: str, source: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(source, f"Config field '{name}.{key}' must be a string.")
    return value


def _parse_tools(payload: dict[str, Any], source: str) -> ToolsConfig:
    tools = _get_table(payload, "tools", source)
    if "enabled" not in tools:
        raise ConfigError(source, "Config field 'tools.enabled' is required.")
    enabled = _tuple_of_strings(tools["enabled"], "tools.enabled", source)
    config = _get_table(tools, "config", source)
    for tool_id, table in config.items():
        if not isinstance(table, dict):
            raise ConfigError(source, f"Config field 'tools.config.{tool_id}' must be a mapping.")
    settings = {key: value for key, value in tools.items() if key not in ("enabled", "config")}
    return ToolsConfig(enabled=enabled, config=dict(config), settings=settings)


def _parse_standards(payload: dict[str, Any], source: str) -> StandardsConfig:
    standards = _get_table(payload, "standards", source)
    path = _optional_string(standards, "path", "standards", source)
    inline: dict[str, str] = {}
    for key, value in standards.items():
        if key == "path":
            continue
        if not isinstance(value, str):
            raise ConfigError(source, f"Config field 'standards.{key}' must be a string.")
        inline[str(key)] = value
    return StandardsConfig(path=path, inline=inline)


def _parse_selections(payload: dict[str, Any], source: str) -> SelectionsConfig | None:
    if payload.get("selections") is None:
        return None
    selections = _get_table(payload, "selections", source)
    unknown = sorted(set(selections) - set(_SELECTION_KEYS))
    if unknown:
        raise ConfigError(source, f"Unknown config field 'selections.{unknown[0]}'.")
    return SelectionsConfig(
        skills=_tuple_of_strings(selections.get("skills"), "selections.skills", source),
        agents=_tuple_of_strings(selections.get("agents"), "selections.agents", source),
        mcp=_tuple_of_strings(selections.get("mcp"), "selections.mcp", source),
    )


def _parse_placeholder(payload: object, name: str, source: str) -> McpEnvPlaceholder:
    if not isinstance(payload, dict):
        raise ConfigError(source, f"Config field '{name}' must be a mapping.")
    return McpEnvPlaceholder(
        name=_required_string(payload, "name", name, source),
        placeholder=_required_string(payload, "placeholder", name, source),
        description=_optional_string(payload, "description", name, source),
    )


def _parse_templates(payload: dict[str, Any], source: str) -> tuple[McpTemplate, ...]:
    if "mcp_templates" not in payload:
        return BUILTIN_MCP_TEMPLATES
    raw = payload["mcp_templates"]
    if not isinstance(raw, list):
        raise ConfigError(source, "Config field 'mcp_templates' must be a list.")
    templates: list[McpTemplate] = []
    for index, item in enumerate(raw):
        name = f"mcp_templates[{index}]"
        if not isinstance(item, dict):
            raise ConfigError(source, f"Config field '{name}' must be a mapping.")
        placeholders = item.get("env_placeholders") or []
        if not isinstance(placeholders, list):
            raise ConfigError(source, f"Config field '{name}.env_placeholders' must be a list.")
        templates.append(
            McpTemplate(
                id=_required_string(item, "id", name, source),
                title=_required_string(item, "title", name, source),
                description=_required_string(item, "description", name, source),
                command=_required_string(item, "command", name, source),
                args=_tuple_of_strings(item.get("args"), f"{name}.args", source),
                env_placeholders=tuple(
                    _parse_placeholder(entry, f"{name}.env_placeholders[{position}]", source)
                    for position, entry in enumerate(placeholders)
                ),
                auth_notes=_optional_string(item, "auth_notes", name, source),
            )
        )
    return tuple(templates)


def validate_canonical_config(config: CanonicalConfig, source: str = "<config>") -> None:
    """Check MCP template invariants."""
    seen: set[str] = set()
    for template in config.mcp_templates:
        template_id = template.id.strip()
        if not template_id:
            raise ConfigError(source, "MCP template ID cannot be empty")
        if template_id in seen:
            raise ConfigError(source, f"Duplicate MCP template ID: {template_id}")
        seen.add(template_id)
        if not template.command.strip():
            raise ConfigError(source, f"MCP template '{template.id}' must include a command")
        for placeholder in template.env_placeholders:
            if not placeholder.name.strip():
                raise ConfigError(
                    source,
                    f"MCP template '{template.id}' contains an env placeholder without a name",
                )
            if not placeholder.placeholder.strip():
                raise ConfigError(
                    source,
                    f"MCP template '{template.id}' contains an env placeholder "
                    f"'{placeholder.name}' without a placeholder value",
                )


def parse_canonical_config(text: str, source: str = "<config>") -> CanonicalConfig:
    """Parse and validate canonical YAML text."""
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(source, f"Invalid YAML: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(source, "Configuration must contain a top-level mapping.")
    unknown = sorted(str(key) for key in payload if key not in _TOP_LEVEL_KEYS)
    if unknown:
        raise ConfigError(source, f"Unknown config field '{unknown[0]}'.")

    version = payload.get("version")
    if version is not None and not isinstance(version, str):
        raise ConfigError(source, "Config field 'version' must be a string.")

    config = CanonicalConfig(
        version=version,
        tools=_parse_tools(payload, source),
        standards=_parse_standards(payload, source),
        selections=_parse_selections(payload, source),
        automation=dict(_get_table(payload, "automation", source)),
        mcp_templates=_parse_templates(payload, source),
    )
    validate_canonical_config(config, source)
    return config


def load_canonical_config(path: Path) -> CanonicalConfig:
    """Read and validate the canonical YAML configuration file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(str(path), f"Cannot read configuration: {exc}") from exc
    return parse_canonical_config(text, source=str(path))


@dataclass(slots=True, frozen=True)
class EngineLimits:
    """Caps applied to rendered previews."""

    max_diff_lines: int = 600
    max_diff_bytes: int = 64 * 1024


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Invocation overrides applied at highest precedence."""

    tools: tuple[str, ...] | None = None
    max_diff_lines: int | None = None
    max_diff_bytes: int | None = None
    warnings: tuple[str, ...] = ()

    @classmethod
    def from_tools_csv(cls, csv: str, allowed: tuple[str, ...] | list[str]) -> CliOverrides:
        """Keep known tool ids from a comma-separated list; unknown ids become warnings."""
        requested = [item.strip() for item in csv.split(",") if item.strip()]
        allowed_set = set(allowed)
        tools = tuple(item for item in requested if item in allowed_set)
        warnings = tuple(f"Unknown tool: {item}" for item in requested if item not in allowed_set)
        return cls(tools=tools or None, warnings=warnings)


def load_engine_config_file(paths: ProjectPaths) -> dict[str, object]:
    """Load optional .macc/engine.toml."""
    config_path = paths.engine_config_path
    if not config_path.exists():
        return {}
    try:
        with config_path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(str(config_path), f"Invalid TOML: {exc}") from exc


def _optional_positive_int_with_cap(value: object, name: str, default: int, cap: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(name, f"Config field '{name}' must be a positive integer.")
    if value > cap:
        raise ConfigError(name, f"Config field '{name}' must be <= {cap}.")
    return value


def merge_engine_limits(
    base: EngineLimits, repo_payload: dict[str, object], overrides: CliOverrides
) -> EngineLimits:
    """Merge defaults, repo engine.toml, then overrides."""
    engine = repo_payload.get("engine", {})
    if not isinstance(engine, dict):
        raise ConfigError("engine", "Config section 'engine' must be a table.")
    max_diff_lines = _optional_positive_int_with_cap(
        engine.get("max_diff_lines"),
        "engine.max_diff_lines",
        base.max_diff_lines,
        MAX_DIFF_LINES_CAP,
    )
    max_diff_bytes = _optional_positive_int_with_cap(
        engine.get("max_diff_bytes"),
        "engine.max_diff_bytes",
        base.max_diff_bytes,
        MAX_DIFF_BYTES_CAP,
    )
    return EngineLimits(
        max_diff_lines=_optional_positive_int_with_cap(
            overrides.max_diff_lines, "overrides.max_diff_lines", max_diff_lines, MAX_DIFF_LINES_CAP
        ),
        max_diff_bytes=_optional_positive_int_with_cap(
            overrides.max_diff_bytes, "overrides.max_diff_bytes", max_diff_bytes, MAX_DIFF_BYTES_CAP
        ),
    )


def load_engine_limits(paths: ProjectPaths, overrides: CliOverrides | None = None) -> EngineLimits:
    """Effective limits using merge order defaults -> engine.toml -> overrides."""
    return merge_engine_limits(
        EngineLimits(), load_engine_config_file(paths), overrides or CliOverrides()
    )
