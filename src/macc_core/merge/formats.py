"""Parse and serialize JSON, TOML and YAML at the merge edges."""

from __future__ import annotations

import json
import tomllib
from typing import Any, Final

import tomli_w
import yaml

FORMAT_JSON: Final = "json"
FORMAT_TOML: Final = "toml"
FORMAT_YAML: Final = "yaml"

_EXTENSION_FORMATS: Final[dict[str, str]] = {
    "json": FORMAT_JSON,
    "toml": FORMAT_TOML,
    "yaml": FORMAT_YAML,
    "yml": FORMAT_YAML,
}


class FormatError(ValueError):
    """Raised when content cannot be parsed or serialized in its format."""


def format_for_path(path: str) -> str | None:
    """Return the structured format implied by a path's extension."""
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return None
    extension = name.rsplit(".", 1)[-1].lower()
    return _EXTENSION_FORMATS.get(extension)


def _ensure_trailing_newline(text: str) -> str:
    return text if text.endswith("\n") else f"{text}\n"


def to_pretty_json(value: Any, *, sort_keys: bool = False) -> str:
    """Indented JSON with a trailing newline."""
    text = json.dumps(value, indent=2, sort_keys=sort_keys, ensure_ascii=False)
    return _ensure_trailing_newline(text)


def parse_content(fmt: str, content: bytes) -> Any:
    """Parse bytes in the given format into a plain value tree."""
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FormatError(f"{fmt} content is not valid UTF-8") from exc
    try:
        if fmt == FORMAT_JSON:
            return json.loads(text)
        if fmt == FORMAT_TOML:
            return tomllib.loads(text)
        if fmt == FORMAT_YAML:
            return yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise FormatError(f"Invalid {fmt} content: {exc}") from exc
    raise FormatError(f"Unsupported format: {fmt}")


def serialize_content(fmt: str, value: Any) -> bytes:
    """Serialize a value tree in the given format with a trailing newline."""
    if fmt not in (FORMAT_JSON, FORMAT_TOML, FORMAT_YAML):
        raise FormatError(f"Unsupported format: {fmt}")
    if fmt == FORMAT_TOML and not isinstance(value, dict):
        raise FormatError("TOML documents must be tables")
    try:
        if fmt == FORMAT_JSON:
            text = to_pretty_json(value)
        elif fmt == FORMAT_TOML:
            text = tomli_w.dumps(value)
        else:
            text = yaml.safe_dump(value, sort_keys=False, allow_unicode=True)
    except (TypeError, ValueError, yaml.YAMLError) as exc:
        raise FormatError(f"Cannot serialize {fmt} content: {exc}") from exc
    return _ensure_trailing_newline(text).encode("utf-8")
