from __future__ import annotations

import json
import tomllib

import yaml

from macc_core.merge import StructuredMergePolicy, managed_prefix_for_entry, normalize_managed_path

POLICY = StructuredMergePolicy(managed_prefixes=(".codex/", ".gemini/"))


def test_managed_json_preserves_user_keys() -> None:
    existing = b'{"ui": {"theme": "dark", "font": 12}, "user": true}'
    desired = b'{"ui": {"theme": "light"}, "tool": 1}'

    merged = POLICY.merge_bytes_for_path(".gemini/settings.json", existing, desired)

    assert json.loads(merged) == {
        "ui": {"theme": "light", "font": 12},
        "user": True,
        "tool": 1,
    }
    assert merged.endswith(b"\n")


def test_unmanaged_paths_are_replaced_verbatim() -> None:
    desired = b"# New readme\n"

    assert POLICY.merge_bytes_for_path("README.md", b"old", desired) == desired
    assert POLICY.merge_bytes_for_path("settings.json", b'{"a": 1}', b'{"b": 2}') == b'{"b": 2}'
    assert POLICY.merge_bytes_for_path(".gemini/notes.md", b"old", desired) == desired


def test_managed_toml_is_merged() -> None:
    existing = b'[model]\nname = "a"\nuser = true\n'
    desired = b'[model]\nname = "b"\n'

    merged = POLICY.merge_bytes_for_path(".codex/config.toml", existing, desired)

    assert tomllib.loads(merged.decode("utf-8")) == {"model": {"name": "b", "user": True}}


def test_managed_yaml_is_merged() -> None:
    existing = b"rules:\n  - keep\nowner: me\n"
    desired = b"rules:\n  - added\n"

    merged = POLICY.merge_bytes_for_path(".codex/rules.yaml", existing, desired)

    assert yaml.safe_load(merged) == {"rules": ["keep", "added"], "owner": "me"}


def test_unparseable_existing_content_falls_back_to_desired() -> None:
    desired = b'{"b": 2}'

    assert POLICY.merge_bytes_for_path(".gemini/settings.json", b"{not json", desired) == desired


def test_missing_existing_content_returns_desired() -> None:
    desired = b'{"b": 2}'

    assert POLICY.merge_bytes_for_path(".gemini/settings.json", None, desired) == desired
    assert POLICY.merge_bytes_for_path(".gemini/settings.json", b"", desired) == desired


def test_leading_dot_slash_is_ignored_for_prefix_match() -> None:
    assert normalize_managed_path("./.gemini/x.json") == ".gemini/x.json"
    assert POLICY.should_merge_path("./.gemini/x.json") is True
    assert POLICY.should_merge_path(".gemini-other/x.json") is False


def test_only_directory_entries_become_prefixes() -> None:
    assert managed_prefix_for_entry(".tool/") == ".tool/"
    assert managed_prefix_for_entry("./.tool/") == ".tool/"
    assert managed_prefix_for_entry("*.log") is None
    assert managed_prefix_for_entry("/") is None


def test_unstructured_file_under_managed_prefix_is_replaced() -> None:
    merged = POLICY.merge_bytes_for_path(".codex/notes.md", b"old notes\n", b"new notes\n")

    assert merged == b"new notes\n"
