from __future__ import annotations

from pathlib import Path

import pytest

from macc_core.config import CliOverrides, EngineLimits, load_engine_limits, merge_engine_limits
from macc_core.errors import ConfigError
from macc_core.project import ProjectPaths


def _write_engine_toml(root: Path, text: str) -> ProjectPaths:
    paths = ProjectPaths(root=root)
    paths.macc_dir.mkdir(parents=True, exist_ok=True)
    paths.engine_config_path.write_text(text, encoding="utf-8")
    return paths


def test_defaults_without_engine_file(tmp_path: Path) -> None:
    assert load_engine_limits(ProjectPaths(root=tmp_path)) == EngineLimits(600, 65536)


def test_engine_file_then_overrides(tmp_path: Path) -> None:
    paths = _write_engine_toml(tmp_path, "[engine]\nmax_diff_lines = 100\nmax_diff_bytes = 2048\n")

    from_file = load_engine_limits(paths)
    overridden = load_engine_limits(paths, CliOverrides(max_diff_lines=50))

    assert from_file == EngineLimits(max_diff_lines=100, max_diff_bytes=2048)
    assert overridden == EngineLimits(max_diff_lines=50, max_diff_bytes=2048)


@pytest.mark.parametrize("value", [0, -1, True, 20_001])
def test_invalid_line_limits_are_rejected(value: object) -> None:
    with pytest.raises(ConfigError, match="engine.max_diff_lines"):
        merge_engine_limits(EngineLimits(), {"engine": {"max_diff_lines": value}}, CliOverrides())


def test_invalid_toml_is_a_config_error(tmp_path: Path) -> None:
    paths = _write_engine_toml(tmp_path, "[engine\n")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_engine_limits(paths)


def test_tools_csv_keeps_known_ids_and_warns_on_unknown() -> None:
    overrides = CliOverrides.from_tools_csv("claude, bogus,,gemini", ["claude", "gemini"])

    assert overrides.tools == ("claude", "gemini")
    assert overrides.warnings == ("Unknown tool: bogus",)


def test_tools_csv_with_no_known_ids_does_not_override() -> None:
    overrides = CliOverrides.from_tools_csv("bogus", ["claude"])

    assert overrides.tools is None
    assert overrides.warnings == ("Unknown tool: bogus",)
