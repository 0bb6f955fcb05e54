"""Project directory layout and root/home discovery."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from macc_core.errors import HomeDirNotFoundError, ProjectRootNotFoundError

MACC_DIR_NAME: Final = ".macc"
CONFIG_FILE_NAME: Final = "macc.yaml"


@dataclass(slots=True, frozen=True)
class ProjectPaths:
    """Well-known locations under a project root."""

    root: Path

    @classmethod
    def from_root(cls, root: Path | str) -> ProjectPaths:
        return cls(root=Path(root))

    @property
    def macc_dir(self) -> Path:
        return self.root / MACC_DIR_NAME

    @property
    def config_path(self) -> Path:
        return self.macc_dir / CONFIG_FILE_NAME

    @property
    def engine_config_path(self) -> Path:
        return self.macc_dir / "engine.toml"

    @property
    def backups_dir(self) -> Path:
        return self.macc_dir / "backups"

    @property
    def tmp_dir(self) -> Path:
        return self.macc_dir / "tmp"

    @property
    def catalog_dir(self) -> Path:
        return self.macc_dir / "catalog"

    @property
    def skills_catalog_path(self) -> Path:
        return self.catalog_dir / "skills.catalog.json"

    @property
    def mcp_catalog_path(self) -> Path:
        return self.catalog_dir / "mcp.catalog.json"

    @property
    def skills_dir(self) -> Path:
        return self.macc_dir / "skills"

    @property
    def tool_specs_dir(self) -> Path:
        return self.macc_dir / "tools.d"

    @property
    def audit_log_path(self) -> Path:
        return self.macc_dir / "audit.jsonl"


def find_project_root(start_dir: Path | str) -> ProjectPaths:
    """Walk up from start_dir to the first directory holding .macc/macc.yaml."""
    start = Path(start_dir)
    current = start if start.is_absolute() else Path.cwd() / start
    for candidate in (current, *current.parents):
        if (candidate / MACC_DIR_NAME / CONFIG_FILE_NAME).is_file():
            return ProjectPaths(root=candidate.resolve())
    raise ProjectRootNotFoundError(str(start_dir))


def find_user_home() -> Path | None:
    """Home directory from HOME, then USERPROFILE."""
    for variable in ("HOME", "USERPROFILE"):
        value = os.environ.get(variable, "").strip()
        if value:
            return Path(value)
    return None


def require_user_home() -> Path:
    home = find_user_home()
    if home is None:
        raise HomeDirNotFoundError()
    return home
