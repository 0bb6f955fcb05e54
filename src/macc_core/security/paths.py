"""Path validation for plan actions and apply-time resolution."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

from macc_core.errors import ValidationError

WINDOWS_DRIVE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:")

SCOPE_PROJECT: Final = "project"
SCOPE_USER: Final = "user"


class PathBlockedError(ValidationError):
    """Raised when a path violates the project sandbox policy."""

    def __init__(self, reason: str, hint: str, path: str = "") -> None:
        super().__init__(f"{reason} ({path})" if path else reason)
        self.reason = reason
        self.hint = hint
        self.path = path


def normalize_separators(candidate: str) -> str:
    """Return the candidate with forward slashes only."""
    return candidate.replace("\\", "/")


def _normalize_relative_input(candidate: str) -> tuple[str, bool]:
    """Normalize path separators and detect absolute-style inputs."""
    normalized = normalize_separators(candidate)
    if normalized.startswith("/"):
        return normalized, True
    if WINDOWS_DRIVE_PATTERN.match(normalized):
        return normalized, True
    return normalized, False


def validate_action_path(candidate: str, scope: str) -> str:
    """Validate a plan path for its scope and return it normalized.

    Project-scope paths must be relative and free of '..' components.
    User-scope paths are accepted as-is since user writes are consent gated.
    """
    normalized, is_absolute_style = _normalize_relative_input(candidate)
    if scope != SCOPE_PROJECT:
        return normalized

    if is_absolute_style:
        raise PathBlockedError(
            reason="Absolute path not allowed in Project scope.",
            hint="Use a path relative to the project root.",
            path=candidate,
        )
    if any(part == ".." for part in normalized.split("/")):
        raise PathBlockedError(
            reason="Parent directory traversal not allowed.",
            hint="Remove '..' segments and use a project-relative path.",
            path=candidate,
        )
    return normalized


def resolve_project_path(project_root: Path, candidate: str) -> Path:
    """Resolve a validated project path under the root, blocking symlink escapes."""
    root = project_root.resolve()
    normalized = validate_action_path(candidate, SCOPE_PROJECT)
    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if not parts:
        raise PathBlockedError(
            reason="Path is empty.",
            hint="Provide a project-relative path such as '.tool/settings.json'.",
            path=candidate,
        )

    resolved = (root / Path(*parts)).resolve(strict=False)
    if not resolved.is_relative_to(root):
        raise PathBlockedError(
            reason="Resolved path escapes project root.",
            hint="Use a path located under the project root.",
            path=candidate,
        )
    return resolved


def resolve_user_path(home: Path, candidate: str) -> Path:
    """Resolve a user-scope path: absolute as given, '~' or relative against home."""
    normalized = normalize_separators(candidate)
    if normalized == "~":
        return home
    if normalized.startswith("~/"):
        return home / normalized[2:]
    path = Path(normalized)
    if path.is_absolute() or WINDOWS_DRIVE_PATTERN.match(normalized):
        return path
    return home / path
