"""Exception hierarchy shared by planning and apply."""

from __future__ import annotations


class MaccError(Exception):
    """Base error for the planning/apply engine."""


class ValidationError(MaccError):
    """Raised when inputs are structurally invalid; aborts planning before any write."""


class ConfigError(ValidationError):
    """Raised when the canonical configuration is malformed."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"Configuration error in {path}: {message}")
        self.path = path
        self.message = message


class CatalogEntryNotFoundError(ValidationError):
    """Raised when a selected id has no catalog entry."""

    def __init__(self, kind: str, entry_id: str) -> None:
        super().__init__(f"{kind} ID not found in catalog: {entry_id}")
        self.kind = kind
        self.entry_id = entry_id


class SecretDetectedError(ValidationError):
    """Raised by plan pre-flight when generated output contains secrets."""

    def __init__(self, path: str, details: str) -> None:
        super().__init__(f"Secret(s) detected in generated output for {path}: {details}")
        self.path = path
        self.details = details


class ProjectRootNotFoundError(MaccError):
    """Raised when no project root is found above a start directory."""

    def __init__(self, start_dir: str) -> None:
        super().__init__(f"Project root not found (searched up from {start_dir})")
        self.start_dir = start_dir


class HomeDirNotFoundError(MaccError):
    """Raised when the invoking user's home directory cannot be determined."""

    def __init__(self) -> None:
        super().__init__("User home directory not found")


class ApplyIOError(MaccError):
    """Filesystem failure scoped to a single path during apply."""

    def __init__(self, path: str, action: str, cause: OSError) -> None:
        super().__init__(f"IO error in {path} during {action}: {cause}")
        self.path = path
        self.action = action
        self.cause = cause
