"""Path safety and secret scanning primitives."""

from .paths import (
    SCOPE_PROJECT,
    SCOPE_USER,
    PathBlockedError,
    normalize_separators,
    resolve_project_path,
    resolve_user_path,
    validate_action_path,
)
from .secrets import (
    SECRET_PATTERNS,
    Finding,
    SecretPattern,
    describe_findings,
    redact,
    sanitize_text,
    scan_bytes,
    scan_text,
)

__all__ = [
    "Finding",
    "PathBlockedError",
    "SCOPE_PROJECT",
    "SCOPE_USER",
    "SECRET_PATTERNS",
    "SecretPattern",
    "describe_findings",
    "normalize_separators",
    "redact",
    "resolve_project_path",
    "resolve_user_path",
    "sanitize_text",
    "scan_bytes",
    "scan_text",
    "validate_action_path",
]
