"""On-disk snapshots and write-status classification."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Final

STATUS_CREATED: Final = "created"
STATUS_UPDATED: Final = "updated"
STATUS_UNCHANGED: Final = "unchanged"
STATUS_NOOP: Final = "noop"
STATUS_REFUSED: Final = "refused"
STATUS_FAILED: Final = "failed"

STATUS_LABELS: Final[dict[str, str]] = {
    STATUS_CREATED: "CREATE",
    STATUS_UPDATED: "UPDATE",
    STATUS_UNCHANGED: "OK",
    STATUS_NOOP: "NOOP",
    STATUS_REFUSED: "REFUSED",
    STATUS_FAILED: "FAILED",
}

TEXT_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {"md", "txt", "rules", "toml", "yaml", "yml", "json", "sh"}
)


@dataclass(slots=True, frozen=True)
class ExistingFile:
    """Snapshot of a target path taken while planning."""

    exists: bool
    content: bytes | None = None
    is_text_guess: bool = False


ABSENT: Final = ExistingFile(exists=False)


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, "UNKNOWN")


def _extension(path: str) -> str:
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def looks_like_text(content: bytes) -> bool:
    """True for empty or NUL-free UTF-8 content."""
    if not content:
        return True
    if b"\x00" in content:
        return False
    try:
        content.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def is_text_file(path: str, content: bytes) -> bool:
    """Extension allow-list first, then a content heuristic."""
    if _extension(path) in TEXT_EXTENSIONS:
        return True
    return looks_like_text(content)


def read_existing(path: Path) -> ExistingFile:
    """Read a file snapshot; unreadable files are reported as absent."""
    if not path.is_file():
        return ABSENT
    try:
        content = path.read_bytes()
    except OSError:
        return ABSENT
    return ExistingFile(
        exists=True, content=content, is_text_guess=is_text_file(path.name, content)
    )


def normalize_json(content: bytes) -> str | None:
    """Key-sorted pretty JSON with a trailing newline, or None when unparseable."""
    try:
        value = json.loads(content)
    except (UnicodeDecodeError, ValueError):
        return None
    return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def compute_write_status(path: str, new_content: bytes, existing: ExistingFile) -> str:
    """Classify a write as created, updated or unchanged."""
    if not existing.exists:
        return STATUS_CREATED
    old_content = existing.content or b""
    if path.endswith(".json"):
        old_normalized = normalize_json(old_content)
        new_normalized = normalize_json(new_content)
        if old_normalized is not None and new_normalized is not None:
            return STATUS_UNCHANGED if old_normalized == new_normalized else STATUS_UPDATED
    return STATUS_UNCHANGED if old_content == new_content else STATUS_UPDATED
