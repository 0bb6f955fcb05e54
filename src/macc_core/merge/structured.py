"""Merge-vs-replace policy for structured files under tool-managed directories."""

from __future__ import annotations

from dataclasses import dataclass

from macc_core.merge.deep import deep_merge
from macc_core.merge.formats import FormatError, format_for_path, parse_content, serialize_content


def normalize_managed_path(path: str) -> str:
    """Forward slashes with any leading './' removed."""
    value = path.replace("\\", "/")
    while value.startswith("./"):
        value = value[2:]
    return value


def managed_prefix_for_entry(entry: str) -> str | None:
    """Return the normalized prefix when a gitignore entry names a directory."""
    normalized = normalize_managed_path(entry.strip())
    if normalized.endswith("/") and normalized != "/":
        return normalized
    return None


@dataclass(slots=True, frozen=True)
class StructuredMergePolicy:
    """Decides whether generated JSON/TOML/YAML is merged onto existing content."""

    managed_prefixes: tuple[str, ...] = ()

    def should_merge_path(self, path: str) -> bool:
        if format_for_path(path) is None:
            return False
        normalized = normalize_managed_path(path)
        return any(normalized.startswith(prefix) for prefix in self.managed_prefixes)

    def merge_bytes_for_path(self, path: str, existing: bytes | None, desired: bytes) -> bytes:
        """Return merged bytes, or desired verbatim when merging does not apply."""
        fmt = format_for_path(path)
        if fmt is None or not existing or not self.should_merge_path(path):
            return desired
        try:
            base = parse_content(fmt, existing)
            overlay = parse_content(fmt, desired)
            return serialize_content(fmt, deep_merge(base, overlay))
        except FormatError:
            return desired
