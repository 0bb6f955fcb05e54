"""Deep merge and structured-format merge policy."""

from .deep import deep_merge, merge_all
from .formats import (
    FORMAT_JSON,
    FORMAT_TOML,
    FORMAT_YAML,
    FormatError,
    format_for_path,
    parse_content,
    serialize_content,
    to_pretty_json,
)
from .structured import StructuredMergePolicy, managed_prefix_for_entry, normalize_managed_path

__all__ = [
    "FORMAT_JSON",
    "FORMAT_TOML",
    "FORMAT_YAML",
    "FormatError",
    "StructuredMergePolicy",
    "deep_merge",
    "format_for_path",
    "managed_prefix_for_entry",
    "merge_all",
    "normalize_managed_path",
    "parse_content",
    "serialize_content",
    "to_pretty_json",
]
