"""Bounded, secret-redacted unified diffs for planned operations."""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from typing import Final

from macc_core.plan.existing import is_text_file, normalize_json
from macc_core.plan.operations import KIND_MERGE, PlannedOperation
from macc_core.security.secrets import Finding, sanitize_text, scan_text

MAX_DIFF_LINES: Final = 600
MAX_DIFF_BYTES: Final = 64 * 1024

VIEW_TEXT: Final = "text"
VIEW_JSON: Final = "json"
VIEW_UNSUPPORTED: Final = "unsupported"


@dataclass(slots=True, frozen=True)
class DiffView:
    """Rendered diff plus the redacted findings that were masked in it."""

    kind: str
    diff: str = ""
    truncated: bool = False
    findings: tuple[Finding, ...] = ()


UNSUPPORTED_VIEW: Final = DiffView(kind=VIEW_UNSUPPORTED)


def _split_lines(text: str) -> list[str]:
    lines = text.splitlines(keepends=True)
    if lines and not lines[-1].endswith("\n"):
        lines[-1] += "\n"
    return lines


def generate_unified_diff(path: str, before: str | None, after: str) -> str:
    """Unified diff with three lines of context; absent files diff against /dev/null."""
    header_old = "/dev/null" if before is None else path
    output = "".join(
        difflib.unified_diff(
            _split_lines(before or ""),
            _split_lines(after),
            fromfile=header_old,
            tofile=path,
            n=3,
        )
    )
    if output and not output.endswith("\n"):
        output += "\n"
    return output


def _utf8_length(lines: list[str], ends_with_newline: bool) -> int:
    if not lines:
        return 0
    length = sum(len(line.encode("utf-8")) for line in lines) + len(lines) - 1
    return length + 1 if ends_with_newline else length


def truncate_diff(
    diff: str,
    max_lines: int = MAX_DIFF_LINES,
    max_bytes: int = MAX_DIFF_BYTES,
) -> tuple[str, bool]:
    """Trim trailing lines past either cap and append a truncation marker."""
    ends_with_newline = diff.endswith("\n")
    lines = diff.splitlines()

    by_lines = len(lines) > max_lines
    if by_lines:
        lines = lines[:max_lines]

    by_bytes = False
    while lines and _utf8_length(lines, ends_with_newline) > max_bytes:
        lines.pop()
        by_bytes = True

    output = "\n".join(lines)
    if ends_with_newline and lines:
        output += "\n"
    if not (by_lines or by_bytes):
        return output, False

    if output and not output.endswith("\n"):
        output += "\n"
    reason = "lines+bytes" if by_lines and by_bytes else ("lines" if by_lines else "bytes")
    return f"{output}[diff truncated: {reason}]\n", True


def _sanitize(path: str, text: str, collected: list[Finding]) -> str:
    findings = scan_text(path, text)
    collected.extend(findings)
    return sanitize_text(text, findings)


def _decode(content: bytes) -> str | None:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _render_json(
    operation: PlannedOperation, after: bytes, max_lines: int, max_bytes: int
) -> DiffView | None:
    if operation.kind != KIND_MERGE and not operation.path.endswith(".json"):
        return None
    normalized_after = normalize_json(after)
    if normalized_after is None:
        return None

    findings: list[Finding] = []
    after_text = _sanitize(operation.path, normalized_after, findings)
    before_text: str | None = None
    if operation.before is not None:
        raw = normalize_json(operation.before)
        if raw is None:
            raw = _decode(operation.before) or ""
        before_text = _sanitize(operation.path, raw, findings)

    diff, truncated = truncate_diff(
        generate_unified_diff(operation.path, before_text, after_text), max_lines, max_bytes
    )
    return DiffView(kind=VIEW_JSON, diff=diff, truncated=truncated, findings=tuple(findings))


def _render_text(
    operation: PlannedOperation, after: bytes, max_lines: int, max_bytes: int
) -> DiffView | None:
    if not is_text_file(operation.path, after):
        return None
    decoded_after = _decode(after)
    if decoded_after is None:
        return None

    findings: list[Finding] = []
    after_text = _sanitize(operation.path, decoded_after, findings)
    before_text: str | None = None
    if operation.before is not None:
        decoded_before = _decode(operation.before)
        if decoded_before is not None:
            before_text = _sanitize(operation.path, decoded_before, findings)

    diff, truncated = truncate_diff(
        generate_unified_diff(operation.path, before_text, after_text), max_lines, max_bytes
    )
    return DiffView(kind=VIEW_TEXT, diff=diff, truncated=truncated, findings=tuple(findings))


def render_diff(
    operation: PlannedOperation,
    *,
    max_lines: int = MAX_DIFF_LINES,
    max_bytes: int = MAX_DIFF_BYTES,
) -> DiffView:
    """JSON-normalized diff, else plain text diff, else unsupported."""
    if operation.after is None:
        return UNSUPPORTED_VIEW
    view = _render_json(operation, operation.after, max_lines, max_bytes)
    if view is None:
        view = _render_text(operation, operation.after, max_lines, max_bytes)
    return view if view is not None else UNSUPPORTED_VIEW
