"""Secret detection and redaction for generated content."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

SEVERITY_ERROR: Final = "error"
SEVERITY_WARNING: Final = "warning"


@dataclass(slots=True, frozen=True)
class SecretPattern:
    """Named regex checked against generated text."""

    name: str
    regex: re.Pattern[str]
    severity: str = SEVERITY_ERROR


SECRET_PATTERNS: Final[tuple[SecretPattern, ...]] = (
    SecretPattern("AWS Access Key", re.compile(r"AKIA[0-9A-Z]{16}")),
    SecretPattern("Generic Secret Token", re.compile(r"sk-[a-zA-Z0-9]{20,}")),
    SecretPattern("GitHub Token", re.compile(r"ghp_[a-zA-Z0-9]{36}")),
)


@dataclass(slots=True, frozen=True)
class Finding:
    """A single secret match; only the redacted form of the match is kept."""

    path: str
    pattern_name: str
    redacted_match: str
    start: int
    end: int
    severity: str = SEVERITY_ERROR


def redact(secret: str) -> str:
    """Keep the first and last four characters of long secrets."""
    if len(secret) <= 8:
        return "****"
    return f"{secret[:4]}...{secret[-4:]}"


def scan_text(path: str, content: str) -> list[Finding]:
    """Return findings for every pattern match, ordered by offset."""
    findings: list[Finding] = []
    for pattern in SECRET_PATTERNS:
        for match in pattern.regex.finditer(content):
            findings.append(
                Finding(
                    path=path,
                    pattern_name=pattern.name,
                    redacted_match=redact(match.group(0)),
                    start=match.start(),
                    end=match.end(),
                    severity=pattern.severity,
                )
            )
    findings.sort(key=lambda item: (item.start, item.end, item.pattern_name))
    return findings


def scan_bytes(path: str, content: bytes) -> list[Finding]:
    """Scan bytes as text; non UTF-8 payloads are decoded with replacement."""
    return scan_text(path, content.decode("utf-8", errors="replace"))


def sanitize_text(content: str, findings: list[Finding]) -> str:
    """Replace each finding span with its redacted form, skipping overlaps."""
    if not findings:
        return content
    pieces: list[str] = []
    cursor = 0
    for finding in sorted(findings, key=lambda item: (item.start, item.end)):
        if finding.start < cursor:
            continue
        pieces.append(content[cursor : finding.start])
        pieces.append(finding.redacted_match)
        cursor = finding.end
    pieces.append(content[cursor:])
    return "".join(pieces)


def describe_findings(findings: list[Finding]) -> str:
    """Human-readable one-line summary of findings."""
    return ", ".join(f"{item.pattern_name} ({item.redacted_match})" for item in findings)
