"""Structured audit logging."""

from .audit import AuditEvent, JsonlAuditLogger, new_run_id, sanitize_metadata, utc_timestamp

__all__ = ["AuditEvent", "JsonlAuditLogger", "new_run_id", "sanitize_metadata", "utc_timestamp"]
