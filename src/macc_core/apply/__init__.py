"""Apply engine: status, backups, atomic writes and the consent gate."""

from .backup import BackupEntry, BackupManager
from .engine import ApplyReport, apply_operations, backup_timestamp
from .writer import write_atomic

__all__ = [
    "ApplyReport",
    "BackupEntry",
    "BackupManager",
    "apply_operations",
    "backup_timestamp",
    "write_atomic",
]
