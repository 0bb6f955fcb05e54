"""Action plans, per-path operation collapse, status and diff rendering."""

from .actions import (
    Action,
    ActionPlan,
    ActionPlanBuilder,
    BackupFile,
    EnsureGitignore,
    MergeJson,
    Mkdir,
    Noop,
    SetExecutable,
    WriteFile,
    action_from_dict,
    action_sort_key,
    action_to_dict,
)
from .diff import DiffView, generate_unified_diff, render_diff, truncate_diff
from .existing import (
    ExistingFile,
    compute_write_status,
    is_text_file,
    normalize_json,
    read_existing,
    status_label,
)
from .operations import (
    OperationMetadata,
    PlannedOperation,
    collect_plan_operations,
    operations_to_json,
)

__all__ = [
    "Action",
    "ActionPlan",
    "ActionPlanBuilder",
    "BackupFile",
    "DiffView",
    "EnsureGitignore",
    "ExistingFile",
    "MergeJson",
    "Mkdir",
    "Noop",
    "OperationMetadata",
    "PlannedOperation",
    "SetExecutable",
    "WriteFile",
    "action_from_dict",
    "action_sort_key",
    "action_to_dict",
    "collect_plan_operations",
    "compute_write_status",
    "generate_unified_diff",
    "is_text_file",
    "normalize_json",
    "operations_to_json",
    "read_existing",
    "render_diff",
    "status_label",
    "truncate_diff",
]
