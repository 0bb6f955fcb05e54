"""Primitive file-operation actions and the canonically ordered action plan."""

from __future__ import annotations

import base64
import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Final

from macc_core.errors import ValidationError
from macc_core.security.paths import SCOPE_PROJECT, SCOPE_USER, validate_action_path

SCOPES: Final[tuple[str, ...]] = (SCOPE_PROJECT, SCOPE_USER)
GITIGNORE_PATH: Final = ".gitignore"
NOOP_PATH: Final = "(noop)"


def _check_scope(scope: str) -> None:
    if scope not in SCOPES:
        raise ValidationError(f"Unknown scope: {scope!r}")


def _checked_path(action: object, path: str, scope: str) -> None:
    _check_scope(scope)
    object.__setattr__(action, "path", validate_action_path(path, scope))


@dataclass(slots=True, frozen=True)
class Mkdir:
    """Create a directory if it does not exist."""

    path: str
    scope: str = SCOPE_PROJECT

    def __post_init__(self) -> None:
        _checked_path(self, self.path, self.scope)


@dataclass(slots=True, frozen=True)
class BackupFile:
    """Back up a file before it is modified."""

    path: str
    scope: str = SCOPE_PROJECT

    def __post_init__(self) -> None:
        _checked_path(self, self.path, self.scope)


@dataclass(slots=True, frozen=True)
class WriteFile:
    """Write full content to a file."""

    path: str
    content: bytes
    scope: str = SCOPE_PROJECT

    def __post_init__(self) -> None:
        _checked_path(self, self.path, self.scope)
        if not isinstance(self.content, bytes):
            raise ValidationError(f"WriteFile content must be bytes: {self.path}")


@dataclass(slots=True, frozen=True)
class MergeJson:
    """Deep-merge a JSON fragment into a file."""

    path: str
    patch: Any
    scope: str = SCOPE_PROJECT

    def __post_init__(self) -> None:
        _checked_path(self, self.path, self.scope)


@dataclass(slots=True, frozen=True)
class EnsureGitignore:
    """Ensure a single pattern line is present in .gitignore."""

    pattern: str
    scope: str = SCOPE_PROJECT

    def __post_init__(self) -> None:
        _check_scope(self.scope)

    @property
    def path(self) -> str:
        return GITIGNORE_PATH


@dataclass(slots=True, frozen=True)
class SetExecutable:
    """Mark a file executable once its content is written."""

    path: str
    scope: str = SCOPE_PROJECT

    def __post_init__(self) -> None:
        _checked_path(self, self.path, self.scope)


@dataclass(slots=True, frozen=True)
class Noop:
    """Placeholder action carrying only a description."""

    description: str
    scope: str = SCOPE_PROJECT

    def __post_init__(self) -> None:
        _check_scope(self.scope)

    @property
    def path(self) -> str:
        return NOOP_PATH


Action = Mkdir | BackupFile | WriteFile | MergeJson | EnsureGitignore | SetExecutable | Noop

ACTION_TYPES: Final[dict[type, str]] = {
    Mkdir: "mkdir",
    BackupFile: "backup-file",
    WriteFile: "write-file",
    MergeJson: "merge-json",
    EnsureGitignore: "ensure-gitignore",
    SetExecutable: "set-executable",
    Noop: "noop",
}

ACTION_RANKS: Final[dict[type, int]] = {
    Mkdir: 0,
    BackupFile: 1,
    WriteFile: 2,
    MergeJson: 3,
    EnsureGitignore: 4,
    SetExecutable: 5,
    Noop: 6,
}


def action_to_dict(action: Action) -> dict[str, Any]:
    """Serialize an action to a tagged JSON-compatible mapping."""
    payload: dict[str, Any] = {"type": ACTION_TYPES[type(action)]}
    if isinstance(action, EnsureGitignore):
        payload["pattern"] = action.pattern
    elif isinstance(action, Noop):
        payload["description"] = action.description
    else:
        payload["path"] = action.path
    if isinstance(action, WriteFile):
        payload["content"] = base64.b64encode(action.content).decode("ascii")
    elif isinstance(action, MergeJson):
        payload["patch"] = action.patch
    payload["scope"] = action.scope
    return payload


def action_from_dict(payload: dict[str, Any]) -> Action:
    """Rebuild an action from its tagged mapping, re-validating its path."""
    kind = payload.get("type")
    scope = payload.get("scope", SCOPE_PROJECT)
    try:
        if kind == "mkdir":
            return Mkdir(path=payload["path"], scope=scope)
        if kind == "backup-file":
            return BackupFile(path=payload["path"], scope=scope)
        if kind == "write-file":
            return WriteFile(
                path=payload["path"],
                content=base64.b64decode(payload["content"], validate=True),
                scope=scope,
            )
        if kind == "merge-json":
            return MergeJson(path=payload["path"], patch=payload["patch"], scope=scope)
        if kind == "ensure-gitignore":
            return EnsureGitignore(pattern=payload["pattern"], scope=scope)
        if kind == "set-executable":
            return SetExecutable(path=payload["path"], scope=scope)
        if kind == "noop":
            return Noop(description=payload["description"], scope=scope)
    except KeyError as exc:
        raise ValidationError(f"Action {kind!r} is missing field {exc.args[0]!r}") from exc
    except ValueError as exc:
        raise ValidationError(f"Action {kind!r} has invalid content: {exc}") from exc
    raise ValidationError(f"Unknown action type: {kind!r}")


def action_sort_key(action: Action) -> tuple[int, str, str]:
    """Variant rank, then path, then full serialized form."""
    serialized = json.dumps(action_to_dict(action), sort_keys=True, separators=(",", ":"))
    return (ACTION_RANKS[type(action)], action.path, serialized)


@dataclass(slots=True)
class ActionPlan:
    """Insertion-ordered actions contributed by independent renderers."""

    actions: list[Action] = field(default_factory=list)

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    def add_action(self, action: Action) -> None:
        self.actions.append(action)

    def extend(self, actions: Iterable[Action]) -> None:
        self.actions.extend(actions)

    def normalize(self) -> None:
        """Sort into canonical order and drop exact duplicates."""
        ordered = sorted(self.actions, key=action_sort_key)
        deduped: list[Action] = []
        for action in ordered:
            if deduped and deduped[-1] == action:
                continue
            deduped.append(action)
        self.actions = deduped

    def to_dict(self) -> dict[str, Any]:
        return {"actions": [action_to_dict(action) for action in self.actions]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ActionPlan:
        actions = payload.get("actions")
        if not isinstance(actions, list):
            raise ValidationError("Action plan must contain an 'actions' list.")
        return cls(actions=[action_from_dict(item) for item in actions])

    @classmethod
    def from_json(cls, text: str) -> ActionPlan:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Invalid action plan JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValidationError("Action plan JSON must be an object.")
        return cls.from_dict(payload)


class ActionPlanBuilder:
    """Scope-bound helper that validates paths as actions are appended."""

    def __init__(self, scope: str = SCOPE_PROJECT) -> None:
        _check_scope(scope)
        self.scope = scope
        self._plan = ActionPlan()

    def mkdir(self, path: str) -> ActionPlanBuilder:
        self._plan.add_action(Mkdir(path=path, scope=self.scope))
        return self

    def write_text(self, path: str, content: str) -> ActionPlanBuilder:
        return self.write_bytes(path, content.encode("utf-8"))

    def write_bytes(self, path: str, content: bytes) -> ActionPlanBuilder:
        self._plan.add_action(WriteFile(path=path, content=content, scope=self.scope))
        return self

    def backup_file(self, path: str) -> ActionPlanBuilder:
        self._plan.add_action(BackupFile(path=path, scope=self.scope))
        return self

    def merge_json(self, path: str, patch: Any) -> ActionPlanBuilder:
        self._plan.add_action(MergeJson(path=path, patch=patch, scope=self.scope))
        return self

    def ensure_gitignore_entry(self, pattern: str) -> ActionPlanBuilder:
        self._plan.add_action(EnsureGitignore(pattern=pattern, scope=self.scope))
        return self

    def set_executable(self, path: str) -> ActionPlanBuilder:
        self._plan.add_action(SetExecutable(path=path, scope=self.scope))
        return self

    def noop(self, description: str) -> ActionPlanBuilder:
        self._plan.add_action(Noop(description=description, scope=self.scope))
        return self

    def build(self) -> ActionPlan:
        """Return a normalized copy of the accumulated plan."""
        plan = ActionPlan(actions=list(self._plan.actions))
        plan.normalize()
        return plan
