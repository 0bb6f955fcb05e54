from __future__ import annotations

from macc_core.plan import (
    ActionPlan,
    ActionPlanBuilder,
    BackupFile,
    Mkdir,
    Noop,
    WriteFile,
)


def _four_actions() -> list:
    return [
        Mkdir(path="a"),
        WriteFile(path="b.txt", content=b"hello"),
        BackupFile(path="a.txt"),
        Noop(description="placeholder"),
    ]


def test_normalize_orders_by_variant_rank_regardless_of_input_order() -> None:
    forward = ActionPlan(actions=_four_actions())
    reverse = ActionPlan(actions=list(reversed(_four_actions())))

    forward.normalize()
    reverse.normalize()

    assert forward == reverse
    assert [type(action) for action in forward.actions] == [Mkdir, BackupFile, WriteFile, Noop]
    assert forward.to_json() == reverse.to_json()


def test_normalize_breaks_ties_by_path() -> None:
    plan = ActionPlan(
        actions=[
            WriteFile(path="z.txt", content=b"1"),
            WriteFile(path="a.txt", content=b"1"),
            WriteFile(path="m.txt", content=b"1"),
        ]
    )

    plan.normalize()

    assert [action.path for action in plan.actions] == ["a.txt", "m.txt", "z.txt"]


def test_normalize_removes_exact_duplicates_only() -> None:
    plan = ActionPlan(
        actions=[
            WriteFile(path="a.txt", content=b"same"),
            WriteFile(path="a.txt", content=b"same"),
            WriteFile(path="a.txt", content=b"other"),
        ]
    )

    plan.normalize()

    assert len(plan.actions) == 2
    assert {action.content for action in plan.actions} == {b"same", b"other"}


def test_normalize_is_idempotent() -> None:
    plan = ActionPlan(actions=_four_actions())
    plan.normalize()
    first = plan.to_json()

    plan.normalize()

    assert plan.to_json() == first


def test_plan_json_roundtrip_preserves_actions() -> None:
    plan = (
        ActionPlanBuilder()
        .mkdir(".tool")
        .write_bytes(".tool/bin.dat", b"\x00\x01")
        .merge_json(".tool/settings.json", {"a": [1, 2]})
        .ensure_gitignore_entry(".tool/")
        .set_executable(".tool/run.sh")
        .build()
    )

    restored = ActionPlan.from_json(plan.to_json())

    assert restored == plan


def test_builder_returns_normalized_plan() -> None:
    plan = ActionPlanBuilder().write_text("b.md", "b").mkdir("docs").backup_file("b.md").build()

    assert [type(action) for action in plan.actions] == [Mkdir, BackupFile, WriteFile]
