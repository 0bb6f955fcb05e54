from __future__ import annotations

from macc_core.merge import deep_merge, merge_all


def test_objects_merge_recursively_with_overlay_winning_scalars() -> None:
    base = {"ui": {"theme": "dark", "font": 12}, "keep": True}
    overlay = {"ui": {"theme": "light"}, "added": 1}

    assert deep_merge(base, overlay) == {
        "ui": {"theme": "light", "font": 12},
        "keep": True,
        "added": 1,
    }


def test_arrays_take_the_union_in_base_order() -> None:
    assert deep_merge({"a": [1, 2]}, {"a": [2, 3]}) == {"a": [1, 2, 3]}
    assert deep_merge([{"x": 1}], [{"x": 1}, {"x": 2}]) == [{"x": 1}, {"x": 2}]


def test_type_mismatch_is_replaced_by_overlay() -> None:
    assert deep_merge({"a": {"x": 1}}, {"a": "s"}) == {"a": "s"}
    assert deep_merge({"a": [1]}, {"a": {"k": 1}}) == {"a": {"k": 1}}


def test_bool_and_int_are_distinct_array_items() -> None:
    assert deep_merge([1], [True]) == [1, True]
    assert deep_merge([1.0], [1]) == [1.0, 1]


def test_inputs_are_not_mutated() -> None:
    base = {"nested": {"items": [1]}}
    overlay = {"nested": {"items": [2]}}

    merged = deep_merge(base, overlay)
    merged["nested"]["items"].append(99)

    assert base == {"nested": {"items": [1]}}
    assert overlay == {"nested": {"items": [2]}}


def test_key_order_keeps_base_keys_first() -> None:
    merged = deep_merge({"b": 1, "a": 2}, {"c": 3, "a": 4})

    assert list(merged) == ["b", "a", "c"]


def test_merge_all_applies_overlays_in_order() -> None:
    assert merge_all({}, [{"a": 1}, {"a": 2}, {"b": [1]}]) == {"a": 2, "b": [1]}
