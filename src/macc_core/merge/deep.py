"""Format-independent deep merge over object/array/scalar value trees."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def _values_equal(left: Any, right: Any) -> bool:
    """Structural equality that keeps bools, ints and floats distinct."""
    if type(left) is not type(right):
        if isinstance(left, Mapping) and isinstance(right, Mapping):
            pass
        elif isinstance(left, list) and isinstance(right, list):
            pass
        else:
            return False
    if isinstance(left, Mapping):
        if left.keys() != right.keys():
            return False
        return all(_values_equal(left[key], right[key]) for key in left)
    if isinstance(left, list):
        if len(left) != len(right):
            return False
        return all(_values_equal(a, b) for a, b in zip(left, right))
    return bool(left == right)


def _merge_lists(base: list[Any], overlay: list[Any]) -> list[Any]:
    merged = list(base)
    for item in overlay:
        if not any(_values_equal(item, existing) for existing in merged):
            merged.append(item)
    return merged


def deep_merge(base: Any, overlay: Any) -> Any:
    """Merge overlay onto base and return a new value.

    Maps merge key by key with overlay winning scalar conflicts, lists take
    the union in base order, and any other pairing is replaced by overlay.
    """
    if isinstance(base, Mapping) and isinstance(overlay, Mapping):
        merged: dict[str, Any] = {key: value for key, value in base.items()}
        for key, value in overlay.items():
            if key in merged:
                merged[key] = deep_merge(merged[key], value)
            else:
                merged[key] = _copy_value(value)
        return merged
    if isinstance(base, list) and isinstance(overlay, list):
        return _merge_lists(base, overlay)
    return _copy_value(overlay)


def _copy_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _copy_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_copy_value(item) for item in value]
    return value


def merge_all(base: Any, overlays: list[Any]) -> Any:
    """Apply overlays in order."""
    merged = base
    for overlay in overlays:
        merged = deep_merge(merged, overlay)
    return merged
