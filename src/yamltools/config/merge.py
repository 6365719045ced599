"""
Deep merge of configuration documents.

Documents are merged in order, later ones overriding earlier ones key by key at
every depth. Nested mappings merge recursively; any other value, lists
included, replaces the earlier value outright.
"""

import copy
from collections.abc import Iterable, Mapping
from typing import Any


def merge(trees: Iterable[Mapping[Any, Any] | None]) -> dict[str, Any]:
    """Merge configuration trees into a new tree.

    Args:
        trees: Trees ordered from lowest to highest precedence. ``None`` entries
            (empty YAML documents) are skipped.

    Returns:
        A new tree sharing no mutable state with the inputs. Mapping keys are
        converted to strings.

    Example:
        >>> merge([{"a": {"b": 1, "c": 2}}, {"a": {"c": 3}}])
        {'a': {'b': 1, 'c': 3}}
    """
    merged: dict[str, Any] = {}
    for tree in trees:
        if tree is None:
            continue
        if not isinstance(tree, Mapping):
            raise ValueError(
                f"Configuration documents must be mappings, got {type(tree).__name__}"
            )
        _merge_into(merged, tree)
    return merged


def _merge_into(target: dict[str, Any], source: Mapping[Any, Any]) -> None:
    for key, value in source.items():
        key = str(key)
        existing = target.get(key)
        if isinstance(existing, dict) and isinstance(value, Mapping):
            _merge_into(existing, value)
        else:
            target[key] = _copy_value(value)


def _copy_value(value: Any) -> Any:
    """Deep copy a value, normalising mapping keys to strings."""
    if isinstance(value, Mapping):
        return {str(k): _copy_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy_value(item) for item in value]
    return copy.deepcopy(value)
