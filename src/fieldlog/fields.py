"""Field maps and their copy-on-write merge."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

#: Field set attached to a log line. Keys are field names, values are any
#: JSON-encodable structure (other values are stringified on emission).
Data = dict[str, Any]


def _detach(value: Any) -> Any:
    """Deep-copy ``value`` so later caller mutations cannot leak in.

    Values that refuse to be copied (locks, sockets, generators) are kept
    by reference.
    """
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error, RecursionError):
        return value


def merge_fields(base: Mapping[str, Any], *updates: Mapping[str, Any] | None) -> Data:
    """Return a new dict of ``base`` with each update applied in order.

    Later keys overwrite earlier ones. ``base`` is copied shallowly (its values
    were detached when they entered it); values coming from ``updates`` are
    deep-copied. Neither ``base`` nor any update is modified.

    Args:
        base: Existing fields.
        *updates: Field sets to apply on top. ``None`` and empty sets are
            skipped.

    Returns:
        The merged fields as a fresh dict.

    Example:
        >>> merge_fields({"a": 1}, {"a": 2, "b": 3})
        {'a': 2, 'b': 3}
    """
    merged: Data = dict(base)
    for update in updates:
        if not update:
            continue
        for key, value in update.items():
            merged[key] = _detach(value)
    return merged


def copy_fields(fields: Mapping[str, Any]) -> Data:
    """Return a deep copy of ``fields`` safe to hand to callers.

    Mutating the result, including its nested values, never reaches the
    source. Uncopyable values are shared, as in ``merge_fields``.
    """
    return {key: _detach(value) for key, value in fields.items()}
