"""
Query key hashing and partial matching.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from typing import Any

from tentative._types import QueryKey


def hash_key(key: QueryKey) -> Hashable:
    """
    Canonical hashable form of a query key.

    Mappings become sorted item tuples, so two keys built from
    dicts with the same content in a different order collide.
    """
    return tuple(_freeze(part) for part in key)


def _freeze(value: Any) -> Hashable:
    if isinstance(value, Mapping):
        return (
            "__mapping__",
            tuple(sorted((str(k), _freeze(v)) for k, v in value.items())),
        )
    if isinstance(value, (list, tuple)):
        return ("__sequence__", tuple(_freeze(v) for v in value))
    if isinstance(value, (set, frozenset)):
        return ("__set__", tuple(sorted(repr(v) for v in value)))
    return value


def partial_match(filter_key: QueryKey, key: QueryKey) -> bool:
    """
    True when `filter_key` addresses `key`.

    A filter matches when it is a prefix of the key. A mapping element
    matches when every item of the filter mapping is present in the key's
    mapping:

        partial_match(("posts", "getList"), ("posts", "getList", {"page": 1}))  # True
        partial_match(("posts", {"id": "1"}), ("posts", {"id": "1", "meta": None}))  # True
    """
    if len(filter_key) > len(key):
        return False
    return all(_match_part(f, k) for f, k in zip(filter_key, key))


def _match_part(f: Any, k: Any) -> bool:
    if isinstance(f, Mapping) and isinstance(k, Mapping):
        return all(name in k and _match_part(v, k[name]) for name, v in f.items())
    return _freeze(f) == _freeze(k)


__all__ = ("hash_key", "partial_match")
