"""
Snapshot types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kungfu import Option

from tentative._types import QueryKey


@dataclass(frozen=True, slots=True)
class SnapshotEntry:
    """
    Cache state of one key before a mutation touched it.

    `value` is Some(previous) when the key was present (Some(None) included)
    and Nothing() when the key was absent.
    """

    key: QueryKey
    value: Option[Any]


type Snapshot = tuple[SnapshotEntry, ...]
"""Ordered, immutable list of captured entries."""


__all__ = ("SnapshotEntry", "Snapshot")
