"""
Snapshot: capture cache state before a mutation, restore it on rollback.

    from tentative import snapshot as Snap

    snap = Snap.capture(cache, keys)
    ...
    Snap.restore(cache, snap)
"""

from __future__ import annotations

from tentative.snapshot._types import SnapshotEntry, Snapshot
from tentative.snapshot._ops import capture, restore

__all__ = (
    "SnapshotEntry",
    "Snapshot",
    "capture",
    "restore",
)
