"""
Snapshot capture and rollback.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable

from kungfu import Some, Nothing

from tentative._types import QueryKey
from tentative.cache import CacheAdapter, hash_key
from tentative.snapshot._types import Snapshot, SnapshotEntry

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# capture(): Record State Before Mutation
# ═══════════════════════════════════════════════════════════════════════════════


def capture(cache: CacheAdapter, keys: Iterable[QueryKey]) -> Snapshot:
    """
    Read the current state of every entry addressed by `keys`.

    Each declared key acts as a filter: all stored entries it addresses are
    recorded. A declared key that addresses nothing is recorded as absent,
    so a later optimistic write under it can be undone.

    Example:
        snap = capture(cache, [("posts", "getOne", {"id": "1"}), ("posts", "getList")])
    """
    entries: list[SnapshotEntry] = []
    seen: set[Hashable] = set()

    def record(key: QueryKey, entry: SnapshotEntry) -> None:
        h = hash_key(key)
        if h not in seen:
            seen.add(h)
            entries.append(entry)

    for key in keys:
        matches = cache.read_matching(key)
        if not matches:
            record(key, SnapshotEntry(key=key, value=Nothing()))
            continue
        for matched_key, value in matches:
            record(matched_key, SnapshotEntry(key=matched_key, value=Some(value)))

    return tuple(entries)


# ═══════════════════════════════════════════════════════════════════════════════
# restore(): Rollback
# ═══════════════════════════════════════════════════════════════════════════════


def restore(cache: CacheAdapter, snapshot: Snapshot) -> None:
    """
    Write every captured entry back verbatim, in snapshot order.

    Entries captured as absent are removed. Writes made to the same keys
    between capture and restore are overwritten without detection.
    """
    for entry in snapshot:
        match entry.value:
            case Some(value):
                cache.write(entry.key, lambda _, v=value: v)
            case Nothing():
                cache.remove(entry.key)
    logger.debug("restored %d cache entr(ies)", len(snapshot))


__all__ = ("capture", "restore")
