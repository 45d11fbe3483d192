"""
Cache types.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Protocol

from kungfu import Option, Some, Nothing

from tentative._types import QueryKey
from tentative.cache._keys import hash_key, partial_match

logger = logging.getLogger(__name__)

type Updater[T] = Callable[[T | None], T]
"""Reducer-style write: receives the current value (None when absent)."""

type Loader[T] = Callable[[], Awaitable[T]]
"""Zero-argument read that produces a fresh value for one key."""

# ═══════════════════════════════════════════════════════════════════════════════
# Cache Adapter Protocol: Users Implement This
# ═══════════════════════════════════════════════════════════════════════════════


class CacheAdapter[T](Protocol):
    """
    Query cache protocol consumed by the mutation engine.

    Reads and writes are synchronous so that a snapshot and an optimistic
    write happen without yielding to the event loop. Only cancellation of
    in-flight reads suspends.

    Example:
        class StoreAdapter[T]:
            def __init__(self, store: ReactiveStore) -> None:
                self.store = store

            def read(self, key: QueryKey) -> Option[T]:
                if self.store.has(key):
                    return Some(self.store.get(key))
                return Nothing()

            def write(self, key, updater, *, updated_at=None) -> None:
                self.store.set(key, updater(self.store.get(key)), updated_at)

            ...

            async def cancel(self, key: QueryKey) -> int:
                return await self.store.abort_fetches(key)
    """

    def read(self, key: QueryKey) -> Option[T]:
        """Value stored under exactly `key`. Nothing() when absent."""
        ...

    def read_matching(self, key: QueryKey) -> list[tuple[QueryKey, T]]:
        """All (key, value) pairs addressed by `key` as a filter."""
        ...

    def write(
        self,
        key: QueryKey,
        updater: Updater[T],
        *,
        updated_at: float | None = None,
    ) -> None:
        """Replace the value under `key` with `updater(old)`."""
        ...

    def write_matching(
        self,
        key: QueryKey,
        updater: Updater[T],
        *,
        updated_at: float | None = None,
    ) -> int:
        """Apply `updater` to every existing entry addressed by `key`."""
        ...

    def remove(self, key: QueryKey) -> bool:
        """Drop the entry stored under exactly `key`. True if it existed."""
        ...

    def invalidate(self, key: QueryKey) -> int:
        """Mark every entry addressed by `key` as stale. Returns count."""
        ...

    async def cancel(self, key: QueryKey) -> int:
        """Abort in-flight reads addressed by `key`. Returns count."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Query Cache: In-Memory Adapter (Default)
# ═══════════════════════════════════════════════════════════════════════════════


class QueryCancelled(Exception):
    """An in-flight read was aborted before it could store its value."""

    def __init__(self, key: QueryKey) -> None:
        super().__init__(f"read for {key!r} was cancelled")
        self.key = key


@dataclass(slots=True)
class Entry[T]:
    """One stored value with its freshness bookkeeping."""

    key: QueryKey
    value: T
    updated_at: float
    invalidated: bool = False


class QueryCache[T]:
    """
    In-memory query cache with cancellable in-flight reads.

    `updated_at` may lie in the future: the entry then stays fresh until
    that instant, which keeps `fetch` from replacing it.

    Example:
        cache = QueryCache[dict]()
        cache.write(("posts", "getOne", {"id": "1"}), lambda _: {"id": 1})
        post = await cache.fetch(("posts", "getOne", {"id": "1"}), load_post)
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[Hashable, Entry[T]] = {}
        self._in_flight: dict[Hashable, tuple[QueryKey, asyncio.Task[T]]] = {}

    def now(self) -> float:
        return self._clock()

    def entry(self, key: QueryKey) -> Entry[T] | None:
        """Stored entry under exactly `key`, with its bookkeeping."""
        return self._entries.get(hash_key(key))

    def keys(self) -> list[QueryKey]:
        return [e.key for e in self._entries.values()]

    def read(self, key: QueryKey) -> Option[T]:
        entry = self._entries.get(hash_key(key))
        if entry is None:
            return Nothing()
        return Some(entry.value)

    def read_matching(self, key: QueryKey) -> list[tuple[QueryKey, T]]:
        return [
            (e.key, e.value)
            for e in self._entries.values()
            if partial_match(key, e.key)
        ]

    def write(
        self,
        key: QueryKey,
        updater: Updater[T],
        *,
        updated_at: float | None = None,
    ) -> None:
        h = hash_key(key)
        current = self._entries.get(h)
        value = updater(current.value if current is not None else None)
        self._entries[h] = Entry(
            key=key,
            value=value,
            updated_at=self.now() if updated_at is None else updated_at,
        )

    def write_matching(
        self,
        key: QueryKey,
        updater: Updater[T],
        *,
        updated_at: float | None = None,
    ) -> int:
        matched = [e for e in self._entries.values() if partial_match(key, e.key)]
        for e in matched:
            self.write(e.key, updater, updated_at=updated_at)
        return len(matched)

    def remove(self, key: QueryKey) -> bool:
        return self._entries.pop(hash_key(key), None) is not None

    def invalidate(self, key: QueryKey) -> int:
        count = 0
        for e in self._entries.values():
            if partial_match(key, e.key):
                e.invalidated = True
                count += 1
        return count

    def is_stale(self, key: QueryKey, stale_time: float = 0.0) -> bool:
        """True when `fetch` would reload `key`."""
        entry = self._entries.get(hash_key(key))
        if entry is None or entry.invalidated:
            return True
        return self.now() - entry.updated_at > stale_time

    def is_fetching(self, key: QueryKey) -> bool:
        return any(partial_match(key, k) for k, _ in self._in_flight.values())

    async def fetch(
        self,
        key: QueryKey,
        loader: Loader[T],
        *,
        stale_time: float = 0.0,
    ) -> T:
        """
        Serve `key` from memory when fresh, else load it.

        Concurrent fetches of the same key share one in-flight task.
        Raises QueryCancelled when the task is aborted by `cancel`.
        """
        h = hash_key(key)
        entry = self._entries.get(h)
        if entry is not None and not self.is_stale(key, stale_time):
            return entry.value

        pending = self._in_flight.get(h)
        if pending is None:
            task = asyncio.ensure_future(self._load(key, loader))
            self._in_flight[h] = (key, task)
            task.add_done_callback(lambda t: self._forget(h, t))
        else:
            _, task = pending

        await asyncio.wait([task])
        if task.cancelled():
            raise QueryCancelled(key)
        return task.result()

    async def cancel(self, key: QueryKey) -> int:
        tasks = [t for k, t in self._in_flight.values() if partial_match(key, k)]
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.wait(tasks)
            logger.debug("cancelled %d in-flight read(s) for %r", len(tasks), key)
        return len(tasks)

    async def _load(self, key: QueryKey, loader: Loader[T]) -> T:
        value = await loader()
        self.write(key, lambda _: value)
        return value

    def _forget(self, h: Hashable, task: asyncio.Task[Any]) -> None:
        pending = self._in_flight.get(h)
        if pending is not None and pending[1] is task:
            del self._in_flight[h]


# ═══════════════════════════════════════════════════════════════════════════════
# Cache Result
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CacheResult[T]:
    """Read result with metadata."""
    value: T
    hit: bool
    key: QueryKey


class CacheErrorKind(Enum):
    """Cache error kinds."""
    MISS = auto()
    CANCELLED = auto()
    FETCH = auto()


@dataclass(frozen=True, slots=True)
class CacheError:
    """Cache operation error."""
    kind: CacheErrorKind
    message: str


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Updater",
    "Loader",
    "CacheAdapter",
    "QueryCancelled",
    "Entry",
    "QueryCache",
    "CacheResult",
    "CacheError",
    "CacheErrorKind",
)
