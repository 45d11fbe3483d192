"""
Query builder: fluent API for the read side of the cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Callable
from kungfu import LazyCoroResult, Result, Ok, Error, Some

from tentative._types import Lazy, QueryKey
from tentative.cache._types import (
    QueryCache,
    QueryCancelled,
    CacheResult,
    CacheError,
    CacheErrorKind,
)

# ═══════════════════════════════════════════════════════════════════════════════
# Key Function Type
# ═══════════════════════════════════════════════════════════════════════════════

type KeyFn[K] = Callable[[K], QueryKey]


class _FetchFailed(Exception):
    """Carries a fetch Error through the shared in-flight task."""

    def __init__(self, error: object) -> None:
        super().__init__(error)
        self.error = error


# ═══════════════════════════════════════════════════════════════════════════════
# Query Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Query[K, T, E]:
    """
    Fluent query builder.

    Type parameters:
        K: Argument type
        T: Value type
        E: Error type from fetch

    Example:
        post_query = (
            C.query(lambda pid: ("posts", "getOne", {"id": str(pid)}), fetch_post)
            .stale_time(30)
            .build(cache)
        )
    """

    _key_fn: KeyFn[K]
    _fetch: Callable[[K], Lazy[T, E]]
    _stale_time: float

    def stale_time(self, seconds: float) -> Query[K, T, E]:
        """Serve cached values younger than `seconds` without refetching."""
        return Query(
            _key_fn=self._key_fn,
            _fetch=self._fetch,
            _stale_time=seconds,
        )

    def build(self, cache: QueryCache[T]) -> QueryExecutor[K, T, E]:
        """Bind the query to a cache."""
        return QueryExecutor(
            key_fn=self._key_fn,
            fetch=self._fetch,
            stale_time=self._stale_time,
            cache=cache,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Query Executor
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class QueryExecutor[K, T, E]:
    """Compiled query."""

    key_fn: KeyFn[K]
    fetch: Callable[[K], Lazy[T, E]]
    stale_time: float
    cache: QueryCache[T]

    def get(self, arg: K) -> LazyCoroResult[CacheResult[T], CacheError | E]:
        """
        Read value through the cache.

        Fresh entries are served from memory. Stale, invalidated or missing
        entries are loaded via fetch, sharing one in-flight read per key.
        A read aborted by a mutation yields CacheError(CANCELLED).
        """
        key = self.key_fn(arg)
        cache = self.cache
        stale_time = self.stale_time
        fetch_fn = self.fetch

        async def load() -> T:
            result = await fetch_fn(arg)
            match result:
                case Ok(value):
                    return value
                case Error(e):
                    raise _FetchFailed(e)

        async def execute() -> Result[CacheResult[T], CacheError | E]:
            if not cache.is_stale(key, stale_time):
                match cache.read(key):
                    case Some(value):
                        return Ok(CacheResult(value=value, hit=True, key=key))

            try:
                value = await cache.fetch(key, load, stale_time=stale_time)
            except QueryCancelled as exc:
                return Error(CacheError(CacheErrorKind.CANCELLED, str(exc)))
            except _FetchFailed as exc:
                return Error(exc.error)
            return Ok(CacheResult(value=value, hit=False, key=key))

        return LazyCoroResult(execute)

    def invalidate(self, arg: K) -> int:
        """Mark the entry for `arg` stale."""
        return self.cache.invalidate(self.key_fn(arg))


# ═══════════════════════════════════════════════════════════════════════════════
# query(): Entry Point (Type-Safe)
# ═══════════════════════════════════════════════════════════════════════════════


def query[K, T, E](
    key: KeyFn[K],
    fetch: Callable[[K], Lazy[T, E]],
) -> Query[K, T, E]:
    """
    Create query builder with key function and fetch.

    Example:
        from tentative import cache as C

        def fetch_post(pid: int) -> LazyCoroResult[dict, NotFound]:
            return L.catching_async(lambda: api.get_post(pid), on_error=NotFound)

        post_query = C.query(lambda pid: ("posts", "getOne", {"id": str(pid)}), fetch_post).build(cache)

        result = await post_query.get(1)
    """
    return Query(
        _key_fn=key,
        _fetch=fetch,
        _stale_time=0.0,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Query", "QueryExecutor", "query")
