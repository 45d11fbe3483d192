"""
Cache: query cache addressed by structured keys.

    from tentative import cache as C

    cache = C.QueryCache()
    post_query = C.query(post_key, fetch_post).stale_time(30).build(cache)
    result = await post_query.get(post_id)
"""

from __future__ import annotations

from tentative.cache._types import (
    Updater,
    Loader,
    CacheAdapter,
    QueryCancelled,
    Entry,
    QueryCache,
    CacheResult,
    CacheError,
    CacheErrorKind,
)
from tentative.cache._keys import hash_key, partial_match
from tentative.cache._builder import query, Query, QueryExecutor

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
    "hash_key",
    "partial_match",
    "query",
    "Query",
    "QueryExecutor",
)
