"""
Cache shapes for record resources and reducers over them.

    (resource, "getOne", {"id", "meta"})  -> record
    (resource, "getList", ...)            -> {"data": [...], "total": n}
    (resource, "getManyReference", ...)   -> {"data": [...], "total": n}
    (resource, "getInfiniteList", ...)    -> {"pages": [{"data": [...], "total": n}, ...]}
    (resource, "getMany", ...)            -> [...]
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from tentative._types import QueryKey, Variables
from tentative.cache import CacheAdapter, Updater
from tentative.mutation import MissingParameterError, Mutation
from tentative.records._types import Record

type CollectionFn = Callable[[list[Record]], list[Record]]

# ═══════════════════════════════════════════════════════════════════════════════
# Query Keys
# ═══════════════════════════════════════════════════════════════════════════════


def one_key(resource: str | None, record_id: Any, meta: Any = None) -> QueryKey:
    return (resource, "getOne", {"id": str(record_id), "meta": meta})


def collection_keys(resource: str | None) -> list[QueryKey]:
    return [
        (resource, "getList"),
        (resource, "getInfiniteList"),
        (resource, "getMany"),
        (resource, "getManyReference"),
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# Parameter Checks
# ═══════════════════════════════════════════════════════════════════════════════


def require(variables: Variables, operation: str, *names: str) -> str:
    """Validate required parameters, return the resource."""
    resource = variables.get("resource")
    if resource is None:
        raise MissingParameterError(f"{operation} mutation requires a resource")
    for name in names:
        value = variables.get(name)
        if name == "data":
            if value is None:
                raise MissingParameterError(f"{operation} mutation requires a data object")
        elif name == "ids":
            if value is None:
                raise MissingParameterError(f"{operation} mutation requires an array of ids")
        elif value is None:
            raise MissingParameterError(f"{operation} mutation requires a non-empty {name}")
    return resource


def provider_params(variables: Variables) -> dict[str, Any]:
    return {k: v for k, v in variables.items() if k != "resource"}


# ═══════════════════════════════════════════════════════════════════════════════
# Collection Reducers
# ═══════════════════════════════════════════════════════════════════════════════


def merge_into(ids: Iterable[Any], data: Mapping[str, Any]) -> CollectionFn:
    wanted = {str(i) for i in ids}

    def apply(records: list[Record]) -> list[Record]:
        return [
            {**r, **data} if str(r.get("id")) in wanted else r
            for r in records
        ]

    return apply


def drop(ids: Iterable[Any]) -> CollectionFn:
    wanted = {str(i) for i in ids}

    def apply(records: list[Record]) -> list[Record]:
        return [r for r in records if str(r.get("id")) not in wanted]

    return apply


# ═══════════════════════════════════════════════════════════════════════════════
# Shape Updaters
# ═══════════════════════════════════════════════════════════════════════════════


def _shrink(res: Mapping[str, Any], records: Sequence[Record], fn: CollectionFn) -> Mapping[str, Any]:
    remaining = fn(list(records))
    removed = len(records) - len(remaining)
    if not removed:
        return res
    total = res.get("total")
    return {**res, "data": remaining, "total": total - removed if total else total}


def list_result(fn: CollectionFn, *, shrinks: bool = False) -> Updater[Any]:
    def updater(res: Any) -> Any:
        if not res or res.get("data") is None:
            return res
        if shrinks:
            return _shrink(res, res["data"], fn)
        return {**res, "data": fn(list(res["data"]))}

    return updater


def pages_result(fn: CollectionFn, *, shrinks: bool = False) -> Updater[Any]:
    def page_of(page: Mapping[str, Any]) -> Mapping[str, Any]:
        if page.get("data") is None:
            return page
        if shrinks:
            return _shrink(page, page["data"], fn)
        return {**page, "data": fn(list(page["data"]))}

    def updater(res: Any) -> Any:
        if not res or not res.get("pages"):
            return res
        return {**res, "pages": [page_of(p) for p in res["pages"]]}

    return updater


def many_result(fn: CollectionFn) -> Updater[Any]:
    def updater(coll: Any) -> Any:
        if not coll:
            return coll
        return fn(list(coll))

    return updater


def write_collections(
    cache: CacheAdapter,
    resource: str | None,
    fn: CollectionFn,
    *,
    updated_at: float,
    shrinks: bool = False,
) -> None:
    """Apply `fn` to every list-shaped entry of `resource`."""
    cache.write_matching((resource, "getList"), list_result(fn, shrinks=shrinks), updated_at=updated_at)
    cache.write_matching((resource, "getInfiniteList"), pages_result(fn, shrinks=shrinks), updated_at=updated_at)
    cache.write_matching((resource, "getMany"), many_result(fn), updated_at=updated_at)
    cache.write_matching((resource, "getManyReference"), list_result(fn, shrinks=shrinks), updated_at=updated_at)


def declare[T](m: Mutation[T], resource: str | None, operation: str) -> Mutation[T]:
    """Bind a default resource and a mutation key."""
    if resource is None:
        return m.key((operation,))
    return m.params(resource=resource).key((resource, operation))


__all__ = (
    "one_key",
    "collection_keys",
    "require",
    "provider_params",
    "merge_into",
    "drop",
    "list_result",
    "pages_result",
    "many_result",
    "write_collections",
    "declare",
)
