"""
update() and update_many(): merge data into cached records.
"""

from __future__ import annotations

import copy
from typing import Any

from kungfu import Some

from tentative._types import QueryKey, Variables
from tentative.mutation import (
    Mutation,
    MutationMode,
    ModeContext,
    RemoteResult,
    mutation,
)
from tentative.records._types import DataProvider, FreshnessPolicy, DEFAULT_FRESHNESS
from tentative.records._collections import (
    one_key,
    collection_keys,
    require,
    provider_params,
    merge_into,
    write_collections,
    declare,
)

# ═══════════════════════════════════════════════════════════════════════════════
# update(): Single Record
# ═══════════════════════════════════════════════════════════════════════════════


def update(
    provider: DataProvider,
    resource: str | None = None,
    *,
    freshness: FreshnessPolicy = DEFAULT_FRESHNESS,
) -> Mutation[Any]:
    """
    Update one record.

    Call params: `id`, `data`, optional `previous_data`, `meta`.
    The getOne entry and every list containing the record get `data`
    merged in; the optimistic result is the previous record merged
    with `data`.

    Example:
        update_post = R.update(provider, "posts").build(cache=cache, queue=queue)
        await update_post.execute({"id": 1, "data": {"title": "New"}},
                                  mutation_mode=M.MutationMode.OPTIMISTIC)
    """

    async def call(variables: Variables) -> RemoteResult[Any]:
        name = require(variables, "update", "id", "data")
        return await provider.update(name, provider_params(variables))

    def update_cache(variables: Variables, ctx: ModeContext, result: Any) -> Any:
        name = variables.get("resource")
        record_id = variables.get("id")
        key = one_key(name, record_id, variables.get("meta"))
        updated_at = freshness.updated_at(ctx.mutation_mode)
        source = result if ctx.mutation_mode is MutationMode.PESSIMISTIC else variables.get("data")
        data = copy.deepcopy(dict(source or {}))

        match ctx.cache.read(key):
            case Some(value) if value:
                previous = value
            case _:
                previous = {}

        ctx.cache.write(key, lambda record: {**(record or {}), **data}, updated_at=updated_at)
        write_collections(ctx.cache, name, merge_into([record_id], data), updated_at=updated_at)
        return {**previous, **data}

    def query_keys(variables: Variables, ctx: ModeContext) -> list[QueryKey]:
        name = variables.get("resource")
        return [
            one_key(name, variables.get("id"), variables.get("meta")),
            *collection_keys(name),
        ]

    return declare(mutation(call, update_cache=update_cache, query_keys=query_keys), resource, "update")


# ═══════════════════════════════════════════════════════════════════════════════
# update_many(): Batch
# ═══════════════════════════════════════════════════════════════════════════════


def update_many(
    provider: DataProvider,
    resource: str | None = None,
    *,
    freshness: FreshnessPolicy = DEFAULT_FRESHNESS,
) -> Mutation[Any]:
    """
    Update several records with the same data.

    Call params: `ids`, `data`, optional `meta`. Returns the ids.
    """

    async def call(variables: Variables) -> RemoteResult[Any]:
        name = require(variables, "update_many", "ids", "data")
        return await provider.update_many(name, provider_params(variables))

    def update_cache(variables: Variables, ctx: ModeContext, result: Any) -> Any:
        name = variables.get("resource")
        ids = list(variables.get("ids") or [])
        meta = variables.get("meta")
        updated_at = freshness.updated_at(ctx.mutation_mode)
        data = copy.deepcopy(dict(variables.get("data") or {}))

        for record_id in ids:
            ctx.cache.write(
                one_key(name, record_id, meta),
                lambda record: {**(record or {}), **data},
                updated_at=updated_at,
            )
        write_collections(ctx.cache, name, merge_into(ids, data), updated_at=updated_at)
        return ids

    def query_keys(variables: Variables, ctx: ModeContext) -> list[QueryKey]:
        name = variables.get("resource")
        meta = variables.get("meta")
        # Per-id keys: ids absent at capture are removed on rollback
        return [
            (name, "getOne"),
            *(one_key(name, record_id, meta) for record_id in variables.get("ids") or []),
            *collection_keys(name),
        ]

    return declare(mutation(call, update_cache=update_cache, query_keys=query_keys), resource, "update_many")


__all__ = ("update", "update_many")
