"""
delete() and delete_many(): remove records from cached collections.
"""

from __future__ import annotations

from typing import Any

from tentative._types import QueryKey, Variables
from tentative.mutation import Mutation, ModeContext, RemoteResult, mutation
from tentative.records._types import DataProvider, FreshnessPolicy, DEFAULT_FRESHNESS
from tentative.records._collections import (
    collection_keys,
    require,
    provider_params,
    drop,
    write_collections,
    declare,
)


def _collections_of(variables: Variables, ctx: ModeContext) -> list[QueryKey]:
    return collection_keys(variables.get("resource"))


def delete(
    provider: DataProvider,
    resource: str | None = None,
    *,
    freshness: FreshnessPolicy = DEFAULT_FRESHNESS,
) -> Mutation[Any]:
    """
    Delete one record.

    Call params: `id`, optional `previous_data`, `meta`. Lists lose the
    record and their `total` drops by one; the optimistic result is
    `previous_data`.

    Example:
        delete_post = R.delete(provider, "posts").mode(M.MutationMode.UNDOABLE).build(
            cache=cache, queue=queue
        )
        await delete_post.execute({"id": 1, "previous_data": post})
    """

    async def call(variables: Variables) -> RemoteResult[Any]:
        name = require(variables, "delete", "id")
        return await provider.delete(name, provider_params(variables))

    def update_cache(variables: Variables, ctx: ModeContext, result: Any) -> Any:
        write_collections(
            ctx.cache,
            variables.get("resource"),
            drop([variables.get("id")]),
            updated_at=freshness.updated_at(ctx.mutation_mode),
            shrinks=True,
        )
        return variables.get("previous_data")

    # Lists are refetched after every settle, pessimistic included
    m = mutation(call, update_cache=update_cache, query_keys=_collections_of).invalidate_on_settle()
    return declare(m, resource, "delete")


def delete_many(
    provider: DataProvider,
    resource: str | None = None,
    *,
    freshness: FreshnessPolicy = DEFAULT_FRESHNESS,
) -> Mutation[Any]:
    """Delete several records. Call params: `ids`, optional `meta`."""

    async def call(variables: Variables) -> RemoteResult[Any]:
        name = require(variables, "delete_many", "ids")
        return await provider.delete_many(name, provider_params(variables))

    def update_cache(variables: Variables, ctx: ModeContext, result: Any) -> Any:
        ids = list(variables.get("ids") or [])
        write_collections(
            ctx.cache,
            variables.get("resource"),
            drop(ids),
            updated_at=freshness.updated_at(ctx.mutation_mode),
            shrinks=True,
        )
        return ids

    # Lists are refetched after every settle, pessimistic included
    m = mutation(call, update_cache=update_cache, query_keys=_collections_of).invalidate_on_settle()
    return declare(m, resource, "delete_many")


__all__ = ("delete", "delete_many")
