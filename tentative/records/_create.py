"""
create(): store a new record under its id.
"""

from __future__ import annotations

import copy
from typing import Any

from tentative._types import QueryKey, Variables
from tentative.mutation import (
    Mutation,
    MutationMode,
    ModeContext,
    RemoteResult,
    InvalidResponseError,
    mutation,
)
from tentative.records._types import DataProvider, FreshnessPolicy, DEFAULT_FRESHNESS
from tentative.records._collections import (
    one_key,
    collection_keys,
    require,
    provider_params,
    declare,
)


def create(
    provider: DataProvider,
    resource: str | None = None,
    *,
    freshness: FreshnessPolicy = DEFAULT_FRESHNESS,
) -> Mutation[Any]:
    """
    Create one record.

    Call params: `data`, optional `meta`. Pessimistic writes use the id
    from the response; optimistic and undoable writes need `data["id"]`
    and raise InvalidResponseError without it.
    """

    async def call(variables: Variables) -> RemoteResult[Any]:
        name = require(variables, "create", "data")
        return await provider.create(name, provider_params(variables))

    def update_cache(variables: Variables, ctx: ModeContext, result: Any) -> Any:
        pessimistic = ctx.mutation_mode is MutationMode.PESSIMISTIC
        source = result if pessimistic else variables.get("data")
        record_id = (source or {}).get("id")
        if not record_id:
            raise InvalidResponseError("invalid response for create: missing id")

        data = copy.deepcopy(dict(source))
        ctx.cache.write(
            one_key(variables.get("resource"), record_id, variables.get("meta")),
            lambda record: {**(record or {}), **data},
            updated_at=freshness.updated_at(ctx.mutation_mode),
        )
        return data

    def query_keys(variables: Variables, ctx: ModeContext) -> list[QueryKey]:
        name = variables.get("resource")
        keys = collection_keys(name)
        record_id = (variables.get("data") or {}).get("id")
        if ctx.mutation_mode is not MutationMode.PESSIMISTIC and record_id:
            keys.append(one_key(name, record_id, variables.get("meta")))
        return keys

    return declare(mutation(call, update_cache=update_cache, query_keys=query_keys), resource, "create")


__all__ = ("create",)
