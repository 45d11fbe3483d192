"""
Mutation: remote writes kept consistent with the query cache.

    from tentative import mutation as M

    update_post = M.mutation(api_update, update_cache=write, query_keys=keys).build(
        cache=cache, queue=queue
    )
    await update_post.execute({"id": 1, "data": {...}}, mutation_mode=M.MutationMode.UNDOABLE)
"""

from __future__ import annotations

from tentative.mutation._types import (
    MutationMode,
    ModeContext,
    RemoteResult,
    MissingParameterError,
    InvalidResponseError,
    AbortError,
    MutationErrorKind,
    MutationError,
    classify,
    MutateContext,
    EngineContext,
    MutationStatus,
    MutationState,
    MutationFn,
    Middleware,
    UpdateCache,
    GetQueryKeys,
    OnUndo,
    OnSuccess,
    OnError,
    OnSettled,
)
from tentative.mutation._run import MutationExecutor, remote, compose
from tentative.mutation._builder import Mutation, mutation

__all__ = (
    "MutationMode",
    "ModeContext",
    "RemoteResult",
    "MissingParameterError",
    "InvalidResponseError",
    "AbortError",
    "MutationErrorKind",
    "MutationError",
    "classify",
    "MutateContext",
    "EngineContext",
    "MutationStatus",
    "MutationState",
    "MutationFn",
    "Middleware",
    "UpdateCache",
    "GetQueryKeys",
    "OnUndo",
    "OnSuccess",
    "OnError",
    "OnSettled",
    "MutationExecutor",
    "remote",
    "compose",
    "Mutation",
    "mutation",
)
