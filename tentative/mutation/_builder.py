"""
Mutation builder: fluent API.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from tentative._types import QueryKey
from tentative.cache import CacheAdapter
from tentative.undo import UndoableQueue
from tentative.mutation._types import (
    MutationMode,
    MutationFn,
    Middleware,
    UpdateCache,
    GetQueryKeys,
    OnUndo,
    OnSuccess,
    OnError,
    OnSettled,
)
from tentative.mutation._run import MutationExecutor

# ═══════════════════════════════════════════════════════════════════════════════
# Mutation Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Mutation[T]:
    """
    Fluent mutation builder.

    Type parameters:
        T: Payload type returned by the remote write

    Example:
        delete_post = (
            M.mutation(api_delete, update_cache=drop_post, query_keys=post_keys)
            .params(resource="posts")
            .mode(M.MutationMode.UNDOABLE)
            .on_undo(lambda variables, ctx: print("restored"))
            .build(cache=cache, queue=queue)
        )
    """

    _mutation_fn: MutationFn[T] | None
    _update_cache: UpdateCache[T]
    _query_keys: GetQueryKeys
    _params: Mapping[str, Any]
    _mode: MutationMode
    _return_promise: bool
    _on_success: OnSuccess[T] | None
    _on_error: OnError | None
    _on_settled: OnSettled[T] | None
    _on_undo: OnUndo | None
    _key: QueryKey | None
    _meta: Mapping[str, Any] | None
    _middlewares: tuple[Middleware[T], ...]
    _invalidate_on_settle: bool

    def params(self, **params: Any) -> Mutation[T]:
        """Merge declaration-time parameters."""
        return replace(self, _params={**self._params, **params})

    def mode(self, mode: MutationMode) -> Mutation[T]:
        """Set default mutation mode."""
        return replace(self, _mode=MutationMode(mode))

    def return_promise(self, enabled: bool = True) -> Mutation[T]:
        """Make pessimistic execute() wait and return the Result."""
        return replace(self, _return_promise=enabled)

    def on_success(self, fn: OnSuccess[T]) -> Mutation[T]:
        return replace(self, _on_success=fn)

    def on_error(self, fn: OnError) -> Mutation[T]:
        return replace(self, _on_error=fn)

    def on_settled(self, fn: OnSettled[T]) -> Mutation[T]:
        return replace(self, _on_settled=fn)

    def on_undo(self, fn: OnUndo) -> Mutation[T]:
        """Side effect run when an undoable mutation is cancelled."""
        return replace(self, _on_undo=fn)

    def key(self, mutation_key: QueryKey) -> Mutation[T]:
        return replace(self, _key=mutation_key)

    def meta(self, meta: Mapping[str, Any]) -> Mutation[T]:
        return replace(self, _meta=meta)

    def middleware(self, fn: Middleware[T]) -> Mutation[T]:
        """Wrap the remote write. First registered runs outermost."""
        return replace(self, _middlewares=(*self._middlewares, fn))

    def invalidate_on_settle(self, enabled: bool = True) -> Mutation[T]:
        """Also invalidate declared keys when a pessimistic write settles."""
        return replace(self, _invalidate_on_settle=enabled)

    def build(self, *, cache: CacheAdapter, queue: UndoableQueue) -> MutationExecutor[T]:
        """Build executable."""
        if self._mutation_fn is None:
            raise ValueError("mutation requires a mutation_fn")

        return MutationExecutor(
            mutation_fn=self._mutation_fn,
            update_cache=self._update_cache,
            query_keys=self._query_keys,
            cache=cache,
            queue=queue,
            params=self._params,
            mode=self._mode,
            return_promise=self._return_promise,
            on_success=self._on_success,
            on_error=self._on_error,
            on_settled=self._on_settled,
            on_undo=self._on_undo,
            mutation_key=self._key,
            meta=self._meta,
            middlewares=self._middlewares,
            invalidate_on_settle=self._invalidate_on_settle,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# mutation(): Entry Point (Type-Safe)
# ═══════════════════════════════════════════════════════════════════════════════


def mutation[T](
    fn: MutationFn[T] | None,
    *,
    update_cache: UpdateCache[T],
    query_keys: GetQueryKeys,
) -> Mutation[T]:
    """
    Create mutation builder from a remote write and its cache contract.

    Example:
        from tentative import mutation as M

        async def rename(variables: Variables) -> M.RemoteResult[dict]:
            return M.RemoteResult(await api.patch(variables["id"], variables["data"]))

        def write(variables, ctx, result):
            data = result if ctx.mutation_mode is M.MutationMode.PESSIMISTIC else variables["data"]
            cache.write(("posts", "getOne", {"id": str(variables["id"])}),
                        lambda old: {**(old or {}), **data})
            return data

        rename_post = M.mutation(
            rename,
            update_cache=write,
            query_keys=lambda variables, ctx: [("posts", "getOne", {"id": str(variables["id"])})],
        ).build(cache=cache, queue=queue)
    """
    return Mutation(
        _mutation_fn=fn,
        _update_cache=update_cache,
        _query_keys=query_keys,
        _params={},
        _mode=MutationMode.PESSIMISTIC,
        _return_promise=False,
        _on_success=None,
        _on_error=None,
        _on_settled=None,
        _on_undo=None,
        _key=None,
        _meta=None,
        _middlewares=(),
        _invalidate_on_settle=False,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Mutation", "mutation")
