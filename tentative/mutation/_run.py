"""
Mutation execution: pessimistic, optimistic and undoable paths.
"""

from __future__ import annotations

import asyncio
import logging
import warnings
from collections.abc import Coroutine, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from combinators import lift as L
from kungfu import Result, Ok, Error

from tentative._types import Lazy, QueryKey, Variables
from tentative.cache import CacheAdapter
from tentative.snapshot import Snapshot, capture, restore
from tentative.undo import UndoableMutation, UndoableQueue
from tentative.mutation._types import (
    MutationMode,
    ModeContext,
    MutationError,
    MutationErrorKind,
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

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# remote(): Lift Remote Write Into Result
# ═══════════════════════════════════════════════════════════════════════════════


def remote[T](fn: MutationFn[T], variables: Variables) -> Lazy[T, MutationError]:
    """
    Run a remote write, unwrapping its payload.

    Any exception, including a missing-parameter check inside `fn`, becomes
    a classified MutationError.
    """

    async def do_remote() -> T:
        result = await fn(variables)
        return result.data

    return L.catching_async(do_remote, on_error=classify)


def compose[T](fn: MutationFn[T], middlewares: Sequence[Middleware[T]]) -> MutationFn[T]:
    """Apply middlewares; the first one registered runs outermost."""
    for middleware in reversed(middlewares):
        fn = middleware(fn)
    return fn


# ═══════════════════════════════════════════════════════════════════════════════
# Call: One Invocation, Everything Captured By Value
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class _Call[T]:
    """State of one execute() call. Outlives the caller."""

    executor: MutationExecutor[T]
    fn: MutationFn[T]
    variables: Variables
    mode: MutationMode
    snapshot: Snapshot
    on_success: OnSuccess[T] | None
    on_error: OnError | None
    on_settled: OnSettled[T] | None
    on_undo: OnUndo | None

    @property
    def ctx(self) -> ModeContext:
        return ModeContext(self.mode, self.executor.cache)

    @property
    def mutate_context(self) -> MutateContext:
        return MutateContext(self.snapshot)

    def fire_success(self, result: T | None) -> None:
        if self.on_success is not None:
            self.on_success(
                result, self.variables, self.mutate_context, self.executor.engine_context
            )

    def fail(self, error: MutationError) -> None:
        self.executor.state = MutationState(
            status=MutationStatus.ERROR, error=error, variables=self.variables
        )
        if self.on_error is not None:
            self.on_error(
                error, self.variables, self.mutate_context, self.executor.engine_context
            )

    def settle(self, result: T | None, error: MutationError | None) -> None:
        if self.on_settled is not None:
            self.on_settled(result, error, self.variables, self.mutate_context)

    def begin(self) -> None:
        self.executor.state = MutationState(
            status=MutationStatus.PENDING, variables=self.variables
        )

    def succeed(self, data: T) -> None:
        self.executor.state = MutationState(
            status=MutationStatus.SUCCESS, data=data, variables=self.variables
        )

    def invalidate(self) -> None:
        keys = self.executor.query_keys(self.variables, self.ctx)
        for key in keys:
            self.executor.cache.invalidate(key)
        logger.debug("invalidated %d declared key(s)", len(keys))

    async def run_pessimistic(self) -> Result[T, MutationError]:
        """Remote first; cache is written only with the real payload."""
        self.begin()
        result = await remote(self.fn, self.variables)

        match result:
            case Ok(data):
                try:
                    self.executor.update_cache(self.variables, self.ctx, data)
                except Exception as exc:
                    error = MutationError(MutationErrorKind.CACHE, str(exc), exc)
                    self.fail(error)
                    result = Error(error)
                else:
                    self.succeed(data)
                    self.fire_success(data)
            case Error(error):
                self.fail(error)

        if self.executor.invalidate_on_settle:
            self.invalidate()

        match result:
            case Ok(data):
                self.settle(data, None)
            case Error(error):
                self.settle(None, error)
        return result

    async def run_confirmed(self) -> Result[T, MutationError]:
        """Remote after an optimistic write; success callbacks already fired."""
        self.begin()
        result = await remote(self.fn, self.variables)

        data: T | None = None
        failure: MutationError | None = None
        match result:
            case Ok(value):
                data = value
                self.succeed(value)
            case Error(error):
                failure = error
                restore(self.executor.cache, self.snapshot)
                logger.debug("rolled back %d entr(ies) after failed write", len(self.snapshot))
                self.fail(error)

        # Always refetch after error or success
        self.invalidate()

        self.settle(data, failure)
        return result

    def undoable_entry(self) -> UndoableMutation:
        consumed = False

        async def entry(is_undo: bool) -> None:
            nonlocal consumed
            if consumed:
                raise RuntimeError("undoable mutation was already consumed")
            consumed = True

            if is_undo:
                if self.on_undo is not None:
                    self.on_undo(self.variables, self.ctx)
                restore(self.executor.cache, self.snapshot)
                logger.debug("undone: restored %d entr(ies)", len(self.snapshot))
                return

            await self.run_confirmed()

        return entry


# ═══════════════════════════════════════════════════════════════════════════════
# MutationExecutor
# ═══════════════════════════════════════════════════════════════════════════════


class MutationExecutor[T]:
    """
    Compiled mutation bound to a cache and an undoable queue.

    `params` are the declaration-time parameters. They may be replaced at
    any time; each call copies them when it starts, so a call in flight never
    sees later changes. `middlewares` behave the same way.

    Example:
        update_post = M.mutation(api_update, update_cache=..., query_keys=...).build(
            cache=cache, queue=queue
        )

        await update_post.execute({"id": 1, "data": {"title": "New"}},
                                  mutation_mode=M.MutationMode.OPTIMISTIC)
        await update_post.settled()
    """

    def __init__(
        self,
        *,
        mutation_fn: MutationFn[T],
        update_cache: UpdateCache[T],
        query_keys: GetQueryKeys,
        cache: CacheAdapter,
        queue: UndoableQueue,
        params: Mapping[str, Any] | None = None,
        mode: MutationMode = MutationMode.PESSIMISTIC,
        return_promise: bool = False,
        on_success: OnSuccess[T] | None = None,
        on_error: OnError | None = None,
        on_settled: OnSettled[T] | None = None,
        on_undo: OnUndo | None = None,
        mutation_key: QueryKey | None = None,
        meta: Mapping[str, Any] | None = None,
        middlewares: Sequence[Middleware[T]] = (),
        invalidate_on_settle: bool = False,
    ) -> None:
        self.mutation_fn = mutation_fn
        self.update_cache = update_cache
        self.query_keys = query_keys
        self.cache = cache
        self.queue = queue
        self.params: Mapping[str, Any] = MappingProxyType(dict(params or {}))
        self.mode = mode
        self.return_promise = return_promise
        self.on_success = on_success
        self.on_error = on_error
        self.on_settled = on_settled
        self.on_undo = on_undo
        self.middlewares: tuple[Middleware[T], ...] = tuple(middlewares)
        self.invalidate_on_settle = invalidate_on_settle
        self.engine_context = EngineContext(cache=cache, mutation_key=mutation_key, meta=meta)
        self.snapshot: Snapshot = ()
        self.state: MutationState[T] = MutationState()
        self._tasks: set[asyncio.Task[Any]] = set()

    async def execute(
        self,
        call_params: Mapping[str, Any] | None = None,
        *,
        mutation_mode: MutationMode | None = None,
        return_promise: bool | None = None,
        on_success: OnSuccess[T] | None = None,
        on_error: OnError | None = None,
        on_settled: OnSettled[T] | None = None,
    ) -> Result[T, MutationError] | None:
        """
        Run one mutation.

        Pessimistic with return_promise: waits for the remote write and
        returns its Result. Every other case returns None once the
        synchronous phase is done; the remote write (if any) continues in
        the background, see settled().
        """
        mode = MutationMode(mutation_mode or self.mode)
        wants_result = self.return_promise if return_promise is None else return_promise

        # Hook-time params are read now, not when the write completes
        variables: Variables = MappingProxyType({**self.params, **(call_params or {})})
        ctx = ModeContext(mode, self.cache)

        if wants_result and mode is not MutationMode.PESSIMISTIC:
            warnings.warn(
                "return_promise can only be used with the pessimistic mutation mode",
                stacklevel=2,
            )

        keys = self.query_keys(variables, ctx)
        snapshot = capture(self.cache, keys)
        self.snapshot = snapshot
        logger.debug(
            "mutation %r: %s mode, %d entr(ies) snapshotted",
            self.engine_context.mutation_key,
            mode,
            len(snapshot),
        )

        call = _Call(
            executor=self,
            fn=compose(self.mutation_fn, self.middlewares),
            variables=variables,
            mode=mode,
            snapshot=snapshot,
            on_success=on_success or self.on_success,
            on_error=on_error or self.on_error,
            on_settled=on_settled or self.on_settled,
            on_undo=self.on_undo,
        )

        if mode is MutationMode.PESSIMISTIC:
            if wants_result:
                return await call.run_pessimistic()
            self._spawn(call.run_pessimistic())
            return None

        # Outgoing reads would overwrite the optimistic write with stale data
        await asyncio.gather(*(self.cache.cancel(key) for key in keys))

        try:
            optimistic = self.update_cache(variables, ctx, None)
        except Exception:
            restore(self.cache, snapshot)
            raise

        # Success callbacks run on the next loop iteration, after the write
        asyncio.get_running_loop().call_soon(call.fire_success, optimistic)

        if mode is MutationMode.OPTIMISTIC:
            self._spawn(call.run_confirmed())
        else:
            self.queue.add(call.undoable_entry())
        return None

    async def settled(self) -> None:
        """Wait until every background remote write of this executor settles."""
        while self._tasks:
            await asyncio.gather(*self._tasks)

    def reset(self) -> None:
        self.state = MutationState()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


__all__ = ("MutationExecutor", "remote", "compose")
