"""Test doubles shared across the suite."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from kungfu import Some

from tentative import mutation as M
from tentative._types import Variables


class FakeClock:
    """Manually advanced clock for freshness checks."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeRemote:
    """
    Remote write recording every call.

    `fail` makes the next calls raise; `gate` holds calls until released.
    """

    result: Any = None
    fail: Exception | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)
    gate: asyncio.Event | None = None

    async def __call__(self, variables: Variables) -> M.RemoteResult[Any]:
        self.calls.append(dict(variables))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail
        return M.RemoteResult(self.result)


@dataclass
class FakeProvider:
    """DataProvider double returning canned payloads per operation."""

    results: dict[str, Any] = field(default_factory=dict)
    fail: Exception | None = None
    calls: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)

    async def _call(self, op: str, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        self.calls.append((op, resource, dict(params)))
        if self.fail is not None:
            raise self.fail
        return M.RemoteResult(self.results.get(op))

    async def create(self, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        return await self._call("create", resource, params)

    async def update(self, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        return await self._call("update", resource, params)

    async def delete(self, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        return await self._call("delete", resource, params)

    async def update_many(self, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        return await self._call("update_many", resource, params)

    async def delete_many(self, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        return await self._call("delete_many", resource, params)


POST_KEY = ("posts", "getOne", {"id": "1", "meta": None})
POSTS_LIST_KEY = ("posts", "getList", {"page": 1})
COMMENTS_KEY = ("comments", "getList", {"page": 1})


def post_keys(variables: Variables, ctx: M.ModeContext) -> list[tuple[Any, ...]]:
    return [("posts", "getOne", {"id": str(variables.get("id"))}), ("posts", "getList")]


def merge_post(variables: Variables, ctx: M.ModeContext, result: Any) -> Any:
    """Minimal update_cache: merge data (or the payload) into the getOne entry."""
    data = result if ctx.mutation_mode is M.MutationMode.PESSIMISTIC else variables["data"]
    key = ("posts", "getOne", {"id": str(variables["id"]), "meta": None})
    ctx.cache.write(key, lambda old: {**(old or {}), **data})
    return data




@dataclass
class Callbacks:
    """Records every lifecycle callback the engine fires."""

    successes: list[Any] = field(default_factory=list)
    errors: list[M.MutationError] = field(default_factory=list)
    settled: list[tuple[Any, M.MutationError | None]] = field(default_factory=list)
    undone: list[dict[str, Any]] = field(default_factory=list)
    contexts: list[M.MutateContext] = field(default_factory=list)

    def on_success(self, result: Any, variables: Variables, context: M.MutateContext, engine: M.EngineContext) -> None:
        self.successes.append(result)
        self.contexts.append(context)

    def on_error(self, error: M.MutationError, variables: Variables, context: M.MutateContext, engine: M.EngineContext) -> None:
        self.errors.append(error)
        self.contexts.append(context)

    def on_settled(self, result: Any, error: M.MutationError | None, variables: Variables, context: M.MutateContext) -> None:
        self.settled.append((result, error))

    def on_undo(self, variables: Variables, ctx: M.ModeContext) -> None:
        self.undone.append(dict(variables))


def value_of(cache: Any, key: tuple[Any, ...]) -> Any:
    """Stored value under `key`; fails the test when absent."""
    match cache.read(key):
        case Some(value):
            return value
    raise AssertionError(f"{key!r} is absent")
