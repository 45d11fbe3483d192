"""
Record types: data provider protocol and freshness policy.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Protocol

from tentative.mutation import MutationMode, RemoteResult

type Record = Mapping[str, Any]
"""A remote record; must carry an `id`."""

# ═══════════════════════════════════════════════════════════════════════════════
# Data Provider Protocol: Users Implement This
# ═══════════════════════════════════════════════════════════════════════════════


class DataProvider(Protocol):
    """
    Remote writes for record resources.

    `params` never contains `resource`; it holds `id`, `ids`, `data`,
    `previous_data` and `meta` as relevant to the operation.

    Example:
        class RestProvider:
            def __init__(self, client: httpx.AsyncClient) -> None:
                self.client = client

            async def update(self, resource, params) -> RemoteResult[dict]:
                r = await self.client.put(f"/{resource}/{params['id']}", json=params["data"])
                r.raise_for_status()
                return RemoteResult(r.json())

            ...
    """

    async def create(self, resource: str, params: Mapping[str, Any]) -> RemoteResult[Any]: ...

    async def update(self, resource: str, params: Mapping[str, Any]) -> RemoteResult[Any]: ...

    async def delete(self, resource: str, params: Mapping[str, Any]) -> RemoteResult[Any]: ...

    async def update_many(self, resource: str, params: Mapping[str, Any]) -> RemoteResult[Any]: ...

    async def delete_many(self, resource: str, params: Mapping[str, Any]) -> RemoteResult[Any]: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Freshness Policy
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class FreshnessPolicy:
    """
    Timestamp given to cache writes.

    Undoable writes are dated `grace` into the future so a background
    refetch does not clobber them while the user can still undo.
    """

    grace: timedelta = timedelta(seconds=5)
    clock: Callable[[], float] = field(default=time.time)

    def __post_init__(self) -> None:
        if self.grace < timedelta(0):
            raise ValueError("grace must be >= 0")

    def updated_at(self, mode: MutationMode) -> float:
        now = self.clock()
        if mode is MutationMode.UNDOABLE:
            return now + self.grace.total_seconds()
        return now


def freshness(
    seconds: float | None = None,
    duration: timedelta | None = None,
    clock: Callable[[], float] = time.time,
) -> FreshnessPolicy:
    """
    Set the undoable grace window.

    Example:
        R.update(provider, freshness=R.freshness(seconds=10))
        R.update(provider, freshness=R.freshness(duration=timedelta(minutes=1)))
    """
    if duration is not None:
        return FreshnessPolicy(duration, clock)
    if seconds is not None:
        return FreshnessPolicy(timedelta(seconds=seconds), clock)
    raise ValueError("Must provide seconds or duration")


DEFAULT_FRESHNESS = FreshnessPolicy()


__all__ = (
    "Record",
    "DataProvider",
    "FreshnessPolicy",
    "freshness",
    "DEFAULT_FRESHNESS",
)
