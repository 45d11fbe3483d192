"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Callable, Coroutine, Mapping
from dataclasses import dataclass, field
from typing import Any

from tentative import mutation as M


# Errors
@dataclass(frozen=True, slots=True)
class NotFound(Exception):
    resource: str
    id: int | str

    def __str__(self) -> str:
        return f"{self.resource}:{self.id} not found"


# Fake API
@dataclass(slots=True)
class FakeApi:
    """In-memory data provider with a little latency and a kill switch."""

    tables: dict[str, dict[int, dict[str, Any]]] = field(default_factory=lambda: {
        "posts": {
            1: {"id": 1, "title": "Hello", "views": 10},
            2: {"id": 2, "title": "Second", "views": 3},
        },
    })
    down: bool = False

    async def _ready(self) -> None:
        await asyncio.sleep(0.01)
        if self.down:
            raise ConnectionError("api unavailable")

    async def get_list(self, resource: str) -> dict[str, Any]:
        await self._ready()
        rows = [copy.deepcopy(r) for r in self.tables[resource].values()]
        return {"data": rows, "total": len(rows)}

    async def get_one(self, resource: str, record_id: int) -> dict[str, Any]:
        await self._ready()
        record = self.tables[resource].get(record_id)
        if record is None:
            raise NotFound(resource, record_id)
        return copy.deepcopy(record)

    async def create(self, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        await self._ready()
        table = self.tables[resource]
        record = {"id": max(table, default=0) + 1, **params["data"]}
        table[record["id"]] = record
        return M.RemoteResult(copy.deepcopy(record))

    async def update(self, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        await self._ready()
        record = self.tables[resource][params["id"]]
        record.update(params["data"])
        return M.RemoteResult(copy.deepcopy(record))

    async def delete(self, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        await self._ready()
        return M.RemoteResult(self.tables[resource].pop(params["id"]))

    async def update_many(self, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        await self._ready()
        for record_id in params["ids"]:
            self.tables[resource][record_id].update(params["data"])
        return M.RemoteResult(list(params["ids"]))

    async def delete_many(self, resource: str, params: Mapping[str, Any]) -> M.RemoteResult[Any]:
        await self._ready()
        for record_id in params["ids"]:
            self.tables[resource].pop(record_id, None)
        return M.RemoteResult(list(params["ids"]))


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
