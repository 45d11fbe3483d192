"""
Cache: query cache read through, invalidated and cancelled by writes.

Key concepts:
- QueryCache = storage addressed by structured keys (global, inject via DI)
- Query = declarative read builder (per-use-case, type-safe)
- Optimistic writes abort in-flight reads of the same keys

Level 5: tentative.cache, tentative.records
Level 3: combinators.lift
Level 2: kungfu.Result
"""

import asyncio
from typing import Any

from kungfu import Ok, Error, Some, LazyCoroResult
from combinators import lift as L
from tentative import cache as C
from tentative import mutation as M
from tentative import records as R
from tentative import undo as U
from examples._infra import banner, run, FakeApi, NotFound


api = FakeApi()
cache: C.QueryCache[Any] = C.QueryCache()
queue = U.UndoableQueue()


# ═══════════════════════════════════════════════════════════════════════════════
# 1. FETCH FUNCTION: returns LazyCoroResult
# ═══════════════════════════════════════════════════════════════════════════════


def fetch_post(post_id: int) -> LazyCoroResult[dict[str, Any], NotFound]:
    async def _fetch() -> dict[str, Any]:
        print(f"  [ORIGIN] Fetching post {post_id}...")
        return await api.get_one("posts", post_id)

    return L.catching_async(
        _fetch,
        on_error=lambda e: e if isinstance(e, NotFound) else NotFound("posts", post_id),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# 2. QUERY = BUILDER: key function + fetch + staleness
# ═══════════════════════════════════════════════════════════════════════════════

post_query = (
    C.query(lambda pid: R.one_key("posts", pid), fetch_post)
    .stale_time(30)
    .build(cache)
)

rename_post = R.update(api, "posts").mode(M.MutationMode.OPTIMISTIC).build(cache=cache, queue=queue)


def show(result: Any) -> None:
    match result:
        case Ok(r):
            print(f"   hit={r.hit} → {r.value['title']}")
        case Error(C.CacheError(kind=kind)):
            print(f"   cache error: {kind.name}")
        case Error(e):
            print(f"   error: {e}")


async def main() -> None:
    banner("Cache: Read Through, Invalidate, Cancel")

    print("\n1. First request (miss → fetch from origin):")
    show(await post_query.get(1))

    print("\n2. Second request (fresh → served from memory):")
    show(await post_query.get(1))

    print("\n3. Invalidate, request again (stale → refetch):")
    post_query.invalidate(1)
    show(await post_query.get(1))

    print("\n4. Missing record:")
    show(await post_query.get(99))

    print("\n5. Optimistic rename while a read is in flight:")
    post_query.invalidate(1)
    pending = asyncio.ensure_future(post_query.get(1))
    await asyncio.sleep(0)
    await rename_post.execute({"id": 1, "data": {"title": "Renamed"}})
    show(await pending)
    match cache.read(R.one_key("posts", 1)):
        case Some(post):
            print(f"   cache now holds → {post['title']}")

    await rename_post.settled()
    print("\nDone!")


if __name__ == "__main__":
    run(main)
