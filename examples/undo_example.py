"""
Undo: the three mutation modes side by side.

Key concepts:
- PESSIMISTIC: wait for the API, then write the real payload
- OPTIMISTIC:  write the guess now, roll back if the API rejects it
- UNDOABLE:    write the guess now, call the API only once confirmed

Level 5: tentative.mutation, tentative.records, tentative.undo
Level 2: kungfu.Result
"""

from typing import Any

from kungfu import Ok, Error, Some, Nothing
from tentative import cache as C
from tentative import mutation as M
from tentative import records as R
from tentative import undo as U
from examples._infra import banner, run, FakeApi


api = FakeApi()
cache: C.QueryCache[Any] = C.QueryCache()
queue = U.UndoableQueue()

LIST_KEY = ("posts", "getList", {"page": 1})


def titles() -> list[str]:
    match cache.read(LIST_KEY):
        case Some(res):
            return [p["title"] for p in res["data"]]
        case Nothing():
            return []


def report(error: M.MutationError, variables: Any, context: M.MutateContext, engine: M.EngineContext) -> None:
    print(f"   [on_error] {error.kind.name}: {error.message}")


update_post = R.update(api, "posts").on_error(report).build(cache=cache, queue=queue)
delete_post = (
    R.delete(api, "posts")
    .mode(M.MutationMode.UNDOABLE)
    .on_undo(lambda variables, ctx: print(f"   [on_undo] post {variables['id']} restored"))
    .build(cache=cache, queue=queue)
)


async def settle_head(is_undo: bool) -> None:
    match queue.take():
        case Some(entry):
            await entry(is_undo)
        case Nothing():
            print("   nothing to settle")


async def main() -> None:
    banner("Mutation Modes")
    listing = await api.get_list("posts")
    cache.write(LIST_KEY, lambda _: listing)
    print(f"\nList: {titles()}")

    print("\n1. Pessimistic update (cache waits for the API):")
    result = await update_post.execute({"id": 1, "data": {"title": "Hello again"}}, return_promise=True)
    match result:
        case Ok(post):
            print(f"   saved → {post['title']}, list: {titles()}")
        case Error(e):
            print(f"   failed: {e.message}")

    print("\n2. Optimistic update while the API is down (rolled back):")
    api.down = True
    await update_post.execute({"id": 2, "data": {"title": "Doomed"}}, mutation_mode=M.MutationMode.OPTIMISTIC)
    print(f"   right away: {titles()}")
    await update_post.settled()
    print(f"   after failure: {titles()}")
    api.down = False

    print("\n3. Undoable delete, then undo:")
    await delete_post.execute({"id": 2})
    print(f"   list: {titles()} (pending: {len(queue)})")
    await settle_head(is_undo=True)
    print(f"   list: {titles()}, server still has {sorted(api.tables['posts'])}")

    print("\n4. Undoable delete, then confirm:")
    await delete_post.execute({"id": 2})
    await settle_head(is_undo=False)
    print(f"   list: {titles()}, server has {sorted(api.tables['posts'])}")

    print("\nDone!")


if __name__ == "__main__":
    run(main)
