from __future__ import annotations

from datetime import timedelta
from typing import Any

import pytest
from kungfu import Error, Nothing, Ok, Some

from tentative import cache as C
from tentative import mutation as M
from tentative import records as R
from tentative import undo as U
from tests.helpers import (
    COMMENTS_KEY,
    POST_KEY,
    POSTS_LIST_KEY,
    Callbacks,
    FakeClock,
    FakeProvider,
    value_of,
)

INFINITE_KEY = ("posts", "getInfiniteList", {"perPage": 2})
MANY_KEY = ("posts", "getMany", {"ids": [1, 2]})


@pytest.fixture
def grace(clock: FakeClock) -> R.FreshnessPolicy:
    return R.freshness(seconds=5, clock=clock)


def take(queue: U.UndoableQueue) -> U.UndoableMutation:
    match queue.take():
        case Some(entry):
            return entry
    raise AssertionError("queue is empty")


class TestUpdate:
    """Tests for records.update()."""

    @pytest.mark.asyncio
    async def test_optimistic_merge_into_record_and_lists(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue, grace: R.FreshnessPolicy
    ) -> None:
        callbacks = Callbacks()
        executor = (
            R.update(provider, "posts", freshness=grace)
            .mode(M.MutationMode.OPTIMISTIC)
            .on_success(callbacks.on_success)
            .build(cache=seeded, queue=queue)
        )

        await executor.execute({"id": 1, "data": {"title": "New"}})

        assert value_of(seeded, POST_KEY) == {"id": 1, "title": "New"}
        assert value_of(seeded, POSTS_LIST_KEY)["data"] == [
            {"id": 1, "title": "New"},
            {"id": 2, "title": "Other"},
        ]
        assert value_of(seeded, COMMENTS_KEY)["data"] == [{"id": 7, "body": "hi"}]

        await executor.settled()
        assert provider.calls == [("update", "posts", {"id": 1, "data": {"title": "New"}})]
        assert callbacks.successes == [{"id": 1, "title": "New"}]
        assert executor.engine_context.mutation_key == ("posts", "update")

    @pytest.mark.asyncio
    async def test_pessimistic_uses_server_payload(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        provider.results["update"] = {"id": 1, "title": "Server", "views": 3}
        executor = R.update(provider, "posts").return_promise().build(cache=seeded, queue=queue)

        result = await executor.execute({"id": 1, "data": {"title": "New"}})

        assert isinstance(result, Ok)
        assert value_of(seeded, POST_KEY) == {"id": 1, "title": "Server", "views": 3}

    @pytest.mark.asyncio
    async def test_undoable_write_is_dated_into_the_future(
        self,
        provider: FakeProvider,
        seeded: C.QueryCache[Any],
        queue: U.UndoableQueue,
        clock: FakeClock,
        grace: R.FreshnessPolicy,
    ) -> None:
        executor = R.update(provider, "posts", freshness=grace).mode(M.MutationMode.UNDOABLE).build(
            cache=seeded, queue=queue
        )

        await executor.execute({"id": 1, "data": {"title": "New"}})

        assert seeded.entry(POST_KEY).updated_at == clock() + 5
        assert seeded.entry(POSTS_LIST_KEY).updated_at == clock() + 5

        await take(queue)(True)
        assert value_of(seeded, POST_KEY)["title"] == "Old"
        assert provider.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "variables, missing",
        [
            ({"data": {"title": "New"}}, "id"),
            ({"id": 1}, "data"),
        ],
    )
    async def test_missing_parameters(
        self,
        provider: FakeProvider,
        cache: C.QueryCache[Any],
        queue: U.UndoableQueue,
        variables: dict[str, Any],
        missing: str,
    ) -> None:
        executor = R.update(provider, "posts").return_promise().build(cache=cache, queue=queue)

        match await executor.execute(variables):
            case Error(error):
                assert error.kind is M.MutationErrorKind.PROGRAMMER
                assert missing in error.message
            case _:
                pytest.fail("expected a programmer error")
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_empty_data_is_accepted(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        """Only a missing data object is rejected; an empty one goes through."""
        provider.results["update"] = {"id": 1, "title": "Old"}
        executor = R.update(provider, "posts").return_promise().build(cache=seeded, queue=queue)

        result = await executor.execute({"id": 1, "data": {}})

        assert isinstance(result, Ok)
        assert provider.calls == [("update", "posts", {"id": 1, "data": {}})]

    @pytest.mark.asyncio
    async def test_resource_can_come_from_the_call(
        self, provider: FakeProvider, cache: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        executor = R.update(provider).return_promise().build(cache=cache, queue=queue)

        match await executor.execute({"id": 1, "data": {"title": "x"}}):
            case Error(error):
                assert "resource" in error.message
            case _:
                pytest.fail("expected a programmer error")

        await executor.execute({"resource": "comments", "id": 7, "data": {"body": "edited"}})
        assert provider.calls == [("update", "comments", {"id": 7, "data": {"body": "edited"}})]
        assert executor.engine_context.mutation_key == ("update",)


class TestUpdateMany:
    """Tests for records.update_many()."""

    @pytest.mark.asyncio
    async def test_every_record_is_merged(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        provider.results["update_many"] = [1, 2]
        executor = R.update_many(provider, "posts").return_promise().build(cache=seeded, queue=queue)

        match await executor.execute({"ids": [1, 2], "data": {"published": True}}):
            case Ok(ids):
                assert ids == [1, 2]
            case other:
                pytest.fail(f"expected Ok, got {other!r}")

        assert all(r["published"] for r in value_of(seeded, POSTS_LIST_KEY)["data"])
        assert value_of(seeded, R.one_key("posts", 2)) == {"published": True}

    @pytest.mark.asyncio
    async def test_undo_removes_entries_that_did_not_exist(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        executor = R.update_many(provider, "posts").mode(M.MutationMode.UNDOABLE).build(cache=seeded, queue=queue)

        await executor.execute({"ids": [1, 2], "data": {"published": True}})
        await take(queue)(True)

        assert isinstance(seeded.read(R.one_key("posts", 2)), Nothing)
        assert value_of(seeded, POST_KEY) == {"id": 1, "title": "Old"}


class TestDelete:
    """Tests for records.delete() and delete_many()."""

    @pytest.mark.asyncio
    async def test_undoable_delete_shrinks_lists_and_undoes(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        seeded.write(INFINITE_KEY, lambda _: {"pages": [{"data": [{"id": 1}, {"id": 2}], "total": 2}]})
        seeded.write(MANY_KEY, lambda _: [{"id": 1}, {"id": 2}])
        executor = R.delete(provider, "posts").mode(M.MutationMode.UNDOABLE).build(cache=seeded, queue=queue)

        await executor.execute({"id": 1, "previous_data": {"id": 1, "title": "Old"}})

        assert value_of(seeded, POSTS_LIST_KEY) == {"data": [{"id": 2, "title": "Other"}], "total": 1}
        assert value_of(seeded, INFINITE_KEY) == {"pages": [{"data": [{"id": 2}], "total": 1}]}
        assert value_of(seeded, MANY_KEY) == [{"id": 2}]

        await take(queue)(True)

        assert value_of(seeded, POSTS_LIST_KEY)["total"] == 2
        assert value_of(seeded, MANY_KEY) == [{"id": 1}, {"id": 2}]
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_confirmed_delete_calls_provider(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        executor = R.delete(provider, "posts").mode(M.MutationMode.UNDOABLE).build(cache=seeded, queue=queue)
        await executor.execute({"id": 1})

        await take(queue)(False)

        assert provider.calls == [("delete", "posts", {"id": 1})]
        assert seeded.entry(POSTS_LIST_KEY).invalidated

    @pytest.mark.asyncio
    async def test_optimistic_result_is_previous_data(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        callbacks = Callbacks()
        executor = (
            R.delete(provider, "posts")
            .mode(M.MutationMode.OPTIMISTIC)
            .on_success(callbacks.on_success)
            .build(cache=seeded, queue=queue)
        )

        await executor.execute({"id": 2, "previous_data": {"id": 2, "title": "Other"}})
        await executor.settled()

        assert callbacks.successes == [{"id": 2, "title": "Other"}]

    @pytest.mark.asyncio
    async def test_pessimistic_delete_invalidates_lists(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        """A shrunk list is refetched even when the write was pessimistic."""
        executor = R.delete(provider, "posts").return_promise().build(cache=seeded, queue=queue)

        await executor.execute({"id": 1, "previous_data": {"id": 1, "title": "Old"}})

        assert value_of(seeded, POSTS_LIST_KEY)["total"] == 1
        assert seeded.entry(POSTS_LIST_KEY).invalidated
        assert not seeded.entry(POST_KEY).invalidated
        assert not seeded.entry(COMMENTS_KEY).invalidated

    @pytest.mark.asyncio
    async def test_failed_pessimistic_delete_many_still_invalidates(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        provider.fail = RuntimeError("gone")
        executor = R.delete_many(provider, "posts").return_promise().build(cache=seeded, queue=queue)

        result = await executor.execute({"ids": [1, 2]})

        assert isinstance(result, Error)
        assert value_of(seeded, POSTS_LIST_KEY)["total"] == 2
        assert seeded.entry(POSTS_LIST_KEY).invalidated

    @pytest.mark.asyncio
    async def test_delete_many_pessimistic(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        provider.results["delete_many"] = [1, 2]
        executor = R.delete_many(provider, "posts").return_promise().build(cache=seeded, queue=queue)

        result = await executor.execute({"ids": [1, 2]})

        assert isinstance(result, Ok)
        assert value_of(seeded, POSTS_LIST_KEY) == {"data": [], "total": 0}
        assert value_of(seeded, COMMENTS_KEY)["total"] == 1

    @pytest.mark.asyncio
    async def test_delete_many_requires_ids(
        self, provider: FakeProvider, cache: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        executor = R.delete_many(provider, "posts").return_promise().build(cache=cache, queue=queue)

        match await executor.execute({}):
            case Error(error):
                assert error.kind is M.MutationErrorKind.PROGRAMMER
            case _:
                pytest.fail("expected a programmer error")


class TestCreate:
    """Tests for records.create()."""

    @pytest.mark.asyncio
    async def test_pessimistic_stores_under_returned_id(
        self, provider: FakeProvider, cache: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        provider.results["create"] = {"id": 3, "title": "Fresh"}
        executor = R.create(provider, "posts").return_promise().build(cache=cache, queue=queue)

        await executor.execute({"data": {"title": "Fresh"}})

        assert value_of(cache, R.one_key("posts", 3)) == {"id": 3, "title": "Fresh"}
        assert provider.calls == [("create", "posts", {"data": {"title": "Fresh"}})]

    @pytest.mark.asyncio
    async def test_missing_id_in_response_is_cache_error(
        self, provider: FakeProvider, cache: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        provider.results["create"] = {"title": "no id"}
        executor = R.create(provider, "posts").return_promise().build(cache=cache, queue=queue)

        match await executor.execute({"data": {"title": "no id"}}):
            case Error(error):
                assert error.kind is M.MutationErrorKind.CACHE
                assert isinstance(error.cause, M.InvalidResponseError)
            case _:
                pytest.fail("expected an error")

    @pytest.mark.asyncio
    async def test_optimistic_create_needs_client_id(
        self, provider: FakeProvider, seeded: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        executor = R.create(provider, "posts").mode(M.MutationMode.OPTIMISTIC).build(cache=seeded, queue=queue)

        with pytest.raises(M.InvalidResponseError):
            await executor.execute({"data": {"title": "Guess"}})

        assert provider.calls == []
        assert value_of(seeded, POSTS_LIST_KEY)["total"] == 2

    @pytest.mark.asyncio
    async def test_undone_create_removes_the_record(
        self, provider: FakeProvider, cache: C.QueryCache[Any], queue: U.UndoableQueue
    ) -> None:
        key = R.one_key("posts", 9)
        executor = R.create(provider, "posts").mode(M.MutationMode.UNDOABLE).build(cache=cache, queue=queue)

        await executor.execute({"data": {"id": 9, "title": "Draft"}})
        assert value_of(cache, key) == {"id": 9, "title": "Draft"}

        await take(queue)(True)
        assert isinstance(cache.read(key), Nothing)


class TestFreshness:
    """Tests for freshness()."""

    def test_requires_a_window(self) -> None:
        with pytest.raises(ValueError, match="seconds or duration"):
            R.freshness()

    def test_rejects_negative_window(self) -> None:
        with pytest.raises(ValueError):
            R.freshness(duration=timedelta(seconds=-1))

    def test_only_undoable_writes_are_postdated(self, clock: FakeClock) -> None:
        policy = R.freshness(duration=timedelta(minutes=1), clock=clock)

        assert policy.updated_at(M.MutationMode.UNDOABLE) == clock() + 60
        assert policy.updated_at(M.MutationMode.OPTIMISTIC) == clock()
        assert policy.updated_at(M.MutationMode.PESSIMISTIC) == clock()
