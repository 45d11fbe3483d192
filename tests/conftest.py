from __future__ import annotations

from typing import Any

import pytest

from tentative import cache as C
from tentative import mutation as M
from tentative import undo as U
from tests.helpers import (
    COMMENTS_KEY,
    POST_KEY,
    POSTS_LIST_KEY,
    Callbacks,
    FakeClock,
    FakeProvider,
    FakeRemote,
    merge_post,
    post_keys,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> C.QueryCache[Any]:
    return C.QueryCache(clock=clock)


@pytest.fixture
def queue() -> U.UndoableQueue:
    return U.UndoableQueue()


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote(result={"id": 1, "title": "Server"})


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def seeded(cache: C.QueryCache[Any]) -> C.QueryCache[Any]:
    """Cache holding one post, a list page with it, and an unrelated resource."""
    cache.write(POST_KEY, lambda _: {"id": 1, "title": "Old"})
    cache.write(
        POSTS_LIST_KEY,
        lambda _: {"data": [{"id": 1, "title": "Old"}, {"id": 2, "title": "Other"}], "total": 2},
    )
    cache.write(COMMENTS_KEY, lambda _: {"data": [{"id": 7, "body": "hi"}], "total": 1})
    return cache


@pytest.fixture
def callbacks() -> Callbacks:
    return Callbacks()


@pytest.fixture
def update_post(remote: FakeRemote, callbacks: Callbacks) -> M.Mutation[Any]:
    """Unbuilt mutation renaming post 1, wired to the callback recorder."""
    return (
        M.mutation(remote, update_cache=merge_post, query_keys=post_keys)
        .params(id=1)
        .on_success(callbacks.on_success)
        .on_error(callbacks.on_error)
        .on_settled(callbacks.on_settled)
        .on_undo(callbacks.on_undo)
    )
