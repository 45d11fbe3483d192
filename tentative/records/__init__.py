"""
Records: ready-made mutations for create/update/delete of remote records.

    from tentative import records as R

    update_post = R.update(provider, "posts").build(cache=cache, queue=queue)
    delete_posts = R.delete_many(provider, "posts").mode(M.MutationMode.UNDOABLE).build(
        cache=cache, queue=queue
    )
"""

from __future__ import annotations

from tentative.records._types import (
    Record,
    DataProvider,
    FreshnessPolicy,
    freshness,
    DEFAULT_FRESHNESS,
)
from tentative.records._collections import one_key, collection_keys
from tentative.records._create import create
from tentative.records._update import update, update_many
from tentative.records._delete import delete, delete_many

__all__ = (
    "Record",
    "DataProvider",
    "FreshnessPolicy",
    "freshness",
    "DEFAULT_FRESHNESS",
    "one_key",
    "collection_keys",
    "create",
    "update",
    "update_many",
    "delete",
    "delete_many",
)
