"""
Undo: queue of mutations waiting for confirm or cancel.

    from tentative import undo as U

    queue = U.UndoableQueue()
    executor = update.build(cache=cache, queue=queue)
"""

from __future__ import annotations

from tentative.undo._types import UndoableMutation
from tentative.undo._queue import UndoableQueue

__all__ = (
    "UndoableMutation",
    "UndoableQueue",
)
