"""
Undoable mutation types.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

type UndoableMutation = Callable[[bool], Awaitable[None]]
"""
Deferred confirm-or-cancel action.

Called once with `is_undo`:
    await entry(False)  # run the pending write against the remote
    await entry(True)   # drop it and roll the cache back
"""


__all__ = ("UndoableMutation",)
