"""
Undoable mutation queue.
"""

from __future__ import annotations

import logging
from collections import deque

from kungfu import Option, Some, Nothing

from tentative.undo._types import UndoableMutation

logger = logging.getLogger(__name__)


class UndoableQueue:
    """
    FIFO of pending undoable mutations.

    The queue only stores entries. Whoever takes an entry owns it and must
    call it exactly once, with `is_undo=True` to cancel or `False` to confirm.

    Example:
        queue = UndoableQueue()
        queue.add(entry)

        match queue.take():
            case Some(pending):
                await pending(user_clicked_undo)
            case Nothing():
                pass
    """

    def __init__(self) -> None:
        self._entries: deque[UndoableMutation] = deque()

    def add(self, entry: UndoableMutation) -> None:
        """Append to tail."""
        self._entries.append(entry)
        logger.debug("undoable mutation queued (%d pending)", len(self._entries))

    def take(self) -> Option[UndoableMutation]:
        """Remove and return head. Nothing() when empty."""
        if not self._entries:
            return Nothing()
        entry = self._entries.popleft()
        logger.debug("undoable mutation taken (%d pending)", len(self._entries))
        return Some(entry)

    def peek(self) -> Option[UndoableMutation]:
        """Head without removing it."""
        if not self._entries:
            return Nothing()
        return Some(self._entries[0])

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


__all__ = ("UndoableQueue",)
