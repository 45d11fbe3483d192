"""
tentative: remote writes with pessimistic, optimistic and undoable cache updates.

    from tentative import cache as C     # Query cache
    from tentative import mutation as M  # Mutation engine
    from tentative import records as R   # Record create/update/delete
    from tentative import undo as U      # Undoable mutation queue
"""

from tentative import cache
from tentative import snapshot
from tentative import undo
from tentative import mutation
from tentative import records
from tentative._types import (
    Lazy,
    QueryKey,
    Variables,
)

__version__ = "0.1.0"

__all__ = (
    "cache",
    "snapshot",
    "undo",
    "mutation",
    "records",
    "Lazy",
    "QueryKey",
    "Variables",
)
