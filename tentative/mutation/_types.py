"""
Mutation types: modes, contexts, callbacks and errors.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum, StrEnum, auto
from typing import Any

from tentative._types import QueryKey, Variables
from tentative.cache import CacheAdapter
from tentative.snapshot import Snapshot

# ═══════════════════════════════════════════════════════════════════════════════
# Mutation Mode
# ═══════════════════════════════════════════════════════════════════════════════


class MutationMode(StrEnum):
    """
    Ordering of cache write vs. remote call.

    PESSIMISTIC: call remote, write the real payload on success.
    OPTIMISTIC:  write a guess now, call remote, roll back on failure.
    UNDOABLE:    write a guess now, park the remote call until confirmed.
    """

    PESSIMISTIC = "pessimistic"
    OPTIMISTIC = "optimistic"
    UNDOABLE = "undoable"


@dataclass(frozen=True, slots=True)
class ModeContext:
    """Passed to update_cache, query_keys and on_undo."""
    mutation_mode: MutationMode
    cache: CacheAdapter


# ═══════════════════════════════════════════════════════════════════════════════
# Remote Result
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class RemoteResult[T]:
    """Payload returned by a remote executor."""
    data: T
    meta: Mapping[str, Any] | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class MissingParameterError(ValueError):
    """A required mutation parameter (resource, id, ids, data) is missing."""


class InvalidResponseError(ValueError):
    """A remote response lacks a field the cache update depends on."""


class AbortError(Exception):
    """Raised by a remote executor whose request was aborted."""


class MutationErrorKind(Enum):
    """Mutation error kinds."""
    PROGRAMMER = auto()
    REMOTE = auto()
    ABORTED = auto()
    CACHE = auto()


@dataclass(frozen=True, slots=True)
class MutationError:
    """Mutation failure delivered to error callbacks and returned results."""
    kind: MutationErrorKind
    message: str
    cause: Exception | None = None


def classify(exc: Exception) -> MutationError:
    """Map an exception raised by a remote call to a MutationError."""
    match exc:
        case MissingParameterError():
            kind = MutationErrorKind.PROGRAMMER
        case AbortError():
            kind = MutationErrorKind.ABORTED
        case _:
            kind = MutationErrorKind.REMOTE
    return MutationError(kind=kind, message=str(exc), cause=exc)


# ═══════════════════════════════════════════════════════════════════════════════
# Callback Contexts
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class MutateContext:
    """Per-call context: the snapshot taken before the mutation."""
    snapshot: Snapshot


@dataclass(frozen=True, slots=True)
class EngineContext:
    """Executor-level context handed to success and error callbacks."""
    cache: CacheAdapter
    mutation_key: QueryKey | None
    meta: Mapping[str, Any] | None


# ═══════════════════════════════════════════════════════════════════════════════
# Mutation State
# ═══════════════════════════════════════════════════════════════════════════════


class MutationStatus(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(slots=True)
class MutationState[T]:
    """Status of the most recent remote call of an executor."""

    status: MutationStatus = MutationStatus.IDLE
    data: T | None = None
    error: MutationError | None = None
    variables: Variables | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is MutationStatus.PENDING


# ═══════════════════════════════════════════════════════════════════════════════
# Function Types
# ═══════════════════════════════════════════════════════════════════════════════

type MutationFn[T] = Callable[[Variables], Awaitable[RemoteResult[T]]]
"""Remote write. Raises on failure."""

type Middleware[T] = Callable[[MutationFn[T]], MutationFn[T]]
"""Wraps a remote write (auth headers, audit, payload transforms...)."""

type UpdateCache[T] = Callable[[Variables, ModeContext, T | None], T | None]
"""Reflect the write into the cache. Receives None in optimistic modes."""

type GetQueryKeys = Callable[[Variables, ModeContext], Sequence[QueryKey]]
"""Cache entries affected by the write."""

type OnUndo = Callable[[Variables, ModeContext], None]

type OnSuccess[T] = Callable[[T | None, Variables, MutateContext, EngineContext], None]

type OnError = Callable[[MutationError, Variables, MutateContext, EngineContext], None]

type OnSettled[T] = Callable[[T | None, MutationError | None, Variables, MutateContext], None]


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "MutationMode",
    "ModeContext",
    "RemoteResult",
    "MissingParameterError",
    "InvalidResponseError",
    "AbortError",
    "MutationErrorKind",
    "MutationError",
    "classify",
    "MutateContext",
    "EngineContext",
    "MutationStatus",
    "MutationState",
    "MutationFn",
    "Middleware",
    "UpdateCache",
    "GetQueryKeys",
    "OnUndo",
    "OnSuccess",
    "OnError",
    "OnSettled",
)
