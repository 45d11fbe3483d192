"""
Core types for tentative.

Re-exports from kungfu + cache key and variable aliases.
"""

from __future__ import annotations

from typing import Any
from collections.abc import Mapping

# Re-export from kungfu
from kungfu import Result, Ok, Error, Option, Some, Nothing, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

# ═══════════════════════════════════════════════════════════════════════════════
# Cache Addressing
# ═══════════════════════════════════════════════════════════════════════════════

type QueryKey = tuple[Any, ...]
"""
Structured identifier of one cache entry.

Elements are scalars or mappings:
    ("posts", "getOne", {"id": "1", "meta": None})
"""

type Variables = Mapping[str, Any]
"""Read-only parameters of one mutation call."""

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "Option",
    "Some",
    "Nothing",
    "LazyCoroResult",
    # Aliases
    "Lazy",
    "QueryKey",
    "Variables",
)
