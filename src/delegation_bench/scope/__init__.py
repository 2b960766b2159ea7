"""Scope algebra over delegation permission scopes."""
from __future__ import annotations

from delegation_bench.scope.algebra import (
    can_delegate,
    intersect,
    is_subset,
    narrows,
    restrict,
)

__all__ = [
    "can_delegate",
    "intersect",
    "is_subset",
    "narrows",
    "restrict",
]
