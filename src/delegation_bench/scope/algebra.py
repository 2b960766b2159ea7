"""Scope algebra: narrowing, intersection and containment.

A delegated scope can only be equal to or narrower than the scope of the
credential it descends from.  This enforces the **subset rule** -- no
privilege escalation through delegation -- in three dimensions:

* **permissions** -- the child's atoms are a subset of the parent's;
* **depth** -- each hop consumes at least one unit of the depth budget;
* **expiry** -- the child cannot outlive the parent.

All functions are pure and total over well-formed :class:`Scope` values.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from delegation_bench.core.errors import ScopeViolation
from delegation_bench.core.types import Scope


def _expiry_within(parent: datetime | None, child: datetime | None) -> bool:
    # An unbounded parent accepts any child; a bounded parent rejects an
    # unbounded child.
    if parent is None:
        return True
    if child is None:
        return False
    return child <= parent


def _earliest(a: datetime | None, b: datetime | None) -> datetime | None:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def is_subset(a: Scope, b: Scope) -> bool:
    """Return ``True`` if *a* grants nothing that *b* does not.

    Unlike :func:`narrows`, the depth budget may be equal.
    """
    return (
        a.permissions <= b.permissions
        and a.max_depth <= b.max_depth
        and _expiry_within(b.expires_at, a.expires_at)
    )


def narrows(parent: Scope, child: Scope) -> bool:
    """Check that *child* is a valid delegation of *parent*.

    Parameters
    ----------
    parent:
        Scope of the delegating credential.
    child:
        Proposed scope of the delegated credential.

    Returns
    -------
    bool
        ``True`` if the child's permissions are a subset of the parent's,
        its depth budget is strictly smaller, and it expires no later.
    """
    return (
        child.permissions <= parent.permissions
        and child.max_depth <= parent.max_depth - 1
        and _expiry_within(parent.expires_at, child.expires_at)
    )


def intersect(a: Scope, b: Scope) -> Scope:
    """Return the greatest scope contained in both *a* and *b*.

    The result may have an empty permission set; it is never issued as
    such because issuance rejects empty scopes.
    """
    return Scope(
        permissions=a.permissions & b.permissions,
        max_depth=min(a.max_depth, b.max_depth),
        expires_at=_earliest(a.expires_at, b.expires_at),
    )


def can_delegate(scope: Scope) -> bool:
    """Return ``True`` while the holder may still issue a child credential.

    A credential with ``max_depth == 1`` may only be the leaf of a chain.
    """
    return scope.max_depth > 1


def restrict(scope: Scope, permissions: Iterable[str]) -> Scope:
    """Retain only *permissions* of *scope* (selective disclosure).

    Raises
    ------
    ScopeViolation
        If *permissions* is empty or not a subset of the scope.
    """
    retained = frozenset(permissions)
    if not retained:
        raise ScopeViolation("The permissions array is empty")
    if not retained <= scope.permissions:
        raise ScopeViolation(
            "Cannot disclose permissions outside the granted scope",
            details={"extra": sorted(retained - scope.permissions)},
        )
    return scope.model_copy(update={"permissions": retained})
