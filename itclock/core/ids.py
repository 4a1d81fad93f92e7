"""Identity trees: which share of the identity space a replica owns.

An identity is one of:

- ``Zero``: owns nothing below this point.
- ``One``: owns everything below this point.
- ``Fork(left, right)``: ownership is divided between the two halves.

Canonical form forbids ``Fork(Zero, Zero)`` (that is ``Zero``) and
``Fork(One, One)`` (that is ``One``), so structural equality coincides
with equality of the owned share.

Usage::

    from itclock.core.ids import ONE, split, sum_ids

    a, b = split(ONE)          # Fork(One, Zero), Fork(Zero, One)
    assert sum_ids(a, b) == ONE
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from itclock.core.path import LEFT, Path, iter_path
from itclock.errors import OverlappingOwnership

__all__ = [
    "ONE",
    "ZERO",
    "Fork",
    "Id",
    "One",
    "Zero",
    "depth",
    "is_disjoint",
    "is_normalized",
    "normalize",
    "owns",
    "split",
    "sum_ids",
]


@dataclass(frozen=True, slots=True)
class Zero:
    """Owns nothing."""

    def __repr__(self) -> str:
        return "Zero"


@dataclass(frozen=True, slots=True)
class One:
    """Owns the whole subtree."""

    def __repr__(self) -> str:
        return "One"


@dataclass(frozen=True, slots=True)
class Fork:
    """Ownership split between the left and right half-spaces.

    Attributes:
        left: Identity for the left half.
        right: Identity for the right half.
    """

    left: Id
    right: Id

    def __post_init__(self):
        if not isinstance(self.left, (Zero, One, Fork)):
            raise TypeError(f"Fork.left must be an Id, got {type(self.left).__name__}")
        if not isinstance(self.right, (Zero, One, Fork)):
            raise TypeError(f"Fork.right must be an Id, got {type(self.right).__name__}")

    def __repr__(self) -> str:
        return f"Fork({self.left!r}, {self.right!r})"


Id: TypeAlias = Zero | One | Fork

ZERO = Zero()
ONE = One()


def _fork(left: Id, right: Id) -> Id:
    """Build a Fork, collapsing it if both halves are equal leaves."""
    if isinstance(left, Zero) and isinstance(right, Zero):
        return ZERO
    if isinstance(left, One) and isinstance(right, One):
        return ONE
    return Fork(left, right)


def normalize(i: Id) -> Id:
    """Collapse degenerate forks bottom-up."""
    if isinstance(i, Fork):
        return _fork(normalize(i.left), normalize(i.right))
    return i


def is_normalized(i: Id) -> bool:
    """Return True if ``i`` is already in canonical form."""
    if not isinstance(i, Fork):
        return True
    if isinstance(i.left, Zero) and isinstance(i.right, Zero):
        return False
    if isinstance(i.left, One) and isinstance(i.right, One):
        return False
    return is_normalized(i.left) and is_normalized(i.right)


def split(i: Id) -> tuple[Id, Id]:
    """Split an identity into two disjoint identities that sum back to it.

    A fully owned subtree is halved. A fork owning only one side splits
    that side. A fork owning something on both sides hands each half to a
    different result, which keeps the tree from deepening.

    Args:
        i: The identity to split.

    Returns:
        A pair ``(a, b)`` with ``sum_ids(a, b) == i``.
    """
    if isinstance(i, Zero):
        return ZERO, ZERO
    if isinstance(i, One):
        return Fork(ONE, ZERO), Fork(ZERO, ONE)

    if isinstance(i.left, Zero):
        a, b = split(i.right)
        return _fork(ZERO, a), _fork(ZERO, b)
    if isinstance(i.right, Zero):
        a, b = split(i.left)
        return _fork(a, ZERO), _fork(b, ZERO)
    return _fork(i.left, ZERO), _fork(ZERO, i.right)


def sum_ids(a: Id, b: Id) -> Id:
    """Merge two disjoint identities into one.

    Args:
        a: First identity.
        b: Second identity, disjoint from ``a``.

    Returns:
        The normalized union of both shares.

    Raises:
        OverlappingOwnership: If ``a`` and ``b`` own a common position.
    """
    if isinstance(a, Zero):
        return b
    if isinstance(b, Zero):
        return a
    if isinstance(a, One) or isinstance(b, One):
        raise OverlappingOwnership(f"Cannot sum overlapping identities {a!r} and {b!r}")
    return _fork(sum_ids(a.left, b.left), sum_ids(a.right, b.right))


def is_disjoint(a: Id, b: Id) -> bool:
    """Return True if no position is owned by both ``a`` and ``b``."""
    if isinstance(a, Zero) or isinstance(b, Zero):
        return True
    if isinstance(a, One) or isinstance(b, One):
        return False
    return is_disjoint(a.left, b.left) and is_disjoint(a.right, b.right)


def owns(i: Id, path: Path) -> bool:
    """Return True if the position reached by ``path`` is owned by ``i``.

    A path that stops above a ``Fork`` addresses the whole subtree, which
    counts as owned only if the fork were ``One``; so such paths return
    False.
    """
    for step in iter_path(path):
        if not isinstance(i, Fork):
            break
        i = i.left if step == LEFT else i.right
    return isinstance(i, One)


def depth(i: Id) -> int:
    """Height of the identity tree (a leaf has depth 0)."""
    if isinstance(i, Fork):
        return 1 + max(depth(i.left), depth(i.right))
    return 0
