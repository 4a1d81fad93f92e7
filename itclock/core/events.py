"""Event trees: compact histories of event counts over the identity space.

An event tree is one of:

- ``Leaf(n)``: every position below has seen ``n`` events.
- ``Node(n, left, right)``: a position's count is ``n`` plus the count
  further down the matching branch.

Canonical form keeps each node's base as high as possible (at least one
child has minimum 0) and never keeps ``Node(n, Leaf(0), Leaf(0))``. All
operations here take canonical trees and return canonical trees.

Operations:

- **join**: pointwise maximum of two histories.
- **leq**: pointwise dominance, walked structurally.
- **fill**: raise counts at owned positions using knowledge already in
  the tree, shrinking it.
- **grow**: add a single event at the cheapest owned position.
- **event**: ``fill`` if that changes anything, otherwise ``grow``.

Reference:
    Almeida, Baquero, Fonte. "Interval Tree Clocks: A Logical Clock for
    Dynamic Systems" (OPODIS 2008)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from itclock.core.ids import Fork, Id, One, Zero
from itclock.core.path import LEFT, Path, iter_path
from itclock.errors import DisownedStamp, InvariantViolation

__all__ = [
    "Cost",
    "Event",
    "LEAF_ZERO",
    "Leaf",
    "Node",
    "collapse",
    "depth",
    "event",
    "fill",
    "grow",
    "is_normalized",
    "join",
    "leq",
    "lift",
    "max_value",
    "min_value",
    "normalize",
    "shift",
    "size",
    "value_at",
]


def _check_count(n: object) -> None:
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"Event counts must be integers, got {type(n).__name__}")
    if n < 0:
        raise ValueError(f"Event counts must be non-negative, got {n}")


@dataclass(frozen=True, slots=True)
class Leaf:
    """Constant count over a whole subtree.

    Attributes:
        n: Number of events seen at every position below.
    """

    n: int

    def __post_init__(self):
        _check_count(self.n)

    def __repr__(self) -> str:
        return f"Leaf({self.n})"


@dataclass(frozen=True, slots=True)
class Node:
    """Base count plus per-half refinements.

    Attributes:
        n: Count shared by every position below.
        left: Additional counts for the left half.
        right: Additional counts for the right half.
    """

    n: int
    left: Event
    right: Event

    def __post_init__(self):
        _check_count(self.n)
        if not isinstance(self.left, (Leaf, Node)):
            raise TypeError(f"Node.left must be an Event, got {type(self.left).__name__}")
        if not isinstance(self.right, (Leaf, Node)):
            raise TypeError(f"Node.right must be an Event, got {type(self.right).__name__}")

    def __repr__(self) -> str:
        return f"Node({self.n}, {self.left!r}, {self.right!r})"


Event: TypeAlias = Leaf | Node

LEAF_ZERO = Leaf(0)


# =============================================================================
# Shape helpers
# =============================================================================


def shift(e: Event, m: int) -> Event:
    """Add ``m`` (possibly negative) to every count in ``e``."""
    if isinstance(e, Leaf):
        return Leaf(e.n + m)
    return Node(e.n + m, e.left, e.right)


def min_value(e: Event) -> int:
    """Smallest count anywhere in ``e``."""
    if isinstance(e, Leaf):
        return e.n
    return e.n + min(min_value(e.left), min_value(e.right))


def max_value(e: Event) -> int:
    """Largest count anywhere in ``e``."""
    if isinstance(e, Leaf):
        return e.n
    return e.n + max(max_value(e.left), max_value(e.right))


def _sink(e: Event, m: int) -> Event:
    """Subtract ``m`` from every count in ``e``; requires ``m <= min_value(e)``.

    When the root base is smaller than ``m``, the remainder is taken from
    both children, so non-canonical subtrees never go negative.
    """
    if isinstance(e, Leaf):
        return Leaf(e.n - m)
    if e.n >= m:
        return Node(e.n - m, e.left, e.right)
    rest = m - e.n
    return Node(0, _sink(e.left, rest), _sink(e.right, rest))


def lift(e: Event) -> Event:
    """Move the common minimum of both children into the node's base.

    Afterwards at least one child has minimum 0. Works on any node; the
    children are not otherwise normalized.
    """
    if isinstance(e, Leaf):
        return e
    m = min(min_value(e.left), min_value(e.right))
    if m == 0:
        return e
    return Node(e.n + m, _sink(e.left, m), _sink(e.right, m))


def collapse(e: Event) -> Event:
    """Replace ``Node(n, Leaf(0), Leaf(0))`` with ``Leaf(n)``."""
    if isinstance(e, Node) and e.left == LEAF_ZERO and e.right == LEAF_ZERO:
        return Leaf(e.n)
    return e


def _node(n: int, left: Event, right: Event) -> Event:
    """Build a canonical node from canonical children."""
    return collapse(lift(Node(n, left, right)))


def normalize(e: Event) -> Event:
    """Bring any event tree into canonical form."""
    if isinstance(e, Leaf):
        return e
    return _node(e.n, normalize(e.left), normalize(e.right))


def is_normalized(e: Event) -> bool:
    """Return True if ``e`` is already in canonical form."""
    if isinstance(e, Leaf):
        return True
    if e.left == LEAF_ZERO and e.right == LEAF_ZERO:
        return False
    if not (is_normalized(e.left) and is_normalized(e.right)):
        return False
    return min(e.left.n, e.right.n) == 0


def depth(e: Event) -> int:
    """Height of the event tree (a leaf has depth 0)."""
    if isinstance(e, Node):
        return 1 + max(depth(e.left), depth(e.right))
    return 0


def size(e: Event) -> int:
    """Number of leaves and nodes in the tree."""
    if isinstance(e, Node):
        return 1 + size(e.left) + size(e.right)
    return 1


def value_at(e: Event, path: Path) -> int:
    """Count recorded at the position reached by ``path``.

    A leaf stands for an infinitely deep subtree of constant count, so a
    path may run past the tree's depth. If the path stops above a leaf,
    the smallest count of the remaining subtree is returned.

    Args:
        e: Event tree to read.
        path: Branch choices from the root, ``LEFT`` (0) or ``RIGHT`` (1).
    """
    total = 0
    for step in iter_path(path):
        if isinstance(e, Leaf):
            break
        total += e.n
        e = e.left if step == LEFT else e.right
    return total + min_value(e)


# =============================================================================
# Join and comparison
# =============================================================================


def _as_node(e: Event) -> Node:
    if isinstance(e, Leaf):
        return Node(e.n, LEAF_ZERO, LEAF_ZERO)
    return e


def join(a: Event, b: Event) -> Event:
    """Pointwise maximum of two event trees.

    Returns:
        The canonical tree whose count at every position is the larger of
        the counts in ``a`` and ``b``.
    """
    if isinstance(a, Leaf) and isinstance(b, Leaf):
        return Leaf(max(a.n, b.n))
    a, b = _as_node(a), _as_node(b)
    if a.n > b.n:
        a, b = b, a
    d = b.n - a.n
    return _node(
        a.n,
        join(a.left, shift(b.left, d)),
        join(a.right, shift(b.right, d)),
    )


def _leq(a: Event, a_base: int, b: Event, b_base: int) -> bool:
    # a_base and b_base are the counts accumulated above a and b.
    if isinstance(a, Leaf):
        return a_base + a.n <= b_base + min_value(b)
    a_base += a.n
    if isinstance(b, Leaf):
        return a_base + max(max_value(a.left), max_value(a.right)) <= b_base + b.n
    b_base += b.n
    return _leq(a.left, a_base, b.left, b_base) and _leq(a.right, a_base, b.right, b_base)


def leq(a: Event, b: Event) -> bool:
    """Return True if ``a`` is pointwise less than or equal to ``b``."""
    return _leq(a, 0, b, 0)


# =============================================================================
# Recording events
# =============================================================================


def fill(i: Id, e: Event) -> Event:
    """Raise counts at positions owned by ``i`` without inventing history.

    A fully owned subtree is flattened to its maximum. A fork that owns one
    half entirely raises that half to the larger of its own maximum and the
    minimum of the other half, which is the most it can claim without a
    new event. Unowned subtrees are returned unchanged.

    Args:
        i: Identity whose positions may be raised.
        e: Event tree to compact.

    Returns:
        A canonical tree that dominates ``e``; often smaller.
    """
    if isinstance(i, Zero):
        return e
    if isinstance(i, One):
        return Leaf(max_value(e))
    if isinstance(e, Leaf):
        return e

    if isinstance(i.left, One):
        right = fill(i.right, e.right)
        left = Leaf(max(max_value(e.left), min_value(right)))
        return _node(e.n, left, right)
    if isinstance(i.right, One):
        left = fill(i.left, e.left)
        right = Leaf(max(max_value(e.right), min_value(left)))
        return _node(e.n, left, right)
    return _node(e.n, fill(i.left, e.left), fill(i.right, e.right))


@dataclass(frozen=True, order=True, slots=True)
class Cost:
    """Price of growing an event tree at a given position.

    Ordered by number of leaves that must be expanded into nodes first,
    then by how deep the chosen position sits.

    Attributes:
        expansions: Leaves turned into nodes to reach the position.
        depth: Nodes descended since the last expansion.
    """

    expansions: int = 0
    depth: int = 0

    def descend(self) -> Cost:
        return Cost(self.expansions, self.depth + 1)

    def expand(self) -> Cost:
        return Cost(self.expansions + 1, 0)


def grow(i: Id, e: Event) -> tuple[Event, Cost]:
    """Add one event at the cheapest position owned by ``i``.

    Incrementing an owned leaf is free. Reaching an owned position below a
    leaf requires expanding that leaf into a node, which is the expensive
    case. When both halves cost the same, the left half is grown.

    Args:
        i: Identity that owns at least one position of ``e``.
        e: Event tree to grow.

    Returns:
        The grown canonical tree and the cost of the chosen position.

    Raises:
        InvariantViolation: If ``i`` owns nothing reachable in ``e``.
    """
    if isinstance(e, Leaf):
        if isinstance(i, One):
            return Leaf(e.n + 1), Cost()
        if isinstance(i, Fork):
            grown, cost = grow(i, Node(e.n, LEAF_ZERO, LEAF_ZERO))
            return grown, cost.expand()
        raise InvariantViolation("grow reached a position owned by no one")

    if not isinstance(i, Fork):
        raise InvariantViolation(f"grow cannot place an event for {i!r} over a node")

    if isinstance(i.left, Zero):
        right, cost = grow(i.right, e.right)
        return _node(e.n, e.left, right), cost.descend()
    if isinstance(i.right, Zero):
        left, cost = grow(i.left, e.left)
        return _node(e.n, left, e.right), cost.descend()

    left, left_cost = grow(i.left, e.left)
    right, right_cost = grow(i.right, e.right)
    if left_cost <= right_cost:
        return _node(e.n, left, e.right), left_cost.descend()
    return _node(e.n, e.left, right), right_cost.descend()


def event(i: Id, e: Event) -> Event:
    """Record one new local event for identity ``i``.

    Tries ``fill`` first; if filling changes nothing, falls back to
    ``grow``. Either way the result strictly dominates ``e``.

    Raises:
        DisownedStamp: If ``i`` is ``Zero``.
    """
    if isinstance(i, Zero):
        raise DisownedStamp("Cannot record an event without owning any identity")
    filled = fill(i, e)
    if filled != e:
        return filled
    grown, _ = grow(i, e)
    return grown
