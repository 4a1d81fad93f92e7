"""Stamps: the identity and event tree held by a single replica.

A stamp pairs an identity (which events this replica may generate) with
an event tree (which events it knows about). The lifecycle is:

- **seed**: the first replica owns everything and has seen nothing.
- **fork**: split a stamp's identity for a newly spawned replica.
- **event**: record a local event.
- **peek**: copy knowledge without identity, for sending to others.
- **join**: merge two stamps (retirement, or receiving a peeked stamp).
- **compare**: decide whether two histories are ordered or concurrent.

``fork``, ``event`` and ``join`` consume their inputs: the stamps passed
in must not be used again, because two live stamps sharing an identity
would generate indistinguishable events. ``peek`` leaves its input usable.

Usage::

    from itclock import seed, fork, event, compare, Ordering

    a, b = fork(seed())
    a = event(a)
    assert compare(a, b) is Ordering.AFTER
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from itclock.core import events, ids
from itclock.core.events import Event, Leaf, Node
from itclock.core.ids import Fork, Id, One, Zero
from itclock.errors import DisownedStamp, OverlappingOwnership

logger = logging.getLogger(__name__)

__all__ = [
    "Ordering",
    "Stamp",
    "compare",
    "event",
    "fork",
    "join",
    "peek",
    "receive",
    "seed",
    "send",
    "sync",
]


class Ordering(Enum):
    """Causal relation between two histories."""

    EQUAL = "equal"
    BEFORE = "before"
    AFTER = "after"
    CONCURRENT = "concurrent"


@dataclass(frozen=True, slots=True)
class Stamp:
    """Identity and causal history of one replica.

    Both trees are brought into canonical form on construction, so equal
    histories always compare equal.

    Attributes:
        id: Share of the identity space this replica may generate events for.
        event: Event counts this replica knows about.
    """

    id: Id
    event: Event

    def __post_init__(self):
        if not isinstance(self.id, (Zero, One, Fork)):
            raise TypeError(f"Stamp.id must be an Id, got {type(self.id).__name__}")
        if not isinstance(self.event, (Leaf, Node)):
            raise TypeError(f"Stamp.event must be an Event, got {type(self.event).__name__}")
        if not ids.is_normalized(self.id):
            object.__setattr__(self, "id", ids.normalize(self.id))
        if not events.is_normalized(self.event):
            object.__setattr__(self, "event", events.normalize(self.event))

    @property
    def is_disowned(self) -> bool:
        """True if this stamp carries knowledge only and cannot record events."""
        return isinstance(self.id, Zero)

    def fork(self) -> tuple[Stamp, Stamp]:
        """See ``fork()``."""
        return fork(self)

    def tick(self) -> Stamp:
        """Record a local event. See ``event()``."""
        return event(self)

    def peek(self) -> Stamp:
        """See ``peek()``."""
        return peek(self)

    def join(self, other: Stamp) -> Stamp:
        """See ``join()``."""
        return join(self, other)

    def compare(self, other: Stamp) -> Ordering:
        """See ``compare()``."""
        return compare(self, other)

    def leq(self, other: Stamp) -> bool:
        """True if everything this stamp has seen, ``other`` has seen too."""
        return events.leq(self.event, other.event)

    def happened_before(self, other: Stamp) -> bool:
        """True if this history strictly precedes ``other``'s."""
        return compare(self, other) is Ordering.BEFORE

    def is_concurrent(self, other: Stamp) -> bool:
        """True if neither history precedes the other."""
        return compare(self, other) is Ordering.CONCURRENT

    def to_bytes(self) -> bytes:
        """Encode in the canonical binary form."""
        from itclock.codec import encode_stamp

        return encode_stamp(self)

    @classmethod
    def from_bytes(cls, data: bytes) -> Stamp:
        """Decode from the canonical binary form.

        Raises:
            InvalidEncoding: If ``data`` is malformed or non-canonical.
        """
        from itclock.codec import decode_stamp

        return decode_stamp(data)

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dict."""
        from itclock.codec import stamp_to_dict

        return stamp_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Stamp:
        """Deserialize from a dict produced by ``to_dict()``.

        Raises:
            InvalidEncoding: If ``data`` is malformed or non-canonical.
        """
        from itclock.codec import stamp_from_dict

        return stamp_from_dict(data)

    def __str__(self) -> str:
        from itclock.codec import format_stamp

        return format_stamp(self)


def seed() -> Stamp:
    """Create the first stamp of a system: owns everything, has seen nothing."""
    return Stamp(ids.ONE, events.LEAF_ZERO)


def fork(stamp: Stamp) -> tuple[Stamp, Stamp]:
    """Split a stamp into two with disjoint identities and the same history.

    Consumes ``stamp``.
    """
    left, right = ids.split(stamp.id)
    logger.debug("fork %r -> %r | %r", stamp.id, left, right)
    return Stamp(left, stamp.event), Stamp(right, stamp.event)


def event(stamp: Stamp) -> Stamp:
    """Record a new local event.

    Consumes ``stamp``.

    Raises:
        DisownedStamp: If ``stamp`` owns no identity.
    """
    if stamp.is_disowned:
        logger.warning("Refusing to record an event on a disowned stamp")
        raise DisownedStamp("Cannot record an event on a stamp with identity Zero")
    recorded = events.event(stamp.id, stamp.event)
    logger.debug(
        "event %r: size %d -> %d",
        stamp.id,
        events.size(stamp.event),
        events.size(recorded),
    )
    return Stamp(stamp.id, recorded)


def peek(stamp: Stamp) -> Stamp:
    """Copy a stamp's knowledge without any identity. Does not consume."""
    return Stamp(ids.ZERO, stamp.event)


def join(a: Stamp, b: Stamp) -> Stamp:
    """Merge two stamps: sum of identities, pointwise max of histories.

    Consumes both ``a`` and ``b``.

    Raises:
        OverlappingOwnership: If ``a`` and ``b`` own a common position.
    """
    try:
        merged_id = ids.sum_ids(a.id, b.id)
    except OverlappingOwnership:
        logger.warning("Joining stamps with overlapping identities %r and %r", a.id, b.id)
        raise
    return Stamp(merged_id, events.join(a.event, b.event))


def compare(a: Stamp | Event, b: Stamp | Event) -> Ordering:
    """Causal relation between two histories.

    Args:
        a: A stamp or event tree.
        b: A stamp or event tree.

    Returns:
        ``BEFORE`` if ``a`` is strictly dominated by ``b``, ``AFTER`` if it
        strictly dominates, ``EQUAL`` if both hold, ``CONCURRENT`` otherwise.
    """
    ea = a.event if isinstance(a, Stamp) else a
    eb = b.event if isinstance(b, Stamp) else b
    a_leq_b = events.leq(ea, eb)
    b_leq_a = events.leq(eb, ea)
    if a_leq_b and b_leq_a:
        return Ordering.EQUAL
    if a_leq_b:
        return Ordering.BEFORE
    if b_leq_a:
        return Ordering.AFTER
    return Ordering.CONCURRENT


def send(stamp: Stamp) -> tuple[Stamp, Stamp]:
    """Record a send event and produce the message stamp.

    Consumes ``stamp``.

    Returns:
        ``(updated, message)`` where ``message`` is a peek of ``updated``.
    """
    updated = event(stamp)
    return updated, peek(updated)


def receive(stamp: Stamp, message: Stamp) -> Stamp:
    """Absorb a received stamp and record the receive event.

    Consumes ``stamp`` and ``message``.
    """
    return event(join(stamp, message))


def sync(a: Stamp, b: Stamp) -> tuple[Stamp, Stamp]:
    """Exchange knowledge between two replicas.

    Both end up with the joined history and a fresh split of their
    combined identity. Consumes ``a`` and ``b``.
    """
    return fork(join(a, b))
