"""Stateful interval tree clock for a long-lived replica.

``IntervalTreeClock`` owns exactly one ``Stamp`` and replaces it on every
operation, so callers never hold a stale stamp by accident. Its surface
mirrors the classic vector clock (``tick``, ``send``, ``receive``), plus
the operations that only interval tree clocks have: ``fork`` to spawn a
replica and ``retire_into`` to fold one back.

Usage::

    from itclock import IntervalTreeClock

    a = IntervalTreeClock.seed("a")
    b = a.fork("b")            # a keeps half of its identity, b gets the rest

    a.tick()
    msg = a.send()             # Stamp with identity Zero
    b.receive(msg)
    assert a.happened_before(b)

    b.retire_into(a)           # a owns everything again; b is unusable
"""

from __future__ import annotations

import logging

from itclock.core import stamp as stamps
from itclock.core.stamp import Ordering, Stamp
from itclock.errors import ClockRetired

logger = logging.getLogger(__name__)

__all__ = ["IntervalTreeClock"]


class IntervalTreeClock:
    """A replica's clock built on interval tree clock stamps.

    Args:
        name: Label used in logs and ``repr``.
        stamp: The stamp this clock takes ownership of. The caller must
            not use it afterwards.
    """

    __slots__ = ("_name", "_stamp", "_retired")

    def __init__(self, name: str, stamp: Stamp):
        self._name = name
        self._stamp = stamp
        self._retired = False

    @classmethod
    def seed(cls, name: str) -> IntervalTreeClock:
        """Create the first clock of a system."""
        return cls(name, stamps.seed())

    @property
    def name(self) -> str:
        """This clock's label."""
        return self._name

    @property
    def stamp(self) -> Stamp:
        """Current stamp (read-only snapshot; do not fork or join it directly)."""
        self._check_live()
        return self._stamp

    @property
    def retired(self) -> bool:
        """True once ``retire_into()`` has been called."""
        return self._retired

    def _check_live(self) -> None:
        if self._retired:
            raise ClockRetired(f"Clock {self._name!r} has been retired")

    def tick(self) -> None:
        """Record a local event."""
        self._check_live()
        self._stamp = stamps.event(self._stamp)

    def peek(self) -> Stamp:
        """Knowledge-only copy of the current stamp."""
        self._check_live()
        return stamps.peek(self._stamp)

    def send(self) -> Stamp:
        """Record a send event and return the stamp to attach to the message."""
        self._check_live()
        self._stamp, message = stamps.send(self._stamp)
        return message

    def receive(self, message: Stamp) -> None:
        """Absorb a received stamp and record the receive event.

        Args:
            message: Stamp from the received message, usually a peek.
        """
        self._check_live()
        self._stamp = stamps.receive(self._stamp, message)

    def merge(self, message: Stamp) -> None:
        """Absorb a received stamp without recording an event."""
        self._check_live()
        self._stamp = stamps.join(self._stamp, message)

    def fork(self, name: str) -> IntervalTreeClock:
        """Spawn a new replica's clock with half of this clock's identity.

        This clock keeps the other half. Both share the current history.
        """
        self._check_live()
        mine, theirs = stamps.fork(self._stamp)
        self._stamp = mine
        logger.debug("[%s] forked %s", self._name, name)
        return IntervalTreeClock(name, theirs)

    def retire_into(self, other: IntervalTreeClock) -> None:
        """Hand this clock's identity and history to ``other`` and retire.

        Raises:
            ClockRetired: If either clock is already retired.
            ValueError: If ``other`` is this clock.
        """
        self._check_live()
        other._check_live()
        if other is self:
            raise ValueError("A clock cannot retire into itself")
        other._stamp = stamps.join(other._stamp, self._stamp)
        self._retired = True
        logger.debug("[%s] retired into %s", self._name, other._name)

    def compare(self, other: IntervalTreeClock | Stamp) -> Ordering:
        """Causal relation between this clock's history and ``other``'s."""
        self._check_live()
        if isinstance(other, IntervalTreeClock):
            other = other.stamp
        return stamps.compare(self._stamp, other)

    def happened_before(self, other: IntervalTreeClock | Stamp) -> bool:
        """True if this clock's history strictly precedes ``other``'s."""
        return self.compare(other) is Ordering.BEFORE

    def is_concurrent(self, other: IntervalTreeClock | Stamp) -> bool:
        """True if neither history precedes the other."""
        return self.compare(other) is Ordering.CONCURRENT

    def __repr__(self) -> str:
        state = "retired" if self._retired else str(self._stamp)
        return f"IntervalTreeClock(name={self._name!r}, stamp={state})"
