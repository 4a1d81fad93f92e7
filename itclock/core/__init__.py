"""Interval tree clock algebra: identities, event trees and stamps."""

from itclock.core.ids import ONE, ZERO, Fork, Id, One, Zero
from itclock.core.events import LEAF_ZERO, Cost, Event, Leaf, Node
from itclock.core.path import LEFT, RIGHT
from itclock.core.stamp import (
    Ordering,
    Stamp,
    compare,
    event,
    fork,
    join,
    peek,
    receive,
    seed,
    send,
    sync,
)
from itclock.core.clock import IntervalTreeClock

__all__ = [
    "ONE",
    "ZERO",
    "Fork",
    "Id",
    "One",
    "Zero",
    "LEAF_ZERO",
    "Cost",
    "Event",
    "Leaf",
    "Node",
    "LEFT",
    "RIGHT",
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
    "IntervalTreeClock",
]
