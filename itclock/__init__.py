"""itclock: Interval Tree Clocks for systems with churning replicas.

Interval tree clocks track causality like vector clocks, but without a
per-replica entry: replicas are spawned by splitting an identity and
retired by summing it back, so the clock's size follows the live
replicas rather than every replica that ever existed.

Usage::

    import itclock

    a, b = itclock.fork(itclock.seed())
    a = itclock.event(a)
    b = itclock.event(b)
    assert itclock.compare(a, b) is itclock.Ordering.CONCURRENT

    merged = itclock.join(a, b)
    assert merged.id == itclock.ONE

Logging is silent by default; see ``itclock.logging_config``.
"""

import logging

from itclock.core import (
    LEAF_ZERO,
    LEFT,
    ONE,
    RIGHT,
    ZERO,
    Cost,
    Event,
    Fork,
    Id,
    IntervalTreeClock,
    Leaf,
    Node,
    One,
    Ordering,
    Stamp,
    Zero,
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
from itclock.codec import (
    decode_event,
    decode_id,
    decode_stamp,
    encode_event,
    encode_id,
    encode_stamp,
    format_event,
    format_id,
    format_stamp,
    parse_event,
    parse_id,
    parse_stamp,
)
from itclock.errors import (
    ClockRetired,
    DisownedStamp,
    ITCError,
    InvalidEncoding,
    InvariantViolation,
    OverlappingOwnership,
)
from itclock.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Trees
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
    # Stamps
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
    # Codec
    "decode_event",
    "decode_id",
    "decode_stamp",
    "encode_event",
    "encode_id",
    "encode_stamp",
    "format_event",
    "format_id",
    "format_stamp",
    "parse_event",
    "parse_id",
    "parse_stamp",
    # Errors
    "ClockRetired",
    "DisownedStamp",
    "ITCError",
    "InvalidEncoding",
    "InvariantViolation",
    "OverlappingOwnership",
    # Logging
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]
