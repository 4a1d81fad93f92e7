"""Exception types raised by the interval tree clock algebra.

Every error derives from ``ITCError`` and from the closest built-in
exception, so callers can catch either ``ITCError`` or the usual
``ValueError``/``RuntimeError`` family.

- **OverlappingOwnership**: two identities that share a position were summed.
- **DisownedStamp**: an event was recorded on a stamp that owns nothing.
- **InvalidEncoding**: a binary, text or dict encoding could not be decoded.
- **ClockRetired**: a retired ``IntervalTreeClock`` was used again.
- **InvariantViolation**: the algebra reached a state it should never reach.
"""

from __future__ import annotations

__all__ = [
    "ClockRetired",
    "DisownedStamp",
    "ITCError",
    "InvalidEncoding",
    "InvariantViolation",
    "OverlappingOwnership",
]


class ITCError(Exception):
    """Base class for all interval tree clock errors."""


class OverlappingOwnership(ITCError, ValueError):
    """Raised when summing two identities that own the same position.

    This means two live stamps held the same share of the identity space,
    which only happens if a stamp was reused after being forked or joined.
    """


class DisownedStamp(ITCError, ValueError):
    """Raised when recording an event with an identity of ``Zero``.

    Peeked stamps carry knowledge but no right to generate events.
    """


class InvalidEncoding(ITCError, ValueError):
    """Raised when decoding malformed, truncated or non-canonical input.

    Args:
        message: Human-readable description of the problem.
        offset: Bit offset (binary) or character index (text) where the
            problem was detected, if known.
    """

    def __init__(self, message: str, offset: int | None = None):
        self.message = message
        self.offset = offset
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)


class ClockRetired(ITCError, RuntimeError):
    """Raised when a clock is used after ``retire_into()``."""


class InvariantViolation(ITCError, AssertionError):
    """Raised when the algebra detects a defect in its own bookkeeping."""
