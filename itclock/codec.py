"""Encodings for identities, event trees and stamps.

Three forms are provided:

- **Binary**: compact and canonical. Every canonical tree has exactly one
  encoding and decoding rejects everything else, so a producer bug shows
  up as ``InvalidEncoding`` instead of a silently repaired stamp.
- **Text**: ``0``, ``1``, ``(l, r)`` for identities; ``n``, ``(n, l, r)``
  for events; ``(id, event)`` for stamps. Meant for logs and debugging.
- **Dict**: nested ints and lists for embedding in JSON payloads.

All decoders reject non-canonical trees.

Binary layout (bits, most significant first, last byte zero-padded)::

    id     Zero          00 0
           One           00 1
           Fork(0, i)    01 <i>
           Fork(i, 0)    10 <i>
           Fork(l, r)    11 <l> <r>

    event  Leaf(n)              1 <num n>
           Node(0, Leaf(0), r)  0 00 <r>
           Node(0, l, Leaf(0))  0 01 <l>
           Node(0, l, r)        0 10 <l> <r>
           Node(n, Leaf(0), r)  0 11 00 <num n> <r>
           Node(n, l, Leaf(0))  0 11 01 <num n> <l>
           Node(n, l, r)        0 11 1 <num n> <l> <r>

    num    n < 2**B             0 <n in B bits>
           otherwise            1 <num (n - 2**B) with B + 1>   (B starts at 2)

    stamp  <id> <event>
"""

from __future__ import annotations

import logging
import re

from itclock.core import events, ids
from itclock.core.events import LEAF_ZERO, Event, Leaf, Node
from itclock.core.ids import ONE, ZERO, Fork, Id, One, Zero
from itclock.core.stamp import Stamp
from itclock.errors import InvalidEncoding

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "decode_event",
    "decode_id",
    "decode_stamp",
    "encode_event",
    "encode_id",
    "encode_stamp",
    "event_from_dict",
    "event_to_dict",
    "format_event",
    "format_id",
    "format_stamp",
    "id_from_dict",
    "id_to_dict",
    "parse_event",
    "parse_id",
    "parse_stamp",
    "stamp_from_dict",
    "stamp_to_dict",
]

# Nesting limit for decoders; keeps hostile input away from the recursion limit.
DEFAULT_MAX_DEPTH = 512

_NUM_START_BITS = 2


# =============================================================================
# Bit streams
# =============================================================================


class _BitWriter:
    __slots__ = ("_value", "_length")

    def __init__(self):
        self._value = 0
        self._length = 0

    def write(self, value: int, width: int) -> None:
        self._value = (self._value << width) | value
        self._length += width

    def to_bytes(self) -> bytes:
        pad = -self._length % 8
        return (self._value << pad).to_bytes((self._length + pad) // 8, "big")


class _BitReader:
    __slots__ = ("_value", "_length", "_pos", "_max_depth")

    def __init__(self, data: bytes, max_depth: int):
        self._value = int.from_bytes(data, "big")
        self._length = len(data) * 8
        self._pos = 0
        self._max_depth = max_depth

    @property
    def pos(self) -> int:
        return self._pos

    def read(self, width: int) -> int:
        if self._pos + width > self._length:
            raise InvalidEncoding("Truncated input", offset=self._pos)
        self._pos += width
        return (self._value >> (self._length - self._pos)) & ((1 << width) - 1)

    def check_depth(self, depth: int) -> None:
        if depth > self._max_depth:
            raise InvalidEncoding(
                f"Tree nesting exceeds max_depth={self._max_depth}", offset=self._pos
            )

    def finish(self) -> None:
        remaining = self._length - self._pos
        if remaining >= 8:
            raise InvalidEncoding(f"{remaining // 8} trailing byte(s)", offset=self._pos)
        if self._value & ((1 << remaining) - 1):
            raise InvalidEncoding("Non-zero padding bits", offset=self._pos)


def _fork_is_canonical(fork: Fork) -> bool:
    # Decoders build bottom-up, so only the top level needs checking.
    if isinstance(fork.left, Zero) and isinstance(fork.right, Zero):
        return False
    return not (isinstance(fork.left, One) and isinstance(fork.right, One))


def _node_is_canonical(node: Node) -> bool:
    if node.left == LEAF_ZERO and node.right == LEAF_ZERO:
        return False
    return min(node.left.n, node.right.n) == 0


def _coerce_bytes(data: bytes | bytearray | memoryview) -> bytes:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"Expected bytes, got {type(data).__name__}")
    data = bytes(data)
    if not data:
        raise InvalidEncoding("Empty input", offset=0)
    return data


# =============================================================================
# Binary: numbers
# =============================================================================


def _write_number(w: _BitWriter, n: int) -> None:
    bits = _NUM_START_BITS
    while n >= 1 << bits:
        w.write(1, 1)
        n -= 1 << bits
        bits += 1
    w.write(0, 1)
    w.write(n, bits)


def _read_number(r: _BitReader) -> int:
    bits = _NUM_START_BITS
    offset = 0
    while r.read(1):
        offset += 1 << bits
        bits += 1
    return offset + r.read(bits)


# =============================================================================
# Binary: identities
# =============================================================================


def _write_id(w: _BitWriter, i: Id) -> None:
    if isinstance(i, Zero):
        w.write(0b000, 3)
    elif isinstance(i, One):
        w.write(0b001, 3)
    elif isinstance(i.left, Zero):
        w.write(0b01, 2)
        _write_id(w, i.right)
    elif isinstance(i.right, Zero):
        w.write(0b10, 2)
        _write_id(w, i.left)
    else:
        w.write(0b11, 2)
        _write_id(w, i.left)
        _write_id(w, i.right)


def _read_id(r: _BitReader, depth: int = 0) -> Id:
    r.check_depth(depth)
    start = r.pos
    tag = r.read(2)
    if tag == 0b00:
        return ONE if r.read(1) else ZERO
    if tag == 0b01:
        child = _read_id(r, depth + 1)
        if isinstance(child, Zero):
            raise InvalidEncoding("Non-canonical identity Fork(Zero, Zero)", offset=start)
        return Fork(ZERO, child)
    if tag == 0b10:
        child = _read_id(r, depth + 1)
        if isinstance(child, Zero):
            raise InvalidEncoding("Non-canonical identity Fork(Zero, Zero)", offset=start)
        return Fork(child, ZERO)
    left = _read_id(r, depth + 1)
    right = _read_id(r, depth + 1)
    if isinstance(left, Zero) or isinstance(right, Zero):
        raise InvalidEncoding("Fork with a Zero half must use the short form", offset=start)
    if isinstance(left, One) and isinstance(right, One):
        raise InvalidEncoding("Non-canonical identity Fork(One, One)", offset=start)
    return Fork(left, right)


def encode_id(i: Id) -> bytes:
    """Encode a canonical identity.

    Raises:
        ValueError: If ``i`` is not in canonical form.
    """
    if not ids.is_normalized(i):
        raise ValueError(f"Identity {i!r} is not in canonical form")
    w = _BitWriter()
    _write_id(w, i)
    return w.to_bytes()


def decode_id(data: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> Id:
    """Decode an identity produced by ``encode_id()``.

    Raises:
        InvalidEncoding: If ``data`` is malformed, truncated or non-canonical.
    """
    r = _BitReader(_coerce_bytes(data), max_depth)
    i = _read_id(r)
    r.finish()
    return i


# =============================================================================
# Binary: events
# =============================================================================


def _write_event(w: _BitWriter, e: Event) -> None:
    if isinstance(e, Leaf):
        w.write(1, 1)
        _write_number(w, e.n)
        return
    w.write(0, 1)
    if e.n == 0:
        if e.left == LEAF_ZERO:
            w.write(0b00, 2)
            _write_event(w, e.right)
        elif e.right == LEAF_ZERO:
            w.write(0b01, 2)
            _write_event(w, e.left)
        else:
            w.write(0b10, 2)
            _write_event(w, e.left)
            _write_event(w, e.right)
        return
    w.write(0b11, 2)
    if e.left == LEAF_ZERO:
        w.write(0b00, 2)
        _write_number(w, e.n)
        _write_event(w, e.right)
    elif e.right == LEAF_ZERO:
        w.write(0b01, 2)
        _write_number(w, e.n)
        _write_event(w, e.left)
    else:
        w.write(0b1, 1)
        _write_number(w, e.n)
        _write_event(w, e.left)
        _write_event(w, e.right)


def _read_event(r: _BitReader, depth: int = 0) -> Event:
    r.check_depth(depth)
    start = r.pos
    if r.read(1):
        return Leaf(_read_number(r))

    tag = r.read(2)
    if tag == 0b00:
        n, left, right = 0, LEAF_ZERO, _read_event(r, depth + 1)
    elif tag == 0b01:
        n, left, right = 0, _read_event(r, depth + 1), LEAF_ZERO
    elif tag == 0b10:
        n = 0
        left = _read_event(r, depth + 1)
        right = _read_event(r, depth + 1)
        if left == LEAF_ZERO or right == LEAF_ZERO:
            raise InvalidEncoding("Leaf(0) child must use the short form", offset=start)
    else:
        if r.read(1):
            n = _read_number(r)
            left = _read_event(r, depth + 1)
            right = _read_event(r, depth + 1)
            if left == LEAF_ZERO or right == LEAF_ZERO:
                raise InvalidEncoding("Leaf(0) child must use the short form", offset=start)
        elif r.read(1):
            n = _read_number(r)
            left, right = _read_event(r, depth + 1), LEAF_ZERO
        else:
            n = _read_number(r)
            left, right = LEAF_ZERO, _read_event(r, depth + 1)
        if n == 0:
            raise InvalidEncoding("Zero base must use the short form", offset=start)

    node = Node(n, left, right)
    if not _node_is_canonical(node):
        raise InvalidEncoding(f"Non-canonical event node {node!r}", offset=start)
    return node


def encode_event(e: Event) -> bytes:
    """Encode a canonical event tree.

    Raises:
        ValueError: If ``e`` is not in canonical form.
    """
    if not events.is_normalized(e):
        raise ValueError(f"Event tree {e!r} is not in canonical form")
    w = _BitWriter()
    _write_event(w, e)
    return w.to_bytes()


def decode_event(data: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> Event:
    """Decode an event tree produced by ``encode_event()``.

    Raises:
        InvalidEncoding: If ``data`` is malformed, truncated or non-canonical.
    """
    r = _BitReader(_coerce_bytes(data), max_depth)
    e = _read_event(r)
    r.finish()
    return e


# =============================================================================
# Binary: stamps
# =============================================================================


def encode_stamp(stamp: Stamp) -> bytes:
    """Encode a stamp as its identity bits followed by its event bits.

    Raises:
        ValueError: If either tree is not in canonical form.
    """
    if not ids.is_normalized(stamp.id):
        raise ValueError(f"Identity {stamp.id!r} is not in canonical form")
    if not events.is_normalized(stamp.event):
        raise ValueError(f"Event tree {stamp.event!r} is not in canonical form")
    w = _BitWriter()
    _write_id(w, stamp.id)
    _write_event(w, stamp.event)
    data = w.to_bytes()
    logger.debug("Encoded stamp into %d bytes", len(data))
    return data


def decode_stamp(data: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> Stamp:
    """Decode a stamp produced by ``encode_stamp()``.

    Raises:
        InvalidEncoding: If ``data`` is malformed, truncated or non-canonical.
    """
    r = _BitReader(_coerce_bytes(data), max_depth)
    i = _read_id(r)
    e = _read_event(r)
    r.finish()
    return Stamp(i, e)


# =============================================================================
# Text
# =============================================================================


def format_id(i: Id) -> str:
    """Render an identity as ``0``, ``1`` or ``(l, r)``."""
    if isinstance(i, Zero):
        return "0"
    if isinstance(i, One):
        return "1"
    return f"({format_id(i.left)}, {format_id(i.right)})"


def format_event(e: Event) -> str:
    """Render an event tree as ``n`` or ``(n, l, r)``."""
    if isinstance(e, Leaf):
        return str(e.n)
    return f"({e.n}, {format_event(e.left)}, {format_event(e.right)})"


def format_stamp(stamp: Stamp) -> str:
    """Render a stamp as ``(id, event)``."""
    return f"({format_id(stamp.id)}, {format_event(stamp.event)})"


_TOKEN = re.compile(r"\s*(?:([0-9]+)|([(),]))")


class _TextParser:
    """Recursive descent over the text form."""

    __slots__ = ("_text", "_pos", "_max_depth")

    def __init__(self, text: str, max_depth: int):
        if not isinstance(text, str):
            raise TypeError(f"Expected str, got {type(text).__name__}")
        self._text = text
        self._pos = 0
        self._max_depth = max_depth

    def _next(self) -> str:
        match = _TOKEN.match(self._text, self._pos)
        if match is None:
            if self._text[self._pos:].strip():
                raise InvalidEncoding("Unexpected character", offset=self._pos)
            raise InvalidEncoding("Unexpected end of input", offset=len(self._text))
        self._pos = match.end()
        return match.group(1) or match.group(2)

    def _expect(self, token: str) -> None:
        start = self._pos
        if self._next() != token:
            raise InvalidEncoding(f"Expected {token!r}", offset=start)

    @staticmethod
    def _to_int(token: str, start: int) -> int:
        try:
            return int(token)
        except ValueError:
            raise InvalidEncoding("Number is too long", offset=start) from None

    def _number(self) -> int:
        start = self._pos
        token = self._next()
        if not token.isdigit():
            raise InvalidEncoding("Expected a number", offset=start)
        return self._to_int(token, start)

    def _check_depth(self, depth: int) -> None:
        if depth > self._max_depth:
            raise InvalidEncoding(
                f"Tree nesting exceeds max_depth={self._max_depth}", offset=self._pos
            )

    def finish(self) -> None:
        if self._text[self._pos:].strip():
            raise InvalidEncoding("Trailing characters", offset=self._pos)

    def id(self, depth: int = 0) -> Id:
        self._check_depth(depth)
        start = self._pos
        token = self._next()
        if token == "0":
            return ZERO
        if token == "1":
            return ONE
        if token != "(":
            raise InvalidEncoding("Expected 0, 1 or '('", offset=start)
        left = self.id(depth + 1)
        self._expect(",")
        right = self.id(depth + 1)
        self._expect(")")
        fork = Fork(left, right)
        if not _fork_is_canonical(fork):
            raise InvalidEncoding(f"Non-canonical identity {fork!r}", offset=start)
        return fork

    def event(self, depth: int = 0) -> Event:
        self._check_depth(depth)
        start = self._pos
        token = self._next()
        if token.isdigit():
            return Leaf(self._to_int(token, start))
        if token != "(":
            raise InvalidEncoding("Expected a number or '('", offset=start)
        n = self._number()
        self._expect(",")
        left = self.event(depth + 1)
        self._expect(",")
        right = self.event(depth + 1)
        self._expect(")")
        node = Node(n, left, right)
        if not _node_is_canonical(node):
            raise InvalidEncoding(f"Non-canonical event node {node!r}", offset=start)
        return node

    def stamp(self) -> Stamp:
        self._expect("(")
        i = self.id()
        self._expect(",")
        e = self.event()
        self._expect(")")
        return Stamp(i, e)


def parse_id(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Id:
    """Parse the output of ``format_id()``.

    Raises:
        InvalidEncoding: If ``text`` is malformed or non-canonical.
    """
    parser = _TextParser(text, max_depth)
    i = parser.id()
    parser.finish()
    return i


def parse_event(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Event:
    """Parse the output of ``format_event()``.

    Raises:
        InvalidEncoding: If ``text`` is malformed or non-canonical.
    """
    parser = _TextParser(text, max_depth)
    e = parser.event()
    parser.finish()
    return e


def parse_stamp(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Stamp:
    """Parse the output of ``format_stamp()``.

    Raises:
        InvalidEncoding: If ``text`` is malformed or non-canonical.
    """
    parser = _TextParser(text, max_depth)
    stamp = parser.stamp()
    parser.finish()
    return stamp


# =============================================================================
# Dict
# =============================================================================


def id_to_dict(i: Id) -> int | list:
    """Identity as ``0``, ``1`` or ``[left, right]``."""
    if isinstance(i, Zero):
        return 0
    if isinstance(i, One):
        return 1
    return [id_to_dict(i.left), id_to_dict(i.right)]


def event_to_dict(e: Event) -> int | list:
    """Event tree as ``n`` or ``[n, left, right]``."""
    if isinstance(e, Leaf):
        return e.n
    return [e.n, event_to_dict(e.left), event_to_dict(e.right)]


def stamp_to_dict(stamp: Stamp) -> dict:
    """Stamp as ``{"id": ..., "event": ...}``."""
    return {"id": id_to_dict(stamp.id), "event": event_to_dict(stamp.event)}


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def id_from_dict(data: int | list, max_depth: int = DEFAULT_MAX_DEPTH) -> Id:
    """Inverse of ``id_to_dict()``.

    Raises:
        InvalidEncoding: If ``data`` is malformed or non-canonical.
    """
    if max_depth < 0:
        raise InvalidEncoding("Identity nesting too deep")
    if _is_count(data) and data in (0, 1):
        return ONE if data == 1 else ZERO
    if isinstance(data, (list, tuple)) and len(data) == 2:
        fork = Fork(
            id_from_dict(data[0], max_depth - 1),
            id_from_dict(data[1], max_depth - 1),
        )
        if not _fork_is_canonical(fork):
            raise InvalidEncoding(f"Non-canonical identity {fork!r}")
        return fork
    raise InvalidEncoding(f"Malformed identity {data!r}")


def event_from_dict(data: int | list, max_depth: int = DEFAULT_MAX_DEPTH) -> Event:
    """Inverse of ``event_to_dict()``.

    Raises:
        InvalidEncoding: If ``data`` is malformed or non-canonical.
    """
    if max_depth < 0:
        raise InvalidEncoding("Event tree nesting too deep")
    if _is_count(data):
        return Leaf(data)
    if isinstance(data, (list, tuple)) and len(data) == 3 and _is_count(data[0]):
        node = Node(
            data[0],
            event_from_dict(data[1], max_depth - 1),
            event_from_dict(data[2], max_depth - 1),
        )
        if not _node_is_canonical(node):
            raise InvalidEncoding(f"Non-canonical event node {node!r}")
        return node
    raise InvalidEncoding(f"Malformed event tree {data!r}")


def stamp_from_dict(data: dict, max_depth: int = DEFAULT_MAX_DEPTH) -> Stamp:
    """Inverse of ``stamp_to_dict()``.

    Raises:
        InvalidEncoding: If ``data`` is malformed or non-canonical.
    """
    if not isinstance(data, dict) or "id" not in data or "event" not in data:
        raise InvalidEncoding("Stamp dict needs 'id' and 'event' keys")
    return Stamp(
        id_from_dict(data["id"], max_depth),
        event_from_dict(data["event"], max_depth),
    )
