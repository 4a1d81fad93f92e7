"""Paths into the identity space.

A path is a sequence of branch choices, ``LEFT`` (0) or ``RIGHT`` (1),
read from the root. Both identity and event trees are addressed this way.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

LEFT = 0
RIGHT = 1

Path = Iterable[int]


def iter_path(path: Path) -> Iterator[int]:
    """Yield validated branch choices from ``path``.

    Raises:
        ValueError: If a step is not ``LEFT`` or ``RIGHT``.
    """
    for step in path:
        if isinstance(step, bool) or step not in (LEFT, RIGHT):
            raise ValueError(f"Path steps must be 0 (left) or 1 (right), got {step!r}")
        yield step
