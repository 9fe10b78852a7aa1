"""
Spiral layout for delimiter-separated words.

The first word sits on a marker line. The remaining words are wrapped
around it in rounds of four growth phases (a row above, a column on the
left, a row below, a column on the right) until they run out. After every
phase the block is padded back into a rectangle. A small ASCII snail is
appended underneath when the spiral is finished.
"""

import logging
from collections import deque
from enum import IntEnum
from typing import Deque, Iterable, List

logger = logging.getLogger(__name__)

MARKER = ">>> | "
SNAIL_HEAD = ("     \\/", "_____(oo)")
ROW_SEPARATOR = "|"


class Phase(IntEnum):
    """Growth phases, in the order they are applied after the marker line."""
    TOP = 0
    LEFT = 1
    BOTTOM = 2
    RIGHT = 3


def split_words(text: str, delimiter: str = ",") -> List[str]:
    """Split ``text`` on ``delimiter``, strip each piece and drop blanks."""
    if not text or not isinstance(text, str):
        return []
    return [word.strip() for word in text.split(delimiter) if word.strip()]


def align(lines: List[str], direction: str) -> List[str]:
    """Pad every line to the longest one.

    ``direction`` is ``"left"`` (pad on the right) or ``"right"`` (pad on
    the left).
    """
    if not lines:
        return []
    if direction not in ("left", "right"):
        raise ValueError(f"Unknown alignment: {direction}")
    width = max(len(line) for line in lines)
    if direction == "left":
        return [line.ljust(width) for line in lines]
    return [line.rjust(width) for line in lines]


def _build_row(words: Deque[str], gap: int, target: int, prepend: bool) -> str:
    # A row keeps taking words until it is at least as wide as the block,
    # but always holds two entries (the gap counts as one) while words remain.
    row = [" " * gap]
    while (len(" ".join(row)) < target or len(row) < 2) and words:
        if prepend:
            row.insert(0, words.popleft())
        else:
            row.append(words.popleft())
    return " ".join(row)


def _grow_top(block: List[str], words: Deque[str]) -> List[str]:
    target = len(block[-1])
    gap = len(block[0].split(ROW_SEPARATOR)[-1]) + 1
    row = _build_row(words, gap, target, prepend=True)
    separator = "-" * max(0, len(row) + 3 - gap) + " " * gap
    return align([row, separator] + block, "right")


def _grow_left(block: List[str], words: Deque[str]) -> List[str]:
    block = list(block)
    for i in range(2, len(block)):
        if not words:
            break
        block[i] = f"{words.popleft()} {ROW_SEPARATOR}{block[i]}"
    return align(block, "right")


def _grow_bottom(block: List[str], words: Deque[str]) -> List[str]:
    target = len(block[0])
    gap = len(block[-1].split(ROW_SEPARATOR)[0]) + 1
    block = align(block, "right")
    row = _build_row(words, gap, target, prepend=False)
    separator = " " * gap + "-" * max(0, len(row) + 3 - gap)
    return align(block + [separator, row], "left")


def _grow_right(block: List[str], words: Deque[str]) -> List[str]:
    block = list(block)
    for i in range(2, len(block)):
        if not words:
            break
        idx = len(block) - 1 - i
        block[idx] += f"{ROW_SEPARATOR} {words.popleft()}"
    return align(block, "left")


_GROWERS = {
    Phase.TOP: _grow_top,
    Phase.LEFT: _grow_left,
    Phase.BOTTOM: _grow_bottom,
    Phase.RIGHT: _grow_right,
}


def build_spiral_block(words: Iterable[str]) -> List[str]:
    """Arrange ``words`` into a rectangular block of equal-length lines."""
    remaining = deque(words)
    if not remaining:
        return []

    block = align([MARKER + remaining.popleft()], "right")
    phase = Phase.TOP
    while remaining:
        block = _GROWERS[phase](block, remaining)
        phase = Phase((phase + 1) % len(Phase))
    return block


def spiral(words: Iterable[str]) -> str:
    """Render ``words`` as a spiral block followed by the snail head."""
    block = build_spiral_block(words)
    if not block:
        return ""
    indent = " " * (len(block[0]) + 3)
    lines = block + [indent + part for part in SNAIL_HEAD]
    return "\n".join(lines)


def generate_spiral(text: str, delimiter: str = ",") -> str:
    """Split ``text`` into words and lay them out as a spiral."""
    words = split_words(text, delimiter)
    if not words:
        return ""
    logger.debug("Laying out %d words", len(words))
    return spiral(words)
