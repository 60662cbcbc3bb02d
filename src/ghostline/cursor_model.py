"""Mapping between linear character offsets and terminal grid positions.

A linear offset counts cells from the top-left corner of a ``width`` x
``height`` grid, row by row.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CursorPosition:
    row: int
    col: int


def offset_to_position(offset: int, width: int, height: int) -> CursorPosition:
    """Convert *offset* to a grid position, clamped to the grid."""
    width = max(1, width)
    height = max(1, height)
    clamped = max(0, min(offset, width * height - 1))
    return CursorPosition(row=clamped // width, col=clamped % width)


def position_to_offset(col: int, row: int, width: int) -> int:
    return row * width + col


def scrolled_rows(end_offset: int, width: int, height: int) -> int:
    """Rows the terminal scrolled when output stopped at *end_offset*.

    Filling the last cell leaves the cursor pending at the right margin
    without scrolling; each further row started past the grid scrolls once.
    """
    width = max(1, width)
    overflow = end_offset - width * max(1, height)
    if overflow <= 0:
        return 0
    return -(-overflow // width)
