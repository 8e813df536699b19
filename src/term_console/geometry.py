"""
Geometry primitives shared by windows and surfaces.
"""

from dataclasses import dataclass
from typing import Any, List


@dataclass
class Rect:
    """A rectangular region (position and size).

    Used both for regions in surface coordinates and for sub-regions in
    window-local coordinates. A zero-area rect is valid and means "nothing".
    """
    x: int = 0
    y: int = 0
    w: int = 0
    h: int = 0


@dataclass
class Point:
    """A single cell coordinate."""
    x: int = 0
    y: int = 0


def scroll_cells(rows: List[List[Any]], rect: Rect, target: Point, fill: Any):
    """Block-scroll a region of a grid of cells in place.

    The cells inside ``rect`` are moved so that the rect's origin lands on
    ``target``. Cells of ``rect`` that are not overwritten by the moved block
    are set to ``fill``. Both the source and the destination are clipped to
    the grid.

    Args:
        rows: Grid as a list of equally sized rows
        rect: Source region
        target: Destination of the source region's top-left cell
        fill: Value written to vacated cells
    """
    height = len(rows)
    width = len(rows[0]) if rows else 0

    left = max(rect.x, 0)
    top = max(rect.y, 0)
    right = min(rect.x + rect.w, width)
    bottom = min(rect.y + rect.h, height)
    if left >= right or top >= bottom:
        return

    snapshot = [rows[y][left:right] for y in range(top, bottom)]

    for y in range(top, bottom):
        for x in range(left, right):
            rows[y][x] = fill

    dx = target.x + (left - rect.x)
    dy = target.y + (top - rect.y)
    for j, line in enumerate(snapshot):
        y = dy + j
        if not 0 <= y < height:
            continue
        for i, cell in enumerate(line):
            x = dx + i
            if 0 <= x < width:
                rows[y][x] = cell
