"""Drag and drop placement for FlowDraw nodes."""

from __future__ import annotations

from typing import Optional

from .constants import DROP_CENTER_OFFSET
from .types import CanvasRect, Point


def clamp_position(x: float, y: float) -> Point:
    """Return the position with both coordinates clamped to be non-negative."""
    return Point(max(0.0, float(x)), max(0.0, float(y)))


def drop_position(
    pointer: Optional[Point],
    canvas: CanvasRect,
    center_offset: Point = DROP_CENTER_OFFSET,
) -> Optional[Point]:
    """Translate an absolute drop pointer into canvas-relative node coordinates.

    Returns None when the drop carries no pointer (e.g. a cancelled gesture),
    in which case the node must keep its current position.
    """
    if pointer is None:
        return None
    return clamp_position(
        pointer.x - canvas.left - center_offset.x,
        pointer.y - canvas.top - center_offset.y,
    )
