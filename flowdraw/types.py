"""Data types for FlowDraw diagrams.

This module contains the core data structures used throughout the
FlowDraw flowchart editor.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class NodeKind(Enum):
    """Supported flowchart node kinds."""

    START = "start"
    PROCESS = "process"
    DECISION = "decision"
    INPUT = "input"
    END = "end"


@dataclass
class FlowNode:
    """A typed, labelled shape placed on the canvas."""

    id: str
    kind: NodeKind
    x: float
    y: float
    label: str = ""


@dataclass
class Connection:
    """A directed connection between two nodes."""

    id: str
    from_id: str
    to_id: str


@dataclass(frozen=True)
class Point:
    """A point in canvas or screen coordinates."""

    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)


@dataclass(frozen=True)
class CanvasRect:
    """Screen-space bounding box of the canvas surface."""

    left: float
    top: float
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class EdgeGeometry:
    """Renderable geometry for one directed connection."""

    start: Point
    end: Point
    arrow: Tuple[Point, Point, Point]  # tip first, then the two base vertices

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x1": self.start.x,
            "y1": self.start.y,
            "x2": self.end.x,
            "y2": self.end.y,
            "arrow": [{"x": pt.x, "y": pt.y} for pt in self.arrow],
        }


class InteractionMode(Enum):
    """Phases of the selection / connect workflow."""

    IDLE = "idle"
    NODE_SELECTED = "node_selected"
    CONNECT_AWAITING_FIRST = "connect_awaiting_first"
    CONNECT_AWAITING_SECOND = "connect_awaiting_second"


@dataclass(frozen=True)
class InteractionState:
    """Transient UI state: current mode plus the ids it refers to."""

    mode: InteractionMode = InteractionMode.IDLE
    selected_node_id: Optional[str] = None
    first_node_id: Optional[str] = None

    @property
    def is_connecting(self) -> bool:
        return self.mode in (
            InteractionMode.CONNECT_AWAITING_FIRST,
            InteractionMode.CONNECT_AWAITING_SECOND,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["mode"] = self.mode.value
        return data
