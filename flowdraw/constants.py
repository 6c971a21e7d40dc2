"""Constants and presets for FlowDraw diagrams."""

import math
from typing import Any, Dict, Tuple

from .types import NodeKind, Point


# Approximate visual centre of a node, independent of its drawn shape.
NODE_CENTER_OFFSET = Point(60.0, 30.0)
# Pointer offset applied when a node is dropped on the canvas.
DROP_CENTER_OFFSET = Point(50.0, 30.0)
# Hit-test box used for picking nodes by coordinate.
NODE_SIZE = (120.0, 60.0)

ARROW_LENGTH = 10.0
ARROW_ANGLE = math.pi / 6

# Range used when a node is added without an explicit position.
RANDOM_X_RANGE: Tuple[float, float] = (50.0, 350.0)
RANDOM_Y_RANGE: Tuple[float, float] = (50.0, 250.0)

SNAPSHOT_FILE_PREFIX = "flowchart"


NODE_PRESETS: Dict[NodeKind, Dict[str, Any]] = {
    NodeKind.START: {
        "text": "Start",
        "shape": "pill",
        "color": "#dcfce7",
        "border_color": "#22c55e",
    },
    NodeKind.PROCESS: {
        "text": "Process",
        "shape": "rounded",
        "color": "#dbeafe",
        "border_color": "#3b82f6",
    },
    NodeKind.DECISION: {
        "text": "Decision?",
        "shape": "diamond",
        "color": "#fef9c3",
        "border_color": "#eab308",
    },
    NodeKind.INPUT: {
        "text": "Input",
        "shape": "input",
        "color": "#f3e8ff",
        "border_color": "#a855f7",
    },
    NodeKind.END: {
        "text": "End",
        "shape": "pill",
        "color": "#dcfce7",
        "border_color": "#22c55e",
    },
}
