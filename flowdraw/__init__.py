"""FlowDraw flowchart editing core built with PySide6.

The package holds the parts of a flowchart editor that do not depend on
how the diagram is drawn: the node and connection model, the selection
and two-step connect workflow, drop placement and edge geometry.
"""

import logging

from .constants import (
    ARROW_ANGLE,
    ARROW_LENGTH,
    DROP_CENTER_OFFSET,
    NODE_CENTER_OFFSET,
    NODE_PRESETS,
)
from .document import DocumentManager
from .errors import (
    DocumentError,
    DuplicateConnection,
    FlowchartError,
    InsufficientNodes,
    NodeNotFound,
    SelfConnection,
    UnknownNodeKind,
)
from .geometry import connection_geometries, edge_geometry
from .interaction import InteractionController
from .model import FlowchartModel
from .placement import drop_position
from .types import (
    CanvasRect,
    Connection,
    EdgeGeometry,
    FlowNode,
    InteractionMode,
    InteractionState,
    NodeKind,
    Point,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ARROW_ANGLE",
    "ARROW_LENGTH",
    "CanvasRect",
    "Connection",
    "DROP_CENTER_OFFSET",
    "DocumentError",
    "DocumentManager",
    "DuplicateConnection",
    "EdgeGeometry",
    "FlowNode",
    "FlowchartError",
    "FlowchartModel",
    "InsufficientNodes",
    "InteractionController",
    "InteractionMode",
    "InteractionState",
    "NODE_CENTER_OFFSET",
    "NODE_PRESETS",
    "NodeKind",
    "NodeNotFound",
    "Point",
    "SelfConnection",
    "UnknownNodeKind",
    "connection_geometries",
    "drop_position",
    "edge_geometry",
]
