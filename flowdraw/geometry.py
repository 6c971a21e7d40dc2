"""Edge geometry for FlowDraw connections.

Connections are drawn between the approximate centres of their nodes,
with a triangular arrowhead whose tip sits on the destination centre.
Everything here is a pure function of node positions.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Tuple

from .constants import ARROW_ANGLE, ARROW_LENGTH, NODE_CENTER_OFFSET
from .types import Connection, EdgeGeometry, FlowNode, Point


def node_center(node: FlowNode, offset: Point = NODE_CENTER_OFFSET) -> Point:
    return Point(node.x + offset.x, node.y + offset.y)


def edge_geometry(
    from_pos: Point,
    to_pos: Point,
    offset: Point = NODE_CENTER_OFFSET,
    arrow_length: float = ARROW_LENGTH,
    arrow_angle: float = ARROW_ANGLE,
) -> EdgeGeometry:
    """Compute the line and arrowhead for an edge between two node positions.

    Args:
        from_pos: Top-left position of the source node.
        to_pos: Top-left position of the destination node.
        offset: Offset from a node position to its visual centre.
        arrow_length: Distance from the tip to each arrowhead base vertex.
        arrow_angle: Half-angle of the arrowhead, measured from the
            reversed edge direction.

    Returns:
        EdgeGeometry with the segment and the arrowhead triangle (tip first).
        Coincident endpoints give a zero-length segment whose arrowhead
        points along the positive x axis.
    """
    start = from_pos + offset
    end = to_pos + offset

    # atan2(0, 0) == 0, so coincident centres fall back to a fixed orientation.
    angle = math.atan2(end.y - start.y, end.x - start.x)

    left = Point(
        end.x - arrow_length * math.cos(angle - arrow_angle),
        end.y - arrow_length * math.sin(angle - arrow_angle),
    )
    right = Point(
        end.x - arrow_length * math.cos(angle + arrow_angle),
        end.y - arrow_length * math.sin(angle + arrow_angle),
    )
    return EdgeGeometry(start=start, end=end, arrow=(end, left, right))


def connection_geometries(
    nodes: Iterable[FlowNode],
    connections: Iterable[Connection],
    offset: Point = NODE_CENTER_OFFSET,
) -> List[Tuple[Connection, EdgeGeometry]]:
    """Recompute geometry for every connection against current node positions.

    Connections whose endpoints are missing are skipped.
    """
    positions: Dict[str, Point] = {node.id: Point(node.x, node.y) for node in nodes}
    result = []
    for connection in connections:
        from_pos = positions.get(connection.from_id)
        to_pos = positions.get(connection.to_id)
        if from_pos is None or to_pos is None:
            continue
        result.append((connection, edge_geometry(from_pos, to_pos, offset)))
    return result
