"""Error types reported by the FlowDraw core."""

from __future__ import annotations


class FlowchartError(Exception):
    """Base class for recoverable flowchart errors."""

    code = "flowchart_error"


class NodeNotFound(FlowchartError):
    """Raised when an operation references a node id that does not exist."""

    code = "not_found"

    def __init__(self, node_id: str):
        super().__init__(f"Node not found: {node_id}")
        self.node_id = node_id


class DuplicateConnection(FlowchartError):
    """Raised when a connection with the same direction already exists."""

    code = "duplicate_connection"

    def __init__(self, from_id: str, to_id: str):
        super().__init__(f"A connection from {from_id} to {to_id} already exists")
        self.from_id = from_id
        self.to_id = to_id


class SelfConnection(FlowchartError):
    """Raised when a connection would start and end on the same node."""

    code = "self_connection"

    def __init__(self, node_id: str):
        super().__init__(f"Cannot connect node {node_id} to itself")
        self.node_id = node_id


class InsufficientNodes(FlowchartError):
    """Raised when connection mode is requested with fewer than two nodes."""

    code = "insufficient_nodes"

    def __init__(self, count: int):
        super().__init__(f"At least 2 nodes are needed to create a connection (have {count})")
        self.count = count


class UnknownNodeKind(FlowchartError):
    code = "unknown_kind"

    def __init__(self, kind: str):
        super().__init__(f"Unknown node kind: {kind}")
        self.kind = kind


class DocumentError(FlowchartError):
    """Raised when a diagram snapshot cannot be read."""

    code = "document_error"
