"""Core FlowchartModel class for FlowDraw.

This module provides the Qt model owning flowchart nodes and connections.
"""

from __future__ import annotations

import logging
import math
import random
from itertools import count
from typing import Any, Callable, Dict, List, Optional, Tuple

from PySide6.QtCore import (
    QAbstractListModel,
    QModelIndex,
    Property,
    Qt,
    Signal,
    Slot,
)

from .constants import NODE_PRESETS, NODE_SIZE, RANDOM_X_RANGE, RANDOM_Y_RANGE
from .errors import (
    DocumentError,
    DuplicateConnection,
    FlowchartError,
    NodeNotFound,
    SelfConnection,
    UnknownNodeKind,
)
from .geometry import connection_geometries
from .placement import clamp_position
from .types import Connection, FlowNode, NodeKind

logger = logging.getLogger(__name__)

IdFactory = Callable[[str], str]
PositionFactory = Callable[[], Tuple[float, float]]


def parse_kind(kind: Any) -> NodeKind:
    if isinstance(kind, NodeKind):
        return kind
    try:
        return NodeKind(str(kind).strip().lower())
    except ValueError:
        raise UnknownNodeKind(str(kind)) from None


class FlowchartModel(QAbstractListModel):
    """Qt model exposing flowchart nodes to QML.

    Nodes are kept in insertion order, which is also the render order:
    later nodes are drawn on top of earlier ones.
    """

    IdRole = Qt.UserRole + 1
    KindRole = Qt.UserRole + 2
    LabelRole = Qt.UserRole + 3
    XRole = Qt.UserRole + 4
    YRole = Qt.UserRole + 5
    ColorRole = Qt.UserRole + 6
    BorderColorRole = Qt.UserRole + 7
    ShapeRole = Qt.UserRole + 8

    nodesChanged = Signal()
    connectionsChanged = Signal()
    geometryChanged = Signal()
    nodeDeleted = Signal(str)
    diagramCleared = Signal()
    diagramLoaded = Signal()
    errorOccurred = Signal(str)

    def __init__(
        self,
        id_factory: Optional[IdFactory] = None,
        position_factory: Optional[PositionFactory] = None,
        rng: Optional[random.Random] = None,
    ):
        super().__init__()
        self._nodes: List[FlowNode] = []
        self._connections: List[Connection] = []
        self._id_source = count()
        self._id_factory = id_factory
        self._rng = rng or random.Random()
        self._position_factory = position_factory or self._random_position

    def _next_id(self, prefix: str) -> str:
        if self._id_factory is not None:
            return self._id_factory(prefix)
        return f"{prefix}_{next(self._id_source)}"

    def _random_position(self) -> Tuple[float, float]:
        return (
            self._rng.uniform(*RANDOM_X_RANGE),
            self._rng.uniform(*RANDOM_Y_RANGE),
        )

    def _row_of(self, node_id: str) -> int:
        for row, node in enumerate(self._nodes):
            if node.id == node_id:
                return row
        return -1

    def _report(self, error: FlowchartError) -> None:
        logger.warning("%s", error)
        self.errorOccurred.emit(str(error))

    # --- Qt model overrides -------------------------------------------------
    def rowCount(self, parent: QModelIndex | None = QModelIndex()) -> int:  # type: ignore[override]
        return len(self._nodes)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._nodes)):
            return None

        node = self._nodes[index.row()]
        preset = NODE_PRESETS[node.kind]
        if role == self.IdRole:
            return node.id
        if role == self.KindRole:
            return node.kind.value
        if role in (self.LabelRole, Qt.DisplayRole):
            return node.label
        if role == self.XRole:
            return node.x
        if role == self.YRole:
            return node.y
        if role == self.ColorRole:
            return preset["color"]
        if role == self.BorderColorRole:
            return preset["border_color"]
        if role == self.ShapeRole:
            return preset["shape"]
        return None

    def roleNames(self) -> Dict[int, bytes]:  # type: ignore[override]
        return {
            self.IdRole: b"nodeId",
            self.KindRole: b"kind",
            self.LabelRole: b"label",
            self.XRole: b"x",
            self.YRole: b"y",
            self.ColorRole: b"color",
            self.BorderColorRole: b"borderColor",
            self.ShapeRole: b"shape",
        }

    # --- Properties exposed to QML -----------------------------------------
    @Property(int, notify=nodesChanged)
    def nodeCount(self) -> int:
        return len(self._nodes)

    @Property(int, notify=connectionsChanged)
    def connectionCount(self) -> int:
        return len(self._connections)

    @Property(bool, notify=nodesChanged)
    def canConnect(self) -> bool:
        return len(self._nodes) >= 2

    @Property(list, notify=connectionsChanged)
    def connectionList(self) -> List[Dict[str, str]]:
        return [
            {"id": conn.id, "fromId": conn.from_id, "toId": conn.to_id}
            for conn in self._connections
        ]

    @Property(list, notify=geometryChanged)
    def edgeGeometry(self) -> List[Dict[str, Any]]:
        result = []
        for conn, geometry in connection_geometries(self._nodes, self._connections):
            entry = geometry.to_dict()
            entry.update({"id": conn.id, "fromId": conn.from_id, "toId": conn.to_id})
            result.append(entry)
        return result

    # --- Read accessors -----------------------------------------------------
    def nodes(self) -> List[FlowNode]:
        return list(self._nodes)

    def connections(self) -> List[Connection]:
        return list(self._connections)

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    def has_connection(self, from_id: str, to_id: str) -> bool:
        return any(
            conn.from_id == from_id and conn.to_id == to_id
            for conn in self._connections
        )

    def node_at(self, x: float, y: float) -> Optional[str]:
        width, height = NODE_SIZE
        for node in reversed(self._nodes):
            if node.x <= x <= node.x + width and node.y <= y <= node.y + height:
                return node.id
        return None

    @Slot(float, float, result=str)
    def nodeIdAt(self, x: float, y: float) -> str:
        return self.node_at(x, y) or ""

    @Slot(str, result="QVariant")
    def getNodeSnapshot(self, node_id: str) -> Dict[str, Any]:
        node = self.get_node(node_id)
        if node is None:
            return {}
        return {
            "id": node.id,
            "kind": node.kind.value,
            "label": node.label,
            "x": node.x,
            "y": node.y,
        }

    # --- Node management ----------------------------------------------------
    def add_node(
        self,
        kind: Any,
        x: Optional[float] = None,
        y: Optional[float] = None,
        label: Optional[str] = None,
    ) -> FlowNode:
        node_kind = parse_kind(kind)
        if x is None or y is None:
            x, y = self._position_factory()
        position = clamp_position(x, y)
        node = FlowNode(
            id=self._next_id(node_kind.value),
            kind=node_kind,
            x=position.x,
            y=position.y,
            label=NODE_PRESETS[node_kind]["text"] if label is None else label,
        )
        self.beginInsertRows(QModelIndex(), len(self._nodes), len(self._nodes))
        self._nodes.append(node)
        self.endInsertRows()
        logger.debug("Added %s node %s at (%.1f, %.1f)", node_kind.value, node.id, node.x, node.y)
        self.nodesChanged.emit()
        return node

    @Slot(str, result=str)
    def addNode(self, kind: str) -> str:
        try:
            return self.add_node(kind).id
        except FlowchartError as exc:
            self._report(exc)
            return ""

    @Slot(str, float, float, result=str)
    def addNodeAt(self, kind: str, x: float, y: float) -> str:
        try:
            return self.add_node(kind, x, y).id
        except FlowchartError as exc:
            self._report(exc)
            return ""

    def update_label(self, node_id: str, text: str) -> None:
        row = self._row_of(node_id)
        if row < 0:
            raise NodeNotFound(node_id)
        node = self._nodes[row]
        if node.label == text:
            return
        node.label = text
        index = self.index(row, 0)
        self.dataChanged.emit(index, index, [self.LabelRole])
        self.nodesChanged.emit()

    @Slot(str, str, result=bool)
    def updateLabel(self, node_id: str, text: str) -> bool:
        try:
            self.update_label(node_id, text)
        except FlowchartError as exc:
            self._report(exc)
            return False
        return True

    def update_position(self, node_id: str, x: float, y: float) -> None:
        row = self._row_of(node_id)
        if row < 0:
            raise NodeNotFound(node_id)
        node = self._nodes[row]
        position = clamp_position(x, y)
        if node.x == position.x and node.y == position.y:
            return
        node.x = position.x
        node.y = position.y
        index = self.index(row, 0)
        self.dataChanged.emit(index, index, [self.XRole, self.YRole])
        self.nodesChanged.emit()
        self.geometryChanged.emit()

    @Slot(str, float, float, result=bool)
    def updatePosition(self, node_id: str, x: float, y: float) -> bool:
        try:
            self.update_position(node_id, x, y)
        except FlowchartError as exc:
            self._report(exc)
            return False
        return True

    def delete_node(self, node_id: str) -> bool:
        """Remove a node and every connection touching it.

        Deleting an id that is not present is a no-op.

        Returns:
            True if a node was removed.
        """
        row = self._row_of(node_id)
        if row < 0:
            return False

        filtered = [
            conn for conn in self._connections
            if conn.from_id != node_id and conn.to_id != node_id
        ]
        connections_removed = len(filtered) != len(self._connections)
        self._connections = filtered

        self.beginRemoveRows(QModelIndex(), row, row)
        self._nodes.pop(row)
        self.endRemoveRows()
        logger.debug("Deleted node %s", node_id)

        if connections_removed:
            self.connectionsChanged.emit()
        self.nodesChanged.emit()
        self.geometryChanged.emit()
        self.nodeDeleted.emit(node_id)
        return True

    @Slot(str)
    def deleteNode(self, node_id: str) -> None:
        self.delete_node(node_id)

    # --- Connection management ---------------------------------------------
    def add_connection(self, from_id: str, to_id: str) -> Connection:
        for node_id in (from_id, to_id):
            if self.get_node(node_id) is None:
                raise NodeNotFound(node_id)
        if from_id == to_id:
            raise SelfConnection(from_id)
        if self.has_connection(from_id, to_id):
            raise DuplicateConnection(from_id, to_id)
        connection = Connection(self._next_id("connection"), from_id, to_id)
        self._connections.append(connection)
        logger.debug("Connected %s -> %s (%s)", from_id, to_id, connection.id)
        self.connectionsChanged.emit()
        self.geometryChanged.emit()
        return connection

    @Slot(str, str, result=str)
    def addConnection(self, from_id: str, to_id: str) -> str:
        try:
            return self.add_connection(from_id, to_id).id
        except FlowchartError as exc:
            self._report(exc)
            return ""

    def delete_connection(self, connection_id: str) -> bool:
        for idx, conn in enumerate(self._connections):
            if conn.id == connection_id:
                self._connections.pop(idx)
                self.connectionsChanged.emit()
                self.geometryChanged.emit()
                return True
        return False

    @Slot(str)
    def deleteConnection(self, connection_id: str) -> None:
        self.delete_connection(connection_id)

    @Slot()
    def clear(self) -> None:
        """Remove all nodes and connections."""
        self.beginResetModel()
        self._nodes.clear()
        self._connections.clear()
        self.endResetModel()
        logger.debug("Cleared diagram")
        self.nodesChanged.emit()
        self.connectionsChanged.emit()
        self.geometryChanged.emit()
        self.diagramCleared.emit()

    # --- Serialization ------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        """Serialize nodes and connections to plain data.

        Returns:
            Dictionary with ``nodes`` and ``connections`` lists.
        """
        return {
            "nodes": [
                {
                    "id": node.id,
                    "kind": node.kind.value,
                    "label": node.label,
                    "x": node.x,
                    "y": node.y,
                }
                for node in self._nodes
            ],
            "connections": [
                {"id": conn.id, "from": conn.from_id, "to": conn.to_id}
                for conn in self._connections
            ],
        }

    def from_dict(self, data: Dict[str, Any]) -> None:
        """Replace the diagram with the contents of a snapshot.

        Entries that would break the model invariants are dropped: repeated
        node ids, connections with missing endpoints, self-loops and
        repeated directions. Repeated connection ids get fresh ids,
        and non-finite coordinates are rejected. Unknown kinds load as process nodes.

        Args:
            data: Dictionary with ``nodes`` and ``connections`` (from to_dict).

        Raises:
            DocumentError: If the payload is not a snapshot object.
        """
        if not isinstance(data, dict):
            raise DocumentError("Snapshot must be a JSON object")
        nodes_data = data.get("nodes", [])
        connections_data = data.get("connections", [])
        if not isinstance(nodes_data, list) or not isinstance(connections_data, list):
            raise DocumentError("Snapshot nodes and connections must be lists")

        max_id = 0
        nodes: List[FlowNode] = []
        seen_ids = set()
        pending_ids: List[FlowNode] = []

        for node_data in nodes_data:
            if not isinstance(node_data, dict):
                continue
            node_id = str(node_data.get("id") or "")
            if node_id in seen_ids:
                logger.warning("Skipping repeated node id %s", node_id)
                continue
            max_id = max(max_id, _counter_suffix(node_id) + 1)
            try:
                kind = parse_kind(node_data.get("kind", NodeKind.PROCESS.value))
            except UnknownNodeKind:
                kind = NodeKind.PROCESS
            try:
                x = float(node_data.get("x", 0.0))
                y = float(node_data.get("y", 0.0))
            except (TypeError, ValueError, OverflowError):
                raise DocumentError(f"Invalid position for node {node_id}") from None
            if not (math.isfinite(x) and math.isfinite(y)):
                raise DocumentError(f"Invalid position for node {node_id}")
            position = clamp_position(x, y)
            node = FlowNode(
                id=node_id,
                kind=kind,
                x=position.x,
                y=position.y,
                label=str(node_data.get("label") or ""),
            )
            nodes.append(node)
            if node_id:
                seen_ids.add(node_id)
            else:
                pending_ids.append(node)

        connection_entries = []
        for conn_data in connections_data:
            if not isinstance(conn_data, dict):
                continue
            conn_id = str(conn_data.get("id") or "")
            max_id = max(max_id, _counter_suffix(conn_id) + 1)
            connection_entries.append(
                (conn_id, str(conn_data.get("from", "")), str(conn_data.get("to", "")))
            )

        # Resume id generation past every loaded counter id
        self._id_source = count(max_id)
        for node in pending_ids:
            node.id = self._next_id(node.kind.value)

        node_ids = {node.id for node in nodes}
        connections: List[Connection] = []
        pairs = set()
        seen_conn_ids = set()
        for conn_id, from_id, to_id in connection_entries:
            if from_id not in node_ids or to_id not in node_ids:
                logger.warning("Dropping dangling connection %s (%s -> %s)", conn_id, from_id, to_id)
                continue
            if from_id == to_id or (from_id, to_id) in pairs:
                logger.warning("Dropping invalid connection %s (%s -> %s)", conn_id, from_id, to_id)
                continue
            pairs.add((from_id, to_id))
            if not conn_id or conn_id in seen_conn_ids:
                conn_id = self._next_id("connection")
            seen_conn_ids.add(conn_id)
            connections.append(Connection(conn_id, from_id, to_id))

        self.beginResetModel()
        self._nodes = nodes
        self._connections = connections
        self.endResetModel()

        self.nodesChanged.emit()
        self.connectionsChanged.emit()
        self.geometryChanged.emit()
        self.diagramLoaded.emit()


def _counter_suffix(item_id: str) -> int:
    """Return the numeric suffix of a ``prefix_N`` id, or -1."""
    parts = item_id.rsplit("_", 1)
    if len(parts) == 2 and parts[1].isdigit():
        return int(parts[1])
    return -1
