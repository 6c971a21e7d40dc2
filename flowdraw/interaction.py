"""Selection and connection workflow for FlowDraw.

The InteractionController turns discrete UI events (node clicks, canvas
clicks, toolbar commands, drops) into FlowchartModel mutations. Its state
is a single immutable InteractionState value that only refers to nodes by
id, so model updates are always seen live.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from PySide6.QtCore import Property, QObject, Signal, Slot

from .errors import FlowchartError, InsufficientNodes, NodeNotFound
from .model import FlowchartModel
from .placement import drop_position
from .types import CanvasRect, InteractionMode, InteractionState, Point

logger = logging.getLogger(__name__)

CONNECTION_HINTS = {
    InteractionMode.CONNECT_AWAITING_FIRST: "Select the source node",
    InteractionMode.CONNECT_AWAITING_SECOND: "Select the target node",
}


def _code(error: Optional[FlowchartError]) -> str:
    return error.code if error is not None else ""


class InteractionController(QObject):
    """Owns the interaction state for one editing session."""

    stateChanged = Signal()
    errorOccurred = Signal(str)
    connectionCreated = Signal(str)

    def __init__(self, model: FlowchartModel):
        super().__init__()
        self._model = model
        self._state = InteractionState()
        self._model.nodeDeleted.connect(self._on_node_deleted)
        self._model.diagramCleared.connect(self.reset)
        self._model.diagramLoaded.connect(self.reset)

    @property
    def model(self) -> FlowchartModel:
        return self._model

    @property
    def state(self) -> InteractionState:
        return self._state

    def _set_state(self, state: InteractionState) -> None:
        if state == self._state:
            return
        logger.debug("Interaction %s -> %s", self._state.mode.value, state.mode.value)
        self._state = state
        self.stateChanged.emit()

    def _fail(self, error: FlowchartError) -> FlowchartError:
        logger.warning("%s", error)
        self.errorOccurred.emit(str(error))
        return error

    # --- Event handlers -----------------------------------------------------
    def node_clicked(self, node_id: str) -> Optional[FlowchartError]:
        """Handle a click on a node.

        Outside connection mode the node becomes selected. In connection mode
        the first click picks the source and the second click picks the
        target; clicking the source again cancels the workflow.

        Returns:
            The error raised by the requested mutation, or None on success.
        """
        if self._model.get_node(node_id) is None:
            return self._fail(NodeNotFound(node_id))

        mode = self._state.mode
        if mode == InteractionMode.CONNECT_AWAITING_FIRST:
            self._set_state(InteractionState(
                mode=InteractionMode.CONNECT_AWAITING_SECOND,
                selected_node_id=node_id,
                first_node_id=node_id,
            ))
            return None

        if mode == InteractionMode.CONNECT_AWAITING_SECOND:
            first_id = self._state.first_node_id
            # Connection mode ends after the second click whatever its outcome
            self._set_state(InteractionState())
            if first_id == node_id:
                logger.info("Connection cancelled")
                return None
            try:
                connection = self._model.add_connection(first_id, node_id)
            except FlowchartError as exc:
                return self._fail(exc)
            self.connectionCreated.emit(connection.id)
            return None

        self._set_state(InteractionState(
            mode=InteractionMode.NODE_SELECTED,
            selected_node_id=node_id,
        ))
        return None

    def canvas_clicked(self) -> None:
        """Deselect on a background click; ignored while connecting."""
        if self._state.mode == InteractionMode.NODE_SELECTED:
            self._set_state(InteractionState())

    def select_node(self, node_id: Optional[str]) -> Optional[FlowchartError]:
        if node_id:
            return self.node_clicked(node_id)
        self.canvas_clicked()
        return None

    def start_connection_mode(self) -> Optional[FlowchartError]:
        node_count = len(self._model.nodes())
        if node_count < 2:
            return self._fail(InsufficientNodes(node_count))
        self._set_state(InteractionState(mode=InteractionMode.CONNECT_AWAITING_FIRST))
        return None

    def cancel_connection_mode(self) -> None:
        if self._state.is_connecting:
            self._set_state(InteractionState())

    def clear_diagram(self) -> None:
        self._model.clear()
        self.reset()

    def delete_node(self, node_id: str) -> bool:
        return self._model.delete_node(node_id)

    def drop_node(
        self,
        node_id: str,
        pointer: Optional[Point],
        canvas: CanvasRect,
    ) -> Optional[FlowchartError]:
        """Move a dragged node to where it was dropped.

        A drop without a pointer position leaves the node where it was.
        """
        position = drop_position(pointer, canvas)
        if position is None:
            return None
        try:
            self._model.update_position(node_id, position.x, position.y)
        except FlowchartError as exc:
            return self._fail(exc)
        return None

    @Slot()
    def reset(self) -> None:
        self._set_state(InteractionState())

    def _on_node_deleted(self, node_id: str) -> None:
        if node_id in (self._state.selected_node_id, self._state.first_node_id):
            self.reset()

    # --- Slots exposed to QML -----------------------------------------------
    @Slot(str, result=str)
    def nodeClicked(self, node_id: str) -> str:
        return _code(self.node_clicked(node_id))

    @Slot()
    def canvasClicked(self) -> None:
        self.canvas_clicked()

    @Slot(str, result=str)
    def selectNode(self, node_id: str) -> str:
        return _code(self.select_node(node_id))

    @Slot(result=str)
    def startConnectionMode(self) -> str:
        return _code(self.start_connection_mode())

    @Slot()
    def cancelConnectionMode(self) -> None:
        self.cancel_connection_mode()

    @Slot()
    def clearDiagram(self) -> None:
        self.clear_diagram()

    @Slot(str)
    def deleteNode(self, node_id: str) -> None:
        self.delete_node(node_id)

    @Slot(str, float, float, float, float, result=str)
    def dropNode(
        self,
        node_id: str,
        pointer_x: float,
        pointer_y: float,
        canvas_left: float,
        canvas_top: float,
    ) -> str:
        return _code(self.drop_node(node_id, Point(pointer_x, pointer_y), CanvasRect(canvas_left, canvas_top)))

    # --- Properties exposed to QML -----------------------------------------
    @Property(str, notify=stateChanged)
    def mode(self) -> str:
        return self._state.mode.value

    @Property(str, notify=stateChanged)
    def selectedNodeId(self) -> str:
        return self._state.selected_node_id or ""

    @Property(str, notify=stateChanged)
    def connectionSourceId(self) -> str:
        return self._state.first_node_id or ""

    @Property(bool, notify=stateChanged)
    def isConnecting(self) -> bool:
        return self._state.is_connecting

    @Property(str, notify=stateChanged)
    def hint(self) -> str:
        return CONNECTION_HINTS.get(self._state.mode, "")

    @Slot(result="QVariant")
    def stateSnapshot(self) -> Dict[str, Any]:
        return self._state.to_dict()
