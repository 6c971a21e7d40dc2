"""Tests for the FlowDraw diagram model."""

import random

import pytest
from PySide6.QtCore import QModelIndex

from flowdraw import (
    Connection,
    DocumentError,
    DuplicateConnection,
    FlowchartModel,
    FlowNode,
    NodeKind,
    NodeNotFound,
    SelfConnection,
    UnknownNodeKind,
)
from flowdraw.constants import RANDOM_X_RANGE, RANDOM_Y_RANGE


def assert_invariants(model):
    node_ids = {node.id for node in model.nodes()}
    pairs = [(conn.from_id, conn.to_id) for conn in model.connections()]
    assert len(pairs) == len(set(pairs))
    for from_id, to_id in pairs:
        assert from_id in node_ids
        assert to_id in node_ids
    conn_ids = [conn.id for conn in model.connections()]
    assert len(conn_ids) == len(set(conn_ids))
    for node in model.nodes():
        assert node.x >= 0 and node.y >= 0


class TestDataClasses:
    def test_flow_node_defaults(self):
        node = FlowNode(id="start_1", kind=NodeKind.START, x=10.0, y=20.0)
        assert node.label == ""

    def test_connection(self):
        conn = Connection(id="connection_1", from_id="a", to_id="b")
        assert conn.from_id == "a"
        assert conn.to_id == "b"


class TestFlowchartModelBasics:
    def test_empty_model(self, model):
        assert model.rowCount() == 0
        assert model.nodeCount == 0
        assert model.connectionCount == 0
        assert model.connectionList == []
        assert model.canConnect is False

    def test_add_node_uses_preset_label(self, model):
        node = model.add_node("decision")
        assert node.kind == NodeKind.DECISION
        assert node.label == "Decision?"
        assert (node.x, node.y) == (10.0, 20.0)
        index = model.index(0, 0)
        assert model.data(index, model.KindRole) == "decision"
        assert model.data(index, model.LabelRole) == "Decision?"
        assert model.data(index, model.ShapeRole) == "diamond"

    @pytest.mark.parametrize(
        "kind,label",
        [("start", "Start"), ("process", "Process"), ("input", "Input"), ("end", "End")],
    )
    def test_default_labels(self, model, kind, label):
        assert model.add_node(kind).label == label

    def test_add_node_slot(self, model):
        node_id = model.addNode("process")
        assert node_id == "process-1"
        assert model.nodeCount == 1

    def test_add_node_at_clamps(self, model):
        node_id = model.addNodeAt("input", -15.0, 40.0)
        node = model.get_node(node_id)
        assert (node.x, node.y) == (0.0, 40.0)

    def test_add_unknown_kind(self, model):
        errors = []
        model.errorOccurred.connect(errors.append)
        assert model.addNode("cloud") == ""
        assert model.nodeCount == 0
        assert len(errors) == 1
        with pytest.raises(UnknownNodeKind):
            model.add_node("cloud")

    def test_insertion_order_is_render_order(self, model):
        ids = [model.add_node(kind).id for kind in ("start", "process", "end")]
        assert [node.id for node in model.nodes()] == ids
        assert [model.data(model.index(row, 0), model.IdRole) for row in range(3)] == ids

    def test_default_ids_are_prefixed_counters(self, app):
        plain = FlowchartModel()
        first = plain.add_node("start")
        second = plain.add_node("end")
        assert first.id == "start_0"
        assert second.id == "end_1"

    def test_random_position_within_range(self, app):
        plain = FlowchartModel(rng=random.Random(7))
        for _ in range(20):
            node = plain.add_node("process")
            assert RANDOM_X_RANGE[0] <= node.x <= RANDOM_X_RANGE[1]
            assert RANDOM_Y_RANGE[0] <= node.y <= RANDOM_Y_RANGE[1]

    def test_update_label(self, model):
        node_id = model.add_node("process").id
        assert model.updateLabel(node_id, "Validate order") is True
        assert model.get_node(node_id).label == "Validate order"

    def test_update_label_allows_empty(self, model):
        node_id = model.add_node("process").id
        model.update_label(node_id, "")
        assert model.get_node(node_id).label == ""

    def test_update_label_missing(self, model):
        model.add_node("process")
        errors = []
        model.errorOccurred.connect(errors.append)
        assert model.updateLabel("missing", "New") is False
        assert errors == ["Node not found: missing"]
        with pytest.raises(NodeNotFound):
            model.update_label("missing", "New")

    def test_update_position(self, model):
        node_id = model.add_node("process").id
        assert model.updatePosition(node_id, 100.0, 200.0) is True
        index = model.index(0, 0)
        assert model.data(index, model.XRole) == 100.0
        assert model.data(index, model.YRole) == 200.0

    def test_update_position_clamps_negative(self, model):
        node_id = model.add_node("process").id
        model.update_position(node_id, -5.0, -0.5)
        node = model.get_node(node_id)
        assert (node.x, node.y) == (0.0, 0.0)

    def test_update_position_missing(self, model):
        assert model.updatePosition("missing", 1.0, 1.0) is False

    def test_data_invalid_index(self, model):
        assert model.data(model.index(10, 0), model.IdRole) is None
        assert model.data(QModelIndex(), model.IdRole) is None

    def test_role_names(self, model):
        roles = model.roleNames()
        assert roles[model.IdRole] == b"nodeId"
        assert roles[model.KindRole] == b"kind"
        assert roles[model.LabelRole] == b"label"
        assert roles[model.BorderColorRole] == b"borderColor"


class TestConnections:
    def test_add_connection(self, model, three_nodes):
        a, b, _ = three_nodes
        conn_id = model.addConnection(a, b)
        assert conn_id
        assert model.connectionList == [{"id": conn_id, "fromId": a, "toId": b}]

    def test_duplicate_rejected(self, model, three_nodes):
        a, b, _ = three_nodes
        model.add_connection(a, b)
        with pytest.raises(DuplicateConnection):
            model.add_connection(a, b)
        assert model.connectionCount == 1

    def test_reverse_direction_allowed(self, model, three_nodes):
        a, b, _ = three_nodes
        model.add_connection(a, b)
        model.add_connection(b, a)
        assert model.connectionCount == 2

    def test_self_connection_rejected(self, model, three_nodes):
        a, _, _ = three_nodes
        with pytest.raises(SelfConnection):
            model.add_connection(a, a)
        assert model.addConnection(a, a) == ""
        assert model.connectionCount == 0

    def test_connection_to_missing_node(self, model, three_nodes):
        a, _, _ = three_nodes
        with pytest.raises(NodeNotFound):
            model.add_connection(a, "missing")
        assert model.connectionCount == 0

    def test_delete_connection(self, model, three_nodes):
        a, b, _ = three_nodes
        conn = model.add_connection(a, b)
        assert model.delete_connection(conn.id) is True
        assert model.delete_connection(conn.id) is False
        assert model.connectionCount == 0

    def test_delete_node_cascades(self, model, three_nodes):
        a, b, c = three_nodes
        model.add_connection(a, b)
        model.add_connection(c, a)
        model.add_connection(b, c)
        model.delete_node(a)
        assert [(conn.from_id, conn.to_id) for conn in model.connections()] == [(b, c)]
        assert_invariants(model)

    def test_delete_node_two_nodes(self, model):
        a = model.add_node("start").id
        b = model.add_node("end").id
        model.add_connection(a, b)
        model.delete_node(a)
        assert model.connections() == []

    def test_delete_node_idempotent(self, model, three_nodes):
        a, b, c = three_nodes
        model.add_connection(a, b)
        model.add_connection(b, c)
        model.delete_node(b)
        once = (model.nodes(), model.connections())
        assert model.delete_node(b) is False
        assert (model.nodes(), model.connections()) == once

    def test_delete_node_emits_signal(self, model, three_nodes):
        deleted = []
        model.nodeDeleted.connect(deleted.append)
        model.deleteNode(three_nodes[0])
        model.deleteNode("missing")
        assert deleted == [three_nodes[0]]

    def test_clear(self, model, three_nodes):
        a, b, _ = three_nodes
        model.add_connection(a, b)
        cleared = []
        model.diagramCleared.connect(lambda: cleared.append(True))
        model.clear()
        assert model.nodeCount == 0
        assert model.connectionCount == 0
        assert cleared == [True]

    def test_random_operations_keep_invariants(self, model):
        rng = random.Random(42)
        kinds = [kind.value for kind in NodeKind]
        for _ in range(300):
            ids = [node.id for node in model.nodes()]
            action = rng.random()
            if action < 0.3 or len(ids) < 2:
                model.addNode(rng.choice(kinds))
            elif action < 0.7:
                model.addConnection(rng.choice(ids), rng.choice(ids))
            elif action < 0.85:
                model.deleteNode(rng.choice(ids + ["missing"]))
            else:
                model.updatePosition(rng.choice(ids), rng.uniform(-50, 500), rng.uniform(-50, 500))
            assert_invariants(model)


class TestQueries:
    def test_get_node_missing(self, model):
        assert model.get_node("missing") is None

    def test_node_at_returns_topmost(self, model):
        below = model.add_node("process", 0.0, 0.0).id
        above = model.add_node("process", 50.0, 20.0).id
        assert model.node_at(60.0, 30.0) == above
        assert model.node_at(10.0, 10.0) == below
        assert model.nodeIdAt(1000.0, 1000.0) == ""

    def test_get_node_snapshot(self, model):
        node_id = model.add_node("input", 5.0, 6.0, label="Order").id
        assert model.getNodeSnapshot(node_id) == {
            "id": node_id, "kind": "input", "label": "Order", "x": 5.0, "y": 6.0,
        }
        assert model.getNodeSnapshot("missing") == {}

    def test_edge_geometry_property(self, model):
        a = model.add_node("start", 0.0, 0.0).id
        b = model.add_node("end", 100.0, 0.0).id
        conn_id = model.addConnection(a, b)
        [entry] = model.edgeGeometry
        assert entry["id"] == conn_id
        assert (entry["x1"], entry["y1"], entry["x2"], entry["y2"]) == (60.0, 30.0, 160.0, 30.0)
        assert entry["arrow"][0] == {"x": 160.0, "y": 30.0}

    def test_edge_geometry_follows_moves(self, model):
        a = model.add_node("start", 0.0, 0.0).id
        b = model.add_node("end", 100.0, 0.0).id
        model.add_connection(a, b)
        model.update_position(b, 100.0, 200.0)
        [entry] = model.edgeGeometry
        assert (entry["x2"], entry["y2"]) == (160.0, 230.0)


class TestSerialization:
    def test_to_dict(self, model, three_nodes):
        a, b, _ = three_nodes
        conn = model.add_connection(a, b)
        data = model.to_dict()
        assert data["nodes"][0] == {"id": a, "kind": "start", "label": "Start", "x": 10.0, "y": 20.0}
        assert data["connections"] == [{"id": conn.id, "from": a, "to": b}]

    def test_from_dict_replaces_contents(self, model, three_nodes):
        data = {
            "nodes": [
                {"id": "start_3", "kind": "start", "label": "Begin", "x": 5, "y": 6},
                {"id": "end_4", "kind": "end", "label": "Done", "x": 50, "y": 60},
            ],
            "connections": [{"id": "connection_5", "from": "start_3", "to": "end_4"}],
            "timestamp": "2024-01-01T00:00:00+00:00",
        }
        model.from_dict(data)
        assert [node.id for node in model.nodes()] == ["start_3", "end_4"]
        assert model.get_node("start_3").label == "Begin"
        assert model.connectionCount == 1

    def test_from_dict_drops_invalid_connections(self, model):
        data = {
            "nodes": [
                {"id": "a", "kind": "start", "label": "A", "x": 0, "y": 0},
                {"id": "b", "kind": "end", "label": "B", "x": 0, "y": 0},
            ],
            "connections": [
                {"id": "c1", "from": "a", "to": "b"},
                {"id": "c2", "from": "a", "to": "b"},
                {"id": "c3", "from": "a", "to": "ghost"},
                {"id": "c4", "from": "b", "to": "b"},
                {"id": "c5", "from": "b", "to": "a"},
            ],
        }
        model.from_dict(data)
        assert [conn.id for conn in model.connections()] == ["c1", "c5"]
        assert_invariants(model)

    def test_from_dict_renames_repeated_connection_ids(self, model):
        model.from_dict({
            "nodes": [
                {"id": "a", "kind": "start", "label": "A", "x": 0, "y": 0},
                {"id": "b", "kind": "end", "label": "B", "x": 0, "y": 0},
            ],
            "connections": [
                {"id": "c1", "from": "a", "to": "b"},
                {"id": "c1", "from": "b", "to": "a"},
            ],
        })
        first, second = model.connections()
        assert first.id == "c1"
        assert second.id not in ("", "c1")
        assert (second.from_id, second.to_id) == ("b", "a")
        assert_invariants(model)

        assert model.delete_connection(second.id) is True
        assert [conn.id for conn in model.connections()] == ["c1"]

    @pytest.mark.parametrize("x", [10 ** 400, float("inf"), float("-inf"), float("nan")])
    def test_from_dict_rejects_unusable_coordinates(self, model, three_nodes, x):
        with pytest.raises(DocumentError):
            model.from_dict({"nodes": [{"id": "n", "kind": "start", "x": x, "y": 0}]})
        assert [node.id for node in model.nodes()] == list(three_nodes)

    def test_from_dict_unknown_kind_and_negative_position(self, model):
        model.from_dict({"nodes": [{"id": "n", "kind": "cloud", "label": "X", "x": -3, "y": 4}]})
        node = model.get_node("n")
        assert node.kind == NodeKind.PROCESS
        assert (node.x, node.y) == (0.0, 4.0)

    def test_from_dict_resumes_id_generation(self, app):
        plain = FlowchartModel()
        plain.from_dict({
            "nodes": [{"id": "process_5", "kind": "process", "label": "P", "x": 0, "y": 0}],
            "connections": [],
        })
        new_id = plain.add_node("process").id
        assert int(new_id.split("_")[1]) >= 6

    def test_roundtrip(self, model, three_nodes):
        a, b, c = three_nodes
        model.update_label(b, "Check stock")
        model.add_connection(a, b)
        model.add_connection(b, c)
        restored = FlowchartModel()
        restored.from_dict(model.to_dict())
        assert restored.nodes() == model.nodes()
        assert restored.connections() == model.connections()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
