"""Unit tests for GraphModel."""

import pytest

from jnkn_viz.core.model import GraphModel
from jnkn_viz.core.types import Edge, Node


@pytest.fixture
def raw_graph():
    nodes = [
        {"id": "A", "name": "com.acme.A", "type": "Class", "filePath": "/src/com/acme/A.java"},
        {"id": "B", "name": "com.acme.B", "type": "Interface", "filePath": "/src/com/acme/B.java"},
        {"id": "C", "name": "com.acme.C", "type": "Class", "filePath": "/src/com/acme/C.java"},
    ]
    links = [
        {"source": "A", "target": "B", "type": "Implements"},
        {"source": {"id": "B"}, "target": {"id": "C"}, "type": "MethodCall"},
    ]
    return nodes, links


@pytest.fixture
def model(raw_graph):
    m = GraphModel()
    m.replace(*raw_graph)
    return m


class TestReplace:
    def test_adjacency_is_undirected(self, model):
        a, b, c = (model.find_by_id(i) for i in "ABC")
        assert [n.id for n in a.neighbors] == ["B"]
        assert {n.id for n in b.neighbors} == {"A", "C"}
        assert [n.id for n in c.neighbors] == ["B"]
        assert len(b.links) == 2

    def test_embedded_endpoints_are_normalized(self, model):
        assert model.edges[1].source == "B"
        assert model.edges[1].target == "C"

    def test_unresolvable_edges_are_dropped(self, raw_graph):
        nodes, links = raw_graph
        model = GraphModel()
        model.replace(nodes, links + [{"source": "A", "target": "ghost"}])
        assert len(model.edges) == 2

    def test_malformed_records_are_dropped(self, raw_graph):
        nodes, links = raw_graph
        model = GraphModel()
        model.replace(nodes + [{"name": "no id"}], links + [{"source": "A"}])
        assert len(model.nodes) == 3
        assert len(model.edges) == 2

    def test_duplicate_ids_keep_first(self):
        model = GraphModel()
        model.replace([{"id": 1, "name": "first"}, {"id": 1, "name": "second"}], [])
        assert len(model.nodes) == 1
        assert model.find_by_id(1).name == "first"

    def test_self_loop_counted_once(self):
        model = GraphModel()
        model.replace([{"id": "A"}], [{"source": "A", "target": "A"}])
        node = model.find_by_id("A")
        assert len(node.neighbors) == 1
        assert len(node.links) == 1

    def test_generation_and_version(self, raw_graph, model):
        assert model.generation == 1
        assert model.data_version is None
        model.replace(*raw_graph, version=7)
        assert model.generation == 2
        assert model.data_version == 7
        model.replace(*raw_graph)
        assert model.generation == 3
        assert model.data_version is None

    def test_focus_is_rebound_to_new_generation(self, raw_graph, model):
        old = model.find_by_id("B")
        model.set_focus(old)

        model.replace(*raw_graph)

        focused = model.ui.focused_node
        assert focused is not old
        assert focused is model.find_by_id("B")
        assert {n.id for n in focused.neighbors} == {"A", "C"}

    def test_focus_dropped_when_node_disappears(self, raw_graph, model):
        model.set_focus(model.find_by_id("C"))
        nodes, links = raw_graph
        model.replace(nodes[:2], links)
        assert model.ui.focused_node is None


class TestLookup:
    def test_find_by_path_uses_suffix_match(self, model):
        node = model.find_by_path("/opt/build/src/com/acme/B.java")
        assert node.id == "B"

    def test_find_by_path_requires_more_than_basename(self, model):
        assert model.find_by_path("/elsewhere/A.java") is None

    def test_find_by_path_first_match_wins(self):
        model = GraphModel()
        model.replace([
            {"id": 1, "filePath": "/a/pkg/X.java"},
            {"id": 2, "filePath": "/b/pkg/X.java"},
        ], [])
        assert model.find_by_path("/c/pkg/X.java").id == 1

    def test_legacy_file_field(self):
        model = GraphModel()
        model.replace([{"id": 1, "file": "/src/app/Main.java"}], [])
        assert model.find_by_path("app/Main.java").id == 1

    def test_find_by_id_missing(self, model):
        assert model.find_by_id("Z") is None
        assert model.find_by_id(None) is None


class TestUIState:
    def test_set_focus_and_clear(self, model):
        model.set_focus(model.find_by_id("A"))
        assert model.is_focused("A")
        model.set_focus(None)
        assert model.ui.focused_node is None

    def test_highlight_path(self, model):
        model.highlight_path(["com.acme.A", "com.acme.B", "com.acme.C"])
        assert {e.key for e in model.ui.highlight_edges} == {
            ("A", "B", "Implements"),
            ("B", "C", "MethodCall"),
        }
        model.highlight_path([])
        assert model.ui.highlight_edges == set()

    def test_highlight_path_breaks_on_unknown_name(self, model):
        model.highlight_path(["com.acme.A", "missing", "com.acme.C"])
        assert model.ui.highlight_edges == set()

    def test_stack_trace_membership_by_endpoint_pair(self, model):
        model.set_stack_trace_edges([
            {"source": "B", "target": "A", "type": "StackTrace", "isStackTraceLink": True},
        ])
        structural = model.edges[0]
        assert model.is_stack_trace_edge(structural)
        assert not model.is_stack_trace_edge(model.edges[1])

    def test_overlay_links_exclude_structurally_connected_pairs(self, model):
        model.set_stack_trace_edges([
            {"source": "B", "target": "A", "type": "StackTrace", "isStackTraceLink": True},
            {"source": "C", "target": "A", "type": "StackTrace", "isStackTraceLink": True},
            {"source": "Z", "target": "A", "type": "StackTrace", "isStackTraceLink": True},
        ])
        assert [(e.source, e.target) for e in model.overlay_links()] == [("C", "A")]

    def test_reset_ui_keeps_stack_trace(self, model):
        model.set_focus(model.find_by_id("A"))
        model.set_highlight_edges([model.edges[0]])
        model.set_stack_trace_edges([Edge(source="B", target="A", is_stack_trace_link=True)])
        model.ui.is_user_interacting = True

        model.reset_ui()

        assert model.ui.focused_node is None
        assert model.ui.highlight_edges == set()
        assert not model.ui.is_user_interacting
        assert len(model.ui.stack_trace_edges) == 1


class TestNodeAndEdgeTypes:
    def test_node_identity_by_id(self):
        assert Node(id=1, name="a") == Node(id=1, name="b")
        assert len({Node(id=1), Node(id=1)}) == 1

    def test_edge_wire_format(self):
        edge = Edge(source="B", target="A", type="StackTrace", is_stack_trace_link=True)
        assert edge.wire() == {
            "source": "B",
            "target": "A",
            "type": "StackTrace",
            "isStackTraceLink": True,
        }

    def test_node_summary(self):
        node = Node.model_validate({"id": 3, "name": "X", "filePath": "/x/X.java", "extra": 1})
        assert node.summary() == {"id": 3, "filePath": "/x/X.java", "name": "X"}

    def test_has_position(self):
        node = Node(id=1, x=1.0, y=2.0)
        assert node.has_position(2)
        assert not node.has_position(3)
