"""Unit tests for display filtering and search."""

import pytest

from jnkn_viz.context import default_controls
from jnkn_viz.core.model import GraphModel
from jnkn_viz.core.query import evaluate_field_query, filter_graph, matches_search
from jnkn_viz.core.types import Node


@pytest.fixture
def model():
    m = GraphModel()
    m.replace(
        [
            {"id": 1, "name": "OrderService", "type": "Class", "filePath": "/src/app/OrderService.java"},
            {"id": 2, "name": "OrderRepository", "type": "Interface", "filePath": "/src/app/OrderRepository.java"},
            {"id": 3, "name": "OrderServiceTest", "type": "Class", "filePath": "/src/test/OrderServiceTest.java"},
            {"id": 4, "name": "Orphan", "type": "Class", "filePath": "/src/app/Orphan.java"},
        ],
        [
            {"source": 1, "target": 2, "type": "TypeUse"},
            {"source": 3, "target": 1, "type": "MethodCall"},
        ],
    )
    return m


def ids(payload):
    return [n.id for n in payload.nodes]


class TestSearch:
    def test_empty_query_matches_everything(self):
        assert matches_search(Node(id=1), "")
        assert matches_search(Node(id=1), "   ")

    def test_plain_substring_on_name_or_id(self):
        node = Node(id="svc-42", name="OrderService")
        assert matches_search(node, "order")
        assert matches_search(node, "42")
        assert not matches_search(node, "payment")

    def test_field_query(self):
        node = Node(id=1, name="OrderService", type="Class", file_path="/src/app/OrderService.java")
        assert evaluate_field_query(node, "type:class")
        assert evaluate_field_query(node, "path:/app/")
        assert not evaluate_field_query(node, "name:Repository")
        assert not evaluate_field_query(node, "owner:me")

    def test_regex_value(self):
        node = Node(id=1, name="OrderRepository", file_path="/src/app/OrderRepository.java")
        assert evaluate_field_query(node, "path:/.*repository\\.java/")

    def test_invalid_regex_does_not_match(self):
        assert not evaluate_field_query(Node(id=1, name="x"), "name:/[unclosed/")

    def test_and_not(self):
        test_node = Node(id=1, name="OrderServiceTest", type="Class", file_path="/src/test/A.java")
        app_node = Node(id=2, name="OrderService", type="Class", file_path="/src/app/B.java")
        query = "type:Class and not path:/test/"
        assert not matches_search(test_node, query)
        assert matches_search(app_node, query)

    def test_or(self):
        node = Node(id=1, name="OrderDao")
        assert matches_search(node, "name:Service or name:Dao")


class TestFilterGraph:
    def test_defaults_show_everything(self, model):
        payload = filter_graph(model, default_controls())
        assert ids(payload) == [1, 2, 3, 4]
        assert len(payload.links) == 2

    def test_hidden_node_type_drops_incident_links(self, model):
        controls = default_controls().merge({"showInterface": False})
        payload = filter_graph(model, controls)
        assert ids(payload) == [1, 3, 4]
        assert [(e.source, e.target) for e in payload.links] == [(3, 1)]

    def test_type_filters_override_show_flags(self, model):
        controls = default_controls().merge({
            "showMethodCall": True,
            "typeFilters": {"edge": {"MethodCall": False}},
        })
        payload = filter_graph(model, controls)
        assert [e.type for e in payload.links] == ["TypeUse"]

    def test_hide_isolated_nodes(self, model):
        controls = default_controls().merge({"hideIsolatedNodes": True})
        assert 4 not in ids(filter_graph(model, controls))

    def test_search_keeps_links_between_survivors_only(self, model):
        controls = default_controls().merge({"search": "path:/app/"})
        payload = filter_graph(model, controls)
        assert ids(payload) == [1, 2, 4]
        assert [(e.source, e.target) for e in payload.links] == [(1, 2)]

    def test_overlay_links_follow_show_stack_trace(self, model):
        model.set_stack_trace_edges([
            {"source": 4, "target": 1, "type": "StackTrace", "isStackTraceLink": True},
        ])

        shown = filter_graph(model, default_controls())
        assert [(e.source, e.target) for e in shown.links][-1] == (4, 1)

        hidden = filter_graph(model, default_controls().merge({"showStackTrace": False}))
        assert all(e.type != "StackTrace" for e in hidden.links)

    def test_filtering_does_not_mutate_model(self, model):
        filter_graph(model, default_controls().merge({"search": "nothing-matches"}))
        assert len(model.nodes) == 4
        assert len(model.edges) == 2
