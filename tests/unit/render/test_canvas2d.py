"""Unit tests for the 2D canvas adapter."""

import pytest

from jnkn_viz.context import ViewContext, default_controls
from jnkn_viz.core.model import GraphModel
from jnkn_viz.render import RenderManager, headless_backends
from jnkn_viz.scheduling import ManualScheduler


@pytest.fixture
def view():
    model = GraphModel()
    model.replace(
        [
            {"id": 1, "name": "app.Controller", "type": "Class"},
            {"id": 2, "name": "app.Service", "type": "Class"},
            {"id": 3, "name": "app.Detached", "type": "Class"},
        ],
        [{"source": 1, "target": 2, "type": "MethodCall"}],
    )
    return ViewContext(model=model, controls=default_controls(), scheduler=ManualScheduler())


@pytest.fixture
def manager(view):
    m = RenderManager(headless_backends())
    m.update(view, reheat=True)
    view.scheduler.advance(100)
    return m


class TestLabels:
    def test_labels_drawn_after_nodes(self, manager):
        assert manager.graph.callbacks["node_canvas_object_mode"] == "after"

        draws = manager.graph.paint().draws

        assert [d.text for d in draws] == ["Controller", "Service", "Detached"]
        assert all(d.font == "12px Sans-Serif" for d in draws)
        assert all(d.color == "#ffffff" for d in draws)

    def test_label_uses_node_position(self, view, manager):
        node = view.model.find_by_id(2)
        draw = manager.graph.paint().draws[1]
        assert (draw.x, draw.y) == (node.x, node.y)

    def test_unpositioned_nodes_are_skipped(self, view):
        m = RenderManager(headless_backends())
        m.update(view)
        assert m.graph.paint().draws == []

    def test_labels_dim_with_focus(self, view, manager):
        view.model.set_focus(view.model.find_by_id(1))
        manager.refresh(view)

        colors = {d.text: d.color for d in manager.graph.paint().draws}
        assert colors["Controller"] == "#ffffff"
        assert colors["Service"] == "#ffffff"
        assert colors["Detached"] == "rgba(255, 255, 255, 0.2)"

    def test_text_size_control(self, view, manager):
        view.controls = view.controls.merge({"textSize": 16})
        manager.refresh(view)
        assert manager.graph.paint().draws[0].font == "16px Sans-Serif"

    def test_show_names_off_removes_hook(self, view, manager):
        view.controls = view.controls.merge({"showNames": False})
        manager.refresh(view)

        assert manager.graph.callbacks["node_canvas_object"] is None
        assert manager.graph.paint().draws == []


class TestCallbacks:
    def test_snapshot_reflects_current_cache(self, view, manager):
        before = {n["id"]: n["color"] for n in manager.graph.snapshot()["nodes"]}
        assert before[3] == "#93c5fd"

        view.model.set_focus(view.model.find_by_id(1))
        manager.refresh(view)

        after = {n["id"]: n["color"] for n in manager.graph.snapshot()["nodes"]}
        assert after[1] == "#93c5fd"
        assert after[3] == "rgba(147, 197, 253, 0.2)"

    def test_click_forwards_node(self, view):
        clicked = []
        m = RenderManager(headless_backends(), on_node_click=clicked.append)
        m.update(view)

        m.graph.click(view.model.find_by_id(2))
        m.graph.click(None)

        assert [n.id for n in clicked] == [2]


class TestFocus:
    def test_center_on_node(self, view, manager):
        node = view.model.find_by_id(3)
        manager.focus_node(view, node)
        assert manager.graph.calls[-1] == ("center_at", (node.x, node.y, 1000))

    def test_resize(self, manager):
        manager.resize(1024, 768)
        assert manager.graph.size == (1024, 768)
