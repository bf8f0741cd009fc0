"""
2D canvas adapter.

Labels are drawn by a canvas hook after the library paints each node; focus
pans the viewport onto the node.
"""

import logging
from typing import Optional

from ..config import FOCUS_TRANSITION_MS
from ..context import ViewContext
from ..core.query import GraphPayload
from ..core.result import Result
from ..core.types import Node
from ..visual.props import VisualCache, with_opacity
from .adapter import NodeClickHandler, VisualBinding, create_graph, push_data, wire_visuals
from .capability import Canvas, CanvasForceGraph, GraphFactory, RenderMode

logger = logging.getLogger(__name__)


class Canvas2DAdapter:
    mode = RenderMode.TWO_D

    def __init__(self, factory: Optional[GraphFactory], on_node_click: Optional[NodeClickHandler] = None):
        self._factory = factory
        self._on_node_click = on_node_click
        self._graph: Optional[CanvasForceGraph] = None
        self._binding: Optional[VisualBinding] = None

    @property
    def graph(self) -> Optional[CanvasForceGraph]:
        return self._graph

    def initialize(self, view: ViewContext) -> Result:
        result = create_graph(self._factory, self.mode, view, self._on_node_click)
        if result.is_ok():
            self._graph = result.value
            self._binding = VisualBinding(view)
        return result

    def update(self, view: ViewContext, payload: GraphPayload, cache: VisualCache) -> None:
        if self._graph is None:
            logger.error("2D graph not initialized")
            return
        push_data(self._graph, view, payload)
        self.refresh(view, cache)

    def refresh(self, view: ViewContext, cache: VisualCache) -> None:
        if self._graph is None:
            return
        self._binding.view = view
        self._binding.cache = cache
        wire_visuals(self._graph, self._binding)
        self._apply_labels(view)

    def _apply_labels(self, view: ViewContext) -> None:
        if view.controls.show_names:
            self._graph.node_canvas_object(self._draw_label)
            self._graph.node_canvas_object_mode("after")
        else:
            self._graph.node_canvas_object(None)
            self._graph.node_canvas_object_mode(None)

    def _draw_label(self, node: Node, canvas: Canvas, global_scale: float = 1.0) -> None:
        # global_scale is ignored: label size is fixed in graph units
        props = self._binding.node_props(node)
        if props is None or not node.has_position(2):
            return
        controls = self._binding.view.controls
        font_size = controls.text_size or 12
        color = with_opacity(controls.color("LABEL"), props.opacity)
        canvas.fill_text(props.label, node.x, node.y, f"{font_size:g}px Sans-Serif", color)

    def can_focus(self, node: Node) -> bool:
        return node.has_position(2)

    def focus_node(self, view: ViewContext, node: Node) -> None:
        if self._graph is None or not self.can_focus(node):
            return
        self._graph.center_at(node.x, node.y, FOCUS_TRANSITION_MS)

    def clear_focus(self, view: ViewContext) -> None:
        """Nothing to stop in 2D; the following refresh restores opacity."""

    def cancel_loops(self, view: ViewContext) -> None:
        """2D has no camera loops."""

    def resize(self, width: int, height: int) -> None:
        if self._graph is None:
            return
        self._graph.width(width)
        self._graph.height(height)

    def dispose(self) -> None:
        if self._graph is not None:
            self._graph.dispose()
        self._graph = None
        self._binding = None
