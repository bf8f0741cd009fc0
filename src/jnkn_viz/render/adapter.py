"""
RenderAdapter protocol and the wiring shared by both adapters.

An adapter owns exactly one rendering capability handle for one mode. The
RenderManager hands it a filtered payload and a freshly built VisualCache; the
adapter installs per-entity callbacks that read whatever cache is current at
repaint time, so a refresh only has to swap the cache and re-wire.
"""

import logging
from typing import Any, Callable, Optional, Protocol

from ..config import PARTICLE_WIDTH
from ..context import ViewContext
from ..core.errors import RenderInitError
from ..core.query import GraphPayload
from ..core.result import Err, Ok, Result
from ..core.types import Edge, Node
from ..visual.props import EdgeVisualProps, NodeVisualProps, VisualCache, with_opacity
from .capability import ForceGraph, GraphFactory, RenderMode

logger = logging.getLogger(__name__)

NodeClickHandler = Callable[[Node], Any]


class RenderAdapter(Protocol):
    """One rendering mode driven through a capability handle."""

    mode: RenderMode

    @property
    def graph(self) -> Optional[ForceGraph]: ...

    def initialize(self, view: ViewContext) -> Result: ...

    def update(self, view: ViewContext, payload: GraphPayload, cache: VisualCache) -> None: ...

    def refresh(self, view: ViewContext, cache: VisualCache) -> None: ...

    def can_focus(self, node: Node) -> bool: ...

    def focus_node(self, view: ViewContext, node: Node) -> None: ...

    def clear_focus(self, view: ViewContext) -> None: ...

    def cancel_loops(self, view: ViewContext) -> None: ...

    def resize(self, width: int, height: int) -> None: ...

    def dispose(self) -> None: ...


class VisualBinding:
    """
    Per-entity callbacks bound to the adapter's current cache.

    Entities missing from the cache (a callback fired for an object of an
    older generation) fall back to the control defaults.
    """

    def __init__(self, view: ViewContext):
        self.view = view
        self.cache: Optional[VisualCache] = None

    def node_props(self, node: Node) -> Optional[NodeVisualProps]:
        return self.cache.node(node) if self.cache is not None else None

    def edge_props(self, edge: Edge) -> Optional[EdgeVisualProps]:
        return self.cache.edge(edge) if self.cache is not None else None

    def node_color(self, node: Node) -> str:
        props = self.node_props(node)
        if props is None:
            return self.view.controls.color("NODE_DEFAULT")
        return with_opacity(props.color, props.opacity)

    def link_color(self, edge: Edge) -> str:
        props = self.edge_props(edge)
        if props is None:
            return self.view.controls.color("EDGE_DEFAULT")
        return with_opacity(props.color, props.opacity)

    def node_label(self, node: Node) -> str:
        props = self.node_props(node)
        if props is None:
            return node.name or str(node.id)
        return props.label

    def node_val(self, node: Node) -> float:
        props = self.node_props(node)
        return props.size if props is not None else self.view.controls.node_size

    def link_width(self, edge: Edge) -> float:
        props = self.edge_props(edge)
        return props.width if props is not None else self.view.controls.link_width

    def link_particles(self, edge: Edge) -> int:
        props = self.edge_props(edge)
        return props.particles if props is not None else 0


def create_graph(
    factory: Optional[GraphFactory],
    mode: RenderMode,
    view: ViewContext,
    on_node_click: Optional[NodeClickHandler],
) -> Result:
    """
    Instantiate a capability handle and apply the mode-independent setup.

    Returns ``Err(RenderInitError)`` when no backend is registered for the
    mode or the backend fails to construct.
    """
    if factory is None:
        return Err(RenderInitError(f"No rendering backend registered for {mode} mode"))

    try:
        graph = factory()
    except Exception as e:
        return Err(RenderInitError(f"Error initializing {mode} graph: {e}"))

    def handle_click(node: Optional[Node]) -> None:
        if node is not None and on_node_click is not None:
            on_node_click(node)

    graph.background_color(view.background_color())
    graph.link_directional_arrow_length(view.controls.arrow_size)
    graph.link_directional_arrow_rel_pos(1)
    graph.link_directional_particle_width(PARTICLE_WIDTH)
    graph.on_node_click(handle_click)
    return Ok(graph)


def push_data(graph: ForceGraph, view: ViewContext, payload: GraphPayload) -> None:
    """Hand the filtered topology and the force parameters to the capability."""
    graph.background_color(view.background_color())
    graph.graph_data(payload.nodes, payload.links)
    graph.link_directional_arrow_length(view.controls.arrow_size)

    link_force = graph.d3_force("link")
    if link_force is not None:
        link_force.distance(view.controls.link_distance)


def wire_visuals(graph: ForceGraph, binding: VisualBinding) -> None:
    """(Re)install the per-entity visual callbacks."""
    graph.node_label(binding.node_label)
    graph.node_val(binding.node_val)
    graph.node_color(binding.node_color)
    graph.link_color(binding.link_color)
    graph.link_width(binding.link_width)
    graph.link_directional_particles(binding.link_particles)
