"""
Headless rendering backend.

Implements both capability protocols in memory: every verb is recorded, the
callbacks are kept so they can be evaluated on demand, and a reheat places
the current nodes on a ring instead of running a physics simulation. Used
by the replay CLI and by tests.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.types import Edge, Node
from .capability import GraphFactory, RenderMode, SceneLabel, Vec3

LAYOUT_RADIUS = 100.0
DEFAULT_CAMERA_DISTANCE = 300.0


@dataclass
class LinkForce:
    value: Optional[float] = None

    def distance(self, value: float) -> None:
        self.value = value


@dataclass
class HeadlessCamera:
    position: Vec3 = field(default_factory=lambda: Vec3(0.0, 0.0, DEFAULT_CAMERA_DISTANCE))
    looking_at: Optional[Vec3] = None

    def look_at(self, target: Vec3) -> None:
        self.looking_at = target.copy()


class HeadlessControls:
    """Orbit controls whose interaction events are fired by hand."""

    def __init__(self):
        self.target = Vec3()
        self._listeners: Dict[str, List[Callable[[], Any]]] = {}

    def add_listener(self, event: str, callback: Callable[[], Any]) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def emit(self, event: str) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback()


@dataclass
class TextDraw:
    text: str
    x: float
    y: float
    font: str
    color: str


class RecordingCanvas:
    def __init__(self):
        self.draws: List[TextDraw] = []

    def fill_text(self, text: str, x: float, y: float, font: str, color: str) -> None:
        self.draws.append(TextDraw(text, x, y, font, color))


class HeadlessForceGraph:
    """
    In-memory force graph.

    Attributes:
        calls: Every verb invoked, in order, as ``(name, args)``.
        nodes / links: The data last handed to :meth:`graph_data`.
        callbacks: The latest callback (or constant) per setter verb.
    """

    def __init__(self, dimensions: int = 2):
        self.dimensions = dimensions
        self.calls: List[Tuple[str, tuple]] = []
        self.nodes: List[Node] = []
        self.links: List[Edge] = []
        self.callbacks: Dict[str, Any] = {}
        self.link_force = LinkForce()
        self.reheat_count = 0
        self.size: Optional[Tuple[int, int]] = None
        self.disposed = False

        self._camera = HeadlessCamera()
        self._controls = HeadlessControls()

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def _set(self, name: str, value: Any) -> None:
        self._record(name, value)
        self.callbacks[name] = value

    def call_count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    # --- Shared verbs ---

    def graph_data(self, nodes: list, links: list) -> None:
        self._record("graph_data", len(nodes), len(links))
        self.nodes = list(nodes)
        self.links = list(links)

    def background_color(self, color: str) -> None:
        self._set("background_color", color)

    def node_label(self, fn) -> None:
        self._set("node_label", fn)

    def node_val(self, fn) -> None:
        self._set("node_val", fn)

    def node_color(self, fn) -> None:
        self._set("node_color", fn)

    def link_color(self, fn) -> None:
        self._set("link_color", fn)

    def link_width(self, fn) -> None:
        self._set("link_width", fn)

    def link_directional_particles(self, fn) -> None:
        self._set("link_directional_particles", fn)

    def link_directional_particle_width(self, value: float) -> None:
        self._set("link_directional_particle_width", value)

    def link_directional_arrow_length(self, value: float) -> None:
        self._set("link_directional_arrow_length", value)

    def link_directional_arrow_rel_pos(self, value: float) -> None:
        self._set("link_directional_arrow_rel_pos", value)

    def d3_force(self, name: str) -> Optional[LinkForce]:
        return self.link_force if name == "link" else None

    def d3_reheat_simulation(self) -> None:
        self._record("d3_reheat_simulation")
        self.reheat_count += 1
        self.layout()

    def on_node_click(self, fn) -> None:
        self._set("on_node_click", fn)

    def width(self, px: int) -> None:
        self._record("width", px)
        self.size = (px, self.size[1] if self.size else 0)

    def height(self, px: int) -> None:
        self._record("height", px)
        self.size = (self.size[0] if self.size else 0, px)

    def dispose(self) -> None:
        self._record("dispose")
        self.disposed = True

    # --- 2D verbs ---

    def node_canvas_object(self, fn) -> None:
        self._set("node_canvas_object", fn)

    def node_canvas_object_mode(self, mode: Optional[str]) -> None:
        self._set("node_canvas_object_mode", mode)

    def center_at(self, x: float, y: float, ms: int) -> None:
        self._record("center_at", x, y, ms)

    # --- 3D verbs ---

    def camera_position(
        self,
        position: Optional[Vec3] = None,
        look_at: Optional[Vec3] = None,
        ms: int = 0,
    ) -> Vec3:
        if position is not None:
            self._record("camera_position", position.copy(), look_at.copy() if look_at else None, ms)
            self._camera.position.set(position.x, position.y, position.z)
            if look_at is not None:
                self._camera.look_at(look_at)
        return self._camera.position.copy()

    def controls(self) -> HeadlessControls:
        return self._controls

    def camera(self) -> HeadlessCamera:
        return self._camera

    def node_three_object(self, fn) -> None:
        self._set("node_three_object", fn)

    def node_three_object_extend(self, extend: bool) -> None:
        self._set("node_three_object_extend", extend)

    # --- Simulation & inspection ---

    def layout(self) -> None:
        """Place the current nodes evenly on a ring around the origin."""
        count = len(self.nodes) or 1
        for i, node in enumerate(self.nodes):
            angle = 2 * math.pi * i / count
            node.x = LAYOUT_RADIUS * math.cos(angle)
            node.y = LAYOUT_RADIUS * math.sin(angle)
            if self.dimensions == 3:
                node.z = 0.0

    def click(self, node: Optional[Node]) -> None:
        handler = self.callbacks.get("on_node_click")
        if handler is not None:
            handler(node)

    def paint(self) -> RecordingCanvas:
        """Run the 2D label hook over the current nodes."""
        canvas = RecordingCanvas()
        hook = self.callbacks.get("node_canvas_object")
        if hook is not None and self.callbacks.get("node_canvas_object_mode"):
            for node in self.nodes:
                hook(node, canvas, 1.0)
        return canvas

    def scene_labels(self) -> List[SceneLabel]:
        """Run the 3D label hook over the current nodes."""
        hook = self.callbacks.get("node_three_object")
        if hook is None:
            return []
        return [hook(node) for node in self.nodes]

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        """Evaluate the visual callbacks for every rendered node and link."""
        cb = self.callbacks
        nodes = [
            {
                "id": node.id,
                "label": cb["node_label"](node) if "node_label" in cb else node.name,
                "color": cb["node_color"](node) if "node_color" in cb else None,
                "size": cb["node_val"](node) if "node_val" in cb else None,
            }
            for node in self.nodes
        ]
        links = [
            {
                "source": link.source,
                "target": link.target,
                "type": link.type,
                "color": cb["link_color"](link) if "link_color" in cb else None,
                "width": cb["link_width"](link) if "link_width" in cb else None,
                "particles": (
                    cb["link_directional_particles"](link)
                    if "link_directional_particles" in cb else 0
                ),
            }
            for link in self.links
        ]
        return {"nodes": nodes, "links": links}


def headless_backends() -> Dict[RenderMode, GraphFactory]:
    return {
        RenderMode.TWO_D: lambda: HeadlessForceGraph(dimensions=2),
        RenderMode.THREE_D: lambda: HeadlessForceGraph(dimensions=3),
    }
