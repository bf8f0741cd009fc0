"""
Rendering capability protocol.

The force-directed physics/rendering libraries are external collaborators.
The engine drives them through this fixed set of verbs only, so a browser
bridge, a native binding or the headless recorder can sit behind it.

Setter verbs take either a constant or a per-entity callback; the capability
calls the callbacks whenever it repaints.
"""

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable, Optional, Protocol, Tuple

from ..core.types import Edge, Node

NodeCallback = Callable[[Node], Any]
EdgeCallback = Callable[[Edge], Any]


class RenderMode(StrEnum):
    TWO_D = "2d"
    THREE_D = "3d"

    @classmethod
    def from_flag(cls, is_3d: bool) -> "RenderMode":
        return cls.THREE_D if is_3d else cls.TWO_D


@dataclass
class Vec3:
    """Mutable 3D vector, shared by reference like a scene-graph position."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def set(self, x: float, y: float, z: float) -> "Vec3":
        self.x, self.y, self.z = x, y, z
        return self

    def copy(self) -> "Vec3":
        return Vec3(self.x, self.y, self.z)

    def length(self) -> float:
        return math.sqrt(self.x ** 2 + self.y ** 2 + self.z ** 2)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def scaled(self, factor: float) -> "Vec3":
        return Vec3(self.x * factor, self.y * factor, self.z * factor)

    @classmethod
    def of(cls, node: Node) -> "Vec3":
        return cls(node.x or 0.0, node.y or 0.0, node.z or 0.0)


@dataclass(frozen=True)
class SceneLabel:
    """A text sprite attached to a node in the 3D scene."""
    text: str
    font_size: float
    color: str
    opacity: float
    offset: Tuple[float, float, float]


class Force(Protocol):
    def distance(self, value: float) -> None: ...


class Canvas(Protocol):
    """2D drawing surface handed to canvas node hooks."""

    def fill_text(self, text: str, x: float, y: float, font: str, color: str) -> None: ...


class Camera(Protocol):
    position: Vec3

    def look_at(self, target: Vec3) -> None: ...


class OrbitControls(Protocol):
    """User camera controls. Emits ``start`` and ``end`` interaction events."""
    target: Vec3

    def add_listener(self, event: str, callback: Callable[[], Any]) -> None: ...


class ForceGraph(Protocol):
    """Verbs shared by the 2D and 3D capabilities."""

    def graph_data(self, nodes: list, links: list) -> None: ...

    def background_color(self, color: str) -> None: ...

    def node_label(self, fn: NodeCallback) -> None: ...

    def node_val(self, fn: NodeCallback) -> None: ...

    def node_color(self, fn: NodeCallback) -> None: ...

    def link_color(self, fn: EdgeCallback) -> None: ...

    def link_width(self, fn: EdgeCallback) -> None: ...

    def link_directional_particles(self, fn: EdgeCallback) -> None: ...

    def link_directional_particle_width(self, value: float) -> None: ...

    def link_directional_arrow_length(self, value: float) -> None: ...

    def link_directional_arrow_rel_pos(self, value: float) -> None: ...

    def d3_force(self, name: str) -> Optional[Force]: ...

    def d3_reheat_simulation(self) -> None: ...

    def on_node_click(self, fn: Callable[[Optional[Node]], Any]) -> None: ...

    def width(self, px: int) -> None: ...

    def height(self, px: int) -> None: ...

    def dispose(self) -> None: ...


class CanvasForceGraph(ForceGraph, Protocol):
    """2D canvas capability."""

    def node_canvas_object(self, fn: Optional[Callable[[Node, Canvas, float], Any]]) -> None: ...

    def node_canvas_object_mode(self, mode: Optional[str]) -> None: ...

    def center_at(self, x: float, y: float, ms: int) -> None: ...


class SceneForceGraph(ForceGraph, Protocol):
    """3D scene-graph capability."""

    def camera_position(
        self,
        position: Optional[Vec3] = None,
        look_at: Optional[Vec3] = None,
        ms: int = 0,
    ) -> Vec3:
        """Read the camera position, or start a transition when ``position`` is given."""
        ...

    def controls(self) -> Optional[OrbitControls]: ...

    def camera(self) -> Optional[Camera]: ...

    def node_three_object(self, fn: Optional[Callable[[Node], SceneLabel]]) -> None: ...

    def node_three_object_extend(self, extend: bool) -> None: ...


GraphFactory = Callable[[], ForceGraph]
