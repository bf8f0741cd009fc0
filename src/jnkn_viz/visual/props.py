"""
Per-pass visual properties and the identity-keyed cache that holds them.
"""

import re
from dataclasses import dataclass
from typing import Dict, Generic, Optional, Tuple, TypeVar

from ..core.types import Edge, Node

RGB_PATTERN = re.compile(r"rgba?\((\d+),\s*(\d+),\s*(\d+)(?:,\s*[\d.]+)?\)")


@dataclass(frozen=True)
class NodeVisualProps:
    color: str
    size_multiplier: float
    label: str
    opacity: float
    size: float


@dataclass(frozen=True)
class EdgeVisualProps:
    color: str
    width_multiplier: float
    particles: int
    opacity: float
    arrow_size: float
    width: float


def with_opacity(color: str, opacity: Optional[float]) -> str:
    """
    Fold an opacity into a CSS color.

    ``#rrggbb`` and ``rgb()``/``rgba()`` become ``rgba(r, g, b, opacity)``.
    Other formats, and an opacity of None or 1, return the color unchanged.
    """
    if opacity is None or opacity == 1:
        return color

    if color.startswith("#") and len(color) >= 7:
        try:
            r, g, b = (int(color[i:i + 2], 16) for i in (1, 3, 5))
        except ValueError:
            return color
        return f"rgba({r}, {g}, {b}, {opacity})"

    if color.startswith("rgb"):
        match = RGB_PATTERN.match(color)
        if match:
            r, g, b = match.groups()
            return f"rgba({r}, {g}, {b}, {opacity})"

    return color


E = TypeVar("E")
P = TypeVar("P")


class _IdentityMap(Generic[E, P]):
    """
    Map keyed by object identity.

    Entries keep a strong reference to their entity so an ``id()`` can never
    be recycled for a different object while the map is alive.
    """

    def __init__(self):
        self._entries: Dict[int, Tuple[E, P]] = {}

    def put(self, entity: E, props: P) -> None:
        self._entries[id(entity)] = (entity, props)

    def get(self, entity: E) -> Optional[P]:
        entry = self._entries.get(id(entity))
        if entry is None or entry[0] is not entity:
            return None
        return entry[1]

    def __len__(self) -> int:
        return len(self._entries)


class VisualCache:
    """
    Visual properties for one render pass of one data generation.
    """

    def __init__(self, generation: int):
        self.generation = generation
        self._nodes: _IdentityMap[Node, NodeVisualProps] = _IdentityMap()
        self._edges: _IdentityMap[Edge, EdgeVisualProps] = _IdentityMap()

    def put_node(self, node: Node, props: NodeVisualProps) -> None:
        self._nodes.put(node, props)

    def put_edge(self, edge: Edge, props: EdgeVisualProps) -> None:
        self._edges.put(edge, props)

    def node(self, node: Node) -> Optional[NodeVisualProps]:
        return self._nodes.get(node)

    def edge(self, edge: Edge) -> Optional[EdgeVisualProps]:
        return self._edges.get(edge)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)
