"""
Graph state for the visualization panel.

GraphModel owns the current node/edge generation, the derived adjacency
(``Node.neighbors`` / ``Node.links``) and the transient UI state (focus,
highlighted edges, stack-trace overlay). Data is always replaced wholesale;
adjacency is a projection recomputed in full on every replacement.

The analyzer upstream is best-effort, so malformed records are dropped rather
than rejected.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Union

from pydantic import ValidationError

from .paths import PathMatcher
from .types import Edge, Node, NodeId

logger = logging.getLogger(__name__)

NodeLike = Union[Node, Mapping[str, Any]]
EdgeLike = Union[Edge, Mapping[str, Any]]


def coerce_node(item: NodeLike) -> Optional[Node]:
    if isinstance(item, Node):
        return item
    try:
        return Node.model_validate(item)
    except ValidationError as e:
        logger.debug(f"Dropping malformed node {item!r}: {e.error_count()} error(s)")
        return None


def coerce_edge(item: EdgeLike) -> Optional[Edge]:
    if isinstance(item, Edge):
        return item
    try:
        return Edge.model_validate(item)
    except ValidationError as e:
        logger.debug(f"Dropping malformed edge {item!r}: {e.error_count()} error(s)")
        return None


@dataclass
class UIState:
    """Transient interaction state. Survives data and control updates."""
    focused_node: Optional[Node] = None
    highlight_edges: Set[Edge] = field(default_factory=set)
    stack_trace_edges: Set[Edge] = field(default_factory=set)
    is_user_interacting: bool = False


class GraphModel:
    """
    Single source of truth shared by both render modes.

    Attributes:
        nodes: Current node list, in producer order.
        edges: Current edge list; only edges whose endpoints resolved.
        ui: Transient UI state.
        generation: Incremented on every replacement.
        data_version: Producer-supplied version of the current data, if any.
    """

    def __init__(self):
        self.nodes: List[Node] = []
        self.edges: List[Edge] = []
        self.ui = UIState()
        self.generation = 0
        self.data_version: Optional[int] = None
        self._by_id: Dict[NodeId, Node] = {}
        self._stack_order: List[Edge] = []
        self._stack_pairs: Set[FrozenSet[NodeId]] = set()
        self._structural_pairs: Set[FrozenSet[NodeId]] = set()

    def replace(
        self,
        nodes: Iterable[NodeLike],
        edges: Iterable[EdgeLike],
        version: Optional[int] = None,
    ) -> None:
        """
        Install a new data generation and rebuild adjacency.

        Edges whose endpoints do not resolve are dropped; the producer may
        reference nodes its own display policy filtered out. Adjacency is
        undirected even though edges keep their direction for rendering.
        """
        self._by_id = {}
        installed: List[Node] = []
        for item in nodes:
            node = coerce_node(item)
            if node is None:
                continue
            if node.id in self._by_id:
                logger.debug(f"Dropping duplicate node id {node.id!r}")
                continue
            node.neighbors = []
            node.links = []
            self._by_id[node.id] = node
            installed.append(node)

        resolved: List[Edge] = []
        dropped = 0
        for item in edges:
            edge = coerce_edge(item)
            if edge is None:
                dropped += 1
                continue
            a = self._by_id.get(edge.source)
            b = self._by_id.get(edge.target)
            if a is None or b is None:
                dropped += 1
                continue
            a.neighbors.append(b)
            a.links.append(edge)
            if b is not a:
                b.neighbors.append(a)
                b.links.append(edge)
            resolved.append(edge)

        if dropped:
            logger.debug(f"Dropped {dropped} edge(s) with unresolvable endpoints")

        self.nodes = installed
        self.edges = resolved
        self._structural_pairs = {e.endpoints for e in resolved}
        self.generation += 1
        self.data_version = version

        # Rebind focus to the new generation's object so adjacency stays current
        focused = self.ui.focused_node
        if focused is not None:
            self.ui.focused_node = self._by_id.get(focused.id)

        logger.info(
            f"Graph generation {self.generation}: {len(self.nodes)} nodes, {len(self.edges)} edges"
        )

    def find_by_id(self, node_id: Optional[NodeId]) -> Optional[Node]:
        if node_id is None:
            return None
        return self._by_id.get(node_id)

    def find_by_path(self, path: Optional[str]) -> Optional[Node]:
        """First node (in producer order) whose file path matches ``path``."""
        if not path:
            return None
        for node in self.nodes:
            if PathMatcher.match(node.source_path, path):
                return node
        return None

    def find_by_name(self, name: str) -> Optional[Node]:
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def set_focus(self, node: Optional[Node]) -> None:
        if node is None:
            self.ui.focused_node = None
            return
        self.ui.focused_node = self._by_id.get(node.id, node)

    def is_focused(self, node_id: NodeId) -> bool:
        focused = self.ui.focused_node
        return focused is not None and focused.id == node_id

    def set_highlight_edges(self, edges: Iterable[EdgeLike]) -> None:
        self.ui.highlight_edges = {e for e in map(coerce_edge, edges) if e is not None}

    def highlight_path(self, names: List[str]) -> None:
        """
        Highlight the edges joining consecutive node names.

        Unknown names break the chain at that point; an empty list clears the
        highlight.
        """
        if not names:
            self.ui.highlight_edges = set()
            return

        path_nodes = [self.find_by_name(name) for name in names]
        pairs = {
            frozenset((a.id, b.id))
            for a, b in zip(path_nodes, path_nodes[1:])
            if a is not None and b is not None
        }
        self.ui.highlight_edges = {e for e in self.edges if e.endpoints in pairs}

    def set_stack_trace_edges(self, edges: Iterable[EdgeLike]) -> None:
        ordered = list(dict.fromkeys(e for e in map(coerce_edge, edges) if e is not None))
        self.ui.stack_trace_edges = set(ordered)
        self._stack_order = ordered
        self._stack_pairs = {e.endpoints for e in ordered}

    def is_stack_trace_edge(self, edge: Edge) -> bool:
        """Flagged synthetic edges, or structural edges joining two stack frames."""
        return edge.is_stack_trace_link or edge.endpoints in self._stack_pairs

    def overlay_links(self) -> List[Edge]:
        """
        Stack-trace edges that must be drawn as links of their own.

        A stack edge whose endpoints already share a structural edge is drawn
        by restyling that edge instead. Edges touching unknown nodes are skipped.
        """
        return [
            e for e in self._stack_order
            if e.endpoints not in self._structural_pairs
            and e.source in self._by_id
            and e.target in self._by_id
        ]

    def is_highlighted(self, edge: Edge) -> bool:
        return edge in self.ui.highlight_edges

    def reset_ui(self) -> None:
        """Clear focus and highlight sets (used when the render mode flips)."""
        self.ui.focused_node = None
        self.ui.highlight_edges = set()
        self.ui.is_user_interacting = False
