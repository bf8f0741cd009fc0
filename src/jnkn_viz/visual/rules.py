"""
Rule-based visual property resolution.

Each entity starts from defaults derived from the controls, then an ordered
list of rule functions is applied. A rule returns a partial patch or None
("no opinion"); later patches override earlier keys with a plain shallow
merge. Rules that want to compose with earlier results read the accumulated
props from the RuleContext.

Focus dimming is not a rule. It runs after the rule loop so that it always
wins over any rule-derived opacity, and it only ever touches ``opacity``,
``particles`` and ``width_multiplier``.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Sequence, TypeVar

from ..config import (
    EDGE_DIM_FACTOR,
    FOCUS_PARTICLES,
    FOCUS_WIDTH_FACTOR,
    HIGHLIGHT_PARTICLES,
    HIGHLIGHT_WIDTH_FACTOR,
    LOC_SIZE_EXPONENT,
    NODE_DIM_FACTOR,
    STACK_TRACE_PARTICLES,
    STACK_TRACE_WIDTH_FACTOR,
)
from ..context import ViewContext
from ..core.model import GraphModel
from ..core.types import Category, Controls, Edge, Node, NodeId
from .props import EdgeVisualProps, NodeVisualProps, VisualCache

logger = logging.getLogger(__name__)

Patch = Optional[Dict[str, Any]]
T = TypeVar("T")


@dataclass(frozen=True)
class RuleContext:
    """What a rule may look at: the view and the props accumulated so far."""
    view: ViewContext
    props: Mapping[str, Any]

    @property
    def controls(self) -> Controls:
        return self.view.controls

    @property
    def model(self) -> GraphModel:
        return self.view.model


NodeRule = Callable[[Node, RuleContext], Patch]
EdgeRule = Callable[[Edge, RuleContext], Patch]


# --- Node rules ---

def node_type_color(node: Node, ctx: RuleContext) -> Patch:
    color = ctx.controls.type_color(Category.NODE, node.type)
    return {"color": color} if color else None


def node_size_by_metric(node: Node, ctx: RuleContext) -> Patch:
    if not ctx.controls.node_size_by_loc or not node.lines_of_code or node.lines_of_code <= 0:
        return None
    return {"size_multiplier": max(1.0, node.lines_of_code ** LOC_SIZE_EXPONENT)}


# --- Edge rules ---

def edge_type_color(edge: Edge, ctx: RuleContext) -> Patch:
    color = ctx.controls.type_color(Category.EDGE, edge.type)
    return {"color": color} if color else None


def stack_trace_overlay(edge: Edge, ctx: RuleContext) -> Patch:
    if not ctx.controls.show_stack_trace or not ctx.model.is_stack_trace_edge(edge):
        return None
    return {
        "color": ctx.controls.color("STACK_TRACE_LINK"),
        "width_multiplier": STACK_TRACE_WIDTH_FACTOR,
        "particles": STACK_TRACE_PARTICLES,
    }


def highlighted_edge(edge: Edge, ctx: RuleContext) -> Patch:
    if not ctx.model.is_highlighted(edge):
        return None
    return {"width_multiplier": HIGHLIGHT_WIDTH_FACTOR, "particles": HIGHLIGHT_PARTICLES}


DEFAULT_NODE_RULES: Sequence[NodeRule] = (node_type_color, node_size_by_metric)
DEFAULT_EDGE_RULES: Sequence[EdgeRule] = (edge_type_color, stack_trace_overlay, highlighted_edge)


def node_label(node: Node, controls: Controls) -> str:
    """Display name, optionally shortened to the part after the last dot."""
    if not node.name:
        return str(node.id)
    if controls.short_names:
        return node.name.rsplit(".", 1)[-1]
    return node.name


def apply_rules(
    entity: T,
    rules: Sequence[Callable[[T, RuleContext], Patch]],
    defaults: Dict[str, Any],
    view: ViewContext,
) -> Dict[str, Any]:
    props = dict(defaults)
    for rule in rules:
        patch = rule(entity, RuleContext(view, MappingProxyType(props)))
        if patch:
            props.update(patch)
    return props


class VisualRuleEngine:
    """
    Resolves NodeVisualProps / EdgeVisualProps for the current view.

    Resolution is pure: nodes and edges are never mutated.
    """

    def __init__(
        self,
        node_rules: Sequence[NodeRule] = DEFAULT_NODE_RULES,
        edge_rules: Sequence[EdgeRule] = DEFAULT_EDGE_RULES,
    ):
        self.node_rules = list(node_rules)
        self.edge_rules = list(edge_rules)

    @staticmethod
    def _focus_neighborhood(view: ViewContext) -> Optional[FrozenSet[NodeId]]:
        focused = view.model.ui.focused_node
        if focused is None:
            return None
        return frozenset([focused.id, *(n.id for n in focused.neighbors)])

    def node_props(self, node: Node, view: ViewContext) -> NodeVisualProps:
        return self._node_props(node, view, self._focus_neighborhood(view))

    def edge_props(self, edge: Edge, view: ViewContext) -> EdgeVisualProps:
        return self._edge_props(edge, view)

    def _node_props(
        self, node: Node, view: ViewContext, neighborhood: Optional[FrozenSet[NodeId]]
    ) -> NodeVisualProps:
        controls = view.controls
        props = apply_rules(node, self.node_rules, {
            "color": controls.color("NODE_DEFAULT"),
            "size_multiplier": 1.0,
            "label": node_label(node, controls),
            "opacity": controls.node_opacity,
        }, view)

        if neighborhood is not None and node.id not in neighborhood:
            props["opacity"] = props["opacity"] * NODE_DIM_FACTOR

        return NodeVisualProps(
            color=props["color"],
            size_multiplier=props["size_multiplier"],
            label=props["label"],
            opacity=props["opacity"],
            size=props["size_multiplier"] * controls.node_size,
        )

    def _edge_props(self, edge: Edge, view: ViewContext) -> EdgeVisualProps:
        controls = view.controls
        props = apply_rules(edge, self.edge_rules, {
            "color": controls.color("EDGE_DEFAULT"),
            "width_multiplier": 1.0,
            "particles": 0,
            "opacity": controls.edge_opacity,
            "arrow_size": controls.arrow_size,
        }, view)

        focused = view.model.ui.focused_node
        if focused is not None:
            if edge.touches(focused.id):
                props["particles"] = FOCUS_PARTICLES
                props["width_multiplier"] = props["width_multiplier"] * FOCUS_WIDTH_FACTOR
            else:
                props["opacity"] = props["opacity"] * EDGE_DIM_FACTOR

        return EdgeVisualProps(
            color=props["color"],
            width_multiplier=props["width_multiplier"],
            particles=props["particles"],
            opacity=props["opacity"],
            arrow_size=props["arrow_size"],
            width=props["width_multiplier"] * controls.link_width,
        )

    def build_cache(self, view: ViewContext) -> VisualCache:
        """Resolve every node, edge and stack-trace edge once for this pass."""
        model = view.model
        cache = VisualCache(model.generation)
        neighborhood = self._focus_neighborhood(view)

        for node in model.nodes:
            cache.put_node(node, self._node_props(node, view, neighborhood))
        for edge in model.edges:
            cache.put_edge(edge, self._edge_props(edge, view))
        for edge in model.ui.stack_trace_edges:
            cache.put_edge(edge, self._edge_props(edge, view))

        logger.debug(
            f"Visual cache for generation {cache.generation}: "
            f"{cache.node_count} nodes, {cache.edge_count} edges"
        )
        return cache
