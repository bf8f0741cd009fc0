"""
Display filtering and search queries.

Decides which part of the model is handed to the renderer: type visibility
flags, isolated-node hiding and the search box. The search box accepts either
a plain substring (matched against name and id) or field queries::

    name:Service
    type:Interface and not path:/test/
    path:/.*Repository\\.java/ or name:Dao

Field values wrapped in slashes are case-insensitive regular expressions.
"""

import logging
import re
from dataclasses import dataclass
from typing import List

from .model import GraphModel
from .types import Category, Controls, Edge, Node

logger = logging.getLogger(__name__)

FIELD_QUERY = re.compile(r"^(\w+):(.+)$")
BOOLEAN_SPLIT = re.compile(r"\s+and\s+|\s+or\s+", re.IGNORECASE)


@dataclass
class GraphPayload:
    """The filtered node/edge set pushed into the rendering capability."""
    nodes: List[Node]
    links: List[Edge]


def _field_value(node: Node, field_name: str) -> str:
    if field_name == "name":
        return node.name or ""
    if field_name == "type":
        return node.type or ""
    if field_name == "path":
        return node.source_path or ""
    return ""


def evaluate_field_query(node: Node, query: str) -> bool:
    """Evaluate a single ``field:value`` term."""
    match = FIELD_QUERY.match(query)
    if not match:
        return False

    field_name, raw_value = match.groups()
    value = _field_value(node, field_name.lower())

    if len(raw_value) > 1 and raw_value.startswith("/") and raw_value.endswith("/"):
        try:
            return re.search(raw_value[1:-1], value, re.IGNORECASE) is not None
        except re.error:
            logger.debug(f"Invalid search pattern: {raw_value}")
            return False

    return raw_value.lower() in value.lower()


def matches_search(node: Node, query: str) -> bool:
    """
    Check a node against the search box contents.

    Mixed ``and``/``or`` expressions are evaluated as a conjunction.
    """
    if not query or not query.strip():
        return True
    q = query.strip()
    lowered = q.lower()

    if ":" not in q:
        return lowered in (node.name or "").lower() or lowered in str(node.id).lower()

    has_and = " and " in lowered
    has_or = " or " in lowered
    results = []
    for term in (t.strip() for t in BOOLEAN_SPLIT.split(q)):
        if term.lower().startswith("not "):
            results.append(not evaluate_field_query(node, term[4:]))
        else:
            results.append(evaluate_field_query(node, term))

    if has_or and not has_and:
        return any(results)
    if has_and:
        return all(results)
    return results[0]


def is_node_displayed(node: Node, controls: Controls) -> bool:
    if not controls.is_type_visible(Category.NODE, node.type):
        return False
    if controls.hide_isolated_nodes and not node.neighbors:
        return False
    return matches_search(node, controls.search)


def filter_graph(model: GraphModel, controls: Controls) -> GraphPayload:
    """
    Select the nodes and links to render.

    Links are kept only when their type is visible and both endpoints survived
    node filtering. Stack-trace overlay links follow the same rule; their type
    is gated by ``showStackTrace``.
    """
    nodes = [n for n in model.nodes if is_node_displayed(n, controls)]
    visible_ids = {n.id for n in nodes}
    links = [
        e for e in [*model.edges, *model.overlay_links()]
        if controls.is_type_visible(Category.EDGE, e.type)
        and e.source in visible_ids
        and e.target in visible_ids
    ]
    return GraphPayload(nodes=nodes, links=links)
