"""
Core data layer for jnkn-viz: graph model, path matching, filtering and
debugger stack correlation.
"""

from .model import GraphModel, UIState
from .paths import PathMatcher
from .types import Category, Controls, Edge, EdgeKind, Node, NodeKind

__all__ = [
    "Category",
    "Controls",
    "Edge",
    "EdgeKind",
    "GraphModel",
    "Node",
    "NodeKind",
    "PathMatcher",
    "UIState",
]
