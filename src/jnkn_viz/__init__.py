"""
jnkn-viz - Graph visualization state and rendering-update engine.

Keeps one source of truth for a dependency graph shown in a 2D or 3D
force-directed view, resolves per-entity visual properties from the user's
controls, correlates debugger call stacks with graph nodes, and decides for
every host message between a full rebuild and a cheap visual refresh.
"""

from .context import ViewContext
from .dispatch import MessageDispatcher, build_dispatcher

__version__ = "0.1.0"

__all__ = ["MessageDispatcher", "ViewContext", "build_dispatcher"]
