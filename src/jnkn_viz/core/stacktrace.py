"""
Debugger call-stack correlation.

The debugger reports stack frames with source paths; the panel draws them as
synthetic ``StackTrace`` edges between the graph nodes those paths resolve to.
Frames are paired consecutively: each edge points from the frame at index
``i + 1`` to the frame at index ``i``.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .model import GraphModel
from .types import Edge, EdgeKind, Node

logger = logging.getLogger(__name__)


class FrameSource(BaseModel):
    path: Optional[str] = None
    name: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class StackFrame(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    source: Optional[FrameSource] = None

    model_config = ConfigDict(extra="ignore")


class DebugSession(BaseModel):
    """A captured debug session as reported by the call-stack provider."""
    session_id: str = Field(alias="sessionId")
    session_name: Optional[str] = Field(default=None, alias="sessionName")
    frames: List[StackFrame] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def captured(self) -> bool:
        return bool(self.frames)


def collect_frame_paths(frames: Iterable[StackFrame]) -> List[str]:
    """
    Flatten frames to their source paths.

    Frames without a source or with a blank path are skipped; duplicates are
    removed keeping the first occurrence.
    """
    seen: Dict[str, None] = {}
    for frame in frames:
        path = frame.source.path if frame.source else None
        if path and path.strip():
            seen.setdefault(path, None)
    return list(seen)


def link_stack_nodes(nodes: Sequence[Node]) -> List[Edge]:
    """Pair consecutive stack nodes into ``StackTrace`` edges."""
    return [
        Edge(
            source=nodes[i + 1].id,
            target=nodes[i].id,
            type=EdgeKind.STACK_TRACE.value,
            is_stack_trace_link=True,
        )
        for i in range(len(nodes) - 1)
    ]


def build_stack_trace_links(model: GraphModel, paths: Iterable[str]) -> List[Edge]:
    """Resolve frame paths to nodes and link them in stack order."""
    nodes: List[Node] = []
    unmatched = 0
    for path in paths:
        node = model.find_by_path(path)
        if node is None:
            unmatched += 1
            continue
        nodes.append(node)

    if unmatched:
        logger.debug(f"{unmatched} stack path(s) matched no graph node")
    return link_stack_nodes(nodes)


def stack_trace_message(model: GraphModel, session: Optional[DebugSession]) -> Dict[str, Any]:
    """
    Build the inbound ``stackTrace`` message for a debug session.

    A missing or empty session yields an empty overlay.
    """
    if session is None or not session.captured:
        return {"type": "stackTrace", "paths": []}

    paths = collect_frame_paths(session.frames)
    links = build_stack_trace_links(model, paths)
    logger.info(
        f"Stack trace for session {session.session_id}: {len(session.frames)} frames, "
        f"{len(paths)} unique files, {len(links)} links"
    )
    return {"type": "stackTrace", "paths": [{"link": link.wire()} for link in links]}
