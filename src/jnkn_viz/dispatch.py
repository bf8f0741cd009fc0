"""
Inbound message dispatch.

Every message from the host is classified by its ``type`` and routed to a
handler that mutates the GraphModel/controls and then picks the cheapest
rendering path that keeps the view correct:

- full rebuild with physics reheat: new data, or a 2D/3D mode change;
- rebuild without reheat: the displayed entity set changed (filters, search,
  link distance...);
- visual refresh: everything else (colors, focus, overlays, labels).

Handlers never raise to the host: failures are logged and the view is left
as it was.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import is_display_control
from .context import HostBridge, ViewContext, default_controls
from .core.errors import MessageValidationError, UnknownMessageError
from .core.model import GraphModel
from .core.result import Err, Ok, Result
from .core.types import Controls, Node, NodeId
from .render.capability import GraphFactory, RenderMode
from .render.manager import RenderManager
from .scheduling import Scheduler, default_scheduler

logger = logging.getLogger(__name__)


# --- Wire models ---

class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NodeRef(WireModel):
    id: Optional[NodeId] = None
    file_path: Optional[str] = Field(default=None, alias="filePath")


class GraphData(WireModel):
    nodes: List[Any] = Field(default_factory=list)
    links: List[Any] = Field(default_factory=list)


class StackPath(WireModel):
    link: Optional[Dict[str, Any]] = None


class DataMessage(WireModel):
    """``data`` carries ``nodes``/``links`` at top level or under ``data``."""
    data: Optional[GraphData] = None
    nodes: List[Any] = Field(default_factory=list)
    links: List[Any] = Field(default_factory=list)
    data_version: Optional[int] = Field(default=None, alias="dataVersion")

    @property
    def graph(self) -> GraphData:
        return self.data or GraphData(nodes=self.nodes, links=self.links)


class ControlsMessage(BaseModel):
    """Flat settings at top level; a nested ``controls`` table is merged on top."""
    controls: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")

    @property
    def patch(self) -> Dict[str, Any]:
        flat = {k: v for k, v in (self.model_extra or {}).items() if k != "type"}
        return {**flat, **(self.controls or {})}


class UpdateMessage(WireModel):
    data: Optional[GraphData] = None
    controls: Optional[Dict[str, Any]] = None
    stack_trace_paths: Optional[List[StackPath]] = Field(default=None, alias="stackTracePaths")
    data_version: Optional[int] = Field(default=None, alias="dataVersion")


class StackTraceMessage(WireModel):
    paths: List[StackPath] = Field(default_factory=list)


class FocusNodeMessage(WireModel):
    file_path: Optional[str] = Field(default=None, alias="filePath")
    node: Optional[NodeRef] = None


class FocusNodeByIdMessage(WireModel):
    node_id: Optional[NodeId] = Field(default=None, alias="nodeId")
    node: Optional[NodeRef] = None


class EmptyMessage(WireModel):
    pass


class HighlightPathMessage(WireModel):
    names: List[str] = Field(default_factory=list)


class ResizeMessage(WireModel):
    width: int
    height: int


MESSAGE_MODELS: Dict[str, Type[BaseModel]] = {
    "data": DataMessage,
    "controls": ControlsMessage,
    "update": UpdateMessage,
    "stackTrace": StackTraceMessage,
    "focusNode": FocusNodeMessage,
    "focusNodeById": FocusNodeByIdMessage,
    "toggle3DMode": EmptyMessage,
    "clearFocus": EmptyMessage,
    "highlightPath": HighlightPathMessage,
    "resize": ResizeMessage,
}


def parse_message(raw: Any) -> Result:
    """
    Validate an inbound message.

    Returns:
        ``Ok((kind, model))``, or ``Err`` holding an UnknownMessageError or a
        MessageValidationError.
    """
    if not isinstance(raw, Mapping):
        return Err(MessageValidationError(f"Message is not an object: {type(raw).__name__}"))

    kind = raw.get("type")
    if not isinstance(kind, str):
        return Err(MessageValidationError("Message has no type"))

    model = MESSAGE_MODELS.get(kind)
    if model is None:
        return Err(UnknownMessageError(kind))

    try:
        return Ok((kind, model.model_validate(raw)))
    except ValidationError as e:
        return Err(MessageValidationError(f"Invalid {kind} message: {e.error_count()} error(s)"))


def stack_links(paths: List[StackPath]) -> List[Dict[str, Any]]:
    return [p.link for p in paths if p.link is not None]


class MessageDispatcher:
    """
    Routes host messages onto the GraphModel and the RenderManager.

    The dispatcher also installs itself as the renderer's node-click handler,
    forwarding clicks to the host as ``focusNode`` messages.
    """

    def __init__(self, context: ViewContext, renderer: RenderManager):
        self.context = context
        self.renderer = renderer
        self.renderer.on_node_click = self.on_node_click

        mode = RenderMode.from_flag(context.controls.is_3d_mode)
        if renderer.mode != mode:
            renderer.toggle_mode(mode)

        self._handlers: Dict[str, Callable[[Any], None]] = {
            "data": self._on_data,
            "controls": self._on_controls,
            "update": self._on_update,
            "stackTrace": self._on_stack_trace,
            "focusNode": self._on_focus_node,
            "focusNodeById": self._on_focus_node_by_id,
            "toggle3DMode": self._on_toggle_mode,
            "clearFocus": self._on_clear_focus,
            "highlightPath": self._on_highlight_path,
            "resize": self._on_resize,
        }

    @property
    def model(self) -> GraphModel:
        return self.context.model

    def start(self) -> None:
        """Announce readiness so the host sends the initial data and controls."""
        self.context.post({"type": "ready"})

    def handle(self, raw: Any) -> bool:
        """
        Handle one inbound message.

        Returns:
            True if a handler ran to completion.
        """
        result = parse_message(raw)
        if result.is_err():
            error = result.error
            if isinstance(error, UnknownMessageError):
                logger.warning(f"Unknown message type: {error.kind}")
            else:
                logger.warning(f"Ignoring message: {error}")
            return False

        kind, message = result.value
        try:
            self._handlers[kind](message)
        except Exception:
            logger.exception(f"Error handling {kind} message")
            return False
        return True

    def on_node_click(self, node: Node) -> None:
        self.context.post({"type": "focusNode", "node": node.summary()})

    # --- Controls ---

    def _apply_controls(self, patch: Mapping[str, Any]) -> Tuple[bool, bool]:
        """
        Merge a controls patch.

        Returns:
            (mode_changed, display_changed)
        """
        old = self.context.controls
        new = old.merge(patch)
        self.context.controls = new

        before, after = old.to_wire(), new.to_wire()
        changed = {k for k in after.keys() | before.keys() if before.get(k) != after.get(k)}

        mode_changed = old.is_3d_mode != new.is_3d_mode
        display_changed = any(is_display_control(k) for k in changed)
        # Overlay links enter or leave the payload with showStackTrace
        if "showStackTrace" in changed and self.model.overlay_links():
            display_changed = True

        if changed:
            logger.debug(f"Controls changed: {sorted(changed)}")
        return mode_changed, display_changed

    def _switch_mode(self) -> None:
        self.model.reset_ui()
        self.renderer.toggle_mode(RenderMode.from_flag(self.context.controls.is_3d_mode))
        self.renderer.update(self.context, reheat=True)

    # --- Handlers ---

    def _on_data(self, message: DataMessage) -> None:
        graph = message.graph
        self.model.replace(graph.nodes, graph.links, message.data_version)
        self.renderer.update(self.context, reheat=True)

    def _on_controls(self, message: ControlsMessage) -> None:
        mode_changed, display_changed = self._apply_controls(message.patch)
        if mode_changed:
            self._switch_mode()
        elif display_changed:
            self.renderer.update(self.context, reheat=False)
        else:
            self.renderer.refresh(self.context)

    def _on_update(self, message: UpdateMessage) -> None:
        data_changed = False
        if message.data is not None:
            version = message.data_version
            if version is not None and version == self.model.data_version:
                logger.debug(f"Skipping data with unchanged version {version}")
            else:
                self.model.replace(message.data.nodes, message.data.links, version)
                data_changed = True

        mode_changed = False
        if message.controls:
            mode_changed, _ = self._apply_controls(message.controls)

        if message.stack_trace_paths is not None:
            self.model.set_stack_trace_edges(stack_links(message.stack_trace_paths))

        if mode_changed:
            self._switch_mode()
        else:
            self.renderer.update(self.context, reheat=data_changed)

    def _on_stack_trace(self, message: StackTraceMessage) -> None:
        before = self.model.overlay_links()
        self.model.set_stack_trace_edges(stack_links(message.paths))
        after = self.model.overlay_links()

        # Restyling suffices unless overlay links have to enter or leave the payload
        if before != after and self.context.controls.show_stack_trace:
            self.renderer.update(self.context, reheat=False)
        else:
            self.renderer.refresh(self.context)

    def _focus(self, node: Optional[Node]) -> None:
        if node is None:
            logger.debug("Focus request matched no node")
            return
        self.model.set_focus(node)
        self.renderer.refresh(self.context)
        self.renderer.focus_node(self.context, self.model.ui.focused_node)

    def _on_focus_node(self, message: FocusNodeMessage) -> None:
        path = message.file_path or (message.node.file_path if message.node else None)
        self._focus(self.model.find_by_path(path))

    def _on_focus_node_by_id(self, message: FocusNodeByIdMessage) -> None:
        node_id = message.node_id
        if node_id is None and message.node is not None:
            node_id = message.node.id
        self._focus(self.model.find_by_id(node_id))

    def _on_toggle_mode(self, message: EmptyMessage) -> None:
        self.context.controls = self.context.controls.merge(
            {"is3DMode": not self.context.controls.is_3d_mode}
        )
        self._switch_mode()

    def _on_clear_focus(self, message: EmptyMessage) -> None:
        self.model.set_focus(None)
        self.renderer.clear_focus(self.context)
        self.renderer.refresh(self.context)

    def _on_highlight_path(self, message: HighlightPathMessage) -> None:
        self.model.highlight_path(message.names)
        self.renderer.refresh(self.context)

    def _on_resize(self, message: ResizeMessage) -> None:
        self.renderer.resize(message.width, message.height)


def build_dispatcher(
    backends: Mapping[RenderMode, GraphFactory],
    controls: Optional[Controls] = None,
    scheduler: Optional[Scheduler] = None,
    host: Optional[HostBridge] = None,
) -> MessageDispatcher:
    """
    Wire a ViewContext, a RenderManager and a dispatcher together.

    Without an explicit scheduler, deferred work runs on the running event loop
    when there is one (see ``default_scheduler``).
    """
    context = ViewContext(
        controls=controls or default_controls(),
        scheduler=scheduler or default_scheduler(),
        host=host,
    )
    mode = RenderMode.from_flag(context.controls.is_3d_mode)
    return MessageDispatcher(context, RenderManager(backends, mode=mode))
