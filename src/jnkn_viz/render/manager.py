"""
Render Manager.

Owns the single active RenderAdapter and the decision of when to (re)create
it. Adapters are never reused across modes: a mode change discards the
current adapter and its capability handle, and the next ``update`` builds a
fresh one for the new mode.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from ..config import FOCUS_RETRY_DELAY_MS, REHEAT_DELAY_MS
from ..context import ViewContext
from ..core.query import filter_graph
from ..core.types import Node
from ..scheduling import Scheduler
from ..visual.rules import VisualRuleEngine
from .adapter import NodeClickHandler, RenderAdapter
from .canvas2d import Canvas2DAdapter
from .capability import ForceGraph, GraphFactory, RenderMode
from .scene3d import Scene3DAdapter

logger = logging.getLogger(__name__)

AdapterClass = Callable[[Optional[GraphFactory], Optional[NodeClickHandler]], RenderAdapter]

ADAPTERS: Dict[RenderMode, AdapterClass] = {
    RenderMode.TWO_D: Canvas2DAdapter,
    RenderMode.THREE_D: Scene3DAdapter,
}


class RenderManager:
    """
    Lifecycle: no renderer -> initialized(mode) -> active.

    Initialization is lazy and happens on the first ``update``. When it fails
    the manager logs the error and stays inert (every call is a no-op) until
    ``toggle_mode`` switches mode or ``reinitialize`` is called.
    """

    def __init__(
        self,
        backends: Mapping[RenderMode, GraphFactory],
        engine: Optional[VisualRuleEngine] = None,
        on_node_click: Optional[NodeClickHandler] = None,
        mode: RenderMode = RenderMode.TWO_D,
    ):
        self._backends = dict(backends)
        self.engine = engine or VisualRuleEngine()
        self.on_node_click = on_node_click
        self._mode = mode
        self._adapter: Optional[RenderAdapter] = None
        self._failed = False
        self._size: Optional[Tuple[int, int]] = None

        self._scheduler: Optional[Scheduler] = None
        self._reheat: Any = None
        self._focus_retry: Any = None

    @property
    def mode(self) -> RenderMode:
        return self._mode

    @property
    def adapter(self) -> Optional[RenderAdapter]:
        return self._adapter

    @property
    def graph(self) -> Optional[ForceGraph]:
        return self._adapter.graph if self._adapter is not None else None

    @property
    def is_active(self) -> bool:
        return self._adapter is not None

    def toggle_mode(self, mode: RenderMode) -> bool:
        """
        Switch render mode.

        Returns:
            True if the mode changed, in which case the current adapter has
            been discarded.
        """
        changed = mode != self._mode
        self._mode = mode
        if changed:
            logger.info(f"Switching renderer to {mode} mode")
            self._discard()
            self._failed = False
        return changed

    def _node_clicked(self, node: Node) -> None:
        if self.on_node_click is not None:
            self.on_node_click(node)

    def reinitialize(self) -> None:
        """Drop the current adapter (or a failed init) so the next update starts fresh."""
        self._discard()
        self._failed = False

    def _ensure_adapter(self, view: ViewContext) -> Optional[RenderAdapter]:
        if self._adapter is not None:
            return self._adapter
        if self._failed:
            return None

        adapter = ADAPTERS[self._mode](self._backends.get(self._mode), self._node_clicked)
        result = adapter.initialize(view)
        if result.is_err():
            logger.error(f"Failed to initialize {self._mode} renderer: {result.error}")
            self._failed = True
            return None

        logger.info(f"Initialized {self._mode} renderer")
        self._adapter = adapter
        if self._size is not None:
            adapter.resize(*self._size)
        return adapter

    def update(self, view: ViewContext, reheat: bool = False) -> None:
        """
        Full rebuild: push the filtered topology and re-wire every callback.

        The physics reheat, when requested, runs on a later turn so the
        capability has ingested the new data first.
        """
        adapter = self._ensure_adapter(view)
        if adapter is None:
            return

        payload = filter_graph(view.model, view.controls)
        cache = self.engine.build_cache(view)
        adapter.update(view, payload, cache)
        logger.debug(
            f"Rendered {len(payload.nodes)}/{len(view.model.nodes)} nodes, "
            f"{len(payload.links)} links in {self._mode} mode"
        )

        if reheat:
            self._schedule_reheat(view, adapter)

    def _schedule_reheat(self, view: ViewContext, adapter: RenderAdapter) -> None:
        self._cancel_pending(reheat=True)
        self._scheduler = view.scheduler

        def reheat() -> None:
            self._reheat = None
            if self._adapter is adapter and adapter.graph is not None:
                adapter.graph.d3_reheat_simulation()

        self._reheat = view.scheduler.call_later(REHEAT_DELAY_MS, reheat)

    def refresh(self, view: ViewContext) -> None:
        """Visual-only update. Never pushes data and never reheats."""
        if self._adapter is None:
            return
        self._adapter.refresh(view, self.engine.build_cache(view))

    def focus_node(self, view: ViewContext, node: Optional[Node]) -> None:
        """
        Move the camera to ``node``.

        When the physics layer has not placed the node yet, retry shortly. The
        retry looks the node up again by id and gives up if it is gone or is
        no longer the focused node.
        """
        self._cancel_pending(focus=True)
        if self._adapter is None or node is None:
            return

        if self._adapter.can_focus(node):
            self._adapter.focus_node(view, node)
            return

        # A pending focus owns the camera; stop rotation until it lands
        self._adapter.cancel_loops(view)
        node_id = node.id

        def retry() -> None:
            self._focus_retry = None
            current = view.model.find_by_id(node_id)
            if current is None or not view.model.is_focused(node_id):
                logger.debug(f"Abandoning focus retry for {node_id!r}")
                return
            self.focus_node(view, current)

        self._scheduler = view.scheduler
        self._focus_retry = view.scheduler.call_later(FOCUS_RETRY_DELAY_MS, retry)

    def clear_focus(self, view: ViewContext) -> None:
        self._cancel_pending(focus=True)
        if self._adapter is not None:
            self._adapter.clear_focus(view)

    def resize(self, width: int, height: int) -> None:
        self._size = (width, height)
        if self._adapter is not None:
            self._adapter.resize(width, height)

    def dispose(self) -> None:
        self._discard()

    def _cancel_pending(self, reheat: bool = False, focus: bool = False) -> None:
        if self._scheduler is None:
            return
        if reheat:
            self._scheduler.cancel(self._reheat)
            self._reheat = None
        if focus:
            self._scheduler.cancel(self._focus_retry)
            self._focus_retry = None

    def _discard(self) -> None:
        self._cancel_pending(reheat=True, focus=True)
        if self._adapter is not None:
            self._adapter.dispose()
            self._adapter = None
