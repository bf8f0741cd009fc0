"""
3D scene adapter.

Besides the shared wiring this adapter owns two camera loops that run on the
scheduler's frame primitive:

- auto-rotation, orbiting the camera around the orbit target while
  ``autoRotate`` is on and the user is not interacting;
- keep-focus, pinning the orbit target to the focused node while the physics
  layer keeps moving it.

At most one loop runs at a time. Both re-read the live ViewContext every frame
and hand over to each other when the controls or focus change underneath them.
"""

import logging
import math
from typing import Any, Optional

from ..config import AUTO_ROTATE_DELAY_MS, FOCUS_TRANSITION_MS, SCENE_LABEL_OFFSET
from ..context import ViewContext
from ..core.query import GraphPayload
from ..core.result import Result
from ..core.types import Node
from ..visual.props import VisualCache
from .adapter import NodeClickHandler, VisualBinding, create_graph, push_data, wire_visuals
from .capability import GraphFactory, RenderMode, SceneForceGraph, SceneLabel, Vec3

logger = logging.getLogger(__name__)


class Scene3DAdapter:
    mode = RenderMode.THREE_D

    def __init__(self, factory: Optional[GraphFactory], on_node_click: Optional[NodeClickHandler] = None):
        self._factory = factory
        self._on_node_click = on_node_click
        self._graph: Optional[SceneForceGraph] = None
        self._binding: Optional[VisualBinding] = None
        self._view: Optional[ViewContext] = None

        # Scheduler handles
        self._frame: Any = None
        self._resume_timer: Any = None
        self._focus_timer: Any = None
        self._loop: Optional[str] = None

        self._start_angle = 0.0
        self._start_time = 0.0

    @property
    def graph(self) -> Optional[SceneForceGraph]:
        return self._graph

    @property
    def is_rotating(self) -> bool:
        return self._frame is not None and self._loop == "rotate"

    @property
    def is_keeping_focus(self) -> bool:
        return self._frame is not None and self._loop == "keep_focus"

    def initialize(self, view: ViewContext) -> Result:
        result = create_graph(self._factory, self.mode, view, self._on_node_click)
        if result.is_ok():
            self._graph = result.value
            self._binding = VisualBinding(view)
            self._view = view
            self._listen()
        return result

    def _listen(self) -> None:
        controls = self._graph.controls()
        if controls is None:
            logger.debug("3D graph has no orbit controls; interaction tracking disabled")
            return
        controls.add_listener("start", self._on_interaction_start)
        controls.add_listener("end", self._on_interaction_end)

    # --- Data & visuals ---

    def update(self, view: ViewContext, payload: GraphPayload, cache: VisualCache) -> None:
        if self._graph is None:
            logger.error("3D graph not initialized")
            return
        self._view = view
        push_data(self._graph, view, payload)
        self.refresh(view, cache)
        self.update_auto_rotation()

    def refresh(self, view: ViewContext, cache: VisualCache) -> None:
        if self._graph is None:
            return
        self._view = view
        self._binding.view = view
        self._binding.cache = cache
        wire_visuals(self._graph, self._binding)
        self._apply_labels(view)

        # Start a loop if the new state wants one and nothing is pending
        if self._frame is None and self._resume_timer is None and self._focus_timer is None:
            self.update_auto_rotation()

    def _apply_labels(self, view: ViewContext) -> None:
        if view.controls.show_names:
            self._graph.node_three_object(self._scene_label)
            self._graph.node_three_object_extend(True)
        else:
            self._graph.node_three_object(None)
            self._graph.node_three_object_extend(False)

    def _scene_label(self, node: Node) -> SceneLabel:
        controls = self._binding.view.controls
        props = self._binding.node_props(node)
        if props is None:
            return SceneLabel(
                text=node.name or str(node.id),
                font_size=controls.text_size or 12,
                color=controls.color("NODE_DEFAULT"),
                opacity=1.0,
                offset=SCENE_LABEL_OFFSET,
            )
        return SceneLabel(
            text=props.label,
            font_size=controls.text_size or 12,
            color=props.color,
            opacity=props.opacity,
            offset=SCENE_LABEL_OFFSET,
        )

    # --- Interaction ---

    def _resume_delay(self) -> float:
        return self._view.controls.auto_rotate_delay or AUTO_ROTATE_DELAY_MS

    def _on_interaction_start(self) -> None:
        if self._graph is None:
            return
        self._view.model.ui.is_user_interacting = True
        self._cancel(resume=True)
        self.update_auto_rotation()

    def _on_interaction_end(self) -> None:
        if self._graph is None:
            return
        self._cancel(resume=True)
        self._resume_timer = self._view.scheduler.call_later(self._resume_delay(), self._resume)

    def _resume(self) -> None:
        self._resume_timer = None
        if self._graph is None:
            return
        self._view.model.ui.is_user_interacting = False
        self.update_auto_rotation()

    # --- Camera loops ---

    def _cancel(self, resume: bool = False, focus: bool = False) -> None:
        if self._view is None:
            return
        scheduler = self._view.scheduler
        scheduler.cancel(self._frame)
        self._frame = None
        self._loop = None
        if resume:
            scheduler.cancel(self._resume_timer)
            self._resume_timer = None
        if focus:
            scheduler.cancel(self._focus_timer)
            self._focus_timer = None

    def _orbit_target(self) -> Vec3:
        controls = self._graph.controls()
        return controls.target if controls is not None else Vec3()

    def _wants_rotation(self) -> bool:
        return self._view.controls.auto_rotate and not self._view.model.ui.is_user_interacting

    def update_auto_rotation(self) -> None:
        """Stop the running loop and start whichever one the current state calls for."""
        self._cancel()
        if self._graph is None or self._view is None:
            return

        if self._wants_rotation():
            pos = self._graph.camera_position()
            target = self._orbit_target()
            self._start_angle = math.atan2(pos.x - target.x, pos.z - target.z)
            self._start_time = self._view.scheduler.now()
            self._loop = "rotate"
            self._rotate()
        elif self._view.model.ui.focused_node is not None:
            self._loop = "keep_focus"
            self._keep_focus()

    def _rotate(self) -> None:
        if self._graph is None:
            return
        view = self._view
        if not self._wants_rotation():
            self.update_auto_rotation()
            return

        camera = self._graph.camera()
        controls = self._graph.controls()
        if camera is not None and controls is not None:
            focused = view.model.ui.focused_node
            if focused is not None:
                controls.target.set(focused.x or 0.0, focused.y or 0.0, focused.z or 0.0)
            target = controls.target

            elapsed = (view.scheduler.now() - self._start_time) / 1000
            angle = self._start_angle + elapsed * view.controls.rotate_speed
            distance = math.hypot(camera.position.x - target.x, camera.position.z - target.z)
            camera.position.x = target.x + distance * math.sin(angle)
            camera.position.z = target.z + distance * math.cos(angle)
            camera.look_at(target)

        self._frame = view.scheduler.request_frame(self._rotate)

    def _keep_focus(self) -> None:
        if self._graph is None:
            return
        view = self._view
        focused = view.model.ui.focused_node
        if focused is None or self._wants_rotation():
            self.update_auto_rotation()
            return

        controls = self._graph.controls()
        if controls is not None:
            controls.target.set(focused.x or 0.0, focused.y or 0.0, focused.z or 0.0)
        self._frame = view.scheduler.request_frame(self._keep_focus)

    # --- Focus ---

    def can_focus(self, node: Node) -> bool:
        return node.has_position(3)

    def focus_node(self, view: ViewContext, node: Node) -> None:
        """
        Fly the camera to ``node``.

        The current viewing direction is kept; the camera ends up
        ``focusDistance`` away from the node (or at its current distance
        when no focus distance is configured).
        """
        if self._graph is None or not self.can_focus(node):
            return
        self._view = view

        target = Vec3.of(node)
        offset = self._graph.camera_position() - self._orbit_target()
        offset_len = offset.length() or 1.0
        distance = view.controls.focus_distance or offset_len
        camera_pos = target + offset.scaled(distance / offset_len)

        controls = self._graph.controls()
        if controls is not None:
            controls.target.set(target.x, target.y, target.z)

        self._cancel(focus=True)
        self._graph.camera_position(camera_pos, target, FOCUS_TRANSITION_MS)
        self._focus_timer = view.scheduler.call_later(FOCUS_TRANSITION_MS, self._after_focus)

    def _after_focus(self) -> None:
        self._focus_timer = None
        self.update_auto_rotation()

    def clear_focus(self, view: ViewContext) -> None:
        self._view = view
        self._cancel(focus=True)
        self.update_auto_rotation()

    def cancel_loops(self, view: ViewContext) -> None:
        """Stop the rotation or keep-focus loop and any pending focus transition."""
        self._view = view
        self._cancel(focus=True)

    def resize(self, width: int, height: int) -> None:
        if self._graph is None:
            return
        self._graph.width(width)
        self._graph.height(height)

    def dispose(self) -> None:
        self._cancel(resume=True, focus=True)
        if self._graph is not None:
            self._graph.dispose()
        self._graph = None
        self._binding = None
