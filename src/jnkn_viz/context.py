"""
Explicit view context.

Every handler, rule and adapter receives a ViewContext instead of reaching for
module-level state. Long-running loops (auto-rotation) hold on to the context
object itself and re-read it every frame, so they always see the latest
controls and focus.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .config import DEFAULT_CONTROLS
from .core.model import GraphModel
from .core.types import Controls
from .scheduling import Scheduler, default_scheduler


class HostBridge(Protocol):
    """Outbound channel to the host IDE."""

    def post_message(self, message: Dict[str, Any]) -> None: ...


class QueueHost:
    """Host bridge that keeps outbound messages in memory."""

    def __init__(self):
        self.messages: List[Dict[str, Any]] = []

    def post_message(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)


def default_controls() -> Controls:
    return Controls.model_validate(DEFAULT_CONTROLS)


@dataclass
class ViewContext:
    model: GraphModel = field(default_factory=GraphModel)
    controls: Controls = field(default_factory=default_controls)
    scheduler: Scheduler = field(default_factory=default_scheduler)
    host: Optional[HostBridge] = None
    background: Optional[str] = None

    def background_color(self) -> str:
        """Host theme background if one was provided, else the scheme's dark default."""
        return self.background or self.controls.color("BACKGROUND_DARK")

    def post(self, message: Dict[str, Any]) -> None:
        if self.host is not None:
            self.host.post_message(message)
