"""
Error taxonomy for the visualization engine.

None of these are allowed to escape a dispatcher entry point; they exist so
internal layers can signal failure precisely and the entry points can log
them at the right level.
"""


class VizError(Exception):
    """Base class for all visualization engine errors."""


class RenderInitError(VizError):
    """The rendering capability for the requested mode is unavailable."""


class UnknownMessageError(VizError):
    """An inbound message carried a kind with no registered handler."""

    def __init__(self, kind: str):
        super().__init__(f"Unknown message type: {kind!r}")
        self.kind = kind


class MessageValidationError(VizError):
    """An inbound message payload could not be validated."""
