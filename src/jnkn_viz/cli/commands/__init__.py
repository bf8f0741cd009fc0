"""
CLI Commands Package.

Each command is implemented in its own module.
"""

from . import replay
from . import stack

__all__ = [
    "replay",
    "stack",
]
