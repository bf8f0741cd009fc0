"""
Global Configuration and Display Defaults.

This module centralizes the default control values, the color scheme and the
timing constants the rendering engine relies on. Overrides can be supplied
from a TOML file with a ``[controls]`` table.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

# --- Color Scheme ---
COLORS: Dict[str, str] = {
    "STACK_TRACE_LINK": "#51cf66",
    "BACKGROUND_DARK": "#1a1a1a",
    "NODE_DEFAULT": "#93c5fd",
    "EDGE_DEFAULT": "#4b5563",
    "LABEL": "#ffffff",
}

# --- Timing (milliseconds) ---
# Quiet period after the user stops moving the camera before rotation resumes
AUTO_ROTATE_DELAY_MS = 1000

# Retry interval while the physics layer has not assigned coordinates yet
FOCUS_RETRY_DELAY_MS = 100

# Delay between pushing new topology and restarting the force simulation
REHEAT_DELAY_MS = 100

# Camera / centering transition duration
FOCUS_TRANSITION_MS = 1000

# Target interval of the animation-frame primitive (~60 fps)
FRAME_INTERVAL_MS = 1000 / 60

# --- Focus Styling ---
NODE_DIM_FACTOR = 0.2
EDGE_DIM_FACTOR = 0.1
FOCUS_PARTICLES = 3
FOCUS_WIDTH_FACTOR = 1.5

# Width of the directional particles travelling along links
PARTICLE_WIDTH = 2

# --- Overlay Styling ---
STACK_TRACE_WIDTH_FACTOR = 2.5
STACK_TRACE_PARTICLES = 5
HIGHLIGHT_WIDTH_FACTOR = 2.0
HIGHLIGHT_PARTICLES = 4

# Exponent applied to lines-of-code when sizing nodes by their metric
LOC_SIZE_EXPONENT = 0.7

# Offset of 3D scene labels relative to their node
SCENE_LABEL_OFFSET = (0.0, -8.0, 0.0)

# --- Default Controls ---
DEFAULT_CONTROLS: Dict[str, Any] = {
    "search": "",
    "is3DMode": False,
    "nodeSizeByLoc": False,
    "hideIsolatedNodes": False,
    "showStackTrace": True,
    "showNames": True,
    "shortNames": True,
    "autoRotate": False,
    "rotateSpeed": 0.3,
    "nameFontSize": 12,
    "focusDistance": 200,
    "nodeSize": 3.0,
    "linkWidth": 0.5,
    "nodeOpacity": 1.0,
    "edgeOpacity": 0.6,
    "linkDistance": 50,
    "arrowSize": 3,
    "textSize": 12,
    "autoRotateDelay": AUTO_ROTATE_DELAY_MS,
    # Per-type visibility
    "showClass": True,
    "showAbstractClass": True,
    "showInterface": True,
    "showUnknown": True,
    "showObjectCreate": True,
    "showExtends": True,
    "showImplements": True,
    "showTypeUse": True,
    "showMethodCall": True,
    # Per-type colors
    "colorClass": "#93c5fd",
    "colorAbstractClass": "#d8b4fe",
    "colorInterface": "#6ee7b7",
    "colorUnknown": "#9ca3af",
    "colorObjectCreate": "#fde047",
    "colorExtends": "#d8b4fe",
    "colorImplements": "#6ee7b7",
    "colorTypeUse": "#fdba74",
    "colorMethodCall": "#fda4af",
}

# Controls whose change alters the set of entities handed to the renderer
# (or its forces) rather than just their appearance.
DISPLAY_CONTROL_KEYS = frozenset({
    "search",
    "hideIsolatedNodes",
    "typeFilters",
    "linkDistance",
    "arrowSize",
})


def is_display_control(key: str) -> bool:
    """Check if changing a control requires re-pushing graph data."""
    if key in DISPLAY_CONTROL_KEYS:
        return True
    # show<Type> flags filter entities; the label/overlay toggles are cosmetic
    return key.startswith("show") and key not in {"showNames", "showStackTrace"}


def load_controls_file(path: Path) -> Dict[str, Any]:
    """
    Load control overrides from the ``[controls]`` table of a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        The overrides found, or an empty dict when the file or table is absent.
    """
    if not path.exists():
        logger.debug(f"No controls file at {path}")
        return {}

    with path.open("rb") as f:
        data = tomllib.load(f)

    controls = data.get("controls", {})
    if not isinstance(controls, dict):
        logger.warning(f"Ignoring non-table [controls] entry in {path}")
        return {}
    return controls
