from .capability import ForceGraph, RenderMode, SceneLabel, Vec3
from .headless import HeadlessForceGraph, headless_backends
from .manager import RenderManager

__all__ = [
    "ForceGraph",
    "HeadlessForceGraph",
    "RenderManager",
    "RenderMode",
    "SceneLabel",
    "Vec3",
    "headless_backends",
]
