from .props import EdgeVisualProps, NodeVisualProps, VisualCache, with_opacity
from .rules import RuleContext, VisualRuleEngine

__all__ = [
    "EdgeVisualProps",
    "NodeVisualProps",
    "RuleContext",
    "VisualCache",
    "VisualRuleEngine",
    "with_opacity",
]
