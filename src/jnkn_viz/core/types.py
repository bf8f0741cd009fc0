"""
Core type definitions for jnkn-viz.

Nodes and edges arrive from the analyzer as loosely-shaped JSON records; these
models normalize them (camelCase wire names, embedded endpoint objects) while
leaving room for the renderer to attach positions and for the graph model to
attach derived adjacency.
"""

from enum import StrEnum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..config import AUTO_ROTATE_DELAY_MS, COLORS

NodeId = Union[str, int]


class NodeKind(StrEnum):
    """Categories of code units produced by the analyzer."""
    CLASS = "Class"
    ABSTRACT_CLASS = "AbstractClass"
    INTERFACE = "Interface"
    UNKNOWN = "Unknown"


class EdgeKind(StrEnum):
    """Categories of relations between code units."""
    OBJECT_CREATE = "ObjectCreate"
    EXTENDS = "Extends"
    IMPLEMENTS = "Implements"
    TYPE_USE = "TypeUse"
    METHOD_CALL = "MethodCall"
    STACK_TRACE = "StackTrace"


class Category(StrEnum):
    """Entity category used to scope per-type colors and filters."""
    NODE = "node"
    EDGE = "edge"


class Node(BaseModel):
    """
    A code unit in the dependency graph.

    ``neighbors`` and ``links`` are derived by the GraphModel on every data
    replacement and are never serialized. ``x``/``y``/``z`` stay None until the
    physics simulation places the node.
    """
    id: NodeId
    name: Optional[str] = None
    type: Optional[str] = None
    file_path: Optional[str] = Field(default=None, alias="filePath")
    file: Optional[str] = None
    lines_of_code: Optional[int] = Field(default=None, alias="linesOfCode")

    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None

    neighbors: List["Node"] = Field(default_factory=list, exclude=True, repr=False)
    links: List["Edge"] = Field(default_factory=list, exclude=True, repr=False)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def source_path(self) -> Optional[str]:
        """File path of the node, preferring ``filePath`` over the legacy ``file``."""
        return self.file_path or self.file

    @property
    def kind(self) -> NodeKind:
        try:
            return NodeKind(self.type)
        except ValueError:
            return NodeKind.UNKNOWN

    def has_position(self, dimensions: int = 2) -> bool:
        """Check if the physics layer has assigned coordinates."""
        coords = (self.x, self.y, self.z)[:dimensions]
        return all(c is not None for c in coords)

    def summary(self) -> Dict[str, Any]:
        """Identity record sent back to the host on click."""
        return {"id": self.id, "filePath": self.source_path, "name": self.name}

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, Node):
            return self.id == other.id
        return False


class Edge(BaseModel):
    """
    Relation between two Nodes.

    Endpoints may be given as raw ids, as Node instances or as mappings with an
    ``id`` key; they are always stored as ids.
    """
    source: NodeId
    target: NodeId
    type: Optional[str] = None
    is_stack_trace_link: bool = Field(default=False, alias="isStackTraceLink")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("source", "target", mode="before")
    @classmethod
    def _endpoint_id(cls, value: Any) -> Any:
        if isinstance(value, Node):
            return value.id
        if isinstance(value, Mapping):
            return value.get("id")
        return value

    @property
    def key(self) -> Tuple[NodeId, NodeId, Optional[str]]:
        return (self.source, self.target, self.type)

    @property
    def endpoints(self) -> FrozenSet[NodeId]:
        """Unordered endpoint pair."""
        return frozenset((self.source, self.target))

    def touches(self, node_id: NodeId) -> bool:
        return self.source == node_id or self.target == node_id

    def wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def __hash__(self):
        return hash(self.key)

    def __eq__(self, other):
        if isinstance(other, Edge):
            return self.key == other.key
        return False


Node.model_rebuild()


class Controls(BaseModel):
    """
    Flat display configuration.

    Instances are frozen: every ``controls`` event yields a new snapshot via
    :meth:`merge`. Keys without a declared field (``colorClass``,
    ``showMethodCall`` ...) are kept as extras and read through :meth:`flag`.
    """
    search: str = ""
    is_3d_mode: bool = Field(default=False, alias="is3DMode")
    node_size_by_loc: bool = Field(default=False, alias="nodeSizeByLoc")
    hide_isolated_nodes: bool = Field(default=False, alias="hideIsolatedNodes")
    show_stack_trace: bool = Field(default=True, alias="showStackTrace")
    show_names: bool = Field(default=True, alias="showNames")
    short_names: bool = Field(default=True, alias="shortNames")
    auto_rotate: bool = Field(default=False, alias="autoRotate")
    rotate_speed: float = Field(default=0.3, alias="rotateSpeed")
    name_font_size: float = Field(default=12, alias="nameFontSize")
    focus_distance: Optional[float] = Field(default=200, alias="focusDistance")
    node_size: float = Field(default=3.0, alias="nodeSize")
    link_width: float = Field(default=0.5, alias="linkWidth")
    node_opacity: float = Field(default=1.0, alias="nodeOpacity")
    edge_opacity: float = Field(default=0.6, alias="edgeOpacity")
    link_distance: float = Field(default=50, alias="linkDistance")
    arrow_size: float = Field(default=3, alias="arrowSize")
    text_size: float = Field(default=12, alias="textSize")
    auto_rotate_delay: float = Field(
        default=AUTO_ROTATE_DELAY_MS,
        validation_alias=AliasChoices("autoRotateDelay", "AUTO_ROTATE_DELAY", "auto_rotate_delay"),
        serialization_alias="autoRotateDelay",
    )
    type_colors: Dict[str, Dict[str, str]] = Field(default_factory=dict, alias="typeColors")
    type_filters: Dict[str, Dict[str, bool]] = Field(default_factory=dict, alias="typeFilters")
    colors: Dict[str, str] = Field(default_factory=lambda: dict(COLORS), alias="COLORS")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    def merge(self, patch: Mapping[str, Any]) -> "Controls":
        """Return a new snapshot with ``patch`` shallow-merged over this one."""
        return Controls.model_validate({**self.to_wire(), **patch})

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def flag(self, key: str, default: Any = None) -> Any:
        """Read an undeclared flat control."""
        return (self.model_extra or {}).get(key, default)

    def color(self, key: str) -> str:
        """Scheme color, falling back to the built-in scheme."""
        return self.colors.get(key) or COLORS[key]

    def type_color(self, category: Category, type_name: Optional[str]) -> Optional[str]:
        """
        Resolve the override color for an entity type.

        ``typeColors[category][type]`` wins over the flat ``color<Type>`` key.
        """
        if not type_name:
            return None
        color = self.type_colors.get(category.value, {}).get(type_name)
        if color is None:
            color = self.flag(f"color{type_name}")
        return color if isinstance(color, str) and color else None

    def is_type_visible(self, category: Category, type_name: Optional[str]) -> bool:
        """Types are visible unless a filter or ``show<Type>`` flag hides them."""
        if not type_name:
            return True
        explicit = self.type_filters.get(category.value, {}).get(type_name)
        if explicit is not None:
            return bool(explicit)
        if category is Category.EDGE and type_name == EdgeKind.STACK_TRACE:
            return self.show_stack_trace
        return bool(self.flag(f"show{type_name}", True))
