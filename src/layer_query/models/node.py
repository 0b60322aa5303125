"""Domain models for the scene graph being queried."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum


class NodeKind(StrEnum):
    """Concrete node type as reported by the host document."""

    DOCUMENT = "DOCUMENT"
    PAGE = "PAGE"
    SECTION = "SECTION"
    FRAME = "FRAME"
    GROUP = "GROUP"
    INSTANCE = "INSTANCE"
    COMPONENT = "COMPONENT"
    COMPONENT_SET = "COMPONENT_SET"
    RECTANGLE = "RECTANGLE"
    ELLIPSE = "ELLIPSE"
    POLYGON = "POLYGON"
    STAR = "STAR"
    LINE = "LINE"
    VECTOR = "VECTOR"
    TEXT = "TEXT"
    OTHER = "OTHER"


class LayoutAxis(StrEnum):
    """Axis along which an auto-layout container arranges its children."""

    VERTICAL = "VERTICAL"
    HORIZONTAL = "HORIZONTAL"


@dataclass(frozen=True)
class Fill:
    """A paint applied to a node. Only the paint type matters here."""

    type: str

    @property
    def is_image(self) -> bool:
        return self.type == "IMAGE"


@dataclass(eq=False)
class SceneNode:
    """A single node in a scene graph.

    Nodes compare and hash by identity. ``children`` is in paint order:
    index 0 is the backmost child. Geometry is absolute and may be unknown
    (``None``), e.g. for pages.
    """

    id: str
    kind: NodeKind
    name: str = ""
    visible: bool = True
    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None
    layout_axis: LayoutAxis | None = None
    fills: tuple[Fill, ...] = ()
    children: list["SceneNode"] = field(default_factory=list, repr=False)
    parent: "SceneNode | None" = field(default=None, repr=False)

    def append(self, child: "SceneNode") -> "SceneNode":
        """Attach ``child`` as the frontmost child and return it."""
        child.parent = self
        self.children.append(child)
        return child

    @property
    def has_geometry(self) -> bool:
        return self.x is not None and self.y is not None

    def iter_tree(self) -> Iterator["SceneNode"]:
        """Yield this node and all of its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass(eq=False)
class SceneDocument:
    """A document: a DOCUMENT-kind root whose children are pages."""

    root: SceneNode
    _by_id: dict[str, SceneNode] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.reindex()

    @property
    def pages(self) -> list[SceneNode]:
        return [p for p in self.root.children if p.kind == NodeKind.PAGE]

    def reindex(self) -> None:
        """Rebuild the id lookup table after the tree was assembled."""
        self._by_id = {n.id: n for n in self.root.iter_tree()}

    def get(self, node_id: str) -> SceneNode | None:
        return self._by_id.get(node_id)


@dataclass(frozen=True)
class SearchResult:
    """A matched node with its display path, e.g. ``#Page/@Card/=CTA``."""

    node: SceneNode
    path: str


@dataclass(frozen=True)
class SearchResponse:
    """What the engine returns for one query."""

    results: tuple[SearchResult, ...]
    page: SceneNode | None = None
    visited: int = 0

    @property
    def nodes(self) -> list[SceneNode]:
        return [r.node for r in self.results]
