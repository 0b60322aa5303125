"""In-memory document host used by the CLI, the MCP server and tests."""

from collections.abc import Callable, Collection, Sequence

from layer_query.models.node import NodeKind, SceneDocument, SceneNode


class DocumentHost:
    """A :class:`~layer_query.protocols.HostProtocol` over a loaded document.

    Tracks the current page, the selection and the nodes last focused in the
    viewport. With ``skip_invisible_instance_children`` set, hidden children
    of instances are not exposed for traversal.
    """

    def __init__(
        self,
        document: SceneDocument,
        *,
        current_page: SceneNode | None = None,
        selection: Sequence[SceneNode] = (),
    ) -> None:
        pages = document.pages
        if current_page is None and not pages:
            msg = "Document has no pages"
            raise ValueError(msg)
        self.document = document
        self.skip_invisible_instance_children = True
        self._current_page = current_page or pages[0]
        self._selection: list[SceneNode] = list(selection)
        self.focused: list[SceneNode] = []

    @property
    def current_page(self) -> SceneNode:
        return self._current_page

    @property
    def selection(self) -> Sequence[SceneNode]:
        return tuple(self._selection)

    def set_current_page(self, page: SceneNode) -> None:
        if page.kind != NodeKind.PAGE:
            msg = f"Not a page: {page.id!r}"
            raise ValueError(msg)
        self._current_page = page

    def select(self, nodes: Sequence[SceneNode]) -> None:
        self._selection = list(nodes)

    def focus(self, nodes: Sequence[SceneNode]) -> None:
        self.focused = list(nodes)

    def children(self, node: SceneNode) -> Sequence[SceneNode]:
        if self.skip_invisible_instance_children and node.kind == NodeKind.INSTANCE:
            return [c for c in node.children if c.visible]
        return node.children

    def find_all(
        self,
        node: SceneNode,
        kinds: Collection[NodeKind],
        *,
        on_visit: Callable[[], None] | None = None,
    ) -> list[SceneNode]:
        found: list[SceneNode] = []
        stack = list(reversed(self.children(node)))
        while stack:
            cur = stack.pop()
            if on_visit is not None:
                on_visit()
            if cur.kind in kinds:
                found.append(cur)
            stack.extend(reversed(self.children(cur)))
        return found
