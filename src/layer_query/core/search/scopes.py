"""Initial search scopes derived from the host selection."""

from layer_query.core.tree.navigation import is_ancestor, page_of
from layer_query.models.node import NodeKind, SceneNode
from layer_query.protocols import HostProtocol

ANCHOR_KINDS = frozenset(
    {
        NodeKind.SECTION,
        NodeKind.FRAME,
        NodeKind.GROUP,
        NodeKind.INSTANCE,
        NodeKind.COMPONENT,
        NodeKind.COMPONENT_SET,
    }
)


def nearest_anchor(node: SceneNode) -> SceneNode | None:
    """The node itself or its closest container ancestor, if there is one below the page."""
    cur: SceneNode | None = node
    while cur is not None and cur.kind != NodeKind.PAGE:
        if cur.kind in ANCHOR_KINDS:
            return cur
        cur = cur.parent
    return None


def prune_nested(scopes: list[SceneNode]) -> list[SceneNode]:
    """Drop scopes that sit inside another scope of the set, keeping order."""
    return [s for s in scopes if not any(is_ancestor(other, s) for other in scopes if other is not s)]


def selection_anchors(host: HostProtocol) -> list[SceneNode]:
    """Containers the selection lives in, falling back to the page for loose layers."""
    selection = list(host.selection)
    if not selection:
        return [host.current_page]

    anchors: list[SceneNode] = []
    for node in selection:
        anchor = nearest_anchor(node) or page_of(node) or host.current_page
        if anchor not in anchors:
            anchors.append(anchor)
    return anchors


def resolve_initial_scopes(
    host: HostProtocol, *, exclude_self_for_child_search: bool = False
) -> list[SceneNode]:
    """Scopes the first query segment is evaluated against.

    Without a selection this is the current page. Otherwise every selected
    node, plus (unless the query is child-only rooted) its anchor container.
    A selected layer with no container ancestor is searched on its own; the
    page never becomes a scope here.
    """
    selection = list(host.selection)
    if not selection:
        return [host.current_page]

    scopes: list[SceneNode] = []
    seen: set[int] = set()

    def add(node: SceneNode) -> None:
        if id(node) not in seen:
            seen.add(id(node))
            scopes.append(node)

    for node in selection:
        add(node)
        if not exclude_self_for_child_search:
            anchor = nearest_anchor(node)
            if anchor is not None:
                add(anchor)

    return prune_nested(scopes) or [host.current_page]
