"""Tree navigation: ancestors, display paths, paint-order positions, traversal."""

from collections.abc import Callable, Iterator, Sequence

from layer_query.core.query.gates import TypeSymbol, symbol_for
from layer_query.models.node import NodeKind, SceneNode

ChildrenOf = Callable[[SceneNode], Sequence[SceneNode]]


def _raw_children(node: SceneNode) -> Sequence[SceneNode]:
    return node.children


def get_ancestors(node: SceneNode, *, include_self: bool = False) -> list[SceneNode]:
    """Return ancestors from the outermost (below the document root) down to the parent.

    With ``include_self`` the node itself is appended.
    """
    chain: list[SceneNode] = [node] if include_self else []
    cur = node.parent
    while cur is not None and cur.kind != NodeKind.DOCUMENT:
        chain.append(cur)
        cur = cur.parent
    chain.reverse()
    return chain


def page_of(node: SceneNode) -> SceneNode | None:
    """The page containing ``node`` (or the node itself when it is a page)."""
    cur: SceneNode | None = node
    while cur is not None and cur.kind != NodeKind.PAGE:
        cur = cur.parent
    return cur


def format_segment(node: SceneNode) -> str:
    return f"{symbol_for(node).value}{node.name}"


def get_node_path(node: SceneNode) -> str:
    """Display path such as ``#Page/$Section/@Card/=Label``.

    Ancestors without a type symbol (plain shapes, unknown kinds) are skipped;
    the node itself is always included.
    """
    chain = get_ancestors(node)
    parts = [format_segment(a) for a in chain if symbol_for(a) is not TypeSymbol.ANY]
    parts.append(format_segment(node))
    return "/".join(parts)


def get_result_path(scope: SceneNode, node: SceneNode) -> str:
    """Path of ``node`` found under ``scope``: the scope's path plus the node."""
    if node is scope:
        return get_node_path(node)
    return f"{get_node_path(scope)}/{format_segment(node)}"


def index_path(node: SceneNode) -> tuple[int, ...]:
    """Child indices from the tree root down to ``node``.

    Lexicographic order of these tuples is document pre-order.
    """
    path: list[int] = []
    cur = node
    while cur.parent is not None:
        path.append(cur.parent.children.index(cur))
        cur = cur.parent
    path.reverse()
    return tuple(path)


def tree_root(node: SceneNode) -> SceneNode:
    cur = node
    while cur.parent is not None:
        cur = cur.parent
    return cur


def nearest_common_ancestor(a: SceneNode, b: SceneNode) -> SceneNode | None:
    seen = {id(n) for n in _self_and_ancestors(a)}
    for n in _self_and_ancestors(b):
        if id(n) in seen:
            return n
    return None


def depth_from(scope: SceneNode, node: SceneNode) -> int:
    """Number of parent steps from ``node`` up to ``scope`` (0 for the scope itself)."""
    depth = 0
    cur = node
    while cur is not scope and cur.parent is not None:
        cur = cur.parent
        depth += 1
    return depth


def is_ancestor(candidate: SceneNode, node: SceneNode) -> bool:
    """True when ``candidate`` is a strict ancestor of ``node``."""
    cur = node.parent
    while cur is not None:
        if cur is candidate:
            return True
        cur = cur.parent
    return False


def iter_descendants(
    node: SceneNode,
    *,
    children_of: ChildrenOf = _raw_children,
    prune: Callable[[SceneNode], bool] | None = None,
) -> Iterator[SceneNode]:
    """Yield descendants of ``node`` in pre-order (paint order within a parent).

    Nodes for which ``prune`` returns True are skipped together with their subtrees.
    """
    stack = list(reversed(children_of(node)))
    while stack:
        cur = stack.pop()
        if prune is not None and prune(cur):
            continue
        yield cur
        stack.extend(reversed(children_of(cur)))


def _self_and_ancestors(node: SceneNode) -> Iterator[SceneNode]:
    cur: SceneNode | None = node
    while cur is not None:
        yield cur
        cur = cur.parent
