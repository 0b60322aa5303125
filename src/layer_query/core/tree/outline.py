"""Render node subtrees as indented outlines."""

import io

from layer_query.core.tree.navigation import format_segment
from layer_query.models.node import SceneNode


def render_subtree_as_outline(node: SceneNode, max_depth: int | None = None) -> str:
    """Render a node and its descendants as an indented bullet list.

    Each line shows the type symbol and name, e.g. ``- @Card (1:2)``; hidden
    layers are marked ``[hidden]``.

    Args:
        node: The root node to start rendering from.
        max_depth: Max levels below the start node to include (None = unlimited).

    Returns:
        Outline string, one node per line.
    """
    out = io.StringIO()
    stack: list[tuple[SceneNode, int]] = [(node, 0)]
    while stack:
        cur, depth = stack.pop()
        indent = "    " * depth
        hidden = " [hidden]" if not cur.visible else ""
        out.write(f"{indent}- {format_segment(cur)} ({cur.id}){hidden}\n")

        child_count = len(cur.children)
        if max_depth is not None and depth == max_depth:
            # Truncation indicator when children are cut off by max_depth
            if child_count > 0:
                noun = "child" if child_count == 1 else "children"
                out.write(f"{indent}    - ... ({child_count} more {noun}, id={cur.id})\n")
            continue
        stack.extend((child, depth + 1) for child in reversed(cur.children))

    return out.getvalue()
