"""Visibility policy applied per query segment."""

from enum import StrEnum

from layer_query.models.node import NodeKind, SceneNode


class VisibilityMode(StrEnum):
    """How a segment treats hidden nodes.

    DEFAULT only admits effectively visible nodes and prunes hidden branches.
    ALL admits everything. HIDDEN_ONLY (final segment under ``--h``) admits
    nodes whose own flag is off; neither of the latter prunes traversal.
    """

    DEFAULT = "default"
    ALL = "all"
    HIDDEN_ONLY = "hidden_only"

    @property
    def prunes_hidden(self) -> bool:
        return self is VisibilityMode.DEFAULT


def resolve_mode(*, hidden_only: bool, all_layers: bool, is_final: bool) -> VisibilityMode:
    if hidden_only and is_final:
        return VisibilityMode.HIDDEN_ONLY
    if hidden_only or all_layers:
        return VisibilityMode.ALL
    return VisibilityMode.DEFAULT


def is_effectively_visible(node: SceneNode, *, scope: SceneNode | None = None) -> bool:
    """True if ``node`` and every ancestor below ``scope`` are visible.

    Without a scope the walk stops at the page.
    """
    cur: SceneNode | None = node
    while cur is not None and cur is not scope:
        if cur.kind in (NodeKind.PAGE, NodeKind.DOCUMENT):
            break
        if not cur.visible:
            return False
        cur = cur.parent
    return True


def is_eligible(node: SceneNode, mode: VisibilityMode, *, scope: SceneNode | None = None) -> bool:
    """Whether ``node`` may be a match under ``mode`` when searched below ``scope``."""
    if mode is VisibilityMode.ALL:
        return True
    if mode is VisibilityMode.HIDDEN_ONLY:
        return not node.visible
    return is_effectively_visible(node, scope=scope)
