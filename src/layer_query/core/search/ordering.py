"""Visual (reading) order over candidate nodes.

Index modifiers such as ``--3`` or ``--2e`` pick the Nth node in this order.
One strategy is chosen per candidate set so the order is a consistent total
order:

* AXIS - the enclosing scope is an auto-layout container: compare along its
  axis, then by nesting depth below the scope, then by paint order.
* ROWS - all candidates have geometry: group vertical centres into rows, top
  row first, left to right inside a row, frontmost first at equal X.
* FALLBACK - paint order at the nearest common ancestor, then Y, then X.

Every strategy finishes with document pre-order, so two distinct nodes never
compare equal.
"""

import math
from collections.abc import Iterable, Sequence
from enum import StrEnum
from functools import cmp_to_key

from layer_query.config import DEFAULT_NODE_HEIGHT, ROW_EPSILON_FACTOR, ROW_EPSILON_MIN
from layer_query.core.tree.navigation import depth_from, index_path, tree_root
from layer_query.models.node import LayoutAxis, SceneNode


class OrderStrategy(StrEnum):
    AXIS = "axis"
    ROWS = "rows"
    FALLBACK = "fallback"


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def row_epsilon(nodes: Sequence[SceneNode]) -> tuple[float, float]:
    """Return ``(average_height, epsilon)`` for a candidate set.

    Unknown heights count as zero in the average; an average of zero falls
    back to the default node height.
    """
    heights = [n.height or 0.0 for n in nodes]
    avg = sum(heights) / len(heights) if heights else 0.0
    eps = max(ROW_EPSILON_MIN, _round_half_up(ROW_EPSILON_FACTOR * (avg or DEFAULT_NODE_HEIGHT)))
    return avg, eps


def assign_rows(nodes: Sequence[SceneNode]) -> dict[SceneNode, int]:
    """Group nodes into rows by vertical centre, numbering rows top to bottom.

    A row starts at its topmost centre; a node whose centre lies more than
    the row epsilon below that start opens the next row.
    """
    if not nodes:
        return {}
    avg, eps = row_epsilon(nodes)

    def centre(n: SceneNode) -> float:
        h = n.height or avg or DEFAULT_NODE_HEIGHT
        return (n.y or 0.0) + h / 2

    ordered = sorted(nodes, key=lambda n: (centre(n), index_path(n)))
    rows: dict[SceneNode, int] = {}
    row = 0
    row_start = centre(ordered[0])
    for n in ordered:
        c = centre(n)
        if c - row_start > eps:
            row += 1
            row_start = c
        rows[n] = row
    return rows


class VisualOrder:
    """Comparator for one candidate set; build with :meth:`for_candidates`."""

    def __init__(
        self,
        strategy: OrderStrategy,
        *,
        scope: SceneNode | None = None,
        rows: dict[SceneNode, int] | None = None,
    ) -> None:
        self.strategy = strategy
        self.scope = scope
        self._rows = rows or {}
        self._paths: dict[SceneNode, tuple[int, ...]] = {}

    @classmethod
    def for_candidates(
        cls, nodes: Sequence[SceneNode], *, scope: SceneNode | None = None
    ) -> "VisualOrder":
        with_geometry = all(n.has_geometry for n in nodes)
        if scope is not None and scope.layout_axis is not None and with_geometry:
            return cls(OrderStrategy.AXIS, scope=scope)
        if with_geometry:
            return cls(OrderStrategy.ROWS, rows=assign_rows(nodes))
        return cls(OrderStrategy.FALLBACK)

    def sort(self, nodes: Iterable[SceneNode]) -> list[SceneNode]:
        return sorted(nodes, key=cmp_to_key(self.compare))

    def compare(self, a: SceneNode, b: SceneNode) -> int:
        if a is b:
            return 0
        if self.strategy is OrderStrategy.AXIS and self.scope is not None:
            result = self._compare_axis(a, b, self.scope)
        elif self.strategy is OrderStrategy.ROWS:
            result = self._compare_rows(a, b)
        else:
            result = self._compare_fallback(a, b)
        return result or self.compare_document_order(a, b)

    def _compare_rows(self, a: SceneNode, b: SceneNode) -> int:
        row_diff = self._rows.get(a, 0) - self._rows.get(b, 0)
        if row_diff:
            return _sign(row_diff)
        dx = (a.x or 0.0) - (b.x or 0.0)
        if dx:
            return _sign(dx)
        return self.compare_paint_order(a, b)

    def _compare_axis(self, a: SceneNode, b: SceneNode, scope: SceneNode) -> int:
        if scope.layout_axis is LayoutAxis.VERTICAL:
            d = (a.y or 0.0) - (b.y or 0.0)
        else:
            d = (a.x or 0.0) - (b.x or 0.0)
        if d:
            return _sign(d)
        depth_diff = depth_from(scope, a) - depth_from(scope, b)
        if depth_diff:
            return _sign(depth_diff)
        return self.compare_paint_order(a, b)

    def _compare_fallback(self, a: SceneNode, b: SceneNode) -> int:
        paint = self.compare_paint_order(a, b)
        if paint:
            return paint
        # Paint order only ties across trees; position decides there.
        if a.has_geometry and b.has_geometry:
            dy = (a.y or 0.0) - (b.y or 0.0)
            if dy:
                return _sign(dy)
            dx = (a.x or 0.0) - (b.x or 0.0)
            if dx:
                return _sign(dx)
        return 0

    def compare_paint_order(self, a: SceneNode, b: SceneNode) -> int:
        """Frontmost first where the branches of ``a`` and ``b`` diverge.

        An ancestor sorts before its descendants. Nodes from different trees
        compare equal here.
        """
        if tree_root(a) is not tree_root(b):
            return 0
        pa, pb = self._path(a), self._path(b)
        for ia, ib in zip(pa, pb, strict=False):
            if ia != ib:
                return _sign(ib - ia)
        return _sign(len(pa) - len(pb))

    def compare_document_order(self, a: SceneNode, b: SceneNode) -> int:
        """Stable last resort: document pre-order, then ids across trees."""
        if tree_root(a) is tree_root(b):
            pa, pb = self._path(a), self._path(b)
            if pa != pb:
                return -1 if pa < pb else 1
        if a.id != b.id:
            return -1 if a.id < b.id else 1
        return _sign(id(a) - id(b))

    def _path(self, node: SceneNode) -> tuple[int, ...]:
        path = self._paths.get(node)
        if path is None:
            path = index_path(node)
            self._paths[node] = path
        return path


def sort_visually(nodes: Sequence[SceneNode], *, scope: SceneNode | None = None) -> list[SceneNode]:
    """Sort ``nodes`` into reading order (see module docstring)."""
    return VisualOrder.for_candidates(nodes, scope=scope).sort(nodes)
