"""Tests for visual (reading) order."""

from layer_query.core.search.ordering import (
    OrderStrategy,
    VisualOrder,
    assign_rows,
    row_epsilon,
    sort_visually,
)
from layer_query.models.node import LayoutAxis, NodeKind, SceneNode


def _frame(layout_axis: LayoutAxis | None = None) -> SceneNode:
    page = SceneNode(id="0:1", kind=NodeKind.PAGE, name="Page")
    return page.append(SceneNode(id="1:0", kind=NodeKind.FRAME, name="Frame", layout_axis=layout_axis))


def _add(parent: SceneNode, node_id: str, x: float | None, y: float | None, h: float = 20) -> SceneNode:
    return parent.append(SceneNode(id=node_id, kind=NodeKind.TEXT, name=node_id, x=x, y=y, height=h))


def _ids(nodes: list[SceneNode]) -> list[str]:
    return [n.id for n in nodes]


def test_row_epsilon_has_a_floor() -> None:
    frame = _frame()
    assert row_epsilon([_add(frame, "a", 0, 0, h=24)]) == (24.0, 8)
    assert row_epsilon([_add(frame, "b", 0, 0, h=100)]) == (100.0, 35)


def test_row_epsilon_defaults_when_heights_unknown() -> None:
    node = SceneNode(id="a", kind=NodeKind.TEXT, x=0, y=0)
    assert row_epsilon([node]) == (0.0, 8)


def test_assign_rows_groups_close_centres() -> None:
    frame = _frame()
    a = _add(frame, "a", 0, 0)
    b = _add(frame, "b", 50, 5)
    c = _add(frame, "c", 0, 100)
    rows = assign_rows([c, b, a])
    assert rows[a] == rows[b] == 0
    assert rows[c] == 1


def test_rows_read_left_to_right_then_down() -> None:
    frame = _frame()
    lower_left = _add(frame, "lower-left", 0, 100)
    top_right = _add(frame, "top-right", 200, 4)
    top_left = _add(frame, "top-left", 0, 0)
    ordered = sort_visually([lower_left, top_right, top_left])
    assert _ids(ordered) == ["top-left", "top-right", "lower-left"]


def test_rows_break_x_ties_frontmost_first() -> None:
    frame = _frame()
    back = _add(frame, "back", 10, 10)
    front = _add(frame, "front", 10, 10)
    assert _ids(sort_visually([back, front])) == ["front", "back"]


def test_axis_order_follows_layout_direction() -> None:
    row = _frame(LayoutAxis.HORIZONTAL)
    right = _add(row, "right", 200, 0)
    left = _add(row, "left", 0, 50)
    order = VisualOrder.for_candidates([right, left], scope=row)
    assert order.strategy is OrderStrategy.AXIS
    assert _ids(order.sort([right, left])) == ["left", "right"]


def test_axis_order_puts_shallower_nodes_first_on_ties() -> None:
    column = _frame(LayoutAxis.VERTICAL)
    group = _add(column, "group", 0, 10)
    nested = _add(group, "nested", 0, 10)
    assert _ids(sort_visually([nested, group], scope=column)) == ["group", "nested"]


def test_missing_geometry_falls_back_to_paint_order() -> None:
    frame = _frame()
    back = _add(frame, "back", None, None)
    front = _add(frame, "front", 0, 0)
    order = VisualOrder.for_candidates([back, front])
    assert order.strategy is OrderStrategy.FALLBACK
    assert _ids(order.sort([back, front])) == ["front", "back"]


def test_paint_order_puts_ancestors_first() -> None:
    frame = _frame()
    parent = _add(frame, "parent", None, None)
    child = _add(parent, "child", None, None)
    assert _ids(sort_visually([child, parent])) == ["parent", "child"]


def test_nodes_from_different_trees_order_by_id() -> None:
    a = SceneNode(id="b", kind=NodeKind.TEXT)
    b = SceneNode(id="a", kind=NodeKind.TEXT)
    assert _ids(sort_visually([a, b])) == ["a", "b"]


def test_fallback_orders_other_trees_by_position() -> None:
    low = SceneNode(id="a", kind=NodeKind.TEXT, x=0, y=50)
    right = SceneNode(id="b", kind=NodeKind.TEXT, x=40, y=10)
    left = SceneNode(id="c", kind=NodeKind.TEXT, x=5, y=10)
    order = VisualOrder(OrderStrategy.FALLBACK)
    assert _ids(order.sort([low, right, left])) == ["c", "b", "a"]


def test_order_is_independent_of_input_order() -> None:
    frame = _frame()
    nodes = [_add(frame, str(i), (i * 37) % 100, (i * 53) % 90) for i in range(12)]
    assert sort_visually(nodes) == sort_visually(list(reversed(nodes)))
