"""Tests for tree navigation helpers."""

from layer_query.core.tree.navigation import (
    depth_from,
    get_ancestors,
    get_node_path,
    get_result_path,
    index_path,
    is_ancestor,
    iter_descendants,
    nearest_common_ancestor,
    page_of,
)
from layer_query.models.node import NodeKind, SceneDocument, SceneNode


def _get(document: SceneDocument, node_id: str) -> SceneNode:
    node = document.get(node_id)
    assert node is not None
    return node


def test_get_ancestors_stops_below_document(document: SceneDocument) -> None:
    footer_cta = _get(document, "3:4")
    assert [a.id for a in get_ancestors(footer_cta)] == ["1:0", "2:0", "3:0", "3:3"]
    assert get_ancestors(footer_cta, include_self=True)[-1] is footer_cta


def test_page_of(document: SceneDocument) -> None:
    assert page_of(_get(document, "3:4")) is _get(document, "1:0")
    assert page_of(document.root) is None


def test_get_node_path(document: SceneDocument) -> None:
    assert get_node_path(_get(document, "3:4")) == "#Home/$Hero/@Card/@Footer/=CTA"
    assert get_node_path(_get(document, "10:2")) == "#Library/?Badge"


def test_get_node_path_skips_unsymbolled_ancestors() -> None:
    page = SceneNode(id="1", kind=NodeKind.PAGE, name="P")
    boolean = page.append(SceneNode(id="2", kind=NodeKind.OTHER, name="Union"))
    text = boolean.append(SceneNode(id="3", kind=NodeKind.TEXT, name="x"))
    assert get_node_path(text) == "#P/=x"


def test_get_result_path(document: SceneDocument) -> None:
    card = _get(document, "3:0")
    assert get_result_path(card, _get(document, "3:4")) == "#Home/$Hero/@Card/=CTA"
    assert get_result_path(card, card) == "#Home/$Hero/@Card"


def test_index_path_is_document_preorder(document: SceneDocument) -> None:
    assert index_path(_get(document, "1:0")) == (0,)
    assert index_path(_get(document, "3:4")) == (0, 0, 0, 2, 0)
    assert index_path(_get(document, "3:4")) < index_path(_get(document, "3:5"))


def test_ancestry_helpers(document: SceneDocument) -> None:
    hero, footer_cta, other_cta = (_get(document, i) for i in ("2:0", "3:4", "4:2"))
    assert is_ancestor(hero, footer_cta)
    assert not is_ancestor(footer_cta, hero)
    assert not is_ancestor(hero, hero)
    assert nearest_common_ancestor(footer_cta, other_cta) is hero
    assert depth_from(hero, footer_cta) == 3


def test_iter_descendants_preorder_with_pruning(document: SceneDocument) -> None:
    card = _get(document, "4:0")
    assert [n.id for n in iter_descendants(card)] == ["4:1", "4:2", "4:3", "4:4", "4:5"]
    visible = iter_descendants(_get(document, "1:0"), prune=lambda n: not n.visible)
    assert "6:1" not in {n.id for n in visible}
