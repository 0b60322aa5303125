"""Tests for outline rendering."""

from layer_query.core.tree.outline import render_subtree_as_outline
from layer_query.models.node import SceneDocument


def test_render_subtree(document: SceneDocument) -> None:
    footer = document.get("3:3")
    assert footer is not None
    assert render_subtree_as_outline(footer) == "- @Footer (3:3)\n    - =CTA (3:4)\n"


def test_render_marks_hidden_layers(document: SceneDocument) -> None:
    modal = document.get("6:0")
    assert modal is not None
    lines = render_subtree_as_outline(modal).splitlines()
    assert lines == [
        "- @Modal (6:0) [hidden]",
        "    - =Label (6:1)",
        "    - =Hint (6:2) [hidden]",
    ]


def test_render_truncates_at_max_depth(document: SceneDocument) -> None:
    card = document.get("3:0")
    assert card is not None
    out = render_subtree_as_outline(card, max_depth=1)
    assert "    - @Footer (3:3)\n        - ... (1 more child, id=3:3)\n" in out
    assert "=CTA (3:4)" not in out

    top = render_subtree_as_outline(card, max_depth=0)
    assert top == "- @Card (3:0)\n    - ... (4 more children, id=3:0)\n"
