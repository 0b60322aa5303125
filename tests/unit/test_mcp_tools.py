"""Tests for MCP tool core functions."""

from layer_query.mcp.server import layer_list_pages, layer_search, layer_tree
from layer_query.models.node import SceneDocument
from tests.unit.fakes import FakeStore


def test_layer_search_returns_results_with_paths(document: SceneDocument) -> None:
    result = layer_search(document, query="@Card//CTA")
    assert result["status"] == "selected"
    assert result["count"] == 5
    assert result["scope"] == "Inside: #Home"
    first = result["results"][0]
    assert first["node_id"] == "3:2"
    assert first["type"] == "TEXT"
    assert first["path"] == "#Home/$Hero/@Card/=CTA"


def test_layer_search_inside_selection(document: SceneDocument) -> None:
    result = layer_search(document, query="/CTA", selection=["4:0"])
    assert result["scope"] == "Inside: @Card"
    assert [r["node_id"] for r in result["results"]] == ["4:2", "4:3", "4:4"]


def test_layer_search_limits_results(document: SceneDocument) -> None:
    result = layer_search(document, query="CTA", limit=2)
    assert result["count"] == 2
    assert result["total"] == 6


def test_layer_search_page_directive(document: SceneDocument) -> None:
    result = layer_search(document, query="#Library")
    assert result["status"] == "page_only"
    assert result["page"] == "Library"
    assert result["count"] == 0


def test_layer_search_stores_query(document: SceneDocument) -> None:
    store = FakeStore()
    layer_search(document, query="=Title", store=store)
    assert store.queries == ["=Title"]


def test_layer_search_errors(document: SceneDocument) -> None:
    assert "error" in layer_search(document, query="  ")
    assert layer_search(document, query="@Card", page="Nope")["error"] == "Page 'Nope' not found."
    assert layer_search(document, query="@Card", selection=["9:9"])["error"] == "Node '9:9' not found."


def test_layer_tree(document: SceneDocument) -> None:
    result = layer_tree(document, node_id="3:3")
    assert result["name"] == "Footer"
    assert "=CTA (3:4)" in result["content"]
    assert layer_tree(document, node_id="9:9") == {"error": "Node '9:9' not found."}


def test_layer_tree_defaults_to_first_page(document: SceneDocument) -> None:
    result = layer_tree(document, max_depth=1)
    assert result["node_id"] == "1:0"
    assert "$Hero (2:0)" in result["content"]


def test_layer_list_pages(document: SceneDocument) -> None:
    result = layer_list_pages(document)
    assert result["count"] == 2
    assert [p["label"] for p in result["pages"]] == ["#Home", "#Library"]
    assert result["pages"][1]["child_count"] == 2
