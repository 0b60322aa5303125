"""MCP server exposing layer queries over a scene document."""

import os
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from layer_query.config import STATE_DB_NAME, resolve_data_directory
from layer_query.core.database.schema import LastQueryStore
from layer_query.core.importer.json_reader import load_document
from layer_query.core.query.gates import symbol_for
from layer_query.core.tree.outline import render_subtree_as_outline
from layer_query.host import DocumentHost
from layer_query.models.node import SceneDocument
from layer_query.protocols import QueryStoreProtocol
from layer_query.runner import run_query, selection_label

DOCUMENT_ENV = "LAYER_QUERY_DOCUMENT"


# --- Core functions (testable without MCP context) ---


def layer_search(
    document: SceneDocument,
    *,
    query: str,
    page: str | None = None,
    selection: list[str] | None = None,
    store: QueryStoreProtocol | None = None,
    limit: int = 50,
) -> dict[str, Any]:
    """Run a layer query and return the layers it would select.

    Query syntax: ``#`` page, ``$`` section, ``@`` frame, ``!`` instance,
    ``?`` component, ``&`` image, ``%`` shape, ``=`` text. ``/`` searches
    descendants, ``//`` direct children. Words are ANDed, "quoted text" is
    literal. Modifiers: ``--f`` first, ``--N`` Nth, ``--Ne`` Nth per parent,
    ``--h`` hidden only, ``--a`` include hidden.

    Args:
        query: Layer query.
        page: Page name or id to start on (default: first page).
        selection: Node ids to search inside, as if selected.
        limit: Max results returned (1-500, default 50).
    """
    if not query.strip():
        return {"error": "No search query provided.", "results": [], "count": 0}

    limit = max(1, min(limit, 500))

    current_page = None
    if page:
        current_page = next((p for p in document.pages if page in (p.name, p.id)), None)
        if current_page is None:
            return {"error": f"Page '{page}' not found.", "results": [], "count": 0}

    selected = []
    for node_id in selection or []:
        node = document.get(node_id)
        if node is None:
            return {"error": f"Node '{node_id}' not found.", "results": [], "count": 0}
        selected.append(node)

    host = DocumentHost(document, current_page=current_page, selection=selected)
    scope = selection_label(host)
    outcome = run_query(host, query, store=store)

    results = [
        {"node_id": r.node.id, "type": r.node.kind.value, "name": r.node.name, "path": r.path}
        for r in outcome.results[:limit]
    ]
    output: dict[str, Any] = {
        "status": outcome.status.value,
        "message": outcome.message,
        "scope": scope,
        "page": host.current_page.name,
        "results": results,
        "count": len(results),
        "total": len(outcome.results),
    }
    return output


def layer_tree(
    document: SceneDocument,
    *,
    node_id: str | None = None,
    max_depth: int | None = 3,
) -> dict[str, Any]:
    """Render a node (default: the first page) and its subtree as an outline."""
    if node_id:
        node = document.get(node_id)
        if node is None:
            return {"error": f"Node '{node_id}' not found."}
    elif document.pages:
        node = document.pages[0]
    else:
        return {"error": "Document has no pages."}
    return {
        "node_id": node.id,
        "name": node.name,
        "content": render_subtree_as_outline(node, max_depth=max_depth),
    }


def layer_list_pages(document: SceneDocument) -> dict[str, Any]:
    """List the pages of the document with their top-level layer counts."""
    pages = [
        {
            "page_id": p.id,
            "name": p.name,
            "label": f"{symbol_for(p).value}{p.name}",
            "child_count": len(p.children),
        }
        for p in document.pages
    ]
    return {"pages": pages, "count": len(pages)}


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    document: SceneDocument
    document_path: Path
    conn: sqlite3.Connection


def _resolve_document_path() -> Path:
    value = os.environ.get(DOCUMENT_ENV)
    if not value:
        msg = f"Set {DOCUMENT_ENV} to the scene export to serve"
        raise RuntimeError(msg)
    return Path(value).expanduser()


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Load the document and open the state database on startup."""
    path = _resolve_document_path()
    document = load_document(path)
    logger.info("Loaded {} ({} pages)", path, len(document.pages))

    data_dir = resolve_data_directory()
    data_dir.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(data_dir / STATE_DB_NAME))
    try:
        yield ServerContext(document=document, document_path=path, conn=conn)
    finally:
        conn.close()


mcp_server = FastMCP(
    "layer-query",
    instructions="""\
Scene documents are trees: pages contain sections, frames, instances,
components, text and shapes. layer_search_tool selects layers with a
path-like query, e.g. `@Card/="Title"` (text named exactly Title inside
any Card frame) or `!Button --2` (the second Button instance in reading order).

## Tips
- Call layer_list_pages_tool first to learn the page names.
- Use layer_tree_tool with a result's node_id to see what is inside it.
- Pass `selection` node ids to search only inside those layers.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def layer_search_tool(
    ctx: Context,
    query: str,
    page: str | None = None,
    selection: list[str] | None = None,
    limit: int = 50,
) -> dict[str, Any]:
    """Select layers matching a query. See layer_search for the query syntax."""
    c = _ctx(ctx)
    return layer_search(
        c.document,
        query=query,
        page=page,
        selection=selection,
        store=LastQueryStore(c.conn),
        limit=limit,
    )


@mcp_server.tool()
async def layer_tree_tool(
    ctx: Context,
    node_id: str | None = None,
    max_depth: int | None = 3,
) -> dict[str, Any]:
    """Show a node's subtree as an outline with type symbols."""
    return layer_tree(_ctx(ctx).document, node_id=node_id, max_depth=max_depth)


@mcp_server.tool()
async def layer_list_pages_tool(ctx: Context) -> dict[str, Any]:
    """List the document's pages."""
    return layer_list_pages(_ctx(ctx).document)


def run_mcp_server() -> None:
    """Start the MCP server with stdio transport."""
    mcp_server.run(transport="stdio")
