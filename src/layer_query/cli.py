"""CLI for layer-query (search, tree, last query, MCP server)."""

import json
import signal
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from layer_query.config import STATE_DB_NAME, resolve_data_directory
from layer_query.core.database.schema import LastQueryStore
from layer_query.core.importer.json_reader import DocumentFormatError, load_document
from layer_query.core.search.context import CancelToken
from layer_query.core.tree.outline import render_subtree_as_outline
from layer_query.host import DocumentHost
from layer_query.logging_config import configure_logging
from layer_query.models.node import SceneDocument
from layer_query.models.outcome import OutcomeStatus, SearchOutcome
from layer_query.runner import run_query, selection_label

app = typer.Typer(help="layer-query: select layers in a scene document with a path-like query.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
) -> None:
    configure_logging(verbose=verbose, quiet=quiet)


def _load(document: Path) -> SceneDocument:
    if not document.exists():
        logger.error("Document not found: {}", document)
        raise typer.Exit(1)
    try:
        return load_document(document)
    except DocumentFormatError as e:
        logger.error("Cannot read document: {}", e)
        raise typer.Exit(1) from e


def _open_state(data_dir: Path | None) -> sqlite3.Connection:
    """Open (creating if needed) the state database."""
    dst = data_dir or resolve_data_directory()
    dst.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(str(dst / STATE_DB_NAME))


@contextmanager
def _cancel_on_interrupt(token: CancelToken) -> Iterator[None]:
    """Turn Ctrl-C into a cooperative cancellation while a search runs."""

    def handler(_signum: int, _frame: Any) -> None:
        token.cancel()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _outcome_as_dict(outcome: SearchOutcome) -> dict[str, Any]:
    return {
        "status": outcome.status.value,
        "message": outcome.message,
        "page": outcome.page.name if outcome.page else None,
        "count": outcome.count,
        "results": [
            {"id": r.node.id, "type": r.node.kind.value, "name": r.node.name, "path": r.path}
            for r in outcome.results
        ],
    }


@app.command()
def search(
    document: Path = typer.Argument(..., help="Scene export (.json)"),
    query: str = typer.Argument(..., help='Layer query, e.g. \'@Card/="Title" --2\''),
    select: Annotated[
        list[str] | None,
        typer.Option("--select", "-s", help="Node id to treat as selected (repeatable)"),
    ] = None,
    page: Annotated[
        str | None,
        typer.Option("--page", "-p", help="Start on this page (name or id)"),
    ] = None,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", "-d", help="State directory (last query)"),
    ] = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Run a query and print the layers it selects."""
    doc = _load(document)

    current_page = None
    if page:
        current_page = next((p for p in doc.pages if page in (p.name, p.id)), None)
        if current_page is None:
            logger.error("Page '{}' not found.", page)
            raise typer.Exit(1)

    selection = []
    for node_id in select or []:
        node = doc.get(node_id)
        if node is None:
            logger.error("Node '{}' not found.", node_id)
            raise typer.Exit(1)
        selection.append(node)

    host = DocumentHost(doc, current_page=current_page, selection=selection)
    logger.debug(selection_label(host))

    token = CancelToken()
    conn = _open_state(data_dir)
    try:
        with _cancel_on_interrupt(token):
            outcome = run_query(host, query, store=LastQueryStore(conn), token=token)
    finally:
        conn.close()

    if output_json:
        typer.echo(json.dumps(_outcome_as_dict(outcome), indent=2))
    else:
        typer.echo(outcome.message)
        for r in outcome.results:
            typer.echo(f"  {r.path}  id={r.node.id}")

    if outcome.status is OutcomeStatus.ERROR:
        raise typer.Exit(1)
    if outcome.status is OutcomeStatus.CANCELLED:
        raise typer.Exit(130)


@app.command()
def tree(
    document: Path = typer.Argument(..., help="Scene export (.json)"),
    node: Annotated[
        str | None,
        typer.Option("--node", "-n", help="Start from this node id (default: every page)"),
    ] = None,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max levels below the start node"),
    ] = None,
) -> None:
    """Print a document or subtree as an outline."""
    doc = _load(document)
    if node:
        start = doc.get(node)
        if start is None:
            logger.error("Node '{}' not found.", node)
            raise typer.Exit(1)
        roots = [start]
    else:
        roots = doc.pages
    for root in roots:
        typer.echo(render_subtree_as_outline(root, max_depth=max_depth), nl=False)


@app.command()
def last(
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", "-d", help="State directory (last query)"),
    ] = None,
) -> None:
    """Print the last query that was run."""
    conn = _open_state(data_dir)
    try:
        query = LastQueryStore(conn).get_last_query()
    finally:
        conn.close()
    if query is None:
        typer.echo("No query has been run yet.")
        return
    typer.echo(query)


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from layer_query.mcp.server import run_mcp_server

    run_mcp_server()
