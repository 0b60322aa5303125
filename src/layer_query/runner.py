"""Run a query against a host and apply the outcome to it."""

from loguru import logger

from layer_query.core.query.gates import symbol_for
from layer_query.core.search.context import CancelToken, ProgressHook, SearchCancelled
from layer_query.core.search.engine import SearchEngine
from layer_query.core.search.scopes import selection_anchors
from layer_query.models.node import NodeKind
from layer_query.models.outcome import OutcomeStatus, SearchOutcome
from layer_query.protocols import HostProtocol, QueryStoreProtocol


def _layers(count: int) -> str:
    return "layer" if count == 1 else "layers"


def run_query(
    host: HostProtocol,
    query: str,
    *,
    engine: SearchEngine | None = None,
    store: QueryStoreProtocol | None = None,
    token: CancelToken | None = None,
    on_progress: ProgressHook | None = None,
) -> SearchOutcome:
    """Search ``host`` for ``query`` and select what was found.

    On success the host switches to the matched page (if any), selects the
    matched layers and focuses the viewport on them. Every call ends in
    exactly one :class:`OutcomeStatus`; caches are cleared afterwards.
    """
    engine = engine or SearchEngine(host)

    if store is not None:
        try:
            store.set_last_query(query)
        except Exception as e:
            logger.warning("Could not store last query: {}", e)

    try:
        response = engine.search(query, token=token, on_progress=on_progress)

        page = response.page or next(
            (r.node for r in response.results if r.node.kind == NodeKind.PAGE), None
        )
        if token is not None and token.cancelled:
            raise SearchCancelled

        selectable = [r for r in response.results if r.node.kind != NodeKind.PAGE]
        if page is not None:
            host.set_current_page(page)

        if selectable:
            nodes = [r.node for r in selectable]
            host.select(nodes)
            host.focus(nodes)
            prefix = "Found page and selected" if page is not None else "Found and selected"
            message = f"{prefix} {len(nodes)} {_layers(len(nodes))}"
            logger.info(message)
            return SearchOutcome(
                status=OutcomeStatus.SELECTED,
                message=message,
                results=tuple(selectable),
                page=page,
            )
        if page is not None:
            logger.info("Found page {}", page.name)
            return SearchOutcome(status=OutcomeStatus.PAGE_ONLY, message="Found page", page=page)

        logger.info("No layers match {!r}", query)
        return SearchOutcome(status=OutcomeStatus.NO_MATCH, message="No matching layers")
    except SearchCancelled:
        logger.info("Search cancelled: {!r}", query)
        return SearchOutcome(status=OutcomeStatus.CANCELLED, message="Search cancelled")
    except Exception as e:
        logger.exception("Search failed for {!r}", query)
        return SearchOutcome(status=OutcomeStatus.ERROR, message=f"Error: {e}")
    finally:
        engine.clear_caches()


def selection_label(host: HostProtocol) -> str:
    """Describe where the next search will look, e.g. ``Inside: @Card, #Home``."""
    labels = [f"{symbol_for(s).value}{s.name}" for s in selection_anchors(host)]
    return f"Inside: {', '.join(labels)}"


def clear_selection(host: HostProtocol) -> str:
    """Deselect everything and return the resulting scope label."""
    host.select([])
    return selection_label(host)
