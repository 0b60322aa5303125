"""Query language and engine for selecting layers in a scene graph."""

from layer_query.core.query.parser import QueryPlan, parse_query
from layer_query.core.search.context import CancelToken, SearchCancelled
from layer_query.core.search.engine import SearchEngine
from layer_query.host import DocumentHost
from layer_query.protocols import HostProtocol, QueryStoreProtocol
from layer_query.runner import run_query

__all__ = [
    "CancelToken",
    "DocumentHost",
    "HostProtocol",
    "QueryPlan",
    "QueryStoreProtocol",
    "SearchCancelled",
    "SearchEngine",
    "parse_query",
    "run_query",
]
