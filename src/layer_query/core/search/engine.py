"""Query evaluation over the host scene graph.

The engine walks a :class:`QueryPlan` segment by segment. The first segment
is evaluated against the selection-derived scopes (or the page named by a
leading ``#Page`` directive); each later segment is evaluated below the
previous segment's matches. Per segment the same pipeline applies: type gate,
name matcher, visibility policy, then an optional rank pick in visual order.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace

from loguru import logger

from layer_query.config import RESULT_CACHE_SIZE
from layer_query.core.cache import BoundedCache
from layer_query.core.query.gates import gate_for, pool_kinds
from layer_query.core.query.names import build_matcher, clear_matcher_cache
from layer_query.core.query.parser import (
    Modifiers,
    PickScope,
    QueryPlan,
    RankPick,
    SegmentPlan,
    parse_query,
)
from layer_query.core.search.context import (
    CancelToken,
    ProgressHook,
    SearchContext,
    yield_interval,
)
from layer_query.core.search.ordering import sort_visually
from layer_query.core.search.scopes import resolve_initial_scopes
from layer_query.core.search.visibility import (
    VisibilityMode,
    is_effectively_visible,
    is_eligible,
)
from layer_query.core.tree.navigation import get_node_path, get_result_path, iter_descendants
from layer_query.models.node import NodeKind, SceneNode, SearchResponse, SearchResult
from layer_query.protocols import HostProtocol

ResultKey = tuple[str, str, tuple[str, ...]]


class SearchEngine:
    """Evaluates layer queries against a host document.

    Results of default-visibility searches are cached per page, query and
    selection; call :meth:`clear_caches` when the document may have changed.
    """

    def __init__(self, host: HostProtocol, *, result_cache_size: int = RESULT_CACHE_SIZE) -> None:
        self._host = host
        self._results: BoundedCache[ResultKey, SearchResponse] = BoundedCache(result_cache_size)

    def clear_caches(self) -> None:
        self._results.clear()
        clear_matcher_cache()

    def search(
        self,
        query: str,
        *,
        token: CancelToken | None = None,
        on_progress: ProgressHook | None = None,
    ) -> SearchResponse:
        """Evaluate ``query``.

        Raises:
            SearchCancelled: ``token`` was cancelled before the search finished.
        """
        plan = parse_query(query)
        if plan.is_empty:
            logger.debug("Empty query {!r}", query)
            return SearchResponse(results=())

        ctx = SearchContext(
            token=token or CancelToken(),
            yield_every=yield_interval(includes_hidden=plan.modifiers.includes_hidden),
            on_progress=on_progress,
        )
        ctx.check()
        clear_matcher_cache()

        key = None if plan.modifiers.includes_hidden else self._cache_key(plan)
        if key is not None:
            cached = self._results.get(key)
            if cached is not None:
                logger.debug("Result cache hit for {!r}", query)
                return replace(cached, visited=0)

        logger.debug("Query plan: {}", plan.describe())
        with self._traversal_mode(plan.modifiers):
            response = self._run(plan, ctx)
        logger.debug("{} results, {} nodes visited", len(response.results), response.visited)

        if key is not None:
            self._results.put(key, response)
        return response

    def _cache_key(self, plan: QueryPlan) -> ResultKey:
        selection = tuple(n.id for n in self._host.selection)
        return (self._host.current_page.id, plan.raw.strip(), selection)

    @contextmanager
    def _traversal_mode(self, modifiers: Modifiers) -> Iterator[None]:
        """Expose hidden instance children while --h/--a searches run."""
        original = self._host.skip_invisible_instance_children
        if modifiers.includes_hidden:
            self._host.skip_invisible_instance_children = False
        try:
            yield
        finally:
            self._host.skip_invisible_instance_children = original

    def _run(self, plan: QueryPlan, ctx: SearchContext) -> SearchResponse:
        segments = plan.segments
        page: SceneNode | None = None
        results: list[SearchResult] = []

        if plan.has_page_directive:
            page = self._find_page(segments[0].name_query, ctx)
            if page is None:
                return SearchResponse(results=(), visited=ctx.visited)
            results = [SearchResult(node=page, path=get_node_path(page))]
            scopes = [page]
            segments = segments[1:]
        else:
            scopes = resolve_initial_scopes(
                self._host, exclude_self_for_child_search=plan.child_search
            )

        for segment in segments:
            ctx.check()
            allow_self = segment.is_first and not plan.child_search
            results = self._evaluate(segment, scopes, ctx, allow_self=allow_self)
            logger.debug("Segment {} matched {} nodes", segment.describe(), len(results))
            scopes = [r.node for r in results]
            if not scopes:
                break

        if plan.final_pick is not None and results:
            results = self._pick_final(results, plan.final_pick)

        return SearchResponse(results=tuple(results), page=page, visited=ctx.visited)

    def _find_page(self, name_query: str, ctx: SearchContext) -> SceneNode | None:
        matches_name = build_matcher(name_query)
        for page in self._host.document.pages:
            ctx.visit()
            if matches_name(page.name):
                return page
        return None

    def _evaluate(
        self,
        segment: SegmentPlan,
        scopes: list[SceneNode],
        ctx: SearchContext,
        *,
        allow_self: bool,
    ) -> list[SearchResult]:
        pick = segment.pick
        if pick is not None and pick.scope is PickScope.GLOBAL:
            return self._pick_global(segment, pick, scopes, ctx, allow_self=allow_self)
        if pick is not None:
            return self._pick_per_scope(segment, pick, scopes, ctx, allow_self=allow_self)
        return self._match_all(segment, scopes, ctx, allow_self=allow_self)

    def _match_all(
        self,
        segment: SegmentPlan,
        scopes: list[SceneNode],
        ctx: SearchContext,
        *,
        allow_self: bool,
    ) -> list[SearchResult]:
        results: list[SearchResult] = []
        seen: set[int] = set()
        for scope in scopes:
            ctx.check()
            for node in self._iter_matches(scope, segment, ctx, allow_self=allow_self):
                if id(node) in seen:
                    continue
                seen.add(id(node))
                results.append(SearchResult(node=node, path=get_result_path(scope, node)))
                if segment.stop_at_first:
                    return results
        return results

    def _pick_global(
        self,
        segment: SegmentPlan,
        pick: RankPick,
        scopes: list[SceneNode],
        ctx: SearchContext,
        *,
        allow_self: bool,
    ) -> list[SearchResult]:
        candidates: list[SceneNode] = []
        seen: set[int] = set()
        for scope in scopes:
            ctx.check()
            for node in self._iter_matches(scope, segment, ctx, allow_self=allow_self):
                if id(node) not in seen:
                    seen.add(id(node))
                    candidates.append(node)
        chosen = pick.choose(sort_visually(candidates))
        if chosen is None:
            return []
        return [SearchResult(node=chosen, path=get_node_path(chosen))]

    def _pick_per_scope(
        self,
        segment: SegmentPlan,
        pick: RankPick,
        scopes: list[SceneNode],
        ctx: SearchContext,
        *,
        allow_self: bool,
    ) -> list[SearchResult]:
        results: list[SearchResult] = []
        picked: set[int] = set()
        for scope in scopes:
            ctx.check()
            candidates = list(self._iter_matches(scope, segment, ctx, allow_self=allow_self))
            chosen = pick.choose(sort_visually(candidates, scope=scope))
            if chosen is None or id(chosen) in picked:
                continue
            picked.add(id(chosen))
            results.append(SearchResult(node=chosen, path=get_result_path(scope, chosen)))
        return results

    def _pick_final(self, results: list[SearchResult], pick: RankPick) -> list[SearchResult]:
        selectable = [r for r in results if r.node.kind != NodeKind.PAGE]
        chosen = pick.choose(sort_visually([r.node for r in selectable]))
        return [r for r in selectable if r.node is chosen]

    def _iter_matches(
        self,
        scope: SceneNode,
        segment: SegmentPlan,
        ctx: SearchContext,
        *,
        allow_self: bool,
    ) -> Iterator[SceneNode]:
        """Yield nodes matching ``segment`` at or below ``scope``, in traversal order."""
        gate = gate_for(segment.symbol)
        matches_name = build_matcher(segment.name_query)
        mode = segment.visibility

        if allow_self and scope.kind not in (NodeKind.PAGE, NodeKind.DOCUMENT):
            ctx.visit()
            if (
                gate(scope)
                and matches_name(scope.name)
                and is_eligible(scope, mode, scope=scope.parent)
            ):
                yield scope

        if segment.direct:
            for child in self._host.children(scope):
                ctx.visit()
                if gate(child) and matches_name(child.name) and is_eligible(child, mode, scope=scope):
                    yield child
            return

        kinds = pool_kinds(segment.symbol)
        if kinds is not None and mode.prunes_hidden and not segment.stop_at_first:
            for node in self._type_pool(scope, kinds, ctx):
                if matches_name(node.name):
                    yield node
            return

        prune = _is_hidden if mode.prunes_hidden else None
        for node in iter_descendants(scope, children_of=self._host.children, prune=prune):
            ctx.visit()
            if mode is VisibilityMode.HIDDEN_ONLY and node.visible:
                continue
            if gate(node) and matches_name(node.name):
                yield node

    def _type_pool(
        self, scope: SceneNode, kinds: frozenset[NodeKind], ctx: SearchContext
    ) -> list[SceneNode]:
        """Visible descendants of ``scope`` of the given kinds, via the host's bulk lookup.

        Every node the lookup walks counts as visited, so cancellation and
        progress reporting reach into it.
        """

        def compute() -> list[SceneNode]:
            return [
                n
                for n in self._host.find_all(scope, kinds, on_visit=ctx.visit)
                if is_effectively_visible(n, scope=scope)
            ]

        return ctx.pools.get_or_compute((scope.id, kinds, VisibilityMode.DEFAULT.value), compute)


def _is_hidden(node: SceneNode) -> bool:
    return not node.visible
