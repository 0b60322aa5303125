"""Per-search state: cancellation, cooperative yielding, type pools."""

from collections.abc import Callable
from dataclasses import dataclass, field

from layer_query.config import TYPE_POOL_CACHE_SIZE, YIELD_INTERVAL, YIELD_INTERVAL_ALL_LAYERS
from layer_query.core.cache import BoundedCache
from layer_query.models.node import NodeKind, SceneNode

ProgressHook = Callable[[int], None]
PoolKey = tuple[str, frozenset[NodeKind], str]


class SearchCancelled(Exception):
    """Raised inside a traversal once its cancel token has been set."""


class CancelToken:
    """Cooperative cancellation flag, observed at yield points and loop heads."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


def yield_interval(*, includes_hidden: bool) -> int:
    return YIELD_INTERVAL_ALL_LAYERS if includes_hidden else YIELD_INTERVAL


@dataclass
class SearchContext:
    """Mutable state threaded through one search.

    ``visit`` is called for every node the traversal touches; every
    ``yield_every`` visits the progress hook runs and cancellation is checked.
    """

    token: CancelToken = field(default_factory=CancelToken)
    yield_every: int = YIELD_INTERVAL
    on_progress: ProgressHook | None = None
    visited: int = 0
    pools: BoundedCache[PoolKey, list[SceneNode]] = field(
        default_factory=lambda: BoundedCache(TYPE_POOL_CACHE_SIZE)
    )

    def check(self) -> None:
        if self.token.cancelled:
            raise SearchCancelled

    def visit(self) -> None:
        self.visited += 1
        if self.visited % self.yield_every == 0:
            if self.on_progress is not None:
                self.on_progress(self.visited)
            self.check()
