"""Protocols for the collaborators the search core depends on."""

from collections.abc import Callable, Collection, Sequence
from typing import Protocol, runtime_checkable

from layer_query.models.node import NodeKind, SceneDocument, SceneNode


@runtime_checkable
class HostProtocol(Protocol):
    """Protocol for the document host (the editor the query runs inside)."""

    document: SceneDocument
    skip_invisible_instance_children: bool

    @property
    def current_page(self) -> SceneNode:
        """The page currently shown in the editor."""
        ...

    @property
    def selection(self) -> Sequence[SceneNode]:
        """Currently selected nodes, in selection order."""
        ...

    def set_current_page(self, page: SceneNode) -> None:
        """Switch the editor to ``page``."""
        ...

    def select(self, nodes: Sequence[SceneNode]) -> None:
        """Replace the selection with ``nodes``."""
        ...

    def focus(self, nodes: Sequence[SceneNode]) -> None:
        """Scroll and zoom the viewport onto ``nodes``."""
        ...

    def children(self, node: SceneNode) -> Sequence[SceneNode]:
        """Children of ``node`` as the host exposes them for traversal."""
        ...

    def find_all(
        self,
        node: SceneNode,
        kinds: Collection[NodeKind],
        *,
        on_visit: Callable[[], None] | None = None,
    ) -> list[SceneNode]:
        """All descendants of ``node`` whose kind is in ``kinds``, in pre-order.

        ``on_visit`` is called once per descendant walked, whatever its kind.
        """
        ...


@runtime_checkable
class QueryStoreProtocol(Protocol):
    """Protocol for persisting the last executed query."""

    def get_last_query(self) -> str | None:
        """Return the last stored query, or None."""
        ...

    def set_last_query(self, query: str) -> None:
        """Store ``query`` as the last executed query."""
        ...
