"""Terminal outcomes of a search invocation."""

from dataclasses import dataclass
from enum import StrEnum

from layer_query.models.node import SceneNode, SearchResult


class OutcomeStatus(StrEnum):
    SELECTED = "selected"
    PAGE_ONLY = "page_only"
    NO_MATCH = "no_match"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(frozen=True)
class SearchOutcome:
    """Exactly one of these is produced per search invocation."""

    status: OutcomeStatus
    message: str = ""
    results: tuple[SearchResult, ...] = ()
    page: SceneNode | None = None

    @property
    def count(self) -> int:
        """Number of selected (non-page) nodes."""
        return len(self.results) if self.status == OutcomeStatus.SELECTED else 0
