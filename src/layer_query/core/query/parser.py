"""Parse layer queries into an evaluation plan.

Query syntax::

    #Page/$Section/@Frame//!Instance "Exact literal" --2e --h

Segments are separated by ``/`` (any descendant) or ``//`` (direct child of
the previous match). A leading symbol picks the node type, the rest is the
name query. ``--`` words are modifiers:

- ``--f``   stop at the first match
- ``--fe``  first match inside each scope (final segment)
- ``--h``   final segment matches hidden layers only
- ``--a``   include hidden layers everywhere
- ``--N``   Nth match in visual order (``0`` = last)
- ``--Ne``  Nth match inside each scope

Index modifiers written inside a non-final segment apply to that segment
only. Parsing never fails: degenerate input yields a best-effort plan.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TypeVar

from layer_query.core.query.gates import SYMBOL_CHARS, TypeSymbol
from layer_query.core.search.visibility import VisibilityMode, resolve_mode

T = TypeVar("T")

_MODIFIER_RE = re.compile(r"(?<!\S)--(fe|f|h|a|\d+e|\d+)(?!\S)")


class PickScope(StrEnum):
    GLOBAL = "global"
    PER_SCOPE = "per_scope"


@dataclass(frozen=True)
class RankPick:
    """Pick the Nth node (1-based, 0 = last) from a visually ordered list."""

    scope: PickScope
    index: int

    def choose(self, ordered: Sequence[T]) -> T | None:
        if not ordered:
            return None
        if self.index == 0:
            return ordered[-1]
        if self.index > len(ordered):
            return None
        return ordered[self.index - 1]


@dataclass(frozen=True)
class Modifiers:
    """Query-wide modifiers; indexes here are the trailing (global) ones."""

    first_overall: bool = False
    first_each: bool = False
    hidden_only: bool = False
    all_layers: bool = False
    index: int | None = None
    index_each: int | None = None

    @property
    def includes_hidden(self) -> bool:
        return self.hidden_only or self.all_layers


@dataclass(frozen=True)
class SegmentPlan:
    """Everything the engine needs to evaluate one segment."""

    symbol: TypeSymbol
    name_query: str
    direct: bool
    visibility: VisibilityMode
    pick: RankPick | None = None
    stop_at_first: bool = False
    is_first: bool = False
    is_final: bool = False
    implicit: bool = False

    def describe(self) -> str:
        sep = "//" if self.direct else "/"
        extra = f" pick={self.pick.scope}:{self.pick.index}" if self.pick else ""
        return f"{sep}{self.symbol.value}{self.name_query!r} [{self.visibility}]{extra}"


@dataclass(frozen=True)
class QueryPlan:
    """A fully resolved query."""

    raw: str
    segments: tuple[SegmentPlan, ...] = ()
    modifiers: Modifiers = field(default_factory=Modifiers)
    child_search: bool = False
    final_pick: RankPick | None = None

    @property
    def is_empty(self) -> bool:
        return not self.segments

    @property
    def has_page_directive(self) -> bool:
        return bool(self.segments) and self.segments[0].symbol is TypeSymbol.PAGE

    def describe(self) -> str:
        parts = " ".join(s.describe() for s in self.segments)
        final = f" final-pick={self.final_pick.index}" if self.final_pick else ""
        return f"{parts}{final}"


@dataclass
class _Piece:
    """A raw slice of the query between separators."""

    text: str
    separator: str  # "", "/" or "//" preceding this piece
    index: int | None = None
    index_each: int | None = None


@dataclass
class _Flags:
    first_overall: bool = False
    first_each: bool = False
    hidden_only: bool = False
    all_layers: bool = False


def split_segments(query: str) -> list[tuple[str, str]]:
    """Split on unquoted slashes into ``(text, preceding_separator)`` pairs.

    ``//`` is one separator. Quoted text is kept intact, quotes included.
    """
    pieces: list[tuple[str, str]] = []
    current: list[str] = []
    separator = ""
    in_quote = False
    i = 0
    while i < len(query):
        ch = query[i]
        if ch == '"':
            in_quote = not in_quote
            current.append(ch)
            i += 1
            continue
        if ch == "/" and not in_quote:
            pieces.append(("".join(current), separator))
            current = []
            if i + 1 < len(query) and query[i + 1] == "/":
                separator = "//"
                i += 2
            else:
                separator = "/"
                i += 1
            continue
        current.append(ch)
        i += 1
    pieces.append(("".join(current), separator))
    return pieces


def _strip_modifiers(piece: _Piece, flags: _Flags) -> None:
    """Remove modifier words outside quotes, recording them on ``piece``/``flags``."""

    def take(match: re.Match[str]) -> str:
        word = match.group(1)
        if word == "f":
            flags.first_overall = True
        elif word == "fe":
            flags.first_each = True
        elif word == "h":
            flags.hidden_only = True
        elif word == "a":
            flags.all_layers = True
        elif word.endswith("e"):
            piece.index_each = int(word[:-1])
        else:
            piece.index = int(word)
        return ""

    chunks = piece.text.split('"')
    # Even chunks are outside quotes.
    for i in range(0, len(chunks), 2):
        chunks[i] = _MODIFIER_RE.sub(take, chunks[i])
    piece.text = '"'.join(chunks).strip()


def split_symbol(text: str) -> tuple[TypeSymbol, str]:
    """Split ``"@Card"`` into ``(TypeSymbol.FRAME, "Card")``."""
    text = text.strip()
    if text and text[0] in SYMBOL_CHARS:
        symbol = TypeSymbol.from_char(text[0])
        if symbol is not None:
            return symbol, text[1:].strip()
    return TypeSymbol.ANY, text


def parse_query(query: str) -> QueryPlan:
    """Parse ``query`` into a :class:`QueryPlan`. Never raises on user input."""
    raw_pieces = split_segments(query.strip())
    flags = _Flags()
    pieces = [_Piece(text=text, separator=sep) for text, sep in raw_pieces]
    for piece in pieces:
        _strip_modifiers(piece, flags)

    child_search = False
    if len(pieces) > 1 and not pieces[0].text:
        # Leading slash: search below the selection without matching it.
        # A leading "//" stays on the first piece and marks only it direct.
        child_search = True
        pieces = pieces[1:]

    final = pieces[-1]
    segments_raw: list[tuple[_Piece, bool, bool]] = []  # piece, direct, implicit
    carry_direct = False
    for pos, piece in enumerate(pieces):
        direct = carry_direct or piece.separator == "//"
        is_last = pos == len(pieces) - 1
        if not piece.text:
            if is_last and piece.separator:
                segments_raw.append((piece, direct, True))
            else:
                carry_direct = direct
            continue
        carry_direct = False
        segments_raw.append((piece, direct, False))

    modifiers = Modifiers(
        first_overall=flags.first_overall,
        first_each=flags.first_each,
        hidden_only=flags.hidden_only,
        all_layers=flags.all_layers,
        index=final.index,
        index_each=final.index_each,
    )

    segments: list[SegmentPlan] = []
    count = len(segments_raw)
    for pos, (piece, direct, implicit) in enumerate(segments_raw):
        is_final = pos == count - 1
        symbol, name = (TypeSymbol.ANY, "") if implicit else split_symbol(piece.text)
        segments.append(
            SegmentPlan(
                symbol=symbol,
                name_query=name,
                direct=direct,
                visibility=resolve_mode(
                    hidden_only=modifiers.hidden_only,
                    all_layers=modifiers.all_layers,
                    is_final=is_final,
                ),
                pick=_segment_pick(piece, modifiers, is_final=is_final),
                stop_at_first=modifiers.first_overall,
                is_first=pos == 0,
                is_final=is_final,
                implicit=implicit,
            )
        )

    final_pick = None
    if modifiers.index is not None and not modifiers.first_overall and segments:
        final_pick = RankPick(PickScope.GLOBAL, modifiers.index)

    return QueryPlan(
        raw=query,
        segments=tuple(segments),
        modifiers=modifiers,
        child_search=child_search,
        final_pick=final_pick,
    )


def _segment_pick(piece: _Piece, modifiers: Modifiers, *, is_final: bool) -> RankPick | None:
    if modifiers.first_overall:
        return None
    if is_final:
        if modifiers.index_each is not None:
            return RankPick(PickScope.PER_SCOPE, modifiers.index_each)
        if modifiers.first_each:
            return RankPick(PickScope.PER_SCOPE, 1)
        return None
    if piece.index_each is not None:
        return RankPick(PickScope.PER_SCOPE, piece.index_each)
    if piece.index is not None:
        return RankPick(PickScope.GLOBAL, piece.index)
    return None
