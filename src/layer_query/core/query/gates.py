"""Type symbols and the node-kind gates they select."""

from collections.abc import Callable
from enum import StrEnum

from layer_query.models.node import NodeKind, SceneNode

Gate = Callable[[SceneNode], bool]


class TypeSymbol(StrEnum):
    """Query prefix symbols. ANY is the absence of a symbol."""

    PAGE = "#"
    SECTION = "$"
    FRAME = "@"
    INSTANCE = "!"
    COMPONENT = "?"
    IMAGE = "&"
    SHAPE = "%"
    TEXT = "="
    ANY = ""

    @classmethod
    def from_char(cls, ch: str) -> "TypeSymbol | None":
        if not ch:
            return None
        for symbol in cls:
            if symbol.value == ch:
                return symbol
        return None


SYMBOL_CHARS = frozenset(s.value for s in TypeSymbol if s.value)

FRAME_KINDS = frozenset({NodeKind.FRAME, NodeKind.GROUP})
COMPONENT_KINDS = frozenset({NodeKind.COMPONENT, NodeKind.COMPONENT_SET})
SHAPE_KINDS = frozenset(
    {
        NodeKind.RECTANGLE,
        NodeKind.ELLIPSE,
        NodeKind.POLYGON,
        NodeKind.STAR,
        NodeKind.LINE,
        NodeKind.VECTOR,
    }
)

# Kinds a symbol can match when that set is closed; used for bulk type pools.
_POOL_KINDS: dict[TypeSymbol, frozenset[NodeKind]] = {
    TypeSymbol.SECTION: frozenset({NodeKind.SECTION}),
    TypeSymbol.FRAME: FRAME_KINDS,
    TypeSymbol.INSTANCE: frozenset({NodeKind.INSTANCE}),
    TypeSymbol.COMPONENT: COMPONENT_KINDS,
}


def is_image(node: SceneNode) -> bool:
    """True when the node carries at least one image fill, whatever its kind."""
    return any(f.is_image for f in node.fills)


def is_shape(node: SceneNode) -> bool:
    return node.kind in SHAPE_KINDS and not is_image(node)


def _kind_gate(kinds: frozenset[NodeKind]) -> Gate:
    def gate(node: SceneNode) -> bool:
        return node.kind in kinds

    return gate


def _any(_node: SceneNode) -> bool:
    return True


_GATES: dict[TypeSymbol, Gate] = {
    TypeSymbol.PAGE: _kind_gate(frozenset({NodeKind.PAGE})),
    TypeSymbol.SECTION: _kind_gate(frozenset({NodeKind.SECTION})),
    TypeSymbol.FRAME: _kind_gate(FRAME_KINDS),
    TypeSymbol.INSTANCE: _kind_gate(frozenset({NodeKind.INSTANCE})),
    TypeSymbol.COMPONENT: _kind_gate(COMPONENT_KINDS),
    TypeSymbol.IMAGE: is_image,
    TypeSymbol.SHAPE: is_shape,
    TypeSymbol.TEXT: _kind_gate(frozenset({NodeKind.TEXT})),
    TypeSymbol.ANY: _any,
}


def gate_for(symbol: TypeSymbol) -> Gate:
    return _GATES[symbol]


def pool_kinds(symbol: TypeSymbol) -> frozenset[NodeKind] | None:
    """Node kinds for a bulk type lookup, or None when the gate is not kind-closed."""
    return _POOL_KINDS.get(symbol)


def symbol_for(node: SceneNode) -> TypeSymbol:
    """Display symbol for a node; ANY when it falls in no category."""
    if node.kind == NodeKind.PAGE:
        return TypeSymbol.PAGE
    if node.kind == NodeKind.SECTION:
        return TypeSymbol.SECTION
    if node.kind in FRAME_KINDS:
        return TypeSymbol.FRAME
    if node.kind == NodeKind.INSTANCE:
        return TypeSymbol.INSTANCE
    if node.kind in COMPONENT_KINDS:
        return TypeSymbol.COMPONENT
    if node.kind == NodeKind.TEXT:
        return TypeSymbol.TEXT
    if is_image(node):
        return TypeSymbol.IMAGE
    if node.kind in SHAPE_KINDS:
        return TypeSymbol.SHAPE
    return TypeSymbol.ANY
