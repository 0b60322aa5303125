"""Parse JSON scene exports into a :class:`SceneDocument`."""

import json
from collections import deque
from pathlib import Path
from typing import Any

from layer_query.models.node import Fill, LayoutAxis, NodeKind, SceneDocument, SceneNode


class DocumentFormatError(ValueError):
    """The input is not a usable scene export."""


def _kind(raw_type: Any) -> NodeKind:
    try:
        return NodeKind(str(raw_type).upper())
    except ValueError:
        return NodeKind.OTHER


def _layout_axis(raw: Any) -> LayoutAxis | None:
    try:
        return LayoutAxis(raw) if raw else None
    except ValueError:
        return None  # "NONE" and unknown layout modes


def _number(raw: dict[str, Any], key: str) -> float | None:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        msg = f"Node {raw.get('id')!r}: {key} must be a number, got {value!r}"
        raise DocumentFormatError(msg)
    return float(value)


def _fills(raw: dict[str, Any]) -> tuple[Fill, ...]:
    value = raw.get("fills") or []
    if not isinstance(value, list) or not all(isinstance(f, dict) for f in value):
        msg = f"Node {raw.get('id')!r}: fills must be a list of objects, got {value!r}"
        raise DocumentFormatError(msg)
    return tuple(Fill(type=str(f.get("type", ""))) for f in value)


def _build_node(raw: Any, *, default_kind: NodeKind | None = None) -> SceneNode:
    if not isinstance(raw, dict) or "id" not in raw:
        msg = f"Node entry must be an object with an id, got {raw!r}"
        raise DocumentFormatError(msg)
    kind = default_kind if default_kind is not None else _kind(raw.get("type"))
    return SceneNode(
        id=str(raw["id"]),
        kind=kind,
        name=str(raw.get("name", "")),
        visible=bool(raw.get("visible", True)),
        x=_number(raw, "x"),
        y=_number(raw, "y"),
        width=_number(raw, "width"),
        height=_number(raw, "height"),
        layout_axis=_layout_axis(raw.get("layoutMode")),
        fills=_fills(raw),
    )


def parse_document_data(data: dict[str, Any]) -> SceneDocument:
    """Build a document tree from an exported scene.

    The export is ``{"id", "name", "pages": [...]}``; every node is an object
    with ``id``, ``type``, ``name``, optional ``visible``, geometry
    (``x``, ``y``, ``width``, ``height``), ``layoutMode``, ``fills`` and
    nested ``children``. Unknown node types become ``OTHER``.

    Raises:
        DocumentFormatError: Missing pages, malformed nodes or duplicate ids.
    """
    if not isinstance(data, dict) or not isinstance(data.get("pages"), list):
        msg = "Scene export must be an object with a 'pages' list"
        raise DocumentFormatError(msg)

    root = SceneNode(
        id=str(data.get("id", "0:0")),
        kind=NodeKind.DOCUMENT,
        name=str(data.get("name", "")),
    )
    seen_ids = {root.id}

    # BFS so children keep the order they have in the export (paint order).
    todo: deque[tuple[SceneNode, Any, bool]] = deque(
        (root, raw_page, True) for raw_page in data["pages"]
    )
    while todo:
        parent, raw, is_page = todo.popleft()
        node = _build_node(raw, default_kind=NodeKind.PAGE if is_page else None)
        if node.id in seen_ids:
            msg = f"Duplicate node id: {node.id!r}"
            raise DocumentFormatError(msg)
        seen_ids.add(node.id)
        parent.append(node)
        for raw_child in raw.get("children") or ():
            todo.append((node, raw_child, False))

    return SceneDocument(root)


def load_document(path: Path) -> SceneDocument:
    """Read and parse a scene export file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        msg = f"{path}: invalid JSON ({e})"
        raise DocumentFormatError(msg) from e
    return parse_document_data(data)
