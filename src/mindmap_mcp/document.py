"""
Persisted / exported JSON document and clipboard payloads.

Two import variants are accepted:

* a full snapshot (``nodes``, ``edges``, ``pan``, ``scale`` and selection),
  restored wholesale;
* a minimal ``{nodes, edges}`` document (what the storage side channel
  writes), restored with the camera at the origin and no selection.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from mindmap_mcp.models import Clipboard, Edge, Node, Point, next_id
from mindmap_mcp.validation import ValidationError, validate_document


@dataclass
class ParsedDocument:
    """Validated import payload, ready to load into an editor."""
    nodes: list[Node]
    edges: list[Edge]
    pan: Optional[Point] = None
    scale: float = 1.0
    selected_id: Optional[int] = None
    selected_ids: list[int] = field(default_factory=list)
    selected_edge_ids: list[int] = field(default_factory=list)

    @property
    def is_full_snapshot(self) -> bool:
        return self.pan is not None


def dumps(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2)


def minimal_document(nodes: Iterable[Node], edges: Iterable[Edge]) -> dict[str, Any]:
    return {
        "nodes": [n.to_dict() for n in nodes],
        "edges": [e.to_dict() for e in edges],
    }


def _int_list(value: Any) -> list[int]:
    if not isinstance(value, list):
        return []
    return [int(v) for v in value if isinstance(v, (int, float)) and not isinstance(v, bool)]


def _unique_edges(edges: list[Edge]) -> list[Edge]:
    """Renumber edges whose ids collide (legacy files used float timestamps)."""
    seen: set[int] = set()
    fresh = next_id(edges)
    for edge in edges:
        if edge.id in seen:
            edge.id = fresh
            fresh += 1
        seen.add(edge.id)
    return edges


def parse_document(raw: Any) -> ParsedDocument:
    """Validate and convert an import payload (JSON text or decoded object).

    Raises :class:`ValidationError` for anything malformed; nothing is
    returned in that case, so callers can leave their state untouched.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ValidationError(f"Invalid JSON: {exc}") from exc
    data = validate_document(raw)

    nodes = [Node.from_dict(n) for n in data["nodes"]]
    edges = _unique_edges([Edge.from_dict(e) for e in data["edges"]])

    pan_raw = data.get("pan")
    if pan_raw is None:
        return ParsedDocument(nodes=nodes, edges=edges)

    scale = data.get("scale")
    selected_id = data.get("selectedId")
    if not isinstance(selected_id, int) or isinstance(selected_id, bool):
        selected_id = None
    return ParsedDocument(
        nodes=nodes,
        edges=edges,
        pan=Point(float(pan_raw["x"]), float(pan_raw["y"])),
        scale=float(scale) if scale is not None else 1.0,
        selected_id=selected_id,
        selected_ids=_int_list(data.get("selectedIds")),
        selected_edge_ids=_int_list(data.get("selectedEdgeIds")),
    )


# ---------------------------------------------------------------------------
# Clipboard
# ---------------------------------------------------------------------------

def copy_selection(
    nodes: Iterable[Node], edges: Iterable[Edge], selected_ids: set[int]
) -> Clipboard:
    """Selected nodes plus the edges whose both endpoints are selected."""
    return Clipboard(
        nodes=[Node(**vars(n)) for n in nodes if n.id in selected_ids],
        edges=[
            Edge(**vars(e)) for e in edges
            if e.source in selected_ids and e.target in selected_ids
        ],
    )


def remap_clipboard(
    clipboard: Clipboard,
    first_node_id: int,
    first_edge_id: int,
    offset: float,
) -> tuple[list[Node], list[Edge]]:
    """Fresh copies of the clipboard with new ids and shifted positions."""
    id_map: dict[int, int] = {}
    new_nodes: list[Node] = []
    for i, n in enumerate(clipboard.nodes):
        new_id = first_node_id + i
        id_map[n.id] = new_id
        new_nodes.append(Node(**{**vars(n), "id": new_id, "x": n.x + offset, "y": n.y + offset}))
    new_edges: list[Edge] = []
    for e in clipboard.edges:
        if e.source not in id_map or e.target not in id_map:
            continue
        new_edges.append(Edge(**{
            **vars(e),
            "id": first_edge_id + len(new_edges),
            "source": id_map[e.source],
            "target": id_map[e.target],
        }))
    return new_nodes, new_edges
