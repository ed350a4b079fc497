"""
Core data model for mind-map documents.

Provides the node / edge / camera / snapshot value types shared by every
engine component, plus their JSON-ready dict (de)serialisation.  Keys use
the camelCase names of the persisted document format.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BASE_W = 120
BASE_H = 64
DRAG_THRESHOLD = 16
CHILD_RADIUS = 160
GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))
PASTE_OFFSET = 20
DEFAULT_STROKE = "#333"
STORAGE_KEY = "mindmap_v16_final"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class Point:
    """A 2-D coordinate."""
    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class Node:
    """A labeled box positioned by its centre in world coordinates."""
    id: int
    label: str = ""
    x: float = 0
    y: float = 0
    w: float = BASE_W
    h: float = BASE_H
    stroke_color: str = DEFAULT_STROKE
    fill_color: Optional[str] = None
    bold: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "x": self.x,
            "y": self.y,
            "w": self.w,
            "h": self.h,
            "strokeColor": self.stroke_color,
        }
        if self.fill_color is not None:
            data["fillColor"] = self.fill_color
        data["bold"] = self.bold
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        return cls(
            id=int(data["id"]),
            label=str(data.get("label") or ""),
            x=float(data["x"]),
            y=float(data["y"]),
            w=float(data.get("w", BASE_W)),
            h=float(data.get("h", BASE_H)),
            stroke_color=data.get("strokeColor") or DEFAULT_STROKE,
            fill_color=data.get("fillColor"),
            bold=bool(data.get("bold", False)),
        )


@dataclass
class Edge:
    """A connection between two nodes (source -> target)."""
    id: int
    source: int
    target: int
    label: Optional[str] = None
    dashed: bool = False
    arrow: bool = False

    def touches(self, node_id: int) -> bool:
        return self.source == node_id or self.target == node_id

    def connects(self, a: int, b: int) -> bool:
        """Whether this edge joins *a* and *b* in either direction."""
        return (self.source == a and self.target == b) or (
            self.source == b and self.target == a
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
        }
        if self.label is not None:
            data["label"] = self.label
        data["dashed"] = self.dashed
        data["arrow"] = self.arrow
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Edge:
        label = data.get("label")
        return cls(
            id=int(data["id"]),
            source=int(data["source"]),
            target=int(data["target"]),
            label=str(label) if label is not None else None,
            dashed=bool(data.get("dashed", False)),
            arrow=bool(data.get("arrow", False)),
        )


@dataclass
class Camera:
    """Pan / zoom state mapping world coordinates onto the viewport."""
    pan: Point = field(default_factory=lambda: Point(0, 0))
    scale: float = 1.0
    viewport_width: float = 1280
    viewport_height: float = 800

    def to_world(self, sx: float, sy: float) -> Point:
        return Point((sx - self.pan.x) / self.scale, (sy - self.pan.y) / self.scale)

    def to_screen(self, wx: float, wy: float) -> Point:
        return Point(self.pan.x + wx * self.scale, self.pan.y + wy * self.scale)

    def viewport_center_world(self) -> Point:
        return self.to_world(self.viewport_width / 2, self.viewport_height / 2)

    def center_origin(self) -> None:
        """Put the world origin in the middle of the viewport at scale 1."""
        self.pan = Point(self.viewport_width / 2, self.viewport_height / 2)
        self.scale = 1.0


@dataclass(frozen=True)
class Snapshot:
    """Immutable copy of graph + camera + selection state.

    The unit of undo/redo and of export.  Node and edge objects held here
    are private copies; callers must copy again before handing them to
    live state (see :meth:`live_nodes` / :meth:`live_edges`).
    """
    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    pan: tuple[float, float]
    scale: float
    selected_id: Optional[int]
    selected_ids: tuple[int, ...]
    selected_edge_ids: tuple[int, ...]

    @classmethod
    def capture(
        cls,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        camera: Camera,
        selected_id: Optional[int],
        selected_ids: Iterable[int],
        selected_edge_ids: Iterable[int],
    ) -> Snapshot:
        return cls(
            nodes=tuple(copy.deepcopy(n) for n in nodes),
            edges=tuple(copy.deepcopy(e) for e in edges),
            pan=(camera.pan.x, camera.pan.y),
            scale=camera.scale,
            selected_id=selected_id,
            selected_ids=tuple(selected_ids),
            selected_edge_ids=tuple(selected_edge_ids),
        )

    def live_nodes(self) -> list[Node]:
        return [copy.deepcopy(n) for n in self.nodes]

    def live_edges(self) -> list[Edge]:
        return [copy.deepcopy(e) for e in self.edges]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "pan": {"x": self.pan[0], "y": self.pan[1]},
            "scale": self.scale,
            "selectedId": self.selected_id,
            "selectedIds": list(self.selected_ids),
            "selectedEdgeIds": list(self.selected_edge_ids),
        }


@dataclass
class Clipboard:
    """In-memory copy buffer (never the OS clipboard)."""
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def next_id(items: Iterable[Node] | Iterable[Edge]) -> int:
    """Monotonic id allocation: ``max(existing) + 1``, or 1 when empty."""
    return max((item.id for item in items), default=0) + 1
