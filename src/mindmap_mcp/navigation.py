"""
Keyboard navigation between nodes.

Arrow keys pick the best-aligned neighbour in the forward half-plane;
the hierarchy key walks the root path of the selected node.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from mindmap_mcp.geometry import clamp
from mindmap_mcp.graph import GraphStore
from mindmap_mcp.models import Node

DISTANCE_EPSILON = 1e-3
NARROW_CONE = math.radians(30)
WIDE_CONE = math.radians(60)


class Direction(Enum):
    """Cardinal directions as unit vectors (screen y grows downwards)."""
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)


@dataclass
class _Candidate:
    id: int
    dist: float
    angle: float


def _pick_within(candidates: list[_Candidate], max_angle: float) -> Optional[_Candidate]:
    best: Optional[_Candidate] = None
    for c in candidates:
        if c.angle > max_angle:
            continue
        if best is None:
            best = c
            continue
        if c.dist < best.dist - DISTANCE_EPSILON or (
            abs(c.dist - best.dist) <= DISTANCE_EPSILON and c.angle < best.angle
        ):
            best = c
    return best


def pick_in_direction(
    nodes: Iterable[Node], current: Node, direction: Direction
) -> Optional[int]:
    """Choose the node to move to from *current* towards *direction*.

    Only nodes with a positive dot product against the direction count.
    Closest within a 30° cone wins, then within 60°, then whichever
    candidate has the smallest angle.  Returns None when nothing lies ahead.
    """
    dx, dy = direction.value
    length = math.hypot(dx, dy) or 1
    ux, uy = dx / length, dy / length

    candidates: list[_Candidate] = []
    for node in nodes:
        if node.id == current.id:
            continue
        vx = node.x - current.x
        vy = node.y - current.y
        dist = math.hypot(vx, vy)
        if dist == 0:
            continue
        dot = vx * ux + vy * uy
        if dot <= 0:
            continue
        angle = math.acos(clamp(dot / dist, -1, 1))
        candidates.append(_Candidate(node.id, dist, angle))

    if not candidates:
        return None
    best = _pick_within(candidates, NARROW_CONE) or _pick_within(candidates, WIDE_CONE)
    if best is None:
        best = min(candidates, key=lambda c: c.angle)
    return best.id


class RootPathCursor:
    """Walks the root path of a node: up to the root, then back down.

    The path is built from the node selected at the first step; each call
    to :meth:`step` moves one node along it and bounces at both ends.
    """

    def __init__(self) -> None:
        self.path: list[int] = []
        self.index = 0
        self._delta = -1

    @property
    def active(self) -> bool:
        return bool(self.path)

    def reset(self) -> None:
        self.path = []
        self.index = 0
        self._delta = -1

    def step(self, graph: GraphStore, selected_id: int) -> Optional[int]:
        """Return the next node id on the path, or None for a lone root."""
        if not self.path or selected_id not in self.path:
            self.path = graph.root_path(selected_id)
            self.index = len(self.path) - 1
            self._delta = -1
        if len(self.path) < 2:
            return None
        nxt = self.index + self._delta
        if nxt < 0 or nxt >= len(self.path):
            self._delta = -self._delta
            nxt = self.index + self._delta
        self.index = nxt
        return self.path[nxt]
