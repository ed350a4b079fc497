"""
Collision-aware placement of new nodes.

Existing nodes are treated as bounding circles and edges as thick lines,
which gives a cheap, conservative overlap test.  Open space is found with
a golden-angle spiral: successive samples advance by the golden angle
(phyllotaxis pattern) so growing-radius sweeps rarely retest a direction.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from mindmap_mcp.geometry import box_radius, dist_point_to_segment
from mindmap_mcp.graph import GraphStore
from mindmap_mcp.models import BASE_H, BASE_W, CHILD_RADIUS, GOLDEN_ANGLE, Point

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class PlacementConfig:
    """Tuned constants for placement; changing them moves new nodes."""
    node_padding: float = 8
    edge_padding: float = 6
    new_width: float = BASE_W
    new_height: float = BASE_H

    # Children
    child_radius: float = CHILD_RADIUS
    child_step: float = 24
    child_every: int = 8
    child_iterations: int = 96

    # Standalone nodes
    standalone_radius: float = 80
    standalone_step: float = 24
    standalone_every: int = 6
    at_point_iterations: int = 120    # explicit point (context menu)
    viewport_iterations: int = 60     # viewport centre default

    @property
    def new_radius(self) -> float:
        return max(self.new_width, self.new_height) / 2


# ---------------------------------------------------------------------------
# Collision test
# ---------------------------------------------------------------------------

def is_position_free(
    graph: GraphStore,
    x: float,
    y: float,
    exclude_id: Optional[int] = None,
    config: Optional[PlacementConfig] = None,
) -> bool:
    """Whether a new node centred on (x, y) clears every node and edge.

    *exclude_id* (usually the parent of a new child) is ignored, together
    with every edge incident to it.
    """
    cfg = config or PlacementConfig()
    new_r = cfg.new_radius
    for node in graph.nodes:
        if node.id == exclude_id:
            continue
        if math.hypot(node.x - x, node.y - y) < box_radius(node) + new_r + cfg.node_padding:
            return False
    for _edge, source, target in graph.segments(exclude_id):
        d = dist_point_to_segment(x, y, source.x, source.y, target.x, target.y)
        if d < new_r + cfg.edge_padding:
            return False
    return True


def spiral_search(
    graph: GraphStore,
    cx: float,
    cy: float,
    *,
    angle: float,
    radius: float,
    step: float,
    every: int,
    max_iterations: int,
    exclude_id: Optional[int] = None,
    config: Optional[PlacementConfig] = None,
) -> Point:
    """Golden-angle spiral around (cx, cy).

    Returns the first free sample, or the last sample tried once
    *max_iterations* is exhausted (a minor overlap beats failing).
    """
    x, y = cx, cy
    for i in range(max_iterations):
        x = cx + math.cos(angle) * radius
        y = cy + math.sin(angle) * radius
        if is_position_free(graph, x, y, exclude_id, config):
            return Point(x, y)
        angle += GOLDEN_ANGLE
        if i % every == every - 1:
            radius += step
    logger.debug(
        "Placement search around (%.1f, %.1f) exhausted after %d tries",
        cx, cy, max_iterations,
    )
    return Point(x, y)


# ---------------------------------------------------------------------------
# Placement entry points
# ---------------------------------------------------------------------------

def standalone_position(
    graph: GraphStore,
    at: Optional[Point],
    viewport_center: Point,
    config: Optional[PlacementConfig] = None,
) -> Point:
    """Position for a new unconnected node.

    An explicit *at* point is used when free; otherwise the spiral starts
    there.  Without *at*, the viewport centre (world coordinates) is used
    the same way with a tighter iteration cap.
    """
    cfg = config or PlacementConfig()
    origin = at if at is not None else viewport_center
    if is_position_free(graph, origin.x, origin.y, config=cfg):
        return Point(origin.x, origin.y)
    iterations = cfg.at_point_iterations if at is not None else cfg.viewport_iterations
    return spiral_search(
        graph, origin.x, origin.y,
        angle=0.0,
        radius=cfg.standalone_radius,
        step=cfg.standalone_step,
        every=cfg.standalone_every,
        max_iterations=iterations,
        config=cfg,
    )


def child_position(
    graph: GraphStore,
    parent_id: int,
    config: Optional[PlacementConfig] = None,
) -> Optional[Point]:
    """Position for a new child of *parent_id*, or None if the parent is unknown.

    The start angle is ``len(children) * GOLDEN_ANGLE``, which alone spreads
    siblings evenly in insertion order; the spiral only matters in dense
    neighbourhoods.
    """
    cfg = config or PlacementConfig()
    parent = graph.get_node(parent_id)
    if parent is None:
        return None
    return spiral_search(
        graph, parent.x, parent.y,
        angle=len(graph.get_children(parent_id)) * GOLDEN_ANGLE,
        radius=cfg.child_radius,
        step=cfg.child_step,
        every=cfg.child_every,
        max_iterations=cfg.child_iterations,
        exclude_id=parent_id,
        config=cfg,
    )
