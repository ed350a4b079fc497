"""
Geometry primitives for the mind-map engine.

Pure functions, no state: distances, bounding radii, centroids and the
line/box intersection used to end arrows on a node border.
"""

from __future__ import annotations

import math
from typing import Iterable

from mindmap_mcp.models import Node, Point


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round .5 away from the floor (``round()`` would round half to even)."""
    return math.floor(value + 0.5)


def approx_text_width(text: str, font_size: float) -> float:
    """Cheap text width estimate: every character is 0.6 em wide."""
    return len(text) * font_size * 0.6


def box_radius(node: Node) -> float:
    """Radius of the bounding circle used for overlap checks."""
    return max(node.w, node.h) / 2


def point_in_box(node: Node, x: float, y: float) -> bool:
    return abs(x - node.x) <= node.w / 2 and abs(y - node.y) <= node.h / 2


def dist_point_to_segment(
    px: float, py: float, x1: float, y1: float, x2: float, y2: float
) -> float:
    """Distance from (px, py) to the segment (x1, y1)-(x2, y2)."""
    vx, vy = x2 - x1, y2 - y1
    wx, wy = px - x1, py - y1
    len2 = vx * vx + vy * vy or 1e-6
    t = clamp((wx * vx + wy * vy) / len2, 0, 1)
    cx, cy = x1 + t * vx, y1 + t * vy
    return math.hypot(px - cx, py - cy)


def centroid_and_spread(points: Iterable[Point]) -> tuple[float, float, float]:
    """Return (cx, cy, d): the centroid and the largest distance to it.

    For two pointers ``d`` is half their separation, which is what pinch
    zoom compares between frames.
    """
    pts = list(points)
    if not pts:
        return 0.0, 0.0, 0.0
    cx = sum(p.x for p in pts) / len(pts)
    cy = sum(p.y for p in pts) / len(pts)
    d = max(math.hypot(p.x - cx, p.y - cy) for p in pts)
    return cx, cy, d


def box_intersection(source: Node, target: Node) -> Point:
    """Where the centre-to-centre line from *source* enters *target*'s box."""
    dx = target.x - source.x
    dy = target.y - source.y
    if abs(dx) < 1 and abs(dy) < 1:
        return Point(target.x, target.y)

    angle = math.atan2(dy, dx)
    half_w = target.w / 2
    half_h = target.h / 2
    aspect = half_h / half_w

    if abs(math.tan(angle)) < aspect:
        sign = 1 if math.cos(angle) > 0 else -1
        return Point(target.x - sign * half_w, target.y - sign * half_w * math.tan(angle))
    sign = 1 if math.sin(angle) > 0 else -1
    return Point(target.x - sign * half_h / math.tan(angle), target.y - sign * half_h)
