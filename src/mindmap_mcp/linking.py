"""
Linking gesture state machine.

A modified (shift) press on a node either toggles an edge to the node
that is already selected (shortcut path, no drag states), or starts a
linking gesture::

    idle --press--> pending --moved past threshold--> active
    pending/active --release--> idle

Releasing over another node yields a :class:`LinkResult`; the arrow flag
records whether the gesture was a drag (``active``) or a plain click.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mindmap_mcp.graph import GraphStore
from mindmap_mcp.models import DRAG_THRESHOLD, Edge, Node


class LinkPhase(Enum):
    IDLE = "idle"
    PENDING = "pending"
    ACTIVE = "active"


@dataclass
class LinkingState:
    phase: LinkPhase = LinkPhase.IDLE
    source_id: Optional[int] = None
    x: float = 0
    y: float = 0
    start_x: float = 0
    start_y: float = 0


@dataclass
class LinkResult:
    source_id: int
    target_id: int
    arrow: bool


class LinkingStateMachine:
    """Turns a modified press / drag / release sequence into a link request."""

    def __init__(self, drag_threshold: float = DRAG_THRESHOLD) -> None:
        self.drag_threshold = drag_threshold
        self.state = LinkingState()

    @property
    def phase(self) -> LinkPhase:
        return self.state.phase

    @property
    def in_progress(self) -> bool:
        return self.state.phase is not LinkPhase.IDLE

    def press(self, node: Node, selected_id: Optional[int]) -> Optional[int]:
        """Handle a modified press on *node*.

        Returns the id of the already-selected node when the shortcut
        toggle applies (caller toggles the edge); otherwise enters
        ``pending`` with the node centre as gesture origin and returns None.
        """
        if selected_id is not None and selected_id != node.id:
            return selected_id
        self.state = LinkingState(
            phase=LinkPhase.PENDING,
            source_id=node.id,
            x=node.x,
            y=node.y,
            start_x=node.x,
            start_y=node.y,
        )
        return None

    def move(self, x: float, y: float, scale: float = 1.0) -> LinkPhase:
        """Track the pointer (world coordinates); the threshold is in screen px."""
        st = self.state
        if st.phase is LinkPhase.PENDING:
            threshold = self.drag_threshold / scale
            if math.hypot(x - st.start_x, y - st.start_y) > threshold:
                st.phase = LinkPhase.ACTIVE
                st.x, st.y = x, y
        elif st.phase is LinkPhase.ACTIVE:
            st.x, st.y = x, y
        return st.phase

    def release(self, graph: GraphStore, x: float, y: float) -> Optional[LinkResult]:
        """End the gesture at (x, y); returns the link request, if any."""
        st = self.state
        result: Optional[LinkResult] = None
        if st.phase is not LinkPhase.IDLE and st.source_id is not None:
            if st.phase is LinkPhase.ACTIVE:
                st.x, st.y = x, y
            target_id = graph.node_at(x, y, exclude_id=st.source_id)
            if target_id is not None:
                result = LinkResult(
                    source_id=st.source_id,
                    target_id=target_id,
                    arrow=st.phase is LinkPhase.ACTIVE,
                )
        self.state = LinkingState()
        return result

    def cancel(self) -> None:
        self.state = LinkingState()


def toggle_link(graph: GraphStore, a: int, b: int, arrow: bool = False) -> Optional[Edge]:
    """Remove the edge between *a* and *b* if present, else create one.

    The edge list is treated as a set of unordered pairs.  Returns the
    created edge, or None when an edge was removed (or a == b).
    """
    if a == b:
        return None
    existing = graph.find_edge_between(a, b)
    if existing is not None:
        graph.remove_edges([existing.id])
        return None
    return ensure_edge(graph, a, b, arrow)


def ensure_edge(graph: GraphStore, a: int, b: int, arrow: bool = False) -> Optional[Edge]:
    """Create a -> b unless the pair is already connected in either direction."""
    if a == b or graph.find_edge_between(a, b) is not None:
        return None
    return graph.add_edge(Edge(id=graph.next_edge_id(), source=a, target=b, arrow=arrow))
