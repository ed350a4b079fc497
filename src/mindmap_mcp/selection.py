"""
Node / edge selection.

Two selection domains, nodes and edges, which are mutually exclusive:
every mutation that fills one empties the other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from mindmap_mcp.models import Node
from mindmap_mcp.navigation import RootPathCursor


class SelectionModel:
    """Primary node, multi-node set and edge set, plus typing/navigation memory."""

    def __init__(self) -> None:
        self.selected_id: Optional[int] = None
        self.selected_ids: set[int] = set()
        self.selected_edge_ids: set[int] = set()
        # Next typed character replaces the label instead of appending.
        self.fresh_typing = True
        self.previous_id: Optional[int] = None
        self.path_cursor = RootPathCursor()

    @property
    def has_nodes(self) -> bool:
        return bool(self.selected_ids)

    @property
    def has_edges(self) -> bool:
        return bool(self.selected_edge_ids)

    @property
    def is_empty(self) -> bool:
        return not self.selected_ids and not self.selected_edge_ids

    @property
    def single_id(self) -> Optional[int]:
        """The primary id when exactly one node is selected."""
        if self.selected_id is not None and len(self.selected_ids) == 1:
            return self.selected_id
        return None

    def ordered_ids(self) -> list[int]:
        """Selected node ids, primary first, the rest ascending."""
        rest = sorted(i for i in self.selected_ids if i != self.selected_id)
        if self.selected_id is not None and self.selected_id in self.selected_ids:
            return [self.selected_id] + rest
        return rest

    def select_only(self, node_id: int, *, keep_path: bool = False) -> None:
        if not keep_path:
            self.path_cursor.reset()
        if self.selected_id is not None and self.selected_id != node_id:
            self.previous_id = self.selected_id
        self.selected_id = node_id
        self.selected_ids = {node_id}
        self.selected_edge_ids = set()
        self.fresh_typing = True

    def toggle(self, node_id: int) -> None:
        ids = [i for i in self.ordered_ids() if i != node_id]
        if node_id not in self.selected_ids:
            ids.append(node_id)
        self.selected_ids = set(ids)
        self.selected_id = ids[0] if ids else None
        self.selected_edge_ids = set()
        self.fresh_typing = True

    def select_from_array(self, ids: Iterable[int]) -> None:
        id_list = list(ids)
        self.selected_id = id_list[0] if id_list else None
        self.selected_ids = set(id_list)
        self.selected_edge_ids = set()
        self.fresh_typing = True

    def select_edge(self, edge_id: int, *, additive: bool = False) -> None:
        self.selected_id = None
        self.selected_ids = set()
        if additive:
            edges = set(self.selected_edge_ids)
            if edge_id in edges:
                edges.remove(edge_id)
            else:
                edges.add(edge_id)
            self.selected_edge_ids = edges
        else:
            self.selected_edge_ids = {edge_id}
        self.fresh_typing = True

    def clear_edges(self) -> None:
        self.selected_edge_ids = set()

    def clear(self) -> None:
        self.selected_id = None
        self.selected_ids = set()
        self.selected_edge_ids = set()
        self.fresh_typing = True

    def restore(
        self,
        selected_id: Optional[int],
        selected_ids: Iterable[int],
        selected_edge_ids: Iterable[int],
    ) -> None:
        """Load selection from a snapshot, keeping the domains exclusive."""
        ids = set(selected_ids)
        edge_ids = set(selected_edge_ids)
        if ids and edge_ids:
            edge_ids = set()
        if selected_id is not None:
            ids.add(selected_id)
        self.selected_id = selected_id
        self.selected_ids = ids
        self.selected_edge_ids = set() if ids else edge_ids
        self.path_cursor.reset()
        self.fresh_typing = True

    def prune(self, node_ids: set[int], edge_ids: set[int]) -> None:
        """Drop ids that no longer exist."""
        self.selected_ids &= node_ids
        self.selected_edge_ids &= edge_ids
        if self.selected_id not in self.selected_ids:
            remaining = self.ordered_ids()
            self.selected_id = remaining[0] if remaining else None


@dataclass
class Marquee:
    """World-space rubber-band rectangle anchored at (x1, y1)."""
    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def start(cls, x: float, y: float) -> Marquee:
        return cls(x, y, x, y)

    def update(self, x: float, y: float) -> None:
        self.x2 = x
        self.y2 = y

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return (
            min(self.x1, self.x2), min(self.y1, self.y2),
            max(self.x1, self.x2), max(self.y1, self.y2),
        )

    def contains(self, node: Node) -> bool:
        """Centre-point containment, bounds inclusive."""
        min_x, min_y, max_x, max_y = self.bounds
        return min_x <= node.x <= max_x and min_y <= node.y <= max_y

    def select_nodes(self, nodes: Iterable[Node]) -> list[int]:
        return [n.id for n in nodes if self.contains(n)]
