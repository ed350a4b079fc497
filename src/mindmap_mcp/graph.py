"""
Canonical node / edge collections and structural queries.

The edge set is a general graph.  Tree-shaped queries (parent, root path)
follow one policy: the *first* edge, in insertion order, whose target is
a node defines that node's parent.  Additional incoming edges are legal
and simply ignored by those queries.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from mindmap_mcp.geometry import point_in_box
from mindmap_mcp.models import Edge, Node, next_id


class GraphStore:
    """Owns the node and edge lists of one map."""

    def __init__(
        self,
        nodes: Optional[list[Node]] = None,
        edges: Optional[list[Edge]] = None,
    ) -> None:
        self.nodes: list[Node] = nodes if nodes is not None else []
        self.edges: list[Edge] = edges if edges is not None else []

    # ----- ids -----

    def next_node_id(self) -> int:
        return next_id(self.nodes)

    def next_edge_id(self) -> int:
        return next_id(self.edges)

    # ----- mutations -----

    def add_node(self, node: Node) -> Node:
        self.nodes.append(node)
        return node

    def add_edge(self, edge: Edge) -> Edge:
        self.edges.append(edge)
        return edge

    def remove_nodes(self, ids: Iterable[int]) -> list[int]:
        """Remove nodes and every edge touching them.

        Returns the ids that were actually removed; unknown ids are ignored.
        """
        doomed = set(ids)
        removed = [n.id for n in self.nodes if n.id in doomed]
        if not removed:
            return []
        self.nodes = [n for n in self.nodes if n.id not in doomed]
        self.edges = [
            e for e in self.edges
            if e.source not in doomed and e.target not in doomed
        ]
        return removed

    def remove_edges(self, ids: Iterable[int]) -> list[int]:
        doomed = set(ids)
        removed = [e.id for e in self.edges if e.id in doomed]
        if removed:
            self.edges = [e for e in self.edges if e.id not in doomed]
        return removed

    def replace(self, nodes: list[Node], edges: list[Edge]) -> None:
        self.nodes = nodes
        self.edges = edges

    # ----- lookups -----

    def get_node(self, node_id: Optional[int]) -> Optional[Node]:
        if node_id is None:
            return None
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: int) -> Optional[Edge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def has_node(self, node_id: int) -> bool:
        return self.get_node(node_id) is not None

    def find_edge_between(self, a: int, b: int) -> Optional[Edge]:
        """First edge joining *a* and *b*, in either direction."""
        for edge in self.edges:
            if edge.connects(a, b):
                return edge
        return None

    def node_at(self, x: float, y: float, exclude_id: Optional[int] = None) -> Optional[int]:
        """Id of the first node whose box contains (x, y)."""
        for node in self.nodes:
            if exclude_id is not None and node.id == exclude_id:
                continue
            if point_in_box(node, x, y):
                return node.id
        return None

    def segments(
        self, exclude_id: Optional[int] = None
    ) -> Iterator[tuple[Edge, Node, Node]]:
        """Yield (edge, source, target) for drawable edges.

        Edges with a missing endpoint are skipped; edges touching
        *exclude_id* are skipped too.
        """
        by_id = {n.id: n for n in self.nodes}
        for edge in self.edges:
            if exclude_id is not None and edge.touches(exclude_id):
                continue
            source = by_id.get(edge.source)
            target = by_id.get(edge.target)
            if source is None or target is None:
                continue
            yield edge, source, target

    # ----- tree queries -----

    def get_parent(self, child_id: int) -> Optional[int]:
        for edge in self.edges:
            if edge.target == child_id:
                return edge.source
        return None

    def get_children(self, parent_id: int) -> list[int]:
        return sorted(e.target for e in self.edges if e.source == parent_id)

    def root_path(self, node_id: int) -> list[int]:
        """Path root -> ... -> *node_id* following :meth:`get_parent`.

        Stops at the first repeated node so a cycle of edges cannot loop.
        """
        up: list[int] = []
        seen: set[int] = set()
        cur: Optional[int] = node_id
        while cur is not None and cur not in seen:
            up.append(cur)
            seen.add(cur)
            cur = self.get_parent(cur)
        up.reverse()
        return up
