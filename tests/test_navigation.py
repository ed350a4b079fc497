"""Tests for directional and hierarchical keyboard navigation."""

from mindmap_mcp.graph import GraphStore
from mindmap_mcp.models import Edge, Node
from mindmap_mcp.navigation import Direction, RootPathCursor, pick_in_direction


def _nodes(*coords: tuple[float, float]) -> list[Node]:
    return [Node(id=i, x=x, y=y) for i, (x, y) in enumerate(coords, start=1)]


class TestPickInDirection:
    def test_cardinal_neighbours(self) -> None:
        nodes = _nodes((0, 0), (100, 0), (-100, 0), (0, -100), (0, 100))
        cur = nodes[0]
        assert pick_in_direction(nodes, cur, Direction.RIGHT) == 2
        assert pick_in_direction(nodes, cur, Direction.LEFT) == 3
        assert pick_in_direction(nodes, cur, Direction.UP) == 4
        assert pick_in_direction(nodes, cur, Direction.DOWN) == 5

    def test_forward_only(self) -> None:
        nodes = _nodes((0, 0), (-100, 0), (0, 50))
        assert pick_in_direction(nodes, nodes[0], Direction.RIGHT) is None

    def test_no_candidates(self) -> None:
        nodes = _nodes((0, 0))
        assert pick_in_direction(nodes, nodes[0], Direction.UP) is None

    def test_narrow_cone_beats_closer_diagonal(self) -> None:
        nodes = _nodes((0, 0), (300, 20), (100, 100))
        assert pick_in_direction(nodes, nodes[0], Direction.RIGHT) == 2

    def test_closest_within_cone(self) -> None:
        nodes = _nodes((0, 0), (300, 0), (150, 10))
        assert pick_in_direction(nodes, nodes[0], Direction.RIGHT) == 3

    def test_wide_cone_fallback(self) -> None:
        # 45 degrees only qualifies for the 60 degree cone.
        nodes = _nodes((0, 0), (100, 100), (20, 200))
        assert pick_in_direction(nodes, nodes[0], Direction.RIGHT) == 2

    def test_smallest_angle_fallback(self) -> None:
        nodes = _nodes((0, 0), (10, 100), (20, 60))
        assert pick_in_direction(nodes, nodes[0], Direction.RIGHT) == 3

    def test_equal_distance_prefers_smaller_angle(self) -> None:
        nodes = _nodes((0, 0), (96, 28), (100, 0))
        assert pick_in_direction(nodes, nodes[0], Direction.RIGHT) == 3

    def test_coincident_node_skipped(self) -> None:
        nodes = _nodes((0, 0), (0, 0), (50, 0))
        assert pick_in_direction(nodes, nodes[0], Direction.RIGHT) == 3


class TestRootPathCursor:
    def _chain(self) -> GraphStore:
        g = GraphStore()
        for i in (1, 2, 3):
            g.add_node(Node(id=i))
        g.add_edge(Edge(id=1, source=1, target=2))
        g.add_edge(Edge(id=2, source=2, target=3))
        return g

    def test_bounces_between_root_and_start(self) -> None:
        g = self._chain()
        cursor = RootPathCursor()
        visited = []
        current = 3
        for _ in range(5):
            current = cursor.step(g, current)
            visited.append(current)
        assert visited == [2, 1, 2, 3, 2]

    def test_lone_root_is_noop(self) -> None:
        g = self._chain()
        cursor = RootPathCursor()
        g.remove_edges([1, 2])
        assert cursor.step(g, 1) is None

    def test_reset_rebuilds_path(self) -> None:
        g = self._chain()
        cursor = RootPathCursor()
        assert cursor.step(g, 3) == 2
        cursor.reset()
        assert not cursor.active
        assert cursor.step(g, 2) == 1
