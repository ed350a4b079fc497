"""Tests for the mind-map data model classes."""

from mindmap_mcp.models import (
    BASE_H,
    BASE_W,
    DEFAULT_STROKE,
    GOLDEN_ANGLE,
    Camera,
    Clipboard,
    Edge,
    Node,
    Point,
    Snapshot,
    next_id,
)


def test_node_defaults() -> None:
    n = Node(id=1)
    assert n.label == ""
    assert (n.w, n.h) == (BASE_W, BASE_H)
    assert n.stroke_color == DEFAULT_STROKE
    assert n.fill_color is None
    assert n.bold is False


def test_node_to_dict_omits_missing_fill() -> None:
    data = Node(id=3, label="Hi", x=10, y=-5).to_dict()
    assert data["strokeColor"] == "#333"
    assert "fillColor" not in data
    filled = Node(id=3, fill_color="#CDE8B0").to_dict()
    assert filled["fillColor"] == "#CDE8B0"


def test_node_from_dict_fills_defaults() -> None:
    n = Node.from_dict({"id": 7, "x": 1, "y": 2})
    assert n.id == 7
    assert (n.x, n.y) == (1.0, 2.0)
    assert (n.w, n.h) == (BASE_W, BASE_H)
    assert n.label == ""
    assert n.stroke_color == DEFAULT_STROKE


def test_node_dict_roundtrip() -> None:
    n = Node(id=2, label="Idea", x=5, y=6, w=140, h=70, fill_color="#F9E79F", bold=True)
    assert Node.from_dict(n.to_dict()) == n


def test_edge_connects_either_direction() -> None:
    e = Edge(id=1, source=1, target=2)
    assert e.connects(1, 2)
    assert e.connects(2, 1)
    assert not e.connects(1, 3)
    assert e.touches(2)
    assert not e.touches(3)


def test_edge_to_dict_omits_missing_label() -> None:
    data = Edge(id=1, source=1, target=2, arrow=True).to_dict()
    assert "label" not in data
    assert data["arrow"] is True
    assert data["dashed"] is False
    assert Edge.from_dict({**data, "label": "why"}).label == "why"


def test_camera_world_screen_inverse() -> None:
    cam = Camera(pan=Point(100, 50), scale=2.0)
    screen = cam.to_screen(10, 20)
    assert (screen.x, screen.y) == (120, 90)
    world = cam.to_world(screen.x, screen.y)
    assert (world.x, world.y) == (10, 20)


def test_camera_center_origin() -> None:
    cam = Camera(viewport_width=800, viewport_height=600, scale=2.5)
    cam.center_origin()
    assert cam.pan == Point(400, 300)
    assert cam.scale == 1.0
    assert cam.viewport_center_world() == Point(0, 0)


def test_snapshot_is_a_private_copy() -> None:
    nodes = [Node(id=1, label="a")]
    edges = [Edge(id=1, source=1, target=1)]
    snap = Snapshot.capture(nodes, edges, Camera(), 1, [1], [])
    nodes[0].label = "changed"
    assert snap.nodes[0].label == "a"

    live = snap.live_nodes()
    live[0].label = "also changed"
    assert snap.nodes[0].label == "a"


def test_snapshot_to_dict_keys() -> None:
    snap = Snapshot.capture([Node(id=1)], [], Camera(pan=Point(3, 4)), 1, [1], [])
    data = snap.to_dict()
    assert set(data) == {
        "nodes", "edges", "pan", "scale", "selectedId", "selectedIds", "selectedEdgeIds",
    }
    assert data["pan"] == {"x": 3, "y": 4}
    assert data["selectedIds"] == [1]


def test_clipboard_to_dict() -> None:
    clip = Clipboard(nodes=[Node(id=1)], edges=[])
    assert clip.to_dict()["nodes"][0]["id"] == 1


def test_next_id() -> None:
    assert next_id([]) == 1
    assert next_id([Node(id=4), Node(id=2)]) == 5


def test_golden_angle_value() -> None:
    assert abs(GOLDEN_ANGLE - 2.399963) < 1e-6
