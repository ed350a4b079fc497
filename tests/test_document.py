"""Tests for document import/export parsing and clipboard payloads."""

import json

import pytest

from mindmap_mcp.document import (
    copy_selection,
    minimal_document,
    parse_document,
    remap_clipboard,
)
from mindmap_mcp.models import Edge, Node, Point
from mindmap_mcp.validation import ValidationError


def _full_doc() -> dict:
    return {
        "nodes": [
            {"id": 1, "label": "Root", "x": 0, "y": 0, "w": 120, "h": 64,
             "strokeColor": "#333", "bold": False},
            {"id": 2, "label": "Leaf", "x": 160, "y": 0, "w": 120, "h": 64,
             "strokeColor": "#333", "fillColor": "#A9D6EA", "bold": True},
        ],
        "edges": [{"id": 1, "source": 1, "target": 2, "dashed": False, "arrow": True}],
        "pan": {"x": 10, "y": 20},
        "scale": 1.5,
        "selectedId": 2,
        "selectedIds": [2],
        "selectedEdgeIds": [],
    }


class TestParseDocument:
    def test_full_snapshot(self) -> None:
        doc = parse_document(json.dumps(_full_doc()))
        assert doc.is_full_snapshot
        assert doc.pan == Point(10, 20)
        assert doc.scale == 1.5
        assert doc.selected_id == 2
        assert doc.nodes[1].fill_color == "#A9D6EA"
        assert doc.nodes[1].bold is True
        assert doc.edges[0].arrow is True

    def test_minimal_variant(self) -> None:
        doc = parse_document({"nodes": [{"id": 1, "x": 0, "y": 0}], "edges": []})
        assert not doc.is_full_snapshot
        assert doc.pan is None
        assert doc.selected_ids == []

    def test_accepts_bytes(self) -> None:
        doc = parse_document(b'{"nodes": [], "edges": []}')
        assert doc.nodes == []

    def test_edges_not_a_list(self) -> None:
        with pytest.raises(ValidationError, match="'edges' must be a list"):
            parse_document({"nodes": [], "edges": "x"})

    def test_missing_nodes(self) -> None:
        with pytest.raises(ValidationError, match="'nodes' must be a list"):
            parse_document({"edges": []})

    def test_invalid_json(self) -> None:
        with pytest.raises(ValidationError, match="Invalid JSON"):
            parse_document("{nodes:")

    def test_top_level_array(self) -> None:
        with pytest.raises(ValidationError, match="JSON object"):
            parse_document("[]")

    def test_bad_node_entry(self) -> None:
        with pytest.raises(ValidationError, match="Node at index 0"):
            parse_document({"nodes": [{"id": "a", "x": 0, "y": 0}], "edges": []})

    @pytest.mark.parametrize("text", [
        '{"nodes": [{"id": 1, "x": 0, "y": 0}], "edges": [{"id": 1e400, "source": 1, "target": 1}]}',
        '{"nodes": [{"id": 1, "x": 0, "y": 0}], "edges": [{"id": 1, "source": NaN, "target": 1}]}',
        '{"nodes": [{"id": 1, "x": Infinity, "y": 0}], "edges": []}',
        '{"nodes": [], "edges": [], "pan": {"x": NaN, "y": 0}}',
    ])
    def test_non_finite_numbers_rejected(self, text: str) -> None:
        with pytest.raises(ValidationError):
            parse_document(text)

    def test_fractional_edge_id_rejected(self) -> None:
        with pytest.raises(ValidationError, match="'target' must be an integer"):
            parse_document({"nodes": [], "edges": [{"id": 1, "source": 1, "target": 2.5}]})

    def test_integral_float_ids_accepted(self) -> None:
        doc = parse_document({"nodes": [], "edges": [{"id": 3.0, "source": 1, "target": 2.0}]})
        assert (doc.edges[0].id, doc.edges[0].target) == (3, 2)

    def test_bad_pan(self) -> None:
        data = _full_doc()
        data["pan"] = {"x": "left", "y": 0}
        with pytest.raises(ValidationError, match="pan.x"):
            parse_document(data)

    def test_colliding_edge_ids_renumbered(self) -> None:
        data = {
            "nodes": [{"id": 1, "x": 0, "y": 0}, {"id": 2, "x": 1, "y": 1},
                      {"id": 3, "x": 2, "y": 2}],
            "edges": [{"id": 5, "source": 1, "target": 2},
                      {"id": 5, "source": 2, "target": 3}],
        }
        doc = parse_document(data)
        assert [e.id for e in doc.edges] == [5, 6]

    def test_dangling_edge_tolerated(self) -> None:
        doc = parse_document({
            "nodes": [{"id": 1, "x": 0, "y": 0}],
            "edges": [{"id": 1, "source": 1, "target": 99}],
        })
        assert len(doc.edges) == 1


def test_minimal_document_roundtrips() -> None:
    data = minimal_document([Node(id=1, label="a")], [])
    doc = parse_document(data)
    assert doc.nodes[0].label == "a"
    assert set(data) == {"nodes", "edges"}


class TestClipboard:
    def _graph(self) -> tuple[list[Node], list[Edge]]:
        nodes = [Node(id=1, x=0, y=0), Node(id=2, x=160, y=0), Node(id=3, x=0, y=160)]
        edges = [Edge(id=1, source=1, target=2, label="x"), Edge(id=2, source=1, target=3)]
        return nodes, edges

    def test_copy_keeps_internal_edges_only(self) -> None:
        nodes, edges = self._graph()
        clip = copy_selection(nodes, edges, {1, 2})
        assert [n.id for n in clip.nodes] == [1, 2]
        assert [e.id for e in clip.edges] == [1]

    def test_copy_is_detached(self) -> None:
        nodes, edges = self._graph()
        clip = copy_selection(nodes, edges, {1})
        nodes[0].label = "changed"
        assert clip.nodes[0].label == ""

    def test_remap_ids_and_offset(self) -> None:
        nodes, edges = self._graph()
        clip = copy_selection(nodes, edges, {1, 2})
        new_nodes, new_edges = remap_clipboard(clip, 4, 3, 20)
        assert [(n.id, n.x, n.y) for n in new_nodes] == [(4, 20, 20), (5, 180, 20)]
        assert [(e.id, e.source, e.target, e.label) for e in new_edges] == [(3, 4, 5, "x")]
