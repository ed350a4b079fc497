"""Tests for the MCP server tools (5-tool architecture)."""

import json
import os
import tempfile

from mindmap_mcp.server import (
    _maps,
    edit,
    history,
    inspect,
    mindmap,
    navigate,
)


def setup_function() -> None:
    """Clear maps between tests."""
    _maps.clear()


def test_create_seeds_start_node() -> None:
    result = mindmap(action="create", name="m1")
    assert "created" in result
    nodes = json.loads(inspect(action="nodes", map_name="m1"))
    assert len(nodes) == 1
    assert nodes[0]["label"] == "Start"
    sel = json.loads(inspect(action="selection", map_name="m1"))
    assert sel["selected_id"] == 1


def test_build_small_map() -> None:
    mindmap(action="create", name="m")
    edit(action="rename", map_name="m", node_id=1, label="Project")
    child = json.loads(edit(action="add_child", map_name="m", node_id=1))
    assert child["id"] == 2
    typed = json.loads(edit(action="type", map_name="m", text="Research"))
    assert typed["nodes"][0]["label"] == "Research"
    sibling = json.loads(edit(action="add_sibling", map_name="m"))
    assert sibling["id"] == 3

    edges = json.loads(inspect(action="edges", map_name="m"))
    assert [(e["source"], e["target"]) for e in edges] == [(1, 2), (1, 3)]
    info = json.loads(inspect(action="info", map_name="m"))
    assert info["nodes"] == 3
    # rename + add_child + one step per typed character + add_sibling
    assert info["history"]["undo_depth"] == 1 + 1 + len("Research") + 1


def test_add_child_needs_target() -> None:
    mindmap(action="create", name="m")
    edit(action="clear_selection", map_name="m")
    result = edit(action="add_child", map_name="m")
    assert result.startswith("Error:")
    assert "node_id" in result


def test_add_node_at_point() -> None:
    mindmap(action="create", name="m")
    node = json.loads(edit(action="add_node", map_name="m", x=400, y=0))
    assert (node["x"], node["y"]) == (400, 0)


def test_connect_and_edge_styles() -> None:
    mindmap(action="create", name="m")
    edit(action="add_node", map_name="m", x=400, y=0)
    edge = json.loads(edit(action="connect", map_name="m", node_ids=[1, 2], arrow=True))
    assert edge["arrow"] is True
    # arrows end on the target's left border
    assert edge["end"] == {"x": 340, "y": 0}
    assert "already connected" in edit(action="connect", map_name="m", node_ids=[2, 1])

    dashed = json.loads(edit(action="toggle_dashed", map_name="m", edge_id=edge["id"]))
    assert dashed["dashed"] is True
    plain = json.loads(edit(action="toggle_arrow", map_name="m", edge_id=edge["id"]))
    assert plain["arrow"] is False
    named = json.loads(edit(action="rename_edge", map_name="m", edge_id=edge["id"], label="uses"))
    assert named["label"] == "uses"

    assert "removed" in edit(action="toggle_link", map_name="m", node_ids=[2, 1])
    assert json.loads(inspect(action="edges", map_name="m")) == []


def test_connect_requires_pair() -> None:
    mindmap(action="create", name="m")
    assert "exactly 2" in edit(action="connect", map_name="m", node_ids=[1])
    assert "not found" in edit(action="connect", map_name="m", node_ids=[1, 9])


def test_styling_selection() -> None:
    mindmap(action="create", name="m")
    colored = json.loads(edit(action="set_color", map_name="m", color="green"))
    assert colored[0]["fillColor"] == "#CDE8B0"
    cleared = json.loads(edit(action="set_color", map_name="m", color="none"))
    assert "fillColor" not in cleared[0]
    bold = json.loads(edit(action="toggle_bold", map_name="m", node_ids=[1]))
    assert bold[0]["bold"] is True


def test_delete_and_undo() -> None:
    mindmap(action="create", name="m")
    edit(action="add_child", map_name="m", node_id=1)
    assert "Deleted 1 node" in edit(action="delete_nodes", map_name="m", node_ids=[1])
    assert json.loads(inspect(action="edges", map_name="m")) == []

    status = json.loads(history(action="undo", map_name="m"))
    assert status["can_redo"] is True
    assert len(json.loads(inspect(action="nodes", map_name="m"))) == 2
    history(action="redo", map_name="m")
    assert len(json.loads(inspect(action="nodes", map_name="m"))) == 1


def test_history_empty() -> None:
    mindmap(action="create", name="m")
    assert history(action="undo", map_name="m") == "Nothing to undo."
    assert history(action="redo", map_name="m") == "Nothing to redo."
    status = json.loads(history(action="status", map_name="m"))
    assert status == {"can_undo": False, "can_redo": False, "undo_depth": 0, "redo_depth": 0}


def test_copy_paste() -> None:
    mindmap(action="create", name="m")
    edit(action="add_child", map_name="m", node_id=1)
    edit(action="select_many", map_name="m", node_ids=[1, 2])
    assert "Copied 2" in edit(action="copy", map_name="m")
    pasted = json.loads(edit(action="paste", map_name="m"))
    assert [n["id"] for n in pasted] == [3, 4]
    assert (pasted[0]["x"], pasted[0]["y"]) == (20, 20)


def test_select_edge_and_delete() -> None:
    mindmap(action="create", name="m")
    edit(action="add_child", map_name="m", node_id=1)
    sel = json.loads(edit(action="select_edge", map_name="m", edge_id=1))
    assert sel["selected_edge_ids"] == [1]
    assert sel["selected_ids"] == []
    edit(action="delete", map_name="m")
    assert json.loads(inspect(action="edges", map_name="m")) == []


def test_navigate_tools() -> None:
    mindmap(action="create", name="m")
    edit(action="add_node", map_name="m", x=400, y=0)
    edit(action="select", map_name="m", node_id=1)
    moved = json.loads(navigate(action="direction", map_name="m", direction="right"))
    assert moved["id"] == 2
    assert "No node" in navigate(action="direction", map_name="m", direction="RIGHT")
    back = json.loads(navigate(action="back", map_name="m"))
    assert back["id"] == 1
    assert "no parent" in navigate(action="up", map_name="m")


def test_navigate_up_tool() -> None:
    mindmap(action="create", name="m")
    edit(action="add_child", map_name="m", node_id=1)
    up = json.loads(navigate(action="up", map_name="m"))
    assert up["id"] == 1


def test_inspect_layout_and_colors() -> None:
    mindmap(action="create", name="m")
    layout = json.loads(inspect(action="layout", map_name="m", node_id=1))
    assert layout["lines"] == ["Start"]
    assert layout["padding"] == {"x": 16, "y": 12}
    colors = json.loads(inspect(action="colors"))
    assert colors["fills"]["blue"] == "#A9D6EA"
    assert "not found" in inspect(action="layout", map_name="m", node_id=7)


def test_list_and_close() -> None:
    mindmap(action="create", name="a")
    mindmap(action="create", name="b")
    listing = json.loads(mindmap(action="list"))
    assert [m["name"] for m in listing] == ["a", "b"]
    assert "closed" in mindmap(action="close", name="a")
    assert "not found" in mindmap(action="close", name="a")
    assert [m["name"] for m in json.loads(mindmap(action="list"))] == ["b"]


def test_export_import_roundtrip() -> None:
    mindmap(action="create", name="src")
    edit(action="add_child", map_name="src", node_id=1)
    exported = mindmap(action="export_json", name="src")
    data = json.loads(exported)
    assert set(data) >= {"nodes", "edges", "pan", "scale", "selectedId"}

    result = json.loads(mindmap(action="import_json", name="copy", json_content=exported))
    assert result == {"name": "copy", "nodes": 2, "edges": 1}
    copy_status = json.loads(history(action="status", map_name="copy"))
    assert copy_status["can_undo"] is False


def test_import_rejects_malformed() -> None:
    mindmap(action="create", name="m")
    result = mindmap(action="import_json", name="m", json_content='{"nodes": [], "edges": "x"}')
    assert result.startswith("Error:")
    assert len(json.loads(inspect(action="nodes", map_name="m"))) == 1
    info = json.loads(inspect(action="info", map_name="m"))
    assert info["notice"].startswith("Import failed")
    assert "not found" in edit(action="select", map_name="ghost", node_id=1)
    assert mindmap(action="import_json", name="new", json_content="{oops").startswith("Error:")
    assert "new" not in _maps


def test_save_and_load() -> None:
    mindmap(action="create", name="m")
    edit(action="add_child", map_name="m", node_id=1)
    with tempfile.NamedTemporaryFile(suffix=".json", delete=False) as f:
        path = f.name
    try:
        assert "saved" in mindmap(action="save", name="m", file_path=path)
        with open(path, encoding="utf-8") as fh:
            assert json.loads(fh.read())["nodes"][0]["label"] == "Start"
        loaded = json.loads(mindmap(action="load", name="again", file_path=path))
        assert loaded["nodes"] == 2
    finally:
        os.unlink(path)
    assert "not found" in mindmap(action="load", name="x", file_path=path)


def test_create_with_storage_restores(tmp_path) -> None:
    mindmap(action="create", name="m", storage_dir=str(tmp_path))
    edit(action="add_child", map_name="m", node_id=1)
    mindmap(action="close", name="m")
    result = mindmap(action="create", name="m", storage_dir=str(tmp_path))
    assert "restored" in result
    assert len(json.loads(inspect(action="nodes", map_name="m"))) == 2


def test_error_handling() -> None:
    assert mindmap(action="bogus").startswith("Error:")
    assert "name" in mindmap(action="create")
    assert "not found" in mindmap(action="export_json", name="none")
    mindmap(action="create", name="m")
    assert "file_path" in mindmap(action="save", name="m")
    assert "viewport_width" in mindmap(action="create", name="v", viewport_width=0)


def test_import_non_finite_number_is_an_error() -> None:
    mindmap(action="create", name="m")
    content = '{"nodes": [{"id": 1, "x": 0, "y": 0}], "edges": [{"id": 1, "source": NaN, "target": 1}]}'
    result = mindmap(action="import_json", name="m", json_content=content)
    assert result.startswith("Error:")
    assert "'source'" in result
    info = json.loads(inspect(action="info", map_name="m"))
    assert info["notice"].startswith("Import failed")
