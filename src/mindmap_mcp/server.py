"""
Mind-map MCP Server — edit node-and-edge mind maps via Model Context Protocol.

Exposes 5 tools that let an LLM agent build and explore mind maps the same
way a user would with mouse and keyboard: every edit goes through the
editor engine, so placement, label sizing and undo/redo behave identically.

Tools:
  1. mindmap   — lifecycle: create, save, load, import/export JSON, list, close
  2. edit      — content: add/rename/delete nodes and edges, styling, clipboard,
                 selection
  3. navigate  — keyboard-style movement: direction, up the root path, back
  4. history   — undo, redo, status
  5. inspect   — read-only: nodes, edges, selection, info, label layout, colors
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from mindmap_mcp.editor import Editor, EditorConfig
from mindmap_mcp.geometry import box_intersection
from mindmap_mcp.models import Edge, Node, Point
from mindmap_mcp.navigation import Direction
from mindmap_mcp.storage import JsonFileStore
from mindmap_mcp.styles import NodePalette, resolve_fill
from mindmap_mcp.validation import (
    ValidationError,
    validate_action,
    validate_direction,
    validate_file_path,
    validate_id_list,
    validate_int,
    validate_non_empty_string,
    validate_number,
    validate_string,
    _EDIT_ACTIONS,
    _HISTORY_ACTIONS,
    _INSPECT_ACTIONS,
    _MINDMAP_ACTIONS,
    _NAVIGATE_ACTIONS,
)

# ---------------------------------------------------------------------------
# Logging — suppress routine FastMCP INFO messages that editors show
# as warnings (they go to stderr).
# ---------------------------------------------------------------------------
logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger("mindmap-mcp")

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------
mcp = FastMCP(
    "mindmap-mcp",
    instructions=(
        "MCP server for editing mind maps (labeled boxes joined by lines/arrows).\n\n"
        "=== ONLY 5 TOOLS — use the 'action' parameter to pick the operation ===\n\n"
        "1. mindmap(action, ...) — lifecycle: create, save, load, import_json,\n"
        "   export_json, list, close.\n"
        "2. edit(action, ...) — content: add_node, add_child, add_sibling, rename,\n"
        "   type, backspace, delete, delete_nodes, delete_edges, toggle_bold,\n"
        "   set_color, connect, toggle_link, toggle_dashed, toggle_arrow,\n"
        "   rename_edge, move, copy, paste, select, select_many, select_edge,\n"
        "   clear_selection.\n"
        "3. navigate(action, ...) — direction (UP/DOWN/LEFT/RIGHT), up, back.\n"
        "4. history(action, ...) — undo, redo, status.\n"
        "5. inspect(action, ...) — nodes, edges, selection, info, layout, colors.\n\n"
        "=== RULES ===\n"
        "- A new map starts with one selected node labeled 'Start' (id 1).\n"
        "- add_child / add_sibling place the node automatically; no coordinates.\n"
        "- Node boxes grow with their label; never set sizes by hand.\n"
        "- Every edit is undoable with history(action='undo').\n"
    ),
)

# In-memory map registry: name -> Editor
# Guarded by _maps_lock for thread-safety.
_maps: dict[str, Editor] = {}
_maps_lock = threading.Lock()


# ===================================================================
# RESOURCES
# ===================================================================

@mcp.resource("mindmap://styles/palette")
def palette_catalog() -> str:
    """Return the node fill presets."""
    entries = [
        f"  {name}: {color.fill}" for name, color in sorted(NodePalette.presets().items())
    ]
    return "Available node fills:\n" + "\n".join(entries)


@mcp.resource("mindmap://guide/agent")
def agent_guide() -> str:
    """Short workflow guide for agents."""
    return """# Mind-map MCP — Agent Guide

1. mindmap(action='create', name='ideas')            -> one 'Start' node, selected
2. edit(action='rename', map_name='ideas', node_id=1, label='Project')
3. edit(action='add_child', map_name='ideas', node_id=1)   -> returns the child
4. edit(action='type', map_name='ideas', text='Research')  -> labels the selection
5. edit(action='add_sibling', map_name='ideas')            -> next to the child
6. navigate(action='direction', map_name='ideas', direction='LEFT')
7. mindmap(action='save', name='ideas', file_path='ideas.json')

- 'type' replaces the label of a freshly selected node and appends afterwards.
- toggle_link removes an existing edge between two nodes or adds a plain line.
- connect(arrow=true) adds an arrow only when the nodes are not yet connected.
- inspect(action='nodes') shows every id, label, position and size.
"""


# ===================================================================
# TOOL 1: mindmap — lifecycle
# ===================================================================

@mcp.tool()
def mindmap(
    action: str,
    name: str = "",
    file_path: str = "",
    json_content: str = "",
    storage_dir: str = "",
    viewport_width: float = 1280,
    viewport_height: float = 800,
) -> str:
    """Mind-map lifecycle management.

    Actions:
      create      — Create a new map with a 'Start' node. Params: name,
                    storage_dir (optional autosave directory; an autosaved
                    map found there is restored), viewport_width, viewport_height.
      save        — Save the full document JSON to a file. Params: name, file_path.
      load        — Load a document JSON file (creates the map if needed).
                    Params: name, file_path.
      import_json — Import a document JSON string. Params: name, json_content.
      export_json — Return the full document JSON. Params: name.
      list        — List all open maps. No params needed.
      close       — Drop a map from memory. Params: name.

    Args:
        action: One of: create, save, load, import_json, export_json, list, close.
        name: Map name (key in memory).
        file_path: Path for save/load operations.
        json_content: Document JSON for import_json.
        storage_dir: Directory for autosave (create only).
        viewport_width: Viewport width in pixels (create only).
        viewport_height: Viewport height in pixels (create only).

    Returns:
        Result string or JSON depending on action.
    """
    try:
        action = validate_action(action, "mindmap", _MINDMAP_ACTIONS)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "list":
        result = [
            {"name": n, "nodes": len(ed.graph.nodes), "edges": len(ed.graph.edges)}
            for n, ed in _maps.items()
        ]
        return json.dumps(result, indent=2)

    try:
        name = validate_non_empty_string(name, "name")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "create":
        try:
            validate_number(viewport_width, "viewport_width", min_val=1)
            validate_number(viewport_height, "viewport_height", min_val=1)
            validate_string(storage_dir, "storage_dir")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        config = EditorConfig(viewport_width=viewport_width, viewport_height=viewport_height)
        store = JsonFileStore(storage_dir) if storage_dir.strip() else None
        editor = Editor(config, store=store)
        restored = editor.restore_from_store()
        if not restored:
            editor.seed_start_node()
        with _maps_lock:
            _maps[name] = editor
        if restored:
            return f"Map '{name}' restored from storage ({len(editor.graph.nodes)} nodes)."
        return f"Map '{name}' created."

    elif action == "save":
        try:
            validate_file_path(file_path, "file_path")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        editor = _maps.get(name)
        if editor is None:
            return f"Error: map '{name}' not found."
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(editor.export_json(), encoding="utf-8")
        return f"Map saved to {path.resolve()}"

    elif action == "load":
        try:
            validate_file_path(file_path, "file_path")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        path = Path(file_path)
        if not path.exists():
            return f"Error: file '{file_path}' not found."
        return _import_impl(name, path.read_text(encoding="utf-8"))

    elif action == "import_json":
        try:
            validate_non_empty_string(json_content, "json_content")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        return _import_impl(name, json_content)

    elif action == "export_json":
        editor = _maps.get(name)
        if editor is None:
            return f"Error: map '{name}' not found."
        return editor.export_json()

    elif action == "close":
        with _maps_lock:
            editor = _maps.pop(name, None)
        if editor is None:
            return f"Error: map '{name}' not found."
        return f"Map '{name}' closed."

    else:
        return f"Error: unknown mindmap action '{action}'."


# ===================================================================
# TOOL 2: edit — content
# ===================================================================

@mcp.tool()
def edit(
    action: str,
    map_name: str = "",
    node_id: int = 0,
    node_ids: Optional[list[int]] = None,
    edge_id: int = 0,
    edge_ids: Optional[list[int]] = None,
    x: Optional[float] = None,
    y: Optional[float] = None,
    label: str = "",
    text: str = "",
    color: str = "",
    arrow: bool = False,
    additive: bool = False,
) -> str:
    """Edit nodes, edges and the selection.

    Node-scoped actions fall back to the current selection when node_id /
    node_ids are omitted.

    Actions:
      add_node        — Standalone node, near (x, y) if given, else the view centre.
      add_child       — Child of node_id (or the selected node), auto-placed.
      add_sibling     — Sibling of node_id (or the selected node).
      rename          — Set node_id's label. Params: node_id, label.
      type            — Type text into the selected labels (replaces first).
      backspace       — Remove one character (deletes when several nodes selected).
      delete          — Delete the selected nodes, else the selected edges.
      delete_nodes    — Delete node_ids (edges cascade).
      delete_edges    — Delete edge_ids.
      toggle_bold     — Toggle bold on node_ids (or the selection).
      set_color       — Fill node_ids (or the selection) with color: a preset
                        (green, blue, yellow, red), a hex color, or 'none'.
      connect         — Edge node_ids[0] -> node_ids[1] unless connected; arrow.
      toggle_link     — Remove the edge between node_ids[0] and node_ids[1],
                        or add a plain line.
      toggle_dashed   — Toggle edge_id's dashed style.
      toggle_arrow    — Toggle edge_id's arrow head.
      rename_edge     — Set edge_id's label (empty clears it).
      move            — Move node_id to (x, y).
      copy / paste    — Copy the selected nodes (and their internal edges); paste
                        them offset by 20px with new ids.
      select          — Select node_id only.
      select_many     — Select node_ids.
      select_edge     — Select edge_id (additive toggles it in the edge selection).
      clear_selection — Clear the selection.

    Args:
        action: The edit action (see above).
        map_name: Target map name.
        node_id: Node id for single-node actions.
        node_ids: Node ids for multi-node actions.
        edge_id: Edge id for single-edge actions.
        edge_ids: Edge ids for delete_edges.
        x: World x coordinate (add_node, move).
        y: World y coordinate (add_node, move).
        label: New label (rename, rename_edge).
        text: Characters to type (type).
        color: Fill color (set_color).
        arrow: Arrow head for connect.
        additive: Toggle into the existing edge selection (select_edge).

    Returns:
        JSON describing the affected objects, or a confirmation sentence.
    """
    try:
        action = validate_action(action, "edit", _EDIT_ACTIONS)
        editor = _require_map(map_name)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    try:
        if action == "add_node":
            at = None
            if x is not None or y is not None:
                at = Point(validate_number(x, "x"), validate_number(y, "y"))
            new_id = editor.add_standalone(at)
            return json.dumps(_node_info(editor.graph.get_node(new_id)), indent=2)

        elif action in ("add_child", "add_sibling"):
            target = _node_or_selection(editor, node_id)
            if action == "add_child":
                new_id = editor.add_child(target)
            else:
                new_id = editor.add_sibling(target)
            if new_id is None:
                return f"Error: node {target} not found."
            return json.dumps(_node_info(editor.graph.get_node(new_id)), indent=2)

        elif action == "rename":
            nid = validate_int(node_id, "node_id", min_val=1)
            validate_string(label, "label")
            if not editor.rename_node(nid, label):
                return f"Error: node {nid} not found."
            return json.dumps(_node_info(editor.graph.get_node(nid)), indent=2)

        elif action == "type":
            validate_string(text, "text", allow_empty=False)
            if editor.selection.is_empty:
                return "Error: nothing selected to type into."
            for ch in text:
                editor.type_char(ch)
            return json.dumps(_selection_info(editor), indent=2)

        elif action == "backspace":
            if not editor.backspace():
                return "Nothing to erase."
            return json.dumps(_selection_info(editor), indent=2)

        elif action == "delete":
            if not editor.delete():
                return "Nothing selected to delete."
            return json.dumps(_selection_info(editor), indent=2)

        elif action == "delete_nodes":
            ids = validate_id_list(node_ids, "node_ids")
            removed = editor.remove_nodes(ids)
            return f"Deleted {len(removed)} node(s)."

        elif action == "delete_edges":
            ids = validate_id_list(edge_ids, "edge_ids")
            removed = editor.remove_edges(ids)
            return f"Deleted {len(removed)} edge(s)."

        elif action == "toggle_bold":
            ids = validate_id_list(node_ids, "node_ids") if node_ids else None
            if not editor.toggle_bold(ids):
                return "Error: no nodes to style."
            return json.dumps([_node_info(n) for n in editor.target_nodes(ids)], indent=2)

        elif action == "set_color":
            ids = validate_id_list(node_ids, "node_ids") if node_ids else None
            validate_non_empty_string(color, "color")
            fill = None if color.strip().lower() == "none" else resolve_fill(color)
            if not editor.set_fill_color(ids, fill):
                return "Error: no nodes to style."
            return json.dumps([_node_info(n) for n in editor.target_nodes(ids)], indent=2)

        elif action in ("connect", "toggle_link"):
            pair = validate_id_list(node_ids, "node_ids")
            if len(pair) != 2:
                return "Error: 'node_ids' must contain exactly 2 ids."
            a, b = pair
            for nid in pair:
                if not editor.graph.has_node(nid):
                    return f"Error: node {nid} not found."
            if action == "connect":
                new_edge = editor.connect(a, b, arrow=arrow)
                if new_edge is None:
                    return f"Nodes {a} and {b} are already connected."
                return json.dumps(_edge_info(editor, editor.graph.get_edge(new_edge)), indent=2)
            new_edge = editor.toggle_link(a, b)
            if new_edge is None:
                return f"Edge between {a} and {b} removed."
            return json.dumps(_edge_info(editor, editor.graph.get_edge(new_edge)), indent=2)

        elif action in ("toggle_dashed", "toggle_arrow", "rename_edge"):
            eid = validate_int(edge_id, "edge_id", min_val=1)
            if action == "toggle_dashed":
                ok = editor.toggle_dashed(eid)
            elif action == "toggle_arrow":
                ok = editor.toggle_arrow(eid)
            else:
                ok = editor.rename_edge(eid, validate_string(label, "label"))
            if not ok:
                return f"Error: edge {eid} not found."
            return json.dumps(_edge_info(editor, editor.graph.get_edge(eid)), indent=2)

        elif action == "move":
            nid = validate_int(node_id, "node_id", min_val=1)
            wx = validate_number(x, "x")
            wy = validate_number(y, "y")
            if not editor.move_node(nid, wx, wy):
                return f"Error: node {nid} not found."
            return json.dumps(_node_info(editor.graph.get_node(nid)), indent=2)

        elif action == "copy":
            count = editor.copy()
            if not count:
                return "Nothing selected to copy."
            return f"Copied {count} node(s)."

        elif action == "paste":
            pasted = editor.paste()
            if not pasted:
                return "Clipboard is empty."
            return json.dumps([_node_info(editor.graph.get_node(i)) for i in pasted], indent=2)

        elif action == "select":
            nid = validate_int(node_id, "node_id", min_val=1)
            if not editor.graph.has_node(nid):
                return f"Error: node {nid} not found."
            editor.selection.select_only(nid)
            return json.dumps(_selection_info(editor), indent=2)

        elif action == "select_many":
            ids = validate_id_list(node_ids, "node_ids")
            editor.selection.select_from_array([i for i in ids if editor.graph.has_node(i)])
            return json.dumps(_selection_info(editor), indent=2)

        elif action == "select_edge":
            eid = validate_int(edge_id, "edge_id", min_val=1)
            if editor.graph.get_edge(eid) is None:
                return f"Error: edge {eid} not found."
            editor.selection.select_edge(eid, additive=additive)
            return json.dumps(_selection_info(editor), indent=2)

        elif action == "clear_selection":
            editor.selection.clear()
            return "Selection cleared."

        else:
            return f"Error: unknown edit action '{action}'."
    except ValidationError as exc:
        return f"Error: {exc.message}"


# ===================================================================
# TOOL 3: navigate — keyboard-style movement
# ===================================================================

@mcp.tool()
def navigate(
    action: str,
    map_name: str = "",
    direction: str = "",
) -> str:
    """Move the selection like the arrow / Tab keys do.

    Actions:
      direction — Best-aligned node towards direction (UP, DOWN, LEFT, RIGHT).
      up        — Next node along the selected node's root path (bounces at
                  the root and walks back down on repeated calls).
      back      — Return to the previously selected node.

    Args:
        action: One of: direction, up, back.
        map_name: Target map name.
        direction: UP, DOWN, LEFT or RIGHT (direction action).

    Returns:
        JSON of the newly selected node, or a sentence when nothing moved.
    """
    try:
        action = validate_action(action, "navigate", _NAVIGATE_ACTIONS)
        editor = _require_map(map_name)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "direction":
        try:
            direction = validate_direction(direction)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        if editor.selection.selected_id is None:
            return "Error: no node selected."
        target = editor.navigate(Direction[direction])
        if target is None:
            return f"No node {direction.lower()} of the selection."
    elif action == "up":
        if editor.selection.single_id is None:
            return "Error: select exactly one node first."
        target = editor.navigate_up()
        if target is None:
            return "Selected node has no parent."
    elif action == "back":
        target = editor.jump_back()
        if target is None:
            return "No previous node to return to."
    else:
        return f"Error: unknown navigate action '{action}'."
    return json.dumps(_node_info(editor.graph.get_node(target)), indent=2)


# ===================================================================
# TOOL 4: history — undo / redo
# ===================================================================

@mcp.tool()
def history(action: str, map_name: str = "") -> str:
    """Undo / redo.

    Actions:
      undo   — Revert the last edit.
      redo   — Re-apply the last undone edit.
      status — Undo / redo depths.

    Args:
        action: One of: undo, redo, status.
        map_name: Target map name.
    """
    try:
        action = validate_action(action, "history", _HISTORY_ACTIONS)
        editor = _require_map(map_name)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "undo":
        if not editor.undo():
            return "Nothing to undo."
    elif action == "redo":
        if not editor.redo():
            return "Nothing to redo."
    return json.dumps(_history_info(editor), indent=2)


# ===================================================================
# TOOL 5: inspect — read-only
# ===================================================================

@mcp.tool()
def inspect(
    action: str,
    map_name: str = "",
    node_id: int = 0,
) -> str:
    """Read-only inspection of maps.

    Actions:
      nodes     — All nodes with ids, labels, positions, sizes and styles.
      edges     — All edges, with the point where arrows meet their target.
      selection — Current node / edge selection.
      info      — Counts, camera, history depths.
      layout    — Wrapped label lines and metrics for node_id.
      colors    — Available fill presets (no map needed).

    Args:
        action: One of: nodes, edges, selection, info, layout, colors.
        map_name: Target map name.
        node_id: Node id (layout).

    Returns:
        JSON data.
    """
    try:
        action = validate_action(action, "inspect", _INSPECT_ACTIONS)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "colors":
        presets = {name.lower(): c.fill for name, c in NodePalette.presets().items()}
        return json.dumps({"fills": presets, "stroke": NodePalette.STROKE}, indent=2)

    try:
        editor = _require_map(map_name)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "nodes":
        return json.dumps([_node_info(n) for n in editor.graph.nodes], indent=2)

    elif action == "edges":
        return json.dumps([_edge_info(editor, e) for e in editor.graph.edges], indent=2)

    elif action == "selection":
        return json.dumps(_selection_info(editor), indent=2)

    elif action == "info":
        cam = editor.camera
        return json.dumps({
            "map_name": map_name,
            "nodes": len(editor.graph.nodes),
            "edges": len(editor.graph.edges),
            "camera": {"pan": cam.pan.to_dict(), "scale": cam.scale,
                       "viewport": {"width": cam.viewport_width, "height": cam.viewport_height}},
            "history": _history_info(editor),
            "notice": editor.notice,
        }, indent=2)

    elif action == "layout":
        try:
            nid = validate_int(node_id, "node_id", min_val=1)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        layout = editor.label_layout(nid)
        if layout is None:
            return f"Error: node {nid} not found."
        return json.dumps({
            "node_id": nid,
            "lines": layout.lines,
            "width": layout.width,
            "height": layout.height,
            "font_size": layout.font_size,
            "line_height": layout.line_height,
            "padding": {"x": layout.padding_x, "y": layout.padding_y},
        }, indent=2)

    else:
        return f"Error: unknown inspect action '{action}'."


# ===================================================================
# Internal helpers
# ===================================================================

def _require_map(map_name: str) -> Editor:
    name = validate_non_empty_string(map_name, "map_name")
    editor = _maps.get(name)
    if editor is None:
        raise ValidationError(f"map '{name}' not found.")
    return editor


def _node_or_selection(editor: Editor, node_id: int) -> int:
    """Explicit node id, else the single selected node."""
    if node_id:
        return validate_int(node_id, "node_id", min_val=1)
    current = editor.selection.single_id
    if current is None:
        raise ValidationError("'node_id' is required when not exactly one node is selected.")
    return current


def _node_info(node: Optional[Node]) -> dict[str, Any]:
    return node.to_dict() if node is not None else {}


def _edge_info(editor: Editor, edge: Optional[Edge]) -> dict[str, Any]:
    if edge is None:
        return {}
    info = edge.to_dict()
    source = editor.graph.get_node(edge.source)
    target = editor.graph.get_node(edge.target)
    if source is not None and target is not None:
        info["start"] = {"x": source.x, "y": source.y}
        if edge.arrow:
            info["end"] = box_intersection(source, target).to_dict()
        else:
            info["end"] = {"x": target.x, "y": target.y}
    else:
        info["dangling"] = True
    return info


def _selection_info(editor: Editor) -> dict[str, Any]:
    sel = editor.selection
    return {
        "selected_id": sel.selected_id,
        "selected_ids": sel.ordered_ids(),
        "selected_edge_ids": sorted(sel.selected_edge_ids),
        "nodes": [_node_info(n) for n in editor.target_nodes(None)],
    }


def _history_info(editor: Editor) -> dict[str, Any]:
    return {
        "can_undo": editor.history.can_undo,
        "can_redo": editor.history.can_redo,
        "undo_depth": editor.history.undo_depth,
        "redo_depth": editor.history.redo_depth,
    }


def _import_impl(name: str, content: str) -> str:
    """Import into the named map, creating it when it does not exist yet."""
    with _maps_lock:
        editor = _maps.get(name)
        created = editor is None
        if editor is None:
            editor = Editor()
    try:
        editor.import_text(content)
    except ValidationError as exc:
        return f"Error: {exc.message}"
    if created:
        editor.history.clear()
        with _maps_lock:
            _maps[name] = editor
    logger.debug("Imported map '%s' (%d nodes)", name, len(editor.graph.nodes))
    return json.dumps({
        "name": name,
        "nodes": len(editor.graph.nodes),
        "edges": len(editor.graph.edges),
    }, indent=2)


# ===================================================================
# Entry point
# ===================================================================

def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
