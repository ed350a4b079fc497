"""
Mind-map editor controller.

One :class:`Editor` owns everything mutable about an open map: the graph,
the selection, the camera, the undo history and any in-flight pointer
gesture.  Every operation that changes visible state goes through here
and pushes exactly one history snapshot first, so undo/redo pairing and
selection exclusivity hold by construction.

The keyboard and pointer surfaces mirror what an input layer would
dispatch; pointer coordinates are screen pixels, everything stored is in
world coordinates.
"""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

from mindmap_mcp.document import (
    copy_selection,
    dumps,
    minimal_document,
    parse_document,
    remap_clipboard,
)
from mindmap_mcp.geometry import centroid_and_spread, clamp
from mindmap_mcp.graph import GraphStore
from mindmap_mcp.history import HistoryManager
from mindmap_mcp.label_layout import LabelLayout, font_size_for, layout_label, resize_node_for_label
from mindmap_mcp.linking import LinkingStateMachine, ensure_edge, toggle_link
from mindmap_mcp.models import (
    DRAG_THRESHOLD,
    PASTE_OFFSET,
    STORAGE_KEY,
    Camera,
    Clipboard,
    Edge,
    Node,
    Point,
    Snapshot,
)
from mindmap_mcp.navigation import Direction, pick_in_direction
from mindmap_mcp.placement import PlacementConfig, child_position, standalone_position
from mindmap_mcp.selection import Marquee, SelectionModel
from mindmap_mcp.storage import JsonFileStore
from mindmap_mcp.validation import ValidationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class EditorConfig:
    """Per-editor settings."""
    viewport_width: float = 1280
    viewport_height: float = 800
    drag_threshold: float = DRAG_THRESHOLD   # screen px
    paste_offset: float = PASTE_OFFSET
    min_scale: float = 0.3
    max_scale: float = 3.0
    wheel_intensity: float = 0.0015
    view_margin: float = 24
    storage_key: str = STORAGE_KEY
    history_limit: Optional[int] = None
    placement: PlacementConfig = field(default_factory=PlacementConfig)


# ---------------------------------------------------------------------------
# Transient gesture state
# ---------------------------------------------------------------------------

class GestureKind(Enum):
    NONE = "none"
    DRAG = "drag"
    GROUP_DRAG = "group_drag"
    PAN = "pan"
    PINCH = "pinch"
    MARQUEE = "marquee"


@dataclass
class _Gesture:
    kind: GestureKind = GestureKind.NONE
    before: Optional[Snapshot] = None
    origin: Point = field(default_factory=lambda: Point(0, 0))
    node_id: Optional[int] = None
    offset: Point = field(default_factory=lambda: Point(0, 0))
    start_positions: dict[int, Point] = field(default_factory=dict)
    pan_at_start: Point = field(default_factory=lambda: Point(0, 0))
    scale_at_start: float = 1.0
    spread_at_start: float = 0.0
    moved: bool = False
    marquee: Optional[Marquee] = None


_ARROW_KEYS = {
    "ArrowUp": Direction.UP,
    "ArrowDown": Direction.DOWN,
    "ArrowLeft": Direction.LEFT,
    "ArrowRight": Direction.RIGHT,
}


class Editor:
    """Single controller for one map."""

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        store: Optional[JsonFileStore] = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.graph = GraphStore()
        self.selection = SelectionModel()
        self.camera = Camera(
            viewport_width=self.config.viewport_width,
            viewport_height=self.config.viewport_height,
        )
        self.camera.center_origin()
        self.history = HistoryManager(self.config.history_limit)
        self.linking = LinkingStateMachine(self.config.drag_threshold)
        self.clipboard: Optional[Clipboard] = None
        self.store = store
        # Last user-facing message (e.g. why an import was rejected).
        self.notice: Optional[str] = None
        self._pointers: dict[int, Point] = {}
        self._gesture = _Gesture()

    # ===================================================================
    # State, snapshots, history
    # ===================================================================

    def seed_start_node(self, label: str = "Start") -> int:
        """Give an empty map its initial node (not recorded in history)."""
        if not self.graph.nodes:
            self.graph.add_node(Node(id=self.graph.next_node_id(), label=label))
        first = self.graph.nodes[0].id
        self.selection.select_only(first)
        return first

    def snapshot(self) -> Snapshot:
        return Snapshot.capture(
            self.graph.nodes,
            self.graph.edges,
            self.camera,
            self.selection.selected_id,
            self.selection.ordered_ids(),
            sorted(self.selection.selected_edge_ids),
        )

    def restore(self, snap: Snapshot) -> None:
        self._reset_gesture()
        self.graph.replace(snap.live_nodes(), snap.live_edges())
        self.camera.pan = Point(*snap.pan)
        self.camera.scale = snap.scale
        self.selection.restore(snap.selected_id, snap.selected_ids, snap.selected_edge_ids)

    def push_history(self) -> None:
        self.history.push(self.snapshot())

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Snapshot before, persist after."""
        self.push_history()
        yield
        self.autosave()

    def undo(self) -> bool:
        snap = self.history.undo(self.snapshot())
        if snap is None:
            return False
        self.restore(snap)
        self.autosave()
        return True

    def redo(self) -> bool:
        snap = self.history.redo(self.snapshot())
        if snap is None:
            return False
        self.restore(snap)
        self.autosave()
        return True

    # ===================================================================
    # Persistence / import / export
    # ===================================================================

    def export_document(self) -> dict[str, Any]:
        return self.snapshot().to_dict()

    def export_json(self) -> str:
        return dumps(self.export_document())

    def import_document(self, raw: Any) -> None:
        """Replace the map with an imported document (JSON text or object).

        Raises :class:`ValidationError` and leaves state untouched when the
        payload is malformed.
        """
        try:
            doc = parse_document(raw)
        except ValidationError as exc:
            self.notice = f"Import failed: {exc.message}"
            logger.warning("Rejected import: %s", exc.message)
            raise
        with self._transaction():
            self._reset_gesture()
            self.graph.replace(doc.nodes, doc.edges)
            if doc.is_full_snapshot:
                self.camera.pan = doc.pan
                self.camera.scale = doc.scale
                self.selection.restore(doc.selected_id, doc.selected_ids, doc.selected_edge_ids)
                self.selection.prune(
                    {n.id for n in self.graph.nodes}, {e.id for e in self.graph.edges}
                )
            else:
                self.camera.pan = Point(0, 0)
                self.camera.scale = 1.0
                self.selection.clear()
        self.notice = None

    def import_text(self, text: str) -> None:
        """Import a document from pasted / loaded JSON text."""
        self.import_document(text)

    def autosave(self) -> None:
        """Write the minimal document to the attached store, if any."""
        if self.store is None:
            return
        payload = minimal_document(self.graph.nodes, self.graph.edges)
        self.store.set(self.config.storage_key, dumps(payload))

    def restore_from_store(self) -> bool:
        """Load the stored graph; unreadable data is ignored."""
        if self.store is None:
            return False
        raw = self.store.get(self.config.storage_key)
        if raw is None:
            return False
        try:
            doc = parse_document(raw)
        except ValidationError as exc:
            logger.warning("Ignoring stored map '%s': %s", self.config.storage_key, exc.message)
            return False
        self.graph.replace(doc.nodes, doc.edges)
        self.selection.clear()
        return True

    # ===================================================================
    # Camera
    # ===================================================================

    def bring_box_into_view(
        self, cx: float, cy: float, w: float, h: float, margin: Optional[float] = None
    ) -> None:
        """Pan just enough for the box to sit inside the viewport margin."""
        m = self.config.view_margin if margin is None else margin
        cam = self.camera
        top_left = cam.to_screen(cx - w / 2, cy - h / 2)
        bottom_right = cam.to_screen(cx + w / 2, cy + h / 2)
        pan_x, pan_y = cam.pan.x, cam.pan.y
        if top_left.x < m:
            pan_x += m - top_left.x
        if bottom_right.x > cam.viewport_width - m:
            pan_x -= bottom_right.x - (cam.viewport_width - m)
        if top_left.y < m:
            pan_y += m - top_left.y
        if bottom_right.y > cam.viewport_height - m:
            pan_y -= bottom_right.y - (cam.viewport_height - m)
        if (pan_x, pan_y) != (cam.pan.x, cam.pan.y):
            cam.pan = Point(pan_x, pan_y)

    def _focus(self, node_id: int) -> None:
        node = self.graph.get_node(node_id)
        if node is not None:
            self.bring_box_into_view(node.x, node.y, node.w, node.h)

    def zoom_at(self, sx: float, sy: float, factor: float) -> None:
        """Zoom keeping the world point under (sx, sy) fixed on screen."""
        cam = self.camera
        new_scale = clamp(cam.scale * factor, self.config.min_scale, self.config.max_scale)
        anchor = cam.to_world(sx, sy)
        cam.pan = Point(sx - anchor.x * new_scale, sy - anchor.y * new_scale)
        cam.scale = new_scale

    def wheel(self, sx: float, sy: float, dx: float, dy: float, shift: bool = False) -> None:
        if not shift:
            self.zoom_at(sx, sy, math.exp(-dy * self.config.wheel_intensity))
            return
        self.camera.pan = Point(self.camera.pan.x - dx, self.camera.pan.y - dy)

    # ===================================================================
    # Node / edge creation
    # ===================================================================

    def _settle_new_node(self, node: Node) -> None:
        # Layout first, then camera, so the view fits the final box size.
        resize_node_for_label(node)
        self.bring_box_into_view(node.x, node.y, node.w, node.h)

    def add_standalone(self, at: Optional[Point] = None, select: bool = True) -> int:
        """Add an unconnected node at *at* (or near the viewport centre)."""
        with self._transaction():
            pos = standalone_position(
                self.graph, at, self.camera.viewport_center_world(), self.config.placement
            )
            node = self.graph.add_node(Node(id=self.graph.next_node_id(), x=pos.x, y=pos.y))
            self._settle_new_node(node)
            if select:
                self.selection.select_only(node.id)
        return node.id

    def add_child(self, parent_id: int, select: bool = True) -> Optional[int]:
        """Add a child of *parent_id* plus the connecting edge, as one step."""
        parent = self.graph.get_node(parent_id)
        if parent is None:
            return None
        with self._transaction():
            pos = child_position(self.graph, parent_id, self.config.placement)
            child = self.graph.add_node(Node(
                id=self.graph.next_node_id(),
                x=pos.x,
                y=pos.y,
                stroke_color=parent.stroke_color,
                fill_color=parent.fill_color,
            ))
            self.graph.add_edge(Edge(
                id=self.graph.next_edge_id(), source=parent_id, target=child.id, arrow=False,
            ))
            self._settle_new_node(child)
            if select:
                self.selection.select_only(child.id)
        return child.id

    def add_sibling(self, node_id: int, select: bool = True) -> Optional[int]:
        """Child of the node's parent, or a standalone node for a root."""
        if not self.graph.has_node(node_id):
            return None
        parent_id = self.graph.get_parent(node_id)
        if parent_id is not None and self.graph.has_node(parent_id):
            return self.add_child(parent_id, select=select)
        return self.add_standalone(select=select)

    def connect(self, source_id: int, target_id: int, arrow: bool = False) -> Optional[int]:
        """Create source -> target unless the pair is already connected."""
        if source_id == target_id:
            return None
        if not (self.graph.has_node(source_id) and self.graph.has_node(target_id)):
            return None
        if self.graph.find_edge_between(source_id, target_id) is not None:
            return None
        with self._transaction():
            edge = ensure_edge(self.graph, source_id, target_id, arrow)
        return edge.id if edge else None

    def toggle_link(self, a: int, b: int) -> Optional[int]:
        """Shortcut link: remove the a-b edge if present, else add a plain line.

        *b* becomes the selection.  Returns the new edge id, or None when
        an edge was removed or nothing happened.
        """
        if a == b or not (self.graph.has_node(a) and self.graph.has_node(b)):
            return None
        with self._transaction():
            edge = toggle_link(self.graph, a, b)
            self.selection.select_only(b)
        return edge.id if edge else None

    # ===================================================================
    # Removal
    # ===================================================================

    def remove_nodes(self, ids: Iterable[int]) -> list[int]:
        """Remove nodes (cascading to their edges).

        Removing a single node selects its parent, when that parent
        survives; anything else clears the selection.
        """
        doomed = [i for i in dict.fromkeys(ids) if self.graph.has_node(i)]
        if not doomed:
            return []
        parent_id = self.graph.get_parent(doomed[0]) if len(doomed) == 1 else None
        with self._transaction():
            removed = self.graph.remove_nodes(doomed)
            if parent_id is not None and parent_id not in doomed and self.graph.has_node(parent_id):
                self.selection.select_only(parent_id)
            else:
                self.selection.clear()
        return removed

    def remove_edges(self, ids: Iterable[int]) -> list[int]:
        doomed = [i for i in dict.fromkeys(ids) if self.graph.get_edge(i) is not None]
        if not doomed:
            return []
        with self._transaction():
            removed = self.graph.remove_edges(doomed)
            self.selection.clear_edges()
        return removed

    # ===================================================================
    # Editing and styling
    # ===================================================================

    def target_nodes(self, ids: Optional[Iterable[int]]) -> list[Node]:
        wanted = self.selection.ordered_ids() if ids is None else list(ids)
        return [n for n in (self.graph.get_node(i) for i in wanted) if n is not None]

    def rename_node(self, node_id: int, label: str) -> bool:
        node = self.graph.get_node(node_id)
        if node is None:
            return False
        with self._transaction():
            node.label = label
            resize_node_for_label(node)
        return True

    def rename_edge(self, edge_id: int, label: str) -> bool:
        edge = self.graph.get_edge(edge_id)
        if edge is None:
            return False
        with self._transaction():
            edge.label = label.strip() or None
        return True

    def move_node(self, node_id: int, x: float, y: float) -> bool:
        node = self.graph.get_node(node_id)
        if node is None:
            return False
        with self._transaction():
            node.x, node.y = x, y
        return True

    def toggle_bold(self, ids: Optional[Iterable[int]] = None) -> bool:
        nodes = self.target_nodes(ids)
        if not nodes:
            return False
        with self._transaction():
            for node in nodes:
                node.bold = not node.bold
        return True

    def set_fill_color(self, ids: Optional[Iterable[int]], color: Optional[str]) -> bool:
        nodes = self.target_nodes(ids)
        if not nodes:
            return False
        with self._transaction():
            for node in nodes:
                node.fill_color = color
        return True

    def toggle_dashed(self, edge_id: int) -> bool:
        edge = self.graph.get_edge(edge_id)
        if edge is None:
            return False
        with self._transaction():
            edge.dashed = not edge.dashed
        return True

    def toggle_arrow(self, edge_id: int) -> bool:
        edge = self.graph.get_edge(edge_id)
        if edge is None:
            return False
        with self._transaction():
            edge.arrow = not edge.arrow
        return True

    def label_layout(self, node_id: int) -> Optional[LabelLayout]:
        """Wrapped lines and metrics a renderer would draw for the node."""
        node = self.graph.get_node(node_id)
        if node is None:
            return None
        return layout_label(node.label, font_size_for(node), node.w)

    # ===================================================================
    # Clipboard
    # ===================================================================

    def copy(self) -> int:
        """Copy the selected nodes and their internal edges; returns node count."""
        if not self.selection.has_nodes:
            return 0
        self.clipboard = copy_selection(
            self.graph.nodes, self.graph.edges, self.selection.selected_ids
        )
        return len(self.clipboard.nodes)

    def paste(self) -> list[int]:
        if self.clipboard is None or not self.clipboard.nodes:
            return []
        with self._transaction():
            nodes, edges = remap_clipboard(
                self.clipboard,
                self.graph.next_node_id(),
                self.graph.next_edge_id(),
                self.config.paste_offset,
            )
            for node in nodes:
                self.graph.add_node(node)
            for edge in edges:
                self.graph.add_edge(edge)
            self.selection.select_from_array([n.id for n in nodes])
        return [n.id for n in nodes]

    # ===================================================================
    # Keyboard surface
    # ===================================================================

    def type_char(self, char: str) -> bool:
        """Replace (fresh typing) or extend the selected labels."""
        sel = self.selection
        replace = sel.fresh_typing
        if sel.has_edges:
            edges = [e for e in (self.graph.get_edge(i) for i in sorted(sel.selected_edge_ids)) if e]
            if not edges:
                return False
            with self._transaction():
                for edge in edges:
                    edge.label = char if replace else (edge.label or "") + char
        elif sel.has_nodes:
            nodes = self.target_nodes(None)
            if not nodes:
                return False
            with self._transaction():
                for node in nodes:
                    node.label = char if replace else node.label + char
                    resize_node_for_label(node)
        else:
            return False
        sel.fresh_typing = False
        return True

    def backspace(self) -> bool:
        """Drop one character, or delete when several nodes are selected."""
        sel = self.selection
        if sel.has_edges and not sel.has_nodes:
            edges = [e for e in (self.graph.get_edge(i) for i in sorted(sel.selected_edge_ids)) if e]
            if not edges:
                return False
            with self._transaction():
                for edge in edges:
                    edge.label = (edge.label or "")[:-1]
            sel.fresh_typing = False
            return True
        ids = sel.ordered_ids()
        if len(ids) > 1:
            return bool(self.remove_nodes(ids))
        if len(ids) == 1:
            node = self.graph.get_node(ids[0])
            if node is None:
                return False
            with self._transaction():
                node.label = node.label[:-1]
                resize_node_for_label(node)
            sel.fresh_typing = False
            return True
        return False

    def delete(self) -> bool:
        """Delete whole objects: selected nodes, else selected edges."""
        if self.selection.has_nodes:
            return bool(self.remove_nodes(self.selection.ordered_ids()))
        if self.selection.has_edges:
            return bool(self.remove_edges(sorted(self.selection.selected_edge_ids)))
        return False

    def enter(self) -> Optional[int]:
        current = self.selection.single_id
        if current is None:
            return None
        return self.add_child(current)

    def shift_enter(self) -> Optional[int]:
        current = self.selection.single_id
        if current is None:
            return None
        return self.add_sibling(current)

    def navigate(self, direction: Direction) -> Optional[int]:
        current = self.graph.get_node(self.selection.selected_id)
        if current is None:
            return None
        target = pick_in_direction(self.graph.nodes, current, direction)
        if target is None:
            return None
        self.selection.select_only(target)
        self._focus(target)
        return target

    def navigate_up(self) -> Optional[int]:
        """Step along the root path (up to the root, then back down)."""
        current = self.selection.single_id
        if current is None:
            return None
        target = self.selection.path_cursor.step(self.graph, current)
        if target is None:
            return None
        self.selection.select_only(target, keep_path=True)
        self._focus(target)
        return target

    def jump_back(self) -> Optional[int]:
        """Return to the previously selected node."""
        current = self.selection.single_id
        previous = self.selection.previous_id
        if current is None or previous is None or previous == current:
            return None
        if not self.graph.has_node(previous):
            return None
        self.selection.select_only(previous)
        self._focus(previous)
        return previous

    def handle_key(
        self, key: str, *, shift: bool = False, ctrl: bool = False, alt: bool = False
    ) -> bool:
        """Dispatch a key press; returns whether it did anything."""
        lower = key.lower()
        if ctrl:
            if lower == "z" and not shift:
                return self.undo()
            if lower == "y" or (lower == "z" and shift):
                return self.redo()
            if lower == "b":
                return self.toggle_bold()
            if lower == "c":
                return self.copy() > 0
            if lower == "v":
                return bool(self.paste())
            return False
        if key in _ARROW_KEYS:
            return self.navigate(_ARROW_KEYS[key]) is not None
        single = self.selection.single_id is not None
        if key == "Tab" and single:
            if shift:
                return self.navigate_up() is not None
            return self.jump_back() is not None
        if key == "Delete":
            return self.delete()
        if key == "Backspace":
            return self.backspace()
        if len(key) == 1 and not alt:
            return self.type_char(key)
        if key == "Enter" and single:
            if shift:
                return self.shift_enter() is not None
            return self.enter() is not None
        return False

    # ===================================================================
    # Pointer surface
    # ===================================================================

    @property
    def gesture(self) -> GestureKind:
        return self._gesture.kind

    @property
    def marquee(self) -> Optional[Marquee]:
        return self._gesture.marquee

    def _reset_gesture(self) -> None:
        self._gesture = _Gesture()
        self.linking.cancel()

    def _start_pinch(self) -> None:
        cx, cy, spread = centroid_and_spread(self._pointers.values())
        self._finish_drag()
        # A second finger turns any shift-link into a pinch.
        self.linking.cancel()
        self._gesture = _Gesture(
            kind=GestureKind.PINCH,
            origin=Point(cx, cy),
            pan_at_start=Point(self.camera.pan.x, self.camera.pan.y),
            scale_at_start=self.camera.scale,
            spread_at_start=spread,
        )

    def _start_pan(self, sx: float, sy: float) -> None:
        self._gesture = _Gesture(
            kind=GestureKind.PAN,
            origin=Point(sx, sy),
            pan_at_start=Point(self.camera.pan.x, self.camera.pan.y),
            scale_at_start=self.camera.scale,
        )

    def _finish_drag(self) -> None:
        g = self._gesture
        if g.kind in (GestureKind.DRAG, GestureKind.GROUP_DRAG) and g.moved and g.before:
            self.history.push(g.before)
            self.autosave()

    def pointer_down_node(
        self,
        node_id: int,
        sx: float,
        sy: float,
        pointer_id: int = 0,
        *,
        shift: bool = False,
        ctrl: bool = False,
    ) -> None:
        node = self.graph.get_node(node_id)
        if node is None:
            return
        self._pointers[pointer_id] = Point(sx, sy)
        if len(self._pointers) >= 2:
            self._start_pinch()
            return

        if shift and not ctrl:
            partner = self.linking.press(node, self.selection.single_id)
            if partner is not None:
                self.toggle_link(partner, node_id)
            else:
                self.selection.select_only(node_id)
            return

        if self.linking.in_progress:
            return

        if ctrl:
            self.selection.toggle(node_id)
            return

        if node_id not in self.selection.selected_ids:
            self.selection.select_only(node_id)
        self.selection.fresh_typing = True

        world = self.camera.to_world(sx, sy)
        before = self.snapshot()
        if len(self.selection.selected_ids) > 1:
            positions = {
                n.id: Point(n.x, n.y) for n in self.graph.nodes
                if n.id in self.selection.selected_ids
            }
            self._gesture = _Gesture(
                kind=GestureKind.GROUP_DRAG, before=before, origin=world,
                start_positions=positions,
            )
        else:
            self._gesture = _Gesture(
                kind=GestureKind.DRAG, before=before, origin=world, node_id=node_id,
                offset=Point(node.x - world.x, node.y - world.y),
                start_positions={node.id: Point(node.x, node.y)},
            )

    def pointer_down_background(
        self, sx: float, sy: float, pointer_id: int = 0, *, shift: bool = False
    ) -> None:
        self._pointers[pointer_id] = Point(sx, sy)
        if len(self._pointers) >= 2:
            self._start_pinch()
            return
        if self.linking.in_progress:
            return
        if shift:
            world = self.camera.to_world(sx, sy)
            self._gesture = _Gesture(
                kind=GestureKind.MARQUEE, before=self.snapshot(),
                marquee=Marquee.start(world.x, world.y),
            )
            return
        self.selection.clear()
        self._start_pan(sx, sy)

    def pointer_move(self, pointer_id: int, sx: float, sy: float) -> None:
        if pointer_id in self._pointers:
            self._pointers[pointer_id] = Point(sx, sy)
        g = self._gesture

        # Gesture type follows the number of active pointers.
        if len(self._pointers) >= 2:
            if g.kind is not GestureKind.PINCH:
                self._start_pinch()
                return
            self._pinch()
            return
        if g.kind is GestureKind.PINCH:
            remaining = next(iter(self._pointers.values()), None)
            if remaining is None:
                self._gesture = _Gesture()
            else:
                self._start_pan(remaining.x, remaining.y)
            return

        world = self.camera.to_world(sx, sy)
        if g.kind is GestureKind.MARQUEE and g.marquee is not None:
            g.marquee.update(world.x, world.y)
        elif self.linking.in_progress:
            self.linking.move(world.x, world.y, self.camera.scale)
        elif g.kind is GestureKind.GROUP_DRAG:
            dx = world.x - g.origin.x
            dy = world.y - g.origin.y
            for node in self.graph.nodes:
                start = g.start_positions.get(node.id)
                if start is not None:
                    node.x, node.y = start.x + dx, start.y + dy
            g.moved = True
        elif g.kind is GestureKind.DRAG:
            node = self.graph.get_node(g.node_id)
            if node is not None:
                node.x = world.x + g.offset.x
                node.y = world.y + g.offset.y
                g.moved = True
        elif g.kind is GestureKind.PAN:
            self.camera.pan = Point(
                g.pan_at_start.x + sx - g.origin.x,
                g.pan_at_start.y + sy - g.origin.y,
            )

    def _pinch(self) -> None:
        g = self._gesture
        cx, cy, spread = centroid_and_spread(self._pointers.values())
        if g.spread_at_start <= 0:
            return
        new_scale = clamp(
            g.scale_at_start * spread / g.spread_at_start,
            self.config.min_scale,
            self.config.max_scale,
        )
        anchor_x = (g.origin.x - g.pan_at_start.x) / g.scale_at_start
        anchor_y = (g.origin.y - g.pan_at_start.y) / g.scale_at_start
        self.camera.pan = Point(cx - anchor_x * new_scale, cy - anchor_y * new_scale)
        self.camera.scale = new_scale

    def pointer_up(
        self, pointer_id: int, sx: Optional[float] = None, sy: Optional[float] = None
    ) -> None:
        last = self._pointers.pop(pointer_id, None)
        if sx is None or sy is None:
            sx, sy = (last.x, last.y) if last is not None else (0.0, 0.0)
        g = self._gesture

        if g.kind is GestureKind.PINCH:
            if len(self._pointers) == 1:
                remaining = next(iter(self._pointers.values()))
                self._start_pan(remaining.x, remaining.y)
            elif not self._pointers:
                self._gesture = _Gesture()
            return

        if g.kind is GestureKind.MARQUEE and g.marquee is not None:
            ids = g.marquee.select_nodes(self.graph.nodes)
            if set(ids) != self.selection.selected_ids and g.before is not None:
                self.history.push(g.before)
            self.selection.select_from_array(ids)

        if self.linking.in_progress:
            world = self.camera.to_world(sx, sy)
            result = self.linking.release(self.graph, world.x, world.y)
            if result is not None:
                if self.graph.find_edge_between(result.source_id, result.target_id) is None:
                    with self._transaction():
                        ensure_edge(self.graph, result.source_id, result.target_id, result.arrow)
                self.selection.select_only(result.target_id)

        self._finish_drag()
        self._gesture = _Gesture()

    def pointer_cancel(self, pointer_id: int) -> None:
        """Abort whatever gesture is in flight; nothing is recorded."""
        self._pointers.pop(pointer_id, None)
        g = self._gesture
        if g.kind in (GestureKind.DRAG, GestureKind.GROUP_DRAG):
            for node in self.graph.nodes:
                start = g.start_positions.get(node.id)
                if start is not None:
                    node.x, node.y = start.x, start.y
        elif g.kind in (GestureKind.PAN, GestureKind.PINCH):
            self.camera.pan = g.pan_at_start
            self.camera.scale = g.scale_at_start
        self._reset_gesture()
