"""
Label wrapping and box auto-sizing.

Node boxes grow with their text: words are packed greedily into lines,
and when more than ``MAX_LINES`` lines are needed the box is widened and
the text re-wrapped.  Font size is derived from the box height, so size
and font are recomputed together on every label edit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from mindmap_mcp.geometry import approx_text_width, clamp, round_half_up
from mindmap_mcp.models import BASE_H, BASE_W, Node

MAX_LINES = 3
MAX_PASSES = 6
PADDING_X = 16
PADDING_Y = 12
MIN_FONT = 12
MAX_FONT = 20


@dataclass
class LabelLayout:
    """Result of wrapping a label into a box."""
    lines: list[str]
    width: float
    height: float
    line_height: int
    padding_x: int
    padding_y: int
    font_size: float


def _wrap(words: list[str], font_size: float, width: float) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in words:
        test = f"{current} {word}" if current else word
        if approx_text_width(test, font_size) <= width - PADDING_X * 2:
            current = test
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def layout_label(label: str, font_size: float, min_width: float) -> LabelLayout:
    """Wrap *label* at *font_size* into a box at least *min_width* wide.

    The widening loop is bounded at ``MAX_PASSES``.  Width only ever grows
    between passes, so the loop cannot oscillate; it may stop before the
    narrowest possible box, which is acceptable.
    """
    line_height = round_half_up(font_size * 1.15)
    words = label.split() or [label]
    width = max(min_width, BASE_W)
    lines: list[str] = []

    for attempt in range(MAX_PASSES):
        lines = _wrap(words, font_size, width)
        if len(lines) <= MAX_LINES:
            break
        text_len = len(" ".join(label.split())) or 1
        chars_per_line = math.ceil(text_len / MAX_LINES)
        if attempt:
            # Greedy breaks waste less than one word per line.
            chars_per_line += max(len(w) for w in words)
        width = max(width, math.ceil(chars_per_line * font_size * 0.6 + PADDING_X * 2))

    text_w = max((approx_text_width(line, font_size) for line in lines), default=0)
    width = max(width, math.ceil(text_w + PADDING_X * 2))
    height = max(BASE_H, math.ceil(len(lines) * line_height + PADDING_Y * 2))

    return LabelLayout(
        lines=lines or [""],
        width=width,
        height=height,
        line_height=line_height,
        padding_x=PADDING_X,
        padding_y=PADDING_Y,
        font_size=font_size,
    )


def font_size_for(node: Node) -> int:
    """Font size implied by the node's current box height."""
    return int(clamp(round_half_up(node.h * 0.35), MIN_FONT, MAX_FONT))


def resize_node_for_label(node: Node) -> LabelLayout:
    """Recompute *node*'s box from its label, in place, and return the layout."""
    layout = layout_label(node.label, font_size_for(node), node.w)
    node.w = layout.width
    node.h = layout.height
    return layout
