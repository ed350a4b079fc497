"""
Node colour presets.

The context menu offers a fixed palette of pastel fills; any hex colour
is accepted as well.
"""

from __future__ import annotations

from dataclasses import dataclass

from mindmap_mcp.models import DEFAULT_STROKE
from mindmap_mcp.validation import ValidationError, validate_color


@dataclass(frozen=True)
class PaletteColor:
    """A named fill preset."""
    name: str
    fill: str


class NodePalette:
    """Fill colours offered for nodes (green, blue, yellow, red)."""
    GREEN = PaletteColor("Green", "#CDE8B0")
    BLUE = PaletteColor("Blue", "#A9D6EA")
    YELLOW = PaletteColor("Yellow", "#F9E79F")
    RED = PaletteColor("Red", "#F7B2D9")

    STROKE = DEFAULT_STROKE

    @classmethod
    def presets(cls) -> dict[str, PaletteColor]:
        return {
            name: val for name, val in vars(cls).items()
            if isinstance(val, PaletteColor)
        }


def resolve_fill(value: str) -> str:
    """Map a preset name (``"green"``) or a hex colour to a fill colour."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("'color' must be a preset name or a hex color.")
    preset = NodePalette.presets().get(value.strip().upper())
    if preset is not None:
        return preset.fill
    return validate_color(value, "color")
