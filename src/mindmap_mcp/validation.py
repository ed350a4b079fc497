"""
Checks for tool parameters and imported mind-map documents.

Every check raises :class:`ValidationError` with a message naming the
offending field; the server turns it into an ``"Error: ..."`` reply and
the editor leaves its state alone.
"""

from __future__ import annotations

import math
import re
from typing import Any

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


class ValidationError(Exception):
    """Bad input from a tool caller, an import, or the store."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Tool parameters
# ---------------------------------------------------------------------------

def validate_non_empty_string(value: Any, field_name: str) -> str:
    """Stripped *value*; blank or non-string input is rejected."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field_name}' must be a non-empty string.")
    return value.strip()


def validate_string(value: Any, field_name: str, *, allow_empty: bool = True) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"'{field_name}' must be a string, got {type(value).__name__}.")
    if not allow_empty and not value.strip():
        raise ValidationError(f"'{field_name}' must not be empty.")
    return value


def validate_color(value: Any, field_name: str) -> str:
    """A ``#RGB``, ``#RRGGBB`` or ``#RRGGBBAA`` fill."""
    if not isinstance(value, str):
        raise ValidationError(f"'{field_name}' must be a color string, got {type(value).__name__}.")
    value = value.strip()
    if not _HEX_COLOR.match(value):
        raise ValidationError(
            f"'{field_name}' must be a hex color like #A9D6EA, got '{value}'."
        )
    return value


def validate_number(
    value: Any,
    field_name: str,
    *,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    """A finite int or float (never bool), optionally bounded."""
    if not _is_number(value):
        raise ValidationError(f"'{field_name}' must be a number, got {type(value).__name__}.")
    val = float(value)
    if not math.isfinite(val):
        raise ValidationError(f"'{field_name}' must be a finite number, got {val}.")
    if min_val is not None and val < min_val:
        raise ValidationError(f"'{field_name}' must be >= {min_val}, got {val}.")
    if max_val is not None and val > max_val:
        raise ValidationError(f"'{field_name}' must be <= {max_val}, got {val}.")
    return val


def validate_int(
    value: Any,
    field_name: str,
    *,
    min_val: int | None = None,
    max_val: int | None = None,
) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"'{field_name}' must be an integer, got {type(value).__name__}.")
    if min_val is not None and value < min_val:
        raise ValidationError(f"'{field_name}' must be >= {min_val}, got {value}.")
    if max_val is not None and value > max_val:
        raise ValidationError(f"'{field_name}' must be <= {max_val}, got {value}.")
    return value


def validate_enum(value: Any, field_name: str, allowed: set[str]) -> str:
    """Upper-cased *value* if it names one of *allowed*."""
    if not isinstance(value, str):
        raise ValidationError(f"'{field_name}' must be a string, got {type(value).__name__}.")
    normalized = value.strip().upper()
    if normalized not in {a.upper() for a in allowed}:
        choices = ", ".join(sorted(allowed))
        raise ValidationError(f"'{field_name}' must be one of [{choices}], got '{value}'.")
    return normalized


def validate_list(value: Any, field_name: str, *, min_length: int = 0) -> list:
    if not isinstance(value, list):
        raise ValidationError(f"'{field_name}' must be a list, got {type(value).__name__}.")
    if len(value) < min_length:
        raise ValidationError(
            f"'{field_name}' must have at least {min_length} item(s), got {len(value)}."
        )
    return value


def validate_dict(value: Any, field_name: str) -> dict:
    if not isinstance(value, dict):
        raise ValidationError(f"'{field_name}' must be an object, got {type(value).__name__}.")
    return value


def validate_file_path(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field_name}' must be a non-empty file path string.")
    return value.strip()


def validate_id_list(value: Any, field_name: str) -> list[int]:
    """A non-empty list of positive node or edge ids."""
    validate_list(value, field_name, min_length=1)
    for i, item in enumerate(value):
        validate_int(item, f"{field_name}[{i}]", min_val=1)
    return list(value)


_VALID_DIRECTIONS = {"UP", "DOWN", "LEFT", "RIGHT"}

_MINDMAP_ACTIONS = {"CREATE", "SAVE", "LOAD", "IMPORT_JSON", "EXPORT_JSON", "LIST", "CLOSE"}
_EDIT_ACTIONS = {
    "ADD_NODE", "ADD_CHILD", "ADD_SIBLING", "RENAME", "TYPE", "BACKSPACE",
    "DELETE", "DELETE_NODES", "DELETE_EDGES", "TOGGLE_BOLD", "SET_COLOR",
    "CONNECT", "TOGGLE_LINK", "TOGGLE_DASHED", "TOGGLE_ARROW", "RENAME_EDGE",
    "MOVE", "COPY", "PASTE", "SELECT", "SELECT_MANY", "SELECT_EDGE",
    "CLEAR_SELECTION",
}
_NAVIGATE_ACTIONS = {"DIRECTION", "UP", "BACK"}
_HISTORY_ACTIONS = {"UNDO", "REDO", "STATUS"}
_INSPECT_ACTIONS = {"NODES", "EDGES", "SELECTION", "INFO", "LAYOUT", "COLORS"}


def validate_action(value: Any, tool_name: str, allowed: set[str]) -> str:
    """Lower-cased action name for *tool_name*."""
    choices = ", ".join(sorted(a.lower() for a in allowed))
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"'{tool_name}' requires an 'action' parameter. Valid actions: {choices}."
        )
    if value.strip().upper() not in allowed:
        raise ValidationError(f"Unknown {tool_name} action '{value}'. Valid actions: {choices}.")
    return value.strip().lower()


def validate_direction(value: Any) -> str:
    return validate_enum(value, "direction", _VALID_DIRECTIONS)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

def _check_id(value: Any, where: str, key: str, *, positive: bool) -> None:
    # json.loads yields inf for 1e400 and accepts NaN; both must stop here.
    if not _is_number(value) or not math.isfinite(value) or value != int(value):
        raise ValidationError(f"{where}: '{key}' must be an integer.")
    if positive and value < 1:
        raise ValidationError(f"{where}: '{key}' must be >= 1, got {value}.")


def validate_node_dict(n: Any, index: int) -> None:
    """One entry of a document's ``nodes`` array."""
    where = f"Node at index {index}"
    if not isinstance(n, dict):
        raise ValidationError(f"{where} must be an object.")
    if "id" not in n:
        raise ValidationError(f"{where} missing required key 'id'.")
    if not isinstance(n["id"], int) or isinstance(n["id"], bool):
        raise ValidationError(f"{where}: 'id' must be an integer.")
    _check_id(n["id"], where, "id", positive=True)
    for key in ("x", "y"):
        if key not in n:
            raise ValidationError(f"{where} missing required key '{key}'.")
        if not _is_number(n[key]) or not math.isfinite(n[key]):
            raise ValidationError(f"{where}: '{key}' must be a finite number.")
    for key in ("w", "h"):
        if key in n and (not _is_number(n[key]) or not math.isfinite(n[key]) or n[key] <= 0):
            raise ValidationError(f"{where}: '{key}' must be a positive number.")
    if "label" in n and n["label"] is not None and not isinstance(n["label"], str):
        raise ValidationError(f"{where}: 'label' must be a string.")


def validate_edge_dict(e: Any, index: int) -> None:
    """One entry of a document's ``edges`` array.

    Endpoints are not checked against the node list: dangling edges are
    tolerated and skipped by consumers.
    """
    where = f"Edge at index {index}"
    if not isinstance(e, dict):
        raise ValidationError(f"{where} must be an object.")
    for key in ("id", "source", "target"):
        if key not in e:
            raise ValidationError(f"{where} missing required key '{key}'.")
        _check_id(e[key], where, key, positive=key == "id")
    if "label" in e and e["label"] is not None and not isinstance(e["label"], str):
        raise ValidationError(f"{where}: 'label' must be a string.")


def validate_document(value: Any) -> dict[str, Any]:
    """An object with ``nodes`` and ``edges`` arrays, plus optional camera."""
    if not isinstance(value, dict):
        raise ValidationError(f"Document must be a JSON object, got {type(value).__name__}.")
    validate_list(value.get("nodes"), "nodes")
    validate_list(value.get("edges"), "edges")
    for i, n in enumerate(value["nodes"]):
        validate_node_dict(n, i)
    for i, e in enumerate(value["edges"]):
        validate_edge_dict(e, i)
    if value.get("pan") is not None:
        pan = validate_dict(value["pan"], "pan")
        validate_number(pan.get("x"), "pan.x")
        validate_number(pan.get("y"), "pan.y")
    if value.get("scale") is not None:
        validate_number(value["scale"], "scale", min_val=0.001)
    return value
