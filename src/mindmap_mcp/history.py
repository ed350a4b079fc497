"""
Linear undo / redo over immutable snapshots.
"""

from __future__ import annotations

import logging
from typing import Optional

from mindmap_mcp.models import Snapshot

logger = logging.getLogger(__name__)


class HistoryManager:
    """Two snapshot stacks.

    Callers push the state *before* a mutation.  Any push after an undo
    discards the redo branch.
    """

    def __init__(self, limit: Optional[int] = None) -> None:
        self.limit = limit
        self._undo: list[Snapshot] = []
        self._redo: list[Snapshot] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def push(self, snapshot: Snapshot) -> None:
        self._undo.append(snapshot)
        self._redo.clear()
        if self.limit is not None and len(self._undo) > self.limit:
            del self._undo[: len(self._undo) - self.limit]
        logger.debug("History push (depth %d)", len(self._undo))

    def undo(self, current: Snapshot) -> Optional[Snapshot]:
        """Pop the last snapshot, parking *current* on the redo stack."""
        if not self._undo:
            return None
        snap = self._undo.pop()
        self._redo.append(current)
        return snap

    def redo(self, current: Snapshot) -> Optional[Snapshot]:
        if not self._redo:
            return None
        snap = self._redo.pop()
        self._undo.append(current)
        return snap

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
