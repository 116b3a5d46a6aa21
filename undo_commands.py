"""
undo_commands.py

Linear snapshot history for GraphAbstract, built on QUndoStack.

Each committed edit pushes one SectionSnapshotCommand holding the section
list before and after the edit.  Live previews never reach this module.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from PyQt6.QtGui import QUndoCommand, QUndoStack

from debug_trace import trace
from models import Section

Snapshot = Tuple[Section, ...]


class SectionSnapshotCommand(QUndoCommand):
    """Command swapping the live section list between two snapshots."""

    def __init__(self, history: "SectionHistory", old: Snapshot, new: Snapshot,
                 label: str = "Edit", parent=None):
        super().__init__(parent)
        self.history = history
        self.old = old
        self.new = new
        self.setText(label)

    def undo(self):
        self.history._set_live(self.old)

    def redo(self):
        self.history._set_live(self.new)


class SectionHistory:
    """Ordered section snapshots plus a cursor.

    ``entries[0]`` is the initial state; ``entries[cursor]`` is always the
    live section list.  Committing after an undo discards the redo tail.

    Args:
        initial: Section list the history starts from.
        parent: Optional QObject owning the underlying QUndoStack.
    """

    def __init__(self, initial: Sequence[Section], parent=None):
        self.stack = QUndoStack(parent)
        self._entries: List[Snapshot] = [tuple(initial)]
        self._live: Snapshot = self._entries[0]
        self._listeners: List[Callable[[Snapshot], None]] = []

    # ----------------------------
    # Observers
    # ----------------------------

    def add_listener(self, callback: Callable[[Snapshot], None]) -> None:
        """Call *callback* with the new live list whenever it changes."""
        self._listeners.append(callback)

    def _set_live(self, snapshot: Snapshot) -> None:
        self._live = snapshot
        for cb in list(self._listeners):
            cb(snapshot)

    # ----------------------------
    # State
    # ----------------------------

    @property
    def live(self) -> Snapshot:
        return self._live

    @property
    def cursor(self) -> int:
        return self.stack.index()

    @property
    def entries(self) -> List[Snapshot]:
        return list(self._entries)

    @property
    def can_undo(self) -> bool:
        return self.stack.canUndo()

    @property
    def can_redo(self) -> bool:
        return self.stack.canRedo()

    # ----------------------------
    # Operations
    # ----------------------------

    def commit(self, new_sections: Sequence[Section], label: str = "Edit") -> None:
        """Record *new_sections* as the next entry and make it live."""
        snapshot = tuple(new_sections)
        del self._entries[self.cursor + 1:]
        self._entries.append(snapshot)
        # push() drops the redo tail and calls redo(), which sets live
        self.stack.push(SectionSnapshotCommand(self, self._live, snapshot, label))
        trace(f"commit '{label}' cursor={self.cursor} entries={len(self._entries)}", "HISTORY")

    def undo(self) -> None:
        if self.stack.canUndo():
            self.stack.undo()
            trace(f"undo cursor={self.cursor}", "HISTORY")

    def redo(self) -> None:
        if self.stack.canRedo():
            self.stack.redo()
            trace(f"redo cursor={self.cursor}", "HISTORY")

    def reset(self, initial: Sequence[Section]) -> None:
        """Drop all entries and start over from *initial*."""
        self.stack.clear()
        self._entries = [tuple(initial)]
        self._set_live(self._entries[0])
        trace("history reset", "HISTORY")
