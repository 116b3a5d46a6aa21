"""
canvas/scene.py

QGraphicsScene showing one document: the slide frame plus one SectionItem
per section.  Mouse events are forwarded to the ManipulationEngine; the
scene re-syncs its items whenever the EditSession reports a change.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence

from PyQt6.QtCore import Qt, QRectF
from PyQt6.QtGui import QCursor
from PyQt6.QtWidgets import QGraphicsScene

from canvas.items import SectionItem, SlideFrameItem
from canvas.manipulation import GestureState, HitKind, ManipulationEngine
from models import CANVAS_HEIGHT, CANVAS_WIDTH, Document, Section
from session import EditSession

# Handle key → resize cursor
_HANDLE_CURSORS = {
    "tl": Qt.CursorShape.SizeFDiagCursor,
    "br": Qt.CursorShape.SizeFDiagCursor,
    "tr": Qt.CursorShape.SizeBDiagCursor,
    "bl": Qt.CursorShape.SizeBDiagCursor,
    "t": Qt.CursorShape.SizeVerCursor,
    "b": Qt.CursorShape.SizeVerCursor,
    "l": Qt.CursorShape.SizeHorCursor,
    "r": Qt.CursorShape.SizeHorCursor,
}


class CanvasScene(QGraphicsScene):
    """
    Fixed 1280x720 scene for a graphical abstract.

    With a session the scene is interactive: it listens to the session and
    routes left-button gestures through a ManipulationEngine.  Without one
    (``CanvasScene.for_document``) it is a static rendering used by the
    image exporter.
    """

    def __init__(self, session: Optional[EditSession] = None, parent=None):
        super().__init__(parent)
        self.setSceneRect(QRectF(0, 0, CANVAS_WIDTH, CANVAS_HEIGHT))
        self.session = session
        self.engine: Optional[ManipulationEngine] = ManipulationEngine(session) if session else None

        self.frame = SlideFrameItem()
        self.addItem(self.frame)
        self._items: Dict[str, SectionItem] = {}

        if session is not None:
            session.on_sections_changed(self.refresh)
            session.on_selection_changed(lambda _id: self.refresh())
            session.on_document_changed(self.refresh)
            self.refresh()

    @classmethod
    def for_document(cls, document: Document, parent=None) -> "CanvasScene":
        """Static scene showing *document* with nothing selected."""
        scene = cls(None, parent)
        scene.show_document(document, document.sections, None)
        return scene

    # ----------------------------
    # Item sync
    # ----------------------------

    def refresh(self) -> None:
        """Re-sync items with the session's visible sections."""
        if self.session is None:
            return
        self.show_document(self.session.document, self.session.sections, self.session.selected_id)

    def show_document(self, document: Document, sections: Sequence[Section],
                      selected_id: Optional[str]) -> None:
        self.frame.set_document(document)

        wanted = {s.id for s in sections}
        for sid in [k for k in self._items if k not in wanted]:
            self.removeItem(self._items.pop(sid))

        for section in sections:
            item = self._items.get(section.id)
            if item is None:
                item = SectionItem(section, document.header_color)
                self._items[section.id] = item
                self.addItem(item)
            item.set_section(section, document.header_color, section.id == selected_id)

    def section_item(self, section_id: str) -> Optional[SectionItem]:
        return self._items.get(section_id)

    # ----------------------------
    # Mouse handling
    # ----------------------------

    def _set_cursor(self, shape: Optional[Qt.CursorShape]) -> None:
        for view in self.views():
            if shape is None:
                view.viewport().unsetCursor()
            else:
                view.viewport().setCursor(QCursor(shape))

    def _hover_cursor(self, x: float, y: float) -> Optional[Qt.CursorShape]:
        hit = self.engine.hit_test(x, y)
        if hit.kind == HitKind.HANDLE:
            return _HANDLE_CURSORS.get(hit.handle)
        if hit.kind == HitKind.ICON:
            return Qt.CursorShape.OpenHandCursor
        if hit.kind == HitKind.SECTION:
            return Qt.CursorShape.SizeAllCursor
        return None

    def mousePressEvent(self, event):
        if self.engine is None or event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        sp = event.scenePos()
        self.engine.pointer_down(sp.x(), sp.y())
        if self.engine.state == GestureState.ICON_DRAG:
            self._set_cursor(Qt.CursorShape.ClosedHandCursor)
        event.accept()

    def mouseMoveEvent(self, event):
        if self.engine is None:
            super().mouseMoveEvent(event)
            return
        sp = event.scenePos()
        if self.engine.active:
            self.engine.pointer_move(sp.x(), sp.y())
        else:
            self._set_cursor(self._hover_cursor(sp.x(), sp.y()))
        event.accept()

    def mouseReleaseEvent(self, event):
        if self.engine is None or event.button() != Qt.MouseButton.LeftButton:
            super().mouseReleaseEvent(event)
            return
        sp = event.scenePos()
        self.engine.pointer_up(sp.x(), sp.y())
        self._set_cursor(self._hover_cursor(sp.x(), sp.y()))
        event.accept()

    def keyPressEvent(self, event):
        """Escape aborts the running gesture."""
        if event.key() == Qt.Key.Key_Escape and self.engine is not None and self.engine.active:
            self.engine.cancel()
            event.accept()
            return
        super().keyPressEvent(event)
