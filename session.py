"""
session.py

Editing session: the explicit context shared by the canvas, the property
panel and the main window.

The session holds the Document, its SectionHistory, the selected section id
and an optional draft.  Previews replace the draft; only ``commit()`` turns
the draft into a history entry.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from binder import ExtractedArticle, bind_external_content
from debug_trace import trace
from geometry import clamp_rect
from layouts import instantiate
from models import ChartPoint, Document, Icon, IconPosition, Rect, Section, now_ms
from undo_commands import SectionHistory


class EditSession:
    """Owns the document being edited and the preview/commit boundary.

    Args:
        document: Initial document.
        parent: Optional QObject parent for the history's QUndoStack.
    """

    def __init__(self, document: Document, parent=None):
        self._document = document
        self._draft: Optional[Tuple[Section, ...]] = None
        self._draft_label = "Edit"
        self.selected_id: Optional[str] = None
        self.history = SectionHistory(document.sections, parent)
        self.history.add_listener(self._on_history_changed)

        self._change_listeners: List[Callable[[], None]] = []
        self._selection_listeners: List[Callable[[Optional[str]], None]] = []
        self._document_listeners: List[Callable[[], None]] = []

    # ----------------------------
    # Listeners
    # ----------------------------

    def on_sections_changed(self, callback: Callable[[], None]) -> None:
        """Register a callback for any change to the visible sections."""
        self._change_listeners.append(callback)

    def on_selection_changed(self, callback: Callable[[Optional[str]], None]) -> None:
        self._selection_listeners.append(callback)

    def on_document_changed(self, callback: Callable[[], None]) -> None:
        """Register a callback for metadata edits and document replacement."""
        self._document_listeners.append(callback)

    def _emit_sections(self) -> None:
        for cb in list(self._change_listeners):
            cb()

    def _emit_selection(self) -> None:
        for cb in list(self._selection_listeners):
            cb(self.selected_id)

    def _emit_document(self) -> None:
        for cb in list(self._document_listeners):
            cb()

    def _on_history_changed(self, snapshot: Tuple[Section, ...]) -> None:
        # Undo/redo may come straight from the QUndoStack actions
        self._draft = None
        self._document = self._document.with_sections(snapshot)
        if self.selected_id is not None and self._document.section(self.selected_id) is None:
            self.selected_id = None
            self._emit_selection()
        self._emit_sections()

    # ----------------------------
    # State
    # ----------------------------

    @property
    def document(self) -> Document:
        """Committed document (the draft is not included)."""
        return self._document

    @property
    def sections(self) -> Tuple[Section, ...]:
        """Sections to display: the draft while previewing, else committed."""
        return self._draft if self._draft is not None else self._document.sections

    @property
    def has_draft(self) -> bool:
        return self._draft is not None

    def section(self, section_id: str) -> Optional[Section]:
        for s in self.sections:
            if s.id == section_id:
                return s
        return None

    @property
    def selected_section(self) -> Optional[Section]:
        return self.section(self.selected_id) if self.selected_id else None

    # ----------------------------
    # Selection
    # ----------------------------

    def select(self, section_id: Optional[str]) -> None:
        if section_id is not None and self.section(section_id) is None:
            section_id = None
        if section_id == self.selected_id:
            return
        self.selected_id = section_id
        self._emit_selection()

    def clear_selection(self) -> None:
        self.select(None)

    # ----------------------------
    # Preview / commit
    # ----------------------------

    def preview(self, sections: Sequence[Section], label: str = "Edit") -> None:
        """Replace the draft with *sections* without touching history."""
        self._draft = tuple(sections)
        self._draft_label = label
        self._emit_sections()

    def preview_section(self, section: Section, label: str = "Edit") -> None:
        """Preview a single replaced section (matched by id)."""
        self.preview(
            tuple(section if s.id == section.id else s for s in self.sections),
            label,
        )

    def preview_rect(self, section_id: str, rect: Rect, label: str = "Move") -> None:
        current = self.section(section_id)
        if current is not None:
            self.preview_section(current.with_rect(rect), label)

    def preview_icon_position(self, section_id: str, position: IconPosition) -> None:
        current = self.section(section_id)
        if current is not None:
            self.preview_section(current.with_fields(icon_position=position), "Move icon")

    def discard_preview(self) -> None:
        if self._draft is not None:
            self._draft = None
            self._emit_sections()

    def commit(self, label: Optional[str] = None, force: bool = False) -> bool:
        """Turn the draft into one history entry.

        Every rect is clamped to the canvas constraints first.  A draft
        identical to the committed state is dropped without an entry
        unless *force* is set (gesture releases always record one).

        Returns:
            True if a history entry was recorded.
        """
        if self._draft is None:
            return False
        draft = tuple(
            s if clamp_rect(s.rect) == s.rect else s.with_rect(clamp_rect(s.rect))
            for s in self._draft
        )
        label = label or self._draft_label
        self._draft = None
        if draft == self._document.sections and not force:
            self._emit_sections()
            return False
        self.history.commit(draft, label)
        return True

    def update_section(self, section: Section, label: str = "Edit section") -> bool:
        """Preview and commit a replaced section in one step."""
        self.preview_section(section, label)
        return self.commit()

    def assign_icon(self, section_id: str, icon: Optional[Icon]) -> bool:
        """Set a section's icon (clearing any chart) and commit."""
        current = self.section(section_id)
        if current is None:
            return False
        return self.update_section(current.with_icon(icon), "Set icon")

    def assign_chart(self, section_id: str, chart_data: Iterable[ChartPoint]) -> bool:
        """Set a section's chart (clearing any icon) and commit."""
        current = self.section(section_id)
        if current is None:
            return False
        return self.update_section(current.with_chart(chart_data), "Set chart")

    def undo(self) -> None:
        self.discard_preview()
        self.history.undo()

    def redo(self) -> None:
        self.discard_preview()
        self.history.redo()

    # ----------------------------
    # Document-level edits (not recorded in history)
    # ----------------------------

    def set_title(self, title: str) -> None:
        self._set_fields(title=title)

    def set_citation(self, citation: str) -> None:
        self._set_fields(citation=citation)

    def set_journal_name(self, journal_name: str) -> None:
        self._set_fields(journal_name=journal_name)

    def set_header_color(self, color: str) -> None:
        self._set_fields(header_color=color)

    def _set_fields(self, **changes) -> None:
        self._document = self._document.with_fields(**changes)
        self._emit_document()

    # ----------------------------
    # Wholesale replacement
    # ----------------------------

    def load_document(self, document: Document) -> None:
        """Replace the document and reset history to its sections."""
        trace(f"load document '{document.title}' ({len(document.sections)} sections)")
        self._draft = None
        self._document = document
        self.selected_id = None
        self.history.reset(document.sections)
        self._emit_selection()
        self._emit_document()

    def switch_template(self, template_id: str, article: Optional[ExtractedArticle] = None) -> None:
        """Replace all sections with a fresh instance of *template_id*.

        With *article*, its sections are bound onto the new slots again, so
        imported text follows the layout change.  Metadata the user already
        entered (title, citation, journal, color) is kept; the project id is
        kept so saving updates the same project.
        """
        fresh = instantiate(template_id)
        if article is not None:
            fresh = bind_external_content(fresh, article.sections)
        doc = self._document
        self.load_document(fresh.with_fields(
            title=doc.title or fresh.title,
            citation=doc.citation or fresh.citation,
            journal_name=doc.journal_name,
            header_color=doc.header_color,
            project_id=doc.project_id,
        ))

    def snapshot_for_save(self) -> Document:
        """Committed document stamped with the current time."""
        return self._document.with_fields(last_modified=now_ms())

    def mark_saved(self, project_id: str) -> None:
        self._document = self._document.with_fields(project_id=project_id)
        self._emit_document()
