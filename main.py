"""
main.py

GraphAbstract - Main Application

PyQt6 application for composing one-slide graphical abstracts of research
articles:
- Layout templates with draggable, resizable sections
- Article import (URL or PDF) through the extraction service
- Undo/redo of every committed edit
- PNG/JPEG and editable PowerPoint export

Usage:
    python main.py

Dependencies:
    pip install PyQt6 python-pptx pillow requests jsonschema platformdirs tomli-w

Environment:
    GRAPHABSTRACT_API_URL=... (optional, overrides the service base URL)
    GRAPHABSTRACT_TRACE=0 (optional, disables trace logging)
"""

from __future__ import annotations

import os
import sys
from typing import Optional, Set

from PyQt6.QtCore import QPointF, Qt, QThread
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QApplication,
    QFileDialog,
    QInputDialog,
    QMainWindow,
    QMessageBox,
)

from binder import ExtractedArticle, apply_extracted_article
from canvas import CanvasScene, CanvasView, HitKind
from chat_dock import ChatDock
from debug_trace import close_log, trace, trace_exception
from errors import ProjectStoreError
from icon_raster import remote_bitmap_urls
from layouts import DEFAULT_TEMPLATE_ID, instantiate, list_templates
from models import BitmapIcon, Document
from project_store import ProjectStore
from projects_dialog import ProjectsDialog
from properties import PropertyDock
from services import (
    BitmapPrefetchWorker,
    ExportWorker,
    ExtractWorker,
    PolishWorker,
    is_live_result,
    shutdown_workers,
    start_worker,
)
from session import EditSession
from settings import SettingsManager, get_settings
from utils import image_filename, pptx_filename

APP_TITLE = "GraphAbstract"


class MainWindow(QMainWindow):
    """Main application window.

    Args:
        settings_manager: The SettingsManager instance for application settings.
        document: Initial document (default: a fresh default template).
    """

    def __init__(self, settings_manager: SettingsManager, document: Optional[Document] = None):
        super().__init__()
        self.settings_manager = settings_manager
        self.store = ProjectStore(settings_manager.get_workspace_dir())

        self.session = EditSession(document or instantiate(DEFAULT_TEMPLATE_ID), self)
        self.scene = CanvasScene(self.session, self)
        self.view = CanvasView(self.scene, self._on_drop_image)
        self.setCentralWidget(self.view)

        self.props_dock = PropertyDock(self.session, self)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.props_dock)
        self.chat_dock = ChatDock(self)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.chat_dock)
        self.chat_dock.hide()

        panel = self.props_dock.panel
        panel.template_requested.connect(self.request_template_switch)
        panel.polish_requested.connect(self.start_polish)

        # Service worker threads
        self._extract_thread: Optional[QThread] = None
        self._extract_worker: Optional[ExtractWorker] = None
        self._polish_thread: Optional[QThread] = None
        self._polish_worker: Optional[PolishWorker] = None
        self._export_thread: Optional[QThread] = None
        self._export_worker: Optional[ExportWorker] = None
        self._prefetch_pending: Set[str] = set()

        # Last imported article; layout switches bind it again
        self._article: Optional[ExtractedArticle] = None

        self._build_menus()
        self._build_toolbar()

        self.session.on_document_changed(self._update_window_title)
        self.session.on_document_changed(self._prefetch_remote_icons)
        self._update_window_title()
        self.statusBar().showMessage("Click a section to edit it. Drag to move, drag handles to resize.")

    # ----------------------------
    # UI construction
    # ----------------------------

    def _build_menus(self):
        """Build the application menu bar."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("&File")

        new_menu = file_menu.addMenu("New from Template")
        for tpl in list_templates():
            act = QAction(tpl.name, self)
            act.setStatusTip(tpl.description)
            act.triggered.connect(lambda _checked=False, tid=tpl.id: self.new_from_template(tid))
            new_menu.addAction(act)

        open_project = QAction("Open Project...", self)
        open_project.setShortcut(QKeySequence.StandardKey.Open)
        open_project.triggered.connect(self.open_project_dialog)
        file_menu.addAction(open_project)

        save_project = QAction("Save Project", self)
        save_project.setShortcut(QKeySequence.StandardKey.Save)
        save_project.triggered.connect(self.save_project)
        file_menu.addAction(save_project)

        file_menu.addSeparator()

        import_url = QAction("Import Article from URL...", self)
        import_url.triggered.connect(self.import_from_url)
        file_menu.addAction(import_url)
        self.import_url_act = import_url

        import_pdf = QAction("Import Article from PDF...", self)
        import_pdf.triggered.connect(self.import_from_pdf)
        file_menu.addAction(import_pdf)
        self.import_pdf_act = import_pdf

        file_menu.addSeparator()

        export_menu = file_menu.addMenu("Export")
        self.export_menu = export_menu
        dpi = self.settings_manager.settings.export.default_dpi
        for label, export_dpi, fmt in (
            ("PNG (web, 96 DPI)...", 96, "png"),
            (f"PNG (print, {dpi} DPI)...", dpi, "png"),
            (f"JPEG ({dpi} DPI)...", dpi, "jpg"),
        ):
            act = QAction(label, self)
            act.triggered.connect(lambda _checked=False, d=export_dpi, f=fmt: self.export_image_dialog(d, f))
            export_menu.addAction(act)
        export_pptx = QAction("PowerPoint (editable)...", self)
        export_pptx.triggered.connect(self.export_pptx_dialog)
        export_menu.addAction(export_pptx)

        file_menu.addSeparator()

        exit_act = QAction("E&xit", self)
        exit_act.setShortcut(QKeySequence.StandardKey.Quit)
        exit_act.triggered.connect(self.close)
        file_menu.addAction(exit_act)

        # Edit menu
        edit_menu = menubar.addMenu("&Edit")
        stack = self.session.history.stack
        self.undo_act = stack.createUndoAction(self, "&Undo")
        self.undo_act.setShortcut(QKeySequence.StandardKey.Undo)
        self.redo_act = stack.createRedoAction(self, "&Redo")
        self.redo_act.setShortcut(QKeySequence.StandardKey.Redo)
        edit_menu.addAction(self.undo_act)
        edit_menu.addAction(self.redo_act)

        edit_menu.addSeparator()
        deselect = QAction("Deselect", self)
        deselect.setShortcut(QKeySequence(Qt.Key.Key_Escape))
        deselect.triggered.connect(self.session.clear_selection)
        edit_menu.addAction(deselect)

        # View menu
        view_menu = menubar.addMenu("&View")
        for label, shortcut, slot in (
            ("Zoom In", QKeySequence.StandardKey.ZoomIn, self.view.zoom_in),
            ("Zoom Out", QKeySequence.StandardKey.ZoomOut, self.view.zoom_out),
            ("Actual Size", QKeySequence("Ctrl+0"), self.view.zoom_reset),
            ("Fit to Window", QKeySequence("Ctrl+9"), self.view.zoom_fit),
        ):
            act = QAction(label, self)
            act.setShortcut(shortcut)
            act.triggered.connect(slot)
            view_menu.addAction(act)
        view_menu.addSeparator()
        view_menu.addAction(self.props_dock.toggleViewAction())
        view_menu.addAction(self.chat_dock.toggleViewAction())

    def _build_toolbar(self):
        tb = self.addToolBar("Main")
        tb.setObjectName("MainToolbar")
        tb.setMovable(False)
        tb.addAction(self.undo_act)
        tb.addAction(self.redo_act)
        tb.addSeparator()
        tb.addAction(self.import_url_act)
        tb.addAction(self.import_pdf_act)
        tb.addSeparator()
        tb.addAction(self.chat_dock.toggleViewAction())

    def _update_window_title(self):
        doc = self.session.document
        saved = "" if doc.is_saved_project else " (unsaved)"
        self.setWindowTitle(f"{doc.title or 'Untitled'}{saved} - {APP_TITLE}")

    # ----------------------------
    # Documents and templates
    # ----------------------------

    def new_from_template(self, template_id: str):
        self._cancel_polish()
        self._article = None
        self.session.load_document(instantiate(template_id))
        self.statusBar().showMessage(f"New abstract from template '{template_id}'.")

    def request_template_switch(self, template_id: str):
        """Switch the layout template, confirming first for saved projects."""
        if self.session.document.is_saved_project:
            answer = QMessageBox.question(
                self, "Change layout",
                "Changing the layout replaces all sections of this project. Continue?",
            )
            if answer != QMessageBox.StandardButton.Yes:
                self.props_dock.panel.refresh_document()
                return
        # Imported text follows the layout until the abstract is saved
        article = None if self.session.document.is_saved_project else self._article
        self._cancel_polish()
        self.session.switch_template(template_id, article)
        self.statusBar().showMessage(f"Layout changed to '{template_id}'.")

    def save_project(self):
        """Save the committed document to the project store."""
        try:
            stored = self.store.save(self.session.snapshot_for_save())
        except ProjectStoreError as e:
            trace_exception("Save failed")
            QMessageBox.critical(self, "Save failed", str(e))
            return
        self.session.mark_saved(stored.project_id)
        self.statusBar().showMessage("Project saved.")

    def open_project_dialog(self):
        dlg = ProjectsDialog(self.store, self)
        if dlg.exec() and dlg.selected_document is not None:
            self.open_document(dlg.selected_document)

    def open_document(self, document: Document):
        self._cancel_polish()
        self._article = None
        self.session.load_document(document)
        self.statusBar().showMessage(f"Opened project: {document.title}")

    # ----------------------------
    # Canvas drops
    # ----------------------------

    def _on_drop_image(self, path: str, scene_pos: QPointF):
        """Use a dropped image file as the icon of the section under it."""
        hit = self.scene.engine.hit_test(scene_pos.x(), scene_pos.y())
        if hit.kind == HitKind.CANVAS or hit.section_id is None:
            self.statusBar().showMessage("Drop the image onto a section.")
            return
        self.session.assign_icon(hit.section_id, BitmapIcon(path))
        self.session.select(hit.section_id)

    # ----------------------------
    # Article import
    # ----------------------------

    def import_from_url(self):
        url, ok = QInputDialog.getText(self, "Import Article", "Article URL:")
        if ok and url.strip():
            self._start_extract(ExtractWorker(url=url.strip()))

    def import_from_pdf(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Import Article PDF", str(self.settings_manager.get_workspace_dir()), "PDF (*.pdf)"
        )
        if path:
            self._start_extract(ExtractWorker(pdf_path=path))

    def _start_extract(self, worker: ExtractWorker):
        if self._extract_worker is not None:
            # Superseded request
            self._extract_worker.cancel()
        self.import_url_act.setEnabled(False)
        self.import_pdf_act.setEnabled(False)
        self.statusBar().showMessage("Analyzing article...")

        self._extract_worker = worker
        worker.finished.connect(self.on_extract_finished)
        worker.failed.connect(self.on_extract_failed)
        worker.done.connect(self.on_extract_done)
        self._extract_thread = start_worker(worker)

    def on_extract_finished(self, article):
        if not is_live_result(self.sender(), self._extract_worker):
            trace("Dropped superseded extraction result", "SERVICE")
            return
        self._cancel_polish()
        self._article = article
        fresh = instantiate(self.session.document.layout_template_id)
        self.session.load_document(apply_extracted_article(fresh, article))
        self.statusBar().showMessage(f"Imported '{article.title or 'article'}' "
                                     f"({len(article.sections)} sections).")

    def on_extract_failed(self, err: str):
        if not is_live_result(self.sender(), self._extract_worker):
            return
        QMessageBox.critical(self, "Import failed", err)
        self.statusBar().showMessage("Import failed.")

    def on_extract_done(self):
        if self.sender() is not self._extract_worker:
            return
        self._extract_worker = None
        self._extract_thread = None
        self.import_url_act.setEnabled(True)
        self.import_pdf_act.setEnabled(True)

    # ----------------------------
    # Text polish
    # ----------------------------

    def start_polish(self, section_id: str, text: str):
        if self._polish_worker is not None:
            self._polish_worker.cancel()
        self.statusBar().showMessage("Polishing text...")
        worker = PolishWorker(section_id, text, self.settings_manager.settings.api.polish_instruction)
        self._polish_worker = worker
        worker.finished.connect(self.on_polish_finished)
        worker.failed.connect(self.on_polish_failed)
        worker.done.connect(self.on_polish_done)
        self._polish_thread = start_worker(worker)

    def _cancel_polish(self):
        """Drop a pending polish before the sections it targets are replaced."""
        if self._polish_worker is None:
            return
        self._polish_worker.cancel()
        self._polish_worker = None
        self._polish_thread = None
        self.props_dock.panel.reset_polish_button()

    def on_polish_finished(self, text: str):
        worker = self.sender()
        if not is_live_result(worker, self._polish_worker):
            return
        self.props_dock.panel.polish_finished(worker.section_id, text)
        self.statusBar().showMessage("Text polished.")

    def on_polish_failed(self, err: str):
        worker = self.sender()
        if not is_live_result(worker, self._polish_worker):
            return
        # Original text stays in place
        self.props_dock.panel.polish_finished(worker.section_id, None)
        self.statusBar().showMessage(f"Polish failed: {err.splitlines()[0] if err else 'unknown error'}")

    def on_polish_done(self):
        if self.sender() is not self._polish_worker:
            return
        self._polish_worker = None
        self._polish_thread = None

    # ----------------------------
    # Remote icons
    # ----------------------------

    def _prefetch_remote_icons(self):
        """Download http(s) bitmap icons of the document in the background."""
        urls = [u for u in remote_bitmap_urls(self.session.document) if u not in self._prefetch_pending]
        if not urls:
            return
        self._prefetch_pending.update(urls)
        worker = BitmapPrefetchWorker(urls)
        worker.finished.connect(self.on_prefetch_finished)
        worker.done.connect(self.on_prefetch_done)
        start_worker(worker)

    def on_prefetch_finished(self, loaded):
        if loaded:
            self.scene.update()

    def on_prefetch_done(self):
        worker = self.sender()
        if worker is not None:
            self._prefetch_pending.difference_update(worker.urls)

    # ----------------------------
    # Export
    # ----------------------------

    def _export_dir(self) -> str:
        return str(self.settings_manager.get_workspace_dir())

    def export_image_dialog(self, dpi: int, fmt: str = "png"):
        """Export the committed document as PNG or JPEG."""
        suggested = os.path.join(self._export_dir(), image_filename(dpi, fmt))
        file_filter = "JPEG (*.jpg *.jpeg)" if fmt == "jpg" else "PNG (*.png)"
        path, _ = QFileDialog.getSaveFileName(self, "Export Image", suggested, file_filter)
        if not path:
            return
        self.start_export(ExportWorker(self.session.document, path, "image", dpi, fmt))

    def export_pptx_dialog(self):
        """Export the committed document to an editable PowerPoint slide."""
        suggested = os.path.join(self._export_dir(), pptx_filename(self.session.document.title))
        path, _ = QFileDialog.getSaveFileName(self, "Export PowerPoint", suggested, "PowerPoint (*.pptx)")
        if not path:
            return

        # Ensure .pptx extension
        if not path.lower().endswith(".pptx"):
            path += ".pptx"
        self.start_export(ExportWorker(self.session.document, path, "pptx"))

    def start_export(self, worker: ExportWorker):
        """Write the file in a worker thread; editing stays available meanwhile."""
        self.export_menu.setEnabled(False)
        self.statusBar().showMessage(f"Exporting {os.path.basename(worker.path)}...")
        self._export_worker = worker
        worker.finished.connect(self.on_export_finished)
        worker.failed.connect(self.on_export_failed)
        worker.done.connect(self.on_export_done)
        self._export_thread = start_worker(worker)

    def on_export_finished(self, path: str):
        label = "PowerPoint" if path.lower().endswith(".pptx") else "image"
        self.statusBar().showMessage(f"Exported {label}: {path}")

    def on_export_failed(self, err: str):
        trace(f"Export failed: {err}", "EXPORT")
        QMessageBox.critical(self, "Export failed", err)
        self.statusBar().showMessage("Export failed.")

    def on_export_done(self):
        self._export_worker = None
        self._export_thread = None
        self.export_menu.setEnabled(True)

    # ----------------------------
    # Shutdown
    # ----------------------------

    def closeEvent(self, event):
        """Drop late service results before the window goes away.

        A running export is finished first so its file is complete.
        """
        for worker in (self._extract_worker, self._polish_worker):
            if worker is not None:
                worker.cancel()
        self.chat_dock.cancel()
        shutdown_workers()
        super().closeEvent(event)


def main():
    """Application entry point."""
    trace("Application starting", "INFO")
    app = QApplication(sys.argv)
    app.setApplicationName(APP_TITLE)

    # Load settings (use singleton to ensure single instance)
    settings_manager = get_settings()

    # Ensure settings file has all sections
    settings_manager.ensure_file_complete()

    # Save settings on application quit
    def save_on_quit():
        trace("Saving settings on quit", "INFO")
        settings_manager.save()
        close_log()

    app.aboutToQuit.connect(save_on_quit)

    w = MainWindow(settings_manager)
    w.resize(1500, 900)
    w.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    # Set up global exception handler to catch crashes
    def excepthook(exc_type, exc_value, exc_tb):
        import traceback
        trace("UNCAUGHT EXCEPTION:", "ERROR")
        trace("".join(traceback.format_exception(exc_type, exc_value, exc_tb)), "ERROR")
        close_log()
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = excepthook

    try:
        main()
    except Exception as e:
        trace(f"FATAL: {type(e).__name__}: {e}", "ERROR")
        trace_exception("Fatal exception")
        close_log()
        raise
