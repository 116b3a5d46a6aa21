"""Widget-level tests: canvas scene sync, property panel and main window.

Runs on the offscreen Qt platform (see conftest.py).
"""
from __future__ import annotations

import time

import pytest
from PyQt6.QtCore import QPointF, Qt
from PyQt6.QtWidgets import QMessageBox

from binder import ExtractedArticle, ExtractedSection
from canvas import CanvasScene
from chat_dock import ChatDock
from models import BitmapIcon, Rect
from properties.dock import PAGE_DOCUMENT, PAGE_SECTION, PropertyPanel
from services.worker import ChatWorker, ExportWorker, ExtractWorker, PolishWorker
from session import EditSession

QUEUED = Qt.ConnectionType.QueuedConnection


class _StubClient:
    """Service client answering every request with a fixed result."""

    def __init__(self, result):
        self.result = result

    def _answer(self, *args, **kwargs):
        return self.result

    extract_article = extract_article_from_pdf = polish_text = send_chat_message = _answer


def _article(text="IMPORTED TEXT"):
    return ExtractedArticle(
        title="Imported", authors=["Roe R"], journal="Lancet", publish_date="2022",
        journal_key="oncology", sections=[ExtractedSection("Aim", text)],
    )


@pytest.fixture()
def session(qapp, sample_document):
    return EditSession(sample_document)


class TestCanvasScene:
    def test_one_item_per_section(self, session):
        scene = CanvasScene(session)
        assert scene.section_item("a") is not None
        assert scene.section_item("b") is not None
        assert scene.section_item("zzz") is None

    def test_items_follow_preview_and_undo(self, session):
        scene = CanvasScene(session)
        session.preview_rect("a", Rect(80, 200, 400, 250))
        assert scene.section_item("a").pos() == QPointF(80, 200)
        session.commit()
        session.undo()
        assert scene.section_item("a").pos() == QPointF(50, 160)

    def test_selection_raises_item(self, session):
        scene = CanvasScene(session)
        session.select("b")
        assert scene.section_item("b").selected
        assert scene.section_item("b").zValue() > scene.section_item("a").zValue()

    def test_removed_sections_disappear(self, session, sample_document):
        scene = CanvasScene(session)
        session.load_document(sample_document.with_sections(sample_document.sections[:1]))
        assert scene.section_item("b") is None

    def test_static_scene(self, qapp, sample_document):
        scene = CanvasScene.for_document(sample_document)
        assert scene.engine is None
        assert not scene.section_item("a").selected


class TestPropertyPanel:
    def test_pages_follow_selection(self, session):
        panel = PropertyPanel(session)
        assert panel.pages.currentIndex() == PAGE_DOCUMENT
        session.select("a")
        assert panel.pages.currentIndex() == PAGE_SECTION
        assert panel.sec_title_edit.text() == "POPULATION"
        session.clear_selection()
        assert panel.pages.currentIndex() == PAGE_DOCUMENT

    def test_scale_step_commits(self, session):
        panel = PropertyPanel(session)
        session.select("a")
        panel.text_scale_slider.setValue(150)
        assert session.document.section("a").text_scale == 1.5
        assert session.history.cursor == 1

    def test_polish_result_is_one_entry(self, session):
        panel = PropertyPanel(session)
        session.select("a")
        panel.polish_finished("a", "Adults with hypertension.")
        assert session.document.section("a").content == "Adults with hypertension."
        assert session.history.cursor == 1
        assert panel.sec_content_edit.toPlainText() == "Adults with hypertension."

    def test_polish_failure_keeps_text(self, session):
        panel = PropertyPanel(session)
        session.select("a")
        panel.polish_finished("a", None)
        assert session.document.section("a").content == "120 adults with stage 1 hypertension."
        assert panel.polish_btn.isEnabled()

    def test_chart_rows_skip_non_numeric(self, session):
        panel = PropertyPanel(session)
        session.select("b")
        assert [p.label for p in panel.chart_points()] == ["Baseline", "End"]
        panel._add_chart_row()
        panel.chart_table.item(2, 1).setText("n/a")
        assert len(panel.chart_points()) == 2

    def test_document_fields_refresh(self, session):
        panel = PropertyPanel(session)
        session.set_title("Renamed")
        assert panel.doc_title_edit.text() == "Renamed"


class TestMainWindow:
    @pytest.fixture()
    def window(self, qapp, isolated_settings):
        from main import MainWindow
        w = MainWindow(isolated_settings)
        yield w
        w.close()

    def test_starts_with_default_template(self, window):
        assert window.session.document.layout_template_id == "clinical-trial"
        assert "(unsaved)" in window.windowTitle()

    def test_save_project(self, window):
        window.save_project()
        assert window.session.document.is_saved_project
        assert "(unsaved)" not in window.windowTitle()
        projects = window.store.list_projects()
        assert [p.project_id for p in projects] == [window.session.document.project_id]

    def test_template_switch_unsaved(self, window):
        window.request_template_switch("blank-canvas")
        assert [s.id for s in window.session.document.sections] == ["main"]

    def test_import_result_fills_current_layout(self, window):
        article = ExtractedArticle(
            title="Imported", authors=["Roe R"], journal="Lancet", publish_date="2022",
            journal_key="oncology", sections=[ExtractedSection("Aim", "To test.")],
        )
        window.on_extract_finished(article)
        doc = window.session.document
        assert doc.title == "Imported"
        assert doc.citation == "Roe R et al. Lancet. 2022."
        assert doc.sections[0].title == "AIM"
        assert doc.layout_template_id == "clinical-trial"
        assert not window.session.history.can_undo

    def test_drop_image_on_section(self, window, tmp_path):
        window._on_drop_image(str(tmp_path / "figure.png"), QPointF(100, 300))
        section = window.session.document.section("population")
        assert section.icon == BitmapIcon(str(tmp_path / "figure.png"))
        assert window.session.selected_id == "population"

    def test_drop_image_on_empty_canvas(self, window, tmp_path):
        before = window.session.document
        window._on_drop_image(str(tmp_path / "figure.png"), QPointF(5, 700))
        assert window.session.document == before

    def test_layout_switch_rebinds_imported_article(self, window):
        window.on_extract_finished(_article())
        window.request_template_switch("meta-analysis")
        doc = window.session.document
        assert doc.layout_template_id == "meta-analysis"
        assert doc.sections[0].title == "AIM"
        assert doc.sections[0].content == "IMPORTED TEXT"
        assert doc.title == "Imported"
        assert doc.citation == "Roe R et al. Lancet. 2022."

    def test_new_template_forgets_article(self, window):
        window.on_extract_finished(_article())
        window.new_from_template("clinical-trial")
        window.request_template_switch("meta-analysis")
        assert all("IMPORTED TEXT" not in s.content for s in window.session.document.sections)

    def test_opened_project_forgets_article(self, window, sample_document):
        window.on_extract_finished(_article())
        window.open_document(sample_document)
        window.request_template_switch("meta-analysis")
        assert all("IMPORTED TEXT" not in s.content for s in window.session.document.sections)

    def test_extract_result_queued_before_cancel_is_dropped(self, window, qapp):
        before = window.session.document
        worker = ExtractWorker(url="https://example.org/a", client=_StubClient(_article("LATE")))
        window._extract_worker = worker
        worker.finished.connect(window.on_extract_finished, type=QUEUED)
        worker.run()
        worker.cancel()
        qapp.processEvents()
        assert window.session.document == before

    def test_superseded_extract_result_is_dropped(self, window, qapp):
        before = window.session.document
        old = ExtractWorker(url="https://example.org/old", client=_StubClient(_article("OLD")))
        old.finished.connect(window.on_extract_finished, type=QUEUED)
        old.run()
        window._extract_worker = ExtractWorker(url="https://example.org/new", client=_StubClient(None))
        qapp.processEvents()
        assert window.session.document == before

    def test_current_extract_result_is_applied(self, window, qapp):
        worker = ExtractWorker(url="https://example.org/a", client=_StubClient(_article("FRESH")))
        window._extract_worker = worker
        worker.finished.connect(window.on_extract_finished, type=QUEUED)
        worker.run()
        qapp.processEvents()
        assert window.session.document.sections[0].content == "FRESH"

    def test_pending_polish_dropped_when_document_replaced(self, window, qapp):
        worker = PolishWorker("population", "old text", client=_StubClient("LATE POLISH"))
        window._polish_worker = worker
        worker.finished.connect(window.on_polish_finished, type=QUEUED)
        worker.run()
        window.new_from_template("clinical-trial")
        qapp.processEvents()
        assert window.session.document.section("population").content != "LATE POLISH"
        assert not worker.alive
        assert window.props_dock.panel.polish_btn.isEnabled()

    def test_export_runs_in_background(self, window, qapp, tmp_path, monkeypatch):
        errors = []
        monkeypatch.setattr(QMessageBox, "critical", lambda *args: errors.append(args))
        out = tmp_path / "deck.pptx"
        window.start_export(ExportWorker(window.session.document, str(out), "pptx"))
        assert not window.export_menu.isEnabled()
        deadline = time.monotonic() + 30
        while window._export_worker is not None and time.monotonic() < deadline:
            qapp.processEvents()
            time.sleep(0.01)
        assert errors == []
        assert out.exists()
        assert window.export_menu.isEnabled()


class TestChatDock:
    def test_reply_queued_before_cancel_is_dropped(self, qapp):
        dock = ChatDock()
        worker = ChatWorker([], "hi", client=_StubClient("late reply"))
        dock._worker = worker
        worker.finished.connect(dock.on_reply, type=QUEUED)
        worker.run()
        dock.cancel()
        qapp.processEvents()
        assert dock.conversation.messages == []

    def test_current_reply_is_shown(self, qapp):
        dock = ChatDock()
        worker = ChatWorker([], "hi", client=_StubClient("hello"))
        dock._worker = worker
        worker.finished.connect(dock.on_reply, type=QUEUED)
        worker.run()
        qapp.processEvents()
        assert [m.text for m in dock.conversation.messages] == ["hello"]
