"""Tests for the snapshot history and the preview/commit edit session."""
from __future__ import annotations

import pytest

from binder import ExtractedArticle, ExtractedSection
from models import ChartPoint, GlyphIcon, Rect, Section
from session import EditSession
from undo_commands import SectionHistory


def _sections():
    return (
        Section("a", "A", Rect(50, 160, 300, 200)),
        Section("b", "B", Rect(400, 160, 300, 200)),
    )


class TestSectionHistory:
    def test_initial_state(self, qapp):
        h = SectionHistory(_sections())
        assert h.cursor == 0
        assert len(h.entries) == 1
        assert not h.can_undo and not h.can_redo

    def test_commit_undo_redo(self, qapp):
        start = _sections()
        h = SectionHistory(start)
        moved = (start[0].with_rect(Rect(60, 170, 300, 200)), start[1])
        h.commit(moved, "Move")
        assert h.live == moved and h.cursor == 1

        h.undo()
        assert h.live == start and h.cursor == 0
        h.redo()
        assert h.live == moved

    def test_commit_after_undo_truncates(self, qapp):
        start = _sections()
        h = SectionHistory(start)
        one = (start[0].with_fields(title="ONE"), start[1])
        two = (start[0].with_fields(title="TWO"), start[1])
        h.commit(one)
        h.undo()
        h.commit(two)
        assert h.entries == [start, two]
        assert not h.can_redo

    def test_undo_at_start_is_noop(self, qapp):
        h = SectionHistory(_sections())
        h.undo()
        assert h.cursor == 0

    def test_listener_sees_changes(self, qapp):
        seen = []
        h = SectionHistory(_sections())
        h.add_listener(seen.append)
        h.commit(_sections()[:1])
        h.undo()
        assert [len(s) for s in seen] == [1, 2]


class TestEditSession:
    @pytest.fixture()
    def session(self, qapp, sample_document):
        return EditSession(sample_document)

    def test_preview_does_not_touch_history(self, session):
        session.preview_rect("a", Rect(70, 170, 400, 250))
        assert session.has_draft
        assert session.section("a").rect == Rect(70, 170, 400, 250)
        assert session.document.section("a").rect == Rect(50, 160, 400, 250)
        assert session.history.cursor == 0

    def test_commit_records_one_entry(self, session):
        for x in (60, 70, 80, 90):
            session.preview_rect("a", Rect(x, 160, 400, 250))
        assert session.commit() is True
        assert session.history.cursor == 1
        assert session.document.section("a").rect.x == 90

    def test_identical_commit_skipped(self, session):
        session.preview_rect("a", Rect(50, 160, 400, 250))
        assert session.commit() is False
        assert session.history.cursor == 0
        assert not session.has_draft

    def test_forced_commit_records(self, session):
        session.preview_rect("a", Rect(50, 160, 400, 250))
        assert session.commit(force=True) is True
        assert session.history.cursor == 1

    def test_commit_clamps_rect(self, session):
        session.preview_rect("a", Rect(-100, 10, 20, 20))
        session.commit()
        r = session.document.section("a").rect
        assert (r.x, r.y, r.w, r.h) == (0, 150, 50, 50)

    def test_discard_preview(self, session):
        session.preview_rect("a", Rect(70, 170, 400, 250))
        session.discard_preview()
        assert session.section("a").rect == Rect(50, 160, 400, 250)

    def test_undo_restores_and_drops_draft(self, session):
        session.update_section(session.section("a").with_fields(title="NEW"))
        session.preview_rect("b", Rect(600, 200, 300, 200))
        session.undo()
        assert not session.has_draft
        assert session.section("a").title == "POPULATION"
        session.redo()
        assert session.section("a").title == "NEW"

    def test_assign_icon_clears_chart(self, session):
        session.assign_icon("b", GlyphIcon("flag"))
        b = session.section("b")
        assert b.icon == GlyphIcon("flag") and not b.has_chart

    def test_assign_chart_clears_icon(self, session):
        session.assign_chart("a", [ChartPoint("x", 1)])
        a = session.section("a")
        assert a.icon is None and a.has_chart

    def test_assign_to_unknown_section(self, session):
        assert session.assign_icon("missing", GlyphIcon("flag")) is False

    def test_selection(self, session):
        seen = []
        session.on_selection_changed(seen.append)
        session.select("a")
        session.select("a")
        session.select("nope")
        assert seen == ["a", None]

    def test_metadata_not_in_history(self, session):
        changed = []
        session.on_document_changed(lambda: changed.append(True))
        session.set_title("New title")
        session.set_header_color("#2E7D32")
        assert session.document.title == "New title"
        assert session.history.cursor == 0
        assert len(changed) == 2

    def test_load_document_resets(self, session, sample_document):
        session.update_section(session.section("a").with_fields(title="NEW"))
        session.select("a")
        session.load_document(sample_document.with_fields(title="Other"))
        assert session.history.cursor == 0
        assert not session.history.can_undo
        assert session.selected_id is None

    def test_switch_template_keeps_metadata(self, session):
        session.mark_saved("p1")
        session.switch_template("blank-canvas")
        doc = session.document
        assert [s.id for s in doc.sections] == ["main"]
        assert doc.title == "Effect of Exercise on Blood Pressure"
        assert doc.header_color == "#1565C0"
        assert doc.project_id == "p1"
        assert doc.layout_template_id == "blank-canvas"

    def test_switch_template_rebinds_article(self, session):
        article = ExtractedArticle(
            title="T", sections=[ExtractedSection("Sources", "12 trials."), ExtractedSection("Extra", "More.")],
        )
        session.switch_template("blank-canvas", article)
        (main,) = session.document.sections
        assert main.title == "SOURCES"
        assert main.content == "12 trials.\n\nEXTRA:\nMore."
        assert session.document.title == "Effect of Exercise on Blood Pressure"

    def test_undo_removes_selected_section(self, session):
        session.update_section(session.section("a").with_fields(title="X"))
        session.preview(session.sections + (Section("c", "C", Rect(100, 450, 200, 200)),))
        session.commit()
        session.select("c")
        session.undo()
        assert session.selected_id is None

    def test_snapshot_for_save_stamps_time(self, session):
        assert session.snapshot_for_save().last_modified > 0
