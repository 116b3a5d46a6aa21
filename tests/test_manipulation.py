"""Tests for the select / move / resize / icon-drag gesture engine."""
from __future__ import annotations

import pytest

from canvas.manipulation import GestureState, HitKind, ManipulationEngine
from models import HEADER_HEIGHT, IconPosition, Rect
from session import EditSession

# Section "a" of the sample document: Rect(50, 160, 400, 250), right layout,
# so its icon sits around (342, 255) and (100, 300) is plain body.
BODY = (100, 300)
ICON = (342, 255)
EMPTY = (20, 500)


@pytest.fixture()
def session(qapp, sample_document):
    return EditSession(sample_document)


@pytest.fixture()
def engine(session):
    return ManipulationEngine(session, drag_threshold=3, hit_distance=10)


class TestHitTest:
    def test_kinds(self, engine):
        assert engine.hit_test(*BODY).kind == HitKind.SECTION
        assert engine.hit_test(*ICON).kind == HitKind.ICON
        assert engine.hit_test(*EMPTY).kind == HitKind.CANVAS

    def test_handles_only_on_selected(self, engine, session):
        assert engine.hit_test(450, 410).kind == HitKind.SECTION
        session.select("a")
        hit = engine.hit_test(450, 410)
        assert (hit.kind, hit.section_id, hit.handle) == (HitKind.HANDLE, "a", "br")


class TestClick:
    def test_click_selects_without_history(self, engine, session):
        engine.pointer_down(*BODY)
        engine.pointer_up(BODY[0] + 1, BODY[1] + 1)
        assert session.selected_id == "a"
        assert session.history.cursor == 0
        assert engine.state == GestureState.IDLE

    def test_icon_press_without_move_selects(self, engine, session):
        engine.pointer_down(*ICON)
        assert engine.state == GestureState.ICON_DRAG
        engine.pointer_up(*ICON)
        assert session.selected_id == "a"
        assert session.history.cursor == 0

    def test_empty_canvas_clears_selection(self, engine, session):
        session.select("a")
        engine.pointer_down(*EMPTY)
        assert session.selected_id is None
        assert not engine.active


class TestDrag:
    def test_move_commits_once(self, engine, session):
        engine.pointer_down(*BODY)
        for step in range(1, 6):
            engine.pointer_move(BODY[0] + 10 * step, BODY[1] + 4 * step)
            assert session.history.cursor == 0
        engine.pointer_up(BODY[0] + 50, BODY[1] + 20)
        assert session.history.cursor == 1
        assert session.document.section("a").rect == Rect(100, 180, 400, 250)

    def test_drag_does_not_select(self, engine, session):
        engine.pointer_down(*BODY)
        engine.pointer_up(BODY[0] + 40, BODY[1])
        assert session.selected_id is None

    def test_move_clamped_below_header(self, engine, session):
        engine.pointer_down(*BODY)
        engine.pointer_up(BODY[0], BODY[1] - 500)
        assert session.document.section("a").rect.y == HEADER_HEIGHT

    def test_small_jitter_is_not_a_drag(self, engine, session):
        engine.pointer_down(*BODY)
        engine.pointer_move(BODY[0] + 2, BODY[1] - 2)
        assert engine.state == GestureState.PRESSED

    def test_cancel_discards_preview(self, engine, session):
        engine.pointer_down(*BODY)
        engine.pointer_move(BODY[0] + 80, BODY[1])
        assert session.has_draft
        engine.cancel()
        assert not session.has_draft
        assert session.section("a").rect.x == 50
        assert session.history.cursor == 0


class TestResize:
    def test_resize_from_corner(self, engine, session):
        session.select("a")
        engine.pointer_down(450, 410)
        assert engine.state == GestureState.RESIZING
        engine.pointer_move(500, 450)
        engine.pointer_up(500, 450)
        assert session.document.section("a").rect == Rect(50, 160, 450, 290)
        assert session.history.cursor == 1
        assert session.selected_id == "a"

    def test_release_without_move_still_records(self, engine, session):
        session.select("a")
        engine.pointer_down(450, 410)
        engine.pointer_up(450, 410)
        assert session.history.cursor == 1

    def test_resize_respects_minimum(self, engine, session):
        session.select("a")
        engine.pointer_down(450, 410)
        engine.pointer_up(-500, -500)
        r = session.document.section("a").rect
        assert (r.x, r.y, r.w, r.h) == (50, 160, 50, 50)


class TestIconDrag:
    def test_icon_moves_in_percent(self, engine, session):
        engine.pointer_down(*ICON)
        engine.pointer_up(ICON[0] + 46, ICON[1])
        pos = session.document.section("a").icon_position
        assert pos.x == pytest.approx(75.0)
        assert pos.y == pytest.approx(30.0)
        assert session.document.section("a").rect == Rect(50, 160, 400, 250)
        assert session.history.cursor == 1

    def test_icon_position_clamped(self, engine, session):
        engine.pointer_down(*ICON)
        engine.pointer_up(ICON[0] + 2000, ICON[1] - 2000)
        assert session.document.section("a").icon_position == IconPosition(100.0, 0.0)

    def test_second_press_ignored_while_active(self, engine):
        engine.pointer_down(*ICON)
        assert engine.pointer_down(*BODY).kind == HitKind.CANVAS
        assert engine.state == GestureState.ICON_DRAG
