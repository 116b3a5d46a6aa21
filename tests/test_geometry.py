"""Tests for canvas bounds clamping, handle hit testing and section layout."""
from __future__ import annotations

import pytest

from geometry import (
    CONTENT_BOTTOM,
    HANDLE_EDGES,
    ICON_BASE_SIZE,
    centered_square,
    clamp_icon_position,
    clamp_move,
    clamp_rect,
    export_scale,
    handle_points,
    hit_test_handle,
    icon_box,
    px_to_inches,
    rect_is_valid,
    resize_rect,
    section_boxes,
    section_icon_rect,
)
from models import (
    CANVAS_WIDTH,
    HEADER_HEIGHT,
    MIN_SECTION_SIZE,
    ChartPoint,
    GlyphIcon,
    IconPosition,
    Rect,
    Section,
)


class TestClampMove:
    def test_free_move(self):
        assert clamp_move(Rect(100, 200, 300, 200), 40, -20) == Rect(140, 180, 300, 200)

    def test_cannot_enter_header(self):
        r = clamp_move(Rect(100, 200, 300, 200), 0, -500)
        assert r.y == HEADER_HEIGHT

    def test_cannot_cross_footer(self):
        r = clamp_move(Rect(100, 200, 300, 200), 0, 1000)
        assert r.bottom == CONTENT_BOTTOM

    def test_horizontal_bounds(self):
        assert clamp_move(Rect(100, 200, 300, 200), -1000, 0).x == 0
        assert clamp_move(Rect(100, 200, 300, 200), 5000, 0).right == CANVAS_WIDTH

    def test_size_unchanged(self):
        r = clamp_move(Rect(100, 200, 300, 200), 9999, 9999)
        assert (r.w, r.h) == (300, 200)


class TestResizeRect:
    def test_east_grows_width(self):
        assert resize_rect(Rect(100, 200, 300, 200), "r", 50, 0) == Rect(100, 200, 350, 200)

    def test_west_moves_origin(self):
        r = resize_rect(Rect(100, 200, 300, 200), "l", -40, 0)
        assert r == Rect(60, 200, 340, 200)
        assert r.right == 400

    def test_minimum_size(self):
        r = resize_rect(Rect(100, 200, 300, 200), "br", -1000, -1000)
        assert (r.w, r.h) == (MIN_SECTION_SIZE, MIN_SECTION_SIZE)
        assert (r.x, r.y) == (100, 200)

    def test_north_west_keeps_opposite_corner(self):
        start = Rect(100, 200, 300, 200)
        r = resize_rect(start, "tl", 1000, 1000)
        assert r.right == start.right
        assert r.bottom == start.bottom
        assert r.w == MIN_SECTION_SIZE and r.h == MIN_SECTION_SIZE

    def test_north_stops_at_header(self):
        r = resize_rect(Rect(100, 200, 300, 200), "t", 0, -500)
        assert r.y == HEADER_HEIGHT
        assert r.bottom == 400

    def test_east_stops_at_canvas_edge(self):
        r = resize_rect(Rect(1000, 200, 200, 200), "r", 500, 0)
        assert r.right == CANVAS_WIDTH

    def test_south_stops_at_footer(self):
        r = resize_rect(Rect(100, 500, 300, 100), "b", 0, 500)
        assert r.bottom == CONTENT_BOTTOM

    def test_west_past_canvas_edge(self):
        r = resize_rect(Rect(20, 200, 300, 200), "l", -100, 0)
        assert r.x == 0
        assert r.right == 320

    @pytest.mark.parametrize("handle", ["tl", "t", "tr", "r", "br", "b", "bl", "l"])
    def test_result_always_valid(self, handle):
        start = Rect(100, 200, 300, 200)
        for dx, dy in ((-2000, -2000), (2000, 2000), (-2000, 2000), (2000, -2000)):
            assert rect_is_valid(resize_rect(start, handle, dx, dy))

    def test_north_never_moves_x(self):
        start = Rect(100, 200, 300, 200)
        for dx, dy in ((0, -500), (40, -10), (-40, 10), (0, 500)):
            r = resize_rect(start, "t", dx, dy)
            assert (r.x, r.w) == (start.x, start.w)
            assert r.bottom == start.bottom

    def test_west_never_moves_y(self):
        start = Rect(100, 200, 300, 200)
        for dx, dy in ((-500, 0), (-10, 40), (10, -40), (500, 0)):
            r = resize_rect(start, "l", dx, dy)
            assert (r.y, r.h) == (start.y, start.h)
            assert r.right == start.right

    @pytest.mark.parametrize("handle", ["tl", "t", "tr", "r", "br", "b", "bl", "l"])
    def test_opposite_edges_stay_fixed(self, handle):
        start = Rect(100, 200, 300, 200)
        edges = HANDLE_EDGES[handle]
        for dx, dy in ((-2000, -2000), (2000, 2000), (-2000, 2000), (2000, -2000), (15, -15)):
            r = resize_rect(start, handle, dx, dy)
            if "w" in edges:
                assert r.right == start.right
            elif "e" in edges:
                assert r.x == start.x
            else:
                assert (r.x, r.w) == (start.x, start.w)
            if "n" in edges:
                assert r.bottom == start.bottom
            elif "s" in edges:
                assert r.y == start.y
            else:
                assert (r.y, r.h) == (start.y, start.h)


class TestClampRect:
    def test_fixes_everything(self):
        r = clamp_rect(Rect(-50, 20, 10, 10))
        assert rect_is_valid(r)
        assert r == Rect(0, HEADER_HEIGHT, MIN_SECTION_SIZE, MIN_SECTION_SIZE)

    def test_valid_rect_unchanged(self):
        r = Rect(50, 160, 380, 255)
        assert clamp_rect(r) == r


class TestIconPosition:
    def test_delta_in_percent(self):
        pos = clamp_icon_position(IconPosition(50, 30), 20, 10, 200, 100)
        assert pos == IconPosition(60, 40)

    def test_clamped(self):
        pos = clamp_icon_position(IconPosition(50, 30), -1000, 1000, 200, 100)
        assert pos == IconPosition(0, 100)

    def test_empty_area_keeps_position(self):
        assert clamp_icon_position(IconPosition(20, 80), 5, 5, 0, 0) == IconPosition(20, 80)


class TestHandles:
    def test_eight_handles(self):
        pts = handle_points(Rect(0, 200, 100, 60))
        assert len(pts) == 8
        assert pts["br"] == (100, 260)
        assert pts["t"] == (50, 200)

    def test_hit(self):
        rect = Rect(100, 200, 300, 200)
        assert hit_test_handle(rect, 402, 398, 10) == "br"
        assert hit_test_handle(rect, 250, 200, 10) == "t"
        assert hit_test_handle(rect, 250, 300, 10) is None


class TestSectionBoxes:
    def test_no_visual_uses_whole_interior(self):
        boxes = section_boxes(Rect(0, 200, 400, 300), "bottom", False)
        assert boxes.visual is None
        assert boxes.text.w == 400 - 32

    def test_bottom_layout_split(self):
        boxes = section_boxes(Rect(0, 200, 400, 300), "bottom", True)
        assert boxes.text.y < boxes.visual.y
        assert boxes.visual.h == pytest.approx((300 - 32 - 20) * 0.4)

    def test_top_layout_visual_first(self):
        boxes = section_boxes(Rect(0, 200, 400, 300), "top", True)
        assert boxes.visual.y < boxes.text.y

    def test_left_right_halves(self):
        left = section_boxes(Rect(0, 200, 400, 300), "left", True)
        right = section_boxes(Rect(0, 200, 400, 300), "right", True)
        assert left.visual.x < left.text.x
        assert right.text.x < right.visual.x
        assert left.visual.w == left.text.w

    def test_unknown_layout_is_bottom(self):
        assert section_boxes(Rect(0, 200, 400, 300), "diagonal", True) == \
            section_boxes(Rect(0, 200, 400, 300), "bottom", True)


class TestIconGeometry:
    def test_centered_square(self):
        assert centered_square(Rect(0, 0, 200, 100)) == Rect(50, 0, 100, 100)

    def test_icon_box_stays_inside(self):
        visual = Rect(0, 0, 200, 100)
        box = icon_box(visual, IconPosition(100, 100), 64)
        assert box.right == 200 and box.bottom == 100

    def test_section_icon_rect(self):
        section = Section("s", "T", Rect(0, 200, 400, 300), icon=GlyphIcon("group"), image_scale=0.5)
        r = section_icon_rect(section)
        assert r is not None
        assert r.w == ICON_BASE_SIZE * 0.5

    def test_chart_has_no_icon_rect(self):
        section = Section("s", "T", Rect(0, 200, 400, 300), chart_data=(ChartPoint("a", 1),))
        assert section_icon_rect(section) is None


class TestUnits:
    def test_px_to_inches(self):
        assert px_to_inches(1280) == 10
        assert px_to_inches(720) == 5.625

    def test_export_scale(self):
        assert export_scale(96) == 1
        assert export_scale(300) == pytest.approx(3.125)
