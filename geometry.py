"""
geometry.py

Bounds clamping and unit conversion for the fixed-size abstract canvas.

Every function here is pure: it takes the gesture's start state plus a
cumulative pointer delta and returns a new value, so the same code drives the
live preview and the final commit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from models import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    FOOTER_HEIGHT,
    HEADER_HEIGHT,
    MIN_SECTION_SIZE,
    IconPosition,
    Rect,
    SectionLayout,
)

# Bottom edge of the area sections may occupy
CONTENT_BOTTOM = CANVAS_HEIGHT - FOOTER_HEIGHT

SECTION_PADDING = 16
SECTION_TITLE_HEIGHT = 20
VISUAL_SHARE = 0.4          # top/bottom layouts: visual gets 40%, text 60%

PX_PER_INCH = 128           # slide-deck divisor (1280 px → 10 in)
SCREEN_DPI = 96

# Resize handle name → compass edges it moves
HANDLE_EDGES: Dict[str, str] = {
    "tl": "nw",
    "t":  "n",
    "tr": "ne",
    "r":  "e",
    "br": "se",
    "b":  "s",
    "bl": "sw",
    "l":  "w",
}


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(value, hi))


# ----------------------------
# Section rect constraints
# ----------------------------

def clamp_move(start: Rect, dx: float, dy: float) -> Rect:
    """Translate *start* by (dx, dy), keeping it between header and footer."""
    x = clamp(start.x + dx, 0, CANVAS_WIDTH - start.w)
    y = clamp(start.y + dy, HEADER_HEIGHT, CONTENT_BOTTOM - start.h)
    return Rect(x, y, start.w, start.h)


def resize_rect(start: Rect, handle: str, dx: float, dy: float) -> Rect:
    """Resize *start* by dragging one of its eight handles.

    The edge opposite to the dragged one stays fixed.  North and west
    handles move the origin and shrink/grow the size by the same amount.

    Args:
        start: Rect at the beginning of the gesture.
        handle: Handle key (``tl``, ``t``, ``tr``, ``r``, ``br``, ``b``,
            ``bl``, ``l``).
        dx: Cumulative horizontal pointer delta.
        dy: Cumulative vertical pointer delta.

    Returns:
        The constrained rect.
    """
    edges = HANDLE_EDGES.get(handle, "")
    x, y, w, h = start.x, start.y, start.w, start.h

    if "e" in edges:
        w = min(max(MIN_SECTION_SIZE, start.w + dx), CANVAS_WIDTH - start.x)
    if "w" in edges:
        eff = min(max(dx, -start.x), start.w - MIN_SECTION_SIZE)
        x = start.x + eff
        w = start.w - eff
    if "s" in edges:
        h = min(max(MIN_SECTION_SIZE, start.h + dy), CONTENT_BOTTOM - start.y)
    if "n" in edges:
        eff = min(max(dy, -(start.y - HEADER_HEIGHT)), start.h - MIN_SECTION_SIZE)
        y = start.y + eff
        h = start.h - eff

    return Rect(x, y, w, h)


def clamp_rect(rect: Rect) -> Rect:
    """Force *rect* into the section invariants (size floor, canvas bounds)."""
    w = clamp(rect.w, MIN_SECTION_SIZE, CANVAS_WIDTH)
    h = clamp(rect.h, MIN_SECTION_SIZE, CONTENT_BOTTOM - HEADER_HEIGHT)
    x = clamp(rect.x, 0, CANVAS_WIDTH - w)
    y = clamp(rect.y, HEADER_HEIGHT, CONTENT_BOTTOM - h)
    return Rect(x, y, w, h)


def rect_is_valid(rect: Rect) -> bool:
    return (
        rect.x >= 0
        and rect.right <= CANVAS_WIDTH
        and rect.y >= HEADER_HEIGHT
        and rect.bottom <= CONTENT_BOTTOM
        and rect.w >= MIN_SECTION_SIZE
        and rect.h >= MIN_SECTION_SIZE
    )


def clamp_icon_position(start: IconPosition, dx: float, dy: float,
                        area_w: float, area_h: float) -> IconPosition:
    """Move an icon inside its visual area by a pixel delta.

    The delta is converted to percent of the area size and the result is
    clamped to [0, 100] on both axes.
    """
    px = start.x + (dx / area_w * 100.0 if area_w > 0 else 0.0)
    py = start.y + (dy / area_h * 100.0 if area_h > 0 else 0.0)
    return IconPosition(clamp(px, 0.0, 100.0), clamp(py, 0.0, 100.0))


# ----------------------------
# Handles
# ----------------------------

def handle_points(rect: Rect) -> Dict[str, Tuple[float, float]]:
    """Return handle positions (corners and sides) in canvas coordinates."""
    cx = rect.x + rect.w / 2
    cy = rect.y + rect.h / 2
    return {
        "tl": (rect.x, rect.y),
        "tr": (rect.right, rect.y),
        "bl": (rect.x, rect.bottom),
        "br": (rect.right, rect.bottom),
        "t":  (cx, rect.y),
        "b":  (cx, rect.bottom),
        "l":  (rect.x, cy),
        "r":  (rect.right, cy),
    }


def hit_test_handle(rect: Rect, px: float, py: float, hit_dist: float) -> Optional[str]:
    for key, (hx, hy) in handle_points(rect).items():
        if math.hypot(px - hx, py - hy) <= hit_dist:
            return key
    return None


# ----------------------------
# Interior layout
# ----------------------------

@dataclass(frozen=True)
class SectionBoxes:
    """Interior boxes of a section, in canvas pixels."""
    title: Rect
    text: Rect
    visual: Optional[Rect]


def section_boxes(rect: Rect, layout: str, has_visual: bool,
                  padding: float = SECTION_PADDING,
                  title_height: float = SECTION_TITLE_HEIGHT) -> SectionBoxes:
    """Split a section into title, text and visual boxes.

    Left/right layouts split the interior width in half; top/bottom layouts
    split the interior height 40/60 between visual and text.  Which half
    comes first follows ``layout``.
    """
    x = rect.x + padding
    avail_w = max(0.0, rect.w - 2 * padding)
    title = Rect(x, rect.y + padding, avail_w, title_height)
    content_y = rect.y + padding + title_height
    avail_h = max(0.0, rect.h - 2 * padding - title_height)

    if not has_visual:
        return SectionBoxes(title, Rect(x, content_y, avail_w, avail_h), None)

    layout = SectionLayout.normalize(layout)
    first_visual = SectionLayout.visual_first(layout)

    if SectionLayout.is_horizontal(layout):
        half = avail_w / 2
        first = Rect(x, content_y, half, avail_h)
        second = Rect(x + half, content_y, half, avail_h)
        visual, text = (first, second) if first_visual else (second, first)
    else:
        visual_h = avail_h * VISUAL_SHARE
        text_h = avail_h - visual_h
        if first_visual:
            visual = Rect(x, content_y, avail_w, visual_h)
            text = Rect(x, content_y + visual_h, avail_w, text_h)
        else:
            text = Rect(x, content_y, avail_w, text_h)
            visual = Rect(x, content_y + text_h, avail_w, visual_h)

    return SectionBoxes(title, text, visual)


def centered_square(box: Rect) -> Rect:
    """Largest square that fits *box*, centered in it."""
    size = min(box.w, box.h)
    return Rect(box.x + (box.w - size) / 2, box.y + (box.h - size) / 2, size, size)


def icon_box(visual: Rect, position: IconPosition, size: float) -> Rect:
    """Square of *size* centered at a percent position inside *visual*.

    The square is kept inside the visual area.
    """
    size = min(size, visual.w, visual.h)
    cx = visual.x + visual.w * position.x / 100.0
    cy = visual.y + visual.h * position.y / 100.0
    x = clamp(cx - size / 2, visual.x, visual.right - size)
    y = clamp(cy - size / 2, visual.y, visual.bottom - size)
    return Rect(x, y, size, size)


# ----------------------------
# Unit conversion
# ----------------------------

def px_to_inches(px: float, px_per_inch: float = PX_PER_INCH) -> float:
    return px / px_per_inch


def export_scale(dpi: int) -> float:
    """Raster export scale factor for a target DPI."""
    return dpi / SCREEN_DPI


# ----------------------------
# Section parts
# ----------------------------

ICON_BASE_SIZE = 64         # on-canvas icon edge at image_scale 1


def section_icon_rect(section) -> Optional[Rect]:
    """On-canvas rect of a section's icon, or None when it shows no icon."""
    if section.icon is None or section.has_chart:
        return None
    boxes = section_boxes(section.rect, section.layout, True)
    if boxes.visual is None or boxes.visual.w <= 0 or boxes.visual.h <= 0:
        return None
    return icon_box(boxes.visual, section.icon_position, ICON_BASE_SIZE * section.image_scale)
