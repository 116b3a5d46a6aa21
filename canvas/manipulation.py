"""
canvas/manipulation.py

Pointer gesture state machine for the abstract canvas.

The engine knows nothing about Qt: the scene feeds it canvas coordinates
and it drives an EditSession (preview while the pointer moves, commit on
release).  Only one gesture is active at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from debug_trace import trace
from geometry import (
    clamp_icon_position,
    clamp_move,
    hit_test_handle,
    resize_rect,
    section_boxes,
    section_icon_rect,
)
from models import IconPosition, Rect
from session import EditSession
from settings import get_settings


class GestureState:
    """Gesture state constants."""
    IDLE = "idle"
    PRESSED = "pressed"        # pointer down on a section, not moved yet
    DRAGGING = "dragging"
    RESIZING = "resizing"
    ICON_DRAG = "icon_drag"


class HitKind:
    HANDLE = "handle"
    ICON = "icon"
    SECTION = "section"
    CANVAS = "canvas"


@dataclass(frozen=True)
class Hit:
    """Result of hit testing a canvas point."""
    kind: str
    section_id: Optional[str] = None
    handle: Optional[str] = None


class ManipulationEngine:
    """Select / move / resize / icon-drag gestures over an EditSession.

    Args:
        session: Session receiving previews and commits.
        drag_threshold: Movement (pixels, per axis) before a press becomes a
            drag.  Defaults to the canvas interaction setting.
        hit_distance: Handle hit radius.  Defaults to the handle setting.
    """

    def __init__(self, session: EditSession,
                 drag_threshold: Optional[float] = None,
                 hit_distance: Optional[float] = None):
        canvas = get_settings().settings.canvas
        self.session = session
        self.drag_threshold = canvas.interaction.drag_threshold if drag_threshold is None else drag_threshold
        self.hit_distance = canvas.handles.hit_distance if hit_distance is None else hit_distance

        self.state = GestureState.IDLE
        self._section_id: Optional[str] = None
        self._handle: Optional[str] = None
        self._start_x = 0.0
        self._start_y = 0.0
        self._start_rect: Optional[Rect] = None
        self._start_icon_pos = IconPosition()
        self._visual_area: Optional[Rect] = None
        self._moved = False

    @property
    def active(self) -> bool:
        return self.state != GestureState.IDLE

    # ----------------------------
    # Hit testing
    # ----------------------------

    def hit_test(self, x: float, y: float) -> Hit:
        """Classify a canvas point.

        Priority: handles of the selected section, then the icon of the
        topmost section under the point, then its body, else empty canvas.
        """
        selected = self.session.selected_section
        if selected is not None:
            handle = hit_test_handle(selected.rect, x, y, self.hit_distance)
            if handle is not None:
                return Hit(HitKind.HANDLE, selected.id, handle)

        for section in reversed(self.session.sections):
            if not section.rect.contains(x, y):
                continue
            icon_rect = section_icon_rect(section)
            if icon_rect is not None and icon_rect.contains(x, y):
                return Hit(HitKind.ICON, section.id)
            return Hit(HitKind.SECTION, section.id)

        return Hit(HitKind.CANVAS)

    # ----------------------------
    # Pointer events
    # ----------------------------

    def pointer_down(self, x: float, y: float) -> Hit:
        """Start a gesture at (x, y).  Ignored while another gesture runs."""
        if self.active:
            return Hit(HitKind.CANVAS)

        hit = self.hit_test(x, y)
        self._start_x, self._start_y = x, y
        self._moved = False

        if hit.kind == HitKind.CANVAS:
            self.session.clear_selection()
            return hit

        section = self.session.section(hit.section_id)
        self._section_id = hit.section_id
        self._start_rect = section.rect

        if hit.kind == HitKind.HANDLE:
            self._handle = hit.handle
            self.state = GestureState.RESIZING
        elif hit.kind == HitKind.ICON:
            self._start_icon_pos = section.icon_position
            self._visual_area = section_boxes(section.rect, section.layout, True).visual
            self.state = GestureState.ICON_DRAG
        else:
            self.state = GestureState.PRESSED

        trace(f"pointer_down {hit.kind} {hit.section_id} {hit.handle or ''}", "GESTURE")
        return hit

    def pointer_move(self, x: float, y: float) -> None:
        if not self.active:
            return
        dx = x - self._start_x
        dy = y - self._start_y
        if abs(dx) > self.drag_threshold or abs(dy) > self.drag_threshold:
            self._moved = True

        if self.state == GestureState.PRESSED and self._moved:
            self.state = GestureState.DRAGGING

        if self.state == GestureState.DRAGGING:
            self.session.preview_rect(self._section_id, clamp_move(self._start_rect, dx, dy), "Move")
        elif self.state == GestureState.RESIZING:
            self.session.preview_rect(
                self._section_id, resize_rect(self._start_rect, self._handle, dx, dy), "Resize"
            )
        elif self.state == GestureState.ICON_DRAG and self._moved and self._visual_area is not None:
            self.session.preview_icon_position(
                self._section_id,
                clamp_icon_position(self._start_icon_pos, dx, dy,
                                    self._visual_area.w, self._visual_area.h),
            )

    def pointer_up(self, x: float, y: float) -> None:
        """Finish the gesture: select on click, commit on drag/resize."""
        if not self.active:
            return
        self.pointer_move(x, y)
        state, section_id = self.state, self._section_id

        if state == GestureState.RESIZING:
            if not self.session.has_draft:
                self.session.preview_rect(section_id, self._start_rect, "Resize")
            self.session.commit(f"Resize {section_id}", force=True)
        elif state == GestureState.DRAGGING:
            self.session.commit(f"Move {section_id}", force=True)
        elif state == GestureState.ICON_DRAG and self._moved:
            self.session.commit(f"Move icon {section_id}", force=True)
        else:
            # Click: pressed (or icon pressed) without leaving the threshold
            self.session.discard_preview()
            self.session.select(section_id)

        trace(f"pointer_up {state} {section_id}", "GESTURE")
        self._reset()

    def cancel(self) -> None:
        """Abort the running gesture and drop its preview."""
        if self.active:
            self.session.discard_preview()
            self._reset()

    def _reset(self) -> None:
        self.state = GestureState.IDLE
        self._section_id = None
        self._handle = None
        self._start_rect = None
        self._visual_area = None
        self._moved = False
