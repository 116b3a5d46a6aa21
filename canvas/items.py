"""
canvas/items.py

Graphics items for the abstract canvas: the fixed slide frame (header band,
title, footer) and one item per section.

Items are display-only.  Pointer gestures are handled by the scene and the
ManipulationEngine, which push new Section values back into the items via
``set_section()``.
"""

from __future__ import annotations

import html
from typing import Dict, Optional

from PyQt6.QtCore import Qt, QPointF, QRectF
from PyQt6.QtGui import QBrush, QColor, QFont, QPainter, QPen, QTextDocument
from PyQt6.QtWidgets import QGraphicsItem

from debug_trace import trace
from geometry import handle_points, section_boxes, section_icon_rect
from icon_raster import icon_image
from models import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DEFAULT_HEADER_COLOR,
    FOOTER_HEIGHT,
    HEADER_BAR_HEIGHT,
    HEADER_HEIGHT,
    Document,
    Rect,
    Section,
)
from settings import get_settings
from utils import hex_to_qcolor


SECTION_FILL = QColor("#D0D1CA")
SECTION_BORDER = QColor("#E5E7EB")
SECTION_RADIUS = 8.0
TEXT_COLOR = QColor("#1F2937")
MUTED_COLOR = QColor("#9CA3AF")
ICON_COLOR = "#4B5563"
CHART_COLOR = QColor("#8B5CF6")
FONT_FAMILY = "Arial"
BASE_TEXT_PX = 14           # content font size at text_scale 1


# =============================================================================
# Cached canvas settings - initialized once at first access to avoid
# repeated settings lookups during paint operations.
# =============================================================================

class _CachedCanvasSettings:
    """Cache for canvas settings values to avoid repeated lookups during paint."""

    _instance = None

    def __init__(self):
        s = get_settings().settings.canvas
        self.handle_size = s.handles.size
        self.handle_border_color = QColor(s.handles.border_color)
        self.handle_fill_color = QColor(s.handles.fill_color)
        self.selection_color = QColor(s.selection.outline_color)

    @classmethod
    def get(cls) -> "_CachedCanvasSettings":
        """Get the singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance


def _font(pixel_size: float, bold: bool = False) -> QFont:
    f = QFont(FONT_FAMILY)
    f.setPixelSize(max(1, int(round(pixel_size))))
    f.setBold(bold)
    return f


def _qrect(r: Rect, origin_x: float = 0.0, origin_y: float = 0.0) -> QRectF:
    """Convert a canvas Rect into item-local coordinates."""
    return QRectF(r.x - origin_x, r.y - origin_y, r.w, r.h)


def draw_handles(painter: QPainter, handle_positions: Dict[str, QPointF], handle_size: Optional[float] = None):
    """Draw resize handles at the given positions."""
    cached = _CachedCanvasSettings.get()
    if handle_size is None:
        handle_size = cached.handle_size
    painter.setPen(QPen(cached.handle_border_color, 1.5))
    painter.setBrush(QBrush(cached.handle_fill_color))

    half = handle_size / 2
    for pos in handle_positions.values():
        painter.drawRect(QRectF(pos.x() - half, pos.y() - half, handle_size, handle_size))


# =============================================================================
# Slide frame
# =============================================================================

class SlideFrameItem(QGraphicsItem):
    """White slide with journal band, two-color title and citation footer."""

    def __init__(self, document: Optional[Document] = None):
        super().__init__()
        self.setZValue(0)
        self._journal = ""
        self._title = ""
        self._citation = ""
        self._color = QColor(DEFAULT_HEADER_COLOR)
        if document is not None:
            self.set_document(document)

    def set_document(self, document: Document) -> None:
        self._journal = document.journal_name or get_settings().settings.export.default_journal_name
        self._title = document.title
        self._citation = document.citation
        self._color = hex_to_qcolor(document.header_color, QColor(DEFAULT_HEADER_COLOR))
        self.update()

    def boundingRect(self) -> QRectF:
        return QRectF(0, 0, CANVAS_WIDTH, CANVAS_HEIGHT)

    def paint(self, painter: QPainter, option, widget=None):
        painter.fillRect(self.boundingRect(), QColor("#FFFFFF"))

        # Journal band
        painter.fillRect(QRectF(0, 0, CANVAS_WIDTH, HEADER_BAR_HEIGHT), self._color)
        painter.setPen(QColor("#FFFFFF"))
        painter.setFont(_font(24, bold=True))
        painter.drawText(
            QRectF(32, 0, CANVAS_WIDTH - 64, HEADER_BAR_HEIGHT),
            Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
            self._journal.upper(),
        )

        # Title area: accent prefix + title, wrapped
        prefix = get_settings().settings.export.title_prefix
        doc = QTextDocument()
        doc.setDefaultFont(_font(24, bold=True))
        doc.setTextWidth(CANVAS_WIDTH - 64)
        doc.setHtml(
            f'<span style="color:{self._color.name()}">{html.escape(prefix)}</span>'
            f'<span style="color:#111827">{html.escape(self._title)}</span>'
        )
        area_h = HEADER_HEIGHT - HEADER_BAR_HEIGHT
        top = HEADER_BAR_HEIGHT + max(0.0, (area_h - doc.size().height()) / 2)
        painter.save()
        painter.translate(32, top)
        painter.setClipRect(QRectF(0, 0, CANVAS_WIDTH - 64, area_h))
        doc.drawContents(painter)
        painter.restore()
        painter.setPen(QPen(QColor("#F3F4F6"), 1))
        painter.drawLine(QPointF(0, HEADER_HEIGHT), QPointF(CANVAS_WIDTH, HEADER_HEIGHT))

        # Footer
        footer_y = CANVAS_HEIGHT - FOOTER_HEIGHT
        painter.fillRect(QRectF(0, footer_y, CANVAS_WIDTH, FOOTER_HEIGHT), QColor("#F9FAFB"))
        painter.setPen(QPen(QColor("#F3F4F6"), 1))
        painter.drawLine(QPointF(0, footer_y), QPointF(CANVAS_WIDTH, footer_y))
        painter.setPen(MUTED_COLOR)
        painter.setFont(_font(10))
        painter.drawText(
            QRectF(32, footer_y, CANVAS_WIDTH - 64, FOOTER_HEIGHT),
            Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
            self._citation,
        )


# =============================================================================
# Section
# =============================================================================

class SectionItem(QGraphicsItem):
    """
    One section box: title, text, icon or bar chart, statistics line.

    The item sits at the section's top-left corner; everything is painted
    in local coordinates.  Selection outline and handles are painted only
    while ``selected`` is set by the scene.
    """

    def __init__(self, section: Section, header_color: str = DEFAULT_HEADER_COLOR):
        super().__init__()
        self.section = section
        self.header_color = header_color
        self.selected = False
        self.setAcceptHoverEvents(False)
        self._apply_geometry()

    @property
    def section_id(self) -> str:
        return self.section.id

    def set_section(self, section: Section, header_color: str, selected: bool) -> None:
        """Show a new value of the section (preview or committed)."""
        if section == self.section and header_color == self.header_color and selected == self.selected:
            return
        self.prepareGeometryChange()
        self.section = section
        self.header_color = header_color
        self.selected = selected
        self._apply_geometry()
        self.update()

    def _apply_geometry(self):
        self.setPos(self.section.rect.x, self.section.rect.y)
        self.setZValue(20 if self.selected else 10)

    def boundingRect(self) -> QRectF:
        """Local rect, expanded to include resize handles."""
        margin = _CachedCanvasSettings.get().handle_size / 2 + 2
        r = self.section.rect
        return QRectF(0, 0, r.w, r.h).adjusted(-margin, -margin, margin, margin)

    # ----------------------------
    # Painting
    # ----------------------------

    def paint(self, painter: QPainter, option, widget=None):
        s = self.section
        trace(f"paint section {s.id} selected={self.selected}", "PAINT")
        ox, oy = s.rect.x, s.rect.y
        accent = hex_to_qcolor(self.header_color, QColor(DEFAULT_HEADER_COLOR))
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)

        body = QRectF(0, 0, s.rect.w, s.rect.h)
        border = _CachedCanvasSettings.get().selection_color if self.selected else SECTION_BORDER
        painter.setPen(QPen(border, 2))
        painter.setBrush(QBrush(SECTION_FILL))
        painter.drawRoundedRect(body.adjusted(1, 1, -1, -1), SECTION_RADIUS, SECTION_RADIUS)

        boxes = section_boxes(s.rect, s.layout, s.has_visual)

        painter.setPen(accent)
        painter.setFont(_font(12, bold=True))
        title_rect = _qrect(boxes.title, ox, oy)
        title = painter.fontMetrics().elidedText(
            s.title.upper(), Qt.TextElideMode.ElideRight, int(title_rect.width())
        )
        painter.drawText(title_rect, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, title)

        if boxes.visual is not None:
            if s.has_chart:
                self._paint_chart(painter, _qrect(boxes.visual, ox, oy))
            else:
                self._paint_icon(painter, ox, oy)

        text_rect = _qrect(boxes.text, ox, oy)
        if s.statistics:
            text_rect = self._paint_statistics(painter, text_rect)
        if s.content:
            painter.save()
            painter.setClipRect(text_rect)
            painter.setPen(TEXT_COLOR)
            painter.setFont(_font(BASE_TEXT_PX * s.text_scale))
            painter.drawText(
                text_rect,
                Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop | Qt.TextFlag.TextWordWrap,
                s.display_content,
            )
            painter.restore()
        elif not s.has_visual:
            painter.setPen(MUTED_COLOR)
            painter.setFont(_font(12, bold=True))
            painter.drawText(text_rect, Qt.AlignmentFlag.AlignCenter, "Add content")

        if self.selected:
            pts = {k: QPointF(x - ox, y - oy) for k, (x, y) in handle_points(s.rect).items()}
            draw_handles(painter, pts)

    def _paint_icon(self, painter: QPainter, ox: float, oy: float):
        r = section_icon_rect(self.section)
        if r is None or r.w < 1:
            return
        target = _qrect(r, ox, oy)
        image = icon_image(self.section.icon, ICON_COLOR, int(round(r.w)))
        painter.save()
        painter.setOpacity(0.8)
        if image is None:
            # Unrenderable icon
            painter.setPen(QPen(MUTED_COLOR, 2, Qt.PenStyle.DashLine))
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawEllipse(target.adjusted(2, 2, -2, -2))
            painter.setFont(_font(target.height() / 3, bold=True))
            painter.drawText(target, Qt.AlignmentFlag.AlignCenter, "?")
        else:
            size = image.size().scaled(
                int(target.width()), int(target.height()), Qt.AspectRatioMode.KeepAspectRatio
            )
            dst = QRectF(
                target.x() + (target.width() - size.width()) / 2,
                target.y() + (target.height() - size.height()) / 2,
                size.width(), size.height(),
            )
            painter.drawImage(dst, image)
        painter.restore()

    def _paint_chart(self, painter: QPainter, area: QRectF):
        points = self.section.chart_data
        if not points or area.width() <= 0 or area.height() <= 0:
            return
        label_h = 14.0
        gap = 8.0
        bar_w = max(1.0, (area.width() - gap * (len(points) - 1)) / len(points))
        plot_h = max(0.0, area.height() - label_h)

        painter.save()
        painter.setFont(_font(10))
        for i, p in enumerate(points):
            x = area.x() + i * (bar_w + gap)
            # Values are percentages of half the plot height, as on the web canvas
            h = min(plot_h, max(0.0, p.value * 2.0 / 100.0 * plot_h))
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QBrush(CHART_COLOR))
            painter.drawRoundedRect(QRectF(x, area.y() + plot_h - h, bar_w, h), 2, 2)
            painter.setPen(QColor("#6B7280"))
            painter.drawText(
                QRectF(x, area.y() + plot_h, bar_w, label_h),
                Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop,
                p.label,
            )
        painter.restore()

    def _paint_statistics(self, painter: QPainter, text_rect: QRectF) -> QRectF:
        """Paint the statistics line under the text; return the remaining text rect."""
        font = _font(18, bold=True)
        line_h = 26.0
        if text_rect.height() <= line_h:
            return text_rect
        stat_rect = QRectF(text_rect.x(), text_rect.bottom() - line_h, text_rect.width(), line_h)
        painter.setPen(QPen(QColor("#EDE9FE"), 1))
        painter.drawLine(stat_rect.topLeft(), stat_rect.topRight())
        painter.setPen(CHART_COLOR)
        painter.setFont(font)
        painter.drawText(stat_rect, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
                         self.section.statistics)
        return QRectF(text_rect.x(), text_rect.y(), text_rect.width(), text_rect.height() - line_h)
