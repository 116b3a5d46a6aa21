"""
pptx_export.py

Export a graphical abstract to an editable PowerPoint slide.

The slide is rebuilt from the document model rather than from the canvas:
header band, two-color title, footer with citation, then one filled box per
section with its title, text and icon laid out according to the section's
layout.  Canvas pixels map to inches through a fixed divisor (1280 px → 10 in).
"""

from __future__ import annotations

import io
from typing import Optional

from PIL import Image, UnidentifiedImageError
from pptx import Presentation
from pptx.chart.data import CategoryChartData
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE
from pptx.enum.shapes import MSO_CONNECTOR, MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, MSO_AUTO_SIZE, PP_ALIGN
from pptx.util import Emu, Inches, Pt

from debug_trace import trace, trace_call, trace_exception
from errors import ExportError, IconRasterError
from geometry import centered_square, section_boxes
from icon_raster import icon_to_png
from models import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DEFAULT_HEADER_COLOR,
    FOOTER_HEIGHT,
    HEADER_BAR_HEIGHT,
    Document,
    Rect,
    Section,
)
from settings import get_settings
from utils import hex_to_rgb

# Slide size (16:9)
SLIDE_WIDTH_IN = 10.0
SLIDE_HEIGHT_IN = 5.625

# Glyphs are rasterized at screen resolution of the target box
GLYPH_PX_PER_INCH = 96

FONT_FACE = "Arial"
MARGIN_X = 32               # px, left inset of header/title/footer text
TITLE_Y = 75
TITLE_HEIGHT = 40

SECTION_FILL = "#D0D1CA"
SECTION_BORDER = "#E0E0E0"
TITLE_TEXT_COLOR = "#111111"
CONTENT_TEXT_COLOR = "#333333"
FOOTER_FILL = "#F9FAFB"
FOOTER_LINE = "#E5E7EB"
CITATION_COLOR = "#9CA3AF"


def _rgb(hex_color: str, fallback: str = "#000000") -> RGBColor:
    """Convert a hex color to RGBColor, falling back on invalid input."""
    rgb = hex_to_rgb(hex_color) or hex_to_rgb(fallback)
    return RGBColor(*rgb)


class _Units:
    """Canvas pixel → EMU converter at a fixed pixels-per-inch divisor."""

    def __init__(self, px_per_inch: float):
        self.px_per_inch = px_per_inch

    def __call__(self, px: float) -> Emu:
        return Inches(px / self.px_per_inch)


def _style_run(run, size: float, color: str, bold: bool = False):
    run.font.name = FONT_FACE
    run.font.size = Pt(size)
    run.font.bold = bold
    run.font.color.rgb = _rgb(color)


def _add_textbox(slide, u: _Units, box: Rect, anchor=MSO_ANCHOR.TOP, shrink: bool = False):
    """Add an empty word-wrapped text box and return its text frame."""
    shape = slide.shapes.add_textbox(u(box.x), u(box.y), u(box.w), u(box.h))
    tf = shape.text_frame
    tf.word_wrap = True
    tf.vertical_anchor = anchor
    if shrink:
        tf.auto_size = MSO_AUTO_SIZE.TEXT_TO_FIT_SHAPE
    return tf


def _add_filled_rect(slide, u: _Units, box: Rect, fill: str, line: Optional[str] = None):
    shape = slide.shapes.add_shape(MSO_SHAPE.RECTANGLE, u(box.x), u(box.y), u(box.w), u(box.h))
    shape.fill.solid()
    shape.fill.fore_color.rgb = _rgb(fill)
    if line:
        shape.line.color.rgb = _rgb(line)
        shape.line.width = Pt(1)
    else:
        shape.line.fill.background()
    shape.shadow.inherit = False
    return shape


# ----------------------------
# Fixed bands
# ----------------------------

def _add_header(slide, u: _Units, document: Document, header_color: str):
    _add_filled_rect(slide, u, Rect(0, 0, CANVAS_WIDTH, HEADER_BAR_HEIGHT), header_color)

    journal = document.journal_name or get_settings().settings.export.default_journal_name
    tf = _add_textbox(slide, u, Rect(MARGIN_X, 0, CANVAS_WIDTH / 2, HEADER_BAR_HEIGHT),
                      anchor=MSO_ANCHOR.MIDDLE)
    p = tf.paragraphs[0]
    p.alignment = PP_ALIGN.LEFT
    run = p.add_run()
    run.text = journal
    _style_run(run, 18, "#FFFFFF", bold=True)


def _add_title(slide, u: _Units, document: Document, header_color: str):
    box = Rect(MARGIN_X, TITLE_Y, CANVAS_WIDTH - 2 * MARGIN_X, TITLE_HEIGHT)
    tf = _add_textbox(slide, u, box, shrink=True)
    p = tf.paragraphs[0]

    prefix = p.add_run()
    prefix.text = get_settings().settings.export.title_prefix
    _style_run(prefix, 14, header_color, bold=True)

    title = p.add_run()
    title.text = document.title
    _style_run(title, 14, TITLE_TEXT_COLOR, bold=True)


def _add_footer(slide, u: _Units, document: Document):
    footer_y = CANVAS_HEIGHT - FOOTER_HEIGHT
    _add_filled_rect(slide, u, Rect(0, footer_y, CANVAS_WIDTH, FOOTER_HEIGHT), FOOTER_FILL)

    divider = slide.shapes.add_connector(
        MSO_CONNECTOR.STRAIGHT, u(0), u(footer_y), u(CANVAS_WIDTH), u(footer_y)
    )
    divider.line.color.rgb = _rgb(FOOTER_LINE)
    divider.line.width = Pt(1)

    tf = _add_textbox(slide, u, Rect(MARGIN_X, footer_y, CANVAS_WIDTH * 0.6, FOOTER_HEIGHT),
                      anchor=MSO_ANCHOR.MIDDLE)
    run = tf.paragraphs[0].add_run()
    run.text = document.citation
    _style_run(run, 8, CITATION_COLOR)


# ----------------------------
# Section visuals
# ----------------------------

def _add_placeholder(slide, u: _Units, square: Rect, header_color: str):
    """Filled circle standing in for an icon that could not be rasterized."""
    shape = slide.shapes.add_shape(MSO_SHAPE.OVAL, u(square.x), u(square.y), u(square.w), u(square.h))
    shape.fill.solid()
    shape.fill.fore_color.rgb = _rgb(header_color)
    shape.line.fill.background()
    return shape


def _picture_box(png: bytes, square: Rect) -> Rect:
    """Fit an image into *square* keeping its aspect ratio, centered."""
    try:
        with Image.open(io.BytesIO(png)) as img:
            iw, ih = img.size
    except (UnidentifiedImageError, OSError) as e:
        raise IconRasterError(f"Converted icon is not a readable image: {e}") from e
    if iw <= 0 or ih <= 0:
        raise IconRasterError("Converted icon has no pixels")
    scale = min(square.w / iw, square.h / ih)
    w, h = iw * scale, ih * scale
    return Rect(square.x + (square.w - w) / 2, square.y + (square.h - h) / 2, w, h)


def _add_icon(slide, u: _Units, section: Section, visual: Rect, header_color: str) -> bool:
    """Embed a section's icon, or a placeholder if conversion fails.

    Returns:
        True if the real icon was embedded.
    """
    square = centered_square(visual)
    if square.w <= 0:
        return False
    size_px = max(1, int(round(square.w / u.px_per_inch * GLYPH_PX_PER_INCH)))
    try:
        png = icon_to_png(section.icon, header_color, size_px)
        box = _picture_box(png, square)
    except IconRasterError as e:
        trace(f"Icon for '{section.id}' replaced by placeholder: {e}", "EXPORT")
        _add_placeholder(slide, u, square, header_color)
        return False
    slide.shapes.add_picture(io.BytesIO(png), u(box.x), u(box.y), u(box.w), u(box.h))
    return True


def _add_chart(slide, u: _Units, section: Section, visual: Rect, header_color: str):
    """Native column chart for a section's chart data."""
    data = CategoryChartData()
    data.categories = [p.label for p in section.chart_data]
    data.add_series(section.title or "Value", [p.value for p in section.chart_data])

    frame = slide.shapes.add_chart(
        XL_CHART_TYPE.COLUMN_CLUSTERED, u(visual.x), u(visual.y), u(visual.w), u(visual.h), data
    )
    chart = frame.chart
    chart.has_legend = False
    chart.font.size = Pt(7)
    chart.font.name = FONT_FACE
    chart.value_axis.has_major_gridlines = False

    plot = chart.plots[0]
    plot.gap_width = 80
    fill = plot.series[0].format.fill
    fill.solid()
    fill.fore_color.rgb = _rgb(header_color)
    return frame


def _add_section(slide, u: _Units, section: Section, header_color: str):
    _add_filled_rect(slide, u, section.rect, SECTION_FILL, line=SECTION_BORDER)

    boxes = section_boxes(section.rect, section.layout, section.has_visual)

    tf = _add_textbox(slide, u, boxes.title)
    run = tf.paragraphs[0].add_run()
    run.text = section.title.upper()
    _style_run(run, 9, header_color, bold=True)

    if boxes.visual is not None and boxes.visual.w > 0 and boxes.visual.h > 0:
        if section.has_chart:
            _add_chart(slide, u, section, boxes.visual, header_color)
        else:
            _add_icon(slide, u, section, boxes.visual, header_color)

    if boxes.text.w <= 0 or boxes.text.h <= 0:
        return
    tf = _add_textbox(slide, u, boxes.text, shrink=True)
    p = tf.paragraphs[0]
    run = p.add_run()
    run.text = section.content
    _style_run(run, round(10 * section.text_scale * 2) / 2, CONTENT_TEXT_COLOR)
    if section.statistics:
        stat = tf.add_paragraph().add_run()
        stat.text = section.statistics
        _style_run(stat, 12, header_color, bold=True)


# ----------------------------
# Entry points
# ----------------------------

def build_presentation(document: Document) -> Presentation:
    """Build the one-slide deck for *document* in memory."""
    header_color = document.header_color if hex_to_rgb(document.header_color) else DEFAULT_HEADER_COLOR
    u = _Units(get_settings().settings.export.px_per_inch)

    prs = Presentation()
    prs.slide_width = Inches(SLIDE_WIDTH_IN)
    prs.slide_height = Inches(SLIDE_HEIGHT_IN)

    # Use blank layout
    slide = prs.slides.add_slide(prs.slide_layouts[6])
    slide.background.fill.solid()
    slide.background.fill.fore_color.rgb = RGBColor(0xFF, 0xFF, 0xFF)

    _add_header(slide, u, document, header_color)
    _add_title(slide, u, document, header_color)
    _add_footer(slide, u, document)
    for section in document.sections:
        _add_section(slide, u, section, header_color)

    return prs


@trace_call("EXPORT")
def export_to_pptx(document: Document, output_path: str) -> str:
    """
    Export a document to a PowerPoint file.

    The deck is rendered to memory first, so a failure never leaves a
    partial file behind.

    Args:
        document: Document to export (not modified)
        output_path: Path to save the .pptx file

    Returns:
        The output path.

    Raises:
        ExportError: If the deck cannot be built or written.
    """
    trace(f"PPTX export of '{document.title}' → {output_path}", "EXPORT")
    try:
        prs = build_presentation(document)
        buf = io.BytesIO()
        prs.save(buf)
    except Exception as e:
        trace_exception("PPTX build failed")
        raise ExportError(f"Could not build slide deck: {e}") from e

    try:
        with open(output_path, "wb") as f:
            f.write(buf.getvalue())
    except OSError as e:
        raise ExportError(f"Could not write {output_path}: {e}") from e
    return output_path
