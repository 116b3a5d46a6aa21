"""
raster_export.py

Export a graphical abstract as a PNG or JPEG image.

The committed document is drawn into an offscreen CanvasScene (no selection,
no handles) and rendered at ``dpi / 96`` times the canvas size onto a white
background.  Uses QImage only (no QPixmap), so it also runs in export
worker threads.
"""

from __future__ import annotations

from PyQt6.QtCore import QRectF, Qt
from PyQt6.QtGui import QImage, QPainter

from canvas.scene import CanvasScene
from debug_trace import trace, trace_call
from errors import ExportError
from geometry import export_scale
from models import CANVAS_HEIGHT, CANVAS_WIDTH, Document
from settings import get_settings

FORMATS = {"png": "PNG", "jpg": "JPEG", "jpeg": "JPEG"}


def render_document(document: Document, dpi: int) -> QImage:
    """Render *document* into an opaque QImage at the given DPI."""
    if dpi <= 0:
        raise ExportError(f"Invalid DPI: {dpi}")
    scale = export_scale(dpi)
    width = max(1, int(round(CANVAS_WIDTH * scale)))
    height = max(1, int(round(CANVAS_HEIGHT * scale)))

    image = QImage(width, height, QImage.Format.Format_RGB32)
    if image.isNull():
        raise ExportError(f"Could not allocate a {width}x{height} image")
    image.fill(Qt.GlobalColor.white)

    scene = CanvasScene.for_document(document)
    painter = QPainter(image)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
    painter.setRenderHint(QPainter.RenderHint.TextAntialiasing, True)
    painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
    scene.render(painter, QRectF(0, 0, width, height), scene.sceneRect())
    painter.end()
    return image


@trace_call("EXPORT")
def export_image(document: Document, output_path: str, dpi: int, fmt: str = "png") -> str:
    """
    Export a document as a raster image.

    Args:
        document: Document to export (not modified)
        output_path: Destination file
        dpi: Target resolution; 96 renders at canvas size
        fmt: "png" or "jpg"/"jpeg" (JPEG uses the configured quality)

    Returns:
        The output path.

    Raises:
        ExportError: If rendering or writing fails.
    """
    qt_format = FORMATS.get(fmt.lower())
    if qt_format is None:
        raise ExportError(f"Unsupported image format: {fmt}")

    trace(f"Image export {qt_format} {dpi}dpi → {output_path}", "EXPORT")
    image = render_document(document, dpi)
    quality = get_settings().settings.export.jpeg_quality if qt_format == "JPEG" else -1
    if not image.save(output_path, qt_format, quality):
        raise ExportError(f"Could not write {output_path}")
    return output_path
