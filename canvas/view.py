"""
canvas/view.py

QGraphicsView for the abstract canvas with wheel zoom and image drops.
"""

from __future__ import annotations

from typing import Callable, Optional

from PyQt6.QtCore import Qt, QPointF
from PyQt6.QtGui import QBrush, QColor, QPainter
from PyQt6.QtWidgets import QGraphicsView

from canvas.scene import CanvasScene
from settings import get_settings

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp")


class CanvasView(QGraphicsView):
    """
    Graphics view around a CanvasScene.

    - Mouse wheel zooms by the configured factor
    - Dropping an image file calls ``on_drop_image_cb(path, scene_pos)``
    """

    def __init__(self, scene: CanvasScene,
                 on_drop_image_cb: Optional[Callable[[str, QPointF], None]] = None,
                 parent=None):
        super().__init__(scene, parent)
        self.on_drop_image_cb = on_drop_image_cb
        self.setAcceptDrops(on_drop_image_cb is not None)
        self.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.AnchorUnderMouse)
        self.setBackgroundBrush(QBrush(QColor("#F3F4F6")))
        self.setMouseTracking(True)

        # Initial zoom from settings. Default: 0.75
        initial = get_settings().settings.canvas.zoom.initial
        self.scale(initial, initial)

    def wheelEvent(self, event):
        """Zoom with mouse wheel."""
        delta = event.angleDelta().y()
        # Zoom factor from settings. Default: 1.15 (15% per scroll step)
        zoom_factor = get_settings().settings.canvas.zoom.wheel_factor
        factor = zoom_factor if delta > 0 else 1 / zoom_factor
        self.scale(factor, factor)

    @staticmethod
    def _image_path(event) -> Optional[str]:
        if not event.mimeData().hasUrls():
            return None
        for u in event.mimeData().urls():
            path = u.toLocalFile()
            if path.lower().endswith(IMAGE_SUFFIXES):
                return path
        return None

    def dragEnterEvent(self, event):
        """Accept image file drops."""
        if self.on_drop_image_cb and self._image_path(event):
            event.acceptProposedAction()
            return
        event.ignore()

    def dragMoveEvent(self, event):
        event.acceptProposedAction()

    def dropEvent(self, event):
        path = self._image_path(event)
        if path and self.on_drop_image_cb:
            self.on_drop_image_cb(path, self.mapToScene(event.position().toPoint()))
            event.acceptProposedAction()
            return
        event.ignore()

    def zoom_fit(self):
        """Zoom to fit the whole slide in the view."""
        self.fitInView(self.scene().sceneRect().adjusted(-20, -20, 20, 20),
                       Qt.AspectRatioMode.KeepAspectRatio)

    def zoom_reset(self):
        """Reset zoom to 100% (1:1 scale)."""
        self.resetTransform()

    def zoom_in(self):
        """Zoom in by the configured factor."""
        zoom_factor = get_settings().settings.canvas.zoom.wheel_factor
        self.scale(zoom_factor, zoom_factor)

    def zoom_out(self):
        """Zoom out by the configured factor."""
        zoom_factor = get_settings().settings.canvas.zoom.wheel_factor
        self.scale(1 / zoom_factor, 1 / zoom_factor)

    def zoom_percent(self) -> int:
        return int(round(self.transform().m11() * 100))
