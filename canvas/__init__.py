"""
canvas package

PyQt6 graphics items, scene, view and the gesture engine for the abstract canvas.
"""

from canvas.items import SectionItem, SlideFrameItem
from canvas.manipulation import GestureState, Hit, HitKind, ManipulationEngine
from canvas.scene import CanvasScene
from canvas.view import CanvasView

__all__ = [
    "SectionItem",
    "SlideFrameItem",
    "GestureState",
    "Hit",
    "HitKind",
    "ManipulationEngine",
    "CanvasScene",
    "CanvasView",
]
