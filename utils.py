"""
utils.py

Utility functions for GraphAbstract: color conversion and output file names.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from PyQt6.QtGui import QColor


def qcolor_to_hex(c: QColor) -> str:
    """
    Convert a QColor to a hex string.

    Args:
        c: The QColor to convert

    Returns:
        Hex string like "#RRGGBB"
    """
    return "#{:02X}{:02X}{:02X}".format(c.red(), c.green(), c.blue())


def hex_to_rgb(hex_color: str) -> Optional[Tuple[int, int, int]]:
    """
    Convert hex color string to RGB tuple.

    Args:
        hex_color: Color in format "#RRGGBB" or "#RRGGBBAA"

    Returns:
        Tuple of (r, g, b) or None if invalid
    """
    if not hex_color or not hex_color.startswith("#"):
        return None

    hex_color = hex_color.lstrip("#")

    # Drop the alpha byte of #RRGGBBAA
    if len(hex_color) == 8:
        hex_color = hex_color[:6]

    if len(hex_color) != 6:
        return None

    try:
        return (int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16))
    except ValueError:
        return None


def hex_to_qcolor(s: str, fallback: QColor) -> QColor:
    """
    Parse a hex string to a QColor.

    Args:
        s: Hex string like "#RRGGBB" or "#RRGGBBAA"
        fallback: Color to return if parsing fails

    Returns:
        Parsed QColor or fallback
    """
    rgb = hex_to_rgb((s or "").strip())
    if rgb is None:
        return QColor(fallback)
    return QColor(*rgb)


def is_hex_color(s: str) -> bool:
    return bool(re.fullmatch(r"#[0-9A-Fa-f]{6}", s or ""))


# ----------------------------
# Output file names
# ----------------------------

def pptx_filename(title: str) -> str:
    """Deck file name from a document title (non-alphanumerics become '_')."""
    stem = re.sub(r"[^a-z0-9]", "_", title or "", flags=re.IGNORECASE)
    return f"{stem or 'graphical_abstract'}.pptx"


def image_filename(dpi: int, fmt: str) -> str:
    """Raster export file name, e.g. ``abstract_300dpi.png``."""
    ext = "jpg" if fmt.lower() in ("jpg", "jpeg") else "png"
    return f"abstract_{dpi}dpi.{ext}"
