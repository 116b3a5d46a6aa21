"""
icon_raster.py

Icon-to-bitmap conversion shared by the canvas and both exporters.

- GlyphIcon / CatalogIcon: SVG rendered with QSvgRenderer in the header color.
- BitmapIcon: decoded (data URL, file or http(s)) and flattened onto an
  opaque white background with Pillow.  Remote images are fetched from
  worker threads into a module cache (prefetch_bitmaps) and only read from
  there while painting.

Every failure surfaces as IconRasterError so callers can substitute a
placeholder for that one icon.
"""

from __future__ import annotations

import base64
import binascii
import io
import os
from functools import lru_cache
from typing import Dict, List, Optional, Set
from urllib.parse import unquote, urlparse

import requests
from PIL import Image, UnidentifiedImageError
from PyQt6.QtCore import QBuffer, QByteArray, QIODevice, QRectF, Qt
from PyQt6.QtGui import QImage, QPainter
from PyQt6.QtSvg import QSvgRenderer

from debug_trace import trace
from errors import IconRasterError
from icons import catalog_svg, glyph_svg
from models import BitmapIcon, CatalogIcon, Document, GlyphIcon, Icon
from settings import get_settings

BITMAP_FETCH_TIMEOUT = 15  # seconds

# http(s) bitmaps, filled from worker threads; painting only reads them
_remote_bitmaps: Dict[str, bytes] = {}
_remote_failed: Set[str] = set()


# ----------------------------
# SVG glyphs
# ----------------------------

def svg_for_icon(icon: Icon, color: str) -> str:
    """SVG text for a glyph or catalog icon.

    Raises:
        IconRasterError: If the glyph or catalog entry does not exist.
    """
    if isinstance(icon, GlyphIcon):
        svg = glyph_svg(icon.name, color)
    elif isinstance(icon, CatalogIcon):
        svg = catalog_svg(icon, color, get_settings().settings.export.icon_catalog_dir)
    else:
        raise IconRasterError(f"Not a vector icon: {icon!r}")
    if svg is None:
        raise IconRasterError(f"No glyph for icon {icon!r}")
    return svg


def render_svg(svg: str, size_px: int) -> QImage:
    """Render SVG text into a transparent square QImage."""
    if size_px <= 0:
        raise IconRasterError(f"Invalid icon size {size_px}")
    renderer = QSvgRenderer(QByteArray(svg.encode("utf-8")))
    if not renderer.isValid():
        raise IconRasterError("SVG could not be parsed")
    image = QImage(size_px, size_px, QImage.Format.Format_ARGB32_Premultiplied)
    image.fill(Qt.GlobalColor.transparent)
    painter = QPainter(image)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
    renderer.render(painter, QRectF(0, 0, size_px, size_px))
    painter.end()
    return image


def qimage_to_png(image: QImage) -> bytes:
    data = QByteArray()
    buf = QBuffer(data)
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    ok = image.save(buf, "PNG")
    buf.close()
    if not ok:
        raise IconRasterError("PNG encoding failed")
    return bytes(data)


# ----------------------------
# Bitmaps
# ----------------------------

def is_remote(data: str) -> bool:
    return data.startswith(("http://", "https://"))


def fetch_remote_bitmap(url: str) -> bytes:
    """Download *url* into the remote bitmap cache.  Blocks; keep it off the GUI thread."""
    try:
        response = requests.get(url, timeout=BITMAP_FETCH_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        _remote_failed.add(url)
        raise IconRasterError(f"Could not fetch {url}: {e}") from e
    _remote_bitmaps[url] = response.content
    _remote_failed.discard(url)
    return response.content


def remote_bitmap_urls(document: Document, retry_failed: bool = False) -> List[str]:
    """http(s) bitmap icons of *document* that are not cached yet."""
    urls: List[str] = []
    for section in document.sections:
        icon = section.icon
        if not isinstance(icon, BitmapIcon) or not is_remote(icon.data):
            continue
        url = icon.data
        if url in _remote_bitmaps or url in urls:
            continue
        if url in _remote_failed and not retry_failed:
            continue
        urls.append(url)
    return urls


def prefetch_bitmaps(urls: List[str]) -> List[str]:
    """Fetch each URL into the cache; returns the ones that loaded."""
    loaded = []
    for url in urls:
        try:
            fetch_remote_bitmap(url)
        except IconRasterError as e:
            trace(f"Bitmap prefetch failed: {e}", "WARN")
            continue
        loaded.append(url)
    return loaded


def load_bitmap_bytes(data: str) -> bytes:
    """Raw bytes of a bitmap reference (data URL, http(s) URL or path)."""
    if data.startswith("data:"):
        header, _, payload = data.partition(",")
        try:
            if header.endswith(";base64"):
                return base64.b64decode(payload, validate=True)
            return unquote(payload).encode("latin-1")
        except (binascii.Error, ValueError) as e:
            raise IconRasterError(f"Invalid data URL: {e}") from e

    if is_remote(data):
        cached = _remote_bitmaps.get(data)
        if cached is not None:
            return cached
        return fetch_remote_bitmap(data)

    path = unquote(urlparse(data).path) if data.startswith("file://") else data
    if not os.path.isfile(path):
        raise IconRasterError(f"Image file not found: {path}")
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise IconRasterError(f"Could not read {path}: {e}") from e


def flatten_bitmap(raw: bytes) -> bytes:
    """Re-encode *raw* image bytes as PNG on an opaque white background."""
    try:
        with Image.open(io.BytesIO(raw)) as img:
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise IconRasterError(f"Unreadable image data: {e}") from e
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.getchannel("A"))
    out = io.BytesIO()
    background.save(out, format="PNG")
    return out.getvalue()


# ----------------------------
# Entry points
# ----------------------------

def icon_to_png(icon: Icon, color: str, size_px: int) -> bytes:
    """Convert any icon variant into PNG bytes for embedding.

    Args:
        icon: Icon to convert.
        color: Fill color for vector glyphs.
        size_px: Edge length for vector glyphs (bitmaps keep their size).

    Raises:
        IconRasterError: On any conversion failure.
    """
    if isinstance(icon, BitmapIcon):
        return flatten_bitmap(load_bitmap_bytes(icon.data))
    if isinstance(icon, (GlyphIcon, CatalogIcon)):
        return qimage_to_png(render_svg(svg_for_icon(icon, color), size_px))
    raise IconRasterError(f"Unknown icon variant: {icon!r}")


def icon_image(icon: Icon, color: str, size_px: int) -> Optional[QImage]:
    """Cached QImage of an icon for canvas painting.

    Returns None instead of raising so paint code can draw a placeholder.
    An http(s) bitmap is None until prefetch_bitmaps() has loaded it;
    painting never goes to the network.
    """
    if isinstance(icon, BitmapIcon) and is_remote(icon.data) and icon.data not in _remote_bitmaps:
        return None
    return _icon_image(icon, color, size_px)


@lru_cache(maxsize=256)
def _icon_image(icon: Icon, color: str, size_px: int) -> Optional[QImage]:
    try:
        if isinstance(icon, BitmapIcon):
            image = QImage()
            if not image.loadFromData(flatten_bitmap(load_bitmap_bytes(icon.data))):
                return None
            return image
        return render_svg(svg_for_icon(icon, color), size_px)
    except IconRasterError as e:
        trace(f"Icon not drawable: {e}", "WARN")
        return None
