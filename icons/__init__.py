"""
icons/__init__.py

Built-in glyph library.

Each glyph is a 24x24 SVG template with a ``{color}`` placeholder; the
canvas and the exporters fill it with the document's header color.  Names
follow Material Symbols, and ``GLYPH_ALIASES`` maps related symbol names
onto the drawn shapes.
"""

from __future__ import annotations

import os
from typing import Dict, List, Optional

from models import CatalogIcon

_SVG_OPEN = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" width="24" height="24">'
_SVG_CLOSE = "</svg>"

# Glyph bodies (inside the <svg> element)
GLYPHS: Dict[str, str] = {
    "category": '''
  <path d="M12 2 L17 10 L7 10 Z" fill="{color}"/>
  <circle cx="17.5" cy="17.5" r="4" fill="{color}"/>
  <rect x="3" y="13.5" width="8" height="8" fill="{color}"/>''',

    "group": '''
  <circle cx="9" cy="8" r="3.5" fill="{color}"/>
  <path d="M2 20 C2 15 5 13 9 13 C13 13 16 15 16 20 Z" fill="{color}"/>
  <circle cx="17" cy="8.5" r="2.8" fill="{color}" opacity="0.7"/>
  <path d="M17 13 C20 13 22 15 22 19 L17.5 19 C17.5 16.5 17 14.5 15.8 13.3 Z" fill="{color}" opacity="0.7"/>''',

    "person": '''
  <circle cx="12" cy="7.5" r="4" fill="{color}"/>
  <path d="M4 21 C4 15.5 7.5 13 12 13 C16.5 13 20 15.5 20 21 Z" fill="{color}"/>''',

    "healing": '''
  <rect x="2.5" y="8" width="19" height="8" rx="4" transform="rotate(-45 12 12)" fill="none" stroke="{color}" stroke-width="2"/>
  <circle cx="12" cy="12" r="1.2" fill="{color}"/>
  <circle cx="10" cy="12" r="0.8" fill="{color}"/>
  <circle cx="14" cy="12" r="0.8" fill="{color}"/>''',

    "bar_chart": '''
  <rect x="4" y="10" width="4" height="10" fill="{color}"/>
  <rect x="10" y="4" width="4" height="16" fill="{color}"/>
  <rect x="16" y="13" width="4" height="7" fill="{color}"/>''',

    "analytics": '''
  <rect x="3" y="3" width="18" height="18" rx="2" fill="none" stroke="{color}" stroke-width="2"/>
  <rect x="7" y="12" width="2" height="5" fill="{color}"/>
  <rect x="11" y="8" width="2" height="9" fill="{color}"/>
  <rect x="15" y="14" width="2" height="3" fill="{color}"/>''',

    "query_stats": '''
  <circle cx="10" cy="10" r="6" fill="none" stroke="{color}" stroke-width="2"/>
  <line x1="14.5" y1="14.5" x2="20" y2="20" stroke="{color}" stroke-width="2.5" stroke-linecap="round"/>
  <path d="M6.5 11.5 L9 8.5 L11 10.5 L13.5 7.5" fill="none" stroke="{color}" stroke-width="1.5" stroke-linejoin="round"/>''',

    "trending_up": '''
  <path d="M3 17 L9 11 L13 15 L21 7" fill="none" stroke="{color}" stroke-width="2.2" stroke-linecap="round" stroke-linejoin="round"/>
  <path d="M15 7 L21 7 L21 13" fill="none" stroke="{color}" stroke-width="2.2" stroke-linecap="round" stroke-linejoin="round"/>''',

    "trending_down": '''
  <path d="M3 7 L9 13 L13 9 L21 17" fill="none" stroke="{color}" stroke-width="2.2" stroke-linecap="round" stroke-linejoin="round"/>
  <path d="M15 17 L21 17 L21 11" fill="none" stroke="{color}" stroke-width="2.2" stroke-linecap="round" stroke-linejoin="round"/>''',

    "domain": '''
  <rect x="3" y="4" width="10" height="17" fill="none" stroke="{color}" stroke-width="2"/>
  <rect x="13" y="9" width="8" height="12" fill="none" stroke="{color}" stroke-width="2"/>
  <rect x="6" y="7" width="2" height="2" fill="{color}"/>
  <rect x="6" y="11" width="2" height="2" fill="{color}"/>
  <rect x="6" y="15" width="2" height="2" fill="{color}"/>
  <rect x="16" y="13" width="2" height="2" fill="{color}"/>''',

    "location_on": '''
  <path d="M12 2 C8 2 5 5 5 9 C5 14 12 22 12 22 C12 22 19 14 19 9 C19 5 16 2 12 2 Z" fill="{color}"/>
  <circle cx="12" cy="9" r="2.5" fill="#FFFFFF"/>''',

    "target": '''
  <circle cx="12" cy="12" r="9" fill="none" stroke="{color}" stroke-width="2"/>
  <circle cx="12" cy="12" r="5.5" fill="none" stroke="{color}" stroke-width="2"/>
  <circle cx="12" cy="12" r="2" fill="{color}"/>''',

    "folder_open": '''
  <path d="M3 6 L3 19 L18 19 L21 10 L7 10 L5 17 M3 6 L9 6 L11 8 L17 8 L17 10" fill="none" stroke="{color}" stroke-width="2" stroke-linejoin="round"/>''',

    "folder": '''
  <path d="M3 5 L9 5 L11 7 L21 7 L21 19 L3 19 Z" fill="{color}"/>''',

    "filter_list": '''
  <line x1="3" y1="6" x2="21" y2="6" stroke="{color}" stroke-width="2.2" stroke-linecap="round"/>
  <line x1="6" y1="12" x2="18" y2="12" stroke="{color}" stroke-width="2.2" stroke-linecap="round"/>
  <line x1="10" y1="18" x2="14" y2="18" stroke="{color}" stroke-width="2.2" stroke-linecap="round"/>''',

    "filter_alt": '''
  <path d="M3 4 L21 4 L14 12.5 L14 20 L10 18 L10 12.5 Z" fill="{color}"/>''',

    "flag": '''
  <line x1="5" y1="3" x2="5" y2="21" stroke="{color}" stroke-width="2" stroke-linecap="round"/>
  <path d="M5 4 L19 4 L16 8.5 L19 13 L5 13 Z" fill="{color}"/>''',

    "monitor_heart": '''
  <rect x="2" y="4" width="20" height="16" rx="2" fill="none" stroke="{color}" stroke-width="2"/>
  <path d="M4 12 L8 12 L10 8 L13 16 L15 12 L20 12" fill="none" stroke="{color}" stroke-width="1.8" stroke-linejoin="round"/>''',

    "favorite": '''
  <path d="M12 21 L10.5 19.6 C5.4 15 2 11.9 2 8.1 C2 5 4.4 2.6 7.5 2.6 C9.2 2.6 10.9 3.4 12 4.7 C13.1 3.4 14.8 2.6 16.5 2.6 C19.6 2.6 22 5 22 8.1 C22 11.9 18.6 15 13.5 19.6 Z" fill="{color}"/>''',

    "clinical_notes": '''
  <rect x="4" y="3" width="16" height="18" rx="2" fill="none" stroke="{color}" stroke-width="2"/>
  <line x1="8" y1="8" x2="16" y2="8" stroke="{color}" stroke-width="1.8"/>
  <line x1="8" y1="12" x2="16" y2="12" stroke="{color}" stroke-width="1.8"/>
  <line x1="8" y1="16" x2="13" y2="16" stroke="{color}" stroke-width="1.8"/>''',

    "description": '''
  <path d="M6 2 L14 2 L20 8 L20 22 L6 22 Z" fill="none" stroke="{color}" stroke-width="2" stroke-linejoin="round"/>
  <path d="M14 2 L14 8 L20 8" fill="none" stroke="{color}" stroke-width="2"/>
  <line x1="9" y1="13" x2="17" y2="13" stroke="{color}" stroke-width="1.6"/>
  <line x1="9" y1="17" x2="17" y2="17" stroke="{color}" stroke-width="1.6"/>''',

    "pill": '''
  <rect x="2.5" y="8" width="19" height="8" rx="4" transform="rotate(-45 12 12)" fill="none" stroke="{color}" stroke-width="2"/>
  <path d="M8.6 8.6 L15.4 15.4 L18.7 12.1 A4 4 0 0 0 11.9 5.3 Z" fill="{color}"/>''',

    "vaccines": '''
  <line x1="19" y1="5" x2="15" y2="9" stroke="{color}" stroke-width="2" stroke-linecap="round"/>
  <rect x="7" y="6" width="6" height="12" rx="1" transform="rotate(45 10 12)" fill="none" stroke="{color}" stroke-width="2"/>
  <line x1="5.5" y1="18.5" x2="3" y2="21" stroke="{color}" stroke-width="2" stroke-linecap="round"/>
  <line x1="17" y1="3" x2="21" y2="7" stroke="{color}" stroke-width="2" stroke-linecap="round"/>''',

    "medical_services": '''
  <rect x="3" y="7" width="18" height="13" rx="2" fill="{color}"/>
  <path d="M9 7 L9 4 L15 4 L15 7" fill="none" stroke="{color}" stroke-width="2"/>
  <path d="M12 10 L12 17 M8.5 13.5 L15.5 13.5" stroke="#FFFFFF" stroke-width="2"/>''',

    "science": '''
  <path d="M9 3 L15 3 M10 3 L10 9 L4.5 19 C4 20 4.6 21 5.7 21 L18.3 21 C19.4 21 20 20 19.5 19 L14 9 L14 3" fill="none" stroke="{color}" stroke-width="2" stroke-linejoin="round"/>
  <path d="M7.5 15 L16.5 15 L18.5 19.5 L5.5 19.5 Z" fill="{color}"/>''',

    "biotech": '''
  <rect x="9" y="3" width="5" height="10" rx="1" transform="rotate(-20 11.5 8)" fill="none" stroke="{color}" stroke-width="2"/>
  <path d="M5 21 L19 21 M8 18 C8 15 10 13.5 13 13.5" fill="none" stroke="{color}" stroke-width="2" stroke-linecap="round"/>''',

    "genetics": '''
  <path d="M7 2 C7 8 17 10 17 16 C17 19 16 21 16 22 M17 2 C17 8 7 10 7 16 C7 19 8 21 8 22" fill="none" stroke="{color}" stroke-width="2"/>
  <line x1="8.5" y1="6" x2="15.5" y2="6" stroke="{color}" stroke-width="1.5"/>
  <line x1="8.5" y1="18" x2="15.5" y2="18" stroke="{color}" stroke-width="1.5"/>''',

    "coronavirus": '''
  <circle cx="12" cy="12" r="6" fill="{color}"/>
  <path d="M12 2 L12 6 M12 18 L12 22 M2 12 L6 12 M18 12 L22 12 M5 5 L7.8 7.8 M16.2 16.2 L19 19 M19 5 L16.2 7.8 M7.8 16.2 L5 19" stroke="{color}" stroke-width="2" stroke-linecap="round"/>''',

    "database": '''
  <ellipse cx="12" cy="5" rx="8" ry="3" fill="none" stroke="{color}" stroke-width="2"/>
  <path d="M4 5 L4 19 C4 20.7 7.6 22 12 22 C16.4 22 20 20.7 20 19 L20 5 M4 12 C4 13.7 7.6 15 12 15 C16.4 15 20 13.7 20 12" fill="none" stroke="{color}" stroke-width="2"/>''',

    "local_hospital": '''
  <rect x="3" y="3" width="18" height="18" rx="2" fill="{color}"/>
  <path d="M12 7 L12 17 M7 12 L17 12" stroke="#FFFFFF" stroke-width="2.5"/>''',

    "workspace_premium": '''
  <circle cx="12" cy="9" r="6" fill="none" stroke="{color}" stroke-width="2"/>
  <path d="M12 6 L13 8.2 L15.3 8.4 L13.5 9.9 L14.1 12.2 L12 11 L9.9 12.2 L10.5 9.9 L8.7 8.4 L11 8.2 Z" fill="{color}"/>
  <path d="M8 14 L7 22 L12 19.5 L17 22 L16 14" fill="none" stroke="{color}" stroke-width="2" stroke-linejoin="round"/>''',

    "list_alt": '''
  <rect x="3" y="3" width="18" height="18" rx="2" fill="none" stroke="{color}" stroke-width="2"/>
  <circle cx="7.5" cy="8" r="1.2" fill="{color}"/>
  <circle cx="7.5" cy="12" r="1.2" fill="{color}"/>
  <circle cx="7.5" cy="16" r="1.2" fill="{color}"/>
  <path d="M10.5 8 L17 8 M10.5 12 L17 12 M10.5 16 L17 16" stroke="{color}" stroke-width="1.8"/>''',

    "construction": '''
  <path d="M14.5 4 A4.5 4.5 0 0 0 19.6 9.7 L12 17.3 L7 22 L2 17 L6.7 12 L14.3 4.4" fill="none" stroke="{color}" stroke-width="2" stroke-linejoin="round"/>
  <circle cx="4.5" cy="19.5" r="1" fill="{color}"/>''',

    "insights": '''
  <path d="M3 19 L9 11 L13 15 L20 6" fill="none" stroke="{color}" stroke-width="2" stroke-linejoin="round"/>
  <circle cx="3" cy="19" r="1.8" fill="{color}"/>
  <circle cx="9" cy="11" r="1.8" fill="{color}"/>
  <circle cx="13" cy="15" r="1.8" fill="{color}"/>
  <circle cx="20" cy="6" r="1.8" fill="{color}"/>''',

    "autorenew": '''
  <path d="M12 4 A8 8 0 0 1 19.4 15" fill="none" stroke="{color}" stroke-width="2.2"/>
  <path d="M12 20 A8 8 0 0 1 4.6 9" fill="none" stroke="{color}" stroke-width="2.2"/>
  <path d="M12 1 L15.5 4 L12 7 Z M12 23 L8.5 20 L12 17 Z" fill="{color}"/>''',

    "draw": '''
  <path d="M4 20 L5 15.5 L16 4.5 L19.5 8 L8.5 19 Z" fill="none" stroke="{color}" stroke-width="2" stroke-linejoin="round"/>
  <line x1="14" y1="6.5" x2="17.5" y2="10" stroke="{color}" stroke-width="2"/>
  <line x1="12" y1="21" x2="20" y2="21" stroke="{color}" stroke-width="2" stroke-linecap="round"/>''',

    "calendar_today": '''
  <rect x="3" y="5" width="18" height="16" rx="2" fill="none" stroke="{color}" stroke-width="2"/>
  <rect x="3" y="5" width="18" height="5" fill="{color}"/>
  <path d="M7 3 L7 7 M17 3 L17 7" stroke="{color}" stroke-width="2" stroke-linecap="round"/>''',

    "schedule": '''
  <circle cx="12" cy="12" r="9" fill="none" stroke="{color}" stroke-width="2"/>
  <path d="M12 7 L12 12 L15.5 14" fill="none" stroke="{color}" stroke-width="2" stroke-linecap="round"/>''',

    "check_circle": '''
  <circle cx="12" cy="12" r="10" fill="{color}"/>
  <path d="M7 12.5 L10.5 16 L17 8.5" fill="none" stroke="#FFFFFF" stroke-width="2.2" stroke-linecap="round" stroke-linejoin="round"/>''',

    "warning": '''
  <path d="M12 2 L22.5 20.5 L1.5 20.5 Z" fill="{color}"/>
  <path d="M12 9 L12 14.5" stroke="#FFFFFF" stroke-width="2.2" stroke-linecap="round"/>
  <circle cx="12" cy="17.5" r="1.2" fill="#FFFFFF"/>''',

    "info": '''
  <circle cx="12" cy="12" r="10" fill="{color}"/>
  <path d="M12 11 L12 17" stroke="#FFFFFF" stroke-width="2.2" stroke-linecap="round"/>
  <circle cx="12" cy="7.5" r="1.3" fill="#FFFFFF"/>''',

    "settings": '''
  <circle cx="12" cy="12" r="3.5" fill="none" stroke="{color}" stroke-width="2"/>
  <path d="M12 2 L12 5 M12 19 L12 22 M2 12 L5 12 M19 12 L22 12 M4.9 4.9 L7 7 M17 17 L19.1 19.1 M19.1 4.9 L17 7 M7 17 L4.9 19.1" stroke="{color}" stroke-width="2.5" stroke-linecap="round"/>''',

    "search": '''
  <circle cx="10" cy="10" r="6.5" fill="none" stroke="{color}" stroke-width="2.2"/>
  <line x1="15" y1="15" x2="21" y2="21" stroke="{color}" stroke-width="2.5" stroke-linecap="round"/>''',

    "edit": '''
  <path d="M3 21 L3.8 16.8 L15.5 5.1 L18.9 8.5 L7.2 20.2 Z" fill="{color}"/>
  <path d="M16.9 3.7 L18.3 2.3 L21.7 5.7 L20.3 7.1 Z" fill="{color}"/>''',

    "map": '''
  <path d="M3 6 L9 3.5 L15 6 L21 3.5 L21 18 L15 20.5 L9 18 L3 20.5 Z" fill="none" stroke="{color}" stroke-width="2" stroke-linejoin="round"/>
  <path d="M9 3.5 L9 18 M15 6 L15 20.5" stroke="{color}" stroke-width="2"/>''',

    "child_care": '''
  <circle cx="12" cy="12" r="9" fill="none" stroke="{color}" stroke-width="2"/>
  <circle cx="9" cy="10.5" r="1.2" fill="{color}"/>
  <circle cx="15" cy="10.5" r="1.2" fill="{color}"/>
  <path d="M8.5 14.5 C10 16.5 14 16.5 15.5 14.5" fill="none" stroke="{color}" stroke-width="1.8" stroke-linecap="round"/>''',
}

# Symbol names drawn with another glyph's shape
GLYPH_ALIASES: Dict[str, str] = {
    "groups": "group",
    "patient_list": "group",
    "family_restroom": "group",
    "stethoscope": "medical_services",
    "ambulance": "local_hospital",
    "medication": "pill",
    "microbiology": "coronavirus",
    "lab_research": "science",
    "experiment": "science",
    "show_chart": "trending_up",
    "assessment": "analytics",
    "apartment": "domain",
    "place": "location_on",
    "insert_drive_file": "description",
    "access_time": "schedule",
    "event": "calendar_today",
}


def canonical_glyph(name: str) -> Optional[str]:
    """Glyph key drawn for a symbol *name*, or None if the library lacks it."""
    if name in GLYPHS:
        return name
    return GLYPH_ALIASES.get(name)


def list_glyphs() -> List[str]:
    """Every symbol name the library can draw, sorted."""
    return sorted(set(GLYPHS) | set(GLYPH_ALIASES))


def glyph_svg(name: str, color: str) -> Optional[str]:
    """Complete SVG document for glyph *name* filled with *color*.

    Returns:
        The SVG text, or None if *name* is not in the library.
    """
    key = canonical_glyph(name)
    if key is None:
        return None
    return _SVG_OPEN + GLYPHS[key].replace("{color}", color) + "\n" + _SVG_CLOSE


def catalog_svg(icon: CatalogIcon, color: str, catalog_dir: str = "") -> Optional[str]:
    """SVG text for a catalog reference.

    Looks for ``<catalog_dir>/<ref>.svg`` first, then falls back to a
    built-in glyph of the same name.  ``currentColor`` in catalog files is
    replaced with *color*.
    """
    if catalog_dir:
        path = os.path.join(catalog_dir, f"{icon.ref}.svg")
        if os.path.isfile(path):
            with open(path, "r", encoding="utf-8") as f:
                return f.read().replace("currentColor", color)
    return glyph_svg(icon.ref, color)
