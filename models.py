"""
models.py

Data models and constants for GraphAbstract: sections, documents and the
tagged icon variant that a section may carry.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional, Tuple, Union


# ----------------------------
# Canvas constants
# ----------------------------

CANVAS_WIDTH = 1280
CANVAS_HEIGHT = 720
HEADER_BAR_HEIGHT = 60      # colored journal band
HEADER_HEIGHT = 150         # band + title area; sections start below this
FOOTER_HEIGHT = 30
MIN_SECTION_SIZE = 50
CONTENT_DISPLAY_LIMIT = 500

DEFAULT_HEADER_COLOR = "#C62828"
DEFAULT_GLYPH = "category"

# Header colors offered in the document settings panel
THEME_COLORS = ("#C62828", "#1565C0", "#2E7D32", "#F9A825", "#6A1B9A", "#455A64")


class SectionLayout:
    """Where a section's visual sits relative to its text."""
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

    ALL = (TOP, BOTTOM, LEFT, RIGHT)
    DEFAULT = BOTTOM

    @classmethod
    def normalize(cls, value: Optional[str]) -> str:
        return value if value in cls.ALL else cls.DEFAULT

    @classmethod
    def is_horizontal(cls, value: str) -> bool:
        return value in (cls.LEFT, cls.RIGHT)

    @classmethod
    def visual_first(cls, value: str) -> bool:
        return value in (cls.TOP, cls.LEFT)


# ----------------------------
# Icon variant
# ----------------------------

CATALOG_PREFIX = "healthicon:"
_BITMAP_PREFIXES = ("http://", "https://", "data:", "file://")
_BITMAP_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp")


@dataclass(frozen=True)
class GlyphIcon:
    """Symbolic glyph rendered from the built-in glyph library."""
    name: str


@dataclass(frozen=True)
class CatalogIcon:
    """Reference into an external SVG icon catalog."""
    ref: str


@dataclass(frozen=True)
class BitmapIcon:
    """Embedded (data URL) or linked (URL / file path) raster image."""
    data: str


Icon = Union[GlyphIcon, CatalogIcon, BitmapIcon]


def parse_icon(value: Any) -> Optional[Icon]:
    """Parse the legacy string form of an icon.

    Args:
        value: Icon string as stored in saved projects and templates.

    Returns:
        The matching icon variant, or None for an empty value.
    """
    if isinstance(value, (GlyphIcon, CatalogIcon, BitmapIcon)):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.startswith(CATALOG_PREFIX):
        return CatalogIcon(text[len(CATALOG_PREFIX):])
    lowered = text.lower()
    if lowered.startswith(_BITMAP_PREFIXES) or lowered.endswith(_BITMAP_SUFFIXES):
        return BitmapIcon(text)
    return GlyphIcon(text)


def icon_to_str(icon: Optional[Icon]) -> str:
    """Inverse of ``parse_icon``; None becomes an empty string."""
    if icon is None:
        return ""
    if isinstance(icon, GlyphIcon):
        return icon.name
    if isinstance(icon, CatalogIcon):
        return CATALOG_PREFIX + icon.ref
    if isinstance(icon, BitmapIcon):
        return icon.data
    raise TypeError(f"Unknown icon variant: {icon!r}")


# ----------------------------
# Section model
# ----------------------------

@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in canvas pixels."""
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Rect":
        return cls(float(d["x"]), float(d["y"]), float(d["w"]), float(d["h"]))


@dataclass(frozen=True)
class IconPosition:
    """Icon offset inside the visual area, in percent of its size."""
    x: float = 50.0
    y: float = 30.0


@dataclass(frozen=True)
class ChartPoint:
    label: str
    value: float


@dataclass(frozen=True)
class Section:
    """One placeable, resizable content box on the canvas.

    Instances are immutable; every edit produces a new Section so that the
    history can keep snapshots by reference.
    """
    id: str
    title: str
    rect: Rect
    content: str = ""
    icon: Optional[Icon] = None
    chart_data: Tuple[ChartPoint, ...] = ()
    statistics: str = ""
    image_scale: float = 1.0
    text_scale: float = 1.0
    icon_position: IconPosition = field(default_factory=IconPosition)
    layout: str = SectionLayout.DEFAULT

    @property
    def has_chart(self) -> bool:
        return bool(self.chart_data)

    @property
    def has_visual(self) -> bool:
        return self.icon is not None or self.has_chart

    @property
    def display_content(self) -> str:
        """Content as shown on the canvas (soft-capped, storage untouched)."""
        return self.content[:CONTENT_DISPLAY_LIMIT]

    def with_rect(self, rect: Rect) -> "Section":
        return replace(self, rect=rect)

    def with_icon(self, icon: Optional[Icon]) -> "Section":
        """Return a copy showing *icon*; any chart is dropped."""
        if icon is None:
            return replace(self, icon=None)
        return replace(self, icon=icon, chart_data=())

    def with_chart(self, chart_data: Iterable[ChartPoint]) -> "Section":
        """Return a copy showing a bar chart; any icon is dropped."""
        points = tuple(chart_data)
        if not points:
            return replace(self, chart_data=())
        return replace(self, chart_data=points, icon=None)

    def with_fields(self, **changes: Any) -> "Section":
        if "layout" in changes:
            changes["layout"] = SectionLayout.normalize(changes["layout"])
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the saved-project key names."""
        d: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "icon": icon_to_str(self.icon),
            "rect": self.rect.to_dict(),
            "layout": self.layout,
            "imageScale": self.image_scale,
            "textScale": self.text_scale,
            "iconPosition": {"x": self.icon_position.x, "y": self.icon_position.y},
        }
        if self.chart_data:
            d["chartData"] = [{"label": p.label, "value": p.value} for p in self.chart_data]
        if self.statistics:
            d["statistics"] = self.statistics
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Section":
        """Build a Section from a saved-project or template dict.

        A section that carries both a chart and an icon keeps the chart,
        which is what the canvas shows in that case.
        """
        chart = tuple(
            ChartPoint(str(p.get("label", "")), float(p.get("value", 0)))
            for p in d.get("chartData") or ()
        )
        icon = None if chart else parse_icon(d.get("icon", ""))
        pos = d.get("iconPosition") or {}
        return cls(
            id=str(d["id"]),
            title=str(d.get("title", "")),
            rect=Rect.from_dict(d["rect"]),
            content=str(d.get("content", "")),
            icon=icon,
            chart_data=chart,
            statistics=str(d.get("statistics") or ""),
            image_scale=float(d.get("imageScale") or 1.0),
            text_scale=float(d.get("textScale") or 1.0),
            icon_position=IconPosition(float(pos.get("x", 50.0)), float(pos.get("y", 30.0))),
            layout=SectionLayout.normalize(d.get("layout")),
        )


# ----------------------------
# Document model
# ----------------------------

def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Document:
    """The whole editable artifact: metadata plus ordered sections."""
    title: str
    sections: Tuple[Section, ...]
    citation: str = ""
    journal_name: str = ""
    header_color: str = DEFAULT_HEADER_COLOR
    layout_template_id: str = "clinical-trial"
    project_id: Optional[str] = None
    last_modified: int = 0

    def __post_init__(self):
        seen = set()
        for s in self.sections:
            if s.id in seen:
                raise ValueError(f"Duplicate section id: {s.id}")
            seen.add(s.id)

    @property
    def is_saved_project(self) -> bool:
        return self.project_id is not None

    def section(self, section_id: str) -> Optional[Section]:
        for s in self.sections:
            if s.id == section_id:
                return s
        return None

    def with_sections(self, sections: Iterable[Section]) -> "Document":
        return replace(self, sections=tuple(sections))

    def with_fields(self, **changes: Any) -> "Document":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize as a SavedProject record."""
        return {
            "id": self.project_id,
            "title": self.title,
            "journalName": self.journal_name,
            "citation": self.citation,
            "layoutId": self.layout_template_id,
            "sections": [s.to_dict() for s in self.sections],
            "headerColor": self.header_color,
            "lastModified": self.last_modified,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Document":
        return cls(
            title=str(d.get("title", "")),
            sections=tuple(Section.from_dict(s) for s in d.get("sections", [])),
            citation=str(d.get("citation", "")),
            journal_name=str(d.get("journalName", "")),
            header_color=str(d.get("headerColor") or DEFAULT_HEADER_COLOR),
            layout_template_id=str(d.get("layoutId") or "clinical-trial"),
            project_id=d.get("id"),
            last_modified=int(d.get("lastModified") or 0),
        )


# ----------------------------
# Icon name → glyph lookup
# ----------------------------

# Maps free-form icon hints (as returned by the extraction service) to glyph
# names of the built-in library.  ``resolve_icon_name()`` does exact, then
# partial matching against these keys.
ICON_ALIAS_MAP: Dict[str, str] = {
    # ── Medical ──
    "stethoscope":  "stethoscope",
    "heart":        "favorite",
    "medical":      "medical_services",
    "pill":         "medication",
    "syringe":      "vaccines",
    "hospital":     "local_hospital",
    "ambulance":    "ambulance",
    "microscope":   "biotech",
    "dna":          "genetics",
    "virus":        "coronavirus",
    "bacteria":     "microbiology",
    # ── People ──
    "people":       "groups",
    "person":       "person",
    "group":        "group",
    "patient":      "patient_list",
    "family":       "family_restroom",
    "child":        "child_care",
    # ── Science ──
    "flask":        "science",
    "test tube":    "lab_research",
    "beaker":       "science",
    "laboratory":   "science",
    "research":     "lab_research",
    "experiment":   "experiment",
    # ── Data ──
    "chart":        "analytics",
    "graph":        "bar_chart",
    "statistics":   "analytics",
    "data":         "database",
    "analytics":    "analytics",
    "trends":       "trending_up",
    # ── Places ──
    "building":     "apartment",
    "location":     "location_on",
    "map":          "map",
    "place":        "place",
    # ── Documents ──
    "document":     "description",
    "file":         "insert_drive_file",
    "folder":       "folder",
    "report":       "assessment",
    # ── Time ──
    "calendar":     "calendar_today",
    "clock":        "schedule",
    "time":         "access_time",
    "date":         "event",
    # ── Misc ──
    "check":        "check_circle",
    "warning":      "warning",
    "info":         "info",
    "settings":     "settings",
    "filter":       "filter_alt",
    "search":       "search",
    "edit":         "edit",
}


def resolve_icon_name(hint: Optional[str]) -> Optional[str]:
    """Resolve a free-form icon hint to a glyph name.

    Args:
        hint: Icon name suggested by the extraction service.

    Returns:
        The glyph name, or None if neither an exact nor a partial match exists.
    """
    if not hint:
        return None
    key = hint.strip().lower()
    if not key:
        return None
    if key in ICON_ALIAS_MAP:
        return ICON_ALIAS_MAP[key]
    for alias, glyph in ICON_ALIAS_MAP.items():
        if alias in key or key in alias:
            return glyph
    return None


# ----------------------------
# Journal category → header color
# ----------------------------

JOURNAL_CATEGORY_COLORS: Dict[str, str] = {
    # Medical
    "cardiology":       "#C62828",
    "neurology":        "#1565C0",
    "oncology":         "#2E7D32",
    "endocrinology":    "#F9A825",
    "psychiatry":       "#6A1B9A",
    "dermatology":      "#455A64",
    "radiology":        "#00897B",
    "pediatrics":       "#E91E63",
    "surgery":          "#D32F2F",
    "orthopedics":      "#F57C00",
    "ophthalmology":    "#00ACC1",
    "gastroenterology": "#7CB342",
    # Sciences
    "biology":          "#2E7D32",
    "chemistry":        "#1565C0",
    "physics":          "#6A1B9A",
    "mathematics":      "#F9A825",
    "engineering":      "#455A64",
    "computer-science": "#00897B",
    "environmental":    "#7CB342",
}


def journal_color(journal_key: Optional[str]) -> str:
    """Header color for a journal category key (default red)."""
    if not journal_key:
        return DEFAULT_HEADER_COLOR
    return JOURNAL_CATEGORY_COLORS.get(journal_key.strip().lower(), DEFAULT_HEADER_COLOR)
