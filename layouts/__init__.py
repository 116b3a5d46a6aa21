"""
layouts/__init__.py

Layout template catalog.

Templates live in ``layouts/templates.json``; each one supplies a default
title/citation and an ordered list of section defaults.  The catalog is read
once and cached.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from debug_trace import trace
from models import DEFAULT_HEADER_COLOR, Document, Section

DEFAULT_TEMPLATE_ID = "clinical-trial"

_TEMPLATES_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates.json")
_catalog: Optional[Dict[str, "LayoutTemplate"]] = None


@dataclass
class LayoutTemplate:
    """A named starting arrangement of section defaults.

    Attributes:
        id: Catalog key (e.g. "clinical-trial").
        name: Display name for menus.
        description: One-line description for menus.
        title: Default document title.
        citation: Default citation string.
        sections: Raw section dicts in the saved-project format.
    """

    id: str
    name: str
    description: str
    title: str
    citation: str
    sections: List[Dict[str, Any]] = field(default_factory=list)


def _load_catalog() -> Dict[str, LayoutTemplate]:
    global _catalog
    if _catalog is None:
        with open(_TEMPLATES_PATH, "r", encoding="utf-8") as f:
            raw = json.load(f)
        _catalog = {}
        for item in raw:
            template = LayoutTemplate(
                id=str(item["id"]),
                name=str(item.get("name", item["id"])),
                description=str(item.get("description", "")),
                title=str(item.get("title", "")),
                citation=str(item.get("citation", "")),
                sections=list(item.get("sections", [])),
            )
            _catalog[template.id] = template
    return _catalog


def list_templates() -> List[LayoutTemplate]:
    """All templates in catalog order."""
    return list(_load_catalog().values())


def get_template(template_id: str) -> Optional[LayoutTemplate]:
    return _load_catalog().get(template_id)


def instantiate(template_id: str) -> Document:
    """Create a fresh document from a layout template.

    Args:
        template_id: Catalog key.  Unknown ids fall back to the
            clinical-trial template.

    Returns:
        A Document with one Section per template slot.
    """
    template = get_template(template_id)
    if template is None:
        trace(f"Unknown layout template '{template_id}', using {DEFAULT_TEMPLATE_ID}", "WARN")
        template = _load_catalog()[DEFAULT_TEMPLATE_ID]

    return Document(
        title=template.title,
        citation=template.citation,
        journal_name="",
        header_color=DEFAULT_HEADER_COLOR,
        layout_template_id=template.id,
        sections=tuple(Section.from_dict(s) for s in template.sections),
    )
