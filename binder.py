"""
binder.py

Maps article data returned by the extraction service onto the section slots
of a layout template.

The section count always follows the template: extra extracted sections are
folded into the last slot's content instead of creating new boxes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from models import DEFAULT_GLYPH, Document, GlyphIcon, journal_color, resolve_icon_name


# ----------------------------
# Extracted article model
# ----------------------------

@dataclass(frozen=True)
class ExtractedSection:
    """One section suggested by the extraction service."""
    title: str
    description: str
    icon_hint: Optional[str] = None
    icon_category: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ExtractedSection":
        icons = d.get("recommendedIcons") or []
        first = icons[0] if icons and isinstance(icons[0], dict) else {}
        return cls(
            title=str(d.get("title") or ""),
            description=str(d.get("description") or ""),
            icon_hint=first.get("name") or d.get("recommendedIcon") or None,
            icon_category=first.get("category") or None,
        )


@dataclass
class ExtractedArticle:
    """Article metadata and sections as returned by ``/extract``."""
    title: str = ""
    authors: List[str] = field(default_factory=list)
    journal: str = ""
    publish_date: str = ""
    journal_key: str = ""
    journal_name: str = ""
    sections: List[ExtractedSection] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ExtractedArticle":
        meta = d.get("metadata") or {}
        journal = d.get("journal") or {}
        return cls(
            title=str(meta.get("title") or ""),
            authors=[str(a) for a in meta.get("authors") or []],
            journal=str(meta.get("journal") or ""),
            publish_date=str(meta.get("publishDate") or ""),
            journal_key=str(journal.get("key") or ""),
            journal_name=str(journal.get("name") or ""),
            sections=[ExtractedSection.from_dict(s) for s in d.get("sections") or []
                      if isinstance(s, dict)],
        )


# ----------------------------
# Binding
# ----------------------------

def resolve_section_icon(section: ExtractedSection) -> str:
    """Glyph name for an extracted section's icon hint.

    Tries the hint itself, then its category, then the generic default.
    """
    return (
        resolve_icon_name(section.icon_hint)
        or resolve_icon_name(section.icon_category)
        or DEFAULT_GLYPH
    )


def bind_external_content(document: Document, extracted: Sequence[ExtractedSection]) -> Document:
    """Overwrite template slots with extracted sections, in order.

    Items beyond the last slot are appended to the last slot's content as
    ``"\\n\\n{TITLE}:\\n{description}"``.

    Args:
        document: Document instantiated from a template.
        extracted: Sections supplied by the extraction service.

    Returns:
        A new Document with the same number of sections.
    """
    sections = list(document.sections)
    if not sections or not extracted:
        return document

    for index, item in enumerate(extracted):
        if index < len(sections):
            slot = sections[index]
            slot = slot.with_fields(
                title=item.title.upper() if item.title else slot.title,
                content=item.description,
            )
            if item.icon_hint:
                slot = slot.with_icon(GlyphIcon(resolve_section_icon(item)))
            sections[index] = slot
        else:
            last = sections[-1]
            heading = item.title.upper() if item.title else "SECTION"
            sections[-1] = last.with_fields(
                content=f"{last.content}\n\n{heading}:\n{item.description}"
            )

    return document.with_sections(sections)


def _publish_year(publish_date: str) -> str:
    match = re.search(r"\d{4}", publish_date or "")
    return match.group(0) if match else "2024"


def build_citation(article: ExtractedArticle) -> str:
    """Short citation: ``"{first author} et al. {journal}. {year}."``"""
    author = article.authors[0] if article.authors else "Unknown"
    journal = article.journal or "Journal"
    return f"{author} et al. {journal}. {_publish_year(article.publish_date)}."


def apply_extracted_article(document: Document, article: ExtractedArticle) -> Document:
    """Fill a template document with an extracted article.

    Sets title, journal name, citation and the journal's header color, then
    binds the article's sections onto the template slots.
    """
    bound = bind_external_content(document, article.sections)
    return bound.with_fields(
        title=article.title or document.title,
        journal_name=article.journal_name or article.journal_key,
        citation=build_citation(article),
        header_color=journal_color(article.journal_key),
    )
