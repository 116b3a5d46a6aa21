"""Tests for the layout template catalog and article binding."""
from __future__ import annotations

import pytest

from binder import (
    ExtractedArticle,
    ExtractedSection,
    apply_extracted_article,
    bind_external_content,
    build_citation,
)
from geometry import rect_is_valid
from layouts import DEFAULT_TEMPLATE_ID, get_template, instantiate, list_templates
from models import DEFAULT_GLYPH, DEFAULT_HEADER_COLOR, GlyphIcon

TEMPLATE_IDS = [
    "clinical-trial",
    "meta-analysis",
    "longitudinal-study",
    "comparative-study",
    "cycle-process",
    "blank-canvas",
]


class TestTemplates:
    def test_catalog(self):
        assert [t.id for t in list_templates()] == TEMPLATE_IDS

    @pytest.mark.parametrize("template_id", TEMPLATE_IDS)
    def test_instantiate_is_valid(self, template_id):
        doc = instantiate(template_id)
        assert doc.layout_template_id == template_id
        assert doc.sections
        assert not doc.is_saved_project
        assert doc.header_color == DEFAULT_HEADER_COLOR
        for s in doc.sections:
            assert rect_is_valid(s.rect), s.id

    def test_clinical_trial_slots(self):
        doc = instantiate("clinical-trial")
        assert [s.id for s in doc.sections] == ["population", "intervention", "findings", "settings", "outcome"]
        assert doc.section("findings").layout == "bottom"

    def test_unknown_falls_back(self):
        doc = instantiate("does-not-exist")
        assert doc.layout_template_id == DEFAULT_TEMPLATE_ID
        assert len(doc.sections) == 5

    def test_instantiate_is_deterministic(self):
        assert instantiate("blank-canvas") == instantiate("blank-canvas")
        assert get_template("nope") is None

    def test_comparative_study_has_charts(self):
        doc = instantiate("comparative-study")
        assert any(s.has_chart for s in doc.sections)


class TestBinding:
    def _extracted(self, n):
        return [ExtractedSection(f"part {i}", f"text {i}", icon_hint="heart") for i in range(n)]

    def test_fills_slots_in_order(self):
        doc = instantiate("clinical-trial")
        bound = bind_external_content(doc, self._extracted(2))
        assert bound.sections[0].title == "PART 0"
        assert bound.sections[0].content == "text 0"
        assert bound.sections[0].icon == GlyphIcon("favorite")
        assert bound.sections[2] == doc.sections[2]

    def test_overflow_appends_to_last(self):
        doc = instantiate("blank-canvas")
        bound = bind_external_content(doc, self._extracted(3))
        assert len(bound.sections) == 1
        assert bound.sections[0].content == "text 0\n\nPART 1:\ntext 1\n\nPART 2:\ntext 2"

    def test_rects_untouched(self):
        doc = instantiate("meta-analysis")
        bound = bind_external_content(doc, self._extracted(5))
        assert [s.rect for s in bound.sections] == [s.rect for s in doc.sections]

    def test_unknown_hint_uses_default_glyph(self):
        doc = instantiate("blank-canvas")
        bound = bind_external_content(doc, [ExtractedSection("t", "d", icon_hint="zzz")])
        assert bound.sections[0].icon == GlyphIcon(DEFAULT_GLYPH)

    def test_no_hint_keeps_template_icon(self):
        doc = instantiate("blank-canvas")
        bound = bind_external_content(doc, [ExtractedSection("t", "d")])
        assert bound.sections[0].icon == doc.sections[0].icon

    def test_nothing_extracted(self):
        doc = instantiate("blank-canvas")
        assert bind_external_content(doc, []) is doc


class TestArticle:
    PAYLOAD = {
        "metadata": {
            "title": "Sleep and Memory",
            "authors": ["Smith A", "Jones B"],
            "journal": "Neurology",
            "publishDate": "March 2023",
        },
        "journal": {"key": "neurology", "name": "Neurology"},
        "sections": [
            {"title": "Methods", "description": "We did things.",
             "recommendedIcons": [{"name": "microscope", "category": "science"}]},
            {"title": "Results", "description": "It worked.", "recommendedIcon": "chart"},
        ],
    }

    def test_from_dict(self):
        article = ExtractedArticle.from_dict(self.PAYLOAD)
        assert article.title == "Sleep and Memory"
        assert article.sections[0].icon_hint == "microscope"
        assert article.sections[1].icon_hint == "chart"

    def test_citation(self):
        article = ExtractedArticle.from_dict(self.PAYLOAD)
        assert build_citation(article) == "Smith A et al. Neurology. 2023."

    def test_citation_defaults(self):
        assert build_citation(ExtractedArticle()) == "Unknown et al. Journal. 2024."

    def test_apply(self):
        article = ExtractedArticle.from_dict(self.PAYLOAD)
        doc = apply_extracted_article(instantiate("clinical-trial"), article)
        assert doc.title == "Sleep and Memory"
        assert doc.journal_name == "Neurology"
        assert doc.header_color == "#1565C0"
        assert doc.sections[0].title == "METHODS"
        assert doc.sections[0].icon == GlyphIcon("biotech")
        assert doc.sections[1].icon == GlyphIcon("analytics")
