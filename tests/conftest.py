"""Shared fixtures for the GraphAbstract test suite.

Widgets are created on the offscreen platform so the suite runs headless.
Settings are redirected to a temporary directory per test.
"""
from __future__ import annotations

import os
import sys
from types import SimpleNamespace

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("GRAPHABSTRACT_TRACE", "0")

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
import requests
from PyQt6.QtWidgets import QApplication

import icon_raster
import settings
from models import ChartPoint, Document, GlyphIcon, Rect, Section


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def qapp():
    """Provide a single QApplication for the entire test session."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the settings singleton at a throwaway directory."""
    sm = settings.SettingsManager(settings_dir=tmp_path / "config")
    sm.settings.workspace_dir = str(tmp_path / "workspace")
    monkeypatch.setattr(settings, "_settings_manager", sm)
    yield sm


@pytest.fixture()
def remote_images(monkeypatch):
    """Empty remote bitmap cache plus a fake ``requests.get``.

    Tests put bytes into ``served`` by URL (anything else fails as offline);
    every requested URL is recorded in ``fetched``.
    """
    monkeypatch.setattr(icon_raster, "_remote_bitmaps", {})
    monkeypatch.setattr(icon_raster, "_remote_failed", set())
    served = {}
    fetched = []

    class _Response:
        def __init__(self, content):
            self.content = content

        def raise_for_status(self):
            pass

    def fake_get(url, timeout=None, **kwargs):
        fetched.append(url)
        if url not in served:
            raise requests.ConnectionError("offline")
        return _Response(served[url])

    monkeypatch.setattr(requests, "get", fake_get)
    return SimpleNamespace(served=served, fetched=fetched)


@pytest.fixture()
def sample_document():
    """Two-section document: one glyph icon, one bar chart."""
    return Document(
        title="Effect of Exercise on Blood Pressure",
        citation="Doe J et al. Heart J. 2024.",
        journal_name="Cardiology",
        header_color="#1565C0",
        layout_template_id="comparative-study",
        sections=(
            Section(
                id="a",
                title="POPULATION",
                rect=Rect(50, 160, 400, 250),
                content="120 adults with stage 1 hypertension.",
                icon=GlyphIcon("group"),
                layout="right",
            ),
            Section(
                id="b",
                title="RESULTS",
                rect=Rect(500, 160, 400, 250),
                content="Systolic pressure fell in the exercise arm.",
                chart_data=(ChartPoint("Baseline", 140), ChartPoint("End", 125)),
                statistics="p < 0.01",
            ),
        ),
    )
