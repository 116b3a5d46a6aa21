"""
settings.py

User preferences for GraphAbstract, kept in a TOML file.

The file lives in the per-user config directory reported by platformdirs
(``graphabstract/settings.toml``).  Each TOML table maps onto one of the
dataclasses below; keys that are missing, unknown or of the wrong type leave
the dataclass default in place, so a damaged file never stops the app from
starting.
"""

from __future__ import annotations

import os
import sys
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

APP_NAME = "graphabstract"

DEFAULT_API_URL = "https://graphic-abstract-api.vercel.app/api"
API_URL_ENV = "GRAPHABSTRACT_API_URL"

DEFAULT_POLISH_INSTRUCTION = (
    "Summarize this text for a graphical abstract section. "
    "Keep it concise (under 30 words) and scientific."
)

# Top-level TOML tables that mirror a nested AppSettings group
_GROUPS = ("canvas", "export", "api")

_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Shared SettingsManager, created on first use."""
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


# =============================================================================
# Canvas
# =============================================================================

@dataclass
class CanvasHandleSettings:
    """Resize handles drawn around the selected section."""
    size: float = 8.0                 # edge length in pixels
    hit_distance: float = 10.0        # pointer radius that still grabs a handle
    border_color: str = "#8B5CF6"
    fill_color: str = "#FFFFFF"


@dataclass
class CanvasInteractionSettings:
    drag_threshold: float = 3.0       # pixels before a press becomes a drag


@dataclass
class CanvasSelectionSettings:
    outline_color: str = "#8B5CF6"


@dataclass
class CanvasZoomSettings:
    wheel_factor: float = 1.15        # per wheel notch
    initial: float = 0.75             # whole slide visible in a default window


@dataclass
class CanvasSettings:
    handles: CanvasHandleSettings = field(default_factory=CanvasHandleSettings)
    interaction: CanvasInteractionSettings = field(default_factory=CanvasInteractionSettings)
    selection: CanvasSelectionSettings = field(default_factory=CanvasSelectionSettings)
    zoom: CanvasZoomSettings = field(default_factory=CanvasZoomSettings)


# =============================================================================
# Export
# =============================================================================

@dataclass
class ExportSettings:
    """PNG/JPEG and PowerPoint output.

    Attributes:
        default_dpi: Resolution offered for print exports.
        jpeg_quality: 0-100.
        px_per_inch: Canvas pixels per slide inch (1280 px -> 10 in).
        default_journal_name: Header text when the document has no journal.
        title_prefix: Accent run placed before the slide title.
        icon_catalog_dir: Folder of ``<ref>.svg`` files for catalog icons;
            empty means built-in glyphs only.
    """
    default_dpi: int = 300
    jpeg_quality: int = 90
    px_per_inch: float = 128.0
    default_journal_name: str = "JAMA"
    title_prefix: str = "RCT: "
    icon_catalog_dir: str = ""


# =============================================================================
# Service
# =============================================================================

@dataclass
class ApiSettings:
    """Extraction / polish / chat service."""
    base_url: str = ""                # empty: env var, then the hosted API
    timeout: float = 60.0             # seconds per request
    polish_instruction: str = DEFAULT_POLISH_INSTRUCTION

    def resolved_base_url(self) -> str:
        url = self.base_url or os.environ.get(API_URL_ENV, "") or DEFAULT_API_URL
        return url.rstrip("/")


@dataclass
class AppSettings:
    # Saved projects and exports; empty means ~/Documents/GraphAbstract
    workspace_dir: str = ""

    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    export: ExportSettings = field(default_factory=ExportSettings)
    api: ApiSettings = field(default_factory=ApiSettings)


# =============================================================================
# TOML <-> dataclass mapping
# =============================================================================

def _coerce(current: Any, value: Any) -> Any:
    """Return *value* if it fits the type of *current*, else *current*."""
    if isinstance(value, bool) or isinstance(current, bool):
        return value if type(value) is type(current) else current
    if isinstance(current, float) and isinstance(value, (int, float)):
        return float(value)
    if isinstance(current, int) and isinstance(value, int):
        return value
    if isinstance(current, str) and isinstance(value, str):
        return value
    return current


def _merge(target: Any, table: Dict[str, Any]) -> None:
    """Copy matching keys of a TOML table onto a settings dataclass."""
    for f in fields(target):
        if f.name not in table:
            continue
        current = getattr(target, f.name)
        value = table[f.name]
        if is_dataclass(current):
            if isinstance(value, dict):
                _merge(current, value)
        else:
            setattr(target, f.name, _coerce(current, value))


# =============================================================================
# Manager
# =============================================================================

class SettingsManager:
    """Loads and saves AppSettings.

    Args:
        app_name: Name of the per-user config directory.
        settings_dir: Explicit config directory (tests point this at a
            temporary folder).
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        self.settings_dir = Path(settings_dir) if settings_dir else Path(platformdirs.user_config_dir(app_name))
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        # A first run writes the file so users can find and edit it
        self._needs_save = not self.settings_file.exists()

    def ensure_file_complete(self) -> None:
        """Write the file at startup if it is missing or predates a save."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Read the settings file, falling back to defaults on any problem."""
        settings = AppSettings()
        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            return settings
        return self._apply(settings, data)

    @staticmethod
    def _apply(settings: AppSettings, data: Dict[str, Any]) -> AppSettings:
        general = data.get("general")
        if isinstance(general, dict):
            settings.workspace_dir = _coerce(settings.workspace_dir, general.get("workspace_dir", ""))
        for name in _GROUPS:
            table = data.get(name)
            if isinstance(table, dict):
                _merge(getattr(settings, name), table)
        return settings

    def as_dict(self) -> Dict[str, Any]:
        """Settings as nested TOML tables (``[general]`` plus one per group)."""
        out: Dict[str, Any] = {"general": {"workspace_dir": self.settings.workspace_dir}}
        for name in _GROUPS:
            out[name] = asdict(getattr(self.settings, name))
        return out

    def save(self) -> None:
        self.settings_dir.mkdir(parents=True, exist_ok=True)
        with open(self.settings_file, "wb") as f:
            tomli_w.dump(self.as_dict(), f)

    def to_toml(self) -> str:
        return tomli_w.dumps(self.as_dict())

    def get_workspace_dir(self) -> Path:
        """Workspace folder, ``~/Documents/GraphAbstract`` when unset."""
        if self.settings.workspace_dir:
            return Path(self.settings.workspace_dir)
        return Path.home() / "Documents" / "GraphAbstract"
