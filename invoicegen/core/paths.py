"""
Where invoicegen finds its bundled assets and keeps its writable files.

Bundled (read-only): the NotoSans TTFs under assets/fonts used to measure and
draw text, and assets/sample_template.json used by the sample and diagnostics
tools. Writable: settings.json and the SQLite template store templates.db.
"""

from __future__ import annotations

import sys
from pathlib import Path

ASSETS_DIR = "assets"
SAMPLE_TEMPLATE = f"{ASSETS_DIR}/sample_template.json"
SETTINGS_FILE = "settings.json"
TEMPLATE_DB_FILE = "templates.db"


def is_frozen() -> bool:
    return bool(getattr(sys, "frozen", False))


def base_path() -> Path:
    """Root the assets/ directory is resolved against.

    - In a PyInstaller onefile build the assets are extracted to sys._MEIPASS.
    - Otherwise the checkout root, two levels above this package.
    """
    if is_frozen():
        meipass = getattr(sys, "_MEIPASS", None)
        if meipass:
            return Path(meipass)
    return Path(__file__).resolve().parents[2]


def resource_path(rel: str | Path) -> Path:
    """Resolve a bundled path such as a font file; absolute paths pass through."""
    rel = Path(rel)
    if rel.is_absolute():
        return rel
    return base_path() / rel


def sample_template_path() -> Path:
    return resource_path(SAMPLE_TEMPLATE)


def user_writable_dir() -> Path:
    """Directory for settings.json and templates.db.

    Next to the executable when frozen, since _MEIPASS is discarded on exit.
    """
    if is_frozen():
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[2]


def settings_path() -> Path:
    return user_writable_dir() / SETTINGS_FILE


def default_db_path() -> Path:
    """SQLite file backing the template repository unless configured otherwise."""
    return user_writable_dir() / TEMPLATE_DB_FILE
