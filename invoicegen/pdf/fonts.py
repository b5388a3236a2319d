from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from reportlab.lib.fonts import addMapping
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError

from invoicegen.core.paths import resource_path
from invoicegen.core.settings import Settings

logger = logging.getLogger(__name__)

FAMILY = "NotoSans"


@dataclass(frozen=True)
class FontSet:
    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"
    italic: str = "Helvetica-Oblique"
    bold_italic: str = "Helvetica-BoldOblique"


def _existing(path: Optional[str]) -> Optional[Path]:
    if not path:
        return None
    p = Path(path)
    if not p.exists():
        p = resource_path(path)
    return p if p.exists() else None


def _register(name: str, path: Optional[Path]) -> bool:
    if path is None:
        return False
    try:
        pdfmetrics.registerFont(TTFont(name, str(path)))
    except (TTFError, OSError):
        logger.warning("Could not load font %s from %s", name, path)
        return False
    return True


@lru_cache(maxsize=None)
def _register_fonts(regular: Optional[str], bold: Optional[str], italic: Optional[str], bold_italic: Optional[str]) -> FontSet:
    if not _register(FAMILY, _existing(regular)):
        # fall back to Helvetica variants
        return FontSet()
    names = {"regular": FAMILY}
    for key, suffix, path in (
        ("bold", "-Bold", bold),
        ("italic", "-Italic", italic),
        ("bold_italic", "-BoldItalic", bold_italic),
    ):
        if _register(FAMILY + suffix, _existing(path)):
            names[key] = FAMILY + suffix
    fonts = FontSet(
        regular=FAMILY,
        bold=names.get("bold", FAMILY),
        italic=names.get("italic", FAMILY),
        bold_italic=names.get("bold_italic", names.get("bold", FAMILY)),
    )
    # <b>/<i> inside paragraphs resolve through this mapping
    addMapping(FAMILY, 0, 0, fonts.regular)
    addMapping(FAMILY, 1, 0, fonts.bold)
    addMapping(FAMILY, 0, 1, fonts.italic)
    addMapping(FAMILY, 1, 1, fonts.bold_italic)
    return fonts


def register_fonts(settings: Optional[Settings] = None) -> FontSet:
    """Register the configured TTF family once and return the face names to use."""
    s = settings or Settings()
    return _register_fonts(s.font_path, s.bold_font_path, s.italic_font_path, s.bold_italic_font_path)
