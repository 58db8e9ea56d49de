# residency_forms/stamping/fonts.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from residency_forms import settings
from residency_forms.errors import ConfigError

logger = logging.getLogger(__name__)

FONT_SUFFIXES = (".ttf",)


def register_fonts(directory: Optional[Path] = None) -> List[str]:
    """
    Register every TrueType file in FONT_DIR under its file stem, so a
    placement can say "font": "DejaVuSans" for DejaVuSans.ttf.
    """
    d = directory or settings.font_dir()
    if d is None:
        return []
    if not d.is_dir():
        raise ConfigError(f"FONT_DIR {d} is not a directory")

    registered = set(pdfmetrics.getRegisteredFontNames())
    names: List[str] = []

    for path in sorted(d.iterdir()):
        if path.suffix.lower() not in FONT_SUFFIXES:
            continue
        name = path.stem
        if name not in registered:
            try:
                pdfmetrics.registerFont(TTFont(name, str(path)))
            except TTFError as e:
                raise ConfigError(f"Cannot load font {path}: {e}") from e
            logger.info("Registered font %s from %s", name, path)
        names.append(name)

    return names


def missing_glyphs(text: str, font_name: str) -> List[str]:
    """Characters of `text` the registered font would not draw as written."""
    font = pdfmetrics.getFont(font_name)

    if isinstance(font, TTFont):
        cmap = font.face.charToGlyph
        return [ch for ch in text if ord(ch) not in cmap]

    # Standard Type-1 fonts are drawn through their single-byte encoding.
    if font.encName == "WinAnsiEncoding":
        return [ch for ch in text if not _encodes(ch, "cp1252")]

    return []


def _encodes(ch: str, codec: str) -> bool:
    try:
        ch.encode(codec)
    except UnicodeEncodeError:
        return False
    return True
