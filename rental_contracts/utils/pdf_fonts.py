"""Unicode font support for ReportLab PDF generation.

The built-in Helvetica has no glyph for the rupee sign, so a TrueType font
is registered when one can be found:
1. Fonts bundled next to the package (rental_contracts/fonts/)
2. Linux system fonts (/usr/share/fonts/)
3. Windows system fonts (C:/Windows/Fonts/)
"""

import logging
from pathlib import Path

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

logger = logging.getLogger(__name__)

_BUNDLED_FONTS_DIR = Path(__file__).resolve().parent.parent / "fonts"

# registered_name -> candidate paths; first existing path wins
_FONT_CANDIDATES = {
    "ContractSans": [
        _BUNDLED_FONTS_DIR / "DejaVuSans.ttf",
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
        Path("/usr/share/fonts/dejavu/DejaVuSans.ttf"),
        Path("/usr/share/fonts/TTF/DejaVuSans.ttf"),
        Path("C:/Windows/Fonts/arial.ttf"),
    ],
    "ContractSans-Bold": [
        _BUNDLED_FONTS_DIR / "DejaVuSans-Bold.ttf",
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
        Path("/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf"),
        Path("/usr/share/fonts/TTF/DejaVuSans-Bold.ttf"),
        Path("C:/Windows/Fonts/arialbd.ttf"),
    ],
}

_registered = {"normal": None, "bold": None}
_attempted = False


def register_fonts() -> bool:
    """Register the Unicode fonts once. Returns False when falling back to Helvetica."""
    global _attempted

    if _attempted:
        return _registered["normal"] is not None
    _attempted = True

    for name, candidates in _FONT_CANDIDATES.items():
        for path in candidates:
            if not path.exists():
                continue
            try:
                pdfmetrics.registerFont(TTFont(name, str(path)))
            except Exception as e:
                logger.warning(f"Could not register font {name} from {path}: {e}")
                continue
            _registered["bold" if name.endswith("-Bold") else "normal"] = name
            break

    normal = _registered["normal"]
    if normal:
        pdfmetrics.registerFontFamily(
            normal,
            normal=normal,
            bold=_registered["bold"] or normal,
            italic=normal,
            boldItalic=_registered["bold"] or normal,
        )
        return True

    logger.warning("No Unicode font found, using Helvetica (currency shown as 'Rs.')")
    return False


def get_font_name(bold: bool = False) -> str:
    register_fonts()
    normal = _registered["normal"]
    if normal is None:
        return "Helvetica-Bold" if bold else "Helvetica"
    if bold:
        return _registered["bold"] or normal
    return normal


def currency_symbol() -> str:
    return "\u20b9" if register_fonts() else "Rs."
