"""
Font adapter over pdfminer.six.

Wraps pdfminer PDFFont objects in the GlyphFont interface used by the content
interpreter, and loads the fonts of a resource dictionary.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from pdfminer.pdffont import PDFFont, PDFUnicodeNotDefined
from pdfminer.pdfinterp import PDFResourceManager
from pdfminer.pdftypes import PDFObjRef, dict_value
from pdfminer.psparser import LIT, literal_name

from textmarks.constants.pdf_keys import KEY_BASE_FONT, KEY_SUBTYPE, KEY_TYPE, VAL_FONT, VAL_TYPE1
from textmarks.utils.errors import UnmappedGlyph

logger = logging.getLogger(__name__)

DEFAULT_FONT_ASCENT = 0.75
DEFAULT_FONT_DESCENT = -0.25
INVALID_METRIC_THRESHOLD = 0.001

STANDARD_14_FONTS = {
    'Courier', 'Courier-Bold', 'Courier-BoldOblique', 'Courier-Oblique',
    'Helvetica', 'Helvetica-Bold', 'Helvetica-BoldOblique', 'Helvetica-Oblique',
    'Times-Roman', 'Times-Bold', 'Times-BoldItalic', 'Times-Italic',
    'Symbol', 'ZapfDingbats',
}


def _normalize_font_name(font: PDFFont) -> str:
    name = getattr(font, 'basefont', None) or getattr(font, 'fontname', None) or "unknown"
    if not isinstance(name, str):
        name = literal_name(name)
    # Strip subset prefix (e.g., "ABCDEF+Helvetica")
    if len(name) > 7 and name[6] == '+':
        name = name[7:]
    return name


class PdfMinerFont:
    """GlyphFont implementation backed by a pdfminer.six font."""

    def __init__(self, font: PDFFont, name: Optional[str] = None):
        self.font = font
        self.name = name or _normalize_font_name(font)
        self.multibyte = bool(font.is_multibyte())

        ascent = font.get_ascent()
        descent = font.get_descent()
        if abs(ascent) < INVALID_METRIC_THRESHOLD and abs(descent) < INVALID_METRIC_THRESHOLD:
            ascent, descent = DEFAULT_FONT_ASCENT, DEFAULT_FONT_DESCENT
        self.ascent = float(ascent)
        # Some producers write a positive descent
        self.descent = -abs(float(descent))

    def codes(self, data: bytes) -> Iterable[int]:
        return self.font.decode(data)

    def to_text(self, code: int) -> str:
        try:
            text = self.font.to_unichr(code)
        except (PDFUnicodeNotDefined, KeyError, IndexError):
            raise UnmappedGlyph(self.name, code)
        if not text:
            raise UnmappedGlyph(self.name, code)
        return text

    def width(self, code: int) -> float:
        return float(self.font.char_width(code))

    def __repr__(self) -> str:
        return f"PdfMinerFont({self.name!r})"


def standard_font(base_font: str, rsrcmgr: Optional[PDFResourceManager] = None) -> PdfMinerFont:
    """
    Build one of the Standard 14 fonts from pdfminer's built-in metrics.

    Args:
        base_font: PostScript name, e.g. "Helvetica" or "Courier-Bold"
        rsrcmgr: Resource manager to build the font with (new one if None)
    """
    if base_font not in STANDARD_14_FONTS:
        logger.warning(f"{base_font} is not a Standard 14 font, metrics may be missing")
    rsrcmgr = rsrcmgr or PDFResourceManager()
    spec = {
        KEY_TYPE: LIT(VAL_FONT),
        KEY_SUBTYPE: LIT(VAL_TYPE1),
        KEY_BASE_FONT: LIT(base_font),
    }
    return PdfMinerFont(rsrcmgr.get_font(None, spec), name=base_font)


def load_fonts(rsrcmgr: PDFResourceManager, fonts: Any) -> Dict[str, PdfMinerFont]:
    """
    Load every font of a /Font resource dictionary.

    Fonts that pdfminer cannot build are logged and left out; text shown with
    them is skipped by the interpreter.

    Returns:
        Mapping of resource name (without slash) to font
    """
    loaded: Dict[str, PdfMinerFont] = {}
    if not fonts:
        return loaded

    for font_id, spec in dict_value(fonts).items():
        objid = spec.objid if isinstance(spec, PDFObjRef) else None
        try:
            font = rsrcmgr.get_font(objid, dict_value(spec))
        except Exception as e:
            logger.warning(f"Could not load font {font_id}: {e}")
            continue
        loaded[str(font_id)] = PdfMinerFont(font)
        logger.debug(f"Loaded font {font_id} as {loaded[str(font_id)].name}")

    return loaded
