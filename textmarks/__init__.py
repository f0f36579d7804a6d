"""
textmarks: reading-order text and per-character geometry for PDF pages.

    >>> from textmarks import PDFEngine
    >>> with PDFEngine("invoice.pdf") as engine:
    ...     page = engine.extract_page_text(0)
    ...     page.term_bbox("PRICE LIST")
"""

__version__ = "2.0.0"

from textmarks.engine import EngineConfig, ExtractionConfig, PDFEngine, extract_page_text
from textmarks.models.page_source import FormXObject, GlyphFont, PageSource
from textmarks.models.text_marks import ExtractionStats, PageText, Rectangle, TextMark, TextMarkArray
from textmarks.utils.errors import (
    InvalidRange,
    NoMatch,
    PageExtractionError,
    StreamDecodeError,
    TextMarksError,
    UnmappedGlyph,
    UnsupportedColorspace,
)

__all__ = [
    'PDFEngine',
    'EngineConfig',
    'ExtractionConfig',
    'extract_page_text',
    'PageSource',
    'FormXObject',
    'GlyphFont',
    'PageText',
    'TextMark',
    'TextMarkArray',
    'Rectangle',
    'ExtractionStats',
    'TextMarksError',
    'StreamDecodeError',
    'UnmappedGlyph',
    'UnsupportedColorspace',
    'InvalidRange',
    'NoMatch',
    'PageExtractionError',
]
