"""
Page inputs for text extraction.

A PageSource is everything the interpreter needs from the document model for
one page: decoded content bytes, the font and XObject resources they refer to,
the media box and the declared rotation. Fonts are anything implementing the
GlyphFont protocol.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Protocol, Tuple

from textmarks.constants.pdf_keys import DEFAULT_MEDIABOX, IDENTITY_MATRIX
from textmarks.utils.pdf_transforms import normalize_rotation


class GlyphFont(Protocol):
    """
    Font lookups the interpreter relies on.

    Widths, ascent and descent are in text space units (1/1000 of glyph space
    for ordinary fonts), i.e. they scale with the font size.
    """

    name: str
    ascent: float
    descent: float
    multibyte: bool

    def codes(self, data: bytes) -> Iterable[int]:
        """Split a shown string into character codes."""
        ...

    def to_text(self, code: int) -> str:
        """Unicode text for a code. Raises UnmappedGlyph when there is none."""
        ...

    def width(self, code: int) -> float:
        """Horizontal advance of a code."""
        ...


@dataclass
class FormXObject:
    """Form XObject that can be painted with Do."""
    content: bytes
    matrix: Tuple[float, float, float, float, float, float] = IDENTITY_MATRIX
    fonts: Mapping[str, GlyphFont] = field(default_factory=dict)
    xobjects: Mapping[str, 'FormXObject'] = field(default_factory=dict)
    name: Optional[str] = None


@dataclass
class PageSource:
    """Resolved page handed to the extractor."""
    content: bytes
    fonts: Mapping[str, GlyphFont] = field(default_factory=dict)
    mediabox: Tuple[float, float, float, float] = DEFAULT_MEDIABOX
    rotation: int = 0
    xobjects: Dict[str, FormXObject] = field(default_factory=dict)
    page_number: Optional[int] = None

    def __post_init__(self):
        """Validate geometry on construction."""
        if len(self.mediabox) != 4:
            raise ValueError(f"mediabox must have 4 values, got {self.mediabox}")
        x0, y0, x1, y1 = (float(v) for v in self.mediabox)
        self.mediabox = (min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))
        self.rotation = normalize_rotation(self.rotation)
