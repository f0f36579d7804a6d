"""
Text Extraction Components

Stateful stages of the page pipeline:

- TransformStack: CTM, text matrix and page orientation composition
- content_operators: typed decoding of content stream instructions
- ContentStreamInterpreter: text state machine emitting glyph events
- glyph_geometry: glyph bounding boxes in default page space
- TextAssembler: reading-order text and text marks
- fonts: pdfminer.six font adapter

Pure helpers live in utils/.
"""

from textmarks.processors.transform_stack import TransformStack
from textmarks.processors.content_operators import ParsedContent, parse_content
from textmarks.processors.content_interpreter import ContentStreamInterpreter, GlyphEvent, RenderMode
from textmarks.processors.glyph_geometry import PositionedGlyph, resolve_glyph_bbox
from textmarks.processors.text_assembler import TextAssembler
from textmarks.processors.fonts import PdfMinerFont, load_fonts, standard_font

__version__ = "2.0.0"
__all__ = [
    'TransformStack',
    'ParsedContent',
    'parse_content',
    'ContentStreamInterpreter',
    'GlyphEvent',
    'RenderMode',
    'PositionedGlyph',
    'resolve_glyph_bbox',
    'TextAssembler',
    'PdfMinerFont',
    'load_fonts',
    'standard_font',
]
