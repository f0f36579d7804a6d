"""
Text Marks Engine

Document and page level entry points: the PDFEngine coordinator, the page
loader over pdfminer.six page objects, the page extractor and configuration.
"""

__version__ = "2.0.0"

from textmarks.engine.config import EngineConfig, ExtractionConfig, PageRange
from textmarks.engine.page_extractor import PageTextExtractor, extract_page_text
from textmarks.engine.page_loader import PageSourceLoader, load_page_source
from textmarks.engine.base_processor import BaseProcessor
from textmarks.engine.text_processor import TextProcessor
from textmarks.engine.pdf_engine import PDFEngine

__all__ = [
    'PDFEngine',
    'EngineConfig',
    'ExtractionConfig',
    'PageRange',
    'BaseProcessor',
    'TextProcessor',
    'PageTextExtractor',
    'extract_page_text',
    'PageSourceLoader',
    'load_page_source',
]
