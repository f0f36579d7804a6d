"""Text Processor for PDFEngine

Extracts logical text and text marks from engine pages and locates terms in
them.
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from textmarks.engine.base_processor import BaseProcessor
from textmarks.engine.config import ExtractionConfig
from textmarks.engine.page_extractor import PageTextExtractor
from textmarks.models.text_marks import PageText, TextMarkArray
from textmarks.utils.errors import PageExtractionError

if TYPE_CHECKING:
    from textmarks.engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class TextProcessor(BaseProcessor):
    """
    Text extraction processor for PDFEngine.

    Page sources come from the engine's cache; extraction results are not
    cached because they depend on the options.
    """

    def __init__(self, engine: 'PDFEngine', options: Optional[ExtractionConfig] = None):
        super().__init__(engine)
        self.options = options or ExtractionConfig.default()
        self._extractor = PageTextExtractor(self.options)

    def extract_page(self, page_index: int, options: Optional[ExtractionConfig] = None) -> PageText:
        """
        Extract one page.

        Args:
            page_index: 0-based page index
            options: Overrides the processor's options for this call

        Raises:
            PageExtractionError: If the page content is structurally unusable
            RuntimeError: If the processor is not initialized
        """
        if not self.validate_state():
            raise RuntimeError("TextProcessor not initialized - open the engine first")

        page = self.engine.get_page_source(page_index)
        extractor = self._extractor if options is None else PageTextExtractor(options)
        try:
            page_text = extractor.extract(page)
        except PageExtractionError as e:
            logger.error(f"Page {page_index + 1}: extraction failed: {e}")
            raise

        logger.debug(
            f"Page {page_index + 1}: {len(page_text.text)} characters, "
            f"{len(page_text.mark_list)} marks"
        )
        return page_text

    def locate(self, page_index: int, term: str) -> List[Tuple[int, TextMarkArray]]:
        """Every occurrence of `term` on a page as (offset, marks) pairs."""
        return self.extract_page(page_index).find_all(term)
