"""
PDF Processing Engine - Core Coordinator

The PDFEngine opens a document with pdfplumber, resolves its pages into
PageSource objects (cached) and exposes text extraction through its
TextProcessor.

Usage:
    >>> from textmarks.engine.pdf_engine import PDFEngine
    >>> from textmarks.engine.config import EngineConfig
    >>>
    >>> with PDFEngine('document.pdf', config=EngineConfig()) as engine:
    ...     page_text = engine.extract_page_text(0)
    ...     print(page_text.term_bbox("Invoice"))
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pdfplumber
from pdfminer.pdfinterp import PDFResourceManager

from textmarks.engine.config import EngineConfig, ExtractionConfig, PageRange
from textmarks.engine.page_loader import PageSourceLoader
from textmarks.engine.text_processor import TextProcessor
from textmarks.models.page_source import PageSource
from textmarks.models.text_marks import PageText, TextMarkArray
from textmarks.utils.validation import PdfValidationError, validate_pdf_file

logger = logging.getLogger(__name__)


class PDFEngine:
    """
    Document-level coordinator for text mark extraction.

    Example:
        >>> with PDFEngine('document.pdf') as engine:
        ...     total_pages = engine.get_page_count()
    """

    def __init__(self, file_path: str, config: Optional[EngineConfig] = None):
        """
        Initialize PDF engine with file path and optional configuration.

        Note: Document is not opened until entering context manager (__enter__).

        Raises:
            FileNotFoundError: If file does not exist
            PdfValidationError: If configuration is invalid
        """
        self.file_path = file_path
        self.config = config or EngineConfig.default()

        if not os.path.exists(file_path):
            raise FileNotFoundError(f"PDF file not found: {file_path}")

        if not self.config.validate():
            raise PdfValidationError("Invalid engine configuration")

        self.extraction_config: ExtractionConfig = self.config.extraction_config()

        # Resource handles (initialized in __enter__)
        self._pdfplumber_doc = None
        self._loader: Optional[PageSourceLoader] = None
        self._text_processor: Optional[TextProcessor] = None
        self._is_open = False

        # Page caching
        self._page_cache: Dict[int, PageSource] = {}
        self._cache_enabled = self.config.enable_caching

        # Metadata
        self._page_count: Optional[int] = None
        self._file_size_mb: Optional[float] = None

        logger.debug(f"PDFEngine initialized for: {Path(file_path).name}")

    def __enter__(self) -> 'PDFEngine':
        """
        Open the document and initialize the text processor.

        Raises:
            PdfValidationError: If PDF cannot be opened or is invalid
        """
        try:
            logger.info(f"Opening PDF: {self.file_path}")

            if self.config.validate_on_open:
                self._validate_pdf_file()

            self._pdfplumber_doc = pdfplumber.open(self.file_path)
            self._loader = PageSourceLoader(
                PDFResourceManager(caching=self._cache_enabled),
                max_form_depth=self.extraction_config.max_form_depth,
            )
            self._page_count = len(self._pdfplumber_doc.pages)
            self._file_size_mb = os.path.getsize(self.file_path) / (1024 * 1024)
            self._is_open = True

            self._text_processor = TextProcessor(self, self.extraction_config)
            self._text_processor.initialize()

            logger.info(
                f"PDF opened successfully: {self._page_count} pages, "
                f"{self._file_size_mb:.2f} MB"
            )
            return self

        except Exception as e:
            logger.error(f"Failed to open PDF: {e}")
            self._cleanup_resources()
            if isinstance(e, PdfValidationError):
                raise
            raise PdfValidationError(f"Failed to open PDF: {e}") from e

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Clean up all resources; exceptions are not suppressed."""
        logger.info("Closing PDF engine")
        self._cleanup_resources()

        if exc_type is not None:
            logger.error(f"Exception during engine operation: {exc_val}")

        return False

    def _validate_pdf_file(self) -> None:
        """
        Raises:
            PdfValidationError: If any file-level check fails
        """
        report = validate_pdf_file(self.file_path, self.config.max_file_size_mb)
        if not report.is_valid:
            raise PdfValidationError(f"PDF validation failed: {'; '.join(report.errors)}")

    def _cleanup_resources(self) -> None:
        """Idempotent cleanup of processor, document and cache."""
        if self._text_processor is not None:
            self._text_processor.cleanup()
            self._text_processor = None

        if self._pdfplumber_doc is not None:
            try:
                self._pdfplumber_doc.close()
            except Exception as e:
                logger.warning(f"Error closing pdfplumber document: {e}")
            finally:
                self._pdfplumber_doc = None

        self._loader = None
        self._page_cache.clear()
        self._is_open = False

    def _require_open(self) -> None:
        if not self._is_open:
            raise RuntimeError("Engine not opened - use within context manager")

    def _check_index(self, page_index: int) -> None:
        self._require_open()
        if page_index < 0 or page_index >= self._page_count:
            raise IndexError(f"Page index {page_index} out of bounds (0-{self._page_count - 1})")

    # Public API - Document Information

    def get_page_count(self) -> int:
        """
        Raises:
            RuntimeError: If engine not opened
        """
        self._require_open()
        return self._page_count

    def get_file_size_mb(self) -> float:
        self._require_open()
        return self._file_size_mb

    def validate_page_range(self, page_range: PageRange) -> bool:
        self._require_open()
        return page_range.validate(self._page_count)

    @property
    def pdfplumber_document(self):
        """
        Access pdfplumber document.

        Raises:
            RuntimeError: If engine not opened
        """
        if not self._is_open or self._pdfplumber_doc is None:
            raise RuntimeError("Engine not opened - use within context manager")
        return self._pdfplumber_doc

    @property
    def text_processor(self) -> TextProcessor:
        if self._text_processor is None:
            raise RuntimeError("TextProcessor not yet initialized")
        return self._text_processor

    @property
    def is_open(self) -> bool:
        return self._is_open

    # Public API - Page Caching

    def get_cached_page(self, page_num: int) -> Optional[PageSource]:
        """Cached PageSource for a 1-based page number, if any."""
        if not self._cache_enabled:
            return None
        return self._page_cache.get(page_num)

    def cache_page(self, page_num: int, page: PageSource) -> None:
        if not self._cache_enabled or self.config.max_cache_pages == 0:
            return

        # Evict the oldest entry
        if len(self._page_cache) >= self.config.max_cache_pages:
            oldest_key = next(iter(self._page_cache))
            del self._page_cache[oldest_key]

        self._page_cache[page_num] = page

    def clear_cache(self) -> None:
        self._page_cache.clear()

    # Public API - Pages and Text

    def get_page_source(self, page_index: int) -> PageSource:
        """
        Resolve a page into the inputs of text extraction.

        Args:
            page_index: 0-based page index

        Raises:
            RuntimeError: If engine not opened
            IndexError: If page index out of bounds
        """
        self._check_index(page_index)
        page_num = page_index + 1

        cached = self.get_cached_page(page_num)
        if cached is not None:
            return cached

        plumber_page = self._pdfplumber_doc.pages[page_index]
        page = self._loader.load(plumber_page.page_obj, page_number=page_num)
        logger.debug(
            f"Page {page_num}: {len(page.content)} content bytes, {len(page.fonts)} fonts, "
            f"{len(page.xobjects)} forms, rotation {page.rotation}"
        )
        self.cache_page(page_num, page)
        return page

    def extract_page_text(self, page_index: int, config: Optional[ExtractionConfig] = None) -> PageText:
        """Logical text and marks of one page (0-based index)."""
        self._check_index(page_index)
        return self.text_processor.extract_page(page_index, config)

    def find_text(self, page_index: int, term: str) -> List[Tuple[int, TextMarkArray]]:
        """Every occurrence of `term` on one page as (offset, marks) pairs."""
        self._check_index(page_index)
        return self.text_processor.locate(page_index, term)
