"""
Text Marks Extractor

File-level entry points used by the API: extract the logical text and text
marks of a page range, or locate every occurrence of a term with its box.

Uses PDFEngine + TextProcessor for all extraction operations.
"""

import logging
from typing import Dict, List, Optional

from textmarks.engine import EngineConfig, PDFEngine, PageRange
from textmarks.models.api_types import (
    PageTextResponse,
    TermLocation,
    page_text_to_response,
    term_location,
)
from textmarks.utils.errors import PageExtractionError
from textmarks.utils.validation import PdfValidationError

DEFAULT_START_PAGE = 1

logger = logging.getLogger(__name__)


def _engine_config(text_config: Optional[Dict], strict_mode: bool) -> EngineConfig:
    return EngineConfig(
        enable_caching=True,
        strict_mode=strict_mode,
        text_options=dict(text_config) if text_config else None,
    )


def _page_numbers(engine: PDFEngine, start_page: int, end_page: Optional[int]) -> List[int]:
    total_pages = engine.get_page_count()
    start_page = max(DEFAULT_START_PAGE, start_page)
    if end_page is not None and end_page < start_page:
        end_page = start_page
    return PageRange(start=start_page, end=end_page).to_page_numbers(total_pages)


def extract_text_marks(
    file_path: str,
    start_page: int = DEFAULT_START_PAGE,
    end_page: Optional[int] = None,
    text_config: Optional[Dict] = None,
    strict_mode: bool = False,
) -> List[PageTextResponse]:
    """
    Extract logical text and text marks for a range of pages.

    A page whose content is structurally unusable yields an empty page with
    its error recorded, unless strict_mode is set.

    Args:
        file_path: Path to the PDF
        start_page: First 1-based page to extract
        end_page: Last 1-based page (None for the end of the document)
        text_config: ExtractionConfig fields as a dictionary

    Raises:
        PdfValidationError: If the document cannot be opened or extracted
    """
    try:
        with PDFEngine(file_path, config=_engine_config(text_config, strict_mode)) as engine:
            page_numbers = _page_numbers(engine, start_page, end_page)
            logger.info(
                f"Extracting text marks: {engine.get_page_count()} total pages, "
                f"{len(page_numbers)} selected"
            )

            pages: List[PageTextResponse] = []
            for page_num in page_numbers:
                try:
                    page_text = engine.extract_page_text(page_num - 1)
                except PageExtractionError as e:
                    if engine.config.strict_mode:
                        raise
                    logger.warning(f"Page {page_num}: {e}")
                    pages.append(PageTextResponse(pageNumber=page_num, text="", error=str(e)))
                    continue
                pages.append(page_text_to_response(page_text, page_num))

            logger.info(f"Extraction complete: {len(pages)} pages processed")
            return pages

    except PdfValidationError:
        raise
    except Exception as e:
        logger.error(f"Text mark extraction failed: {e}", exc_info=True)
        raise PdfValidationError(f"Text mark extraction failed: {e}") from e


def locate_text(
    file_path: str,
    term: str,
    start_page: int = DEFAULT_START_PAGE,
    end_page: Optional[int] = None,
    text_config: Optional[Dict] = None,
) -> List[TermLocation]:
    """
    Find every occurrence of a term and the box enclosing its glyphs.

    Pages that cannot be extracted are skipped with a warning.

    Raises:
        PdfValidationError: If the term is empty or the document cannot be read
    """
    if not term:
        raise PdfValidationError("Search term must not be empty")

    try:
        with PDFEngine(file_path, config=_engine_config(text_config, strict_mode=False)) as engine:
            locations: List[TermLocation] = []
            for page_num in _page_numbers(engine, start_page, end_page):
                try:
                    matches = engine.find_text(page_num - 1, term)
                except PageExtractionError as e:
                    logger.warning(f"Page {page_num}: skipped while searching: {e}")
                    continue
                locations.extend(term_location(page_num, start, term, marks) for start, marks in matches)

            logger.info(f"Found {len(locations)} occurrence(s) of {term!r}")
            return locations

    except PdfValidationError:
        raise
    except Exception as e:
        logger.error(f"Text search failed: {e}", exc_info=True)
        raise PdfValidationError(f"Text search failed: {e}") from e
