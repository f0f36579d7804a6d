"""
Page-level text extraction.

Runs the full pipeline for one page: transform stack, content interpreter,
glyph geometry and text assembly. Each call owns all of its state, so pages
can be extracted concurrently.
"""

import logging
from typing import Optional

from textmarks.engine.config import ExtractionConfig
from textmarks.models.page_source import PageSource
from textmarks.models.text_marks import PageText
from textmarks.processors.content_interpreter import ContentStreamInterpreter
from textmarks.processors.text_assembler import TextAssembler
from textmarks.processors.transform_stack import TransformStack

logger = logging.getLogger(__name__)


def extract_page_text(page: PageSource, config: Optional[ExtractionConfig] = None) -> PageText:
    """
    Extract the logical text and text marks of one page.

    Args:
        page: Resolved page (content bytes, fonts, XObjects, media box, rotation)
        config: Extraction options (defaults if None)

    Returns:
        PageText with the page's text, marks and extraction stats

    Raises:
        PageExtractionError: If the page content is structurally unusable
        ValueError: If the configuration is invalid
    """
    config = config or ExtractionConfig.default()
    if not config.validate():
        raise ValueError(f"Invalid extraction configuration: {config!r}")

    transforms = TransformStack.for_page(page.mediabox, page.rotation)
    interpreter = ContentStreamInterpreter(page, transforms, config)
    events = interpreter.run()
    stats = interpreter.stats

    page_text = TextAssembler(config).assemble(
        events,
        stats=stats,
        page_number=page.page_number,
        rotation=page.rotation,
    )

    if stats.skipped_operators or stats.unmapped:
        logger.debug(
            f"Page {page.page_number}: {stats.glyphs} glyphs, {stats.unmapped} unmapped, "
            f"{stats.skipped_operators} operators skipped"
        )
    return page_text


class PageTextExtractor:
    """
    Reusable page extractor bound to one configuration.

    Example:
        >>> extractor = PageTextExtractor(ExtractionConfig(include_invisible=False))
        >>> page_text = extractor.extract(page)
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig.default()

    def extract(self, page: PageSource) -> PageText:
        return extract_page_text(page, self.config)

    def __repr__(self) -> str:
        return f"PageTextExtractor({self.config!r})"
